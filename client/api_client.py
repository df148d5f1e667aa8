from dataclasses import dataclass
from typing import Optional
import logging
import os

import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

API_URL = os.getenv("API_URL", "http://localhost:4000")
API_TIMEOUT = 10.0


@dataclass
class TokenStore:
    """Client-side session storage: the bearer token and display name."""

    token: Optional[str] = None
    name: Optional[str] = None

    def save(self, token: str, name: Optional[str]) -> None:
        self.token = token
        self.name = name or ""

    def clear(self) -> None:
        self.token = None
        self.name = None

    @property
    def logged_in(self) -> bool:
        return self.token is not None


class AuthApiClient:
    """Calls the auth HTTP surface and keeps the session token.

    Every method returns the decoded JSON body whatever the status code, so
    callers branch on ``body["ok"]`` and pass failures to ``friendly_message``.
    """

    def __init__(self, base_url: str = API_URL, http: Optional[httpx.Client] = None, store: Optional[TokenStore] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.Client(timeout=API_TIMEOUT)
        self.store = store or TokenStore()

    def _post(self, path: str, payload: Optional[dict] = None, headers: Optional[dict] = None) -> dict:
        response = self.http.post(f"{self.base_url}{path}", json=payload, headers=headers)
        return response.json()

    def _get(self, path: str, headers: Optional[dict] = None) -> dict:
        response = self.http.get(f"{self.base_url}{path}", headers=headers)
        return response.json()

    def signup(self, name: str, email: str, password: str, phone: Optional[str] = None) -> dict:
        payload = {"name": name, "email": email, "password": password}
        if phone:
            payload["phone"] = phone
        return self._post("/auth/signup", payload)

    def login(self, identifier: str, password: str) -> dict:
        body = self._post("/auth/login", {"identifier": identifier, "password": password})
        if body.get("ok") and body.get("token"):
            self.store.save(body["token"], (body.get("user") or {}).get("name"))
        return body

    def verify_otp(self, email: str, otp: str) -> dict:
        return self._post("/auth/verify-email-otp", {"email": email, "otp": otp})

    def resend(self, email: str) -> dict:
        return self._post("/auth/resend", {"email": email})

    def me(self) -> dict:
        if not self.store.logged_in:
            return {"ok": False, "code": "INVALID_TOKEN"}
        return self._get("/auth/me", headers={"Authorization": f"Bearer {self.store.token}"})

    def directline_token(self) -> dict:
        return self._post("/directline/token")

    def health(self) -> dict:
        return self._get("/health")

    def forgot_password(self, email: str) -> dict:
        # password reset is not offered by the backend
        logger.info("Password reset requested for %s but is not available", email)
        return {"ok": False, "code": "NOT_AVAILABLE"}

    def logout(self) -> None:
        self.store.clear()

    def close(self) -> None:
        self.http.close()
