from typing import Optional
import logging
import os

import httpx
from dotenv import load_dotenv

from client.api_client import AuthApiClient

load_dotenv()

logger = logging.getLogger(__name__)

DIRECT_LINE_URL = os.getenv("DIRECT_LINE_URL", "https://directline.botframework.com/v3/directline")
USER_ID = "user"


class ChatSessionError(Exception):
    pass


class ChatSession:
    """One conversation with the hosted bot, owned by the chat view.

    Create it when the chat view opens and close it when the view is left.
    Send and receive handlers take the session as an argument; nothing about
    the connection lives at module level. Only the short-lived token from the
    backend exchange is ever used here.
    """

    def __init__(self, api: AuthApiClient, base_url: str = DIRECT_LINE_URL, http: Optional[httpx.Client] = None):
        self.api = api
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self.http = http or httpx.Client(timeout=10.0)
        self.token: Optional[str] = None
        self.conversation_id: Optional[str] = None
        self.watermark: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.conversation_id is not None

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    def _require_open(self) -> None:
        if not self.is_open:
            raise ChatSessionError("Chat session is not open")

    def open(self) -> "ChatSession":
        body = self.api.directline_token()
        token = body.get("token")
        if not token:
            raise ChatSessionError("Could not obtain a chat token")
        self.token = token

        response = self.http.post(f"{self.base_url}/conversations", headers=self._headers())
        if response.status_code >= 400:
            raise ChatSessionError(f"Could not start conversation ({response.status_code})")
        conversation = response.json()
        self.conversation_id = conversation["conversationId"]
        # the conversation may hand back a refreshed token
        self.token = conversation.get("token") or self.token
        logger.info("Chat conversation %s started", self.conversation_id)
        return self

    def send(self, text: str) -> Optional[str]:
        """Post a user message. Blank text is ignored and returns None."""
        self._require_open()
        text = text.strip()
        if not text:
            return None
        response = self.http.post(
            f"{self.base_url}/conversations/{self.conversation_id}/activities",
            headers=self._headers(),
            json={"type": "message", "from": {"id": USER_ID, "name": "User"}, "text": text},
        )
        if response.status_code >= 400:
            raise ChatSessionError(f"Could not send message ({response.status_code})")
        return response.json().get("id")

    def receive(self) -> list[str]:
        """New bot message texts since the last call."""
        self._require_open()
        params = {"watermark": self.watermark} if self.watermark else None
        response = self.http.get(
            f"{self.base_url}/conversations/{self.conversation_id}/activities",
            headers=self._headers(),
            params=params,
        )
        if response.status_code >= 400:
            raise ChatSessionError(f"Could not read messages ({response.status_code})")
        body = response.json()
        self.watermark = body.get("watermark") or self.watermark
        return [
            activity.get("text", "")
            for activity in body.get("activities", [])
            if activity.get("type") == "message" and activity.get("from", {}).get("id") != USER_ID
        ]

    def close(self) -> None:
        if self.is_open:
            logger.info("Chat conversation %s closed", self.conversation_id)
        self.token = None
        self.conversation_id = None
        self.watermark = None
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "ChatSession":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()
