from datetime import datetime, timedelta, timezone
from typing import Optional

import os
import uuid
import jwt
from dotenv import load_dotenv

from fastapi.security import HTTPBearer

from models.users_models import User
from services.errors import ConfigurationError, InvalidTokenError


load_dotenv()


SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))


bearer_scheme = HTTPBearer(
    scheme_name="Bearer Token",
    description="Enter your session token here",
    auto_error=False,
)


class TokenService:
    """Signs and checks session tokens. Nothing is stored server-side."""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret = secret if secret is not None else SECRET_KEY
        self.algorithm = algorithm or ALGORITHM

    def _require_secret(self) -> str:
        if not self.secret:
            raise ConfigurationError("SECRET_KEY is not configured")
        return self.secret

    # ==================== JWT HELPERS ====================
    @staticmethod
    def _with_standard_claims(data: dict, *, token_type: str, exp_delta: timedelta) -> dict:
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        jti = uuid.uuid4().hex
        to_encode.update({"iat": now, "exp": now + exp_delta, "type": token_type, "jti": jti})
        return to_encode

    # ==================== TOKEN CREATION ====================
    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        if expires_delta is None:
            expires_delta = timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)
        to_encode = self._with_standard_claims(data, token_type="access", exp_delta=expires_delta)
        return jwt.encode(to_encode, self._require_secret(), algorithm=self.algorithm)

    def create_session_token(self, user: User) -> str:
        return self.create_access_token(
            data={"sub": str(user.id), "email": user.email, "name": user.name}
        )

    # ==================== TOKEN VALIDATION ====================
    def validate_access_token(self, token_str: str) -> dict:
        try:
            payload = jwt.decode(token_str, self._require_secret(), algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            raise InvalidTokenError("Invalid token")
        if payload.get("type") != "access":
            raise InvalidTokenError(f"Invalid token type: {payload.get('type')}")
        return payload


def get_token_service() -> TokenService:
    return TokenService()
