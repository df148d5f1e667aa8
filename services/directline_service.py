from typing import Optional
import logging
import os

import httpx
from dotenv import load_dotenv

from services.errors import ConfigurationError, DirectLineError

load_dotenv()

logger = logging.getLogger(__name__)

DIRECT_LINE_SECRET = os.getenv("DIRECT_LINE_SECRET")
DIRECT_LINE_URL = os.getenv("DIRECT_LINE_URL", "https://directline.botframework.com/v3/directline")
DIRECT_LINE_TIMEOUT = 10.0


class DirectLineService:
    """Exchanges the channel secret for a short-lived conversation token.

    The secret stays on the server; clients only ever see the exchanged token.
    """

    def __init__(self, secret: Optional[str] = None, base_url: str = DIRECT_LINE_URL, http: Optional[httpx.Client] = None):
        self.secret = secret if secret is not None else DIRECT_LINE_SECRET
        self.base_url = base_url.rstrip("/")
        self.http = http

    def generate_token(self) -> str:
        if not self.secret:
            raise ConfigurationError("DIRECT_LINE_SECRET not configured")

        try:
            if self.http is not None:
                response = self._post(self.http)
            else:
                with httpx.Client(timeout=DIRECT_LINE_TIMEOUT) as client:
                    response = self._post(client)
        except httpx.HTTPError as e:
            logger.error("DirectLine token exception", exc_info=True)
            raise DirectLineError(str(e)) from e

        if response.status_code >= 400:
            logger.error("DirectLine token error: %s %s", response.status_code, response.text)
            raise DirectLineError(f"Token endpoint returned {response.status_code}")

        try:
            token = response.json().get("token")
        except ValueError as e:
            raise DirectLineError("Token endpoint returned invalid JSON") from e
        if not token:
            raise DirectLineError("Token endpoint returned no token")
        return token

    def _post(self, client: httpx.Client) -> httpx.Response:
        return client.post(
            f"{self.base_url}/tokens/generate",
            headers={"Authorization": f"Bearer {self.secret}"},
        )


def get_directline_service() -> DirectLineService:
    return DirectLineService()
