from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from services.tokens_service import bearer_scheme, get_token_service, TokenService
from services.errors import InvalidTokenError
from typing import Optional


async def get_session_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> dict:
    """Claims of a valid bearer session token. Checked by signature only."""
    if credentials is None:
        raise InvalidTokenError("Missing bearer token")
    return token_service.validate_access_token(credentials.credentials)
