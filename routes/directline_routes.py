from fastapi import APIRouter, Depends

from schemas.users_schemas import DirectLineTokenResponse
from services.directline_service import DirectLineService, get_directline_service

directline_router = APIRouter(prefix="/directline", tags=["directline"])


@directline_router.post("/token", response_model=DirectLineTokenResponse)
def create_directline_token(
    directline_service: DirectLineService = Depends(get_directline_service),
):
    return DirectLineTokenResponse(token=directline_service.generate_token())
