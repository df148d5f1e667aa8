from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from dependencies import get_session_claims
from schemas.users_schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    OkResponse,
    ResendRequest,
    SignupRequest,
    SignupResponse,
    UserPublic,
    VerifyEmailOtpRequest,
)
from services.errors import OtpError
from services.users_services import get_user_service, UserService

auth_router = APIRouter(prefix="/auth", tags=["auth"])

# ==================== EMAIL AUTHENTICATION ====================

@auth_router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SignupResponse)
def signup(
    body: SignupRequest,
    user_service: UserService = Depends(get_user_service),
):
    user = user_service.signup(
        name=body.name,
        email=body.email,
        phone=body.phone,
        password=body.password,
    )
    return SignupResponse(user=user)


@auth_router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    user_service: UserService = Depends(get_user_service),
):
    result = user_service.login(body.identifier, body.password)
    return LoginResponse(**result)


@auth_router.post("/verify-email-otp", response_model=OkResponse)
def verify_email_otp(
    body: VerifyEmailOtpRequest,
    user_service: UserService = Depends(get_user_service),
):
    try:
        user_service.verify_email_otp(body.email, body.otp)
    except OtpError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": e.code},
        )
    return OkResponse()


@auth_router.post("/resend", response_model=OkResponse)
def resend(
    body: ResendRequest,
    user_service: UserService = Depends(get_user_service),
):
    user_service.resend_verification(body.email)
    return OkResponse()


@auth_router.get("/me", response_model=MeResponse)
def read_session(claims: dict = Depends(get_session_claims)):
    return MeResponse(
        user=UserPublic(id=claims["sub"], name=claims.get("name", ""), email=claims.get("email", ""))
    )
