from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    # field order decides which error is reported first
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = None
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=8)


class VerifyEmailOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=4, max_length=10)


class ResendRequest(BaseModel):
    email: str = Field(min_length=1)


class UserCreated(BaseModel):
    id: str
    email: str


class UserPublic(BaseModel):
    id: str
    name: str
    email: str


class OkResponse(BaseModel):
    ok: bool = True


class SignupResponse(OkResponse):
    user: UserCreated
    message: str = "Check your email to verify your account."


class LoginResponse(OkResponse):
    token: str
    user: UserPublic


class MeResponse(OkResponse):
    user: UserPublic


class DirectLineTokenResponse(BaseModel):
    token: str
