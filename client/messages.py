FRIENDLY_MESSAGES = {
    "EMAIL_IN_USE": "That email is already registered.",
    "INVALID_CREDENTIALS": "Email or password is incorrect.",
    "EMAIL_NOT_VERIFIED": "Please verify your email before logging in.",
    "PASSWORD_TOO_SHORT": "Your password must be at least 8 characters.",
    "REQUIRED_EMAIL": "Please enter your email address.",
    "REQUIRED_NAME": "Please enter your full name.",
    "INVALID_INPUT": "Please check your input and try again.",
    "OTP_NOT_FOUND": "No verification code was found for that email.",
    "OTP_ALREADY_USED": "That code has already been used.",
    "OTP_EXPIRED": "That code has expired. Request a new one.",
    "OTP_INVALID": "That code is not correct.",
    "RESEND_FAILED": "We could not send a new code. Please try again later.",
}

DEFAULT_MESSAGE = "Please check your input and try again."


def friendly_message(response: dict, fallback: str = DEFAULT_MESSAGE) -> str:
    """User-facing text for an error body, from its ``code`` or ``error`` field."""
    code = response.get("code")
    if not isinstance(code, str):
        code = response.get("error")
    if isinstance(code, str):
        return FRIENDLY_MESSAGES.get(code, fallback)
    return fallback
