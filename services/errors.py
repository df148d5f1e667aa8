"""Auth error taxonomy.

Every failure the HTTP surface can report carries a stable machine-readable
code and an HTTP status. Messages are for logs only and are never sent to
clients.
"""


class AuthError(Exception):
    """Base class for errors mapped to a ``{"ok": false, "code": ...}`` body.

    Attributes:
        code: Machine-readable error code (e.g. "EMAIL_IN_USE").
        status_code: HTTP status code to return.
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.code
        super().__init__(self.message)


# ==================== BUSINESS RULE VIOLATIONS (400) ====================

class BusinessRuleViolation(AuthError):
    """Expected failure of a well-formed request."""

    status_code = 400


class EmailInUseError(BusinessRuleViolation):
    code = "EMAIL_IN_USE"


class InvalidCredentialsError(BusinessRuleViolation):
    code = "INVALID_CREDENTIALS"


class EmailNotVerifiedError(BusinessRuleViolation):
    code = "EMAIL_NOT_VERIFIED"


class OtpError(BusinessRuleViolation):
    """One-time code could not be accepted."""


class OtpNotFoundError(OtpError):
    code = "OTP_NOT_FOUND"


class OtpAlreadyUsedError(OtpError):
    code = "OTP_ALREADY_USED"


class OtpExpiredError(OtpError):
    code = "OTP_EXPIRED"


class OtpInvalidError(OtpError):
    code = "OTP_INVALID"


class InvalidTokenError(AuthError):
    code = "INVALID_TOKEN"
    status_code = 401


# ==================== TRANSPORT FAILURES (500) ====================

class TransportFailure(AuthError):
    """Mail transport, datastore or bot channel unreachable."""


class NotificationError(TransportFailure):
    code = "NOTIFICATION_FAILED"


class SignupFailedError(TransportFailure):
    code = "SIGNUP_FAILED"


class LoginFailedError(TransportFailure):
    code = "LOGIN_FAILED"


class ResendFailedError(TransportFailure):
    code = "RESEND_FAILED"


class DirectLineError(TransportFailure):
    code = "DIRECTLINE_TOKEN_FAILED"


class ConfigurationError(AuthError):
    """A required secret or credential is not configured."""

    code = "CONFIGURATION_ERROR"
