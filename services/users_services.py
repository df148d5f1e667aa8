from typing import Callable, Optional
from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from models.users_models import User
from services.codes_service import VerificationCodeService, check_secret, hash_secret, utcnow
from services.errors import (
    EmailInUseError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    LoginFailedError,
    NotificationError,
    OtpAlreadyUsedError,
    ResendFailedError,
    SignupFailedError,
)
from services.tokens_service import TokenService, get_token_service
from utils.email_utils import send_verification_code_email

logger = logging.getLogger(__name__)

NotificationSender = Callable[[str, str], None]


@lru_cache(maxsize=1)
def dummy_hash() -> str:
    """Hash compared against when no user matches, so both paths pay for bcrypt."""
    return hash_secret("not-a-real-password")


class UserService:
    """Signup, email verification, resend and login."""

    def __init__(
        self,
        db: Session,
        send_code: NotificationSender = send_verification_code_email,
        token_service: Optional[TokenService] = None,
    ):
        self.db = db
        self.send_code = send_code
        self.token_service = token_service or get_token_service()
        self.codes = VerificationCodeService(db)

    # ==================== LOOKUPS ====================

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    # ==================== SIGNUP ====================

    def signup(self, name: str, email: str, password: str, phone: Optional[str] = None) -> dict:
        email = email.lower()

        if self.get_user_by_email(email):
            raise EmailInUseError("Email already registered")

        user = User(
            name=name,
            email=email,
            phone=phone or None,
            password_hash=hash_secret(password),
        )
        try:
            self.db.add(user)
            self.db.flush()
            _, code = self.codes.issue_code(user)
            self.db.commit()
        except IntegrityError:
            # unique constraint lost the race with a concurrent signup
            self.db.rollback()
            raise EmailInUseError("Email already registered")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Signup failed for %s", email)
            raise SignupFailedError(str(e)) from e

        self._dispatch(email, code)
        return {"id": str(user.id), "email": email}

    # ==================== VERIFICATION ====================

    def verify_email_otp(self, email: str, otp: str) -> dict:
        now = utcnow()
        verification = self.codes.latest_code_for_email(email)
        self.codes.check_code(verification, otp, now=now)

        try:
            self.codes.consume_code(verification, verification.user, now=now)
            self.db.commit()
        except (OtpAlreadyUsedError, SQLAlchemyError):
            self.db.rollback()
            raise

        logger.info("Email verified for user %s", verification.user_id)
        return {"ok": True}

    def resend_verification(self, email: str) -> dict:
        """Send a fresh code. Unknown or verified emails get the same answer."""
        email = email.lower()
        try:
            user = self.get_user_by_email(email)
            if user is None or user.is_verified:
                check_secret("not-a-real-code", dummy_hash())
                return {"ok": True}

            _, code = self.codes.issue_code(user)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Resend failed storing a new code")
            raise ResendFailedError(str(e)) from e

        try:
            self.send_code(email, code)
        except NotificationError as e:
            logger.error("Resend failed sending to %s", email, exc_info=True)
            raise ResendFailedError(str(e)) from e
        return {"ok": True}

    # ==================== LOGIN ====================

    def login(self, identifier: str, password: str) -> dict:
        try:
            user = self.get_user_by_email(identifier)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Login lookup failed")
            raise LoginFailedError(str(e)) from e
        if user is None:
            check_secret(password, dummy_hash())
            raise InvalidCredentialsError("Invalid email or password")
        if not check_secret(password, user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")
        if not user.is_verified:
            raise EmailNotVerifiedError("Email not verified")

        token = self.token_service.create_session_token(user)
        return {
            "token": token,
            "user": {"id": str(user.id), "name": user.name, "email": user.email},
        }

    # ==================== NOTIFICATION ====================

    def _dispatch(self, email: str, code: str) -> None:
        try:
            self.send_code(email, code)
        except Exception:
            logger.warning("Verification email to %s failed", email, exc_info=True)


# ==================== DEPENDENCY INJECTION ====================

def get_notification_sender() -> NotificationSender:
    return send_verification_code_email


def get_user_service(
    db: Session = Depends(get_db),
    send_code: NotificationSender = Depends(get_notification_sender),
) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db, send_code=send_code)
