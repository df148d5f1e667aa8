from datetime import datetime, timedelta, timezone
from typing import Optional
import os
import secrets

import bcrypt
from dotenv import load_dotenv
from sqlalchemy.orm import Session

from models.code_validation_models import EmailVerificationCode
from models.users_models import User
from services.errors import (
    OtpAlreadyUsedError,
    OtpExpiredError,
    OtpInvalidError,
    OtpNotFoundError,
)

load_dotenv()

OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", "10"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
OTP_LENGTH = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# bcrypt only looks at the first 72 bytes and newer releases reject longer input
BCRYPT_MAX_BYTES = 72


def _secret_bytes(value: str) -> bytes:
    return value.encode()[:BCRYPT_MAX_BYTES]


def hash_secret(value: str) -> str:
    return bcrypt.hashpw(_secret_bytes(value), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


def check_secret(value: str, hashed: str) -> bool:
    return bcrypt.checkpw(_secret_bytes(value), hashed.encode())


class VerificationCodeService:
    """Issues, looks up and consumes email verification codes."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def generate_code() -> str:
        # Generate a 6-digit numeric code
        return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"

    def issue_code(self, user: User, now: Optional[datetime] = None) -> tuple[EmailVerificationCode, str]:
        """Add a new code row for ``user`` to the session.

        The caller commits. Returns the row together with the plain code,
        which is never persisted.
        """
        code = self.generate_code()
        created_at = now or utcnow()
        verification = EmailVerificationCode(
            user_id=user.id,
            code_hash=hash_secret(code),
            created_at=created_at,
            expires_at=created_at + timedelta(minutes=OTP_EXPIRE_MINUTES),
            used=False,
        )
        self.db.add(verification)
        return verification, code

    def latest_code_for_email(self, email: str) -> Optional[EmailVerificationCode]:
        return (
            self.db.query(EmailVerificationCode)
            .join(User, User.id == EmailVerificationCode.user_id)
            .filter(User.email == email.lower())
            .order_by(EmailVerificationCode.created_at.desc(), EmailVerificationCode.expires_at.desc())
            .first()
        )

    @staticmethod
    def check_code(verification: Optional[EmailVerificationCode], candidate: str, now: Optional[datetime] = None) -> EmailVerificationCode:
        if verification is None:
            raise OtpNotFoundError("OTP not found")
        if verification.used:
            raise OtpAlreadyUsedError("OTP already used")
        if (now or utcnow()) >= as_utc(verification.expires_at):
            raise OtpExpiredError("OTP expired")
        if not check_secret(candidate, verification.code_hash):
            raise OtpInvalidError("Invalid OTP")
        return verification

    def consume_code(self, verification: EmailVerificationCode, user: User, now: Optional[datetime] = None) -> None:
        """Mark the code used and the user verified. Both land in the caller's commit.

        The code is flipped with a conditional UPDATE so that only one of two
        racing verifications can claim it.
        """
        claimed = (
            self.db.query(EmailVerificationCode)
            .filter(
                EmailVerificationCode.id == verification.id,
                EmailVerificationCode.used.is_(False),
            )
            .update({EmailVerificationCode.used: True}, synchronize_session="fetch")
        )
        if claimed != 1:
            raise OtpAlreadyUsedError("OTP already used")

        now = now or utcnow()
        user.email_verified_at = now
        user.updated_at = now
