from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Boolean, ForeignKey, Index
from datetime import datetime
from uuid import UUID
import uuid

from models.users_models import Base, User


class EmailVerificationCode(Base):
    """Hashed one-time code sent to a user's email. Rows are never deleted."""

    __tablename__ = "email_verification_codes"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid.uuid4, nullable=False)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    code_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # issuance time, set by the service so ordering keeps sub-second precision
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped[User] = relationship("User", back_populates="verification_codes")

    __table_args__ = (
        Index("idx_verification_latest", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<EmailVerificationCode(user_id={self.user_id}, used={self.used})>"
