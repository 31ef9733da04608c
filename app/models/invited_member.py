"""
InvitedMember model.

Referral edge: sponsor invited user. One sponsor per user.
"""

from datetime import UTC, datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import UTCDateTime


class InvitedMember(Base):
    """Directed sponsor -> invitee edge."""

    __tablename__ = "invited_members"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sponsor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<InvitedMember(sponsor_id={self.sponsor_id}, user_id={self.user_id})>"
