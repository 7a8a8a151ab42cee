from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, ForeignKey, JSON
from jobportal.db.base import Base
from jobportal.models._mixins import UUIDPrimaryKey, utcnow


class Identity(UUIDPrimaryKey, Base):
    """A sign-in principal. Owned by the auth service, never by the app tables."""
    __tablename__ = "identities"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    user_metadata: Mapped[dict] = mapped_column(JSON, default=dict)
    email_confirmed_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    sessions = relationship(
        "AuthSession",
        back_populates="identity",
        cascade="all, delete-orphan"
    )


class AuthSession(UUIDPrimaryKey, Base):
    __tablename__ = "auth_sessions"

    identity_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("identities.id", ondelete="CASCADE"),
        index=True,
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    identity = relationship("Identity", back_populates="sessions")
