from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, Boolean, ForeignKey, JSON, UniqueConstraint
from jobportal.db.base import Base
from jobportal.models._mixins import UUIDPrimaryKey, Timestamps


class Company(UUIDPrimaryKey, Timestamps, Base):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    website: Mapped[str | None] = mapped_column(String(1024))
    logo_url: Mapped[str | None] = mapped_column(String(1024))
    industry: Mapped[str | None] = mapped_column(String(255))
    company_size: Mapped[str | None] = mapped_column(String(64))
    location: Mapped[str | None] = mapped_column(String(255))
    headquarters: Mapped[str | None] = mapped_column(String(255))
    founded_year: Mapped[int | None] = mapped_column(Integer)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    benefits: Mapped[list] = mapped_column(JSON, default=list)
    company_culture: Mapped[str | None] = mapped_column(Text)
    social_media: Mapped[dict] = mapped_column(JSON, default=dict)
    employee_count_range: Mapped[str | None] = mapped_column(String(64))


class CompanyUser(UUIDPrimaryKey, Base):
    __tablename__ = "company_users"
    __table_args__ = (UniqueConstraint("profile_id", "company_id"),)

    profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="CASCADE"), index=True, nullable=False
    )
    position: Mapped[str] = mapped_column(String(255), default="Owner")
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
