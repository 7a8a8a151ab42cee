# jobportal/schemas/records.py
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Role(str, Enum):
    JOB_SEEKER = "job_seeker"
    COMPANY = "company"
    VENDOR = "vendor"


# spellings written by older clients; rows are read as the canonical role
LEGACY_ROLE_NAMES = {
    "employer": Role.COMPANY.value,
    "job-seeker": Role.JOB_SEEKER.value,
}


def canonical_role(value: Any) -> Any:
    if isinstance(value, str):
        return LEGACY_ROLE_NAMES.get(value.strip().lower(), value)
    return value


class Record(BaseModel):
    # rows may carry columns this client does not know about yet
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class Identity(Record):
    id: str
    email: EmailStr
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    email_confirmed_at: datetime | None = None


class AuthSession(Record):
    access_token: str
    token_type: str = "bearer"
    user: Identity


class Profile(Record):
    id: str
    email: EmailStr
    full_name: str = ""
    role: Role
    phone: str | None = None
    location: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    resume_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _legacy_role(cls, v: Any) -> Any:
        return canonical_role(v)


class Company(Record):
    id: str
    name: str
    description: str | None = None
    website: str | None = None
    logo_url: str | None = None
    industry: str | None = None
    company_size: str | None = None
    location: str | None = None
    headquarters: str | None = None
    founded_year: int | None = None
    is_verified: bool = False
    benefits: list[str] = Field(default_factory=list)
    company_culture: str | None = None
    social_media: dict[str, str] = Field(default_factory=dict)
    employee_count_range: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CompanyMembership(Record):
    id: str
    profile_id: str
    company_id: str
    position: str = "Owner"
    is_admin: bool = False


class Vendor(Record):
    id: str
    name: str
    description: str | None = None
    service_type: str | None = None
    website: str | None = None
    logo_url: str | None = None
    location: str | None = None
    services: list[str] = Field(default_factory=list)
    is_verified: bool = False
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VendorMembership(Record):
    id: str
    profile_id: str
    vendor_id: str
    position: str = "Owner"


class JobSeeker(Record):
    id: str
    skills: list[str] = Field(default_factory=list)
    experience_years: int = 0
    current_salary: int | None = None
    expected_salary_min: int | None = None
    expected_salary_max: int | None = None
    salary_currency: str = "USD"
    education: list[dict[str, Any]] = Field(default_factory=list)
    experience: list[dict[str, Any]] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    preferred_job_types: list[str] = Field(default_factory=list)
    work_authorization: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class JobType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    FREELANCE = "freelance"
    INTERNSHIP = "internship"


class ExperienceLevel(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    EXECUTIVE = "executive"


class Job(Record):
    id: str
    title: str
    description: str
    company_id: str
    location: str = ""
    job_type: JobType = JobType.FULL_TIME
    salary_min: int | None = None
    salary_max: int | None = None
    currency: str = "USD"
    experience_level: ExperienceLevel = ExperienceLevel.MID
    skills_required: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    remote_work_available: bool = False
    application_deadline: datetime | None = None
    is_active: bool = True
    applications_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
