# jobportal/schemas/forms.py
"""Inbound payloads. Everything here is validated before the backend is touched."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jobportal.schemas.records import ExperienceLevel, JobType, Role


def _strip_required(value: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


class SignUpData(BaseModel):
    full_name: str
    role: Role = Role.JOB_SEEKER
    phone: Optional[str] = None
    company_name: Optional[str] = None
    service_type: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _strip_required(v, "Full name")

    def metadata(self) -> dict[str, Any]:
        return {
            "full_name": self.full_name,
            "role": self.role.value,
            "phone": self.phone,
            "company_name": self.company_name,
            "service_type": self.service_type,
        }


class _Update(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class ProfileUpdate(_Update):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    resume_url: Optional[str] = None


class CompanyUpdate(_Update):
    name: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = None
    location: Optional[str] = None
    headquarters: Optional[str] = None
    founded_year: Optional[int] = Field(default=None, ge=1800, le=2100)
    benefits: Optional[list[str]] = None
    company_culture: Optional[str] = None
    social_media: Optional[dict[str, str]] = None
    employee_count_range: Optional[str] = None
    # membership of the caller, only used when the company is created
    position: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, "Company name")


class VendorUpdate(_Update):
    name: Optional[str] = None
    description: Optional[str] = None
    service_type: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    location: Optional[str] = None
    services: Optional[list[str]] = None
    is_active: Optional[bool] = None
    position: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, "Vendor name")


class JobSeekerUpdate(_Update):
    skills: Optional[list[str]] = None
    experience_years: Optional[int] = Field(default=None, ge=0)
    current_salary: Optional[int] = None
    expected_salary_min: Optional[int] = None
    expected_salary_max: Optional[int] = None
    salary_currency: Optional[str] = None
    education: Optional[list[dict[str, Any]]] = None
    experience: Optional[list[dict[str, Any]]] = None
    certifications: Optional[list[str]] = None
    languages: Optional[list[str]] = None
    preferred_job_types: Optional[list[JobType]] = None
    work_authorization: Optional[str] = None
    is_active: Optional[bool] = None


def _clean_list(values: list[str]) -> list[str]:
    seen: list[str] = []
    for v in values:
        v = (v or "").strip()
        if v and v not in seen:
            seen.append(v)
    return seen


class JobCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    description: str
    location: str
    job_type: JobType = JobType.FULL_TIME
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    currency: str = "USD"
    experience_level: ExperienceLevel = ExperienceLevel.MID
    skills_required: list[str]
    benefits: list[str] = Field(default_factory=list)
    remote_work_available: bool = False
    application_deadline: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _strip_required(v, "Job title")

    @field_validator("description")
    @classmethod
    def _description(cls, v: str) -> str:
        return _strip_required(v, "Job description")

    @field_validator("location")
    @classmethod
    def _location(cls, v: str) -> str:
        return _strip_required(v, "Location")

    @field_validator("skills_required")
    @classmethod
    def _skills(cls, v: list[str]) -> list[str]:
        v = _clean_list(v)
        if not v:
            raise ValueError("At least one skill is required")
        return v

    @field_validator("benefits")
    @classmethod
    def _benefits(cls, v: list[str]) -> list[str]:
        return _clean_list(v)

    @model_validator(mode="after")
    def _salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("Minimum salary cannot exceed maximum salary")
        return self


class JobUpdate(_Update):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = None
    experience_level: Optional[ExperienceLevel] = None
    skills_required: Optional[list[str]] = None
    benefits: Optional[list[str]] = None
    remote_work_available: Optional[bool] = None
    application_deadline: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("title", "description", "location")
    @classmethod
    def _not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, "Field")

    @field_validator("skills_required")
    @classmethod
    def _skills(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        v = _clean_list(v)
        if not v:
            raise ValueError("At least one skill is required")
        return v
