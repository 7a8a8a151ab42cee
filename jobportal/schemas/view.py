# jobportal/schemas/view.py
"""The composite "current user" view.

One variant per role, discriminated on ``role``, so a vendor view can never
carry a company and a company view can never carry a job-seeker row.
"""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from jobportal.schemas.records import (
    Company,
    CompanyMembership,
    JobSeeker,
    Profile,
    Vendor,
    VendorMembership,
)


class _ViewBase(BaseModel):
    profile: Profile

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def email(self) -> str:
        return self.profile.email

    @model_validator(mode="after")
    def _role_matches_profile(self):
        if self.profile.role.value != self.role:
            raise ValueError(
                f"profile role {self.profile.role.value!r} does not match view role {self.role!r}"
            )
        return self


class JobSeekerView(_ViewBase):
    role: Literal["job_seeker"] = "job_seeker"
    job_seeker: JobSeeker


class CompanyView(_ViewBase):
    role: Literal["company"] = "company"
    company: Company | None = None
    membership: CompanyMembership | None = None


class VendorView(_ViewBase):
    role: Literal["vendor"] = "vendor"
    vendor: Vendor | None = None
    membership: VendorMembership | None = None


UserView = Annotated[
    Union[JobSeekerView, CompanyView, VendorView],
    Field(discriminator="role"),
]

user_view_adapter = TypeAdapter(UserView)
