# jobportal/client/results.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from jobportal.schemas.records import Job
from jobportal.schemas.view import UserView


class SignInError(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    PROFILE_NOT_FOUND = "profile_not_found"
    UNKNOWN = "unknown"


@dataclass
class SignInResult:
    view: Optional[UserView] = None
    error: Optional[SignInError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and self.view is not None


@dataclass
class SignUpResult:
    view: Optional[UserView] = None
    pending_confirmation: bool = False
    message: str = ""


@dataclass
class JobResult:
    success: bool
    job: Optional[Job] = None
    # machine-readable reason when success is False
    error: Optional[str] = None
    message: str = ""

    @classmethod
    def failure(cls, error: str, message: str) -> "JobResult":
        return cls(success=False, error=error, message=message)


@dataclass
class CompanyStats:
    active_jobs: int = 0
    total_jobs: int = 0
    total_applications: int = 0
