# jobportal/schemas/auth.py
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from jobportal.schemas.records import AuthSession, Identity


class SignUpIn(BaseModel):
    email: EmailStr
    # length is enforced by AuthService (code weak_password)
    password: str
    data: dict[str, Any] = Field(default_factory=dict)


class SignUpOut(BaseModel):
    user: Identity
    session: Optional[AuthSession] = None
