# jobportal/api/deps.py
from pathlib import Path

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from jobportal.backend.service import AuthService
from jobportal.core.config import settings
from jobportal.db.session import get_db
from jobportal.errors import BackendError
from jobportal.schemas.records import Identity

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token", auto_error=False)


def get_storage_root() -> Path:
    return Path(settings.STORAGE_ROOT)


def get_bearer_token(token: str | None = Depends(oauth2_scheme)) -> str:
    if not token:
        raise BackendError("Missing bearer token", code="not_authenticated")
    return token


def get_current_identity(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)) -> Identity:
    return AuthService(db).user_for_token(token)
