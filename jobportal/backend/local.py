# jobportal/backend/local.py
"""In-process backend client: the same capability set as the HTTP one, minus HTTP."""
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from jobportal.backend.base import AuthClient, Backend, Bucket, SignUpResponse, Table
from jobportal.backend.service import AuthService, BucketStore, TableService, public_url
from jobportal.core.config import settings
from jobportal.db.session import SessionLocal
from jobportal.errors import BackendError
from jobportal.schemas.records import AuthSession, Identity


class LocalAuth(AuthClient):
    def __init__(self, sessions: sessionmaker, require_confirmation: bool | None = None):
        super().__init__()
        self._db = sessions
        self._require_confirmation = require_confirmation

    def _service(self, s: Session) -> AuthService:
        return AuthService(s, require_confirmation=self._require_confirmation)

    def _sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> SignUpResponse:
        with self._db() as s:
            user, session = self._service(s).sign_up(email, password, metadata)
        return SignUpResponse(user=user, session=session)

    def _sign_in(self, email: str, password: str) -> AuthSession:
        with self._db() as s:
            return self._service(s).sign_in(email, password)

    def _get_user(self, token: str) -> Identity:
        with self._db() as s:
            return self._service(s).user_for_token(token)

    def _refresh(self, token: str) -> AuthSession:
        with self._db() as s:
            return self._service(s).refresh(token)

    def _sign_out(self, token: str) -> None:
        with self._db() as s:
            self._service(s).sign_out(token)

    def confirm_email(self, identity_id: str) -> Identity:
        """Stand-in for the user clicking the confirmation link."""
        with self._db() as s:
            return self._service(s).confirm_email(identity_id)


class LocalTable(Table):
    def __init__(self, backend: "LocalBackend", name: str):
        super().__init__(name)
        self.backend = backend

    def _actor(self) -> str:
        session = self.backend.auth.session
        if session is None:
            raise BackendError(f"Sign in to modify {self.name}", code="not_authenticated")
        return session.user.id

    def select(self, *, order: str | None = None, limit: int | None = None, **eq: Any) -> list[dict]:
        with self.backend.sessions() as s:
            return TableService(s, self.name).select(eq, order=order, limit=limit)

    def count(self, **eq: Any) -> int:
        with self.backend.sessions() as s:
            return TableService(s, self.name).count(eq)

    def insert(self, values: dict[str, Any]) -> dict:
        actor = self._actor()
        with self.backend.sessions() as s:
            return TableService(s, self.name, actor).insert(values)

    def update(self, values: dict[str, Any], **eq: Any) -> list[dict]:
        actor = self._actor()
        with self.backend.sessions() as s:
            return TableService(s, self.name, actor).update(values, eq)

    def delete(self, **eq: Any) -> int:
        actor = self._actor()
        with self.backend.sessions() as s:
            return TableService(s, self.name, actor).delete(eq)


class LocalBucket(Bucket):
    def __init__(self, backend: "LocalBackend", name: str):
        super().__init__(name)
        self.backend = backend
        self.store = BucketStore(backend.storage_root, name)

    def upload(self, path: str, data: bytes, *, content_type: str | None = None, upsert: bool = True) -> str:
        if self.backend.auth.session is None:
            raise BackendError("Sign in to upload files", code="not_authenticated")
        return self.store.upload(path, data, upsert=upsert)

    def get_public_url(self, path: str) -> str:
        return public_url(self.name, path, self.backend.public_base_url)

    def download(self, path: str) -> bytes:
        return self.store.download(path)

    def remove(self, paths: list[str]) -> int:
        if self.backend.auth.session is None:
            raise BackendError("Sign in to remove files", code="not_authenticated")
        return self.store.remove(paths)


class LocalBackend(Backend):
    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        storage_root: str | Path | None = None,
        public_base_url: str | None = None,
        require_confirmation: bool | None = None,
    ):
        self.sessions = session_factory or SessionLocal
        self.storage_root = Path(storage_root or settings.STORAGE_ROOT)
        self.public_base_url = public_base_url or settings.PUBLIC_BASE_URL
        self.auth = LocalAuth(self.sessions, require_confirmation=require_confirmation)

    def table(self, name: str) -> LocalTable:
        return LocalTable(self, name)

    def storage(self, bucket: str) -> LocalBucket:
        return LocalBucket(self, bucket)
