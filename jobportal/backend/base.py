# jobportal/backend/base.py
"""Client-side view of the hosted backend: auth, table CRUD and object storage.

The session layer only ever talks to these interfaces. ``LocalBackend`` runs
the backend in-process; ``HttpBackend`` reaches the FastAPI service.
"""
import abc
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from jobportal.errors import BackendError
from jobportal.schemas.records import AuthSession, Identity

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


AuthListener = Callable[[AuthEvent, Optional[AuthSession]], None]


class Subscription:
    def __init__(self, listeners: list, callback: AuthListener):
        self._listeners = listeners
        self.callback = callback

    def unsubscribe(self) -> None:
        if self.callback in self._listeners:
            self._listeners.remove(self.callback)


@dataclass
class SignUpResponse:
    user: Identity
    # None when the email still has to be confirmed
    session: Optional[AuthSession] = None


class AuthClient(abc.ABC):
    """Holds the current session and fans out session-change events."""

    def __init__(self):
        self._session: Optional[AuthSession] = None
        self._listeners: list[AuthListener] = []

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, session)
            except Exception:
                # one broken listener must not stop the others
                logger.exception("auth listener failed on %s", event.value)

    # ---- public API ----

    def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> SignUpResponse:
        resp = self._sign_up(email, password, metadata or {})
        if resp.session is not None:
            self._session = resp.session
            self._emit(AuthEvent.SIGNED_IN, resp.session)
        return resp

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        session = self._sign_in(email, password)
        self._session = session
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def get_user(self) -> Optional[Identity]:
        """The identity behind the current token, or None when signed out or expired."""
        if self._session is None:
            return None
        try:
            return self._get_user(self._session.access_token)
        except BackendError as exc:
            if exc.code != "not_authenticated":
                raise
            logger.info("stored session is no longer valid, dropping it")
            self._session = None
            return None

    def refresh_session(self) -> AuthSession:
        if self._session is None:
            raise BackendError("No active session", code="not_authenticated")
        session = self._refresh(self._session.access_token)
        self._session = session
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def sign_out(self) -> None:
        token, self._session = self.access_token, None
        try:
            if token:
                self._sign_out(token)
        finally:
            self._emit(AuthEvent.SIGNED_OUT, None)

    def restore_session(self, session: AuthSession) -> None:
        """Adopt a session persisted elsewhere, without emitting an event."""
        self._session = session

    # ---- transport ----

    @abc.abstractmethod
    def _sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> SignUpResponse: ...

    @abc.abstractmethod
    def _sign_in(self, email: str, password: str) -> AuthSession: ...

    @abc.abstractmethod
    def _get_user(self, token: str) -> Identity: ...

    @abc.abstractmethod
    def _refresh(self, token: str) -> AuthSession: ...

    @abc.abstractmethod
    def _sign_out(self, token: str) -> None: ...


class Table(abc.ABC):
    """Equality-filtered CRUD on one named collection. Rows are plain dicts."""

    def __init__(self, name: str):
        self.name = name

    @abc.abstractmethod
    def select(self, *, order: str | None = None, limit: int | None = None, **eq: Any) -> list[dict]:
        """``order`` is a column name, prefixed with ``-`` for descending."""

    @abc.abstractmethod
    def insert(self, values: dict[str, Any]) -> dict: ...

    @abc.abstractmethod
    def update(self, values: dict[str, Any], **eq: Any) -> list[dict]:
        """Return the updated rows; an empty list when nothing matched."""

    @abc.abstractmethod
    def delete(self, **eq: Any) -> int:
        """Return the number of deleted rows."""

    @abc.abstractmethod
    def count(self, **eq: Any) -> int: ...

    def maybe_single(self, **eq: Any) -> Optional[dict]:
        rows = self.select(limit=2, **eq)
        if len(rows) > 1:
            raise BackendError(f"More than one row in {self.name} matches {eq}", code="multiple_rows")
        return rows[0] if rows else None

    def single(self, **eq: Any) -> dict:
        row = self.maybe_single(**eq)
        if row is None:
            raise BackendError(f"No row in {self.name} matches {eq}", code="not_found")
        return row


class Bucket(abc.ABC):
    def __init__(self, name: str):
        self.name = name

    @abc.abstractmethod
    def upload(self, path: str, data: bytes, *, content_type: str | None = None, upsert: bool = True) -> str:
        """Store ``data`` at ``path`` and return the stored path."""

    @abc.abstractmethod
    def get_public_url(self, path: str) -> str: ...

    @abc.abstractmethod
    def download(self, path: str) -> bytes: ...

    @abc.abstractmethod
    def remove(self, paths: list[str]) -> int: ...


class Backend(abc.ABC):
    auth: AuthClient

    @abc.abstractmethod
    def table(self, name: str) -> Table: ...

    @abc.abstractmethod
    def storage(self, bucket: str) -> Bucket: ...
