# jobportal/client/cache.py
"""Client-local cache of the last composite user view.

Two plain string keys hold the serialized view and the time it was last
checked against the backend. Entries older than the freshness window are
still readable (``fresh=False``) so callers can serve them while revalidating.
"""
import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from jobportal.core.config import settings
from jobportal.schemas.records import AuthSession
from jobportal.schemas.view import UserView, user_view_adapter

logger = logging.getLogger(__name__)

USER_VIEW_KEY = "jobportal.user_view"
CHECKED_AT_KEY = "jobportal.user_view_checked_at"
AUTH_SESSION_KEY = "jobportal.auth_session"


class MemoryStore:
    """Key-value store that lives as long as the process."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Key-value store persisted as one JSON object on disk."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.CACHE_FILE)

    def _load(self) -> dict[str, str]:
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("cache file %s unreadable, starting empty", self.path)
            return {}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


@dataclass
class CachedView:
    view: UserView
    checked_at: float
    age: float
    fresh: bool


class ViewCache:
    def __init__(self, store=None, ttl_seconds: float | None = None, clock: Callable[[], float] = time.time):
        self.store = store if store is not None else MemoryStore()
        self.ttl = settings.PROFILE_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.clock = clock

    def read(self, identity_id: str | None = None) -> Optional[CachedView]:
        """The cached view, or None if absent, corrupt, or owned by another identity."""
        blob, stamp = self.store.get(USER_VIEW_KEY), self.store.get(CHECKED_AT_KEY)
        if not blob or not stamp:
            return None
        try:
            view = user_view_adapter.validate_json(blob)
            checked_at = float(stamp)
        except (ValidationError, ValueError):
            logger.warning("dropping unreadable cached user view")
            self.clear()
            return None
        if identity_id is not None and view.profile.id != identity_id:
            return None
        age = max(0.0, self.clock() - checked_at)
        return CachedView(view=view, checked_at=checked_at, age=age, fresh=age < self.ttl)

    def write(self, view: UserView) -> None:
        # last writer wins
        self.store.set(USER_VIEW_KEY, user_view_adapter.dump_json(view).decode("utf-8"))
        self.store.set(CHECKED_AT_KEY, repr(self.clock()))

    def clear(self) -> None:
        self.store.delete(USER_VIEW_KEY)
        self.store.delete(CHECKED_AT_KEY)

    # the auth token is kept next to the view so a restart can resume the session

    def save_session(self, session: AuthSession) -> None:
        self.store.set(AUTH_SESSION_KEY, session.model_dump_json())

    def load_session(self) -> Optional[AuthSession]:
        blob = self.store.get(AUTH_SESSION_KEY)
        if not blob:
            return None
        try:
            return AuthSession.model_validate_json(blob)
        except ValidationError:
            self.store.delete(AUTH_SESSION_KEY)
            return None

    def clear_session(self) -> None:
        self.store.delete(AUTH_SESSION_KEY)
