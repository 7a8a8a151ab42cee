# jobportal/backend/http.py
"""Backend client over the FastAPI service (see ``jobportal.api``)."""
import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from jobportal.backend.base import AuthClient, Backend, Bucket, SignUpResponse, Table
from jobportal.errors import BackendError, StorageError
from jobportal.schemas.auth import SignUpOut
from jobportal.schemas.records import AuthSession, Identity

logger = logging.getLogger(__name__)


class _Transport:
    def __init__(self, base_url: str, http=None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        # anything with a requests-style .request(); tests pass a TestClient
        self.http = http or requests.Session()
        self.timeout = timeout

    def call(self, method: str, path: str, token: str | None = None, error_cls=BackendError, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise error_cls(f"{method} {path} failed: {exc}", code="network") from exc

        if resp.status_code >= 400:
            code, message = "unknown", resp.text or f"HTTP {resp.status_code}"
            try:
                body = resp.json()
                detail = body.get("detail", body) if isinstance(body, dict) else body
                if isinstance(detail, dict):
                    code = detail.get("code", code)
                    message = detail.get("message", message)
                elif isinstance(detail, str):
                    message = detail
            except ValueError:
                pass
            logger.debug("%s %s -> %s %s", method, path, resp.status_code, code)
            raise error_cls(message, code=code)
        return resp


class HttpAuth(AuthClient):
    def __init__(self, transport: _Transport):
        super().__init__()
        self.t = transport

    def _sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> SignUpResponse:
        resp = self.t.call("POST", "/auth/v1/signup", json={"email": email, "password": password, "data": metadata})
        out = SignUpOut.model_validate(resp.json())
        return SignUpResponse(user=out.user, session=out.session)

    def _sign_in(self, email: str, password: str) -> AuthSession:
        # OAuth2 password form, as expected by the token endpoint
        resp = self.t.call("POST", "/auth/v1/token", data={"username": email, "password": password})
        return AuthSession.model_validate(resp.json())

    def _get_user(self, token: str) -> Identity:
        return Identity.model_validate(self.t.call("GET", "/auth/v1/user", token=token).json())

    def _refresh(self, token: str) -> AuthSession:
        return AuthSession.model_validate(self.t.call("POST", "/auth/v1/token/refresh", token=token).json())

    def _sign_out(self, token: str) -> None:
        self.t.call("POST", "/auth/v1/logout", token=token)


def _params(eq: dict[str, Any]) -> dict[str, str]:
    out = {}
    for k, v in eq.items():
        if isinstance(v, bool):
            v = "true" if v else "false"
        out[k] = "null" if v is None else str(v)
    return out


class HttpTable(Table):
    def __init__(self, backend: "HttpBackend", name: str):
        super().__init__(name)
        self.backend = backend

    def _call(self, method: str, suffix: str = "", **kwargs) -> Any:
        return self.backend.transport.call(
            method, f"/rest/v1/{self.name}{suffix}", token=self.backend.auth.access_token, **kwargs
        ).json()

    def select(self, *, order: str | None = None, limit: int | None = None, **eq: Any) -> list[dict]:
        params = _params(eq)
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        return self._call("GET", params=params)

    def count(self, **eq: Any) -> int:
        return int(self._call("GET", "/count", params=_params(eq))["count"])

    def insert(self, values: dict[str, Any]) -> dict:
        return self._call("POST", json=values)

    def update(self, values: dict[str, Any], **eq: Any) -> list[dict]:
        return self._call("PATCH", params=_params(eq), json=values)

    def delete(self, **eq: Any) -> int:
        return int(self._call("DELETE", params=_params(eq))["deleted"])


class HttpBucket(Bucket):
    def __init__(self, backend: "HttpBackend", name: str):
        super().__init__(name)
        self.backend = backend

    def _object_path(self, path: str) -> str:
        return f"/storage/v1/object/{self.name}/{quote(path.lstrip('/'))}"

    def upload(self, path: str, data: bytes, *, content_type: str | None = None, upsert: bool = True) -> str:
        filename = path.rsplit("/", 1)[-1]
        resp = self.backend.transport.call(
            "POST",
            self._object_path(path),
            token=self.backend.auth.access_token,
            error_cls=StorageError,
            headers={"x-upsert": "true" if upsert else "false"},
            files={"file": (filename, data, content_type or "application/octet-stream")},
        )
        return resp.json()["path"]

    def get_public_url(self, path: str) -> str:
        return f"{self.backend.transport.base_url}/storage/v1/object/public/{self.name}/{quote(path.lstrip('/'))}"

    def download(self, path: str) -> bytes:
        resp = self.backend.transport.call(
            "GET",
            f"/storage/v1/object/public/{self.name}/{quote(path.lstrip('/'))}",
            error_cls=StorageError,
        )
        return resp.content

    def remove(self, paths: list[str]) -> int:
        resp = self.backend.transport.call(
            "DELETE",
            f"/storage/v1/object/{self.name}",
            token=self.backend.auth.access_token,
            error_cls=StorageError,
            json={"prefixes": paths},
        )
        return int(resp.json()["removed"])


class HttpBackend(Backend):
    def __init__(self, base_url: str, http: Optional[Any] = None, timeout: float = 30.0):
        self.transport = _Transport(base_url, http=http, timeout=timeout)
        self.auth = HttpAuth(self.transport)

    def table(self, name: str) -> HttpTable:
        return HttpTable(self, name)

    def storage(self, bucket: str) -> HttpBucket:
        return HttpBucket(self, bucket)
