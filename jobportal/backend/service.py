# jobportal/backend/service.py
"""Server side of the backend: identities and sessions, generic tables, buckets.

Every method works on a caller-provided SQLAlchemy Session and commits its own
unit of work, so it can run inside a FastAPI request or an in-process client.
"""
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.auth.jwt import create_access_token, decode_access_token, get_password_hash, verify_password
from jobportal.core.config import settings
from jobportal.errors import BackendError, StorageError
from jobportal.models._mixins import utcnow
from jobportal.models.company import CompanyUser
from jobportal.models.identity import AuthSession, Identity
from jobportal.models.registry import TABLES
from jobportal.models.vendor import VendorUser
from jobportal.schemas.records import AuthSession as AuthSessionOut
from jobportal.schemas.records import Identity as IdentityOut

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


# ---------------------------
# Auth
# ---------------------------

class AuthService:
    def __init__(self, db: Session, require_confirmation: bool | None = None):
        self.db = db
        if require_confirmation is None:
            require_confirmation = settings.REQUIRE_EMAIL_CONFIRMATION
        self.require_confirmation = require_confirmation

    def _issue(self, identity: Identity) -> AuthSessionOut:
        row = AuthSession(identity_id=identity.id)
        self.db.add(row)
        self.db.commit()
        token = create_access_token(subject=identity.id, session_id=row.id)
        return AuthSessionOut(access_token=token, user=IdentityOut.model_validate(identity))

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> tuple[IdentityOut, AuthSessionOut | None]:
        email = email.strip().lower()
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise BackendError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters", code="weak_password"
            )
        existing = self.db.execute(select(Identity).where(Identity.email == email)).scalars().first()
        if existing:
            raise BackendError("User already registered", code="conflict")

        identity = Identity(
            email=email,
            hashed_password=get_password_hash(password),
            user_metadata={k: v for k, v in metadata.items() if v is not None},
            email_confirmed_at=None if self.require_confirmation else utcnow(),
        )
        self.db.add(identity)
        self.db.commit()
        logger.info("registered identity %s", identity.id)

        if self.require_confirmation:
            return IdentityOut.model_validate(identity), None
        session = self._issue(identity)
        return session.user, session

    def sign_in(self, email: str, password: str) -> AuthSessionOut:
        email = email.strip().lower()
        identity = self.db.execute(select(Identity).where(Identity.email == email)).scalars().first()
        if not identity or not verify_password(password, identity.hashed_password):
            raise BackendError("Invalid login credentials", code="invalid_credentials")
        if identity.email_confirmed_at is None:
            raise BackendError("Email not confirmed", code="email_not_confirmed")
        return self._issue(identity)

    def _session_row(self, token: str) -> AuthSession:
        identity_id, session_id = decode_access_token(token)
        row = self.db.get(AuthSession, session_id)
        if row is None or row.identity_id != identity_id:
            raise BackendError("Session expired or signed out", code="not_authenticated")
        return row

    def user_for_token(self, token: str) -> IdentityOut:
        row = self._session_row(token)
        return IdentityOut.model_validate(row.identity)

    def refresh(self, token: str) -> AuthSessionOut:
        row = self._session_row(token)
        new_token = create_access_token(subject=row.identity_id, session_id=row.id)
        return AuthSessionOut(access_token=new_token, user=IdentityOut.model_validate(row.identity))

    def sign_out(self, token: str) -> None:
        try:
            row = self._session_row(token)
        except BackendError:
            # already gone; signing out twice is fine
            return
        self.db.delete(row)
        self.db.commit()

    def confirm_email(self, identity_id: str) -> IdentityOut:
        identity = self.db.get(Identity, identity_id)
        if identity is None:
            raise BackendError("User not found", code="not_found")
        identity.email_confirmed_at = utcnow()
        self.db.commit()
        return IdentityOut.model_validate(identity)


# ---------------------------
# Tables
# ---------------------------

def _coerce(column, value: Any) -> Any:
    """Turn transport values (query strings, JSON) into column-typed python values."""
    if value is None:
        return None
    ctype = column.type
    if isinstance(ctype, DateTime) and isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(ctype, Date) and isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(ctype, Boolean) and isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    if isinstance(ctype, Integer) and isinstance(value, str):
        return int(value)
    if isinstance(ctype, Float) and isinstance(value, str):
        return float(value)
    return value


class RowPolicy:
    """Which rows a signed-in identity may write through the table API.

    Profiles and job-seeker rows belong to the identity with the same id.
    Jobs, company rows and company memberships belong to the members of the
    company; vendors work the same way through ``vendor_users``. Anyone may
    create a company or vendor, and may delete one that has no members left
    (the clean-up after a failed membership insert).
    """

    def __init__(self, db: Session, actor_id: str):
        self.db = db
        self.actor_id = actor_id

    def _is_member(self, member_model, fk: str, org_id: Any, admin_only: bool = False) -> bool:
        stmt = select(func.count()).select_from(member_model).where(
            member_model.profile_id == self.actor_id, getattr(member_model, fk) == org_id
        )
        if admin_only:
            stmt = stmt.where(member_model.is_admin.is_(True))
        return bool(self.db.execute(stmt).scalar_one())

    def _has_members(self, member_model, fk: str, org_id: Any) -> bool:
        stmt = select(func.count()).select_from(member_model).where(getattr(member_model, fk) == org_id)
        return bool(self.db.execute(stmt).scalar_one())

    def _organisation(self, member_model, fk: str, op: str, row: dict) -> bool:
        if op == "insert":
            return True
        if self._is_member(member_model, fk, row.get("id")):
            return True
        return op == "delete" and not self._has_members(member_model, fk, row.get("id"))

    def allows(self, table: str, op: str, row: dict) -> bool:
        if table in ("profiles", "job_seekers"):
            return row.get("id") == self.actor_id
        if table == "company_users":
            # joining a company by name inserts the caller's own membership
            return row.get("profile_id") == self.actor_id or self._is_member(
                CompanyUser, "company_id", row.get("company_id"), admin_only=True
            )
        if table == "vendor_users":
            return row.get("profile_id") == self.actor_id or self._is_member(
                VendorUser, "vendor_id", row.get("vendor_id")
            )
        if table == "companies":
            return self._organisation(CompanyUser, "company_id", op, row)
        if table == "vendors":
            return self._organisation(VendorUser, "vendor_id", op, row)
        if table == "jobs":
            return self._is_member(CompanyUser, "company_id", row.get("company_id"))
        return False

    def check(self, table: str, op: str, rows: list[dict]) -> None:
        for row in rows:
            if not self.allows(table, op, row):
                logger.warning("%s refused: %s on %s row %s", self.actor_id, op, table, row.get("id"))
                raise BackendError(f"Not allowed to {op} this {table} row", code="forbidden")


class TableService:
    """Generic CRUD on one registered table.

    With ``actor_id`` every write is checked against ``RowPolicy``; without it
    (server-internal callers) writes are unrestricted.
    """

    def __init__(self, db: Session, name: str, actor_id: str | None = None):
        model = TABLES.get(name)
        if model is None:
            raise BackendError(f"Unknown table {name!r}", code="unknown_table")
        self.db = db
        self.name = name
        self.model = model
        self.columns = {c.name: c for c in model.__table__.columns}
        self.policy = RowPolicy(db, actor_id) if actor_id else None

    def _column(self, name: str):
        col = self.columns.get(name)
        if col is None:
            raise BackendError(f"Column {name!r} does not exist on {self.name}", code="invalid_column")
        return col

    def _values(self, values: dict[str, Any]) -> dict[str, Any]:
        try:
            return {k: _coerce(self._column(k), v) for k, v in values.items()}
        except ValueError as exc:
            raise BackendError(f"Invalid value for {self.name}: {exc}", code="invalid_value") from exc

    def _where(self, eq: dict[str, Any]) -> list:
        clauses = []
        for k, v in self._values(eq).items():
            attr = getattr(self.model, k)
            clauses.append(attr.is_(None) if v is None else attr == v)
        return clauses

    def to_dict(self, obj) -> dict:
        return {name: getattr(obj, name) for name in self.columns}

    def select(self, eq: dict[str, Any], order: str | None = None, limit: int | None = None) -> list[dict]:
        stmt = select(self.model).where(*self._where(eq))
        if order:
            desc = order.startswith("-")
            col = getattr(self.model, self._column(order.lstrip("-")).name)
            stmt = stmt.order_by(col.desc() if desc else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self.to_dict(r) for r in self.db.execute(stmt).scalars().all()]

    def count(self, eq: dict[str, Any]) -> int:
        stmt = select(func.count()).select_from(self.model).where(*self._where(eq))
        return int(self.db.execute(stmt).scalar_one())

    def insert(self, values: dict[str, Any]) -> dict:
        values = self._values(values)
        if self.policy:
            self.policy.check(self.name, "insert", [values])
        obj = self.model(**values)
        self.db.add(obj)
        self._commit()
        return self.to_dict(obj)

    def update(self, values: dict[str, Any], eq: dict[str, Any]) -> list[dict]:
        changes = self._values(values)
        changes.pop("id", None)
        rows = self.db.execute(select(self.model).where(*self._where(eq))).scalars().all()
        if self.policy:
            # the row as it is and as it would be: no moving rows into another owner's scope
            self.policy.check(self.name, "update", [self.to_dict(r) for r in rows])
            self.policy.check(self.name, "update", [{**self.to_dict(r), **changes} for r in rows])
        for obj in rows:
            for k, v in changes.items():
                setattr(obj, k, v)
        self._commit()
        return [self.to_dict(r) for r in rows]

    def delete(self, eq: dict[str, Any]) -> int:
        where = self._where(eq)
        if not where:
            raise BackendError(f"Refusing to delete every row of {self.name}", code="invalid_filter")
        if self.policy:
            rows = self.db.execute(select(self.model).where(*where)).scalars().all()
            self.policy.check(self.name, "delete", [self.to_dict(r) for r in rows])
        res = self.db.execute(delete(self.model).where(*where))
        self._commit()
        return int(res.rowcount or 0)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise BackendError(f"{self.name}: {exc.orig}", code="conflict") from exc


# ---------------------------
# Storage
# ---------------------------

_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9_\-]{1,62}$")


def public_url(bucket: str, path: str, base_url: str | None = None) -> str:
    base = (base_url or settings.PUBLIC_BASE_URL).rstrip("/")
    return f"{base}/storage/v1/object/public/{bucket}/{path.lstrip('/')}"


class BucketStore:
    """One directory per bucket under ``root``; objects are plain files."""

    def __init__(self, root: str | Path, bucket: str):
        if not _BUCKET_RE.match(bucket or ""):
            raise StorageError(f"Invalid bucket name {bucket!r}", code="invalid_bucket")
        self.bucket = bucket
        self.root = Path(root) / bucket

    def _file(self, path: str) -> Path:
        parts = [p for p in (path or "").replace("\\", "/").split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise StorageError(f"Invalid object path {path!r}", code="invalid_path")
        return self.root.joinpath(*parts)

    def upload(self, path: str, data: bytes, upsert: bool = True) -> str:
        target = self._file(path)
        if target.exists() and not upsert:
            raise StorageError("The resource already exists", code="conflict")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Upload failed: {exc}", code="storage_io") from exc
        logger.info("stored %s/%s (%d bytes)", self.bucket, path, len(data))
        return "/".join(target.relative_to(self.root).parts)

    def download(self, path: str) -> bytes:
        target = self._file(path)
        if not target.is_file():
            raise StorageError("Object not found", code="not_found")
        return target.read_bytes()

    def remove(self, paths: list[str]) -> int:
        removed = 0
        for p in paths:
            target = self._file(p)
            if target.is_file():
                target.unlink()
                removed += 1
        return removed
