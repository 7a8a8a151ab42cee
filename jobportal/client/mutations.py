# jobportal/client/mutations.py
"""Write helpers of the session controller.

Each successful write patches the in-memory view and the cache in place, so
no re-fetch is needed afterwards. Job writes are always filtered on the
caller's company id as well as the job id.
"""
import logging
import secrets
import time
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from pydantic import BaseModel, ValidationError

from jobportal.errors import (
    BackendError,
    FieldValidationError,
    NotSignedInError,
    StorageError,
    WrongRoleError,
)
from jobportal.client.results import CompanyStats, JobResult
from jobportal.schemas.forms import (
    CompanyUpdate,
    JobCreate,
    JobSeekerUpdate,
    JobUpdate,
    ProfileUpdate,
    VendorUpdate,
)
from jobportal.schemas.records import (
    Company,
    CompanyMembership,
    Job,
    JobSeeker,
    Profile,
    Vendor,
    VendorMembership,
)
from jobportal.schemas.view import CompanyView, JobSeekerView, UserView, VendorView

logger = logging.getLogger(__name__)

FileData = Union[bytes, bytearray, BinaryIO, Path]

AVATAR_BUCKET = "avatars"
RESUME_BUCKET = "resumes"
LOGO_BUCKET = "company-logos"


def validate_fields(model: type[BaseModel], fields: Any) -> BaseModel:
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(fields or {})
    except ValidationError as exc:
        raise FieldValidationError.from_pydantic(exc) from exc


def build_upload_path(folder: str, owner_id: str, filename: str) -> str:
    """``folder/owner/<ms timestamp>-<random>.<ext>``; unique per call."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"
    return "/".join(p.strip("/") for p in (folder, owner_id, name) if p)


def _read_bytes(data: FileData) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, Path):
        return data.read_bytes()
    return data.read()


class MutationsMixin:
    """Mixed into ``SessionController``; expects ``backend``, ``user`` and ``_commit_view``."""

    backend: Any
    user: Optional[UserView]

    def _require_view(self) -> UserView:
        if self.user is None:
            raise NotSignedInError("No user found")
        return self.user

    def _require(self, view_type: type) -> Any:
        view = self._require_view()
        if not isinstance(view, view_type):
            raise WrongRoleError(f"A {view.role} account cannot do this")
        return view

    def _company(self) -> Optional[Company]:
        view = self.user
        return view.company if isinstance(view, CompanyView) else None

    # ---------------------------
    # Profile records
    # ---------------------------

    def update_profile(self, fields: Any) -> Profile:
        view = self._require_view()
        changes = validate_fields(ProfileUpdate, fields).changes()
        if not changes:
            return view.profile
        rows = self.backend.table("profiles").update(changes, id=view.id)
        if not rows:
            raise BackendError("Profile not found", code="not_found")
        profile = Profile.model_validate(rows[0])
        self._commit_view(view.model_copy(update={"profile": profile}))
        return profile

    def update_company_profile(self, fields: Any) -> Company:
        """Update the caller's company, creating and joining it on first use."""
        view = self._require(CompanyView)
        changes = validate_fields(CompanyUpdate, fields).changes()
        position = changes.pop("position", None) or "Owner"

        if view.company is None:
            if not changes.get("name"):
                raise FieldValidationError("Company name is required")
            org, member = self._attach(
                "companies", "company_users", "company_id", view.id, changes,
                {"position": position, "is_admin": True},
            )
            company, membership = Company.model_validate(org), CompanyMembership.model_validate(member)
        else:
            if not changes:
                return view.company
            rows = self.backend.table("companies").update(changes, id=view.company.id)
            if not rows:
                raise BackendError("Company not found", code="not_found")
            company, membership = Company.model_validate(rows[0]), view.membership

        self._commit_view(view.model_copy(update={"company": company, "membership": membership}))
        return company

    def update_vendor_profile(self, fields: Any) -> Vendor:
        """Update the caller's vendor, creating and joining it on first use."""
        view = self._require(VendorView)
        changes = validate_fields(VendorUpdate, fields).changes()
        position = changes.pop("position", None) or "Owner"

        if view.vendor is None:
            if not changes.get("name"):
                raise FieldValidationError("Vendor name is required")
            org, member = self._attach(
                "vendors", "vendor_users", "vendor_id", view.id, changes, {"position": position},
            )
            vendor, membership = Vendor.model_validate(org), VendorMembership.model_validate(member)
        else:
            if not changes:
                return view.vendor
            rows = self.backend.table("vendors").update(changes, id=view.vendor.id)
            if not rows:
                raise BackendError("Vendor not found", code="not_found")
            vendor, membership = Vendor.model_validate(rows[0]), view.membership

        self._commit_view(view.model_copy(update={"vendor": vendor, "membership": membership}))
        return vendor

    def update_job_seeker_profile(self, fields: Any) -> JobSeeker:
        view = self._require(JobSeekerView)
        changes = validate_fields(JobSeekerUpdate, fields).changes()
        seekers = self.backend.table("job_seekers")
        rows = seekers.update(changes, id=view.id) if changes else []
        if rows:
            row = rows[0]
        elif changes:
            row = seekers.insert({"id": view.id, **changes})
        else:
            return view.job_seeker
        seeker = JobSeeker.model_validate(row)
        self._commit_view(view.model_copy(update={"job_seeker": seeker}))
        return seeker

    def _attach(self, org_table: str, member_table: str, fk: str, profile_id: str,
                values: dict[str, Any], member_values: dict[str, Any]) -> tuple[dict, dict]:
        """Find-or-create the organisation by name and make ``profile_id`` a member.

        An organisation created here is deleted again if the membership write
        fails, so no orphan is left behind.
        """
        orgs = self.backend.table(org_table)
        members = self.backend.table(member_table)

        created = False
        org = orgs.maybe_single(name=values["name"])
        if org is None:
            try:
                org = orgs.insert(values)
                created = True
            except BackendError as exc:
                if exc.code != "conflict":
                    raise
                # somebody created the same name in between
                org = orgs.single(name=values["name"])
        else:
            logger.info("%s %r already exists, attaching %s", org_table, values["name"], profile_id)

        try:
            member = members.maybe_single(profile_id=profile_id, **{fk: org["id"]})
            if member is None:
                member = members.insert({"profile_id": profile_id, fk: org["id"], **member_values})
            else:
                upgrade = {k: v for k, v in member_values.items() if k != "position" and member.get(k) != v}
                if upgrade:
                    member = members.update(upgrade, id=member["id"])[0]
        except BackendError:
            if created:
                logger.warning("membership failed, removing new %s row %s", org_table, org["id"])
                try:
                    orgs.delete(id=org["id"])
                except BackendError:
                    logger.exception("could not remove orphaned %s row %s", org_table, org["id"])
            raise
        return org, member

    # ---------------------------
    # Jobs
    # ---------------------------

    def create_job(self, fields: Any) -> JobResult:
        company = self._company()
        if company is None:
            return JobResult.failure("no_company", "Company profile not found. Complete your company profile first.")
        try:
            job_in = validate_fields(JobCreate, fields)
        except FieldValidationError as exc:
            return JobResult.failure("invalid", str(exc))

        values = job_in.model_dump(mode="json")
        values.update(company_id=company.id, is_active=True, applications_count=0)
        try:
            row = self.backend.table("jobs").insert(values)
        except BackendError as exc:
            logger.warning("job insert failed: %s", exc.message)
            return JobResult.failure("backend", exc.message)
        return JobResult(success=True, job=Job.model_validate(row), message="Job posted successfully!")

    def update_job(self, job_id: str, fields: Any) -> JobResult:
        company = self._company()
        if company is None:
            return JobResult.failure("no_company", "Company profile not found.")
        try:
            changes = validate_fields(JobUpdate, fields).changes()
        except FieldValidationError as exc:
            return JobResult.failure("invalid", str(exc))

        jobs = self.backend.table("jobs")
        try:
            if changes:
                rows = jobs.update(changes, id=job_id, company_id=company.id)
            else:
                rows = jobs.select(id=job_id, company_id=company.id)
        except BackendError as exc:
            logger.warning("job update failed: %s", exc.message)
            return JobResult.failure("backend", exc.message)
        if not rows:
            return JobResult.failure("not_found", "Job not found")
        return JobResult(success=True, job=Job.model_validate(rows[0]), message="Job updated")

    def delete_job(self, job_id: str) -> int:
        """Number of rows removed; 0 when the job belongs to another company."""
        company = self._company()
        if company is None:
            return 0
        deleted = self.backend.table("jobs").delete(id=job_id, company_id=company.id)
        if not deleted:
            logger.info("delete_job(%s) matched nothing for company %s", job_id, company.id)
        return deleted

    def get_company_jobs(self, active_only: bool = False, limit: int | None = None) -> list[Job]:
        company = self._company()
        if company is None:
            return []
        eq: dict[str, Any] = {"company_id": company.id}
        if active_only:
            eq["is_active"] = True
        rows = self.backend.table("jobs").select(order="-created_at", limit=limit, **eq)
        return [Job.model_validate(r) for r in rows]

    def get_company_stats(self) -> CompanyStats:
        company = self._company()
        if company is None:
            return CompanyStats()
        jobs = self.backend.table("jobs")
        rows = jobs.select(company_id=company.id)
        return CompanyStats(
            active_jobs=jobs.count(company_id=company.id, is_active=True),
            total_jobs=len(rows),
            total_applications=sum(r.get("applications_count") or 0 for r in rows),
        )

    def list_vendors(self, service_type: str | None = None) -> list[Vendor]:
        eq: dict[str, Any] = {"is_active": True}
        if service_type:
            eq["service_type"] = service_type
        rows = self.backend.table("vendors").select(order="-created_at", **eq)
        return [Vendor.model_validate(r) for r in rows]

    # ---------------------------
    # Files
    # ---------------------------

    def upload_file(self, data: FileData, bucket: str, path: str, content_type: str | None = None) -> str:
        """Store ``data`` at ``bucket/path``, overwriting, and return its public URL.

        Storage failures raise ``StorageError``; bad input raises
        ``FieldValidationError``.
        """
        if not path or not path.strip("/"):
            raise FieldValidationError("Upload path is required")
        payload = _read_bytes(data)
        if not payload:
            raise FieldValidationError("File is empty")

        store = self.backend.storage(bucket)
        try:
            stored = store.upload(path, payload, content_type=content_type, upsert=True)
        except StorageError:
            raise
        except BackendError as exc:
            raise StorageError(exc.message, code=exc.code) from exc
        return store.get_public_url(stored)

    def delete_file(self, bucket: str, path: str) -> bool:
        try:
            return self.backend.storage(bucket).remove([path]) > 0
        except BackendError as exc:
            logger.error("could not delete %s/%s: %s", bucket, path, exc.message)
            return False

    def upload_avatar(self, data: FileData, filename: str, content_type: str | None = None) -> Profile:
        view = self._require_view()
        url = self.upload_file(data, AVATAR_BUCKET, build_upload_path("", view.id, filename), content_type)
        return self.update_profile({"avatar_url": url})

    def upload_resume(self, data: FileData, filename: str, content_type: str | None = None) -> Profile:
        view = self._require(JobSeekerView)
        url = self.upload_file(data, RESUME_BUCKET, build_upload_path("", view.id, filename), content_type)
        return self.update_profile({"resume_url": url})

    def upload_company_logo(self, data: FileData, filename: str, content_type: str | None = None) -> Company:
        view = self._require(CompanyView)
        if view.company is None:
            raise FieldValidationError("Create the company profile before uploading a logo")
        url = self.upload_file(data, LOGO_BUCKET, build_upload_path("logos", view.company.id, filename), content_type)
        return self.update_company_profile({"logo_url": url})
