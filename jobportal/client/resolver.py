# jobportal/client/resolver.py
"""Assemble the composite user view for an authenticated identity."""
import logging
from typing import Any, Optional

from pydantic import ValidationError

from jobportal.backend.base import Backend
from jobportal.client.cache import CachedView, ViewCache
from jobportal.errors import BackendError, ProfileResolutionError
from jobportal.schemas.records import (
    Company,
    CompanyMembership,
    Identity,
    JobSeeker,
    Profile,
    Role,
    Vendor,
    VendorMembership,
    canonical_role,
)
from jobportal.schemas.view import CompanyView, JobSeekerView, UserView, VendorView

logger = logging.getLogger(__name__)


def default_full_name(identity: Identity) -> str:
    return (identity.user_metadata.get("full_name") or "").strip() or identity.email.split("@")[0]


def default_role(identity: Identity) -> Role:
    raw = identity.user_metadata.get("role")
    try:
        return Role(canonical_role(raw)) if raw else Role.JOB_SEEKER
    except ValueError:
        logger.warning("identity %s has unknown role %r, using job_seeker", identity.id, raw)
        return Role.JOB_SEEKER


class ProfileResolver:
    def __init__(self, backend: Backend, cache: ViewCache):
        self.backend = backend
        self.cache = cache

    def resolve(self, identity: Identity, force: bool = False) -> UserView:
        """Return the view for ``identity``, from cache while it is fresh.

        Nothing is cached unless the whole view was assembled.
        """
        if not force:
            hit = self.cache.read(identity.id)
            if hit is not None and hit.fresh:
                logger.debug("cache hit for %s (age %.1fs)", identity.id, hit.age)
                return hit.view

        try:
            view = self._assemble(identity)
        except (BackendError, ValidationError) as exc:
            raise ProfileResolutionError(f"Could not load profile for {identity.email}: {exc}") from exc

        self.cache.write(view)
        return view

    def peek(self, identity: Identity) -> Optional[CachedView]:
        """The cached entry for ``identity`` regardless of age."""
        return self.cache.read(identity.id)

    # ---------------------------
    # Provisioning
    # ---------------------------

    def provision_profile(self, identity: Identity, **overrides: Any) -> Profile:
        """Fetch the profile row, creating it if this identity has none yet."""
        profiles = self.backend.table("profiles")
        row = profiles.maybe_single(id=identity.id)
        if row is not None:
            return Profile.model_validate(row)

        values = {
            "id": identity.id,
            "email": identity.email,
            "full_name": overrides.get("full_name") or default_full_name(identity),
            "role": Role(overrides.get("role") or default_role(identity)).value,
            "phone": overrides.get("phone") or identity.user_metadata.get("phone") or None,
        }
        logger.info("provisioning %s profile for %s", values["role"], identity.id)
        try:
            row = profiles.insert(values)
        except BackendError as exc:
            if exc.code != "conflict":
                raise
            # created concurrently; the id is the primary key so there is only one
            row = profiles.single(id=identity.id)
        return Profile.model_validate(row)

    def ensure_job_seeker(self, profile_id: str) -> JobSeeker:
        seekers = self.backend.table("job_seekers")
        row = seekers.maybe_single(id=profile_id)
        if row is None:
            try:
                row = seekers.insert({"id": profile_id, "skills": [], "experience_years": 0, "is_active": True})
            except BackendError as exc:
                if exc.code != "conflict":
                    raise
                row = seekers.single(id=profile_id)
        return JobSeeker.model_validate(row)

    # ---------------------------
    # Assembly
    # ---------------------------

    def _assemble(self, identity: Identity) -> UserView:
        profile = self.provision_profile(identity)

        if profile.role is Role.JOB_SEEKER:
            return JobSeekerView(profile=profile, job_seeker=self.ensure_job_seeker(profile.id))

        if profile.role is Role.COMPANY:
            company, membership = self._organisation(profile.id, "companies", "company_users", "company_id")
            return CompanyView(
                profile=profile,
                company=Company.model_validate(company) if company else None,
                membership=CompanyMembership.model_validate(membership) if membership else None,
            )

        vendor, membership = self._organisation(profile.id, "vendors", "vendor_users", "vendor_id")
        return VendorView(
            profile=profile,
            vendor=Vendor.model_validate(vendor) if vendor else None,
            membership=VendorMembership.model_validate(membership) if membership else None,
        )

    def _organisation(self, profile_id: str, org_table: str, member_table: str, fk: str):
        """(org row, membership row), or (None, None) when the profile has no membership."""
        order = "-is_admin" if member_table == "company_users" else None
        members = self.backend.table(member_table).select(order=order, limit=1, profile_id=profile_id)
        if not members:
            return None, None
        org = self.backend.table(org_table).maybe_single(id=members[0][fk])
        if org is None:
            logger.warning("%s %s points at missing %s", member_table, members[0]["id"], org_table)
            return None, None
        return org, members[0]
