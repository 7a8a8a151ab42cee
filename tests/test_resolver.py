from unittest.mock import patch

import pytest

from jobportal.client.resolver import ProfileResolver
from jobportal.errors import BackendError, ProfileResolutionError
from jobportal.schemas.records import Role
from jobportal.schemas.view import CompanyView, JobSeekerView, VendorView


def _identity(backend, email="ana@acme.io", **metadata):
    return backend.auth.sign_up(email, "secret123", metadata).user


def _profile_fetches(table_mock) -> int:
    return sum(1 for c in table_mock.call_args_list if c.args[0] == "profiles")


def test_missing_profile_is_provisioned_as_job_seeker(backend, cache) -> None:
    identity = _identity(backend, "dana.lee@acme.io")
    view = ProfileResolver(backend, cache).resolve(identity)

    assert isinstance(view, JobSeekerView)
    assert view.profile.role is Role.JOB_SEEKER
    assert view.profile.full_name == "dana.lee"
    assert view.job_seeker.skills == []
    assert view.job_seeker.experience_years == 0
    assert view.job_seeker.is_active is True


def test_provisioning_uses_identity_metadata(backend, cache) -> None:
    identity = _identity(backend, full_name="Vic Vendor", role="vendor", phone="555-0101")
    view = ProfileResolver(backend, cache).resolve(identity)

    assert isinstance(view, VendorView)
    assert view.profile.full_name == "Vic Vendor"
    assert view.profile.phone == "555-0101"


def test_unknown_metadata_role_falls_back_to_job_seeker(backend, cache) -> None:
    identity = _identity(backend, role="astronaut")
    view = ProfileResolver(backend, cache).resolve(identity)
    assert view.profile.role is Role.JOB_SEEKER


def test_legacy_metadata_role_is_provisioned_under_canonical_name(backend, cache) -> None:
    identity = _identity(backend, role="employer")
    view = ProfileResolver(backend, cache).resolve(identity)

    assert isinstance(view, CompanyView)
    assert backend.table("profiles").single(id=identity.id)["role"] == "company"


def test_repeated_resolution_never_duplicates_profile(backend, cache) -> None:
    identity = _identity(backend)
    resolver = ProfileResolver(backend, cache)
    for _ in range(3):
        resolver.resolve(identity, force=True)

    assert backend.table("profiles").count(id=identity.id) == 1
    assert backend.table("job_seekers").count(id=identity.id) == 1


def test_conflicting_insert_falls_back_to_existing_row(backend, cache) -> None:
    identity = _identity(backend)
    resolver = ProfileResolver(backend, cache)
    first = resolver.provision_profile(identity)
    row = backend.table("profiles").single(id=identity.id)

    # another client created the row between our read and our insert
    with patch.object(type(backend.table("profiles")), "maybe_single", side_effect=[None, row]):
        again = resolver.provision_profile(identity)

    assert again.id == first.id
    assert backend.table("profiles").count(id=identity.id) == 1


def test_company_role_without_membership_leaves_company_unset(backend, cache) -> None:
    identity = _identity(backend, role="company")
    view = ProfileResolver(backend, cache).resolve(identity)

    assert isinstance(view, CompanyView)
    assert view.company is None
    assert view.membership is None
    assert backend.table("companies").count() == 0


def test_company_membership_is_resolved(backend, cache) -> None:
    identity = _identity(backend, role="company")
    resolver = ProfileResolver(backend, cache)
    resolver.provision_profile(identity)
    company = backend.table("companies").insert({"name": "Acme"})
    backend.table("company_users").insert(
        {"profile_id": identity.id, "company_id": company["id"], "position": "CTO", "is_admin": True}
    )

    view = resolver.resolve(identity)
    assert view.company.name == "Acme"
    assert view.membership.position == "CTO"


def test_fresh_cache_serves_without_backend_calls(backend, cache, clock) -> None:
    identity = _identity(backend)
    resolver = ProfileResolver(backend, cache)

    with patch.object(backend, "table", wraps=backend.table) as table:
        first = resolver.resolve(identity)
        clock.advance(120)
        second = resolver.resolve(identity)
        assert _profile_fetches(table) == 1
        assert second.model_dump() == first.model_dump()

        clock.advance(200)
        resolver.resolve(identity)
        assert _profile_fetches(table) == 2


def test_peek_returns_stale_entries(backend, cache, clock) -> None:
    identity = _identity(backend)
    resolver = ProfileResolver(backend, cache)
    resolver.resolve(identity)
    clock.advance(600)

    stale = resolver.peek(identity)
    assert stale is not None
    assert stale.fresh is False
    assert stale.view.id == identity.id


def test_failed_resolution_is_not_cached(backend, cache) -> None:
    identity = _identity(backend)
    resolver = ProfileResolver(backend, cache)

    with patch.object(resolver, "ensure_job_seeker", side_effect=BackendError("db down", code="network")):
        with pytest.raises(ProfileResolutionError):
            resolver.resolve(identity)

    assert cache.read() is None
