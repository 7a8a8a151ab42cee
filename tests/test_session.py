import json
from unittest.mock import patch

import pytest

from jobportal.backend.base import AuthEvent
from jobportal.backend.http import HttpBackend
from jobportal.backend.local import LocalBackend
from jobportal.client.cache import USER_VIEW_KEY, MemoryStore, ViewCache
from jobportal.client.guard import AccessGuard
from jobportal.client.results import SignInError
from jobportal.client.session import SessionController, create_controller
from jobportal.errors import BackendError, FieldValidationError, ProfileResolutionError
from jobportal.schemas.records import Role
from jobportal.schemas.view import CompanyView, JobSeekerView, VendorView
from tests.conftest import sign_up


def test_start_without_session_is_ready_and_empty(controller) -> None:
    assert controller.ready is True
    assert controller.loading is False
    assert controller.user is None
    assert controller.profile is None


def test_sign_up_job_seeker_creates_profile_and_record(controller, backend) -> None:
    result = sign_up(controller, "ana@acme.io", full_name="Ana Ruiz", phone="555-0100")

    assert result.pending_confirmation is False
    assert isinstance(result.view, JobSeekerView)
    assert controller.profile.full_name == "Ana Ruiz"
    assert controller.profile.phone == "555-0100"
    assert backend.table("job_seekers").count(id=controller.user.id) == 1


def test_sign_up_company_installs_caller_as_admin(controller, backend) -> None:
    result = sign_up(controller, "owner@acme.io", role="company", company_name="  Acme  ")

    assert isinstance(result.view, CompanyView)
    assert result.view.company.name == "Acme"
    assert result.view.membership.is_admin is True
    assert backend.table("company_users").count(company_id=result.view.company.id) == 1


def test_sign_up_vendor_creates_vendor(controller) -> None:
    result = sign_up(controller, "vic@vend.io", role="vendor", company_name="Vend Co", service_type="Recruiting")

    assert isinstance(result.view, VendorView)
    assert result.view.vendor.name == "Vend Co"
    assert result.view.vendor.service_type == "Recruiting"


def test_sign_up_pending_confirmation_returns_no_view(session_factory, storage_root, cache) -> None:
    backend = LocalBackend(session_factory, storage_root=storage_root, require_confirmation=True)
    ctl = SessionController(backend, cache).start()

    result = sign_up(ctl, "ana@acme.io")

    assert result.pending_confirmation is True
    assert result.view is None
    assert ctl.user is None
    assert "confirm" in result.message


def test_sign_up_validation_happens_before_backend(controller) -> None:
    with patch.object(controller.backend.auth, "sign_up") as remote:
        with pytest.raises(FieldValidationError) as exc:
            controller.sign_up("ana@acme.io", "secret123", {"full_name": "  ", "role": "job_seeker"})
    remote.assert_not_called()
    assert "Full name is required" in str(exc.value)


def test_sign_up_rejects_legacy_role_names(controller) -> None:
    with pytest.raises(FieldValidationError):
        controller.sign_up("ana@acme.io", "secret123", {"full_name": "Ana", "role": "employer"})


def test_sign_in_returns_view(controller) -> None:
    sign_up(controller, "ana@acme.io")
    controller.sign_out()

    result = controller.sign_in("ana@acme.io", "secret123")

    assert result.ok
    assert result.view.email == "ana@acme.io"
    assert controller.user.id == result.view.id


def test_sign_in_bad_password_is_tagged_not_raised(controller) -> None:
    sign_up(controller, "ana@acme.io")
    controller.sign_out()

    result = controller.sign_in("ana@acme.io", "nope-nope")

    assert result.error is SignInError.INVALID_CREDENTIALS
    assert result.view is None
    assert controller.user is None
    assert controller.loading is False


def test_sign_in_profile_failure_is_tagged(controller) -> None:
    sign_up(controller, "ana@acme.io")
    controller.sign_out()

    with patch.object(controller.resolver, "resolve", side_effect=ProfileResolutionError("no profile")):
        result = controller.sign_in("ana@acme.io", "secret123")

    assert result.error is SignInError.PROFILE_NOT_FOUND


def test_sign_in_unexpected_backend_error_is_unknown(controller) -> None:
    with patch.object(
        controller.backend.auth, "sign_in_with_password", side_effect=BackendError("boom", code="network")
    ):
        result = controller.sign_in("ana@acme.io", "secret123")
    assert result.error is SignInError.UNKNOWN
    assert result.message == "boom"


def test_sign_out_clears_state_and_cache(controller, cache) -> None:
    sign_up(controller, "ana@acme.io")
    assert cache.read() is not None

    controller.sign_out()

    assert controller.user is None
    assert cache.read() is None
    assert cache.load_session() is None
    assert controller.backend.auth.session is None


def test_sign_out_never_raises(controller) -> None:
    sign_up(controller, "ana@acme.io")
    with patch.object(controller.backend.auth, "_sign_out", side_effect=BackendError("offline", code="network")):
        controller.sign_out()
    assert controller.user is None


def test_fresh_cache_is_served_then_revalidated(backend, cache, clock) -> None:
    first = SessionController(backend, cache).start()
    sign_up(first, "ana@acme.io", full_name="Ana")
    first.close()

    # the profile changes behind the cached view's back
    backend.table("profiles").update({"full_name": "Ana Maria"}, id=first.user.id)

    second = SessionController(backend, cache)
    with patch.object(second.resolver, "resolve", wraps=second.resolver.resolve) as resolve:
        second.start()
        assert second.ready is True
        assert second.needs_revalidation is True
        assert second.profile.full_name == "Ana"
        resolve.assert_not_called()

        second.revalidate()
    assert second.needs_revalidation is False
    assert second.profile.full_name == "Ana Maria"


def test_expired_cache_blocks_on_backend(backend, cache, clock) -> None:
    first = SessionController(backend, cache).start()
    sign_up(first, "ana@acme.io")
    first.close()
    clock.advance(301)

    second = SessionController(backend, cache).start()
    assert second.needs_revalidation is False
    assert second.user.email == "ana@acme.io"


def test_revalidate_drops_view_when_session_is_gone(backend, cache) -> None:
    first = SessionController(backend, cache).start()
    sign_up(first, "ana@acme.io")
    first.close()
    # token revoked server-side
    backend.auth._sign_out(backend.auth.access_token)

    second = SessionController(backend, cache).start()
    assert second.user is not None
    assert second.revalidate() is None
    assert second.user is None
    assert cache.read() is None


def test_session_restored_from_store_after_restart(session_factory, storage_root, clock) -> None:
    store = MemoryStore()
    first = SessionController(LocalBackend(session_factory, storage_root=storage_root), ViewCache(store, clock=clock))
    sign_up(first.start(), "ana@acme.io")
    first.close()
    clock.advance(3600)

    # new process: fresh backend client, same local store
    second = SessionController(LocalBackend(session_factory, storage_root=storage_root), ViewCache(store, clock=clock))
    assert second.user is not None
    assert second.user.email == "ana@acme.io"


def test_external_sign_in_event_resolves_view(controller, backend) -> None:
    backend.auth.sign_up("ana@acme.io", "secret123", {"full_name": "Ana", "role": "company"})

    assert isinstance(controller.user, CompanyView)
    assert controller.profile.full_name == "Ana"


def test_external_sign_out_event_clears_view(controller, backend) -> None:
    sign_up(controller, "ana@acme.io")
    backend.auth.sign_out()
    assert controller.user is None


def test_token_refresh_event_keeps_view(controller, backend) -> None:
    sign_up(controller, "ana@acme.io")
    view = controller.user
    with patch.object(controller.resolver, "resolve") as resolve:
        backend.auth.refresh_session()
    resolve.assert_not_called()
    assert controller.user is view


def test_closed_controller_ignores_events(backend, cache) -> None:
    with SessionController(backend, cache) as ctl:
        pass
    backend.auth.sign_up("ana@acme.io", "secret123", {})
    assert ctl.user is None


def test_refresh_profile_bypasses_cache(controller, backend) -> None:
    sign_up(controller, "ana@acme.io", full_name="Ana")
    backend.table("profiles").update({"bio": "Backend engineer"}, id=controller.user.id)

    controller.refresh_profile()
    assert controller.profile.bio == "Backend engineer"


def test_refresh_profile_failure_keeps_current_view(controller) -> None:
    sign_up(controller, "ana@acme.io")
    view = controller.user
    with patch.object(controller.resolver, "resolve", side_effect=ProfileResolutionError("down")):
        assert controller.refresh_profile() is view


def test_initialize_handles_listener_subscription_once(backend, cache) -> None:
    ctl = SessionController(backend, cache)
    ctl.start()
    ctl.start()
    assert len(backend.auth._listeners) == 1
    ctl.close()
    assert backend.auth._listeners == []


def test_events_are_plain_enum_values() -> None:
    assert AuthEvent("SIGNED_IN") is AuthEvent.SIGNED_IN


def test_failed_sign_in_as_another_user_drops_previous_view(controller, backend, cache) -> None:
    sign_up(controller, "bob@acme.io")
    controller.sign_out()
    sign_up(controller, "ana@acme.io")

    with patch.object(controller.resolver, "resolve", side_effect=ProfileResolutionError("profile missing")):
        result = controller.sign_in("bob@acme.io", "secret123")

    assert result.error is SignInError.PROFILE_NOT_FOUND
    assert controller.user is None
    assert backend.auth.session is None
    assert cache.read() is None
    assert cache.load_session() is None


def test_stored_employer_role_signs_in_as_company(controller, backend) -> None:
    created = sign_up(controller, "owner@acme.io", role="company", company_name="Acme")
    backend.table("profiles").update({"role": "employer"}, id=created.view.id)
    controller.sign_out()

    result = controller.sign_in("owner@acme.io", "secret123")

    assert result.ok, result.message
    assert isinstance(result.view, CompanyView)
    assert result.view.profile.role is Role.COMPANY
    assert result.view.company.name == "Acme"
    assert AccessGuard(["company"]).check(controller).allowed


def test_local_table_writes_are_owner_scoped(controller, backend) -> None:
    ana = sign_up(controller, "ana@acme.io").view
    controller.sign_out()
    sign_up(controller, "bob@acme.io")

    with pytest.raises(BackendError) as exc:
        backend.table("profiles").update({"full_name": "Mallory"}, id=ana.id)
    assert exc.value.code == "forbidden"
    assert backend.table("profiles").single(id=ana.id)["full_name"] == "Ana"


def test_create_controller_persists_view_to_cache_file(monkeypatch, session_factory, tmp_path) -> None:
    monkeypatch.setattr("jobportal.backend.local.SessionLocal", session_factory)
    cache_file = tmp_path / "cache.json"

    first = create_controller(cache_file=str(cache_file)).start()
    assert isinstance(first.backend, LocalBackend)
    sign_up(first, "file@acme.io", full_name="Fay")
    first.close()
    assert USER_VIEW_KEY in json.loads(cache_file.read_text(encoding="utf-8"))

    second = create_controller(cache_file=str(cache_file)).start()
    assert second.profile.full_name == "Fay"
    assert second.backend.auth.session.user.email == "file@acme.io"
    second.close()

    assert isinstance(create_controller(base_url="http://portal.test").backend, HttpBackend)
