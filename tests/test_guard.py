import pytest

from jobportal.client.guard import (
    LOGIN_PATH,
    UNAUTHORIZED_PATH,
    AccessGuard,
    GuardState,
    role_allowed,
)
from tests.conftest import sign_up


def test_waits_until_controller_is_ready() -> None:
    guard = AccessGuard(["company"])
    decision = guard.evaluate(ready=False, role="company")
    assert decision.state is GuardState.INITIALIZING
    assert decision.redirect_to is None


def test_no_profile_redirects_to_login() -> None:
    decision = AccessGuard().evaluate(ready=True, role=None)
    assert decision.state is GuardState.REDIRECTING
    assert decision.redirect_to == LOGIN_PATH


@pytest.mark.parametrize(
    "required, role, allowed",
    [
        (["company"], "employer", True),
        (["employer"], "company", True),
        (["job_seeker"], "job-seeker", True),
        (["vendor"], "job_seeker", False),
        (["company", "vendor"], "vendor", True),
        ([], "vendor", True),
    ],
)
def test_role_equivalence(required, role, allowed) -> None:
    assert role_allowed(role, required) is allowed


def test_wrong_role_redirects_to_unauthorized() -> None:
    guard = AccessGuard(["vendor"])
    decision = guard.evaluate(ready=True, role="job_seeker")
    assert decision.state is GuardState.REDIRECTING
    assert decision.redirect_to == UNAUTHORIZED_PATH
    assert not decision.allowed


def test_redirect_is_terminal_until_reset() -> None:
    guard = AccessGuard(["company"])
    guard.evaluate(ready=True, role=None)
    assert guard.evaluate(ready=True, role="company").state is GuardState.REDIRECTING

    guard.reset()
    assert guard.evaluate(ready=True, role="company").allowed


def test_check_against_live_controller(controller) -> None:
    guard = AccessGuard(["company"])
    assert guard.check(controller).redirect_to == LOGIN_PATH

    sign_up(controller, "acme@acme.io", role="company", company_name="Acme")
    guard.reset()
    assert guard.check(controller).state is GuardState.AUTHORIZED

    seeker_guard = AccessGuard(["job_seeker"])
    assert seeker_guard.check(controller).redirect_to == UNAUTHORIZED_PATH
