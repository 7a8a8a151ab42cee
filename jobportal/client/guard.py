# jobportal/client/guard.py
"""Role-based page access.

Each protected view runs one pass of: initializing -> checking ->
authorized | redirecting. A redirect ends the pass; navigating again starts a
new one with ``reset()``.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
UNAUTHORIZED_PATH = "/unauthorized"

# Older rows and links use "employer" and "job-seeker". Profile rows are
# canonicalized when read (schemas.records.canonical_role); required-role lists
# and raw role strings are matched through this table.
ROLE_EQUIVALENTS: dict[str, frozenset[str]] = {
    "company": frozenset({"company", "employer"}),
    "employer": frozenset({"company", "employer"}),
    "vendor": frozenset({"vendor"}),
    "job_seeker": frozenset({"job_seeker", "job-seeker"}),
    "job-seeker": frozenset({"job_seeker", "job-seeker"}),
}


class GuardState(str, Enum):
    INITIALIZING = "initializing"
    CHECKING = "checking"
    AUTHORIZED = "authorized"
    REDIRECTING = "redirecting"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.state is GuardState.AUTHORIZED


def _role_name(role) -> str:
    return getattr(role, "value", role)


def role_allowed(role, required_roles: Iterable[str]) -> bool:
    """True when ``role`` falls in the equivalence class of any required role."""
    required = [_role_name(r) for r in required_roles]
    if not required:
        return True
    role = _role_name(role)
    return any(role in ROLE_EQUIVALENTS.get(r, frozenset({r})) for r in required)


class AccessGuard:
    def __init__(self, required_roles: Iterable[str] = ()):
        self.required_roles = tuple(_role_name(r) for r in required_roles)
        self.reset()

    def reset(self) -> None:
        self.state = GuardState.INITIALIZING
        self.redirect_to: Optional[str] = None

    @property
    def decision(self) -> GuardDecision:
        return GuardDecision(self.state, self.redirect_to)

    def evaluate(self, ready: bool, role=None, has_profile: bool | None = None) -> GuardDecision:
        """Advance the pass given the controller's ready flag and the profile role.

        ``role`` is the raw role string of the current profile, None when
        nobody is signed in.
        """
        if self.state is GuardState.REDIRECTING:
            return self.decision
        if not ready:
            self.state = GuardState.INITIALIZING
            return self.decision

        self.state = GuardState.CHECKING
        if has_profile is None:
            has_profile = role is not None
        if not has_profile:
            logger.info("no profile, redirecting to %s", LOGIN_PATH)
            return self._redirect(LOGIN_PATH)

        if not role_allowed(role, self.required_roles):
            logger.info("role %r not in %s, redirecting", _role_name(role), self.required_roles)
            return self._redirect(UNAUTHORIZED_PATH)

        self.state = GuardState.AUTHORIZED
        return self.decision

    def check(self, controller) -> GuardDecision:
        """Evaluate against a live ``SessionController``."""
        profile = controller.profile
        ready = controller.ready and not controller.loading
        return self.evaluate(ready, profile.role if profile else None, profile is not None)

    def _redirect(self, target: str) -> GuardDecision:
        self.state = GuardState.REDIRECTING
        self.redirect_to = target
        return self.decision
