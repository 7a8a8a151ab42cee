# jobportal/client/session.py
"""The session/auth controller: one instance per running application.

It owns the current composite view, the ``loading``/``ready`` flags and the
subscription to backend session events. Pages receive the controller
explicitly instead of reaching for a global.

Start-up is two explicit steps. ``initialize()`` serves a fresh cache entry
right away (or blocks on the backend when there is none) and flags
``needs_revalidation``; ``revalidate()`` then replaces the cached view with
the backend's current one.
"""
import logging
from typing import Any, Optional

from jobportal.backend.base import AuthEvent, Backend, Subscription
from jobportal.backend.http import HttpBackend
from jobportal.backend.local import LocalBackend
from jobportal.client.cache import JsonFileStore, ViewCache
from jobportal.client.mutations import MutationsMixin, validate_fields
from jobportal.client.resolver import ProfileResolver
from jobportal.client.results import SignInError, SignInResult, SignUpResult
from jobportal.errors import BackendError, PortalError, ProfileResolutionError
from jobportal.schemas.forms import SignUpData
from jobportal.schemas.records import AuthSession, Identity, Profile, Role
from jobportal.schemas.view import UserView

logger = logging.getLogger(__name__)

CONFIRM_EMAIL_MESSAGE = "Please check your email to confirm your account."


class SessionController(MutationsMixin):
    def __init__(self, backend: Backend, cache: ViewCache | None = None):
        self.backend = backend
        self.cache = cache or ViewCache()
        self.resolver = ProfileResolver(backend, self.cache)

        self.user: Optional[UserView] = None
        self.loading = False
        self.ready = False
        self.needs_revalidation = False

        self._subscription: Optional[Subscription] = None
        # set while this controller drives auth itself, so its own events are ignored
        self._own_auth = False

    # ---------------------------
    # State
    # ---------------------------

    @property
    def profile(self) -> Optional[Profile]:
        return self.user.profile if self.user else None

    def _commit_view(self, view: UserView) -> None:
        self.user = view
        self.cache.write(view)

    def _reset(self) -> None:
        self.user = None
        self.needs_revalidation = False
        self.cache.clear()
        self.cache.clear_session()

    # ---------------------------
    # Lifecycle
    # ---------------------------

    def start(self) -> "SessionController":
        if self._subscription is None:
            self._subscription = self.backend.auth.on_auth_state_change(self._on_auth_event)
        self.initialize()
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def __enter__(self) -> "SessionController":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def initialize(self) -> Optional[UserView]:
        self.loading = True
        try:
            if self.backend.auth.session is None:
                stored = self.cache.load_session()
                if stored is not None:
                    self.backend.auth.restore_session(stored)

            hit = self.cache.read()
            if hit is not None and hit.fresh:
                logger.info("serving cached view for %s (age %.0fs)", hit.view.id, hit.age)
                self.user = hit.view
                self.needs_revalidation = True
                return self.user

            identity = self.backend.auth.get_user()
            if identity is None:
                logger.info("no authenticated user")
                self._reset()
            else:
                self.user = self.resolver.resolve(identity, force=True)
        except PortalError:
            logger.exception("auth initialization failed")
            self.user = None
        finally:
            self.loading = False
            self.ready = True
        return self.user

    def revalidate(self) -> Optional[UserView]:
        """Replace the view served from cache with a fresh one from the backend."""
        if not self.needs_revalidation:
            return self.user
        self.needs_revalidation = False
        try:
            identity = self.backend.auth.get_user()
            if identity is None:
                logger.info("cached session is gone, signing out locally")
                self._reset()
                return None
            self.user = self.resolver.resolve(identity, force=True)
        except PortalError:
            logger.warning("revalidation failed, keeping cached view", exc_info=True)
        return self.user

    def _on_auth_event(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        if self._own_auth:
            return
        if event is AuthEvent.SIGNED_IN and session is not None:
            if self.user is not None and self.user.id == session.user.id:
                return
            self.cache.save_session(session)
            try:
                self.user = self.resolver.resolve(session.user)
            except PortalError:
                logger.exception("could not load profile after sign-in")
                self.user = None
        elif event is AuthEvent.SIGNED_OUT:
            self._reset()
        elif event is AuthEvent.TOKEN_REFRESHED and session is not None:
            self.cache.save_session(session)

    # ---------------------------
    # Auth
    # ---------------------------

    def sign_in(self, email: str, password: str) -> SignInResult:
        self.loading, self._own_auth = True, True
        authenticated = False
        try:
            try:
                session = self.backend.auth.sign_in_with_password(email, password)
            except BackendError as exc:
                if exc.code in ("invalid_credentials", "email_not_confirmed"):
                    return SignInResult(error=SignInError.INVALID_CREDENTIALS, message=exc.message)
                return SignInResult(error=SignInError.UNKNOWN, message=exc.message)
            authenticated = True

            if self.user is not None and self.user.id != session.user.id:
                # the previous view must never be paired with another identity's session
                self.user = None
                self.needs_revalidation = False
                self.cache.clear()
            self.cache.save_session(session)
            try:
                view = self.resolver.resolve(session.user)
            except ProfileResolutionError as exc:
                logger.warning("signed in as %s but the profile failed to load, signing out", session.user.id)
                self._end_session()
                return SignInResult(error=SignInError.PROFILE_NOT_FOUND, message=str(exc) or "Profile not found.")
            self.user = view
            return SignInResult(view=view)
        except Exception as exc:
            logger.exception("sign in failed")
            if authenticated:
                self._end_session()
            return SignInResult(error=SignInError.UNKNOWN, message=str(exc) or "Sign in failed")
        finally:
            self.loading, self._own_auth = False, False

    def sign_up(self, email: str, password: str, signup_data: Any) -> SignUpResult:
        """Create the identity and, when it is usable right away, its records.

        Raises ``FieldValidationError`` for bad input and ``BackendError``
        when the backend refuses.
        """
        data = validate_fields(SignUpData, signup_data)
        self.loading, self._own_auth = True, True
        try:
            resp = self.backend.auth.sign_up(email, password, data.metadata())
            if resp.session is None:
                return SignUpResult(pending_confirmation=True, message=CONFIRM_EMAIL_MESSAGE)

            self.cache.save_session(resp.session)
            self._create_role_records(resp.user, data)
            self.user = self.resolver.resolve(resp.user, force=True)
            return SignUpResult(view=self.user, message="Account created")
        finally:
            self.loading, self._own_auth = False, False

    def _create_role_records(self, identity: Identity, data: SignUpData) -> None:
        profile = self.resolver.provision_profile(
            identity, full_name=data.full_name, role=data.role, phone=data.phone
        )
        if data.role is Role.JOB_SEEKER:
            self.resolver.ensure_job_seeker(profile.id)
        elif data.role is Role.COMPANY and (data.company_name or "").strip():
            self._attach(
                "companies", "company_users", "company_id", profile.id,
                {"name": data.company_name.strip()}, {"position": "Owner", "is_admin": True},
            )
        elif data.role is Role.VENDOR and ((data.company_name or "").strip() or data.service_type):
            name = (data.company_name or "").strip() or data.full_name
            self._attach(
                "vendors", "vendor_users", "vendor_id", profile.id,
                {"name": name, "service_type": data.service_type}, {"position": "Owner"},
            )

    def _end_session(self) -> None:
        """Drop the remote session, then the local view and stored token."""
        try:
            self.backend.auth.sign_out()
        except Exception:
            logger.warning("remote sign out failed, clearing local session anyway", exc_info=True)
        finally:
            self._reset()

    def sign_out(self) -> None:
        self._own_auth = True
        try:
            self._end_session()
        finally:
            self._own_auth = False

    def refresh_profile(self) -> Optional[UserView]:
        """Re-fetch the view, bypassing the cache. Failures keep the current view."""
        try:
            identity = self.backend.auth.get_user()
            if identity is None or self.user is None:
                return self.user
            self.cache.clear()
            self.user = self.resolver.resolve(identity, force=True)
        except PortalError:
            logger.exception("error refreshing profile")
        return self.user


def create_controller(base_url: str | None = None, cache_file: str | None = None) -> SessionController:
    """Wire a controller for this process: HTTP backend when ``base_url`` is given, else in-process."""
    if base_url:
        backend: Backend = HttpBackend(base_url)
    else:
        backend = LocalBackend()
    return SessionController(backend, ViewCache(JsonFileStore(cache_file)))
