# jobportal/errors.py
from pydantic import ValidationError


class PortalError(Exception):
    """Base class for every error raised by this package."""


class FieldValidationError(PortalError):
    """Input rejected before any backend call."""

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "FieldValidationError":
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
            msg = err.get("msg", "invalid value")
            # pydantic prefixes custom validator messages
            msg = msg.removeprefix("Value error, ")
            parts.append(f"{loc}: {msg}" if loc else msg)
        return cls("; ".join(parts) or "Invalid input")


class BackendError(PortalError):
    """A failure reported by the auth/database/storage backend."""

    def __init__(self, message: str, code: str = "unknown"):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class StorageError(BackendError):
    """Bucket read/write failure."""


class ProfileResolutionError(PortalError):
    """The composite user view could not be assembled."""


class NotSignedInError(PortalError):
    """The operation needs a signed-in user with a profile."""


class WrongRoleError(PortalError):
    """The signed-in user's role does not own this kind of record."""
