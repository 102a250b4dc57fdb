"""Error kinds and the uniform operation result.

Directory operations that are reachable from request handlers never let an
exception escape: they return :class:`Result`. Lower layers raise the
exceptions below and the authenticator converts them at its boundary.
"""

from __future__ import annotations

from dataclasses import dataclass


class AuthError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(AuthError):
    """Malformed or missing input. Raised before any network I/O."""


class DirectoryConnectionError(AuthError):
    """Transport failure: connect, StartTLS or a broken socket."""


class BindError(AuthError):
    """The directory rejected the bind credentials."""


class SearchError(AuthError):
    pass


class ModifyError(AuthError):
    pass


class NotFoundError(AuthError):
    """No directory entry matched the lookup."""


class MarshallingError(AuthError):
    """A directory record could not be converted to MemberInfo."""


class TokenVerificationError(AuthError):
    """Session token rejected. The message never says why."""

    def __init__(self) -> None:
        super().__init__("invalid session token")


@dataclass(frozen=True)
class Result:
    error: bool
    message: str = ""

    @classmethod
    def ok(cls, message: str = "") -> "Result":
        return cls(error=False, message=message)

    @classmethod
    def fail(cls, message: str) -> "Result":
        return cls(error=True, message=message)

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}
