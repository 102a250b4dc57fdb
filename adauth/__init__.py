"""Directory-backed authentication and stateless session tokens."""

from .errors import (
    AuthError,
    BindError,
    DirectoryConnectionError,
    MarshallingError,
    ModifyError,
    NotFoundError,
    Result,
    SearchError,
    TokenVerificationError,
    ValidationError,
)
from .ad import ADAuthenticator, DirectoryConfig, DirectoryConnection, MemberInfo
from .session import SessionTokenService

__all__ = [
    "ADAuthenticator",
    "AuthError",
    "BindError",
    "DirectoryConfig",
    "DirectoryConnection",
    "DirectoryConnectionError",
    "MarshallingError",
    "MemberInfo",
    "ModifyError",
    "NotFoundError",
    "Result",
    "SearchError",
    "SessionTokenService",
    "TokenVerificationError",
    "ValidationError",
]
