"""Stateless signed session tokens.

A token is an itsdangerous URL-safe timed payload signed with HMAC-SHA256.
Nothing is stored server side: validity is the signature plus the embedded
issuer, audience and expiry claims. A token stays valid until ``exp`` even if
the account is disabled in the meantime. Callers that need revocation pass an
``is_revoked`` hook backed by their own denylist, keyed by the ``jti`` claim.

create_session() does not authenticate anybody. Call it only after
ADAuthenticator.validate_user() succeeded for the same username.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from itsdangerous import BadData, URLSafeTimedSerializer

from .errors import TokenVerificationError, ValidationError

log = logging.getLogger(__name__)

SESSION_SALT = "adauth-session"
MIN_SECRET_BYTES = 32
DEFAULT_LIFETIME = timedelta(hours=2)


@dataclass(frozen=True)
class SessionClaims:
    username: str
    issuer: str
    audience: str
    issued_at: datetime
    expires_at: datetime
    token_id: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionTokenService:
    def __init__(
        self,
        secret: Union[str, bytes],
        issuer: str,
        audience: str,
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Optional[Callable[[], datetime]] = None,
        is_revoked: Optional[Callable[[str], bool]] = None,
    ) -> None:
        key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret or b"")
        if len(key) < MIN_SECRET_BYTES:
            raise ValidationError(f"session signing secret must be at least {MIN_SECRET_BYTES} bytes")
        if not issuer or not audience:
            raise ValidationError("session issuer and audience are required")
        if lifetime <= timedelta(0):
            raise ValidationError("session lifetime must be positive")

        self.issuer = issuer
        self.audience = audience
        self.lifetime = lifetime
        self._clock = clock or _utcnow
        self._is_revoked = is_revoked
        self._serializer = URLSafeTimedSerializer(
            key,
            salt=SESSION_SALT,
            signer_kwargs={"digest_method": hashlib.sha256},
        )

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def create_session(self, username: str) -> str:
        username = (username or "").strip()
        if not username:
            raise ValidationError("username is required")

        now = self._now()
        data = {
            "username": username,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + self.lifetime).timestamp()),
            "jti": secrets.token_hex(16),
        }
        return self._serializer.dumps(data)

    def decode_claims(self, token: str) -> SessionClaims:
        """Verify ``token`` and return its claims.

        Raises TokenVerificationError for every kind of failure. The reason
        only goes to the debug log.
        """
        if not token or not isinstance(token, str):
            raise TokenVerificationError()

        try:
            data = self._serializer.loads(token, max_age=int(self.lifetime.total_seconds()))
        except BadData as e:
            log.debug("Session token rejected: %s", type(e).__name__)
            raise TokenVerificationError() from None

        reason = self._check(data)
        if reason:
            log.debug("Session token rejected: %s", reason)
            raise TokenVerificationError()

        return SessionClaims(
            username=data["username"],
            issuer=data["iss"],
            audience=data["aud"],
            issued_at=datetime.fromtimestamp(data["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
            token_id=data["jti"],
        )

    def _check(self, data) -> str:
        if not isinstance(data, dict):
            return "payload is not an object"
        username = data.get("username")
        if not isinstance(username, str) or not username:
            return "missing username"
        if data.get("iss") != self.issuer:
            return "issuer mismatch"
        if data.get("aud") != self.audience:
            return "audience mismatch"
        iat, exp = data.get("iat"), data.get("exp")
        if not isinstance(iat, int) or not isinstance(exp, int) or isinstance(exp, bool):
            return "malformed timestamps"
        if int(self._now().timestamp()) >= exp:
            return "expired"
        jti = data.get("jti")
        if not isinstance(jti, str) or not jti:
            return "missing token id"
        if self._is_revoked is not None and self._is_revoked(jti):
            return "revoked"
        return ""

    def verify_session(self, token: Optional[str]) -> Optional[str]:
        """Username for a valid token, None otherwise."""
        try:
            return self.decode_claims(token or "").username
        except TokenVerificationError:
            return None
