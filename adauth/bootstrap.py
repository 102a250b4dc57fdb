"""Builds the auth core from settings.

The core itself never reads configuration; this module is the one place
that turns Settings into constructed objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from .ad import ADAuthenticator
from .ad.connection import TransportFactory
from .session import SessionTokenService
from .settings import Settings, ad_config_from_settings, get_settings


@dataclass
class AuthCore:
    directory: ADAuthenticator
    sessions: SessionTokenService
    cookie_name: str = "adauth_session"
    cookie_secure: bool = True


def build_core(s: Settings, transport_factory: Optional[TransportFactory] = None) -> AuthCore:
    directory = ADAuthenticator(ad_config_from_settings(s), transport_factory=transport_factory)
    sessions = SessionTokenService(
        s.secret_key,
        issuer=s.session_issuer,
        audience=s.session_audience,
        lifetime=timedelta(seconds=s.session_max_age_seconds),
    )
    return AuthCore(
        directory=directory,
        sessions=sessions,
        cookie_name=s.session_cookie,
        cookie_secure=s.cookie_secure,
    )


@lru_cache(maxsize=1)
def get_core() -> AuthCore:
    return build_core(get_settings())
