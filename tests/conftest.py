"""
tests/conftest.py -- shared fixtures: a stub directory, a config pointing at
it and an authenticator wired to the stub transport (see tests/fakes.py).
"""

from __future__ import annotations

import pytest

from adauth.ad import ADAuthenticator, DirectoryConfig

from .fakes import ALICE_DN, BOB_DN, DOMAIN, SERVICE_PASSWORD, SERVICE_USER, FakeDirectory


@pytest.fixture
def directory() -> FakeDirectory:
    d = FakeDirectory()
    d.add_user(
        "alice",
        "correct-pw",
        ALICE_DN,
        cn=["Alice Liddell"],
        description=["Research"],
        memberOf=["CN=Staff,OU=Groups,DC=corp,DC=example,DC=com", "CN=VPN,OU=Groups,DC=corp,DC=example,DC=com"],
        pwdLastSet=["133000000000000000"],
    )
    d.add_user("bob", "oldCorrect", BOB_DN, cn=["Bob Builder"])
    return d


@pytest.fixture
def ad_config() -> DirectoryConfig:
    return DirectoryConfig(
        host="dc01",
        domain=DOMAIN,
        bind_username=SERVICE_USER,
        bind_password=SERVICE_PASSWORD,
    )


@pytest.fixture
def authenticator(ad_config: DirectoryConfig, directory: FakeDirectory) -> ADAuthenticator:
    return ADAuthenticator(ad_config, transport_factory=directory.factory)
