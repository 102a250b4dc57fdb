"""
tests/test_settings.py -- environment configuration and core assembly.
"""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from pydantic import ValidationError as SettingsValidationError

from adauth.bootstrap import build_core
from adauth import log_config
from adauth.ad_utils import login_lookup, principal_name
from adauth.log_config import normalize_level, setup_logging
from adauth.settings import Settings, ad_config_from_settings, get_settings

from .fakes import FakeDirectory

ENV = {
    "APP_SECRET_KEY": "s" * 48,
    "AD_HOST": "dc01",
    "AD_DOMAIN": "corp.example.com",
    "AD_BIND_USERNAME": "svc_auth",
    "AD_BIND_PASSWORD": "svc-secret",
}


@pytest.fixture
def env(monkeypatch):
    for k, v in ENV.items():
        monkeypatch.setenv(k, v)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def test_defaults(env):
    s = get_settings()
    assert s.ad_port == 636
    assert s.ad_use_ssl is True
    assert s.ad_tls_validate is True
    assert s.session_max_age_seconds == 7200

    cfg = ad_config_from_settings(s)
    assert cfg.server_host == "dc01.corp.example.com"
    assert cfg.search_base == "DC=corp,DC=example,DC=com"
    assert cfg.bind_principal == "svc_auth@corp.example.com"
    assert cfg.user_principal("alice") == "alice@corp.example.com"
    assert cfg.user_principal("CORP\\alice") == "CORP\\alice"


def test_overrides(env):
    env.setenv("AD_PORT", "389")
    env.setenv("AD_USE_SSL", "false")
    env.setenv("AD_STARTTLS", "true")
    env.setenv("AD_TLS_VALIDATE", "false")
    env.setenv("AD_BASE_DN", "OU=People,DC=corp,DC=example,DC=com")
    env.setenv("AD_RECEIVE_TIMEOUT", "2.5")
    cfg = ad_config_from_settings(Settings())
    assert cfg.port == 389
    assert cfg.starttls is True
    assert cfg.tls_enabled is True
    assert cfg.tls_validate is False
    assert cfg.search_base == "OU=People,DC=corp,DC=example,DC=com"
    assert cfg.receive_timeout == 2.5


def test_secret_key_is_required(env):
    env.delenv("APP_SECRET_KEY")
    with pytest.raises(SettingsValidationError):
        Settings(_env_file=None)


def test_build_core(env):
    env.setenv("SESSION_MAX_AGE_SECONDS", "600")
    directory = FakeDirectory()
    core = build_core(get_settings(), transport_factory=directory.factory)
    assert core.sessions.lifetime == timedelta(minutes=10)
    assert core.cookie_name == "adauth_session"
    assert core.directory.check_service_bind().error is False


def test_insecure_tls_policy_is_logged(env, caplog):
    env.setenv("AD_TLS_VALIDATE", "false")
    with caplog.at_level(logging.WARNING, logger="adauth"):
        build_core(get_settings(), transport_factory=FakeDirectory().factory)
    assert any("validation is DISABLED" in r.getMessage() for r in caplog.records)


def test_server_is_built_with_timeout(env):
    env.setenv("AD_CONNECT_TIMEOUT", "3")
    core = build_core(get_settings())
    assert core.directory.server.host == "dc01.corp.example.com"
    assert core.directory.server.ssl is True
    assert core.directory.server.connect_timeout == 3.0


def test_log_level_normalization():
    assert normalize_level("debug") == logging.DEBUG
    assert normalize_level("loud") == logging.INFO
    assert normalize_level(None) == logging.INFO


def test_setup_logging_replaces_its_handlers():
    setup_logging("INFO")
    setup_logging("DEBUG")
    ours = [h for h in logging.getLogger().handlers if h in log_config._handlers]
    assert len(ours) == 1
    assert ours[0].level == logging.DEBUG
    assert logging.getLogger("ldap3").level == logging.WARNING


def test_create_app_mounts_auth_routes(env):
    from adauth.main import create_app

    app = create_app()
    paths = {getattr(r, "path", None) for r in app.routes}
    assert {"/auth/login", "/auth/logout", "/auth/me", "/auth/password", "/auth/health"} <= paths

    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        assert client.get("/auth/health").status_code == 200


def test_setup_logging_adds_rotating_file_handler(tmp_path):
    from logging.handlers import TimedRotatingFileHandler

    target = tmp_path / "logs" / "adauth.log"
    try:
        setup_logging("INFO", log_file=str(target), retention_days=7)
        files = [h for h in log_config._handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(files) == 1
        assert files[0].backupCount == 7
        logging.getLogger("adauth.test").warning("written to file")
        files[0].flush()
        assert "written to file" in target.read_text(encoding="utf-8")
    finally:
        setup_logging("INFO")
    assert not any(isinstance(h, TimedRotatingFileHandler) for h in log_config._handlers)


def test_create_app_honours_log_file(env, tmp_path):
    from logging.handlers import TimedRotatingFileHandler

    from adauth.main import create_app

    target = tmp_path / "app.log"
    env.setenv("LOG_FILE", str(target))
    env.setenv("LOG_RETENTION_DAYS", "3")
    get_settings.cache_clear()
    try:
        create_app()
        files = [h for h in log_config._handlers if isinstance(h, TimedRotatingFileHandler)]
        assert [h.baseFilename for h in files] == [str(target)]
        assert files[0].backupCount == 3
    finally:
        setup_logging("INFO")


@pytest.mark.parametrize(
    "login,expected",
    [
        ("alice", ("sAMAccountName", "alice")),
        ("CORP\\alice", ("sAMAccountName", "alice")),
        ("alice@corp.example.com", ("userPrincipalName", "alice@corp.example.com")),
        ("CN=Alice,OU=Staff,DC=corp,DC=example,DC=com", ("distinguishedName", "CN=Alice,OU=Staff,DC=corp,DC=example,DC=com")),
        ("CORP\\", ("sAMAccountName", "")),
    ],
)
def test_login_lookup_matches_bind_forms(login, expected):
    assert login_lookup(login) == expected
    # every form principal_name() passes through must be resolvable
    assert principal_name(login, "corp.example.com")
