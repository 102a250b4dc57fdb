from __future__ import annotations

import logging
import ssl
from typing import Any, Optional

from ldap3 import MODIFY_REPLACE, NONE, SIMPLE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException

from ..errors import (
    AuthError,
    BindError,
    DirectoryConnectionError,
    NotFoundError,
    Result,
    SearchError,
    ValidationError,
)
from .connection import DirectoryConnection, TransportFactory
from .marshal import MEMBER_ATTRIBUTES, marshal_member_info
from .models import DirectoryConfig, MemberInfo
from ..ad_utils import login_lookup
from .utils import escape_ldap_filter_value

log = logging.getLogger(__name__)

MSG_MISSING_CREDENTIALS = "username and password are required"
MSG_INVALID_CREDENTIALS = "invalid username or password"
MSG_DIRECTORY_UNAVAILABLE = "directory unavailable"
MSG_OLD_PASSWORD = "old password incorrect"


class ADAuthenticator:
    """Credential checks, member lookup and password changes against AD.

    Every public method opens its own DirectoryConnection and unbinds it
    before returning. End users are authenticated by binding as themselves,
    the password is never compared here. Lookups and modifications use the
    service account from the config.
    """

    def __init__(self, cfg: DirectoryConfig, transport_factory: Optional[TransportFactory] = None) -> None:
        self.cfg = cfg
        self._last_ok = True

        if transport_factory is None:
            self.server = self._build_server(cfg)
            transport_factory = self._transport
        else:
            self.server = None
        self._factory = transport_factory

        if not cfg.tls_enabled:
            log.warning(
                "Directory %s:%s is configured without LDAPS/StartTLS: credentials travel in clear text",
                cfg.server_host, cfg.port,
            )
        elif not cfg.tls_validate:
            log.warning(
                "Directory %s:%s: TLS certificate validation is DISABLED (insecure policy), "
                "the server identity is not verified",
                cfg.server_host, cfg.port,
            )

    @staticmethod
    def _build_server(cfg: DirectoryConfig) -> Server:
        tls_kwargs: dict[str, Any] = {
            "validate": ssl.CERT_REQUIRED if cfg.tls_validate else ssl.CERT_NONE,
        }
        # Custom CA only matters when verification is enabled.
        if cfg.tls_validate and cfg.ca_cert_file:
            tls_kwargs["ca_certs_file"] = cfg.ca_cert_file

        return Server(
            host=cfg.server_host,
            port=cfg.port,
            use_ssl=cfg.use_ssl,
            get_info=NONE,
            tls=Tls(**tls_kwargs),
            connect_timeout=float(cfg.connect_timeout),
        )

    def _transport(self) -> Connection:
        return Connection(
            self.server,
            authentication=SIMPLE,
            auto_bind=False,
            raise_exceptions=False,
            receive_timeout=float(self.cfg.receive_timeout),
        )

    @property
    def status(self) -> bool:
        """False when the most recent connection observed a transport error."""
        return self._last_ok

    def _open(self) -> DirectoryConnection:
        return DirectoryConnection(self._factory, starttls=self.cfg.starttls)

    def _record(self, conn: DirectoryConnection) -> None:
        self._last_ok = not conn.errored

    def _service_connection(self, conn: DirectoryConnection) -> DirectoryConnection:
        conn.connect()
        try:
            conn.bind(self.cfg.bind_principal, self.cfg.bind_password)
        except BindError as e:
            log.error("Service account bind rejected for %s: %s", self.cfg.bind_principal, e)
            raise
        return conn

    def check_service_bind(self) -> Result:
        """Connectivity check: connect and bind with the service account."""
        conn = self._open()
        try:
            self._service_connection(conn)
            return Result.ok("OK")
        except BindError as e:
            return Result.fail(f"service account bind failed: {e}")
        except DirectoryConnectionError as e:
            log.warning("Directory unreachable during service bind: %s", e)
            return Result.fail(MSG_DIRECTORY_UNAVAILABLE)
        finally:
            conn.unbind()
            self._record(conn)

    def validate_user(self, username: str, password: str) -> Result:
        username = (username or "").strip()
        if not username or not password:
            return Result.fail(MSG_MISSING_CREDENTIALS)

        identity = self.cfg.user_principal(username)
        conn = self._open()
        try:
            conn.connect()
            conn.bind(identity, password)
            log.info("Directory bind succeeded for %s", username)
            return Result.ok()
        except BindError as e:
            log.info("Directory bind rejected for %s: %s", username, e)
            return Result.fail(MSG_INVALID_CREDENTIALS)
        except DirectoryConnectionError as e:
            log.warning("Directory unavailable while authenticating %s: %s", username, e)
            return Result.fail(MSG_DIRECTORY_UNAVAILABLE)
        finally:
            conn.unbind()
            self._record(conn)

    def get_member_info(self, username: str) -> MemberInfo:
        login = (username or "").strip()
        if not login:
            raise ValidationError("username is required")
        base = self.cfg.search_base
        if not base:
            raise ValidationError("search base is empty (check the directory domain)")

        attr, value = login_lookup(login)
        if not value:
            raise ValidationError("username is required")
        flt = f"({attr}={escape_ldap_filter_value(value)})"

        conn = self._open()
        try:
            self._service_connection(conn)
            entries = conn.search(
                base,
                f"(&(objectClass=user){flt})",
                attributes=list(MEMBER_ATTRIBUTES),
                size_limit=2,
            )
        finally:
            conn.unbind()
            self._record(conn)

        if not entries:
            raise NotFoundError(f"no directory entry for {login}")
        if len(entries) > 1:
            raise SearchError(f"ambiguous directory lookup for {login}")

        dn, attrs = entries[0]
        return marshal_member_info(dn, attrs)

    def change_password(self, username: str, old_password: str, new_password: str) -> Result:
        if not new_password:
            return Result.fail("new password is required")

        check = self.validate_user(username, old_password)
        if check.error:
            return Result.fail(MSG_OLD_PASSWORD)

        attr = self.cfg.password_attribute
        if attr.lower() == "unicodepwd" and not self.cfg.tls_enabled:
            log.error("Password change for %s refused: AD requires LDAPS/StartTLS", username)
            return Result.fail("password change requires an encrypted directory connection")

        try:
            info = self.get_member_info(username)
        except NotFoundError:
            log.warning("Password change for %s: entry not found after successful bind", username)
            return Result.fail("user not found")
        except (AuthError, LDAPException) as e:
            log.warning("Password change for %s: lookup failed: %s", username, e)
            return Result.fail(f"lookup failed: {e}")
        except Exception as e:
            log.exception("Password change for %s: unexpected lookup error", username)
            return Result.fail(f"lookup failed: {e}")

        conn = self._open()
        try:
            self._service_connection(conn)
            if attr.lower() == "unicodepwd":
                conn.set_ad_password(info.distinguished_name, new_password)
            else:
                conn.modify(info.distinguished_name, {attr: [(MODIFY_REPLACE, [new_password])]})
        except (AuthError, LDAPException) as e:
            log.warning("Password change for %s failed: %s", username, e)
            return Result.fail(f"password change failed: {e}")
        except Exception as e:
            log.exception("Password change for %s: unexpected error", username)
            return Result.fail(f"password change failed: {e}")
        finally:
            conn.unbind()
            self._record(conn)

        log.info("Password changed for %s", username)
        return Result.ok()
