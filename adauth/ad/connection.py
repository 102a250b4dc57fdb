"""One directory session: connect -> bind -> operate -> unbind.

A DirectoryConnection is created for a single logical operation and never
shared. Its error state belongs to the instance, so a failure observed here
cannot leak into an unrelated, concurrently running authentication.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ldap3 import SUBTREE, Connection
from ldap3.core.exceptions import LDAPException

from ..errors import BindError, DirectoryConnectionError, ModifyError, SearchError

log = logging.getLogger(__name__)

TransportFactory = Callable[[], Connection]


def _describe(result: Optional[dict], default: str = "unknown error") -> str:
    res = dict(result or {})
    return str(res.get("description") or res.get("message") or default)


class DirectoryConnection:
    def __init__(self, transport_factory: TransportFactory, *, starttls: bool = False) -> None:
        self._factory = transport_factory
        self._starttls = starttls
        self._conn: Connection | None = None
        self.bound_identity: str | None = None
        self.last_error: str | None = None
        self.closed = False

    def __enter__(self) -> "DirectoryConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unbind()

    @property
    def errored(self) -> bool:
        return self.last_error is not None

    def _fail(self, message: str) -> None:
        self.last_error = message
        log.debug("Directory connection marked errored: %s", message)

    def _usable(self) -> Connection:
        if self.closed:
            raise DirectoryConnectionError("connection already closed")
        if self.errored:
            raise DirectoryConnectionError(f"connection is in error state: {self.last_error}")
        if self._conn is None:
            raise DirectoryConnectionError("connection is not open")
        return self._conn

    def connect(self) -> "DirectoryConnection":
        if self.closed or self.errored:
            raise DirectoryConnectionError("connection cannot be reopened")
        if self._conn is not None:
            return self
        try:
            self._conn = self._factory()
            self._conn.open()
            if self._starttls and not self._conn.start_tls():
                msg = f"StartTLS failed: {_describe(self._conn.result)}"
                self._fail(msg)
                raise DirectoryConnectionError(msg)
        except LDAPException as e:
            self._fail(str(e))
            raise DirectoryConnectionError(str(e)) from e
        return self

    def bind(self, identity: str, secret: str) -> None:
        conn = self._usable()
        conn.user = identity
        conn.password = secret
        try:
            ok = bool(conn.bind())
        except LDAPException as e:
            self._fail(str(e))
            raise DirectoryConnectionError(str(e)) from e
        finally:
            conn.password = None

        if not ok:
            # A rejected bind is a normal outcome, the connection itself is fine.
            raise BindError(_describe(conn.result, "bind rejected"))
        self.bound_identity = identity

    def search(
        self,
        base: str,
        search_filter: str,
        attributes: list[str],
        size_limit: int = 0,
    ) -> list[tuple[str, dict[str, Any]]]:
        conn = self._usable()
        try:
            ok = conn.search(
                search_base=base,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=attributes,
                size_limit=size_limit,
            )
        except LDAPException as e:
            self._fail(str(e))
            raise SearchError(str(e)) from e

        entries = list(conn.entries or [])
        if not ok and not entries:
            res = dict(conn.result or {})
            # noSuchObject / zero hits come back as a failed search without entries
            if res.get("description") in (None, "", "success", "noSuchObject"):
                return []
            raise SearchError(_describe(res, "search failed"))

        return [(str(e.entry_dn), dict(e.entry_attributes_as_dict or {})) for e in entries]

    def modify(self, dn: str, changes: dict) -> None:
        conn = self._usable()
        try:
            ok = bool(conn.modify(dn, changes))
        except LDAPException as e:
            self._fail(str(e))
            raise ModifyError(str(e)) from e
        if not ok:
            raise ModifyError(_describe(conn.result, "modify failed"))

    def set_ad_password(self, dn: str, new_password: str) -> None:
        """Administrative reset of ``unicodePwd`` through ldap3's Microsoft extension.

        Without an old password the extension sends a single replace modify.
        """
        conn = self._usable()
        try:
            ok = bool(conn.extend.microsoft.modify_password(dn, new_password))
        except LDAPException as e:
            self._fail(str(e))
            raise ModifyError(str(e)) from e
        if not ok:
            raise ModifyError(_describe(conn.result, "password change failed"))

    def unbind(self) -> None:
        if self.closed:
            return
        self.closed = True
        conn, self._conn = self._conn, None
        self.bound_identity = None
        if conn is None:
            return
        try:
            conn.unbind()
        except Exception:
            log.debug("Directory unbind failed", exc_info=True)
