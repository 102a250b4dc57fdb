from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def filetime_to_datetime(v: Any) -> datetime | None:
    """Convert Windows FILETIME (100ns since 1601-01-01) to an aware UTC datetime.

    Returns None for 0 (never set) and for values before the Unix epoch.
    Raises ValueError/TypeError when ``v`` is not an integer.
    """
    n = int(v)
    if n <= 0:
        return None
    seconds = (n / 10_000_000) - 11_644_473_600
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)

