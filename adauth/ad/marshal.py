"""Raw directory attributes -> MemberInfo.

ldap3 hands attributes back either as single values or as lists depending on
whether schema info was loaded, and attribute name case follows whatever the
server returned. Both are normalized here.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from ..errors import MarshallingError
from .models import MemberInfo
from .utils import filetime_to_datetime

MEMBER_ATTRIBUTES = ["distinguishedName", "cn", "description", "memberOf", "pwdLastSet"]


def _values(raw: Mapping[str, Any], name: str) -> list[Any]:
    v = raw.get(name)
    if v is None:
        lowered = name.lower()
        for k, candidate in raw.items():
            if isinstance(k, str) and k.lower() == lowered:
                v = candidate
                break
    if v is None:
        return []
    vals = list(v) if isinstance(v, (list, tuple)) else [v]

    out: list[Any] = []
    for it in vals:
        if it is None:
            continue
        if isinstance(it, (bytes, bytearray)):
            it = bytes(it).decode("utf-8", errors="replace")
        if isinstance(it, str):
            it = it.strip()
            if not it:
                continue
        out.append(it)
    return out


def _text(raw: Mapping[str, Any], name: str) -> str:
    vals = _values(raw, name)
    return str(vals[0]) if vals else ""


def _password_last_set(raw: Mapping[str, Any]) -> datetime | None:
    vals = _values(raw, "pwdLastSet")
    if not vals:
        return None
    v = vals[0]
    if isinstance(v, datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        v = v.astimezone(timezone.utc)
        # ldap3 formats FILETIME 0 as 1601-01-01
        if v.year <= 1601:
            return None
        return v
    if isinstance(v, bool):
        raise MarshallingError(f"pwdLastSet has unexpected type {type(v).__name__}")
    try:
        return filetime_to_datetime(v)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise MarshallingError(f"pwdLastSet is not a FILETIME value: {v!r}") from e


def marshal_member_info(dn: str, attributes: Any) -> MemberInfo:
    if not isinstance(attributes, Mapping):
        raise MarshallingError(f"expected attribute mapping, got {type(attributes).__name__}")

    dn = (dn or "").strip() or _text(attributes, "distinguishedName")
    if not dn:
        raise MarshallingError("directory entry has no distinguished name")

    return MemberInfo(
        distinguished_name=dn,
        common_name=_text(attributes, "cn"),
        description=_text(attributes, "description"),
        group_memberships=tuple(str(x) for x in _values(attributes, "memberOf")),
        password_last_set=_password_last_set(attributes),
    )
