from __future__ import annotations

import ipaddress


def domain_to_base_dn(domain: str) -> str:
    domain = (domain or "").strip().strip(".")
    if not domain or "." not in domain:
        return ""
    parts = [p for p in domain.split(".") if p]
    return ",".join([f"DC={p}" for p in parts])


def build_dc_fqdn(host: str, domain: str) -> str:
    """Return the domain controller address to connect to.

    IP addresses and dotted names are used as-is, a short DC name gets the
    domain appended.
    """
    host = (host or "").strip()
    domain = (domain or "").strip().strip(".")
    if not host:
        return domain

    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        if "." in host:
            return host
        return f"{host}.{domain}" if domain else host


def principal_name(username: str, domain: str) -> str:
    """Bind identity for a login name.

    A UPN (``user@domain``), a DN (``CN=...``) or a down-level
    ``DOMAIN\\user`` name is passed through, a bare login becomes a UPN.
    """
    u = (username or "").strip()
    d = (domain or "").strip().strip(".")
    if not u:
        return ""
    if "@" in u or "\\" in u or "=" in u:
        return u
    return f"{u}@{d}" if d else u


def login_lookup(login: str) -> tuple[str, str]:
    """(attribute, value) that finds the entry for any login form principal_name() accepts.

    DN -> distinguishedName, ``DOMAIN\\user`` -> sAMAccountName of ``user``,
    UPN -> userPrincipalName, bare login -> sAMAccountName.
    """
    u = (login or "").strip()
    if "=" in u:
        return "distinguishedName", u
    if "\\" in u:
        return "sAMAccountName", u.rsplit("\\", 1)[1].strip()
    if "@" in u:
        return "userPrincipalName", u
    return "sAMAccountName", u
