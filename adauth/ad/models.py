from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..ad_utils import build_dc_fqdn, domain_to_base_dn, principal_name


@dataclass
class DirectoryConfig:
    host: str
    domain: str
    port: int = 636
    use_ssl: bool = True
    starttls: bool = False
    bind_username: str = ""
    bind_password: str = field(default="", repr=False)
    # False means "insecure": the server certificate is not verified.
    tls_validate: bool = True
    ca_cert_file: str = ""
    base_dn: str = ""
    connect_timeout: float = 5.0
    receive_timeout: float = 10.0
    password_attribute: str = "unicodePwd"

    @property
    def server_host(self) -> str:
        return build_dc_fqdn(self.host, self.domain)

    @property
    def search_base(self) -> str:
        return (self.base_dn or "").strip() or domain_to_base_dn(self.domain)

    @property
    def bind_principal(self) -> str:
        return principal_name(self.bind_username, self.domain)

    @property
    def tls_enabled(self) -> bool:
        return bool(self.use_ssl or self.starttls)

    def user_principal(self, username: str) -> str:
        return principal_name(username, self.domain)


@dataclass(frozen=True)
class MemberInfo:
    distinguished_name: str
    common_name: str = ""
    description: str = ""
    group_memberships: Tuple[str, ...] = ()
    password_last_set: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "dn": self.distinguished_name,
            "cn": self.common_name,
            "description": self.description,
            "groups": list(self.group_memberships),
            "password_last_set": (
                self.password_last_set.isoformat(timespec="seconds") if self.password_last_set else None
            ),
        }
