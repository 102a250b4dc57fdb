"""Active Directory (LDAP) side of the auth core.

Public API:
    - DirectoryConfig
    - MemberInfo
    - DirectoryConnection
    - ADAuthenticator
"""

from .models import DirectoryConfig, MemberInfo
from .connection import DirectoryConnection
from .client import ADAuthenticator
from .marshal import marshal_member_info

__all__ = ["DirectoryConfig", "MemberInfo", "DirectoryConnection", "ADAuthenticator", "marshal_member_info"]
