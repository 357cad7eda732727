"""Organization store (DoltDB / MySQL protocol).

Provides:
- Thread-local pymysql connection reuse
- Organization dataclass and repository with a unique EIN constraint
"""

from .client import check_connection, close_connection, execute_query, get_connection, get_cursor
from .repository import ORGANIZATIONS_DDL, Organization, OrganizationRepository

__all__ = [
    # Client
    "get_connection",
    "get_cursor",
    "execute_query",
    "check_connection",
    "close_connection",
    # Records
    "Organization",
    "OrganizationRepository",
    "ORGANIZATIONS_DDL",
]
