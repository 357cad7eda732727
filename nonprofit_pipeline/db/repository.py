"""Organization store.

``organizations.ein`` is UNIQUE; ``create`` turns the duplicate-key error
into ``DuplicateOrganizationError`` so callers can tell a lost race from a
real failure.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Optional

import pymysql

from ..errors import DuplicateOrganizationError
from .client import execute_query

# MySQL ER_DUP_ENTRY
DUPLICATE_ENTRY_ERRNO = 1062

ORGANIZATIONS_DDL = """
CREATE TABLE IF NOT EXISTS organizations (
    id BIGINT AUTO_INCREMENT PRIMARY KEY,
    ein VARCHAR(10) NOT NULL,
    name VARCHAR(512) NULL,
    website_url VARCHAR(2048) NULL,
    profile_url VARCHAR(2048) NOT NULL,
    ntee_code VARCHAR(16) NULL,
    ntee_description VARCHAR(512) NULL,
    zip_code VARCHAR(16) NULL,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT uq_organizations_ein UNIQUE (ein)
)
"""

WRITABLE_COLUMNS = (
    "ein",
    "name",
    "website_url",
    "profile_url",
    "ntee_code",
    "ntee_description",
    "zip_code",
)


@dataclass(frozen=True)
class Organization:
    """Organization record."""

    ein: str
    profile_url: str
    name: str | None = None
    website_url: str | None = None
    ntee_code: str | None = None
    ntee_description: str | None = None
    zip_code: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Organization":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in row.items() if key in known})


class OrganizationRepository:
    """Data access for the organizations table."""

    def ensure_schema(self) -> None:
        execute_query(ORGANIZATIONS_DDL, fetch="none")

    def find_by_ein(self, ein: str) -> Optional[Organization]:
        row = execute_query("SELECT * FROM organizations WHERE ein = %s", (ein,), fetch="one")
        return Organization.from_row(row) if row else None

    def create(self, data: dict[str, Any]) -> Organization:
        """
        Insert a new organization.

        Args:
            data: Column values; must include ``ein`` and ``profile_url``

        Raises:
            DuplicateOrganizationError: an organization with this EIN exists
        """
        values = {column: data.get(column) for column in WRITABLE_COLUMNS}
        if not values["ein"] or not values["profile_url"]:
            raise ValueError("ein and profile_url are required")

        columns = ", ".join(values)
        placeholders = ", ".join(["%s"] * len(values))

        try:
            execute_query(
                f"INSERT INTO organizations ({columns}) VALUES ({placeholders})",
                tuple(values.values()),
                fetch="none",
            )
        except pymysql.err.IntegrityError as e:
            if e.args and e.args[0] == DUPLICATE_ENTRY_ERRNO:
                raise DuplicateOrganizationError(values["ein"]) from e
            raise

        created = self.find_by_ein(values["ein"])
        if created is None:
            raise RuntimeError(f"Organization {values['ein']} missing after insert")
        return created
