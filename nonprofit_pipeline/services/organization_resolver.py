"""
Get-or-create for organizations keyed by EIN.

LOOKUP -> HIT -> return
LOOKUP -> MISS -> FETCH_PROFILE -> EXTRACT -> PERSIST -> return

Nothing is written until extraction succeeds, so a failed fetch or a
malformed model answer never leaves a partial record behind. Two concurrent
misses for the same EIN both reach PERSIST; the store's unique constraint
lets one win and the other re-reads the winner's row.
"""

import asyncio
from typing import Any, Optional, Protocol

from ..collectors.content_fetcher import ContentFetcher
from ..config import DEFAULT_PROFILE_URL_TEMPLATE
from ..db.repository import Organization
from ..errors import DuplicateOrganizationError, FetchUnavailableError, InvalidEINError
from ..llm.profile_extractor import ProfileExtractor
from ..utils.ein_utils import validate_and_format


class OrganizationStore(Protocol):
    """Persistence collaborator. ``create`` raises DuplicateOrganizationError on EIN collision."""

    def find_by_ein(self, ein: str) -> Optional[Organization]: ...

    def create(self, data: dict[str, Any]) -> Organization: ...


def build_profile_url(ein: str, template: str = DEFAULT_PROFILE_URL_TEMPLATE) -> str:
    """Profile page URL for a normalized (XX-XXXXXXX) EIN."""
    return template.format(ein=ein, ein_digits=ein.replace("-", ""))


class OrganizationResolver:
    """Return the stored organization for an EIN, creating it on first sight."""

    def __init__(
        self,
        repository: OrganizationStore,
        fetcher: ContentFetcher,
        extractor: ProfileExtractor,
        profile_url_template: str = DEFAULT_PROFILE_URL_TEMPLATE,
        logger=None,
    ):
        self.repository = repository
        self.fetcher = fetcher
        self.extractor = extractor
        self.profile_url_template = profile_url_template
        self.logger = logger

    async def resolve(self, ein: str) -> Organization:
        """
        Get or create the organization for ``ein``.

        Raises:
            InvalidEINError: ``ein`` is not a valid EIN
            FetchUnavailableError: the profile page returned no content
            MalformedModelOutputError: the model's answer was not a JSON object
        """
        is_valid, normalized, error = validate_and_format(ein)
        if not is_valid:
            raise InvalidEINError(ein, error)

        existing = await asyncio.to_thread(self.repository.find_by_ein, normalized)
        if existing is not None:
            if self.logger:
                self.logger.log_lookup_hit(normalized)
            return existing

        if self.logger:
            self.logger.log_lookup_miss(normalized)

        profile_url = build_profile_url(normalized, self.profile_url_template)

        page = await self.fetcher.fetch(profile_url)
        if page.is_empty or not page.normalized_text:
            raise FetchUnavailableError(profile_url)

        profile = await self.extractor.extract_profile(page.normalized_text)

        data = {**profile.to_fields(), "ein": normalized, "profile_url": profile_url}

        try:
            organization = await asyncio.to_thread(self.repository.create, data)
        except DuplicateOrganizationError:
            if self.logger:
                self.logger.info("Lost create race, loading existing record", ein=normalized)
            organization = await asyncio.to_thread(self.repository.find_by_ein, normalized)
            if organization is None:
                raise
            return organization

        if self.logger:
            self.logger.info("Created organization", ein=normalized, name=organization.name)

        return organization
