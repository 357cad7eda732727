"""
Seed URL -> ranked shortlist of content URLs.

Single-level crawl: only links found directly on the seed page are ranked.
Going deeper needs an explicit frontier/depth parameter here, not recursion.
"""

from typing import List

from ..errors import MalformedModelOutputError
from ..llm.relevance_ranker import MAX_RANKED_URLS, RelevanceRanker
from .content_fetcher import ContentFetcher
from .link_extractor import extract_links


class CrawlOrchestrator:
    """Fetch the seed page, extract its links, and let the ranker narrow them."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        ranker: RelevanceRanker,
        fallback_to_unranked: bool = False,
        logger=None,
    ):
        """
        Args:
            fetcher: Content fetcher for the seed page
            ranker: Relevance ranker over the extracted links
            fallback_to_unranked: Return the first candidates instead of
                raising when the ranker's output is malformed
            logger: Optional PipelineLogger
        """
        self.fetcher = fetcher
        self.ranker = ranker
        self.fallback_to_unranked = fallback_to_unranked
        self.logger = logger

    async def discover_content_urls(self, seed_url: str) -> List[str]:
        """
        Find up to ten content URLs reachable from ``seed_url``.

        Returns an empty list when the seed page cannot be fetched.

        Raises:
            MalformedModelOutputError: ranker output unusable and
                ``fallback_to_unranked`` is off
        """
        page = await self.fetcher.fetch(seed_url)
        if page.is_empty:
            if self.logger:
                self.logger.warning(f"No content at seed URL {seed_url}, nothing to crawl")
            return []

        # Sorted so the ranking prompt is stable between runs
        candidates = sorted(extract_links(page.raw_markup, seed_url))

        if self.logger:
            self.logger.info(f"Found {len(candidates)} candidate links", seed_url=seed_url)

        if not candidates:
            return []

        try:
            return await self.ranker.rank(candidates)
        except MalformedModelOutputError as e:
            if not self.fallback_to_unranked:
                raise
            if self.logger:
                self.logger.warning(f"Ranking failed, using unranked candidates: {e.reason}")
            return candidates[:MAX_RANKED_URLS]
