"""
Single-page fetcher.

One GET per call, no retries. Transport errors, URLs httpx refuses to
build and non-2xx responses come back as an empty FetchResult so crawl
callers can degrade to "no links".
"""

from typing import Optional

import httpx

from ..utils.text_cleaner import TextCleaner
from .base import FetchResult


class ContentFetcher:
    """
    Fetch a URL and normalize its markup for the LLM.

    The httpx client is owned by the caller; timeouts, headers and redirect
    handling come from its configuration.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        text_cleaner: Optional[TextCleaner] = None,
        logger=None,
    ):
        self.client = client
        self.text_cleaner = text_cleaner or TextCleaner()
        self.logger = logger

    async def fetch(self, url: str) -> FetchResult:
        """
        GET ``url`` and convert the body to text.

        Returns:
            FetchResult with raw markup and normalized text, or an empty result
        """
        try:
            response = await self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            if self.logger:
                self.logger.warning(f"Fetch failed for {url}: {type(e).__name__}: {e}")
            return FetchResult.empty()

        if not response.is_success:
            if self.logger:
                self.logger.warning(f"Fetch failed for {url}", status=response.status_code)
            return FetchResult.empty(status_code=response.status_code)

        html = response.text
        normalized_text = self.text_cleaner.clean_for_llm(html)

        if self.logger:
            self.logger.debug(
                f"Fetched {url}",
                status=response.status_code,
                html_chars=len(html),
                text_chars=len(normalized_text or ""),
            )

        return FetchResult(
            raw_markup=html,
            normalized_text=normalized_text,
            final_url=str(response.url),
            status_code=response.status_code,
        )
