"""Page fetching, link extraction and single-level crawl orchestration."""

from .base import FetchResult
from .content_fetcher import ContentFetcher
from .crawl_orchestrator import CrawlOrchestrator
from .link_extractor import extract_links

__all__ = ["FetchResult", "ContentFetcher", "CrawlOrchestrator", "extract_links"]
