"""
Candidate link extraction from a fetched page.
"""

from typing import Optional, Set
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

# Pseudo-links that never lead to a page
EXCLUDED_SCHEMES = ("mailto:", "tel:", "data:", "javascript:")


def _is_excluded_href(href: str) -> bool:
    # Any '#' excludes the link, including mid-path fragments like /programs#section
    if "#" in href:
        return True
    return href.strip().lower().startswith(EXCLUDED_SCHEMES)


def extract_links(html: Optional[str], base_url: str) -> Set[str]:
    """
    Extract navigable links that live under ``base_url``.

    Relative hrefs are resolved against ``base_url``; only absolute http(s)
    URLs whose string starts with ``base_url`` are kept. Hrefs that fail to
    resolve are skipped.

    Args:
        html: Raw page markup
        base_url: URL of the page the markup came from

    Returns:
        Set of absolute URLs
    """
    if not html:
        return set()

    soup = BeautifulSoup(html, "html.parser")
    links: Set[str] = set()

    for tag in soup.find_all("a", href=True):
        href = tag["href"]

        if _is_excluded_href(href):
            continue

        try:
            absolute_url = urljoin(base_url, href.strip())
            parsed = urlparse(absolute_url)
        except ValueError:
            continue

        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            continue

        if absolute_url.startswith(base_url):
            links.add(absolute_url)

    return links
