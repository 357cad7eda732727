"""
Text cleaner for turning fetched HTML into LLM-ready text.

Trafilatura markdown output is the primary path; pages where it finds no
main content (thin profile pages, tables-only layouts) fall back to a plain
BeautifulSoup text dump so headings and list items still survive.
"""

import re

from bs4 import BeautifulSoup

# Below this many characters trafilatura has usually dropped the content we need
MIN_EXTRACTED_CHARS = 100


class TextCleaner:
    """
    Lossy HTML to markdown/text conversion.

    No configuration surface beyond the precision toggle.
    """

    def clean_for_llm(self, html: str, favor_precision: bool = False) -> str | None:
        """
        Extract and clean text in markdown format for LLM processing.

        Args:
            html: HTML content
            favor_precision: Whether to favor precision over recall

        Returns:
            Clean markdown text, or None if nothing could be extracted
        """
        if not html or not html.strip():
            return None

        import trafilatura

        try:
            text = trafilatura.extract(
                html,
                include_tables=True,  # Profile pages keep NTEE/address data in tables
                include_links=False,
                output_format="markdown",
                favor_precision=favor_precision,
            )
        except (ValueError, TypeError, AttributeError):
            text = None

        if not text or len(text) < MIN_EXTRACTED_CHARS:
            return self._fallback_extract(html) or text

        return text

    def _fallback_extract(self, html: str) -> str | None:
        """Plain-text dump of the document body via BeautifulSoup."""
        soup = BeautifulSoup(html, "html.parser")

        for element in soup(["script", "style", "noscript", "template"]):
            element.decompose()

        text = soup.get_text(separator="\n", strip=True)
        text = re.sub(r"\n\s*\n+", "\n\n", text)

        return text or None
