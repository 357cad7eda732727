"""
Shared result type for page fetches.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FetchResult:
    """
    Raw and normalized content of one page.

    Both fields are None when the page could not be fetched; callers treat
    that as "no content available", not as an error.
    """

    raw_markup: Optional[str] = None
    normalized_text: Optional[str] = None
    final_url: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.raw_markup is None

    @classmethod
    def empty(cls, status_code: Optional[int] = None) -> "FetchResult":
        return cls(status_code=status_code)
