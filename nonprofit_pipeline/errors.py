"""
Error taxonomy for the discovery pipeline.

Transport failures are absorbed into empty results at the fetcher boundary;
everything here is raised to the immediate caller, which decides whether to
retry, fall back or abort.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline errors."""


class FetchUnavailableError(PipelineError):
    """A page that the caller cannot do without returned no content."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No content available for {url}")


class MalformedModelOutputError(PipelineError):
    """
    Language model output did not parse as the expected JSON shape.

    The raw text is kept for diagnostics. It is never coerced into a default.
    """

    def __init__(self, raw_text: str, reason: Optional[str] = None):
        self.raw_text = raw_text
        self.reason = reason
        preview = raw_text if len(raw_text) <= 200 else raw_text[:197] + "..."
        message = "Malformed model output"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(f"{message}: {preview!r}")


class InvalidEINError(PipelineError, ValueError):
    """Identifier is not a usable EIN."""

    def __init__(self, ein: str, reason: str):
        self.ein = ein
        self.reason = reason
        super().__init__(f"Invalid EIN {ein!r}: {reason}")


class DuplicateOrganizationError(PipelineError):
    """An organization with this EIN already exists in the store."""

    def __init__(self, ein: str):
        self.ein = ein
        super().__init__(f"Organization already exists for EIN {ein}")
