"""Shared fixtures and test doubles.

The LLM and the organization store are replaced with in-process fakes; HTTP
goes through ``httpx.MockTransport`` so the real ContentFetcher is exercised.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from nonprofit_pipeline.collectors.content_fetcher import ContentFetcher
from nonprofit_pipeline.db.repository import Organization
from nonprofit_pipeline.errors import DuplicateOrganizationError

SAMPLE_EIN = "75-3139219"

SAMPLE_PROFILE_JSON = json.dumps(
    {
        "Name": "Acme Aid",
        "WebsiteUrl": "https://acme.org",
        "NteeCode": "P20",
        "NteeDescription": "Human Services",
        "ZipCode": "10001",
    }
)

PROFILE_PAGE_HTML = """
<html>
  <head><title>Acme Aid - Nonprofit Explorer</title></head>
  <body>
    <main>
      <h1>Acme Aid</h1>
      <p>EIN 75-3139219. Classified as P20 Human Services under the NTEE system.</p>
      <p>Acme Aid provides food, shelter and case management to families in New York.</p>
      <p>Address: 1 Main Street, New York, NY 10001. Website: https://acme.org</p>
    </main>
  </body>
</html>
"""


class FakeLLMClient:
    """Scripted stand-in for LLMClient.complete()."""

    def __init__(self, responses: Optional[List[str]] = None, default: str = ""):
        self.responses = list(responses or [])
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, prompt: str, model: Optional[str] = None) -> str:
        self.calls.append({"prompt": prompt, "model": model})
        if self.responses:
            return self.responses.pop(0)
        return self.default


class InMemoryOrganizationStore:
    """Organization store with the same unique-EIN contract as the database."""

    def __init__(self):
        self.rows: Dict[str, Organization] = {}
        self.find_calls = 0
        self.create_calls = 0

    def find_by_ein(self, ein: str) -> Optional[Organization]:
        self.find_calls += 1
        return self.rows.get(ein)

    def create(self, data: Dict[str, Any]) -> Organization:
        self.create_calls += 1
        if data["ein"] in self.rows:
            raise DuplicateOrganizationError(data["ein"])
        organization = Organization(id=len(self.rows) + 1, **data)
        self.rows[data["ein"]] = organization
        return organization


def url_key(request: httpx.Request) -> str:
    """Request URL as the tests write it ("https://a.org", not "https://a.org/")."""
    url = str(request.url)
    if request.url.path == "/" and not request.url.query:
        return url.rstrip("/")
    return url


class RecordingTransport:
    """httpx.MockTransport wrapper that counts requests per URL."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[str] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._record)

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(url_key(request))
        return self._handler(request)


def html_routes(routes: Dict[str, str]) -> Callable[[httpx.Request], httpx.Response]:
    """Handler serving fixed HTML per URL, 404 for anything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(url_key(request))
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=body, headers={"Content-Type": "text/html"})

    return handler


@pytest.fixture
def store():
    return InMemoryOrganizationStore()


@pytest.fixture
def make_fetcher():
    """Build a ContentFetcher over a RecordingTransport; returns (fetcher, recording)."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        recording = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=recording.transport)
        return ContentFetcher(client), recording

    return _make
