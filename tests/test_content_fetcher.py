"""Tests for the single-page content fetcher."""

import httpx
import pytest

from nonprofit_pipeline.collectors.content_fetcher import ContentFetcher
from nonprofit_pipeline.utils.text_cleaner import TextCleaner

from .conftest import PROFILE_PAGE_HTML, html_routes

PROFILE_URL = "https://projects.propublica.org/nonprofits/organizations/753139219"


@pytest.mark.asyncio
async def test_success_returns_markup_and_text(make_fetcher):
    fetcher, recording = make_fetcher(html_routes({PROFILE_URL: PROFILE_PAGE_HTML}))

    result = await fetcher.fetch(PROFILE_URL)

    assert not result.is_empty
    assert result.raw_markup == PROFILE_PAGE_HTML
    assert result.status_code == 200
    assert "Acme Aid" in result.normalized_text
    assert recording.requests == [PROFILE_URL]


@pytest.mark.asyncio
async def test_non_2xx_returns_empty_result(make_fetcher):
    fetcher, recording = make_fetcher(html_routes({}))

    result = await fetcher.fetch("https://pastorserve.org/missing")

    assert result.is_empty
    assert result.raw_markup is None
    assert result.normalized_text is None
    assert result.status_code == 404
    assert len(recording.requests) == 1


@pytest.mark.asyncio
async def test_transport_error_returns_empty_result(make_fetcher):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher, recording = make_fetcher(handler)

    result = await fetcher.fetch("https://pastorserve.org")

    assert result.is_empty
    assert result.normalized_text is None
    # single attempt, no retry
    assert len(recording.requests) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["https://exa mple.org/\x00", "https://pastorserve.org/" + "a" * 70000])
async def test_unbuildable_url_returns_empty_result(make_fetcher, url):
    fetcher, recording = make_fetcher(html_routes({}))

    result = await fetcher.fetch(url)

    assert result.is_empty
    assert recording.requests == []


@pytest.mark.asyncio
async def test_uses_injected_text_cleaner(make_fetcher):
    class UpperCleaner(TextCleaner):
        def clean_for_llm(self, html, favor_precision=False):
            return "CLEANED"

    _, recording = make_fetcher(html_routes({PROFILE_URL: PROFILE_PAGE_HTML}))
    async with httpx.AsyncClient(transport=recording.transport) as client:
        fetcher = ContentFetcher(client, text_cleaner=UpperCleaner())
        result = await fetcher.fetch(PROFILE_URL)

    assert result.normalized_text == "CLEANED"


class TestTextCleaner:
    def test_fallback_keeps_headings_and_list_items(self):
        html = "<html><body><h1>Acme Aid</h1><ul><li>Food</li><li>Shelter</li></ul><script>x()</script></body></html>"
        text = TextCleaner().clean_for_llm(html)
        assert "Acme Aid" in text
        assert "Food" in text
        assert "Shelter" in text
        assert "x()" not in text

    def test_empty_html(self):
        assert TextCleaner().clean_for_llm("") is None
        assert TextCleaner().clean_for_llm("   ") is None
