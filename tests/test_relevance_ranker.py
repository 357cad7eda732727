"""Tests for LLM relevance ranking."""

import json

import pytest

from nonprofit_pipeline.errors import MalformedModelOutputError
from nonprofit_pipeline.llm.relevance_ranker import (
    MAX_RANKED_URLS,
    RelevanceRanker,
    build_ranking_prompt,
    parse_ranked_urls,
)

from .conftest import FakeLLMClient

CANDIDATES = [
    "https://pastorserve.org/about",
    "https://pastorserve.org/blog/post-1",
    "https://pastorserve.org/login",
    "https://pastorserve.org/programs",
]


class TestPrompt:
    def test_candidates_enumerated_from_one(self):
        prompt = build_ranking_prompt(CANDIDATES)
        assert "1. https://pastorserve.org/about" in prompt
        assert "4. https://pastorserve.org/programs" in prompt
        assert "0. " not in prompt

    def test_instructions_present(self):
        prompt = build_ranking_prompt(CANDIDATES).lower()
        assert "programs" in prompt
        assert "impact" in prompt
        assert "blog" in prompt
        assert "login" in prompt
        assert "privacy policy" in prompt
        assert "json array" in prompt


class TestParse:
    def test_array_of_strings(self):
        output = parse_ranked_urls('["https://a.org/x", "https://a.org/y"]')
        assert output.ok
        assert output.value == ["https://a.org/x", "https://a.org/y"]

    def test_capped_at_limit(self):
        urls = [f"https://a.org/{i}" for i in range(15)]
        output = parse_ranked_urls(json.dumps(urls))
        assert output.value == urls[:MAX_RANKED_URLS]

    @pytest.mark.parametrize(
        "raw",
        [
            "Here are the best pages: https://a.org/x",
            '```json\n["https://a.org/x"]\n```',
            '{"urls": ["https://a.org/x"]}',
            '["https://a.org/x", 3]',
            "",
        ],
    )
    def test_malformed(self, raw):
        output = parse_ranked_urls(raw)
        assert not output.ok
        assert isinstance(output.error, MalformedModelOutputError)
        assert output.error.raw_text == raw


class TestRank:
    @pytest.mark.asyncio
    async def test_returns_model_array_in_order(self):
        answer = ["https://pastorserve.org/programs", "https://pastorserve.org/about"]
        llm = FakeLLMClient([json.dumps(answer)])

        ranked = await RelevanceRanker(llm, model="gpt-4o-mini").rank(CANDIDATES)

        assert ranked == answer
        assert len(llm.calls) == 1
        assert llm.calls[0]["model"] == "gpt-4o-mini"
        for url in CANDIDATES:
            assert url in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_non_json_raises(self):
        llm = FakeLLMClient(["I think the about page is the most relevant."])

        with pytest.raises(MalformedModelOutputError) as exc_info:
            await RelevanceRanker(llm).rank(CANDIDATES)

        assert exc_info.value.raw_text == "I think the about page is the most relevant."
        # no retry
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_deeply_nested_answer_raises_malformed(self):
        llm = FakeLLMClient(["[" * 100000])

        with pytest.raises(MalformedModelOutputError):
            await RelevanceRanker(llm).rank(CANDIDATES)

    @pytest.mark.asyncio
    async def test_empty_candidates_skip_model(self):
        llm = FakeLLMClient()
        assert await RelevanceRanker(llm).rank([]) == []
        assert llm.calls == []
