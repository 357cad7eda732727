"""
LLM-driven relevance ranking of candidate URLs.

Asks the model to pick the pages most likely to describe the organization,
its programs and its impact, and returns them in the model's order.
"""

from typing import List, Optional, Sequence

from .llm_client import LLMClient
from .model_output import ModelOutput, parse_model_json

MAX_RANKED_URLS = 10


def build_ranking_prompt(urls: Sequence[str], limit: int = MAX_RANKED_URLS) -> str:
    """Prompt enumerating every candidate with a 1-based index."""
    url_lines = "\n".join(f"{i}. {url}" for i, url in enumerate(urls, start=1))

    return f"""You are helping research a nonprofit organization from its website.

Below is a numbered list of links found on the organization's homepage.

{url_lines}

Select up to {limit} URLs that are most likely to contain substantive content about:
- the organization itself (about, mission, history, leadership)
- its programs and services
- its impact, results and reports

Exclude blog posts, news articles, login or account pages, privacy policy, terms of use,
cookie and similar legal pages.

Order the selection from most to least useful.
Return ONLY a JSON array of the selected URL strings, exactly as written above,
for example ["https://example.org/about", "https://example.org/programs"].
Do not add any other text, explanation or code fences."""


def parse_ranked_urls(raw_text: str, limit: int = MAX_RANKED_URLS) -> ModelOutput:
    """Decode the model's answer as a JSON array of strings, capped at ``limit``."""
    output = parse_model_json(raw_text, expected_type=list)
    if not output.ok:
        return output

    if not all(isinstance(item, str) for item in output.value):
        return ModelOutput.failure(raw_text, "expected an array of URL strings")

    return output.map(lambda urls: urls[:limit])


class RelevanceRanker:
    """Narrow candidate links to a short, ordered list using the LLM."""

    def __init__(
        self,
        llm_client: LLMClient,
        model: Optional[str] = None,
        limit: int = MAX_RANKED_URLS,
        logger=None,
    ):
        self.llm_client = llm_client
        self.model = model
        self.limit = limit
        self.logger = logger

    async def rank(self, urls: Sequence[str]) -> List[str]:
        """
        Ask the model for the most relevant URLs.

        Raises:
            MalformedModelOutputError: the answer is not a JSON array of strings
        """
        if not urls:
            return []

        prompt = build_ranking_prompt(urls, self.limit)
        raw_text = await self.llm_client.complete(prompt, self.model)

        output = parse_ranked_urls(raw_text, self.limit)
        if not output.ok:
            if self.logger:
                self.logger.warning("Ranking response rejected", reason=output.error.reason)
            raise output.error

        if self.logger:
            self.logger.info(f"Ranked {len(urls)} candidates down to {len(output.value)}")

        return output.value
