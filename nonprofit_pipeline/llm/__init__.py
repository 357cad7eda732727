"""LLM client, relevance ranking and profile extraction."""

from .llm_client import LLMClient, LLMResponse, LLMTask
from .model_output import ModelOutput, parse_model_json
from .profile_extractor import ExtractedProfile, ProfileExtractor
from .relevance_ranker import MAX_RANKED_URLS, RelevanceRanker

__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMTask",
    "ModelOutput",
    "parse_model_json",
    "ExtractedProfile",
    "ProfileExtractor",
    "MAX_RANKED_URLS",
    "RelevanceRanker",
]
