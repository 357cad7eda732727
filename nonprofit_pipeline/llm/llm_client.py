"""
Async LLM client on top of LiteLLM.

Each task has a primary model and an ordered list of fallbacks. A call walks
that list until one model answers; authentication and bad-request errors stop
the walk immediately. ``complete()`` is the text-in/text-out call the ranker
and the profile extractor use, ``agenerate()`` also returns usage and cost.

Usage:
    from nonprofit_pipeline.llm.llm_client import LLMClient, LLMTask

    client = LLMClient(task=LLMTask.URL_RANKING)
    text = await client.complete("Pick the about and programs pages...")
"""

import hashlib
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import litellm
from litellm import acompletion, completion_cost

litellm.suppress_debug_info = True
logging.getLogger("LiteLLM").setLevel(logging.WARNING)

MODEL_GPT4O_MINI = "gpt-4o-mini"
MODEL_GPT5_MINI = "gpt-5-mini"
MODEL_GEMINI_25_FLASH = "gemini-2.5-flash"
MODEL_CLAUDE_HAIKU_45 = "claude-haiku-4-5"

# name -> LiteLLM route, provider, USD per 1M tokens (used when LiteLLM has no price)
MODEL_REGISTRY: Dict[str, Dict[str, Any]] = {
    MODEL_GPT4O_MINI: {"litellm_name": "gpt-4o-mini", "provider": "openai", "input": 0.15, "output": 0.60},
    MODEL_GPT5_MINI: {"litellm_name": "gpt-5-mini", "provider": "openai", "input": 0.25, "output": 2.00},
    MODEL_GEMINI_25_FLASH: {
        "litellm_name": "gemini/gemini-2.5-flash",
        "provider": "google",
        "input": 0.15,
        "output": 0.60,
    },
    MODEL_CLAUDE_HAIKU_45: {
        "litellm_name": "anthropic/claude-haiku-4-5",
        "provider": "anthropic",
        "input": 1.00,
        "output": 5.00,
    },
}

# Environment variable LiteLLM reads for each provider key
PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "google": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

TRANSIENT_ERROR_MARKERS = (
    "rate limit",
    "too many requests",
    "quota exceeded",
    "overloaded",
    "timeout",
    "timed out",
    "connection",
    "temporar",
    "429",
    "502",
    "503",
)

PERMANENT_ERROR_MARKERS = (
    "authentication",
    "unauthorized",
    "permission denied",
    "api key",
    "invalid request",
    "badrequest",
    "401",
    "403",
)


class LLMTask(Enum):
    """What a call is for; selects the model chain and labels cost tracking."""

    WEBSITE_EXTRACTION = "website_extraction"
    URL_RANKING = "url_ranking"


# task -> (primary, fallbacks)
TASK_MODELS: Dict[LLMTask, Tuple[str, List[str]]] = {
    LLMTask.WEBSITE_EXTRACTION: (MODEL_GPT4O_MINI, [MODEL_GEMINI_25_FLASH]),
    LLMTask.URL_RANKING: (MODEL_GPT4O_MINI, [MODEL_GEMINI_25_FLASH]),
}


def is_known_model(name: str) -> bool:
    return name in MODEL_REGISTRY


def _matches(error: Exception, markers: Tuple[str, ...]) -> bool:
    haystack = f"{type(error).__name__} {error}".lower()
    return any(marker in haystack for marker in markers)


@dataclass
class LLMResponse:
    """One model answer plus what it cost."""

    text: str
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    finish_reason: Optional[str] = None
    model_version: str = ""
    task: Optional[str] = None
    prompt_hash: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


class LLMClient:
    """
    LiteLLM wrapper with per-task model chains.

    A model named on a single call (or at construction) is used alone.
    Otherwise the task's primary is tried first, then its fallbacks.
    """

    def __init__(
        self,
        task: Optional[LLMTask] = None,
        model: Optional[str] = None,
        api_keys: Optional[Dict[str, str]] = None,
        timeout: float = 120.0,
        logger=None,
    ):
        self.task = task
        self.timeout = timeout
        self.logger = logger

        for provider, key in (api_keys or {}).items():
            env_var = PROVIDER_KEY_ENV.get(provider)
            if env_var and key and not os.environ.get(env_var):
                os.environ[env_var] = key

        if model:
            self._check_model(model)
            self.model_name = model
            self.fallback_models: List[str] = []
        elif task:
            self.model_name, fallbacks = TASK_MODELS[task]
            self.fallback_models = list(fallbacks)
        else:
            self.model_name = MODEL_GPT4O_MINI
            self.fallback_models = []

        if self.logger:
            self.logger.info(
                f"LLM client ready: {self.model_name}",
                task=task.value if task else None,
                fallbacks=",".join(self.fallback_models) or None,
            )

    @staticmethod
    def _check_model(model: str):
        if not is_known_model(model):
            raise ValueError(f"Unknown model: {model}. Available: {sorted(MODEL_REGISTRY)}")

    async def complete(self, prompt: str, model: Optional[str] = None) -> str:
        """Send one prompt and return the model's text exactly as received."""
        response = await self.agenerate(prompt, model=model)
        return response.text

    async def agenerate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Generate a completion, falling back across the task's models.

        Args:
            prompt: User prompt
            model: Use only this model for this call
            temperature: Sampling temperature
            max_tokens: Output token cap (ignored where the provider rejects it)

        Raises:
            The last model's exception once the chain is exhausted, or the
            first permanent (auth / bad request) error.
        """
        if model:
            self._check_model(model)
            chain = [model]
        else:
            chain = [self.model_name, *self.fallback_models]

        prompt_hash = hashlib.sha256(prompt.encode()).hexdigest()[:16]

        for position, model_name in enumerate(chain):
            try:
                return await self._call(model_name, prompt, temperature, max_tokens, prompt_hash)
            except Exception as e:
                is_last = position == len(chain) - 1
                if _matches(e, PERMANENT_ERROR_MARKERS) or is_last:
                    if self.logger:
                        self.logger.error(f"LLM call failed on {model_name}", error=f"{type(e).__name__}: {e}")
                    raise
                if self.logger:
                    kind = "transient" if _matches(e, TRANSIENT_ERROR_MARKERS) else "unexpected"
                    self.logger.warning(
                        f"LLM {kind} error on {model_name}, falling back to {chain[position + 1]}",
                        error=f"{type(e).__name__}: {e}",
                    )

        raise RuntimeError("empty model chain")

    async def _call(
        self,
        model_name: str,
        prompt: str,
        temperature: float,
        max_tokens: Optional[int],
        prompt_hash: str,
    ) -> LLMResponse:
        entry = MODEL_REGISTRY[model_name]

        kwargs: Dict[str, Any] = {
            "model": entry["litellm_name"],
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "timeout": self.timeout,
            "drop_params": True,
        }
        if max_tokens and entry["provider"] != "google":
            kwargs["max_tokens"] = max_tokens
        if model_name.startswith("gpt-5"):
            # only the default temperature is accepted
            kwargs["temperature"] = 1.0
            kwargs.pop("max_tokens", None)

        response = await acompletion(**kwargs)

        if not response.choices:
            raise RuntimeError(f"{model_name} returned empty choices (response {getattr(response, 'id', None)})")

        choice = response.choices[0]
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0

        try:
            cost = completion_cost(completion_response=response) or 0.0
        except Exception:
            cost = (input_tokens * entry["input"] + output_tokens * entry["output"]) / 1_000_000

        task_name = self.task.value if self.task else None
        if self.logger:
            self.logger.log_llm_call(
                purpose=task_name or "completion",
                model=model_name,
                tokens_used=input_tokens + output_tokens,
                cost_usd=cost,
            )

        return LLMResponse(
            text=choice.message.content or "",
            model=model_name,
            provider=entry["provider"],
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost,
            finish_reason=choice.finish_reason,
            model_version=entry["litellm_name"],
            task=task_name,
            prompt_hash=prompt_hash,
            metadata={"response_id": getattr(response, "id", None)},
        )
