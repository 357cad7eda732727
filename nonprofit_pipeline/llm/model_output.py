"""
Parsing boundary between untrusted model text and the rest of the pipeline.

``parse_model_json`` never raises: it returns a ``ModelOutput`` that is either
ok (with the decoded value) or carries a ``MalformedModelOutputError``.
Nothing is stripped or repaired first. Code fences, prose around the JSON,
trailing commas and nesting deeper than the decoder can recurse all count as
malformed output.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from ..errors import MalformedModelOutputError

T = TypeVar("T")


@dataclass(frozen=True)
class ModelOutput(Generic[T]):
    """Ok(value) | Err(MalformedModelOutputError)."""

    raw_text: str
    value: Optional[T] = None
    error: Optional[MalformedModelOutputError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def map(self, fn: Callable[[T], Any]) -> "ModelOutput":
        """Apply ``fn`` to an ok value; errors pass through unchanged."""
        if self.error is not None:
            return self
        return ModelOutput(raw_text=self.raw_text, value=fn(self.value))

    @classmethod
    def success(cls, raw_text: str, value: T) -> "ModelOutput[T]":
        return cls(raw_text=raw_text, value=value)

    @classmethod
    def failure(cls, raw_text: str, reason: str) -> "ModelOutput[T]":
        return cls(raw_text=raw_text, error=MalformedModelOutputError(raw_text, reason))


def parse_model_json(raw_text: Optional[str], expected_type: Optional[type] = None) -> ModelOutput:
    """
    Decode model text as JSON.

    Args:
        raw_text: Text exactly as the model returned it
        expected_type: Optional top-level type (``dict`` or ``list``)

    Returns:
        ModelOutput, ok when the text is valid JSON of the expected type
    """
    if raw_text is None:
        return ModelOutput.failure("", "empty response")

    try:
        value = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as e:
        return ModelOutput.failure(raw_text, f"invalid JSON: {e}")
    except RecursionError:
        return ModelOutput.failure(raw_text, "invalid JSON: nested too deeply")

    if expected_type is not None and not isinstance(value, expected_type):
        return ModelOutput.failure(
            raw_text,
            f"expected JSON {expected_type.__name__}, got {type(value).__name__}",
        )

    return ModelOutput.success(raw_text, value)
