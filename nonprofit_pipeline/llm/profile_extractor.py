"""
LLM-powered organization profile extraction.

Turns the normalized text of a profile page into a fixed set of fields.
The model's answer must be a JSON object whose field values are strings,
numbers or null. Missing fields come back as None; arrays or objects in a
field make the whole answer malformed.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .llm_client import LLMClient
from .model_output import ModelOutput, parse_model_json

# JSON key -> description shown to the model
PROFILE_FIELDS: Dict[str, str] = {
    "Name": "the organization's legal or display name",
    "WebsiteUrl": "the organization's own website URL",
    "NteeCode": "the NTEE category code (e.g. P20)",
    "NteeDescription": "the human-readable NTEE category description",
    "ZipCode": "the postal (ZIP) code of the organization's address",
}


class ExtractedProfile(BaseModel):
    """Profile fields parsed from model output."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: Optional[str] = Field(None, alias="Name")
    website_url: Optional[str] = Field(None, alias="WebsiteUrl")
    ntee_code: Optional[str] = Field(None, alias="NteeCode")
    ntee_description: Optional[str] = Field(None, alias="NteeDescription")
    zip_code: Optional[str] = Field(None, alias="ZipCode")

    @field_validator("*", mode="before")
    @classmethod
    def stringify_scalars(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        # ZIP codes tend to come back as numbers, sometimes as 10001.0
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        raise ValueError(f"expected a string or null, got JSON {type(value).__name__}")

    def to_fields(self) -> Dict[str, Optional[str]]:
        """Snake-case dict for the persistence layer."""
        return self.model_dump()


def parse_profile(raw_text: str) -> ModelOutput:
    """Decode the model's answer into an ExtractedProfile without raising."""
    output = parse_model_json(raw_text, expected_type=dict)
    if not output.ok:
        return output

    try:
        profile = ExtractedProfile.model_validate(output.value)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        return ModelOutput.failure(raw_text, f"unusable field values: {fields}")

    return ModelOutput.success(raw_text, profile)


def build_profile_prompt(page_text: str) -> str:
    """Field list, output rules, then the page text verbatim."""
    field_lines = "\n".join(f'- "{key}": {description}' for key, description in PROFILE_FIELDS.items())

    return f"""You are extracting structured information about a nonprofit organization from a web page.

Return a JSON object with exactly these keys:
{field_lines}

Rules:
- Every value must be a string, or null if the page does not state it.
- Only use information explicitly present on the page. Do not guess.
- Return ONLY the JSON object. No prose, no explanation, no markdown code fences.

Page content:
{page_text}"""


class ProfileExtractor:
    """Extract an ExtractedProfile from page text with one LLM call."""

    def __init__(self, llm_client: LLMClient, model: Optional[str] = None, logger=None):
        self.llm_client = llm_client
        self.model = model
        self.logger = logger

    async def try_extract_profile(self, page_text: str) -> ModelOutput:
        """
        Extract a profile without raising on malformed output.

        Returns:
            ModelOutput wrapping an ExtractedProfile, or the parse error
        """
        prompt = build_profile_prompt(page_text)
        raw_text = await self.llm_client.complete(prompt, self.model)

        output = parse_profile(raw_text)

        if self.logger:
            if output.ok:
                filled = sum(1 for v in output.value.to_fields().values() if v)
                self.logger.info(f"Profile extraction parsed {filled}/{len(PROFILE_FIELDS)} fields")
            else:
                self.logger.error(
                    "Profile extraction returned malformed output",
                    reason=output.error.reason,
                    raw_preview=raw_text[:200],
                )

        return output

    async def extract_profile(self, page_text: str) -> ExtractedProfile:
        """
        Extract a profile from normalized page text.

        Raises:
            MalformedModelOutputError: the answer is not a JSON object
        """
        output = await self.try_extract_profile(page_text)
        return output.unwrap()
