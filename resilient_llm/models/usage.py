"""
Usage models.

``UsageSnapshot`` is the flat token report providers attach to responses
(OpenAI-compatible field names). ``AggregatedUsage`` is the categorized form
handed to consumers, where a category only appears when it has a value.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PromptTokensDetails(BaseModel):
    """Breakdown of prompt tokens."""
    model_config = ConfigDict(extra="ignore")

    cached_tokens: Optional[int] = Field(None, ge=0)
    audio_tokens: Optional[int] = Field(None, ge=0)


class CompletionTokensDetails(BaseModel):
    """Breakdown of completion tokens."""
    model_config = ConfigDict(extra="ignore")

    reasoning_tokens: Optional[int] = Field(None, ge=0)
    audio_tokens: Optional[int] = Field(None, ge=0)


class UsageSnapshot(BaseModel):
    """Vendor usage report as sent on a response or final stream chunk."""
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: Optional[int] = None
    prompt_tokens_details: Optional[PromptTokensDetails] = None
    completion_tokens_details: Optional[CompletionTokensDetails] = None

    @classmethod
    def from_raw(cls, usage: Any) -> "UsageSnapshot":
        """
        Build a snapshot from whatever the transport produced.

        Args:
            usage: A UsageSnapshot, a dict, a pydantic model (e.g. the
                OpenAI SDK's ``CompletionUsage``) or an attribute object

        Returns:
            UsageSnapshot
        """
        if isinstance(usage, cls):
            return usage
        if isinstance(usage, dict):
            return cls.model_validate(_drop_none(usage))
        if hasattr(usage, "model_dump"):
            return cls.model_validate(_drop_none(usage.model_dump()))
        return cls.model_validate(_drop_none(dict(vars(usage))), from_attributes=True)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Treat explicit nulls as absent so defaults apply."""
    return {key: value for key, value in data.items() if value is not None}


class TextUsage(BaseModel):
    input: Optional[int] = None
    output: Optional[int] = None
    cached: Optional[int] = None


class ReasoningUsage(BaseModel):
    output: Optional[int] = None


class AudioUsage(BaseModel):
    input: Optional[int] = None
    output: Optional[int] = None


class AggregatedUsage(BaseModel):
    """Categorized token counters. Absent categories stay None."""
    text: Optional[TextUsage] = None
    reasoning: Optional[ReasoningUsage] = None
    audio: Optional[AudioUsage] = None

    def is_empty(self) -> bool:
        return self.text is None and self.reasoning is None and self.audio is None

    def to_dict(self) -> Dict[str, Any]:
        """Dict form without absent categories or fields."""
        return self.model_dump(exclude_none=True)
