"""
Usage aggregation for streaming and non-streaming responses.

Folds a flat vendor usage snapshot into categorized counters, carving cached
prompt tokens, audio tokens and reasoning tokens out of the plain text
totals.
"""

from typing import Any, Optional

from ..models.usage import AggregatedUsage, AudioUsage, ReasoningUsage, TextUsage, UsageSnapshot


class UsageAggregator:
    """Converts usage snapshots into ``AggregatedUsage``."""

    @staticmethod
    def convert(snapshot: Any) -> AggregatedUsage:
        """
        Convert a usage snapshot into categorized counters.

        Args:
            snapshot: UsageSnapshot, or anything ``UsageSnapshot.from_raw`` accepts

        Returns:
            AggregatedUsage with only the categories that have values
        """
        snapshot = UsageSnapshot.from_raw(snapshot)
        prompt_details = snapshot.prompt_tokens_details
        completion_details = snapshot.completion_tokens_details

        cached = _value(prompt_details, "cached_tokens")
        audio_input = _value(prompt_details, "audio_tokens")
        reasoning = _value(completion_details, "reasoning_tokens")
        audio_output = _value(completion_details, "audio_tokens")

        text_input = (snapshot.prompt_tokens or 0) - (cached or 0) - (audio_input or 0)
        text_output = (snapshot.completion_tokens or 0) - (reasoning or 0) - (audio_output or 0)

        usage = AggregatedUsage()

        if text_input > 0 or text_output > 0 or cached:
            usage.text = TextUsage(
                input=text_input if text_input > 0 else None,
                output=text_output if text_output > 0 else None,
                cached=cached or None
            )

        if reasoning:
            usage.reasoning = ReasoningUsage(output=reasoning)

        if audio_input or audio_output:
            usage.audio = AudioUsage(
                input=audio_input or None,
                output=audio_output or None
            )

        return usage


def _value(details: Optional[Any], name: str) -> Optional[int]:
    if details is None:
        return None
    return getattr(details, name, None)
