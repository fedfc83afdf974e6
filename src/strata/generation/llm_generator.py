"""LLM-backed generation of parent summaries.

The model is asked for a JSON object with two fields: an objective summary
(stored as the summary content) and an encouraging narrative (stored as the
supplementary content).
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

from ..adapters.llm.adapter import LLMAdapter, LLMError, Message
from ..observability.loguru_config import get_logger
from ..rollups.contracts import GenerationError, GenerationResult
from ..rollups.models import DecryptedChild, Owner
from ..rollups.time_windows import Period

__all__ = [
    "LLMSummaryGenerator",
    "build_system_prompt",
    "build_user_prompt",
    "parse_generation_output",
]

logger = get_logger("generation")

ExistsLookup = Callable[[str, str, date], bool]

_PERIOD_NOUN = {
    "weekly": "week",
    "monthly": "month",
    "yearly": "year",
}

_CHILD_NOUN = {
    "weekly": "daily",
    "monthly": "weekly",
    "yearly": "monthly",
}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def _child_label(layer: str, child: DecryptedChild) -> str:
    if layer == "weekly":
        return child.period_start.isoformat()
    if layer == "monthly":
        return f"Week of {child.period_start.isoformat()} to {child.period_end.isoformat()}"
    return child.period_start.strftime("%B %Y")


def build_system_prompt(layer: str, owner: Owner) -> str:
    """System prompt for a ``layer`` rollup, personalized for ``owner``."""
    noun = _PERIOD_NOUN[layer]
    return f"""You are {owner.assistant_name}, an AI assistant helping the user reflect on their {layer} progress. \
Create a comprehensive {layer} summary that will provide context for future conversations and serve as \
motivational proof of progress.

The user is studying {owner.fields_of_study}.

Your personality: {owner.assistant_personality}

Respond with ONLY a valid JSON object of this shape:
{{
  "objectiveSummary": "A factual, comprehensive summary of the {noun}: activities, milestones, skills, \
challenges and how they were handled, key insights and progress patterns. Neutral, analytical tone.",
  "encouragingProof": "Motivational content highlighting concrete achievements, growth, resilience and \
progress toward the user's goals. Warm, personal tone using 'you'."
}}"""


def build_user_prompt(layer: str, period: Period, children: Sequence[DecryptedChild]) -> str:
    """User prompt listing the child summaries of ``period``."""
    entries = "\n\n".join(f"{_child_label(layer, child)}: {child.content}" for child in children)
    return (
        f"Please analyze these {_CHILD_NOUN[layer]} summaries for the {_PERIOD_NOUN[layer]} "
        f"{period.start.isoformat()} to {period.end.isoformat()} and create a {layer} summary:\n\n{entries}"
    )


def parse_generation_output(text: str) -> tuple[str, str | None]:
    """Split model output into ``(content, supplementary_content)``.

    Falls back to the first JSON object embedded in the text, then to the
    raw text as content with no supplementary narrative.
    """
    candidates = [text]
    match = _JSON_OBJECT.search(text)
    if match and match.group(0) != text:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            parsed: Any = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            content = parsed.get("objectiveSummary") or text
            supplementary = parsed.get("encouragingProof") or None
            return str(content), str(supplementary) if supplementary else None

    logger.warning("Model output is not JSON, using it as the summary", length=len(text))
    return text, None


class LLMSummaryGenerator:
    """``SummaryGenerator`` backed by an LLM adapter.

    Parameters
    ----------
    adapter
        Chat-completion provider
    exists_lookup
        Optional ``(owner_id, layer, period_start) -> bool``; when it reports
        the period as summarized the model is not called
    model
        Model override
    temperature, max_tokens, timeout
        Request parameters
    """

    def __init__(
        self,
        adapter: LLMAdapter,
        *,
        exists_lookup: ExistsLookup | None = None,
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        timeout: float = 60.0,
    ) -> None:
        self.adapter = adapter
        self.exists_lookup = exists_lookup
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def generate_parent_content(
        self,
        layer: str,
        period: Period,
        children: Sequence[DecryptedChild],
        owner: Owner,
    ) -> GenerationResult:
        """Generate the summary prose for one period.

        Raises
        ------
        GenerationError
            If the model call fails or returns nothing
        """
        if layer not in _PERIOD_NOUN:
            raise GenerationError(f"Cannot generate content for layer {layer!r}")

        if self.exists_lookup and self.exists_lookup(owner.owner_id, layer, period.start):
            return GenerationResult(already_exists=True)

        messages = [
            Message(role="system", content=build_system_prompt(layer, owner)),
            Message(role="user", content=build_user_prompt(layer, period, children)),
        ]

        try:
            response = self.adapter.chat(
                messages,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except LLMError as exc:
            raise GenerationError(f"{layer} generation failed: {exc}") from exc

        if not response.content.strip():
            raise GenerationError(f"{layer} generation returned empty content")

        content, supplementary = parse_generation_output(response.content)
        logger.info(
            "Generated summary",
            layer=layer,
            period_start=period.start.isoformat(),
            children=len(children),
            usage=response.usage,
        )
        return GenerationResult(content=content, supplementary_content=supplementary)
