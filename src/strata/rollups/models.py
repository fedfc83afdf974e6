"""Records handled by the rollup engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from ..core.time import get_current_utc

__all__ = [
    "DEFAULT_ASSISTANT_NAME",
    "DEFAULT_ASSISTANT_PERSONALITY",
    "DEFAULT_FIELDS_OF_STUDY",
    "DecryptedChild",
    "Owner",
    "PeriodSummary",
]

DEFAULT_FIELDS_OF_STUDY = "academic pursuits"
DEFAULT_ASSISTANT_NAME = "Claude"
DEFAULT_ASSISTANT_PERSONALITY = "supportive and encouraging"


@dataclass(frozen=True)
class PeriodSummary:
    """One persisted summary of one period at one layer.

    ``period_start`` and ``period_end`` are local calendar dates in the
    owner's zone; ``period_end`` is the last day covered. ``content`` and
    ``supplementary_content`` are opaque ciphertext.
    """

    id: str
    owner_id: str
    layer: str
    period_start: date
    period_end: date
    content: str
    supplementary_content: str | None = None
    source_child_ids: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=get_current_utc)


@dataclass(frozen=True)
class Owner:
    """The user whose summaries are rolled up, with personalization context."""

    owner_id: str
    timezone: str = "UTC"
    fields_of_study: str = DEFAULT_FIELDS_OF_STUDY
    assistant_name: str = DEFAULT_ASSISTANT_NAME
    assistant_personality: str = DEFAULT_ASSISTANT_PERSONALITY


@dataclass(frozen=True)
class DecryptedChild:
    """A child summary whose content has been decrypted for generation."""

    id: str
    period_start: date
    period_end: date
    content: str
