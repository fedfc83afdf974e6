"""Collaborator protocols and error types for the rollup engine.

The engine never talks to storage, encryption or the generation service
directly; it goes through these protocols.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .models import DecryptedChild, Owner, PeriodSummary
from .time_windows import Period

__all__ = [
    "Cipher",
    "DecryptionError",
    "GenerationError",
    "GenerationResult",
    "PersistResult",
    "PersistenceError",
    "RollupError",
    "SummaryExistsError",
    "SummaryGenerator",
    "SummaryRepository",
]


class RollupError(Exception):
    """Base exception for rollup operations."""

    pass


class DecryptionError(RollupError):
    """Raised when a summary's ciphertext cannot be decrypted."""

    pass


class GenerationError(RollupError):
    """Raised when the generation service fails."""

    pass


class PersistenceError(RollupError):
    """Raised when the summary store fails."""

    pass


class SummaryExistsError(PersistenceError):
    """Raised when a summary already exists for the same owner, layer and period."""

    pass


@dataclass(frozen=True)
class GenerationResult:
    """Output of the generation service.

    ``already_exists`` means another writer summarized the period first.
    """

    content: str = ""
    supplementary_content: str | None = None
    already_exists: bool = False


@dataclass(frozen=True)
class PersistResult:
    """Outcome of persisting a parent summary."""

    success: bool
    summary_id: str | None = None
    already_exists: bool = False


class SummaryRepository(Protocol):
    """Persistence collaborator."""

    def list_summaries(self, owner_id: str, layer: str) -> list[PeriodSummary]:
        """All summaries of ``layer`` for ``owner_id``."""
        ...

    def persist_parent_summary(
        self,
        owner_id: str,
        layer: str,
        period: Period,
        content: str,
        supplementary_content: str | None,
        source_child_ids: Sequence[str],
    ) -> PersistResult:
        """Store a new summary; report ``already_exists`` on a uniqueness clash."""
        ...


class Cipher(Protocol):
    """Per-owner encryption collaborator."""

    def encrypt(self, owner_id: str, plaintext: str) -> str: ...

    def decrypt(self, owner_id: str, ciphertext: str) -> str: ...


class SummaryGenerator(Protocol):
    """Turns a batch of decrypted child summaries into parent prose."""

    def generate_parent_content(
        self,
        layer: str,
        period: Period,
        children: Sequence[DecryptedChild],
        owner: Owner,
    ) -> GenerationResult: ...
