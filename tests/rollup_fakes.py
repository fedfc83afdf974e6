"""Fakes and builders shared by the rollup tests."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone

from strata.rollups.contracts import DecryptionError, GenerationResult
from strata.rollups.models import DecryptedChild, Owner, PeriodSummary
from strata.rollups.time_windows import Period
from strata.storage.summary_store import SummaryStore


class FakeCipher:
    """Reversible per-owner "encryption" for tests.

    Ciphertext is ``enc:<owner>:<plaintext>``. Anything listed in ``broken``
    fails to decrypt; plaintext starting with a ``refuse`` prefix fails to
    encrypt.
    """

    def __init__(self, broken: set[str] | None = None, refuse: tuple[str, ...] = ()) -> None:
        self.broken = broken or set()
        self.refuse = refuse
        self.decrypted: list[str] = []
        self.encrypted: list[str] = []

    def encrypt(self, owner_id: str, plaintext: str) -> str:
        if self.refuse and plaintext.startswith(self.refuse):
            raise RuntimeError("encryption key unavailable")
        self.encrypted.append(plaintext)
        return f"enc:{owner_id}:{plaintext}"

    def decrypt(self, owner_id: str, ciphertext: str) -> str:
        prefix = f"enc:{owner_id}:"
        if ciphertext in self.broken or not ciphertext.startswith(prefix):
            raise DecryptionError(f"cannot decrypt {ciphertext!r}")
        self.decrypted.append(ciphertext)
        return ciphertext[len(prefix):]


class FakeGenerator:
    """Records calls and returns canned prose."""

    def __init__(
        self,
        *,
        supplementary: str | None = "You did great",
        error: Exception | None = None,
        already_exists: bool = False,
    ) -> None:
        self.supplementary = supplementary
        self.error = error
        self.already_exists = already_exists
        self.calls: list[tuple[str, Period, list[DecryptedChild], Owner]] = []

    def generate_parent_content(
        self,
        layer: str,
        period: Period,
        children: Sequence[DecryptedChild],
        owner: Owner,
    ) -> GenerationResult:
        self.calls.append((layer, period, list(children), owner))
        if self.error is not None:
            raise self.error
        if self.already_exists:
            return GenerationResult(already_exists=True)
        joined = " | ".join(child.content for child in children)
        return GenerationResult(
            content=f"{layer} {period.start.isoformat()}: {joined}",
            supplementary_content=self.supplementary,
        )


class FixedClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_summary(
    owner_id: str,
    layer: str,
    start: date,
    end: date | None = None,
    *,
    content: str | None = None,
    summary_id: str | None = None,
) -> PeriodSummary:
    return PeriodSummary(
        id=summary_id or str(uuid.uuid4()),
        owner_id=owner_id,
        layer=layer,
        period_start=start,
        period_end=end or start,
        content=content if content is not None else f"enc:{owner_id}:{layer} {start.isoformat()}",
    )


def add_daily(store: SummaryStore, owner_id: str, start: date, days: int) -> list[PeriodSummary]:
    """Store ``days`` consecutive daily summaries starting at ``start``."""
    summaries = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        summaries.append(store.add_summary(make_summary(owner_id, "daily", day, summary_id=f"d-{owner_id}-{day}")))
    return summaries
