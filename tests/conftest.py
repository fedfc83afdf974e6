"""Shared fixtures for rollup tests."""

from __future__ import annotations

import pytest

from rollup_fakes import FakeCipher, FakeGenerator
from strata.rollups.models import Owner
from strata.storage.summary_store import SummaryStore


@pytest.fixture
def store(tmp_path):
    summary_store = SummaryStore(tmp_path / "summaries.db")
    yield summary_store
    summary_store.close()


@pytest.fixture
def owner():
    return Owner("alice", timezone="UTC", fields_of_study="marine biology")


@pytest.fixture
def cipher():
    return FakeCipher()


@pytest.fixture
def generator():
    return FakeGenerator()
