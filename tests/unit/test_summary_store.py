"""Tests for the SQLite summary store."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from rollup_fakes import make_summary
from strata.rollups.contracts import SummaryExistsError
from strata.rollups.time_windows import window_for
from strata.storage.summary_store import SummaryStore, create_summary_store


class TestSummaryStore:
    def test_create_store(self, tmp_path):
        db_path = tmp_path / "nested" / "summaries.db"

        with create_summary_store(db_path) as store:
            assert store.db_path == db_path
            assert db_path.exists()

    def test_in_memory_store(self):
        with SummaryStore(":memory:") as store:
            assert store.list_summaries("alice", "weekly") == []

    def test_add_and_get(self, store):
        summary = make_summary("alice", "weekly", date(2024, 1, 1), date(2024, 1, 7))
        store.add_summary(summary)

        loaded = store.get_summary("alice", "weekly", date(2024, 1, 1))

        assert loaded == summary

    def test_round_trips_optional_fields(self, store):
        summary = make_summary("alice", "weekly", date(2024, 1, 1), date(2024, 1, 7))
        summary = replace(summary, supplementary_content="enc:alice:yay", source_child_ids=("d1", "d2"))
        store.add_summary(summary)

        loaded = store.get_summary("alice", "weekly", date(2024, 1, 1))

        assert loaded.supplementary_content == "enc:alice:yay"
        assert loaded.source_child_ids == ("d1", "d2")

    def test_list_is_ordered_and_scoped(self, store):
        store.add_summary(make_summary("alice", "weekly", date(2024, 1, 8)))
        store.add_summary(make_summary("alice", "weekly", date(2024, 1, 1)))
        store.add_summary(make_summary("alice", "monthly", date(2024, 1, 1)))
        store.add_summary(make_summary("bob", "weekly", date(2024, 1, 15)))

        weekly = store.list_summaries("alice", "weekly")

        assert [s.period_start for s in weekly] == [date(2024, 1, 1), date(2024, 1, 8)]
        assert store.count() == 4
        assert store.count(owner_id="alice") == 3
        assert store.count(owner_id="alice", layer="weekly") == 2

    def test_duplicate_period_rejected(self, store):
        store.add_summary(make_summary("alice", "weekly", date(2024, 1, 1)))

        with pytest.raises(SummaryExistsError):
            store.add_summary(make_summary("alice", "weekly", date(2024, 1, 1)))

        assert store.count() == 1

    def test_same_period_other_owner_or_layer_allowed(self, store):
        store.add_summary(make_summary("alice", "weekly", date(2024, 1, 1)))
        store.add_summary(make_summary("bob", "weekly", date(2024, 1, 1)))
        store.add_summary(make_summary("alice", "monthly", date(2024, 1, 1)))

        assert store.count() == 3

    def test_unknown_layer_rejected(self, store):
        with pytest.raises(ValueError):
            store.list_summaries("alice", "hourly")


class TestPersistParentSummary:
    def test_persist_success(self, store):
        period = window_for(date(2024, 1, 1), "weekly")

        result = store.persist_parent_summary("alice", "weekly", period, "enc:alice:x", None, ["d1", "d2"])

        assert result.success is True
        assert result.already_exists is False
        saved = store.get_summary("alice", "weekly", date(2024, 1, 1))
        assert saved.id == result.summary_id
        assert saved.period_end == date(2024, 1, 7)
        assert saved.source_child_ids == ("d1", "d2")

    def test_persist_reports_existing(self, store):
        period = window_for(date(2024, 1, 1), "weekly")
        first = store.persist_parent_summary("alice", "weekly", period, "enc:alice:x", None, [])

        second = store.persist_parent_summary("alice", "weekly", period, "enc:alice:y", None, [])

        assert second.success is False
        assert second.already_exists is True
        assert second.summary_id == first.summary_id
        assert store.get_summary("alice", "weekly", date(2024, 1, 1)).content == "enc:alice:x"
