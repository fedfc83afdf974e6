"""Summary persistence."""

from .summary_store import SummaryStore, create_summary_store

__all__ = ["SummaryStore", "create_summary_store"]
