"""Strata - hierarchical temporal summary rollups.

Turns per-day summaries into weekly, monthly and yearly summaries, one
period per pass, never before a period has closed.
"""

__version__ = "0.1.0"
