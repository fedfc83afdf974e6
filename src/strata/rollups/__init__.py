"""Hierarchical period rollups: windows, maturation, grouping and gap location."""

from .contracts import (
    Cipher,
    DecryptionError,
    GenerationError,
    GenerationResult,
    PersistenceError,
    PersistResult,
    RollupError,
    SummaryExistsError,
    SummaryGenerator,
    SummaryRepository,
)
from .gaps import Gap, find_gap, next_gap_key
from .grouping import group_children
from .layers import CHILD_LAYER, LAYERS, ROLLUP_LAYERS, LayerPolicy, get_layer_policy
from .maturation import closes_at, is_closed
from .models import DecryptedChild, Owner, PeriodSummary
from .time_windows import Period, compute_boundaries_utc, get_week_start, next_period, window_for

__all__ = [
    # Layers
    "CHILD_LAYER",
    "LAYERS",
    "ROLLUP_LAYERS",
    "LayerPolicy",
    "get_layer_policy",
    # Records
    "DecryptedChild",
    "Owner",
    "PeriodSummary",
    # Time windows
    "Period",
    "compute_boundaries_utc",
    "get_week_start",
    "next_period",
    "window_for",
    # Scheduling
    "Gap",
    "closes_at",
    "find_gap",
    "group_children",
    "is_closed",
    "next_gap_key",
    # Collaborators
    "Cipher",
    "GenerationResult",
    "PersistResult",
    "SummaryGenerator",
    "SummaryRepository",
    # Errors
    "DecryptionError",
    "GenerationError",
    "PersistenceError",
    "RollupError",
    "SummaryExistsError",
]
