# ptbooking/services/availability/__init__.py
"""
Availability module.

Settings store: the single availability document on disk, advisory-locked
Evaluator: selectable days and offerable hours (pure)
"""

from .evaluator import (
    HourSlot,
    bookable_hours,
    compute_offerable_hours,
    is_date_selectable,
    resolve_day_kind,
)
from .settings_store import SettingsStore, default_settings

__all__ = [
    "HourSlot",
    "bookable_hours",
    "compute_offerable_hours",
    "is_date_selectable",
    "resolve_day_kind",
    "SettingsStore",
    "default_settings",
]
