"""
wallboard/aggregators — snapshot → ordered, filtered, counted view.
"""

from wallboard.aggregators.filters import FILTERS, filter_records, is_upcoming
from wallboard.aggregators.grouping import SORT_KEYS, group_linked, sort_and_group, sort_records
from wallboard.aggregators.presentation import UIState, View, ViewRow, build_view
from wallboard.aggregators.stats import Stats, badge_for, badge_update, compute_stats

__all__ = [
    "FILTERS",
    "SORT_KEYS",
    "Stats",
    "UIState",
    "View",
    "ViewRow",
    "badge_for",
    "badge_update",
    "build_view",
    "compute_stats",
    "filter_records",
    "group_linked",
    "is_upcoming",
    "sort_and_group",
    "sort_records",
]
