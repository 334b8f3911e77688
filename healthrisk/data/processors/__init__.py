"""
HealthRisk Data Processors

Date parsing, series reshaping and the case aggregation queries
"""

from .aggregator import CaseAggregator
from .dates import resolve_date_range
from .series import (
    AGE_BUCKETS,
    AGE_ORDER,
    classify_gender,
    merge_series,
    summarize_gender,
)

__all__ = [
    "CaseAggregator",
    "resolve_date_range",
    "AGE_BUCKETS",
    "AGE_ORDER",
    "classify_gender",
    "merge_series",
    "summarize_gender",
]
