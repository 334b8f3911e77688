"""
HealthRisk Data

Identifier normalisation and case aggregation
"""
from .normalizers import FactTableLocator, ReferenceResolver
from .processors import CaseAggregator, merge_series

__all__ = [
    "FactTableLocator",
    "ReferenceResolver",
    "CaseAggregator",
    "merge_series",
]
