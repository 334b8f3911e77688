"""
HealthRisk Data Normalizers

Identifier resolution against reference data and fact-table location
"""

from .codes import disease_candidates
from .fact_table import FactTableLocator
from .reference_resolver import ReferenceResolver, is_all_provinces

__all__ = [
    "disease_candidates",
    "FactTableLocator",
    "ReferenceResolver",
    "is_all_provinces",
]
