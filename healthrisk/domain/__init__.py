"""
HealthRisk Domain Models

Reference models, fact-table descriptors and statistic value types
"""
from .base import Base
from .reference import Disease, DiseaseFactTable, Province, Region
from .cases import CaseScope, CaseTable, FactTable, validate_identifier
from .stats import (
    AgeBucket,
    CanonicalProvince,
    CanonicalRegion,
    CategoryValue,
    Comparison,
    DateRange,
    DiseaseSelection,
    GenderCounts,
    MergedSeriesRow,
    MonthlyGenderRow,
    ProvinceCount,
    SummaryStats,
)

__all__ = [
    # Base
    "Base",
    # Reference models
    "Province",
    "Region",
    "Disease",
    "DiseaseFactTable",
    # Fact tables
    "FactTable",
    "CaseTable",
    "CaseScope",
    "validate_identifier",
    # Value types
    "AgeBucket",
    "CanonicalProvince",
    "CanonicalRegion",
    "CategoryValue",
    "Comparison",
    "DateRange",
    "DiseaseSelection",
    "GenderCounts",
    "MergedSeriesRow",
    "MonthlyGenderRow",
    "ProvinceCount",
    "SummaryStats",
]
