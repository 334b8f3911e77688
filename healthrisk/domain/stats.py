"""
HealthRisk statistic value types

Plain dataclasses returned by resolvers and aggregations. `to_dict()` gives
the JSON-ready form; numeric fields are never None.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CanonicalProvince:
    province_id: int
    name_th: str
    region_id: Optional[int] = None
    region_moph: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provinceId": self.province_id,
            "nameTh": self.name_th,
            "regionId": self.region_id,
            "regionMoph": self.region_moph,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanonicalProvince":
        return cls(
            province_id=int(data["provinceId"]),
            name_th=data["nameTh"],
            region_id=data.get("regionId"),
            region_moph=data.get("regionMoph") or "",
        )


@dataclass(frozen=True)
class CanonicalRegion:
    region_id: int
    name_th: str
    display_order: int

    def to_dict(self) -> Dict[str, Any]:
        return {"regionId": self.region_id, "nameTh": self.name_th, "displayOrder": self.display_order}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanonicalRegion":
        return cls(
            region_id=int(data["regionId"]),
            name_th=data["nameTh"],
            display_order=int(data["displayOrder"]),
        )


@dataclass(frozen=True)
class DiseaseSelection:
    """Disease filter of a request; both fields None means every disease."""

    code: Optional[str] = None
    disease_id: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.code is None


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range"""

    start: date
    end: date

    @property
    def days(self) -> int:
        return max(1, (self.end - self.start).days + 1)


@dataclass(frozen=True)
class AgeBucket:
    label: str
    min_age: int
    max_age: int

    def contains(self, age: float) -> bool:
        return self.min_age <= age <= self.max_age


@dataclass
class CategoryValue:
    category: str
    value: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "value": self.value}


@dataclass
class MergedSeriesRow:
    category: str
    main_value: float = 0
    compare_value: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "mainValue": self.main_value, "compareValue": self.compare_value}


@dataclass
class GenderCounts:
    male: int = 0
    female: int = 0
    unknown: int = 0

    @property
    def total(self) -> int:
        return self.male + self.female + self.unknown

    def to_dict(self) -> Dict[str, Any]:
        return {"male": self.male, "female": self.female, "unknown": self.unknown}


@dataclass
class MonthlyGenderRow:
    month: str
    male: int = 0
    female: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"month": self.month, "male": self.male, "female": self.female}


@dataclass
class SummaryStats:
    total: int = 0
    avg_per_day: int = 0
    cumulative: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "avgPerDay": self.avg_per_day, "cumulative": self.cumulative}


@dataclass
class ProvinceCount:
    province: str
    patients: int = 0
    rank: Optional[int] = None
    is_main: bool = False
    is_compare: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {"province": self.province, "patients": self.patients}
        if self.rank is not None:
            data["rank"] = self.rank
        if self.is_main:
            data["isMain"] = True
        if self.is_compare:
            data["isCompare"] = True
        return data


@dataclass
class Comparison:
    """Main and compare results of the same aggregate"""

    main: Any
    compare: Any
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        def _dump(value):
            if isinstance(value, list):
                return [_dump(v) for v in value]
            return value.to_dict() if hasattr(value, "to_dict") else value

        data = {"main": _dump(self.main), "compare": _dump(self.compare)}
        data.update(self.meta)
        return data
