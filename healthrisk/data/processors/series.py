"""
HealthRisk Series Processing

Pure helpers that turn grouped query rows into report series: age
bucketing, gender classification, month keys and the main/compare merge.
None of these functions perform I/O.
"""
import math
import re
from collections.abc import Mapping
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence, Union

import pandas as pd

from ...domain import (
    AgeBucket,
    CategoryValue,
    DateRange,
    GenderCounts,
    MergedSeriesRow,
    MonthlyGenderRow,
    ProvinceCount,
)

AGE_BUCKETS = (
    AgeBucket("0-4", 0, 4),
    AgeBucket("5-9", 5, 9),
    AgeBucket("10-14", 10, 14),
    AgeBucket("15-19", 15, 19),
    AgeBucket("20-24", 20, 24),
    AgeBucket("25-44", 25, 44),
    AgeBucket("45-59", 45, 59),
    AgeBucket("60+", 60, 200),
)
AGE_ORDER = tuple(bucket.label for bucket in AGE_BUCKETS)

MALE_SYNONYMS = frozenset({"m", "male", "ชาย", "ผู้ชาย"})
FEMALE_SYNONYMS = frozenset({"f", "female", "หญิง", "ผู้หญิง"})
GENDER_CATEGORIES = ("male", "female", "unknown")

# Extras that do not loosely match a canonical category sort after this index
EXTRA_SENTINEL = 999

Rows = Union[pd.DataFrame, Iterable[Any]]


def coerce_value(value: Any) -> Union[int, float]:
    """Finite, non-negative number; anything else becomes 0."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number) if number.is_integer() else number


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _to_frame(rows: Rows, columns: Sequence[str]) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        return rows
    return pd.DataFrame([[_field(row, c) for c in columns] for row in rows], columns=list(columns))


# ---------------------------------------------------------------------------
# Age
# ---------------------------------------------------------------------------

def age_bucket_for(age: Any) -> Optional[str]:
    """Label of the bucket containing `age`; None for null or out-of-range ages."""
    if age is None:
        return None
    try:
        value = float(age)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    for bucket in AGE_BUCKETS:
        if bucket.contains(value):
            return bucket.label
    return None


def bucket_ages(rows: Rows, age_key: str = "age", count_key: str = "count") -> List[CategoryValue]:
    """
    Sum counts per age bucket

    Rows with a null age are excluded entirely. Every bucket is present in
    the result, in canonical order.
    """
    totals = {label: 0 for label in AGE_ORDER}
    frame = _to_frame(rows, (age_key, count_key))

    if not frame.empty:
        labels = frame[age_key].map(age_bucket_for)
        counts = frame[count_key].map(coerce_value)
        for label, value in counts.groupby(labels).sum().items():
            totals[label] += coerce_value(value)

    return [CategoryValue(label, value) for label, value in totals.items()]


def zero_age_buckets() -> List[CategoryValue]:
    return [CategoryValue(label, 0) for label in AGE_ORDER]


# ---------------------------------------------------------------------------
# Gender
# ---------------------------------------------------------------------------

def classify_gender(value: Any) -> str:
    """Free-text gender -> male / female / unknown."""
    text = str(value).strip().lower() if value is not None else ""
    if text in MALE_SYNONYMS:
        return "male"
    if text in FEMALE_SYNONYMS:
        return "female"
    return "unknown"


def summarize_gender(rows: Rows, gender_key: str = "gender", count_key: str = "count") -> GenderCounts:
    """
    Sum counts into male / female / unknown

    Every row lands in exactly one category, so the three totals add up to
    the sum of all counts.
    """
    frame = _to_frame(rows, (gender_key, count_key))
    if frame.empty:
        return GenderCounts()

    categories = frame[gender_key].map(classify_gender)
    totals = frame[count_key].map(coerce_value).groupby(categories).sum()
    return GenderCounts(**{name: int(totals.get(name, 0)) for name in GENDER_CATEGORIES})


# ---------------------------------------------------------------------------
# Months
# ---------------------------------------------------------------------------

def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_keys(date_range: DateRange) -> List[str]:
    """Every YYYY-MM key from the start month to the end month, ascending."""
    keys = []
    year, month = date_range.start.year, date_range.start.month
    while (year, month) <= (date_range.end.year, date_range.end.month):
        keys.append(f"{year:04d}-{month:02d}")
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return keys


def _month_series(frame: pd.DataFrame, date_key: str) -> pd.Series:
    return pd.to_datetime(frame[date_key], errors="coerce").dt.strftime("%Y-%m")


def monthly_counts(
    rows: Rows,
    date_range: Optional[DateRange] = None,
    date_key: str = "day",
    count_key: str = "count",
) -> List[CategoryValue]:
    """
    Sum counts per calendar month of the stored date

    With a date range every month in it is present, zero filled.
    """
    totals = {key: 0 for key in month_keys(date_range)} if date_range else {}
    frame = _to_frame(rows, (date_key, count_key))

    if not frame.empty:
        months = _month_series(frame, date_key)
        for key, value in frame[count_key].map(coerce_value).groupby(months).sum().items():
            totals[key] = totals.get(key, 0) + coerce_value(value)

    return [CategoryValue(key, totals[key]) for key in sorted(totals)]


def monthly_gender_counts(
    rows: Rows,
    date_range: Optional[DateRange] = None,
    date_key: str = "day",
    gender_key: str = "gender",
    count_key: str = "count",
) -> List[MonthlyGenderRow]:
    """Male and female counts per month; unknown gender is left out."""
    table = {key: MonthlyGenderRow(key) for key in month_keys(date_range)} if date_range else {}
    frame = _to_frame(rows, (date_key, gender_key, count_key))

    if not frame.empty:
        grouped = (
            frame.assign(
                month=_month_series(frame, date_key),
                category=frame[gender_key].map(classify_gender),
                value=frame[count_key].map(coerce_value),
            )
            .dropna(subset=["month"])
            .groupby(["month", "category"])["value"]
            .sum()
        )
        for (key, category), value in grouped.items():
            if category == "unknown":
                continue
            row = table.setdefault(key, MonthlyGenderRow(key))
            setattr(row, category, getattr(row, category) + int(value))

    return [table[key] for key in sorted(table)]


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

def _loose(category: str) -> str:
    return re.sub(r"\s+", "", category).lower()


def _value_map(rows: Iterable[Any], category_key: str, value_key: str) -> dict:
    values: dict = {}
    for row in rows or ():
        category = _field(row, category_key)
        if category is None:
            continue
        key = str(category).strip()
        values[key] = values.get(key, 0) + coerce_value(_field(row, value_key))
    return values


def merge_series(
    main_rows: Iterable[Any],
    compare_rows: Iterable[Any],
    canonical_order: Sequence[str],
    category_key: str = "category",
    value_key: str = "value",
) -> List[MergedSeriesRow]:
    """
    Merge two independently fetched breakdowns

    Args:
        main_rows, compare_rows: rows (mappings or objects) holding a
            category and a value
        canonical_order: categories always emitted, in this order
        category_key, value_key: field names inside the rows

    Returns:
        One row per canonical category (absent values are 0), followed by
        categories outside the canonical order. Those extras are sorted by
        the index of a canonical category they loosely match (case and
        whitespace ignored), else after all of them, then by name.
    """
    main = _value_map(main_rows, category_key, value_key)
    compare = _value_map(compare_rows, category_key, value_key)

    canonical = list(dict.fromkeys(str(c).strip() for c in canonical_order))
    known = set(canonical)
    loose_index = {}
    for index, category in enumerate(canonical):
        loose_index.setdefault(_loose(category), index)

    extras = {key for key in (*main, *compare) if key not in known}
    ordered_extras = sorted(extras, key=lambda key: (loose_index.get(_loose(key), EXTRA_SENTINEL), key))

    return [
        MergedSeriesRow(category, main.get(category, 0), compare.get(category, 0))
        for category in canonical + ordered_extras
    ]


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------

def top_with_selected(rows: Sequence[ProvinceCount], selected: Iterable[str], limit: int = 5) -> List[ProvinceCount]:
    """
    Top `limit` rows by patients, always keeping the selected provinces

    Selected provinces are kept first; remaining slots go to the highest
    counts. The result is ordered by patients, descending.
    """
    wanted = {name.strip() for name in selected if name and name.strip()}
    ordered = sorted(rows, key=lambda r: (-r.patients, r.province))

    kept = [r for r in ordered if r.province in wanted][: max(limit, 0)]
    others = [r for r in ordered if r.province not in wanted]
    kept += others[: max(limit - len(kept), 0)]

    return sorted(kept, key=lambda r: (-r.patients, r.province))
