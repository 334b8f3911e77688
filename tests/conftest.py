"""
Shared test fixtures

`FakeDatabase` stands in for `healthrisk.core.Database`: it records every
executed SQLAlchemy statement and answers with canned rows.
"""
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeMappings:
    def __init__(self, rows: List[Dict[str, Any]]):
        self._rows = rows

    def first(self):
        return self._rows[0] if self._rows else None

    def all(self):
        return list(self._rows)


class FakeResult:
    """Subset of sqlalchemy Result used by the package"""

    def __init__(self, rows: Iterable[Dict[str, Any]] = (), keys: Optional[Sequence[str]] = None):
        self.rows = [dict(r) for r in rows]
        self._keys = list(keys) if keys is not None else (list(self.rows[0]) if self.rows else [])

    def keys(self):
        return list(self._keys)

    def mappings(self):
        return FakeMappings(self.rows)

    def fetchall(self):
        return [tuple(row.get(k) for k in self._keys) for row in self.rows]

    def scalar(self):
        if not self.rows:
            return None
        return next(iter(self.rows[0].values()))


class FakeSession:
    def __init__(self, database: "FakeDatabase"):
        self.database = database

    async def execute(self, statement):
        self.database.statements.append(statement)
        return self.database.handler(statement)


class FakeDatabase:
    """
    Records statements; `handler(statement)` produces each result

    Use `FakeDatabase.queue(...)` to answer with results in call order.
    """

    def __init__(self, handler: Optional[Callable[[Any], FakeResult]] = None):
        self.handler = handler or (lambda statement: FakeResult())
        self.statements: List[Any] = []
        self.closed = False

    @classmethod
    def queue(cls, *results: FakeResult) -> "FakeDatabase":
        pending = list(results)
        return cls(lambda statement: pending.pop(0) if pending else FakeResult())

    @asynccontextmanager
    async def session(self):
        yield FakeSession(self)

    async def close(self):
        self.closed = True

    @property
    def sql(self) -> List[str]:
        return [str(s) for s in self.statements]


def list_params(statement) -> List[Any]:
    """Values of the IN (...) parameters of a statement, flattened."""
    values = []
    for value in statement.compile().params.values():
        if isinstance(value, (list, tuple)):
            values.extend(value)
    return values


def param(statement, prefix: str) -> Any:
    """Value of the first bound parameter whose name starts with `prefix`."""
    for key, value in statement.compile().params.items():
        if key.startswith(prefix):
            return value
    return None


def reference_handler(
    provinces: Sequence[Dict[str, Any]] = (),
    regions: Sequence[Dict[str, Any]] = (),
    diseases: Sequence[Dict[str, Any]] = (),
    fact_tables: Sequence[Dict[str, Any]] = (),
):
    """Answer reference-table queries from in-memory rows."""

    def handle(statement) -> FakeResult:
        sql = str(statement)
        candidates = list_params(statement)

        if "provinces_moph" in sql:
            if "province_no =" in sql:
                rows = [p for p in provinces if p["province_no"] == param(statement, "province_no")]
            else:
                rows = [p for p in provinces if p["province_name_th"] == param(statement, "province_name_th")]
            return FakeResult(rows[:1], keys=["province_no", "province_name_th", "region_id", "region_moph"])

        if "regions_moph" in sql:
            if "region_id =" in sql:
                rows = [r for r in regions if r["region_id"] == param(statement, "region_id")]
            else:
                rows = [r for r in regions if r["region_name_th"] == param(statement, "region_name_th")]
            return FakeResult(rows[:1], keys=["region_id", "region_name_th", "display_order"])

        if "disease_fact_tables" in sql:
            rows = [
                {"disease_code": f["disease_code"], "schema_name": f["schema_name"], "table_name": f["table_name"]}
                for f in fact_tables
                if f.get("is_active", True) and f["disease_code"] in candidates
            ]
            return FakeResult(rows[:1], keys=["disease_code", "schema_name", "table_name"])

        if "diseases" in sql:
            if "diseases.disease_id =" in sql:
                rows = [d for d in diseases if d["disease_id"] == param(statement, "disease_id")]
            elif "diseases.code IN" in sql:
                rows = [d for d in diseases if d["code"] in candidates]
            else:
                rows = [d for d in diseases if d["name_th"] in candidates or d.get("name_en") in candidates]
            rows = sorted(rows, key=lambda d: d["code"])
            return FakeResult([{"code": d["code"]} for d in rows[:1]], keys=["code"])

        return FakeResult()

    return handle


PROVINCES = [
    {"province_no": 10, "province_name_th": "กรุงเทพมหานคร", "region_id": 13, "region_moph": "เขตสุขภาพที่ 13"},
    {"province_no": 50, "province_name_th": "เชียงใหม่", "region_id": 1, "region_moph": "เขตสุขภาพที่ 1"},
    {"province_no": 57, "province_name_th": "เชียงราย", "region_id": 1, "region_moph": "เขตสุขภาพที่ 1"},
]

REGIONS = [
    {"region_id": 1, "region_name_th": "ภาคเหนือ", "display_order": 1},
    {"region_id": 13, "region_name_th": "กรุงเทพและปริมณฑล", "display_order": 13},
]

DISEASES = [
    {"disease_id": 1, "code": "D01", "name_th": "ไข้หวัดใหญ่", "name_en": "Influenza"},
    {"disease_id": 2, "code": "D02", "name_th": "ไข้เลือดออก", "name_en": "Dengue fever"},
]

FACT_TABLES = [
    {"disease_code": "D01", "schema_name": "public", "table_name": "d01_influenza", "is_active": True},
    {"disease_code": "D02", "schema_name": "public", "table_name": "d02_old", "is_active": False},
    {"disease_code": "D02", "schema_name": "cases", "table_name": "d02_dengue", "is_active": True},
]


@pytest.fixture
def reference_db():
    return FakeDatabase(reference_handler(PROVINCES, REGIONS, DISEASES, FACT_TABLES))
