"""
Dashboard service: request scopes and main/compare composition
"""
from datetime import date

import pytest

from healthrisk.core.cache import LookupCache
from healthrisk.core.config import AppSettings
from healthrisk.core.errors import InvalidArgumentError, NotFoundError
from healthrisk.dashboard import DashboardService
from healthrisk.data.normalizers import FactTableLocator, ReferenceResolver
from healthrisk.data.processors import CaseAggregator
from healthrisk.data.processors.series import AGE_ORDER
from healthrisk.domain import FactTable

from conftest import DISEASES, FACT_TABLES, PROVINCES, REGIONS, FakeDatabase, FakeResult, param, reference_handler

JANUARY = {"start_date": "2024-01-01", "end_date": "2024-01-31"}


def build_service(fact_handler=None, fact_tables=FACT_TABLES):
    """Service whose reference queries hit the shared fixtures and fact queries `fact_handler`."""
    reference = reference_handler(PROVINCES, REGIONS, DISEASES, fact_tables)
    table_names = [f"{f['schema_name']}.{f['table_name']}" for f in fact_tables] + ["public.d01_influenza"]

    def handle(statement):
        sql = str(statement)
        if any(name in sql for name in table_names):
            return fact_handler(statement) if fact_handler else FakeResult()
        return reference(statement)

    database = FakeDatabase(handle)
    settings = AppSettings()
    service = DashboardService(
        resolver=ReferenceResolver(database),
        locator=FactTableLocator(database, settings.fact_tables),
        aggregator=CaseAggregator(database, settings.fact_tables),
        settings=settings,
    )
    return service, database


def fact_sql(database):
    return [sql for sql in database.sql if "d01_influenza" in sql or "d02_dengue" in sql]


class TestScope:
    @pytest.mark.asyncio
    async def test_invalid_date_fails_before_any_query(self):
        service, database = build_service()

        with pytest.raises(InvalidArgumentError) as exc_info:
            await service.age_groups("50", disease="D01", start_date="2024-01-01", end_date="not-a-date")

        assert exc_info.value.field == "end_date"
        assert database.statements == []

    @pytest.mark.asyncio
    async def test_default_table_without_disease(self):
        service, database = build_service()

        scope = await service.scope("50", **JANUARY)

        assert scope.fact_table == FactTable("public", "d01_influenza")
        assert scope.disease_code is None
        assert scope.province.province_id == 50
        assert not any("disease_fact_tables" in sql for sql in database.sql)

    @pytest.mark.asyncio
    async def test_disease_selects_fact_table(self):
        service, _ = build_service()
        scope = await service.scope("เชียงใหม่", disease="ไข้เลือดออก", **JANUARY)
        assert scope.fact_table.qualified_name == "cases.d02_dengue"
        assert scope.disease_code == "D02"
        assert scope.date_range.start == date(2024, 1, 1)

    @pytest.mark.asyncio
    async def test_unknown_disease_id(self):
        service, _ = build_service()
        with pytest.raises(NotFoundError) as exc_info:
            await service.gender("50", disease_id="42", **JANUARY)
        assert exc_info.value.what == "disease"
        assert str(exc_info.value) == "No disease found with id '42'"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("disease", ["7", "07", "d7", "D07"])
    async def test_unlisted_disease_filters_on_mapped_code(self, disease):
        measles = [{"disease_code": "D07", "schema_name": "public", "table_name": "d07_measles"}]
        bound = []

        def gender_rows(statement):
            bound.append(param(statement, "disease_code"))
            return FakeResult([{"gender": "M", "count": 3}], keys=["gender", "count"])

        service, _ = build_service(gender_rows, fact_tables=measles)

        counts = await service.gender("50", disease=disease, **JANUARY)

        assert bound == ["D07"]
        assert counts.male == 3

    @pytest.mark.asyncio
    async def test_unknown_disease_code(self):
        service, _ = build_service()
        with pytest.raises(NotFoundError):
            await service.gender("50", disease="UNKNOWN_CODE", **JANUARY)

    @pytest.mark.asyncio
    async def test_all_provinces(self):
        service, database = build_service()

        scope = await service.scope("ทุกจังหวัด", **JANUARY)

        assert scope.all_provinces
        assert not scope.is_empty
        assert not any("provinces_moph" in sql for sql in database.sql)


class TestSingleProvince:
    @pytest.mark.asyncio
    async def test_unresolved_province_gives_zero_results(self):
        service, database = build_service()

        rows = await service.age_groups("ไม่มีจังหวัดนี้", disease="D01", **JANUARY)

        assert [r.value for r in rows] == [0] * len(AGE_ORDER)
        assert fact_sql(database) == []

    @pytest.mark.asyncio
    async def test_summary(self):
        service, _ = build_service(lambda statement: FakeResult([{"count": 62}]))

        result = await service.summary("50", disease="D01", **JANUARY)

        assert result == {
            "patients": {"total": 62, "avgPerDay": 2, "cumulative": 62},
            "deaths": {"total": 62, "avgPerDay": 2, "cumulative": 62},
        }


def by_province(rows_by_name, keys):
    def handle(statement):
        return FakeResult(rows_by_name.get(param(statement, "province"), []), keys=keys)

    return handle


class TestComparison:
    @pytest.mark.asyncio
    async def test_compare_age_groups(self):
        service, _ = build_service(
            by_province(
                {"เชียงใหม่": [{"age": 3, "count": 3}], "กรุงเทพมหานคร": [{"age": 7, "count": 7}]},
                keys=["age", "count"],
            )
        )

        rows = await service.compare_age_groups("50", "10", disease="1", **JANUARY)

        assert len(rows) == len(AGE_ORDER)
        assert rows[0].to_dict() == {"category": "0-4", "mainValue": 3, "compareValue": 0}
        assert rows[1].to_dict() == {"category": "5-9", "mainValue": 0, "compareValue": 7}
        assert all((r.main_value, r.compare_value) == (0, 0) for r in rows[2:])

    @pytest.mark.asyncio
    async def test_compare_gender_with_unresolved_side(self):
        service, _ = build_service(
            by_province({"เชียงใหม่": [{"gender": "F", "count": 4}]}, keys=["gender", "count"])
        )

        result = await service.compare_gender("เชียงใหม่", "ไม่มีจังหวัดนี้", **JANUARY)

        assert result.to_dict() == {
            "main": {"male": 0, "female": 4, "unknown": 0},
            "compare": {"male": 0, "female": 0, "unknown": 0},
        }

    @pytest.mark.asyncio
    async def test_compare_trend_covers_every_month(self):
        service, _ = build_service(
            by_province(
                {
                    "เชียงใหม่": [{"day": date(2024, 2, 10), "count": 5}],
                    "เชียงราย": [{"day": date(2024, 1, 2), "count": 1}],
                },
                keys=["day", "count"],
            )
        )

        rows = await service.compare_trend("50", "57", start_date="2024-01-01", end_date="2024-03-31")

        assert [r.to_dict() for r in rows] == [
            {"category": "2024-01", "mainValue": 0, "compareValue": 1},
            {"category": "2024-02", "mainValue": 5, "compareValue": 0},
            {"category": "2024-03", "mainValue": 0, "compareValue": 0},
        ]


def region_counts(statement):
    if param(statement, "region_id") == 1:
        rows = [
            {"province": "เชียงใหม่", "patients": 10},
            {"province": "เชียงราย", "patients": 4},
            {"province": "ลำปาง", "patients": 20},
            {"province": "น่าน", "patients": 7},
        ]
    else:
        rows = [{"province": "กรุงเทพมหานคร", "patients": 50}]
    return FakeResult(rows, keys=["province", "patients"])


class TestRegionTop:
    @pytest.mark.asyncio
    async def test_same_region_gives_single_ranking(self):
        service, _ = build_service(region_counts)

        result = await service.compare_region_top("50", "57", limit=3, **JANUARY)
        data = result.to_dict()

        assert data["sameRegion"] is True
        assert data["compare"] == []
        assert data["main"] == [
            {"province": "ลำปาง", "patients": 20, "rank": 1},
            {"province": "เชียงใหม่", "patients": 10, "rank": 2, "isMain": True},
            {"province": "เชียงราย", "patients": 4, "rank": 4, "isCompare": True},
        ]

    @pytest.mark.asyncio
    async def test_different_regions(self):
        service, _ = build_service(region_counts)

        result = await service.compare_region_top("เชียงราย", "10", limit=2, **JANUARY)

        assert result.meta == {"sameRegion": False}
        assert [(r.province, r.is_main) for r in result.main] == [("ลำปาง", False), ("เชียงราย", True)]
        assert [(r.province, r.is_compare) for r in result.compare] == [("กรุงเทพมหานคร", True)]


@pytest.mark.asyncio
async def test_create_and_close():
    service = DashboardService.create(AppSettings())

    assert isinstance(service.cache, LookupCache)
    assert service.database is not None

    await service.close()
