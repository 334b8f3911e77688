"""
HealthRisk Dashboard Service

Composes resolution, fact-table location and aggregation for dashboard and
province-comparison requests. Main and compare sides are queried
concurrently; if either fails the whole call fails.
"""
import asyncio
from typing import Any, Dict, List, Optional

from ..core.cache import create_cache
from ..core.config import AppSettings, get_config
from ..core.database import Database
from ..core.errors import NotFoundError
from ..core.logging import get_logger
from ..data.normalizers import FactTableLocator, ReferenceResolver, is_all_provinces
from ..data.processors import CaseAggregator, resolve_date_range
from ..data.processors.series import AGE_ORDER, merge_series, month_keys
from ..domain import CaseScope, CategoryValue, Comparison, GenderCounts, MergedSeriesRow, MonthlyGenderRow

logger = get_logger(__name__)


class DashboardService:
    """
    Request-level entry point

    Build one instance at process start with `create()` (or inject the
    collaborators directly) and call `close()` on shutdown.
    """

    def __init__(
        self,
        resolver: ReferenceResolver,
        locator: FactTableLocator,
        aggregator: CaseAggregator,
        settings: Optional[AppSettings] = None,
        database: Optional[Database] = None,
        cache=None,
    ):
        self.resolver = resolver
        self.locator = locator
        self.aggregator = aggregator
        self.settings = settings or get_config()
        self.database = database
        self.cache = cache

    @classmethod
    def create(cls, settings: Optional[AppSettings] = None) -> "DashboardService":
        settings = settings or get_config()
        database = Database(settings.database)
        cache = create_cache(settings.cache)
        return cls(
            resolver=ReferenceResolver(database, cache),
            locator=FactTableLocator(database, settings.fact_tables),
            aggregator=CaseAggregator(database, settings.fact_tables),
            settings=settings,
            database=database,
            cache=cache,
        )

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.close()
        if self.database is not None:
            await self.database.close()

    # ------------------------------------------------------------------
    # Scope resolution
    # ------------------------------------------------------------------

    async def base_scope(
        self,
        disease: Optional[str] = None,
        disease_id: Optional[str] = None,
        start_date=None,
        end_date=None,
    ) -> CaseScope:
        """Date range, disease and fact table shared by both sides of a request"""
        date_range = resolve_date_range(start_date, end_date, self.settings.dates)

        selection = await self.resolver.resolve_disease(disease_id=disease_id, disease=disease)
        if selection.disease_id is not None and selection.code is None:
            raise NotFoundError(str(selection.disease_id), what="disease")

        disease_code = selection.code
        if selection.is_empty:
            fact_table = self.locator.default_table()
        else:
            # Filter on the code as the mapping stores it; the resolver may
            # have handed back an unlisted spelling such as "7"
            disease_code, fact_table = await self.locator.locate(selection.code)

        return CaseScope(fact_table=fact_table, date_range=date_range, disease_code=disease_code)

    async def province_scope(self, base: CaseScope, province: Optional[str]) -> CaseScope:
        if is_all_provinces(province):
            return base.with_province(None, all_provinces=True)
        resolved = await self.resolver.resolve_province(province)
        if resolved is None:
            logger.info(f"Province not resolved, returning empty aggregates: {province!r}")
        return base.with_province(resolved)

    async def scope(self, province: Optional[str], **request) -> CaseScope:
        base = await self.base_scope(**request)
        return await self.province_scope(base, province)

    async def compare_scopes(self, main_province: Optional[str], compare_province: Optional[str], **request):
        base = await self.base_scope(**request)
        return await asyncio.gather(
            self.province_scope(base, main_province),
            self.province_scope(base, compare_province),
        )

    # ------------------------------------------------------------------
    # Single province
    # ------------------------------------------------------------------

    async def age_groups(self, province: Optional[str], deaths: bool = False, **request) -> List[CategoryValue]:
        return await self.aggregator.age_groups(await self.scope(province, **request), deaths=deaths)

    async def gender(self, province: Optional[str], deaths: bool = False, **request) -> GenderCounts:
        return await self.aggregator.gender_counts(await self.scope(province, **request), deaths=deaths)

    async def trend(self, province: Optional[str], deaths: bool = False, **request) -> List[CategoryValue]:
        return await self.aggregator.monthly_trend(await self.scope(province, **request), deaths=deaths)

    async def gender_trend(self, province: Optional[str], **request) -> List[MonthlyGenderRow]:
        return await self.aggregator.gender_trend(await self.scope(province, **request))

    async def summary(self, province: Optional[str], **request) -> Dict[str, Any]:
        scope = await self.scope(province, **request)
        patients, deaths = await asyncio.gather(
            self.aggregator.patients_summary(scope),
            self.aggregator.deaths_summary(scope),
        )
        return {"patients": patients.to_dict(), "deaths": deaths.to_dict()}

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    async def compare_age_groups(
        self,
        main_province: Optional[str],
        compare_province: Optional[str],
        deaths: bool = False,
        **request,
    ) -> List[MergedSeriesRow]:
        main_scope, compare_scope = await self.compare_scopes(main_province, compare_province, **request)
        main_rows, compare_rows = await asyncio.gather(
            self.aggregator.age_groups(main_scope, deaths=deaths),
            self.aggregator.age_groups(compare_scope, deaths=deaths),
        )
        return merge_series(main_rows, compare_rows, AGE_ORDER)

    async def compare_gender(
        self,
        main_province: Optional[str],
        compare_province: Optional[str],
        deaths: bool = False,
        **request,
    ) -> Comparison:
        main_scope, compare_scope = await self.compare_scopes(main_province, compare_province, **request)
        main, compare = await asyncio.gather(
            self.aggregator.gender_counts(main_scope, deaths=deaths),
            self.aggregator.gender_counts(compare_scope, deaths=deaths),
        )
        return Comparison(main=main, compare=compare)

    async def compare_trend(
        self,
        main_province: Optional[str],
        compare_province: Optional[str],
        deaths: bool = False,
        **request,
    ) -> List[MergedSeriesRow]:
        main_scope, compare_scope = await self.compare_scopes(main_province, compare_province, **request)
        main_rows, compare_rows = await asyncio.gather(
            self.aggregator.monthly_trend(main_scope, deaths=deaths),
            self.aggregator.monthly_trend(compare_scope, deaths=deaths),
        )
        return merge_series(main_rows, compare_rows, month_keys(main_scope.date_range))

    async def compare_region_top(
        self,
        main_province: Optional[str],
        compare_province: Optional[str],
        limit: int = 5,
        **request,
    ) -> Comparison:
        """
        Top provinces of each selected province's region

        When both provinces share a region a single ranking is returned as
        `main` and `compare` is empty.
        """
        main_scope, compare_scope = await self.compare_scopes(main_province, compare_province, **request)
        main_name = main_scope.province.name_th if main_scope.province else None
        compare_name = compare_scope.province.name_th if compare_scope.province else None
        main_region = main_scope.province.region_id if main_scope.province else None
        compare_region = compare_scope.province.region_id if compare_scope.province else None

        same_region = main_region is not None and main_region == compare_region

        async def _ranking(region_id, selected):
            if region_id is None:
                return []
            return await self.aggregator.region_top_provinces(main_scope, region_id, selected, limit)

        if same_region:
            main_rows = await _ranking(main_region, [main_name, compare_name])
            compare_rows = []
        else:
            main_rows, compare_rows = await asyncio.gather(
                _ranking(main_region, [main_name]),
                _ranking(compare_region, [compare_name]),
            )

        for row in [*main_rows, *compare_rows]:
            row.is_main = row.province == main_name
            row.is_compare = row.province == compare_name

        return Comparison(main=main_rows, compare=compare_rows, meta={"sameRegion": same_region})
