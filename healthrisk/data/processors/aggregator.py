"""
HealthRisk Case Aggregator

Grouped statistics over a located fact table. SQL does the grouping on the
raw columns (age, gender, date); bucketing and reshaping happen in pandas on
the grouped rows.
"""
import math
from datetime import timedelta
from typing import Iterable, List, Optional

from sqlalchemy import func, select

from ...core.config import FactTableSettings, get_config
from ...core.database import fetch_frame
from ...core.logging import get_logger
from ...domain import (
    CaseScope,
    CaseTable,
    CategoryValue,
    GenderCounts,
    MonthlyGenderRow,
    Province,
    ProvinceCount,
    SummaryStats,
)
from .series import (
    bucket_ages,
    month_keys,
    monthly_counts,
    monthly_gender_counts,
    summarize_gender,
    top_with_selected,
    zero_age_buckets,
)

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class CaseAggregator:
    """
    Aggregation queries for one request scope

    Every method returns zero-valued results for an empty scope (province
    not resolved) without touching the database.
    """

    def __init__(self, database, settings: Optional[FactTableSettings] = None):
        self.database = database
        self.settings = settings or get_config().fact_tables

    def _cases(self, scope: CaseScope) -> CaseTable:
        return CaseTable(scope.fact_table, self.settings)

    @staticmethod
    def _scope_filters(scope: CaseScope, cases: CaseTable) -> list:
        filters = []
        if not scope.all_provinces:
            filters.append(cases.province == scope.province.name_th)
        if scope.disease_code:
            filters.append(cases.disease == scope.disease_code)
        return filters

    @staticmethod
    def _in_range(column, scope: CaseScope) -> list:
        # Half-open upper bound keeps the end day whole for timestamp columns
        return [
            column.is_not(None),
            column >= scope.date_range.start,
            column < scope.date_range.end + timedelta(days=1),
        ]

    def _event_column(self, cases: CaseTable, deaths: bool):
        return cases.death if deaths else cases.onset

    async def _frame(self, statement):
        async with self.database.session() as session:
            return await fetch_frame(session, statement)

    async def _count(self, statement) -> int:
        async with self.database.session() as session:
            result = await session.execute(statement)
            return int(result.scalar() or 0)

    # ------------------------------------------------------------------
    # Breakdowns
    # ------------------------------------------------------------------

    async def age_groups(self, scope: CaseScope, deaths: bool = False) -> List[CategoryValue]:
        """
        Patients (or deaths) per age bucket

        Deaths are filtered on the death date, patients on the onset date.
        Rows without an age are excluded.
        """
        if scope.is_empty:
            return zero_age_buckets()

        cases = self._cases(scope)
        statement = (
            select(cases.age.label("age"), func.count().label("count"))
            .select_from(cases.table)
            .where(cases.age.is_not(None))
            .where(*self._scope_filters(scope, cases))
            .where(*self._in_range(self._event_column(cases, deaths), scope))
            .group_by(cases.age)
        )
        return bucket_ages(await self._frame(statement))

    async def gender_counts(self, scope: CaseScope, deaths: bool = False) -> GenderCounts:
        """Patients (or deaths) split into male / female / unknown"""
        if scope.is_empty:
            return GenderCounts()

        cases = self._cases(scope)
        statement = (
            select(cases.gender.label("gender"), func.count().label("count"))
            .select_from(cases.table)
            .where(*self._scope_filters(scope, cases))
            .where(*self._in_range(self._event_column(cases, deaths), scope))
            .group_by(cases.gender)
        )
        return summarize_gender(await self._frame(statement))

    async def monthly_trend(self, scope: CaseScope, deaths: bool = False) -> List[CategoryValue]:
        """Counts per YYYY-MM of the stored onset (or death) date, every month of the range present"""
        if scope.is_empty:
            return [CategoryValue(key, 0) for key in month_keys(scope.date_range)]

        cases = self._cases(scope)
        event = self._event_column(cases, deaths)
        statement = (
            select(event.label("day"), func.count().label("count"))
            .select_from(cases.table)
            .where(*self._scope_filters(scope, cases))
            .where(*self._in_range(event, scope))
            .group_by(event)
        )
        return monthly_counts(await self._frame(statement), scope.date_range)

    async def gender_trend(self, scope: CaseScope) -> List[MonthlyGenderRow]:
        """Male and female patients per onset month"""
        if scope.is_empty:
            return [MonthlyGenderRow(key) for key in month_keys(scope.date_range)]

        cases = self._cases(scope)
        statement = (
            select(
                cases.onset.label("day"),
                cases.gender.label("gender"),
                func.count().label("count"),
            )
            .select_from(cases.table)
            .where(*self._scope_filters(scope, cases))
            .where(*self._in_range(cases.onset, scope))
            .group_by(cases.onset, cases.gender)
        )
        return monthly_gender_counts(await self._frame(statement), scope.date_range)

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    async def _summary(self, scope: CaseScope, deaths: bool) -> SummaryStats:
        if scope.is_empty:
            return SummaryStats()

        cases = self._cases(scope)
        event = self._event_column(cases, deaths)
        base = select(func.count().label("count")).select_from(cases.table).where(*self._scope_filters(scope, cases))

        total = await self._count(base.where(*self._in_range(event, scope)))
        cumulative = await self._count(base.where(event.is_not(None)))

        return SummaryStats(
            total=total,
            avg_per_day=round_half_up(total / scope.date_range.days),
            cumulative=cumulative,
        )

    async def patients_summary(self, scope: CaseScope) -> SummaryStats:
        """Patients with onset in range, daily average, and all-time cumulative"""
        return await self._summary(scope, deaths=False)

    async def deaths_summary(self, scope: CaseScope) -> SummaryStats:
        """Deaths dated in range, daily average, and all-time cumulative"""
        return await self._summary(scope, deaths=True)

    # ------------------------------------------------------------------
    # Regional ranking
    # ------------------------------------------------------------------

    async def region_province_counts(self, scope: CaseScope, region_id: int) -> List[ProvinceCount]:
        """Patients per province of a region, ranked from 1 by count descending"""
        cases = self._cases(scope)
        region_provinces = select(Province.province_name_th).where(Province.region_id == region_id)

        filters = [cases.province.in_(region_provinces)]
        if scope.disease_code:
            filters.append(cases.disease == scope.disease_code)

        statement = (
            select(cases.province.label("province"), func.count().label("patients"))
            .select_from(cases.table)
            .where(*filters)
            .where(*self._in_range(cases.onset, scope))
            .group_by(cases.province)
        )
        frame = await self._frame(statement)

        rows = [
            ProvinceCount(province=str(r.province).strip(), patients=int(r.patients or 0))
            for r in frame.itertuples(index=False)
            if r.province is not None
        ]
        rows.sort(key=lambda r: (-r.patients, r.province))
        for rank, row in enumerate(rows, start=1):
            row.rank = rank
        return rows

    async def region_top_provinces(
        self,
        scope: CaseScope,
        region_id: int,
        selected: Iterable[str] = (),
        limit: int = 5,
    ) -> List[ProvinceCount]:
        """Top provinces of a region, keeping the selected ones in the list"""
        selected = [name for name in selected if name]
        rows = await self.region_province_counts(scope, region_id)

        present = {row.province for row in rows}
        for name in selected:
            if name not in present:
                rows.append(ProvinceCount(province=name, patients=0))

        return top_with_selected(rows, selected, limit)
