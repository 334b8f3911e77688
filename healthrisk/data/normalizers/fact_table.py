"""
HealthRisk Fact-Table Locator

disease code -> physical table holding its case records, via the active rows
of `disease_fact_tables`.
"""
from typing import Optional, Tuple

from sqlalchemy import select

from ...core.config import FactTableSettings, get_config
from ...core.errors import NotFoundError, UnsafeIdentifierError
from ...core.logging import get_logger
from ...domain import DiseaseFactTable, FactTable
from .codes import disease_candidates

logger = get_logger(__name__)


class FactTableLocator:
    """
    Fact-table locator

    Unlike disease-code resolution this is strict: without an active mapping
    there is no table to query, so a miss raises NotFoundError.
    """

    def __init__(self, database, settings: Optional[FactTableSettings] = None):
        self.database = database
        self.settings = settings or get_config().fact_tables
        self.allowed = {name.strip().lower() for name in self.settings.allowed_tables if name.strip()}

    def _check_allowed(self, fact_table: FactTable) -> FactTable:
        if self.allowed and fact_table.qualified_name.lower() not in self.allowed:
            raise UnsafeIdentifierError("fact table", fact_table.qualified_name)
        return fact_table

    async def locate(self, disease: Optional[str]) -> Tuple[str, FactTable]:
        """
        Locate the fact table of a disease

        Args:
            disease: disease code in any accepted spelling (D01, d01, 1, 01)

        Returns:
            (disease_code as stored on the matched mapping, validated FactTable)

        Raises:
            NotFoundError: no active mapping matches
            UnsafeIdentifierError: the mapping holds an invalid schema/table name
        """
        candidates = disease_candidates(disease, include_bare_digits=True)
        if not candidates:
            raise NotFoundError(disease or "")

        statement = (
            select(DiseaseFactTable.disease_code, DiseaseFactTable.schema_name, DiseaseFactTable.table_name)
            .where(DiseaseFactTable.is_active.is_(True))
            .where(DiseaseFactTable.disease_code.in_(candidates))
            .order_by(DiseaseFactTable.id)
            .limit(1)
        )

        async with self.database.session() as session:
            result = await session.execute(statement)
            row = result.mappings().first()

        if row is None or not (row["table_name"] or "").strip():
            logger.warning(f"No active fact table mapping for disease: {disease}")
            raise NotFoundError(disease)

        fact_table = self._check_allowed(FactTable.from_names(row["schema_name"], row["table_name"]))
        logger.debug(f"Fact table for {disease}: {fact_table.qualified_name}")
        return str(row["disease_code"]).strip(), fact_table

    async def resolve(self, disease: Optional[str]) -> FactTable:
        _, fact_table = await self.locate(disease)
        return fact_table

    def default_table(self) -> FactTable:
        """Table used when a request does not name a disease."""
        return self._check_allowed(FactTable.parse(self.settings.default_table))
