"""
HealthRisk Case Fact Tables

Case records live in one physical table per disease (or a shared table with a
disease_code column). Table and column names come from reference data and
settings, so every name is validated before it is used to build a query.
"""
import re
from dataclasses import dataclass, replace
from typing import Optional

from sqlalchemy import Date, Integer, String, column, table
from sqlalchemy.sql.expression import TableClause

from ..core.config import FactTableSettings
from ..core.errors import UnsafeIdentifierError
from .stats import CanonicalProvince, DateRange

IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_]+$")
DEFAULT_SCHEMA = "public"


def validate_identifier(value: Optional[str], label: str) -> str:
    """Return the trimmed identifier, or raise if it is not [A-Za-z0-9_]+."""
    candidate = (value or "").strip()
    if not IDENTIFIER_RE.fullmatch(candidate):
        raise UnsafeIdentifierError(label, value or "")
    return candidate


@dataclass(frozen=True)
class FactTable:
    """A validated physical location of case records"""

    schema: str
    table: str

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}"

    @classmethod
    def from_names(cls, schema: Optional[str], table_name: Optional[str]) -> "FactTable":
        schema = (schema or "").strip() or DEFAULT_SCHEMA
        return cls(
            schema=validate_identifier(schema, "schema_name"),
            table=validate_identifier(table_name, "table_name"),
        )

    @classmethod
    def parse(cls, qualified: str) -> "FactTable":
        """Parse `schema.table` or a bare `table` (schema defaults to public)."""
        schema, _, table_name = (qualified or "").strip().rpartition(".")
        return cls.from_names(schema, table_name)

    def to_dict(self) -> dict:
        return {"schema": self.schema, "table": self.table, "qualifiedName": self.qualified_name}


class CaseTable:
    """
    SQLAlchemy view of one fact table

    Columns are declared with types so that date bounds bind and decode as
    dates on every backend.
    """

    def __init__(self, fact_table: FactTable, settings: FactTableSettings):
        self.fact_table = fact_table
        self.gender = column(validate_identifier(settings.gender_column, "gender column"), String)
        self.age = column(validate_identifier(settings.age_column, "age column"), Integer)
        self.province = column(validate_identifier(settings.province_column, "province column"), String)
        self.onset = column(validate_identifier(settings.onset_column, "onset column"), Date)
        self.death = column(validate_identifier(settings.death_column, "death column"), Date)
        self.disease = column(validate_identifier(settings.disease_column, "disease column"), String)

        self.table: TableClause = table(
            fact_table.table,
            self.gender,
            self.age,
            self.province,
            self.onset,
            self.death,
            self.disease,
            schema=fact_table.schema,
        )



@dataclass(frozen=True)
class CaseScope:
    """
    Resolved keys of one aggregation request

    `province` None with `all_provinces` False means the province did not
    resolve: aggregates are all zero and no query is issued.
    """

    fact_table: FactTable
    date_range: DateRange
    province: Optional[CanonicalProvince] = None
    disease_code: Optional[str] = None
    all_provinces: bool = False

    @property
    def is_empty(self) -> bool:
        return self.province is None and not self.all_provinces

    def with_province(self, province: Optional[CanonicalProvince], all_provinces: bool = False) -> "CaseScope":
        return replace(self, province=province, all_provinces=all_provinces)
