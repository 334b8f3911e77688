"""
HealthRisk Reference Resolver

Turns loosely specified province, region and disease identifiers into
canonical keys using the reference tables.

Contract:
- "not found" is never an error here: province and region lookups return
  None, disease codes fall back to the raw input
- lookups are exact; there is no fuzzy or partial matching
"""
from typing import Any, Optional

from sqlalchemy import or_, select

from ...core.logging import get_logger
from ...domain import CanonicalProvince, CanonicalRegion, Disease, DiseaseSelection, Province, Region
from .codes import disease_candidates, is_digits, key_number

logger = get_logger(__name__)

ALL_PROVINCES = frozenset({"ทุกจังหวัด", "ทั้งหมด", "all"})


def is_all_provinces(value: Optional[str]) -> bool:
    """True for inputs that select every province."""
    return (value or "").strip().lower() in ALL_PROVINCES


class ReferenceResolver:
    """
    Reference-data resolver

    Args:
        database: object with an async `session()` context manager
        cache: optional lookup cache (LookupCache / RedisLookupCache)
    """

    def __init__(self, database, cache=None):
        self.database = database
        self.cache = cache

    async def _cache_get(self, key: str) -> Optional[Any]:
        if self.cache is None:
            return None
        return await self.cache.get(key)

    async def _cache_set(self, key: str, value: Any) -> None:
        if self.cache is not None:
            await self.cache.set(key, value)

    async def _first(self, statement):
        async with self.database.session() as session:
            result = await session.execute(statement)
            return result.mappings().first()

    # ------------------------------------------------------------------
    # Provinces
    # ------------------------------------------------------------------

    async def resolve_province(self, value: Optional[str]) -> Optional[CanonicalProvince]:
        """
        Province number or exact Thai name -> CanonicalProvince

        All-digit input is looked up by province number only.
        """
        key = (value or "").strip()
        if not key:
            return None

        cache_key = f"province:{key}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return CanonicalProvince.from_dict(cached)

        statement = select(
            Province.province_no,
            Province.province_name_th,
            Province.region_id,
            Province.region_moph,
        )
        if is_digits(key):
            number = key_number(key)
            if number is None:
                logger.debug(f"Province number out of range: {key}")
                return None
            statement = statement.where(Province.province_no == number)
        else:
            statement = statement.where(Province.province_name_th == key)

        row = await self._first(statement.limit(1))
        if row is None:
            logger.debug(f"Province not found: {key}")
            return None

        province = CanonicalProvince(
            province_id=int(row["province_no"]),
            name_th=row["province_name_th"],
            region_id=row["region_id"],
            region_moph=row["region_moph"] or "",
        )
        await self._cache_set(cache_key, province.to_dict())
        return province

    async def get_province(self, province_id: int) -> Optional[CanonicalProvince]:
        return await self.resolve_province(str(int(province_id)))

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------

    async def resolve_region(self, value: Optional[str]) -> Optional[CanonicalRegion]:
        """Region id or exact Thai name -> CanonicalRegion"""
        key = (value or "").strip()
        if not key:
            return None

        cache_key = f"region:{key}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return CanonicalRegion.from_dict(cached)

        statement = select(Region.region_id, Region.region_name_th, Region.display_order)
        if is_digits(key):
            number = key_number(key)
            if number is None:
                logger.debug(f"Region id out of range: {key}")
                return None
            statement = statement.where(Region.region_id == number)
        else:
            statement = statement.where(Region.region_name_th == key)

        row = await self._first(statement.limit(1))
        if row is None:
            logger.debug(f"Region not found: {key}")
            return None

        region = CanonicalRegion(
            region_id=int(row["region_id"]),
            name_th=row["region_name_th"],
            display_order=int(row["display_order"]),
        )
        await self._cache_set(cache_key, region.to_dict())
        return region

    async def get_region(self, region_id: int) -> Optional[CanonicalRegion]:
        return await self.resolve_region(str(int(region_id)))

    # ------------------------------------------------------------------
    # Diseases
    # ------------------------------------------------------------------

    async def resolve_disease_code(self, value: Optional[str]) -> Optional[str]:
        """
        Any disease spelling -> canonical code

        Codes are matched first, then Thai/English names. When nothing
        matches the trimmed input is returned unchanged: callers may hold a
        valid code that the diseases table does not list.
        """
        raw = (value or "").strip()
        if not raw:
            return None

        cache_key = f"disease:{raw}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return cached

        candidates = disease_candidates(raw)

        row = await self._first(
            select(Disease.code).where(Disease.code.in_(candidates)).order_by(Disease.code).limit(1)
        )
        if row is None:
            row = await self._first(
                select(Disease.code)
                .where(or_(Disease.name_th.in_(candidates), Disease.name_en.in_(candidates)))
                .order_by(Disease.code)
                .limit(1)
            )

        if row is None:
            logger.debug(f"Disease not in reference table, keeping raw value: {raw}")
            return raw

        code = str(row["code"])
        await self._cache_set(cache_key, code)
        return code

    async def disease_code_for_id(self, disease_id: int) -> Optional[str]:
        row = await self._first(
            select(Disease.code).where(Disease.disease_id == int(disease_id)).limit(1)
        )
        return str(row["code"]) if row is not None else None

    async def resolve_disease(
        self,
        disease_id: Optional[str] = None,
        disease: Optional[str] = None,
    ) -> DiseaseSelection:
        """
        Request-level disease selection

        A numeric `disease_id` short-circuits code and name resolution.
        """
        id_value = (disease_id or "").strip()
        if is_digits(id_value):
            number = key_number(id_value)
            code = await self.disease_code_for_id(number) if number is not None else None
            return DiseaseSelection(code=code, disease_id=int(id_value))

        code = await self.resolve_disease_code(disease)
        return DiseaseSelection(code=code)
