"""
HealthRisk Reference Models

Slowly-changing lookup data: provinces, regions, diseases and the
disease -> fact table mapping. Read-only from this package's point of view.
"""
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

REF_SCHEMA = "ref"


class Province(Base):
    """Health-ministry province list"""

    __tablename__ = "provinces_moph"
    __table_args__ = {"schema": REF_SCHEMA}

    province_no: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    province_name_th: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    region_id: Mapped[Optional[int]] = mapped_column(Integer)
    region_moph: Mapped[str] = mapped_column(String(100), nullable=False, default="")


class Region(Base):
    """Health-ministry regions"""

    __tablename__ = "regions_moph"
    __table_args__ = {"schema": REF_SCHEMA}

    region_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    region_name_th: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)


class Disease(Base):
    """
    Disease definitions

    `code` is the canonical key (e.g. D01); `disease_id` is the surrogate key
    some aggregates are keyed by.
    """

    __tablename__ = "diseases"

    disease_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name_th: Mapped[str] = mapped_column(String(200), nullable=False)
    name_en: Mapped[Optional[str]] = mapped_column(String(200))


class DiseaseFactTable(Base):
    """Where the case records of a disease are stored"""

    __tablename__ = "disease_fact_tables"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    disease_code: Mapped[str] = mapped_column(String(20), nullable=False)
    schema_name: Mapped[str] = mapped_column(String(63), nullable=False, default="public")
    table_name: Mapped[str] = mapped_column(String(63), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("idx_fact_table_disease_active", "disease_code", "is_active"),
    )
