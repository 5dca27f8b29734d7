"""
Facility store access.

Wraps a SQLAlchemy session with the reads the rest of the core needs:
the denormalized facility view (facility + country name + fuel name),
single-record lookups, reference lists and the data-center layer.

Every SQLAlchemy failure is rolled back and re-raised as StoreError with
the driver's message. Nothing is retried here.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Country, FuelSource, Facility, DataCenter
from core.errors import StoreError
from core.filters import Predicate, combine

logger = logging.getLogger(__name__)

# Filterable fields of the facilities table
FACILITY_COLUMNS = {
    "gppd_idnr": Facility.gppd_idnr,
    "country_code": Facility.country_code,
    "fuel_code": Facility.fuel_code,
    "capacity_mw": Facility.capacity_mw,
}


@dataclass(frozen=True)
class FacilityRecord:
    """One row of the denormalized facility view."""
    gppd_idnr: str
    name: str
    latitude: float
    longitude: float
    capacity_mw: Optional[float] = None
    owner: Optional[str] = None
    fuel_code: Optional[int] = None
    fuel: Optional[str] = None
    country_code: Optional[str] = None
    country_long: Optional[str] = None


@dataclass(frozen=True)
class DataCenterRecord:
    id: str
    name: str
    latitude: float
    longitude: float
    owner: Optional[str] = None
    users: Optional[str] = None
    capacity_mw: Optional[float] = None
    project: Optional[str] = None


@dataclass(frozen=True)
class CountryRef:
    code: str
    country: str


@dataclass(frozen=True)
class FuelRef:
    code: int
    fuel_source: str


class FacilityStore:
    """Read access to facilities and their reference data."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def guard(self, operation: str):
        """Translate SQLAlchemy failures into StoreError."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Store failure in {operation}: {e}")
            self.session.rollback()
            raise StoreError(str(e)) from e

    @staticmethod
    def facility_view():
        """SELECT equivalent of vw_facilities."""
        return (
            select(
                Facility.gppd_idnr,
                Facility.name,
                Facility.latitude,
                Facility.longitude,
                Facility.capacity_mw,
                Facility.owner,
                Facility.fuel_code,
                FuelSource.fuel,
                Facility.country_code,
                Country.country_long,
            )
            .outerjoin(Country, Facility.country_code == Country.country_code)
            .outerjoin(FuelSource, Facility.fuel_code == FuelSource.fuel_code)
        )

    def list_facilities(self, predicates: list[Predicate]) -> list[FacilityRecord]:
        query = (
            self.facility_view()
            .where(combine(predicates, FACILITY_COLUMNS))
            .order_by(Facility.gppd_idnr)
        )
        with self.guard("list_facilities"):
            rows = self.session.execute(query).all()
        return [FacilityRecord(**row._mapping) for row in rows]

    def get_facility(self, gppd_idnr: str) -> Optional[Facility]:
        with self.guard("get_facility"):
            return self.session.get(Facility, gppd_idnr)

    def get_record(self, gppd_idnr: str) -> Optional[FacilityRecord]:
        query = self.facility_view().where(Facility.gppd_idnr == gppd_idnr)
        with self.guard("get_record"):
            row = self.session.execute(query).first()
        return FacilityRecord(**row._mapping) if row else None

    def list_countries(self) -> list[CountryRef]:
        query = select(Country.country_code, Country.country_long).order_by(Country.country_long)
        with self.guard("list_countries"):
            rows = self.session.execute(query).all()
        return [CountryRef(code=code, country=name) for code, name in rows]

    def list_fuel_sources(self) -> list[FuelRef]:
        query = select(FuelSource.fuel_code, FuelSource.fuel).order_by(FuelSource.fuel)
        with self.guard("list_fuel_sources"):
            rows = self.session.execute(query).all()
        return [FuelRef(code=code, fuel_source=fuel) for code, fuel in rows]

    def list_data_centers(self) -> list[DataCenterRecord]:
        query = select(DataCenter).order_by(
            DataCenter.capacity_mw.desc().nulls_last(), DataCenter.id
        )
        with self.guard("list_data_centers"):
            centers = self.session.scalars(query).all()
        return [
            DataCenterRecord(
                id=dc.id,
                name=dc.name,
                latitude=dc.latitude,
                longitude=dc.longitude,
                owner=dc.owner,
                users=dc.users,
                capacity_mw=dc.capacity_mw,
                project=dc.project,
            )
            for dc in centers
        ]
