"""
Aggregation engine.

Capacity and generation roll-ups over the facility store for a filter
selection. All totals sum capacity_mw with NULL treated as 0 and are
rounded to whole MW only when the result rows are built.

Grouping joins are inner joins: a country or fuel with no matching
facility produces no row (not a zero row).
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models import Country, FuelSource, Facility, CountryGeneration
from core.errors import InvalidArgument
from core.facility_store import (
    FACILITY_COLUMNS, FacilityStore, FacilityRecord, DataCenterRecord,
    CountryRef, FuelRef,
)
from core.filters import OP_IN, FilterSpec, Predicate, build_predicates, combine

logger = logging.getLogger(__name__)

GENERATION_COLUMNS = {"country_code": CountryGeneration.country_code}


@dataclass(frozen=True)
class CountryCapacity:
    country_code: str
    country_name: str
    capacity_mw: int


@dataclass(frozen=True)
class FuelCapacity:
    fuel_code: int
    fuel_name: str
    generation_mw: int


@dataclass(frozen=True)
class CountryFuelCapacity:
    country_code: str
    country_name: str
    fuel_code: int
    fuel_name: str
    capacity_mw: int


@dataclass(frozen=True)
class GenerationRow:
    country_code: str
    year: int
    total_generation: Optional[float] = None


@dataclass
class FilterMetadata:
    countries: list[CountryRef] = field(default_factory=list)
    fuel_sources: list[FuelRef] = field(default_factory=list)


@dataclass
class FilterSummary:
    """All capacity roll-ups for one FilterSpec."""
    spec: FilterSpec
    by_country: list[CountryCapacity]
    by_fuel: list[FuelCapacity]
    by_country_and_fuel: list[CountryFuelCapacity]


def round_mw(value: Optional[float]) -> int:
    """Round half up to a whole MW (SQL ROUND semantics, not banker's)."""
    if value is None:
        return 0
    return int(math.floor(value + 0.5))


def _capacity_sum():
    return func.sum(func.coalesce(Facility.capacity_mw, 0.0))


class AggregationEngine:
    """Filtered capacity/generation queries against one session."""

    def __init__(self, session: Session, micro_threshold_mw: Optional[float] = None):
        self.store = FacilityStore(session)
        self.session = session
        if micro_threshold_mw is None:
            micro_threshold_mw = settings.MICRO_THRESHOLD_MW
        self.micro_threshold_mw = micro_threshold_mw

    def _predicates(self, country=None, fuel=None, include_micro=True):
        return build_predicates(country, fuel, include_micro, self.micro_threshold_mw)

    def capacity_by_country(
        self,
        fuel: Optional[int] = None,
        *,
        country: Optional[str] = None,
        include_micro: bool = True,
    ) -> list[CountryCapacity]:
        """Total capacity per country, largest first."""
        predicates = self._predicates(country, fuel, include_micro)
        total = _capacity_sum()
        query = (
            select(Country.country_code, Country.country_long, total.label("total"))
            .select_from(Facility)
            .join(Country, Facility.country_code == Country.country_code)
            .where(combine(predicates, FACILITY_COLUMNS))
            .group_by(Country.country_code, Country.country_long)
            .order_by(total.desc(), Country.country_code.asc())
        )
        with self.store.guard("capacity_by_country"):
            rows = self.session.execute(query).all()

        logger.debug(f"capacity_by_country(fuel={fuel}): {len(rows)} rows")
        return [
            CountryCapacity(country_code=code, country_name=name, capacity_mw=round_mw(t))
            for code, name, t in rows
        ]

    def capacity_by_fuel(
        self,
        country: Optional[str] = None,
        include_micro: bool = False,
        *,
        fuel: Optional[int] = None,
    ) -> list[FuelCapacity]:
        """Total capacity per fuel type, largest first."""
        predicates = self._predicates(country, fuel, include_micro)
        total = _capacity_sum()
        query = (
            select(FuelSource.fuel_code, FuelSource.fuel, total.label("total"))
            .select_from(Facility)
            .join(FuelSource, Facility.fuel_code == FuelSource.fuel_code)
            .where(combine(predicates, FACILITY_COLUMNS))
            .group_by(FuelSource.fuel_code, FuelSource.fuel)
            .order_by(total.desc(), FuelSource.fuel_code.asc())
        )
        with self.store.guard("capacity_by_fuel"):
            rows = self.session.execute(query).all()

        logger.debug(
            f"capacity_by_fuel(country={country}, include_micro={include_micro}): {len(rows)} rows"
        )
        return [
            FuelCapacity(fuel_code=code, fuel_name=name, generation_mw=round_mw(t))
            for code, name, t in rows
        ]

    def capacity_by_country_and_fuel(
        self,
        country: Optional[str] = None,
        include_micro: bool = False,
        *,
        fuel: Optional[int] = None,
    ) -> list[CountryFuelCapacity]:
        """Country x fuel cross-tabulation, ordered by country then fuel name."""
        predicates = self._predicates(country, fuel, include_micro)
        query = (
            select(
                Country.country_code,
                Country.country_long,
                FuelSource.fuel_code,
                FuelSource.fuel,
                _capacity_sum().label("total"),
            )
            .select_from(Facility)
            .join(Country, Facility.country_code == Country.country_code)
            .join(FuelSource, Facility.fuel_code == FuelSource.fuel_code)
            .where(combine(predicates, FACILITY_COLUMNS))
            .group_by(
                Country.country_code,
                Country.country_long,
                FuelSource.fuel_code,
                FuelSource.fuel,
            )
            .order_by(Country.country_long.asc(), FuelSource.fuel.asc())
        )
        with self.store.guard("capacity_by_country_and_fuel"):
            rows = self.session.execute(query).all()

        return [
            CountryFuelCapacity(
                country_code=c_code,
                country_name=c_name,
                fuel_code=f_code,
                fuel_name=f_name,
                capacity_mw=round_mw(t),
            )
            for c_code, c_name, f_code, f_name, t in rows
        ]

    def generation_by_countries(self, countries: Iterable[str]) -> list[GenerationRow]:
        """Annual generation rows for the given countries, by country then year.

        Raises InvalidArgument for an empty country set; callers are
        expected to short-circuit before asking.
        """
        codes = sorted(set(countries))
        if not codes:
            raise InvalidArgument("generation_by_countries requires at least one country code")

        query = (
            select(
                CountryGeneration.country_code,
                CountryGeneration.year,
                CountryGeneration.total_generation,
            )
            .where(Predicate("country_code", OP_IN, codes).clause(GENERATION_COLUMNS))
            .order_by(CountryGeneration.country_code, CountryGeneration.year)
        )
        with self.store.guard("generation_by_countries"):
            rows = self.session.execute(query).all()

        return [
            GenerationRow(country_code=code, year=year, total_generation=total)
            for code, year, total in rows
        ]

    def list_facilities(
        self,
        country: Optional[str] = None,
        fuel: Optional[int] = None,
        include_micro: bool = False,
    ) -> list[FacilityRecord]:
        """Facilities matching every given filter. Empty list if none match."""
        return self.store.list_facilities(self._predicates(country, fuel, include_micro))

    def list_data_centers(self) -> list[DataCenterRecord]:
        return self.store.list_data_centers()

    def filter_metadata(self) -> FilterMetadata:
        """Countries and fuel sources for the filter sidebar."""
        return FilterMetadata(
            countries=self.store.list_countries(),
            fuel_sources=self.store.list_fuel_sources(),
        )

    def summarize(self, spec: FilterSpec) -> FilterSummary:
        """Run every capacity roll-up for one filter selection."""
        return FilterSummary(
            spec=spec,
            by_country=self.capacity_by_country(
                spec.fuel, country=spec.country, include_micro=spec.include_micro
            ),
            by_fuel=self.capacity_by_fuel(spec.country, spec.include_micro, fuel=spec.fuel),
            by_country_and_fuel=self.capacity_by_country_and_fuel(
                spec.country, spec.include_micro, fuel=spec.fuel
            ),
        )


def country_fuel_pivot(rows: list[CountryFuelCapacity]) -> pd.DataFrame:
    """Pivot cross-tab rows into a country x fuel table, missing cells as 0."""
    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame([
        {"country": r.country_name, "fuel": r.fuel_name, "capacity_mw": r.capacity_mw}
        for r in rows
    ])
    pivot = df.pivot_table(
        index="country",
        columns="fuel",
        values="capacity_mw",
        aggfunc="sum",
        fill_value=0,
    )
    pivot = pivot.sort_index().sort_index(axis=1)
    pivot.columns.name = None
    return pivot.astype(int)
