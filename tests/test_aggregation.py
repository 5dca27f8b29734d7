"""Tests for core.aggregation against the seeded SQLite database."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from app.models import Facility
from core.aggregation import (
    AggregationEngine, CountryCapacity, FuelCapacity, country_fuel_pivot, round_mw,
)
from core.errors import InvalidArgument, StoreError
from core.filters import FilterSpec


class TestRoundMw:
    def test_half_rounds_up(self):
        assert round_mw(0.5) == 1
        assert round_mw(2.5) == 3
        assert round_mw(149.5) == 150

    def test_below_half_rounds_down(self):
        assert round_mw(10.49) == 10

    def test_null_is_zero(self):
        assert round_mw(None) == 0


class TestCapacityByCountry:
    def test_scenario_all_fuels(self, seeded):
        rows = AggregationEngine(seeded).capacity_by_country()
        assert rows == [
            CountryCapacity("USA", "United States of America", 150),
            CountryCapacity("CAN", "Canada", 10),
        ]

    def test_restricted_to_fuel(self, seeded):
        rows = AggregationEngine(seeded).capacity_by_country(2)
        assert [(r.country_code, r.capacity_mw) for r in rows] == [("USA", 50)]

    def test_country_without_facilities_omitted(self, seeded):
        codes = [r.country_code for r in AggregationEngine(seeded).capacity_by_country()]
        assert "MEX" not in codes

    def test_ties_broken_by_country_code(self, seeded):
        seeded.add(Facility(gppd_idnr="D", name="Delta", latitude=50.0, longitude=-110.0,
                            capacity_mw=140.0, fuel_code=1, country_code="CAN"))
        seeded.commit()
        rows = AggregationEngine(seeded).capacity_by_country()
        assert [(r.country_code, r.capacity_mw) for r in rows] == [("CAN", 150), ("USA", 150)]

    def test_null_capacity_counts_as_zero(self, seeded):
        seeded.add(Facility(gppd_idnr="E", name="Echo", latitude=20.0, longitude=-100.0,
                            capacity_mw=None, fuel_code=6, country_code="MEX"))
        seeded.commit()
        rows = AggregationEngine(seeded).capacity_by_country()
        assert rows[-1] == CountryCapacity("MEX", "Mexico", 0)

    def test_empty_store(self, reference_data):
        assert AggregationEngine(reference_data).capacity_by_country() == []


class TestCapacityByFuel:
    def test_micro_excluded_by_default(self, seeded):
        rows = AggregationEngine(seeded).capacity_by_fuel()
        assert rows == [FuelCapacity(1, "Hydro", 100), FuelCapacity(2, "Solar", 50)]

    def test_micro_included(self, seeded):
        rows = AggregationEngine(seeded).capacity_by_fuel(include_micro=True)
        assert [(r.fuel_name, r.generation_mw) for r in rows] == [("Hydro", 110), ("Solar", 50)]

    def test_restricted_to_country(self, seeded):
        rows = AggregationEngine(seeded).capacity_by_fuel("CAN", include_micro=True)
        assert rows == [FuelCapacity(1, "Hydro", 10)]

    def test_micro_only_country_is_empty(self, seeded):
        assert AggregationEngine(seeded).capacity_by_fuel("CAN") == []

    def test_sorted_descending(self, seeded):
        seeded.add_all([
            Facility(gppd_idnr="F", name="Foxtrot", latitude=30.0, longitude=-90.0,
                     capacity_mw=700.0, fuel_code=8, country_code="USA"),
            Facility(gppd_idnr="G", name="Golf", latitude=31.0, longitude=-91.0,
                     capacity_mw=75.0, fuel_code=6, country_code="USA"),
        ])
        seeded.commit()
        totals = [r.generation_mw for r in AggregationEngine(seeded).capacity_by_fuel()]
        assert totals == sorted(totals, reverse=True)

    def test_configurable_threshold(self, seeded):
        rows = AggregationEngine(seeded, micro_threshold_mw=75).capacity_by_fuel()
        assert rows == [FuelCapacity(1, "Hydro", 100)]


class TestTotalsAgree:
    """Roll-ups over one filter cover the same facilities.

    Rows are rounded one by one, so the sums only match exactly when every
    capacity is a whole number of MW and every facility has a country and a
    fuel code. The seeded fixture meets both conditions.
    """

    @pytest.mark.parametrize("spec", [
        FilterSpec(),
        FilterSpec(include_micro=True),
        FilterSpec(country="USA"),
        FilterSpec(country="CAN", include_micro=True),
        FilterSpec(fuel=1, include_micro=True),
        FilterSpec(country="USA", fuel=2),
    ])
    def test_by_fuel_and_by_country_sum_alike(self, seeded, spec):
        summary = AggregationEngine(seeded).summarize(spec)
        by_country = sum(r.capacity_mw for r in summary.by_country)
        by_fuel = sum(r.generation_mw for r in summary.by_fuel)
        by_pair = sum(r.capacity_mw for r in summary.by_country_and_fuel)
        assert by_country == by_fuel == by_pair

    def test_fractional_rows_round_independently(self, seeded):
        seeded.add_all([
            Facility(gppd_idnr="H", name="Hotel", latitude=20.0, longitude=-100.0,
                     capacity_mw=100.4, fuel_code=1, country_code="MEX"),
            Facility(gppd_idnr="I", name="India", latitude=21.0, longitude=-101.0,
                     capacity_mw=100.4, fuel_code=2, country_code="MEX"),
        ])
        seeded.commit()
        summary = AggregationEngine(seeded).summarize(FilterSpec(country="MEX"))
        assert [r.capacity_mw for r in summary.by_country] == [201]
        assert [r.generation_mw for r in summary.by_fuel] == [100, 100]

    def test_micro_never_contributes_when_excluded(self, seeded):
        summary = AggregationEngine(seeded).summarize(FilterSpec(country="CAN"))
        assert summary.by_country == []
        assert summary.by_fuel == []


class TestCountryFuelCrossTab:
    def test_ordered_by_country_then_fuel_name(self, seeded):
        rows = AggregationEngine(seeded).capacity_by_country_and_fuel(include_micro=True)
        assert [(r.country_name, r.fuel_name, r.capacity_mw) for r in rows] == [
            ("Canada", "Hydro", 10),
            ("United States of America", "Hydro", 100),
            ("United States of America", "Solar", 50),
        ]

    def test_pivot_fills_missing_cells(self, seeded):
        rows = AggregationEngine(seeded).capacity_by_country_and_fuel(include_micro=True)
        pivot = country_fuel_pivot(rows)
        assert list(pivot.index) == ["Canada", "United States of America"]
        assert list(pivot.columns) == ["Hydro", "Solar"]
        assert pivot.loc["Canada", "Solar"] == 0
        assert pivot.loc["United States of America", "Hydro"] == 100

    def test_pivot_of_nothing(self):
        assert country_fuel_pivot([]).empty


class TestGenerationByCountries:
    def test_sorted_by_country_then_year(self, seeded):
        rows = AggregationEngine(seeded).generation_by_countries({"USA", "CAN"})
        assert [(r.country_code, r.year) for r in rows] == [
            ("CAN", 2019), ("USA", 2018), ("USA", 2019),
        ]
        assert rows[0].total_generation == pytest.approx(640.2)

    def test_only_requested_countries(self, seeded):
        rows = AggregationEngine(seeded).generation_by_countries(["MEX", "ZZZ"])
        assert [(r.country_code, r.year) for r in rows] == [("MEX", 2019)]

    def test_unknown_country_is_empty(self, seeded):
        assert AggregationEngine(seeded).generation_by_countries(["ZZZ"]) == []

    def test_empty_set_rejected(self, seeded):
        with pytest.raises(InvalidArgument):
            AggregationEngine(seeded).generation_by_countries([])


class TestListFacilities:
    def test_default_excludes_micro(self, seeded):
        rows = AggregationEngine(seeded).list_facilities()
        assert [r.gppd_idnr for r in rows] == ["A", "B"]

    def test_all_with_micro(self, seeded):
        rows = AggregationEngine(seeded).list_facilities(include_micro=True)
        assert [r.gppd_idnr for r in rows] == ["A", "B", "C"]

    def test_denormalized_names(self, seeded):
        (row,) = AggregationEngine(seeded).list_facilities("USA", 1)
        assert row.gppd_idnr == "A"
        assert row.fuel == "Hydro"
        assert row.country_long == "United States of America"

    def test_no_match_is_empty_list(self, seeded):
        assert AggregationEngine(seeded).list_facilities("MEX", include_micro=True) == []


class TestReferenceData:
    def test_filter_metadata_sorted_by_name(self, seeded):
        metadata = AggregationEngine(seeded).filter_metadata()
        assert [c.country for c in metadata.countries] == [
            "Canada", "Mexico", "United States of America",
        ]
        names = [f.fuel_source for f in metadata.fuel_sources]
        assert names == sorted(names)
        assert len(names) == 16

    def test_data_centers_largest_first_nulls_last(self, seeded):
        centers = AggregationEngine(seeded).list_data_centers()
        assert [dc.id for dc in centers] == ["dc-1", "dc-2"]
        assert centers[1].capacity_mw is None


class TestStoreFailures:
    def test_unreachable_store_raises_store_error(self, tmp_path):
        broken = create_engine(f"sqlite:///{tmp_path / 'missing' / 'facilities.db'}")
        with Session(broken) as session:
            with pytest.raises(StoreError):
                AggregationEngine(session).capacity_by_fuel()

    def test_missing_table_raises_store_error(self):
        empty = create_engine("sqlite://")
        with Session(empty) as session:
            with pytest.raises(StoreError) as exc_info:
                AggregationEngine(session).list_facilities()
        assert "no such table" in str(exc_info.value)
