"""Tests for core.filter_state (generation tracking, stale-result dropping)."""

import sys
import threading
from concurrent.futures import wait
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.filter_state import FilterStateCoordinator, ViewSnapshot, view_fetchers
from core.filters import FilterSpec


class TestTransitions:
    def test_each_change_bumps_generation(self):
        with FilterStateCoordinator() as coordinator:
            assert coordinator.generation == 0
            coordinator.set_country("USA")
            coordinator.set_fuel(3)
            coordinator.set_include_micro(True)
            assert coordinator.generation == 3
            assert coordinator.spec == FilterSpec(country="USA", fuel=3, include_micro=True)

    def test_subscribers_notified(self):
        seen = []
        with FilterStateCoordinator() as coordinator:
            coordinator.subscribe(lambda spec, gen: seen.append((spec.country, gen)))
            coordinator.set_country("USA")
            coordinator.set_country(None)
        assert seen == [("USA", 1), (None, 2)]

    def test_unsubscribe(self):
        seen = []
        with FilterStateCoordinator() as coordinator:
            unsubscribe = coordinator.subscribe(lambda spec, gen: seen.append(gen))
            coordinator.set_fuel(1)
            unsubscribe()
            coordinator.set_fuel(2)
        assert seen == [1]

    def test_set_filters_replaces_spec(self):
        with FilterStateCoordinator(initial=FilterSpec(country="USA")) as coordinator:
            coordinator.set_filters(FilterSpec(fuel=8))
            assert coordinator.spec == FilterSpec(fuel=8)
            assert coordinator.is_current(1)
            assert not coordinator.is_current(0)


class TestDispatch:
    def test_result_applied_for_current_generation(self):
        applied = []
        coordinator = FilterStateCoordinator()
        coordinator.set_country("USA")
        futures = coordinator.dispatch(
            {"facilities": lambda spec: [spec.country]},
            lambda name, result, gen: applied.append((name, result, gen)),
        )
        wait(futures)
        coordinator.close()
        assert applied == [("facilities", ["USA"], 1)]

    def test_stale_result_dropped(self):
        release = threading.Event()
        applied = []

        def slow(spec):
            release.wait(timeout=5)
            return ("slow", spec.country)

        def fast(spec):
            return ("fast", spec.country)

        def on_result(name, result, gen):
            applied.append((name, result, gen))

        coordinator = FilterStateCoordinator(max_workers=2)
        coordinator.set_country("USA")
        coordinator.dispatch({"capacity_by_fuel": slow}, on_result)
        coordinator.set_country("CAN")
        wait(coordinator.dispatch({"capacity_by_fuel": fast}, on_result))

        # older selection finishes last and must not overwrite the newer one
        release.set()
        coordinator.close()

        assert applied == [("capacity_by_fuel", ("fast", "CAN"), 2)]

    def test_error_delivered_to_handler(self):
        errors = []

        def broken(spec):
            raise RuntimeError("store down")

        coordinator = FilterStateCoordinator()
        coordinator.set_fuel(1)
        wait(coordinator.dispatch(
            {"facilities": broken},
            lambda *args: None,
            lambda name, exc, gen: errors.append((name, str(exc), gen)),
        ))
        coordinator.close()
        assert errors == [("facilities", "store down", 1)]

    def test_bind_redispatches_on_change(self):
        snapshot = ViewSnapshot()
        coordinator = FilterStateCoordinator()
        coordinator.bind({"country": lambda spec: spec.country}, snapshot.apply, snapshot.fail)
        coordinator.set_country("MEX")
        coordinator.close()
        assert snapshot.results == {"country": "MEX"}
        assert snapshot.generation == 1


class TestViewSnapshot:
    def test_apply_clears_previous_error(self):
        snapshot = ViewSnapshot()
        snapshot.fail("facilities", RuntimeError("x"), 1)
        snapshot.apply("facilities", [], 2)
        assert snapshot.errors == {}
        assert snapshot.results == {"facilities": []}
        assert snapshot.generation == 2


class TestViewFetchers:
    def test_fetchers_query_store(self, seeded, session_factory):
        fetchers = view_fetchers(session_factory)
        assert set(fetchers) == {"capacity_by_fuel", "country_fuel_capacity", "facilities"}

        spec = FilterSpec(country="USA")
        by_fuel = fetchers["capacity_by_fuel"](spec)
        assert [(r.fuel_name, r.generation_mw) for r in by_fuel] == [("Hydro", 100), ("Solar", 50)]

        facilities = fetchers["facilities"](spec.with_fuel(2))
        assert [f.gppd_idnr for f in facilities] == ["B"]

    def test_end_to_end_with_coordinator(self, seeded, session_factory):
        snapshot = ViewSnapshot()
        coordinator = FilterStateCoordinator(max_workers=1)
        coordinator.bind(view_fetchers(session_factory), snapshot.apply, snapshot.fail)
        coordinator.set_include_micro(True)
        coordinator.close()

        assert snapshot.errors == {}
        ids = [f.gppd_idnr for f in snapshot.results["facilities"]]
        assert ids == ["A", "B", "C"]
