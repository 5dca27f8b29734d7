"""
Filter state coordinator.

Owns the current FilterSpec for one view and a generation counter that
increases on every change. Each change notifies subscribers; query
fan-out runs concurrently on a thread pool, and a result is applied only
if its generation is still the latest when it completes. Slower responses
for an older selection are dropped (last change wins, not last arrival).
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Optional

from core.aggregation import AggregationEngine
from core.filters import FilterSpec

logger = logging.getLogger(__name__)

Subscriber = Callable[[FilterSpec, int], None]
Fetcher = Callable[[FilterSpec], Any]
ResultHandler = Callable[[str, Any, int], None]
ErrorHandler = Callable[[str, BaseException, int], None]


class FilterStateCoordinator:
    """Single source of truth for a view's filter selection."""

    def __init__(
        self,
        initial: Optional[FilterSpec] = None,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self._lock = threading.RLock()
        self._spec = initial or FilterSpec()
        self._generation = 0
        self._subscribers: list[Subscriber] = []
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="filter-fetch"
        )

    @property
    def spec(self) -> FilterSpec:
        with self._lock:
            return self._spec

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def _transition(self, spec: FilterSpec) -> FilterSpec:
        with self._lock:
            self._spec = spec
            self._generation += 1
            generation = self._generation
            subscribers = list(self._subscribers)

        logger.debug(f"Filter generation {generation}: {spec}")
        for callback in subscribers:
            callback(spec, generation)
        return spec

    def set_country(self, country: Optional[str]) -> FilterSpec:
        return self._transition(self.spec.with_country(country))

    def set_fuel(self, fuel: Optional[int]) -> FilterSpec:
        return self._transition(self.spec.with_fuel(fuel))

    def set_include_micro(self, include_micro: bool) -> FilterSpec:
        return self._transition(self.spec.with_include_micro(include_micro))

    def set_filters(self, spec: FilterSpec) -> FilterSpec:
        return self._transition(spec)

    def dispatch(
        self,
        fetchers: dict[str, Fetcher],
        on_result: ResultHandler,
        on_error: Optional[ErrorHandler] = None,
        spec: Optional[FilterSpec] = None,
        generation: Optional[int] = None,
    ) -> list[Future]:
        """Run every fetcher for one generation (the current one by default)."""
        if spec is None or generation is None:
            with self._lock:
                spec, generation = self._spec, self._generation

        futures = []
        for name, fetch in fetchers.items():
            future = self._executor.submit(fetch, spec)
            future.add_done_callback(
                partial(self._deliver, name, generation, on_result, on_error)
            )
            futures.append(future)
        return futures

    def bind(
        self,
        fetchers: dict[str, Fetcher],
        on_result: ResultHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> Callable[[], None]:
        """Re-dispatch the fetchers on every filter change."""
        def _on_change(spec, generation):
            self.dispatch(fetchers, on_result, on_error, spec=spec, generation=generation)

        return self.subscribe(_on_change)

    def _deliver(self, name, generation, on_result, on_error, future: Future):
        if future.cancelled():
            return
        exc = future.exception()

        # Hold the lock while applying so a newer generation cannot start
        # between the staleness check and the apply.
        with self._lock:
            if generation != self._generation:
                logger.debug(
                    f"Dropping stale '{name}' result (generation {generation}, "
                    f"current {self._generation})"
                )
                return
            if exc is not None:
                if on_error is not None:
                    on_error(name, exc, generation)
                else:
                    logger.error(f"Fetch '{name}' failed for generation {generation}: {exc}")
                return
            on_result(name, future.result(), generation)

    def close(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ViewSnapshot:
    """Latest applied results of a view, keyed by fetcher name."""

    def __init__(self):
        self.results: dict[str, Any] = {}
        self.errors: dict[str, BaseException] = {}
        self.generation = 0

    def apply(self, name: str, result: Any, generation: int) -> None:
        self.results[name] = result
        self.errors.pop(name, None)
        self.generation = generation

    def fail(self, name: str, exc: BaseException, generation: int) -> None:
        self.errors[name] = exc
        self.generation = generation


def view_fetchers(session_factory, micro_threshold_mw: Optional[float] = None) -> dict[str, Fetcher]:
    """Standard fan-out for a filter change. Each fetch opens its own session."""

    def _run(query):
        def fetch(spec: FilterSpec):
            with session_factory() as session:
                return query(AggregationEngine(session, micro_threshold_mw), spec)
        return fetch

    return {
        "capacity_by_fuel": _run(
            lambda engine, spec: engine.capacity_by_fuel(spec.country, spec.include_micro)
        ),
        "country_fuel_capacity": _run(
            lambda engine, spec: engine.capacity_by_country_and_fuel(spec.country, spec.include_micro)
        ),
        "facilities": _run(
            lambda engine, spec: engine.list_facilities(spec.country, spec.fuel, spec.include_micro)
        ),
    }
