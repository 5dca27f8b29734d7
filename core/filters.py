"""
Filter selection and predicate builder.

A FilterSpec is the (country, fuel, include_micro) triple chosen in the UI.
Queries turn it into an explicit list of Predicate objects, AND-ed together.
The same predicates render to SQLAlchemy clauses or evaluate against
in-memory records, so a predicate set can be tested without a database.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from sqlalchemy import and_, true

from core.errors import FieldError, ValidationError

logger = logging.getLogger(__name__)

MICRO_THRESHOLD_MW = 50.0

OP_EQ = "eq"
OP_GTE = "gte"
OP_IN = "in"


@dataclass(frozen=True)
class FilterSpec:
    """Request-scoped filter selection. None means "all"."""
    country: Optional[str] = None
    fuel: Optional[int] = None
    include_micro: bool = False

    def with_country(self, country: Optional[str]) -> "FilterSpec":
        return replace(self, country=country or None)

    def with_fuel(self, fuel: Optional[int]) -> "FilterSpec":
        return replace(self, fuel=fuel)

    def with_include_micro(self, include_micro: bool) -> "FilterSpec":
        return replace(self, include_micro=bool(include_micro))


@dataclass(frozen=True)
class Predicate:
    """A single field comparison."""
    field: str
    op: str
    value: Any

    def clause(self, columns: Mapping[str, Any]):
        """Render as a SQLAlchemy clause using a field -> column mapping."""
        column = columns[self.field]
        if self.op == OP_EQ:
            return column == self.value
        if self.op == OP_GTE:
            return column >= self.value
        if self.op == OP_IN:
            return column.in_(list(self.value))
        raise ValueError(f"Unsupported predicate op: {self.op}")

    def matches(self, record: Any) -> bool:
        """Evaluate against a dict or an object with matching attributes."""
        if isinstance(record, Mapping):
            actual = record.get(self.field)
        else:
            actual = getattr(record, self.field, None)

        if self.op == OP_EQ:
            return actual == self.value
        if self.op == OP_GTE:
            # NULL never satisfies a threshold, same as SQL
            return actual is not None and actual >= self.value
        if self.op == OP_IN:
            return actual in self.value
        raise ValueError(f"Unsupported predicate op: {self.op}")


def build_predicates(
    country: Optional[str] = None,
    fuel: Optional[int] = None,
    include_micro: bool = True,
    micro_threshold_mw: float = MICRO_THRESHOLD_MW,
) -> list[Predicate]:
    """Build the AND-ed predicate list for the three optional filters.

    Micro facilities (capacity below the threshold, or unknown) are
    excluded only when include_micro is False.
    """
    predicates = []
    if country:
        predicates.append(Predicate("country_code", OP_EQ, country))
    if fuel is not None:
        predicates.append(Predicate("fuel_code", OP_EQ, fuel))
    if not include_micro:
        predicates.append(Predicate("capacity_mw", OP_GTE, micro_threshold_mw))
    return predicates


def predicates_for(spec: FilterSpec, micro_threshold_mw: float = MICRO_THRESHOLD_MW) -> list[Predicate]:
    return build_predicates(spec.country, spec.fuel, spec.include_micro, micro_threshold_mw)


def combine(predicates: list[Predicate], columns: Mapping[str, Any]):
    """AND all predicates into one clause (TRUE when the list is empty)."""
    if not predicates:
        return true()
    return and_(*(p.clause(columns) for p in predicates))


def matches_all(predicates: list[Predicate], record: Any) -> bool:
    return all(p.matches(record) for p in predicates)


def parse_filter_params(
    country: Optional[str] = None,
    fuel: Optional[str] = None,
    include_micro: Optional[str] = None,
) -> FilterSpec:
    """Parse raw query-string values into a FilterSpec.

    Raises ValidationError listing every malformed field.
    """
    errors = []

    country_code = country.strip() if country else None
    country_code = country_code or None

    fuel_code = None
    if fuel is not None and fuel.strip():
        try:
            fuel_code = int(fuel.strip())
        except ValueError:
            errors.append(FieldError("fuel", "Invalid fuel code: must be an integer"))

    micro = False
    if include_micro is not None:
        normalized = include_micro.strip().lower()
        if normalized == "true":
            micro = True
        elif normalized != "false":
            errors.append(FieldError(
                "includeMicro", "Invalid value for includeMicro. Must be true or false."
            ))

    if errors:
        logger.debug(f"Rejected filter params: {errors}")
        raise ValidationError(errors)

    return FilterSpec(country=country_code, fuel=fuel_code, include_micro=micro)
