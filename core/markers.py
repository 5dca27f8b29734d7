"""
Marker projection: facility and data-center records -> renderable markers.

Marker size follows a log scale of capacity, colour and icon come from the
fuel style table, and draw order is fixed by fuel priority so dominant
fuels end up on top. A record with bad coordinates is skipped and logged;
it never takes down the rest of the batch.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Optional

from core.fuel_styles import DATA_CENTER_COLOR, draw_priority, fuel_style

logger = logging.getLogger(__name__)

KIND_FACILITY = "facility"
KIND_DATA_CENTER = "data_center"


@dataclass(frozen=True)
class SizeScale:
    """Monotonic log mapping from capacity (MW) to a marker radius (px)."""
    min_capacity: float = 1.0
    max_capacity: float = 1000.0
    min_radius: float = 12.0
    max_radius: float = 24.0

    def __post_init__(self):
        if self.min_capacity <= 0 or self.max_capacity <= 1:
            raise ValueError("capacity domain must be positive with max_capacity > 1")
        if self.min_capacity > self.max_capacity or self.min_radius > self.max_radius:
            raise ValueError("scale bounds must be ordered (min <= max)")

    def radius(self, capacity_mw: Optional[float]) -> float:
        # Null, zero or unusable capacity renders as the smallest marker
        if capacity_mw is None or math.isnan(capacity_mw) or capacity_mw <= 0:
            capacity_mw = 1.0
        clamped = max(self.min_capacity, min(capacity_mw, self.max_capacity))
        fraction = math.log(clamped) / math.log(self.max_capacity)
        return self.min_radius + fraction * (self.max_radius - self.min_radius)


# Icon 24..48 px for facilities, diamond 10..26 px for data centers
FACILITY_SCALE = SizeScale(min_capacity=1.0, max_capacity=1000.0, min_radius=12.0, max_radius=24.0)
DATA_CENTER_SCALE = SizeScale(min_capacity=1.0, max_capacity=800.0, min_radius=5.0, max_radius=13.0)


@dataclass(frozen=True)
class Marker:
    marker_id: str
    kind: str
    name: str
    latitude: float
    longitude: float
    radius: float
    color: str
    label: str
    shape: str
    icon_url: Optional[str] = None
    capacity_mw: Optional[float] = None
    fuel_code: Optional[int] = None
    priority: int = 0
    z_index: int = 0

    @property
    def icon_size(self) -> int:
        return int(round(self.radius * 2))


def _get(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def valid_coordinates(latitude: Any, longitude: Any) -> bool:
    """True for finite numeric coordinates inside [-90, 90] x [-180, 180]."""
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def draw_order_key(marker: Marker):
    # Priority ascending (dominant fuels last), big markers under small ones
    return (marker.priority, -(marker.capacity_mw or 0.0), marker.marker_id)


def apply_draw_order(markers: Iterable[Marker]) -> list[Marker]:
    """Sort markers into render order and stamp their z_index."""
    ordered = sorted(markers, key=draw_order_key)
    return [replace(m, z_index=i) for i, m in enumerate(ordered)]


def facility_marker(record: Any, scale: SizeScale = FACILITY_SCALE) -> Marker:
    """Project one facility record. Raises ValueError for unusable records."""
    gppd_idnr = _get(record, "gppd_idnr")
    latitude = _get(record, "latitude")
    longitude = _get(record, "longitude")
    if not gppd_idnr:
        raise ValueError("facility has no gppd_idnr")
    if not valid_coordinates(latitude, longitude):
        raise ValueError(f"invalid coordinates ({latitude}, {longitude})")

    fuel_code = _get(record, "fuel_code")
    capacity = _get(record, "capacity_mw")
    style = fuel_style(fuel_code)
    return Marker(
        marker_id=str(gppd_idnr),
        kind=KIND_FACILITY,
        name=_get(record, "name") or str(gppd_idnr),
        latitude=float(latitude),
        longitude=float(longitude),
        radius=scale.radius(capacity),
        color=style.color,
        label=style.label,
        shape="icon",
        icon_url=style.icon_url,
        capacity_mw=capacity,
        fuel_code=fuel_code,
        priority=draw_priority(fuel_code),
    )


def data_center_marker(record: Any, scale: SizeScale = DATA_CENTER_SCALE) -> Marker:
    """Project one data center. Not subject to fuel styling."""
    dc_id = _get(record, "id")
    latitude = _get(record, "latitude")
    longitude = _get(record, "longitude")
    if not dc_id:
        raise ValueError("data center has no id")
    if not valid_coordinates(latitude, longitude):
        raise ValueError(f"invalid coordinates ({latitude}, {longitude})")

    return Marker(
        marker_id=f"dc:{dc_id}",
        kind=KIND_DATA_CENTER,
        name=_get(record, "name") or str(dc_id),
        latitude=float(latitude),
        longitude=float(longitude),
        radius=scale.radius(_get(record, "capacity_mw")),
        color=DATA_CENTER_COLOR,
        label="Data Center",
        shape="diamond",
        capacity_mw=_get(record, "capacity_mw"),
    )


def _project(records, build, scale) -> tuple[list[Marker], dict[str, Any], list[str]]:
    markers = []
    sources = {}
    skipped = []
    for record in records or []:
        try:
            marker = build(record, scale)
        except (ValueError, TypeError) as e:
            key = _get(record, "gppd_idnr") or _get(record, "id") or "?"
            logger.warning(f"Skipping marker for {key}: {e}")
            skipped.append(str(key))
            continue
        markers.append(marker)
        sources[marker.marker_id] = record
    return apply_draw_order(markers), sources, skipped


def project_facilities(records, scale: SizeScale = FACILITY_SCALE):
    """Facility records -> (markers in draw order, {marker_id: record}, skipped ids)."""
    return _project(records, facility_marker, scale)


def project_data_centers(records, scale: SizeScale = DATA_CENTER_SCALE):
    """Data-center records -> (markers in draw order, {marker_id: record}, skipped ids)."""
    return _project(records, data_center_marker, scale)
