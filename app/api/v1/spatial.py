"""Map viewport (bbox query parameter) for the markers endpoint."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from fastapi import Query

from core.errors import FieldError, ValidationError


def _bbox_error(message: str) -> ValidationError:
    return ValidationError([FieldError("bbox", message)])


@dataclass(frozen=True)
class BBox:
    """west,south,east,north in degrees. west > east wraps the antimeridian."""
    west: float
    south: float
    east: float
    north: float

    @classmethod
    def parse(cls, raw: str) -> "BBox":
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 4:
            raise _bbox_error("Expected 4 comma-separated values: west,south,east,north")
        try:
            west, south, east, north = (float(p) for p in parts)
        except ValueError:
            raise _bbox_error("Values must be numeric") from None

        if not (-180 <= west <= 180 and -180 <= east <= 180):
            raise _bbox_error("Longitude must be between -180 and 180")
        if not (-90 <= south <= 90 and -90 <= north <= 90):
            raise _bbox_error("Latitude must be between -90 and 90")
        if south > north:
            raise _bbox_error("South must not exceed north")
        return cls(west, south, east, north)

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def contains(self, latitude: float, longitude: float) -> bool:
        if not self.south <= latitude <= self.north:
            return False
        if self.crosses_antimeridian:
            return longitude >= self.west or longitude <= self.east
        return self.west <= longitude <= self.east

    def filter_records(self, records: Iterable[Any]) -> list:
        """Records (facility or data center) whose position lies in the box."""
        return [r for r in records if self.contains(r.latitude, r.longitude)]


def parse_bbox(
    bbox: Optional[str] = Query(
        None,
        description="Viewport as west,south,east,north (EPSG:4326). Example: -130,20,-60,55",
    ),
) -> Optional[BBox]:
    """FastAPI dependency: optional viewport filter."""
    if bbox is None or not bbox.strip():
        return None
    return BBox.parse(bbox)
