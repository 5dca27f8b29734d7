"""
Marker clustering.

Pure function of (markers, zoom, pixel radius): markers are projected to
Web Mercator pixel space at the given zoom and bucketed into square cells
of pixel_radius px. Every cell holding two or more markers becomes one
cluster. Cell membership depends only on a marker's own position, so two
markers either always share a cluster at a zoom level or never do,
regardless of what else is on the map or the input order.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from core.errors import InvalidArgument
from core.markers import Marker, draw_order_key

logger = logging.getLogger(__name__)

TILE_SIZE = 256
MAX_MERCATOR_LAT = 85.05112878

DEFAULT_PIXEL_RADIUS = 80
DEFAULT_DISABLE_AT_ZOOM = 7


@dataclass(frozen=True)
class Cluster:
    cluster_id: str
    zoom: float
    latitude: float
    longitude: float
    members: tuple[Marker, ...]
    bounds: tuple[tuple[float, float], tuple[float, float]]

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def label(self) -> str:
        return str(self.count)

    @property
    def marker_ids(self) -> list[str]:
        return [m.marker_id for m in self.members]


@dataclass
class ClusterResult:
    clusters: list[Cluster]
    singletons: list[Marker]


def project_to_pixels(latitudes, longitudes, zoom: float) -> tuple[np.ndarray, np.ndarray]:
    """Web Mercator world pixel coordinates at a zoom level."""
    scale = TILE_SIZE * (2.0 ** zoom)
    lat = np.clip(np.asarray(latitudes, dtype=float), -MAX_MERCATOR_LAT, MAX_MERCATOR_LAT)
    lon = np.asarray(longitudes, dtype=float)

    x = (lon + 180.0) / 360.0 * scale
    sin_lat = np.sin(np.radians(lat))
    y = (0.5 - np.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * scale
    return x, y


def _check_args(zoom, pixel_radius):
    if zoom is None or zoom < 0:
        raise InvalidArgument(f"zoom must be >= 0, got {zoom}")
    if pixel_radius <= 0:
        raise InvalidArgument(f"pixel_radius must be > 0, got {pixel_radius}")


def cell_of(marker: Marker, zoom: float, pixel_radius: float = DEFAULT_PIXEL_RADIUS) -> tuple[int, int]:
    """Grid cell a marker falls into at a zoom level."""
    _check_args(zoom, pixel_radius)
    x, y = project_to_pixels([marker.latitude], [marker.longitude], zoom)
    return int(math.floor(x[0] / pixel_radius)), int(math.floor(y[0] / pixel_radius))


def _make_cluster(cell: tuple[int, int], zoom: float, members: list[Marker]) -> Cluster:
    lats = [m.latitude for m in members]
    lons = [m.longitude for m in members]
    return Cluster(
        cluster_id=f"{zoom:g}:{cell[0]}:{cell[1]}",
        zoom=zoom,
        latitude=float(np.mean(lats)),
        longitude=float(np.mean(lons)),
        members=tuple(members),
        bounds=((min(lats), min(lons)), (max(lats), max(lons))),
    )


def cluster_markers(
    markers: Sequence[Marker],
    zoom: float,
    pixel_radius: float = DEFAULT_PIXEL_RADIUS,
    disable_at_zoom: Optional[float] = DEFAULT_DISABLE_AT_ZOOM,
) -> ClusterResult:
    """Split markers into clusters and singletons for one zoom level.

    At or above disable_at_zoom every marker is a singleton. Cluster
    members and singletons come back in draw order.
    """
    _check_args(zoom, pixel_radius)
    if not markers:
        return ClusterResult(clusters=[], singletons=[])

    if disable_at_zoom is not None and zoom >= disable_at_zoom:
        return ClusterResult(clusters=[], singletons=sorted(markers, key=draw_order_key))

    xs, ys = project_to_pixels(
        [m.latitude for m in markers], [m.longitude for m in markers], zoom
    )
    cells_x = np.floor(xs / pixel_radius).astype(int)
    cells_y = np.floor(ys / pixel_radius).astype(int)

    buckets: dict[tuple[int, int], list[Marker]] = {}
    for marker, cx, cy in zip(markers, cells_x, cells_y):
        buckets.setdefault((int(cx), int(cy)), []).append(marker)

    clusters = []
    singletons = []
    for cell in sorted(buckets, key=lambda c: (c[1], c[0])):
        members = sorted(buckets[cell], key=draw_order_key)
        if len(members) == 1:
            singletons.append(members[0])
        else:
            clusters.append(_make_cluster(cell, zoom, members))

    singletons.sort(key=draw_order_key)
    logger.debug(
        f"Clustered {len(markers)} markers at zoom {zoom}: "
        f"{len(clusters)} clusters, {len(singletons)} singletons"
    )
    return ClusterResult(clusters=clusters, singletons=singletons)
