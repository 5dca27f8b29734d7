"""Projected map layer for one filter snapshot and zoom level."""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from app.config import settings
from core.clustering import Cluster, cluster_markers
from core.errors import NotFound
from core.markers import Marker, project_facilities, project_data_centers

logger = logging.getLogger(__name__)


@dataclass
class MarkerLayer:
    zoom: float
    markers: list[Marker]
    clusters: list[Cluster]
    singletons: list[Marker]
    data_centers: list[Marker] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    records: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.markers and not self.data_centers

    def select(self, marker_id: str) -> Any:
        """Source record behind one marker. Read-only; nothing is mutated."""
        try:
            return self.records[marker_id]
        except KeyError:
            raise NotFound("Marker", marker_id) from None

    def expand(self, cluster_id: str) -> list[Marker]:
        for cluster in self.clusters:
            if cluster.cluster_id == cluster_id:
                return list(cluster.members)
        raise NotFound("Cluster", cluster_id)

    def bounds(self) -> Optional[tuple[tuple[float, float], tuple[float, float]]]:
        """((south, west), (north, east)) around every rendered marker."""
        points = [(m.latitude, m.longitude) for m in self.markers + self.data_centers]
        if not points:
            return None
        lats = [p[0] for p in points]
        lons = [p[1] for p in points]
        return (min(lats), min(lons)), (max(lats), max(lons))


def build_marker_layer(
    facilities: Iterable[Any],
    data_centers: Iterable[Any] = (),
    zoom: float = 4,
    pixel_radius: Optional[float] = None,
    disable_at_zoom: Optional[float] = None,
) -> MarkerLayer:
    """Project facilities (clustered) and data centers (overlay) for a zoom level."""
    if pixel_radius is None:
        pixel_radius = settings.CLUSTER_PIXEL_RADIUS
    if disable_at_zoom is None:
        disable_at_zoom = settings.CLUSTER_DISABLE_AT_ZOOM

    markers, records, skipped = project_facilities(facilities)
    dc_markers, dc_records, dc_skipped = project_data_centers(data_centers)
    result = cluster_markers(markers, zoom, pixel_radius, disable_at_zoom)

    if skipped or dc_skipped:
        logger.warning(f"Skipped {len(skipped) + len(dc_skipped)} records with unusable data")

    return MarkerLayer(
        zoom=zoom,
        markers=markers,
        clusters=result.clusters,
        singletons=result.singletons,
        data_centers=dc_markers,
        skipped=skipped + dc_skipped,
        records={**records, **dc_records},
    )
