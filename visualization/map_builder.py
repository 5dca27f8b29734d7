"""
Interactive Folium map builder for facility marker layers.

Renders a projected MarkerLayer: fuel-icon facility markers inside a
MarkerCluster (clustering switched off at the configured zoom), a
data-center overlay of diamonds, and a fuel legend.
"""

import html
import logging
from pathlib import Path
from typing import Optional

from app.config import settings
from core.fuel_styles import DATA_CENTER_COLOR, FUEL_STYLES, UNKNOWN_FUEL
from core.marker_layer import MarkerLayer
from core.markers import Marker

logger = logging.getLogger(__name__)

# Count bubble for cluster glyphs
CLUSTER_ICON_JS = """
function(cluster) {
    var count = cluster.getChildCount();
    return L.divIcon({
        html: '<div style="width:40px;height:40px;border-radius:50%;background:#1e3a8a;'
            + 'border:2px solid white;display:flex;align-items:center;justify-content:center;'
            + 'color:white;font-size:13px;font-weight:600;">' + count + '</div>',
        className: 'custom-cluster-icon',
        iconSize: L.point(40, 40)
    });
}
"""


def _fmt_capacity(capacity_mw: Optional[float], missing: str = "capacity unknown") -> str:
    if not capacity_mw:
        return missing
    return f"{capacity_mw:,.0f} MW"


def _facility_popup(marker: Marker, record) -> str:
    lines = [
        f"<b>{html.escape(marker.name)}</b>",
        f"{html.escape(marker.label)} | {_fmt_capacity(marker.capacity_mw)}",
    ]
    owner = getattr(record, "owner", None)
    if owner:
        lines.append(f"<b>Owner:</b> {html.escape(owner)}")
    country = getattr(record, "country_long", None)
    if country:
        lines.append(f"<b>Country:</b> {html.escape(country)}")
    lines.append(f"<small>ID: {html.escape(marker.marker_id)}</small>")
    return "<br>".join(lines)


def _data_center_popup(marker: Marker, record) -> str:
    lines = [
        f"<b>{html.escape(marker.name)}</b>",
        html.escape(getattr(record, "owner", None) or "Unknown"),
        _fmt_capacity(marker.capacity_mw, missing="capacity TBC"),
    ]
    users = getattr(record, "users", None)
    if users:
        lines.append(f"<small>Users: {html.escape(users)}</small>")
    project = getattr(record, "project", None)
    if project:
        lines.append(f"<small>Project: {html.escape(project)}</small>")
    return "<br>".join(lines)


def _facility_icon(marker: Marker):
    import folium

    size = marker.icon_size
    return folium.DivIcon(
        html=(
            f'<div style="width:{size}px;height:{size}px;border-radius:50%;'
            f'background:{marker.color};opacity:0.85;border:1px solid white;">'
            f'<img src="{marker.icon_url}" style="width:{size}px;height:{size}px;" '
            f'onerror="this.style.display=\'none\'"/></div>'
        ),
        icon_size=(size, size),
        icon_anchor=(size // 2, size // 2),
        class_name="",
    )


def _diamond_icon(marker: Marker):
    import folium

    size = marker.icon_size
    half = size / 2
    return folium.DivIcon(
        html=(
            f'<svg width="{size}" height="{size}" viewBox="0 0 {size} {size}" '
            f'xmlns="http://www.w3.org/2000/svg"><polygon '
            f'points="{half},0 {size},{half} {half},{size} 0,{half}" '
            f'fill="{DATA_CENTER_COLOR}" fill-opacity="0.85" stroke="white" '
            f'stroke-width="1.5"/></svg>'
        ),
        icon_size=(size, size),
        icon_anchor=(half, half),
        class_name="",
    )


def _legend_html() -> str:
    rows = []
    for style in list(FUEL_STYLES.values()) + [UNKNOWN_FUEL]:
        rows.append(
            f'<i style="background: {style.color}; width: 12px; height: 12px; '
            f'display: inline-block; border-radius: 50%;"></i> {html.escape(style.label)}<br>'
        )
    return f"""
    <div style="position: fixed; bottom: 30px; left: 30px; z-index: 1000;
                background-color: white; border: 2px solid grey; padding: 10px;
                border-radius: 5px; font-size: 13px; opacity: 0.9; max-height: 80vh;
                overflow-y: auto;">
    <b>Fuel Type</b><br>
    {''.join(rows)}
    <hr style="margin: 4px 0;">
    <i style="background: {DATA_CENTER_COLOR}; width: 12px; height: 12px;
              display: inline-block; transform: rotate(45deg);"></i> Data Center<br>
    <br><i>Marker size = capacity (log scale)</i>
    </div>
    """


def create_facility_map(
    layer: MarkerLayer,
    output_path: Optional[Path] = None,
    map_center: tuple[float, float] = (40.0, -100.0),
    map_zoom: Optional[int] = None,
    title: Optional[str] = None,
) -> str:
    """
    Render a marker layer to an interactive HTML map.

    Args:
        layer: Projected facilities and data centers.
        output_path: Where to save the HTML map.
        map_center: (lat, lon) center used when the layer is empty.
        map_zoom: Initial zoom level (defaults to the layer's zoom).
        title: Optional caption shown above the map.

    Returns:
        Output file path as string.
    """
    import folium
    from folium import plugins

    if output_path is None:
        output_path = settings.OUTPUT_DIR / "facility_map.html"
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    m = folium.Map(
        location=list(map_center),
        zoom_start=int(map_zoom if map_zoom is not None else layer.zoom),
        tiles="CartoDB positron",
    )

    if title:
        m.get_root().html.add_child(folium.Element(
            f'<h4 style="position: fixed; top: 10px; left: 60px; z-index: 1000; '
            f'background: #1e3a8a; color: white; padding: 6px 12px; border-radius: 4px;">'
            f'{html.escape(title)}</h4>'
        ))

    # -- Facility markers (clustered) --
    facility_layer = folium.FeatureGroup(name="Power Facilities", show=True)
    cluster = plugins.MarkerCluster(
        options={
            "maxClusterRadius": settings.CLUSTER_PIXEL_RADIUS,
            "disableClusteringAtZoom": settings.CLUSTER_DISABLE_AT_ZOOM,
        },
        icon_create_function=CLUSTER_ICON_JS,
    )

    # layer.markers is already in draw order
    for marker in layer.markers:
        record = layer.records.get(marker.marker_id)
        folium.Marker(
            location=[marker.latitude, marker.longitude],
            icon=_facility_icon(marker),
            popup=folium.Popup(_facility_popup(marker, record), max_width=300),
            tooltip=marker.name,
            z_index_offset=marker.z_index,
        ).add_to(cluster)

    cluster.add_to(facility_layer)
    facility_layer.add_to(m)

    # -- Data center overlay --
    if layer.data_centers:
        dc_layer = folium.FeatureGroup(name="Data Centers", show=True)
        for marker in layer.data_centers:
            record = layer.records.get(marker.marker_id)
            folium.Marker(
                location=[marker.latitude, marker.longitude],
                icon=_diamond_icon(marker),
                popup=folium.Popup(_data_center_popup(marker, record), max_width=250),
                tooltip=marker.name,
            ).add_to(dc_layer)
        dc_layer.add_to(m)

    bounds = layer.bounds()
    if bounds:
        m.fit_bounds([list(bounds[0]), list(bounds[1])], padding=(40, 40))

    m.get_root().html.add_child(folium.Element(_legend_html()))
    folium.LayerControl().add_to(m)

    m.save(str(output_path))
    logger.info(
        f"Saved facility map to {output_path} "
        f"({len(layer.markers)} facilities, {len(layer.data_centers)} data centers)"
    )
    return str(output_path)
