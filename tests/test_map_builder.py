"""Tests for visualization.map_builder (renders to tmp_path)."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.marker_layer import build_marker_layer
from visualization.map_builder import create_facility_map

FACILITIES = [
    {"gppd_idnr": "A", "name": "Alpha Dam", "latitude": 40.0, "longitude": -100.0,
     "capacity_mw": 100.0, "fuel_code": 1, "owner": "Owner A",
     "country_long": "United States of America"},
    {"gppd_idnr": "B", "name": "Bravo Coal", "latitude": 40.1, "longitude": -100.1,
     "capacity_mw": 900.0, "fuel_code": 8, "owner": None, "country_long": None},
]
DATA_CENTERS = [
    {"id": "dc-1", "name": "Abilene Campus", "latitude": 32.5, "longitude": -99.7,
     "capacity_mw": 300.0, "owner": "Crusoe", "users": "OpenAI", "project": "Stargate"},
]


class TestCreateFacilityMap:
    def test_writes_html(self, tmp_path):
        layer = build_marker_layer(FACILITIES, DATA_CENTERS, zoom=4)
        out = create_facility_map(layer, tmp_path / "map.html", title="Test Map")
        html = Path(out).read_text(encoding="utf-8")
        assert "Alpha Dam" in html
        assert "Abilene Campus" in html
        assert "disableClusteringAtZoom" in html
        assert "Fuel Type" in html

    def test_empty_layer_renders(self, tmp_path):
        layer = build_marker_layer([], [], zoom=3)
        out = create_facility_map(layer, tmp_path / "nested" / "empty.html")
        assert Path(out).exists()
        assert "Data Center" in Path(out).read_text(encoding="utf-8")
