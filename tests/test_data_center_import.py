"""Tests for core.data_center_import (CSV row rules and upsert)."""

import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.models import DataCenter
from core.data_center_import import (
    import_data_centers, parse_capacity, parse_dms, read_data_center_csv, strip_tags,
)

CSV_TEXT = """Handle,Title,Project,Address,Latitude,Longitude,Owner,Users,Investors,Construction companies,Energy companies,Current H100 equivalents,Current power (MW),Current total capital cost (2025 USD billions)
abilene,Abilene Campus,Stargate,"Abilene, TX","32°30'0""N"," 99°42'0""W","Crusoe #confident, Blue Owl #likely",OpenAI #confident,,,,100000,300,15
colossus,Colossus,,Memphis,"35°3'36""N","90°9'18""W",xAI #confident,,,,,0,0,
broken,Broken Row,,,not a coordinate,"1°0'0""E",,,,,,,,
"""


class TestParseDms:
    def test_north_west(self):
        assert parse_dms("32°35'25\"N") == pytest.approx(32.590278, abs=1e-6)
        assert parse_dms("101°18'43\"W") == pytest.approx(-101.311944, abs=1e-6)

    def test_leading_spaces_and_south(self):
        assert parse_dms("  33°52'0\"S") == pytest.approx(-33.866667, abs=1e-6)

    def test_decimal_seconds(self):
        assert parse_dms("0°0'36.0\"E") == pytest.approx(0.01)

    @pytest.mark.parametrize("raw", ["", "32.5", "32°35'N", None])
    def test_unparseable(self, raw):
        with pytest.raises(ValueError):
            parse_dms(raw)


class TestStripTags:
    def test_tags_removed(self):
        assert strip_tags("Amazon #confident, Anthropic #speculative") == "Amazon, Anthropic"

    def test_only_tags_is_none(self):
        assert strip_tags("#unknown") is None

    def test_empty(self):
        assert strip_tags("") is None
        assert strip_tags(None) is None


class TestParseCapacity:
    @pytest.mark.parametrize("raw", ["", "0", "n/a", None, float("nan")])
    def test_unknown(self, raw):
        assert parse_capacity(raw) is None

    def test_numeric(self):
        assert parse_capacity("120.5") == 120.5


class TestImportDataCenters:
    def _frame(self, tmp_path):
        path = tmp_path / "datacenters.csv"
        path.write_text(CSV_TEXT, encoding="utf-8")
        return read_data_center_csv(path)

    def test_import(self, db_session, tmp_path):
        report = import_data_centers(db_session, self._frame(tmp_path))
        assert report.inserted == 2
        assert report.skipped == ["broken"]

        abilene = db_session.get(DataCenter, "abilene")
        assert abilene.latitude == pytest.approx(32.5)
        assert abilene.longitude == pytest.approx(-99.7)
        assert abilene.owner == "Crusoe, Blue Owl"
        assert abilene.users == "OpenAI"
        assert abilene.capacity_mw == 300.0
        assert abilene.project == "Stargate"

        colossus = db_session.get(DataCenter, "colossus")
        assert colossus.capacity_mw is None
        assert colossus.users is None
        assert colossus.project is None

    def test_reimport_replaces_rows(self, db_session, tmp_path):
        df = self._frame(tmp_path)
        import_data_centers(db_session, df)

        df.loc[df["Handle"] == "abilene", "Current power (MW)"] = "450"
        import_data_centers(db_session, df)

        assert db_session.query(DataCenter).count() == 2
        assert db_session.get(DataCenter, "abilene").capacity_mw == 450.0

    def test_missing_required_column_value(self, db_session):
        df = pd.DataFrame([{"Handle": "x", "Title": "", "Latitude": "1°0'0\"N",
                            "Longitude": "1°0'0\"E"}])
        report = import_data_centers(db_session, df)
        assert report.inserted == 0
        assert report.skipped == ["x"]
