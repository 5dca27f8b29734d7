"""
Data-center CSV import.

Turns rows of the frontier data-center export (one row per site, DMS
coordinates, tagged owner/user lists) into DataCenter rows and upserts
them by id.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import pandas as pd
from sqlalchemy.orm import Session

from app.models import DataCenter
from core.facility_store import FacilityStore

logger = logging.getLogger(__name__)

# Column headers of the export
COL_ID = "Handle"
COL_NAME = "Title"
COL_PROJECT = "Project"
COL_LAT = "Latitude"
COL_LON = "Longitude"
COL_OWNER = "Owner"
COL_USERS = "Users"
COL_POWER = "Current power (MW)"

REQUIRED_COLUMNS = [COL_ID, COL_NAME, COL_LAT, COL_LON]

_DMS_RE = re.compile(r"(\d+)°(\d+)'([\d.]+)\"([NSEW])", re.IGNORECASE)
_TAG_RE = re.compile(r"#\w+")


@dataclass
class ImportReport:
    inserted: int = 0
    skipped: list[str] = field(default_factory=list)


def parse_dms(raw: str) -> float:
    """32°35'25"N -> 32.5903 (S and W negative). Raises ValueError."""
    match = _DMS_RE.search((raw or "").strip())
    if not match:
        raise ValueError(f"Cannot parse DMS coordinate: {raw!r}")
    degrees, minutes, seconds, hemisphere = match.groups()
    value = int(degrees) + int(minutes) / 60 + float(seconds) / 3600
    return -value if hemisphere.upper() in ("S", "W") else value


def strip_tags(raw: Optional[str]) -> Optional[str]:
    """Drop #confidence tags from a comma-separated list."""
    if not raw:
        return None
    parts = [_TAG_RE.sub("", p).strip() for p in str(raw).split(",")]
    cleaned = ", ".join(p for p in parts if p)
    return cleaned or None


def parse_capacity(raw: Any) -> Optional[float]:
    """Capacity in MW; blank, zero or non-numeric is unknown."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or value == 0:
        return None
    return value


def row_to_data_center(row: dict) -> dict:
    """One CSV row -> DataCenter column values. Raises ValueError if unusable."""
    missing = [c for c in REQUIRED_COLUMNS if not str(row.get(c) or "").strip()]
    if missing:
        raise ValueError(f"missing {', '.join(missing)}")

    return {
        "id": str(row[COL_ID]).strip(),
        "name": str(row[COL_NAME]).strip(),
        "project": str(row.get(COL_PROJECT) or "").strip() or None,
        "latitude": parse_dms(row[COL_LAT]),
        "longitude": parse_dms(row[COL_LON]),
        "owner": strip_tags(row.get(COL_OWNER)),
        "users": strip_tags(row.get(COL_USERS)),
        "capacity_mw": parse_capacity(row.get(COL_POWER)),
    }


def read_data_center_csv(path) -> pd.DataFrame:
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def import_data_centers(session: Session, df: pd.DataFrame) -> ImportReport:
    """Upsert every usable row (insert or replace by id) in one commit."""
    report = ImportReport()
    values = []
    for row in df.to_dict(orient="records"):
        try:
            values.append(row_to_data_center(row))
        except ValueError as e:
            key = str(row.get(COL_ID) or "?")
            logger.warning(f"Skipping data center row {key}: {e}")
            report.skipped.append(key)

    store = FacilityStore(session)
    with store.guard("import_data_centers"):
        for v in values:
            session.merge(DataCenter(**v))
        session.commit()

    report.inserted = len(values)
    logger.info(f"Imported {report.inserted} data centers, {len(report.skipped)} skipped")
    return report
