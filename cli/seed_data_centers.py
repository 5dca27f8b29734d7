"""Import the frontier data-center CSV into the data_centers table.

Rows are upserted by Handle, so re-running the import is safe.

Usage:
  python -m cli.seed_data_centers
  python -m cli.seed_data_centers --csv data/epoch-datacenters.csv
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.config import settings
from app.database import SessionLocal
from core.data_center_import import import_data_centers, read_data_center_csv

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_CSV = settings.DATA_DIR / "epoch-datacenters.csv"


def main():
    parser = argparse.ArgumentParser(description="Import data centers from CSV")
    parser.add_argument("--csv", type=Path, default=DEFAULT_CSV, help="Path to the export CSV")
    args = parser.parse_args()

    if not args.csv.exists():
        logger.error(f"CSV not found: {args.csv}")
        sys.exit(1)

    df = read_data_center_csv(args.csv)
    logger.info(f"Read {len(df)} rows from {args.csv.name}")

    session = SessionLocal()
    try:
        report = import_data_centers(session, df)
    finally:
        session.close()

    print(f"\nDone: {report.inserted} rows inserted, {len(report.skipped)} skipped.")
    if report.skipped:
        print(f"Skipped: {', '.join(report.skipped)}")


if __name__ == "__main__":
    main()
