"""Seed the fuel_sources reference table from the fuel style table.

Idempotent: existing codes are updated in place. Cached API responses are
cleared afterwards.

Usage:
  python -m cli.seed_reference_data
  python -m cli.seed_reference_data --dry-run
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.cache import invalidate_all
from app.database import SessionLocal
from app.models import FuelSource
from core.fuel_styles import FUEL_STYLES, FUEL_TABLE_VERSION

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-7s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def seed_fuel_sources(session) -> int:
    for code, style in FUEL_STYLES.items():
        session.merge(FuelSource(fuel_code=code, fuel=style.label))
    session.commit()
    # Cached responses carry fuel names
    invalidate_all()
    return len(FUEL_STYLES)


def main():
    parser = argparse.ArgumentParser(description="Seed fuel_sources table")
    parser.add_argument("--dry-run", action="store_true", help="Print without writing")
    args = parser.parse_args()

    logger.info(f"Fuel table version {FUEL_TABLE_VERSION}: {len(FUEL_STYLES)} fuel codes")

    if args.dry_run:
        print(f"\n{'Code':<6} {'Fuel':<16} {'Color'}")
        print("-" * 32)
        for code, style in FUEL_STYLES.items():
            print(f"{code:<6} {style.label:<16} {style.color}")
        print()
        return

    session = SessionLocal()
    try:
        count = seed_fuel_sources(session)
        logger.info(f"Done: {count} fuel sources seeded")
    except Exception as e:
        session.rollback()
        logger.error(f"Seeding failed: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
