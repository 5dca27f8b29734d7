"""Render the facility map and capacity charts for one filter selection.

Usage:
  python -m cli.render_report
  python -m cli.render_report --country USA
  python -m cli.render_report --fuel 6 --include-micro --zoom 5
  python -m cli.render_report --compare USA,CAN,MEX
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.config import settings
from app.database import SessionLocal
from core.aggregation import AggregationEngine
from core.errors import FacilityTrackerError
from core.filters import FilterSpec
from core.marker_layer import build_marker_layer
from visualization import (
    create_facility_map,
    create_fuel_capacity_chart,
    create_country_capacity_chart,
    create_generation_trend_chart,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def render(session, spec: FilterSpec, zoom: float, output_dir: Path, compare=None,
           with_data_centers: bool = True) -> list[str]:
    engine = AggregationEngine(session)
    summary = engine.summarize(spec)
    facilities = engine.list_facilities(spec.country, spec.fuel, spec.include_micro)
    centers = engine.list_data_centers() if with_data_centers else []

    logger.info(
        f"Filter {spec}: {len(facilities)} facilities, "
        f"{len(summary.by_country)} countries, {len(summary.by_fuel)} fuels"
    )

    layer = build_marker_layer(facilities, centers, zoom=zoom)
    outputs = [create_facility_map(layer, output_dir / "facility_map.html")]
    outputs.append(create_fuel_capacity_chart(summary.by_fuel, output_dir / "capacity_by_fuel.png"))
    outputs.append(create_country_capacity_chart(
        summary.by_country, output_dir / "capacity_by_country.png"
    ))
    if compare:
        rows = engine.generation_by_countries(compare)
        outputs.append(create_generation_trend_chart(rows, output_dir / "generation_trend.png"))
    return [o for o in outputs if o]


def main():
    parser = argparse.ArgumentParser(description="Render facility map and charts")
    parser.add_argument("--country", help="ISO-3 country code")
    parser.add_argument("--fuel", type=int, help="Fuel code")
    parser.add_argument("--include-micro", action="store_true",
                        help=f"Include facilities below {settings.MICRO_THRESHOLD_MW:g} MW")
    parser.add_argument("--zoom", type=float, default=4, help="Map zoom level (default 4)")
    parser.add_argument("--compare", help="Comma-separated countries for the generation chart")
    parser.add_argument("--no-data-centers", action="store_true", help="Omit the data-center overlay")
    parser.add_argument("--output-dir", type=Path, default=settings.OUTPUT_DIR)
    args = parser.parse_args()

    spec = FilterSpec(country=args.country, fuel=args.fuel, include_micro=args.include_micro)
    compare = [c.strip() for c in (args.compare or "").split(",") if c.strip()]

    session = SessionLocal()
    try:
        outputs = render(session, spec, args.zoom, args.output_dir, compare,
                         with_data_centers=not args.no_data_centers)
    except FacilityTrackerError as e:
        logger.error(f"Report failed: {e}")
        sys.exit(1)
    finally:
        session.close()

    print("\nWrote:")
    for path in outputs:
        print(f"  {path}")


if __name__ == "__main__":
    main()
