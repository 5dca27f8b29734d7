"""
Facility visualization: interactive maps and static charts.
"""

from .map_builder import create_facility_map
from .chart_builder import (
    create_fuel_capacity_chart,
    create_country_capacity_chart,
    create_generation_trend_chart,
)
