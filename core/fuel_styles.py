"""
Fuel type display configuration.

Static, versioned lookup tables keyed by fuel_code (1..16, matching the
fuel_sources reference table): marker colour, label, icon and draw
priority. Shared by the map markers, the legend and the charts.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

FUEL_TABLE_VERSION = "2025.1"


@dataclass(frozen=True)
class FuelStyle:
    code: Optional[int]
    label: str
    color: str
    icon_url: str


UNKNOWN_FUEL = FuelStyle(
    code=None, label="Unknown", color="#6c757d", icon_url="/icons/unknown.svg"
)

FUEL_STYLES = MappingProxyType({
    1: FuelStyle(1, "Hydro", "#0d6efd", "/icons/hydro.svg"),
    2: FuelStyle(2, "Solar", "#ffc107", "/icons/solar.svg"),
    3: FuelStyle(3, "Gas", "#fd7e14", "/icons/gas.svg"),
    4: FuelStyle(4, "Other", "#6c757d", "/icons/unknown.svg"),
    5: FuelStyle(5, "Oil", "#212529", "/icons/oil.svg"),
    6: FuelStyle(6, "Wind", "#20c997", "/icons/wind.svg"),
    7: FuelStyle(7, "Nuclear", "#6f42c1", "/icons/nuclear.svg"),
    8: FuelStyle(8, "Coal", "#495057", "/icons/coal.svg"),
    9: FuelStyle(9, "Waste", "#795548", "/icons/biomass.svg"),
    10: FuelStyle(10, "Biomass", "#198754", "/icons/biomass.svg"),
    11: FuelStyle(11, "Wave & Tidal", "#0dcaf0", "/icons/wave.svg"),
    12: FuelStyle(12, "Petcoke", "#adb5bd", "/icons/unknown.svg"),
    13: FuelStyle(13, "Geothermal", "#e83e8c", "/icons/geothermal.svg"),
    14: FuelStyle(14, "Storage", "#ced4da", "/icons/unknown.svg"),
    15: FuelStyle(15, "Cogeneration", "#dc3545", "/icons/cogeneration.svg"),
    16: FuelStyle(16, "None", "#6c757d", "/icons/unknown.svg"),
})

# Higher priority is drawn later, i.e. on top. Unlisted fuels are 0.
FUEL_DRAW_PRIORITY = MappingProxyType({
    8: 6,  # Coal
    3: 5,  # Gas
    7: 4,  # Nuclear
    6: 3,  # Wind
    1: 2,  # Hydro
    2: 1,  # Solar
})

DATA_CENTER_COLOR = "#9b59b6"  # not used by any fuel type


def fuel_style(fuel_code: Optional[int]) -> FuelStyle:
    """Style for a fuel code; unknown or missing codes get UNKNOWN_FUEL."""
    if fuel_code is None:
        return UNKNOWN_FUEL
    return FUEL_STYLES.get(fuel_code, UNKNOWN_FUEL)


def draw_priority(fuel_code: Optional[int]) -> int:
    return FUEL_DRAW_PRIORITY.get(fuel_code, 0)
