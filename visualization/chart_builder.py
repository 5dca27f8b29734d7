"""
Chart builders for capacity and generation statistics.

Static PNG counterparts of the dashboard pages: capacity by fuel,
capacity by country, and annual generation trends for a country set.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from app.config import settings
from core.aggregation import CountryCapacity, FuelCapacity, GenerationRow
from core.fuel_styles import fuel_style

logger = logging.getLogger(__name__)


def _resolve(output_path: Optional[Path], default_name: str) -> Path:
    if output_path is None:
        output_path = settings.OUTPUT_DIR / default_name
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def create_fuel_capacity_chart(
    rows: list[FuelCapacity],
    output_path: Optional[Path] = None,
    title: str = "Installed Capacity by Fuel Type",
) -> Optional[str]:
    """Horizontal bar chart of capacity per fuel, coloured by fuel."""
    if not rows:
        logger.warning("No fuel capacity rows; skipping chart")
        return None
    output_path = _resolve(output_path, "capacity_by_fuel.png")

    # Largest at the top
    ordered = list(reversed(rows))
    y = np.arange(len(ordered))
    values = [r.generation_mw for r in ordered]
    colors = [fuel_style(r.fuel_code).color for r in ordered]

    fig, ax = plt.subplots(figsize=(10, max(4, len(ordered) * 0.45)))
    ax.barh(y, values, color=colors, alpha=0.9)
    ax.set_yticks(y)
    ax.set_yticklabels([r.fuel_name for r in ordered])
    ax.set_xlabel("Capacity (MW)")
    ax.set_title(title)

    for i, v in enumerate(values):
        ax.text(v, i, f" {v:,}", va="center", fontsize=8)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved fuel capacity chart to {output_path}")
    return str(output_path)


def create_country_capacity_chart(
    rows: list[CountryCapacity],
    output_path: Optional[Path] = None,
    top_n: int = 20,
    title: str = "Installed Capacity by Country",
) -> Optional[str]:
    """Bar chart of the top_n countries by capacity."""
    if not rows:
        logger.warning("No country capacity rows; skipping chart")
        return None
    output_path = _resolve(output_path, "capacity_by_country.png")

    top = rows[:top_n]
    x = np.arange(len(top))

    fig, ax = plt.subplots(figsize=(max(8, len(top) * 0.6), 6))
    ax.bar(x, [r.capacity_mw for r in top], color="#1e3a8a", alpha=0.85)
    ax.set_xticks(x)
    ax.set_xticklabels([r.country_code for r in top], rotation=45, ha="right")
    ax.set_ylabel("Capacity (MW)")
    ax.set_title(f"{title} (top {len(top)})")

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved country capacity chart to {output_path}")
    return str(output_path)


def create_generation_trend_chart(
    rows: list[GenerationRow],
    output_path: Optional[Path] = None,
    title: str = "Annual Generation by Country",
) -> Optional[str]:
    """Line chart of annual generation, one line per country."""
    if not rows:
        logger.warning("No generation rows; skipping chart")
        return None
    output_path = _resolve(output_path, "generation_trend.png")

    df = pd.DataFrame([
        {"country_code": r.country_code, "year": r.year, "total_generation": r.total_generation}
        for r in rows
    ])
    wide = df.pivot_table(index="year", columns="country_code", values="total_generation")

    fig, ax = plt.subplots(figsize=(12, 6))
    for code in wide.columns:
        ax.plot(wide.index, wide[code], marker="o", linewidth=1.5, label=code)

    ax.set_xlabel("Year")
    ax.set_ylabel("Generation (GWh)")
    ax.set_title(title)
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved generation trend chart to {output_path}")
    return str(output_path)
