"""initial schema

Revision ID: 3c1e5a7b9d20
Revises:
Create Date: 2025-06-02 10:14:08.215903

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1e5a7b9d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


VW_FACILITIES = """
CREATE VIEW vw_facilities AS
SELECT
    f.gppd_idnr,
    f.name,
    f.latitude,
    f.longitude,
    f.capacity_mw,
    f.owner,
    f.fuel_code,
    fs.fuel,
    f.country_code,
    c.country_long
FROM facilities f
LEFT JOIN countries c ON c.country_code = f.country_code
LEFT JOIN fuel_sources fs ON fs.fuel_code = f.fuel_code
"""


def upgrade() -> None:
    """Create the facility tracker tables and the denormalized facility view."""

    # Countries
    op.create_table(
        "countries",
        sa.Column("country_code", sa.String(3), primary_key=True),
        sa.Column("country_long", sa.String(100), nullable=False),
    )

    # Fuel sources
    op.create_table(
        "fuel_sources",
        sa.Column("fuel_code", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("fuel", sa.String(50), nullable=False),
    )

    # Facilities
    op.create_table(
        "facilities",
        sa.Column("gppd_idnr", sa.String(20), primary_key=True),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("capacity_mw", sa.Float, nullable=True),
        sa.Column("owner", sa.String(300), nullable=True),
        sa.Column("fuel_code", sa.Integer, sa.ForeignKey("fuel_sources.fuel_code"), nullable=True),
        sa.Column("country_code", sa.String(3), sa.ForeignKey("countries.country_code"), nullable=True),
    )
    op.create_index("ix_facilities_country_code", "facilities", ["country_code"])
    op.create_index("ix_facilities_fuel_code", "facilities", ["fuel_code"])
    op.create_index("ix_facilities_capacity_mw", "facilities", ["capacity_mw"])

    # Annual generation
    op.create_table(
        "country_generation",
        sa.Column("country_code", sa.String(3), sa.ForeignKey("countries.country_code"),
                  primary_key=True),
        sa.Column("year", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("total_generation", sa.Float, nullable=True),
    )

    # Data centers
    op.create_table(
        "data_centers",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("owner", sa.String(300), nullable=True),
        sa.Column("users", sa.String(300), nullable=True),
        sa.Column("capacity_mw", sa.Float, nullable=True),
        sa.Column("project", sa.String(200), nullable=True),
    )
    op.create_index("ix_data_centers_capacity_mw", "data_centers", ["capacity_mw"])

    op.execute(VW_FACILITIES)


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS vw_facilities")
    op.drop_index("ix_data_centers_capacity_mw", table_name="data_centers")
    op.drop_table("data_centers")
    op.drop_table("country_generation")
    op.drop_index("ix_facilities_capacity_mw", table_name="facilities")
    op.drop_index("ix_facilities_fuel_code", table_name="facilities")
    op.drop_index("ix_facilities_country_code", table_name="facilities")
    op.drop_table("facilities")
    op.drop_table("fuel_sources")
    op.drop_table("countries")
