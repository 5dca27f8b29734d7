"""Fuel source reference model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class FuelSource(Base):
    __tablename__ = "fuel_sources"

    fuel_code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    fuel: Mapped[str] = mapped_column(String(50), nullable=False)

    facilities: Mapped[list["Facility"]] = relationship(back_populates="fuel_source")

    def __repr__(self) -> str:
        return f"<FuelSource(fuel_code={self.fuel_code}, fuel={self.fuel!r})>"


from .facility import Facility  # noqa: E402
