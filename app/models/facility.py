"""Power generation facility model."""

from typing import Optional

from sqlalchemy import Index, String, Float, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Facility(Base):
    __tablename__ = "facilities"
    __table_args__ = (
        Index("ix_facilities_country_code", "country_code"),
        Index("ix_facilities_fuel_code", "fuel_code"),
        Index("ix_facilities_capacity_mw", "capacity_mw"),
    )

    gppd_idnr: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    capacity_mw: Mapped[Optional[float]] = mapped_column(Float)
    owner: Mapped[Optional[str]] = mapped_column(String(300))
    fuel_code: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("fuel_sources.fuel_code"), nullable=True
    )
    country_code: Mapped[Optional[str]] = mapped_column(
        String(3), ForeignKey("countries.country_code"), nullable=True
    )

    # Relationships
    country: Mapped[Optional["Country"]] = relationship(back_populates="facilities")
    fuel_source: Mapped[Optional["FuelSource"]] = relationship(back_populates="facilities")

    def __repr__(self) -> str:
        return f"<Facility(gppd_idnr={self.gppd_idnr!r}, name={self.name!r})>"


from .country import Country  # noqa: E402
from .fuel_source import FuelSource  # noqa: E402
