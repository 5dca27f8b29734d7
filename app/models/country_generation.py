"""Annual electricity generation per country."""

from typing import Optional

from sqlalchemy import String, Float, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class CountryGeneration(Base):
    __tablename__ = "country_generation"

    country_code: Mapped[str] = mapped_column(
        String(3), ForeignKey("countries.country_code"), primary_key=True
    )
    year: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    total_generation: Mapped[Optional[float]] = mapped_column(Float)

    country: Mapped["Country"] = relationship(back_populates="generation")

    def __repr__(self) -> str:
        return f"<CountryGeneration({self.country_code!r}, {self.year})>"


from .country import Country  # noqa: E402
