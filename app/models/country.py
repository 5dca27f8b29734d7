"""Country reference model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Country(Base):
    __tablename__ = "countries"

    country_code: Mapped[str] = mapped_column(String(3), primary_key=True)
    country_long: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    facilities: Mapped[list["Facility"]] = relationship(back_populates="country")
    generation: Mapped[list["CountryGeneration"]] = relationship(back_populates="country")

    def __repr__(self) -> str:
        return f"<Country(country_code={self.country_code!r})>"


# Avoid circular import at module level
from .facility import Facility  # noqa: E402
from .country_generation import CountryGeneration  # noqa: E402
