"""SQLAlchemy ORM models."""

from .base import Base
from .country import Country
from .fuel_source import FuelSource
from .facility import Facility
from .country_generation import CountryGeneration
from .data_center import DataCenter

__all__ = [
    "Base",
    "Country",
    "FuelSource",
    "Facility",
    "CountryGeneration",
    "DataCenter",
]
