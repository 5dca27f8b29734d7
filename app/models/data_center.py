"""Data center model."""

from typing import Optional

from sqlalchemy import Index, String, Float
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DataCenter(Base):
    __tablename__ = "data_centers"
    __table_args__ = (
        Index("ix_data_centers_capacity_mw", "capacity_mw"),
    )

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    owner: Mapped[Optional[str]] = mapped_column(String(300))
    users: Mapped[Optional[str]] = mapped_column(String(300))
    capacity_mw: Mapped[Optional[float]] = mapped_column(Float)
    project: Mapped[Optional[str]] = mapped_column(String(200))

    def __repr__(self) -> str:
        return f"<DataCenter(name={self.name!r})>"
