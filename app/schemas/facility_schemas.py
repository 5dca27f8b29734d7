"""Pydantic schemas for the facility update payload."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FacilityUpdate(BaseModel):
    """Full replace of a facility's editable fields, keyed by gppd_idnr.

    Strict: numbers must be JSON numbers, not numeric strings.
    """

    model_config = ConfigDict(strict=True, allow_inf_nan=False, extra="ignore")

    gppd_idnr: str = Field(min_length=1)
    name: str = Field(min_length=1)
    capacity_mw: float = Field(ge=0)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    country_code: Optional[str] = None
    fuel_code: Optional[int] = None
    owner: Optional[str] = None
