"""Pydantic response models for the API."""

from typing import Optional

from pydantic import BaseModel


class CountryOption(BaseModel):
    code: str
    country: str


class FuelSourceOption(BaseModel):
    code: int
    fuel_source: str


class FilterMetadataResponse(BaseModel):
    countries: list[CountryOption]
    fuel_sources: list[FuelSourceOption]


class FacilityResponse(BaseModel):
    gppd_idnr: str
    name: str
    latitude: float
    longitude: float
    capacity_mw: Optional[float] = None
    owner: Optional[str] = None
    fuel_code: Optional[int] = None
    fuel: Optional[str] = None
    country_code: Optional[str] = None
    country_long: Optional[str] = None

    class Config:
        from_attributes = True


class FacilityUpdateResponse(BaseModel):
    success: bool
    updated: FacilityResponse


class CountryCapacityResponse(BaseModel):
    country_code: str
    country_name: str
    capacity_mw: int


class FuelCapacityResponse(BaseModel):
    fuel_code: int
    fuel_name: str
    generation_mw: int


class CountryFuelCapacityResponse(BaseModel):
    country_code: str
    country_name: str
    fuel_code: int
    fuel_name: str
    capacity_mw: int


class CountryFuelPivotResponse(BaseModel):
    fuels: list[str]
    rows: dict[str, dict[str, int]]


class GenerationResponse(BaseModel):
    country_code: str
    year: int
    total_generation: Optional[float] = None


class DataCenterResponse(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    owner: Optional[str] = None
    users: Optional[str] = None
    capacity_mw: Optional[float] = None
    project: Optional[str] = None


class MarkerResponse(BaseModel):
    marker_id: str
    kind: str
    name: str
    latitude: float
    longitude: float
    radius: float
    color: str
    label: str
    shape: str
    icon_url: Optional[str] = None
    capacity_mw: Optional[float] = None
    fuel_code: Optional[int] = None
    z_index: int

    class Config:
        from_attributes = True


class ClusterResponse(BaseModel):
    cluster_id: str
    latitude: float
    longitude: float
    count: int
    marker_ids: list[str]


class MarkerLayerResponse(BaseModel):
    zoom: float
    clusters: list[ClusterResponse]
    markers: list[MarkerResponse]
    data_centers: list[MarkerResponse]
    skipped: list[str]
