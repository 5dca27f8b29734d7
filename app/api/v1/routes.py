"""API v1 route handlers.

Thin wrappers: parse and validate request parameters, call the core,
serialize. Core errors are translated to HTTP responses by the exception
handlers registered in app.main.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from app.api.v1.spatial import BBox, parse_bbox
from app.auth import require_api_key
from app.cache import cache_response, invalidate_aggregates
from app.database import get_db
from app.schemas.responses import (
    FilterMetadataResponse, CountryOption, FuelSourceOption,
    FacilityResponse, FacilityUpdateResponse, CountryCapacityResponse,
    FuelCapacityResponse, CountryFuelCapacityResponse, CountryFuelPivotResponse,
    GenerationResponse, DataCenterResponse, MarkerLayerResponse,
    MarkerResponse, ClusterResponse,
)
from core.aggregation import AggregationEngine, country_fuel_pivot
from core.errors import FieldError, ValidationError
from core.facility_updater import update_facility
from core.filters import parse_filter_params
from core.marker_layer import build_marker_layer

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/api/v1", dependencies=[Depends(require_api_key)])


@router.get("/filters", response_model=FilterMetadataResponse)
@cache_response("filters", ttl=3600)
def get_filters(request: Request, db: Session = Depends(get_db)):
    """Countries and fuel sources for the filter sidebar."""
    metadata = AggregationEngine(db).filter_metadata()
    return FilterMetadataResponse(
        countries=[CountryOption(code=c.code, country=c.country) for c in metadata.countries],
        fuel_sources=[
            FuelSourceOption(code=f.code, fuel_source=f.fuel_source)
            for f in metadata.fuel_sources
        ],
    )


@router.get("/facilities", response_model=list[FacilityResponse])
def list_facilities(
    country: Optional[str] = None,
    fuel: Optional[str] = None,
    include_micro: Optional[str] = Query(default=None, alias="includeMicro"),
    db: Session = Depends(get_db),
):
    """Facilities filtered by country, fuel code and micro threshold."""
    spec = parse_filter_params(country, fuel, include_micro)
    return AggregationEngine(db).list_facilities(spec.country, spec.fuel, spec.include_micro)


@router.put("/facilities/update", response_model=FacilityUpdateResponse)
@limiter.limit("30/minute")
def put_facility_update(
    request: Request,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
):
    """Replace the editable fields of one facility.

    Rate-limited to 30 requests per minute.
    """
    updated = update_facility(db, payload)
    invalidate_aggregates()
    return FacilityUpdateResponse(
        success=True, updated=FacilityResponse.model_validate(updated)
    )


@router.get("/country-capacity", response_model=list[CountryCapacityResponse])
@cache_response("country-capacity", ttl=300)
def get_country_capacity(
    request: Request,
    fuel: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Total capacity per country, optionally for one fuel code."""
    spec = parse_filter_params(fuel=fuel)
    return AggregationEngine(db).capacity_by_country(spec.fuel)


@router.get("/capacity-by-fuel", response_model=list[FuelCapacityResponse])
@cache_response("capacity-by-fuel", ttl=300)
def get_capacity_by_fuel(
    request: Request,
    country: Optional[str] = None,
    include_micro: Optional[str] = Query(default=None, alias="includeMicro"),
    db: Session = Depends(get_db),
):
    """Total capacity per fuel type, optionally for one country."""
    spec = parse_filter_params(country, None, include_micro)
    return AggregationEngine(db).capacity_by_fuel(spec.country, spec.include_micro)


@router.get("/country-fuel-capacity", response_model=list[CountryFuelCapacityResponse])
@cache_response("country-fuel-capacity", ttl=300)
def get_country_fuel_capacity(
    request: Request,
    country: Optional[str] = None,
    include_micro: Optional[str] = Query(default=None, alias="includeMicro"),
    db: Session = Depends(get_db),
):
    """Capacity cross-tabulated by country and fuel."""
    spec = parse_filter_params(country, None, include_micro)
    return AggregationEngine(db).capacity_by_country_and_fuel(spec.country, spec.include_micro)


@router.get("/country-fuel-capacity/pivot", response_model=CountryFuelPivotResponse)
def get_country_fuel_pivot(
    country: Optional[str] = None,
    include_micro: Optional[str] = Query(default=None, alias="includeMicro"),
    db: Session = Depends(get_db),
):
    """Cross-tab as a country x fuel table with zero-filled cells."""
    spec = parse_filter_params(country, None, include_micro)
    rows = AggregationEngine(db).capacity_by_country_and_fuel(spec.country, spec.include_micro)
    pivot = country_fuel_pivot(rows)
    if pivot.empty:
        return CountryFuelPivotResponse(fuels=[], rows={})
    return CountryFuelPivotResponse(
        fuels=[str(c) for c in pivot.columns],
        rows={
            str(name): {str(k): int(v) for k, v in row.items()}
            for name, row in pivot.iterrows()
        },
    )


@router.get("/country-generation", response_model=list[GenerationResponse])
@cache_response("country-generation", ttl=3600)
def get_country_generation(
    request: Request,
    countries: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Annual generation for a comma-separated list of country codes."""
    codes = [c.strip() for c in (countries or "").split(",") if c.strip()]
    if not codes:
        raise ValidationError([
            FieldError("countries", "At least one country code is required")
        ])
    return AggregationEngine(db).generation_by_countries(codes)


@router.get("/data-centers", response_model=list[DataCenterResponse])
@cache_response("data-centers", ttl=3600)
def list_data_centers(request: Request, db: Session = Depends(get_db)):
    """All data centers, largest capacity first."""
    return AggregationEngine(db).list_data_centers()


@router.get("/markers", response_model=MarkerLayerResponse)
def get_markers(
    country: Optional[str] = None,
    fuel: Optional[str] = None,
    include_micro: Optional[str] = Query(default=None, alias="includeMicro"),
    zoom: float = Query(default=4, ge=0, le=22),
    data_centers: bool = Query(default=True, alias="dataCenters"),
    bbox: Optional[BBox] = Depends(parse_bbox),
    db: Session = Depends(get_db),
):
    """Projected and clustered map markers for a filter and zoom level."""
    spec = parse_filter_params(country, fuel, include_micro)
    engine = AggregationEngine(db)
    facilities = engine.list_facilities(spec.country, spec.fuel, spec.include_micro)
    centers = engine.list_data_centers() if data_centers else []
    if bbox is not None:
        facilities = bbox.filter_records(facilities)
        centers = bbox.filter_records(centers)

    layer = build_marker_layer(facilities, centers, zoom=zoom)
    return MarkerLayerResponse(
        zoom=layer.zoom,
        clusters=[
            ClusterResponse(
                cluster_id=c.cluster_id,
                latitude=c.latitude,
                longitude=c.longitude,
                count=c.count,
                marker_ids=c.marker_ids,
            )
            for c in layer.clusters
        ],
        markers=[MarkerResponse.model_validate(m) for m in layer.singletons],
        data_centers=[MarkerResponse.model_validate(m) for m in layer.data_centers],
        skipped=layer.skipped,
    )
