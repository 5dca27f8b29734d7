"""
Facility update operation.

Validates a payload, checks the target exists and that any country or fuel
code it names is in the reference tables, then replaces the provided
fields on that one record in a single commit. The gppd_idnr never changes.

Validation returns a tagged result (Ok / Err) instead of raising, so
callers can inspect field errors without exception handling;
update_facility turns an Err into ValidationError at the operation
boundary.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.models import Country, FuelSource
from app.schemas.facility_schemas import FacilityUpdate
from core.errors import FieldError, NotFound, ValidationError
from core.facility_store import FacilityStore, FacilityRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    value: FacilityUpdate


@dataclass(frozen=True)
class Err:
    errors: list[FieldError]


ValidationResult = Union[Ok, Err]


def _field_errors(exc: PydanticValidationError) -> list[FieldError]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "body"
        errors.append(FieldError(field=loc, message=err.get("msg", "Invalid value")))
    return errors


def validate_update(payload: Any) -> ValidationResult:
    """Check every field of an update payload. Never raises for bad input."""
    if not isinstance(payload, Mapping):
        return Err([FieldError(field="body", message="Expected a JSON object")])

    try:
        return Ok(FacilityUpdate.model_validate(dict(payload)))
    except PydanticValidationError as e:
        return Err(_field_errors(e))


def check_references(session: Session, update: FacilityUpdate) -> list[FieldError]:
    """Field errors for country/fuel codes missing from the reference tables."""
    errors = []
    fields = update.model_fields_set
    if "country_code" in fields and update.country_code is not None:
        if session.get(Country, update.country_code) is None:
            errors.append(FieldError(field="country_code", message="Unknown country code"))
    if "fuel_code" in fields and update.fuel_code is not None:
        if session.get(FuelSource, update.fuel_code) is None:
            errors.append(FieldError(field="fuel_code", message="Unknown fuel code"))
    return errors


def update_facility(session: Session, payload: Any) -> FacilityRecord:
    """Apply an update payload to exactly one facility.

    Raises:
        ValidationError: payload failed validation, or names a country or
            fuel code that does not exist (nothing was written).
        NotFound: no facility has the given gppd_idnr.
        StoreError: the read or the write failed; the session is rolled back.
    """
    result = validate_update(payload)
    if isinstance(result, Err):
        raise ValidationError(result.errors)
    update = result.value

    store = FacilityStore(session)
    facility = store.get_facility(update.gppd_idnr)
    if facility is None:
        raise NotFound("Facility", update.gppd_idnr)

    with store.guard("check_references"):
        unknown = check_references(session, update)
    if unknown:
        raise ValidationError(unknown)

    changes = update.model_dump(include=update.model_fields_set - {"gppd_idnr"})
    with store.guard("update_facility"):
        for name, value in changes.items():
            setattr(facility, name, value)
        session.commit()

    logger.info(f"Updated facility {update.gppd_idnr}: {sorted(changes)}")
    return store.get_record(update.gppd_idnr)
