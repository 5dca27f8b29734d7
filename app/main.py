"""
Global Power Facilities API

FastAPI application serving capacity and generation statistics by
country and fuel type, the facility list and editor, and projected map
markers for facilities and data centers.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.api.v1.routes import router as v1_router, limiter
from core.errors import InvalidArgument, NotFound, StoreError, ValidationError

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=(
        "API for the global power facility tracker: capacity by country and "
        "fuel type, annual generation, facility updates, and clustered map "
        "markers for power plants and data centers."
    ),
)

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation failed",
            "details": [{"field": e.field, "message": e.message} for e in exc.errors],
        },
    )


@app.exception_handler(InvalidArgument)
def _invalid_argument(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(NotFound)
def _not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(StoreError)
def _store_error(request: Request, exc: StoreError):
    # Transient: clients may retry
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "Data store unavailable", "details": str(exc)},
    )


app.include_router(v1_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.API_VERSION}


if __name__ == "__main__":
    import os

    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
