"""FastAPI application exposing calendar conversions."""

from __future__ import annotations

import json
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from almanac import (
    CalendarFieldError,
    ConversionError,
    Ephemeris,
    EphemerisError,
    MeeusEphemeris,
    SpiceEphemeris,
    UnsupportedCalendarError,
    convert,
    to_julian_day,
)
from almanac.astro import load_ephemeris, loaded_files
from almanac.ephemeris import EphemerisAcquisitionError, resolve_ephemeris_source
from models import (
    ConvertRequest,
    ConvertResponse,
    EquinoxQueryParams,
    EquinoxResponse,
    ErrorResponse,
    HealthResponse,
    fields_from_date,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("almanac-api")

APP_DESCRIPTION = (
    "Date conversion between Gregorian, Julian, Maya, Islamic, Hebrew, "
    "French Republican and Persian calendars through the Julian Day"
)

EPHEMERIS_MODES = ("meeus", "spice")

EPHEMERIS: Ephemeris = MeeusEphemeris()
EPHEMERIS_MODE = "meeus"


def _ephemeris_mode() -> str:
    mode = os.environ.get("ALMANAC_EPHEMERIS", "meeus").strip().lower()
    if mode not in EPHEMERIS_MODES:
        raise EphemerisError(
            f"ALMANAC_EPHEMERIS must be one of {', '.join(EPHEMERIS_MODES)}, got {mode!r}"
        )
    return mode


@asynccontextmanager
async def lifespan(app: FastAPI):
    global EPHEMERIS, EPHEMERIS_MODE
    EPHEMERIS_MODE = _ephemeris_mode()
    if EPHEMERIS_MODE == "spice":
        try:
            source_path = resolve_ephemeris_source()
            load_ephemeris(str(source_path))
        except (EphemerisAcquisitionError, EphemerisError) as exc:
            LOGGER.error(json.dumps({"event": "ephemeris_load_failed", "error": str(exc)}))
            raise
        EPHEMERIS = SpiceEphemeris()
    else:
        EPHEMERIS = MeeusEphemeris()
    LOGGER.info(json.dumps({"event": "startup", "ephemeris": EPHEMERIS_MODE}))
    yield


app = FastAPI(
    title="Almanac API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("ALMANAC_CORS_ORIGINS", "").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        return _error_response(
            exc.status_code,
            detail.get("code", f"http_{exc.status_code}"),
            detail.get("error") or str(detail),
        )
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True, ephemeris=EPHEMERIS_MODE, files=loaded_files())


@app.post(
    "/convert",
    response_model=ConvertResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def convert_endpoint(request: ConvertRequest) -> ConvertResponse:
    start_time = time.perf_counter()
    try:
        source = request.date.to_date()
        julian_day = to_julian_day(source, EPHEMERIS)
        result = convert(source, request.target, EPHEMERIS, era=request.era)
    except (CalendarFieldError, UnsupportedCalendarError) as exc:
        raise HTTPException(status_code=400, detail={"code": "invalid_date", "error": str(exc)})
    except (ConversionError, EphemerisError) as exc:
        raise HTTPException(
            status_code=500, detail={"code": "conversion_failed", "error": str(exc)}
        )

    duration_ms = (time.perf_counter() - start_time) * 1000.0
    LOGGER.info(
        json.dumps(
            {
                "event": "convert",
                "source": request.date.calendar,
                "target": request.target.value,
                "julian_day": julian_day.value,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return ConvertResponse(
        julian_day=julian_day.value,
        source=fields_from_date(source),
        result=fields_from_date(result),
    )


@app.get(
    "/equinox",
    response_model=EquinoxResponse,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def equinox_endpoint(params: Annotated[EquinoxQueryParams, Query()]) -> EquinoxResponse:
    try:
        jde = EPHEMERIS.equinox(params.year, params.season_value)
        delta_t = EPHEMERIS.delta_t(params.year)
        equation_of_time = EPHEMERIS.equation_of_time(jde)
    except EphemerisError as exc:
        raise HTTPException(status_code=500, detail={"code": "ephemeris_error", "error": str(exc)})
    return EquinoxResponse(
        year=params.year,
        season=params.season,
        jde=jde,
        delta_t_seconds=delta_t,
        equation_of_time_days=equation_of_time,
    )
