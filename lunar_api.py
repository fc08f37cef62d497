"""FastAPI application exposing lunisolar calendar conversions."""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lunisolar import (
    CalendarError,
    DateOutOfRange,
    DaySect,
    EphemerisUnavailable,
    InvalidCalendarDate,
    InvalidLunarDate,
    LunarCalendar,
    MonthSect,
    SectMode,
    YearSect,
    default_calendar,
)
from lunisolar.spice import loaded_kernels
from models import (
    ErrorResponse,
    FourPillarsModel,
    HealthResponse,
    LunarResponse,
    PillarModel,
    SolarResponse,
    TermModel,
    TermsResponse,
    YearResponse,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("lunar-api")

APP_DESCRIPTION = (
    "Gregorian to lunisolar calendar conversion with solar terms and sexagenary pillars"
)

DATE_PATTERN = r"^\d{1,4}-\d{1,2}-\d{1,2}$"
TIME_PATTERN = r"^\d{1,2}:\d{2}(:\d{2})?$"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        calendar = default_calendar()
    except (EphemerisUnavailable, ValueError) as exc:
        LOGGER.error(json.dumps({"event": "calendar_init_failed", "error": str(exc)}))
        raise
    LOGGER.info(json.dumps({"event": "startup", "provider": calendar.provider_name}))
    yield


app = FastAPI(
    title="Lunisolar API",
    description=APP_DESCRIPTION,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_calendar() -> LunarCalendar:
    return default_calendar()


def _parse_date(value: str) -> Tuple[int, int, int]:
    year, month, day = (int(part) for part in value.split("-"))
    return year, month, day


def _parse_time(value: Optional[str]) -> Tuple[int, int, int]:
    if not value:
        return 0, 0, 0
    parts = [int(part) for part in value.split(":")]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


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


@app.exception_handler(CalendarError)
async def calendar_exception_handler(request: Request, exc: CalendarError) -> JSONResponse:
    if isinstance(exc, InvalidCalendarDate):
        code = "invalid_calendar_date"
    elif isinstance(exc, InvalidLunarDate):
        code = "invalid_lunar_date"
    elif isinstance(exc, DateOutOfRange):
        code = "date_out_of_range"
    else:
        code = "calendar_error"
    return _error_response(400, code, str(exc))


@app.exception_handler(EphemerisUnavailable)
async def ephemeris_exception_handler(
    request: Request, exc: EphemerisUnavailable
) -> JSONResponse:
    return _error_response(503, "ephemeris_unavailable", str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health(calendar: LunarCalendar = Depends(get_calendar)) -> HealthResponse:
    return HealthResponse(
        ok=True,
        provider=calendar.provider_name,
        cached_years=len(calendar.cache),
        kernels=loaded_kernels(),
    )


@app.get("/lunar", response_model=LunarResponse, responses=ERROR_RESPONSES)
def lunar_endpoint(
    date: str = Query(..., pattern=DATE_PATTERN, description="Civil date YYYY-MM-DD"),
    time_of_day: Optional[str] = Query(
        None, alias="time", pattern=TIME_PATTERN, description="Civil time HH:MM[:SS]"
    ),
    year_sect: YearSect = Query(YearSect.LUNAR_NEW_YEAR),
    day_sect: DaySect = Query(DaySect.LATE_ZI_SAME_DAY),
    month_sect: MonthSect = Query(MonthSect.NODE_DAY),
    calendar: LunarCalendar = Depends(get_calendar),
) -> LunarResponse:
    start_time = time.perf_counter()
    year, month, day = _parse_date(date)
    hour, minute, second = _parse_time(time_of_day)
    lunar = calendar.solar_to_lunar(year, month, day, hour, minute, second)
    pillars = lunar.four_pillars(SectMode(year=year_sect, day=day_sect, month=month_sect))
    term = lunar.current_term()

    response = LunarResponse(
        solar=lunar.solar.isoformat(),
        lunar_year=lunar.year,
        lunar_month=lunar.month,
        is_leap=lunar.is_leap,
        lunar_day=lunar.day,
        weekday=lunar.weekday,
        solar_term=term.name if term is not None else None,
        low_confidence=lunar.low_confidence,
        pillars=FourPillarsModel(
            year=PillarModel.from_pillar(pillars.year),
            month=PillarModel.from_pillar(pillars.month),
            day=PillarModel.from_pillar(pillars.day),
            hour=PillarModel.from_pillar(pillars.hour),
        ),
    )
    LOGGER.info(
        json.dumps(
            {
                "event": "lunar",
                "date": date,
                "lunar": str(lunar),
                "duration_ms": round((time.perf_counter() - start_time) * 1000.0, 3),
            }
        )
    )
    return response


@app.get("/solar", response_model=SolarResponse, responses=ERROR_RESPONSES)
def solar_endpoint(
    year: int = Query(..., description="Lunar year"),
    month: int = Query(..., ge=1, le=12, description="Lunar month ordinal"),
    day: int = Query(..., ge=1, le=30),
    leap: bool = Query(False, description="Select the leap month"),
    time_of_day: Optional[str] = Query(None, alias="time", pattern=TIME_PATTERN),
    calendar: LunarCalendar = Depends(get_calendar),
) -> SolarResponse:
    start_time = time.perf_counter()
    hour, minute, second = _parse_time(time_of_day)
    lunar = calendar.lunar_date(year, month, day, hour, minute, second, is_leap=leap)
    response = SolarResponse(
        lunar=str(lunar), solar=lunar.solar.isoformat(), julian_day=lunar.solar.julian_day
    )
    LOGGER.info(
        json.dumps(
            {
                "event": "solar",
                "lunar": str(lunar),
                "solar": response.solar,
                "duration_ms": round((time.perf_counter() - start_time) * 1000.0, 3),
            }
        )
    )
    return response


@app.get("/terms/{year}", response_model=TermsResponse, responses=ERROR_RESPONSES)
def terms_endpoint(
    year: int = Path(..., description="Lunar year"),
    calendar: LunarCalendar = Depends(get_calendar),
) -> TermsResponse:
    table = calendar.solar_term_table(year)
    return TermsResponse(year=year, terms=[TermModel.from_instant(item) for item in table])


@app.get("/years/{year}", response_model=YearResponse, responses=ERROR_RESPONSES)
def year_endpoint(
    year: int = Path(..., description="Lunar year"),
    calendar: LunarCalendar = Depends(get_calendar),
) -> YearResponse:
    return YearResponse.from_year(calendar.lunar_year(year))
