from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from .adapters.events import EventSourceError
from .diagnostics import format_optimization_report
from .marking.classifier import get_date_info, parse_iso_date
from .marking.ranges import format_date_range, visible_range
from .scheduler import build_scheduler, run_events_refresh_job
from .service import CalendarService, build_service
from .settings import AppSettings, load_settings

LOGGER = logging.getLogger(__name__)


class MarkingRequest(BaseModel):
    events: list[Any] = Field(default_factory=list)
    selected_date: str | None = None
    reference_date: date | None = None


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _get_service(request: Request) -> CalendarService:
    return request.app.state.service


def _parse_query_date(raw_date: str | None, *, field_name: str) -> date | None:
    if raw_date is None or not raw_date.strip():
        return None
    parsed = parse_iso_date(raw_date)
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"{field_name} must be a YYYY-MM-DD date")
    return parsed


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = load_settings()
    service = build_service(settings)
    run_events_refresh_job(service)
    scheduler = build_scheduler(settings, service)
    scheduler.start()

    application.state.settings = settings
    application.state.service = service
    application.state.scheduler = scheduler
    application.state.started_at_utc = datetime.now(timezone.utc)

    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Couple Calendar Markings", version="0.1.0", lifespan=lifespan)


@app.get("/health", response_class=JSONResponse)
async def health(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    service = _get_service(request)
    refreshed_at = service.refreshed_at
    return JSONResponse(
        {
            "status": "ok",
            "service": "couplecal",
            "environment": settings.env.couplecal_env,
            "timezone": settings.env.couplecal_timezone,
            "scheduler_running": request.app.state.scheduler.running,
            "event_source": service.source_name,
            "event_count": len(service.events()),
            "events_refreshed_at": refreshed_at.isoformat() if refreshed_at else None,
            "cache": service.cache_stats().model_dump(),
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
    )


@app.get("/api/markings", response_class=JSONResponse)
async def get_markings(
    request: Request,
    selected_date: str | None = None,
    reference_date: str | None = None,
) -> JSONResponse:
    service = _get_service(request)
    reference = _parse_query_date(reference_date, field_name="reference_date")
    result = service.marked_dates(selected_date or None, reference)
    return JSONResponse(result.model_dump(mode="json"))


@app.post("/api/markings", response_class=JSONResponse)
async def post_markings(request: Request, body: MarkingRequest) -> JSONResponse:
    service = _get_service(request)
    result = service.pipeline.generate_marked_dates(
        body.events,
        body.selected_date or None,
        body.reference_date or service.today(),
    )
    return JSONResponse(result.model_dump(mode="json"))


@app.get("/api/range", response_class=JSONResponse)
async def get_range(request: Request, reference_date: str | None = None) -> JSONResponse:
    service = _get_service(request)
    reference = _parse_query_date(reference_date, field_name="reference_date") or service.today()
    date_range = visible_range(reference)
    return JSONResponse(
        {
            **date_range.model_dump(),
            "label": format_date_range(date_range),
        }
    )


@app.get("/api/dates/{date_string}", response_class=JSONResponse)
async def get_date(request: Request, date_string: str) -> JSONResponse:
    service = _get_service(request)
    if parse_iso_date(date_string) is None:
        raise HTTPException(status_code=422, detail="date must be a YYYY-MM-DD date")
    info = get_date_info(
        date_string,
        holidays=service.pipeline.holidays,
        palette=service.pipeline.palette,
    )
    return JSONResponse(info.model_dump(mode="json"))


@app.get("/api/cache/stats", response_class=JSONResponse)
async def cache_stats(request: Request) -> JSONResponse:
    return JSONResponse(_get_service(request).cache_stats().model_dump())


@app.get("/api/cache/debug", response_class=JSONResponse)
async def cache_debug(request: Request) -> JSONResponse:
    return JSONResponse(_get_service(request).pipeline.cache.get_debug_info())


@app.post("/api/cache/clear", response_class=JSONResponse)
async def cache_clear(request: Request) -> JSONResponse:
    service = _get_service(request)
    service.pipeline.cache.clear()
    return JSONResponse(service.cache_stats().model_dump())


@app.post("/api/cache/invalidate-range", response_class=JSONResponse)
async def cache_invalidate_range(request: Request, reference_date: str | None = None) -> JSONResponse:
    service = _get_service(request)
    reference = _parse_query_date(reference_date, field_name="reference_date")
    removed = service.invalidate_range(reference)
    return JSONResponse({"removed": removed, "cache": service.cache_stats().model_dump()})


@app.get("/api/diagnostics/report")
async def diagnostics_report(request: Request, output: str = Query(default="json", alias="format")):
    report = _get_service(request).report()
    if output == "text":
        return PlainTextResponse(format_optimization_report(report))
    return JSONResponse(report.model_dump(mode="json"))


@app.post("/api/events/refresh", response_class=JSONResponse)
async def refresh_events(request: Request) -> JSONResponse:
    service = _get_service(request)
    try:
        count = service.refresh_events()
    except EventSourceError as exc:
        LOGGER.warning("Manual events refresh failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return JSONResponse({"event_count": count, "cache": service.cache_stats().model_dump()})
