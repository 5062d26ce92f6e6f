from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from .adapters.events import EventSourceError
from .service import CalendarService
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)


def run_events_refresh_job(service: CalendarService) -> None:
    try:
        count = service.refresh_events()
    except EventSourceError:
        LOGGER.exception("Events refresh job failed for '%s'", service.source_name)
        return
    except Exception:  # pragma: no cover - defensive fallback
        LOGGER.exception("Events refresh job failed for '%s'", service.source_name)
        return

    result = service.warm_cache()
    LOGGER.info(
        "Events refresh job loaded %d events, %d in window %s..%s",
        count,
        result.processed_event_count,
        result.date_range.start,
        result.date_range.end,
    )


def run_cache_maintenance_job(service: CalendarService) -> None:
    pruned = service.prune_cache()
    stats = service.cache_stats()
    LOGGER.info(
        "Cache maintenance pruned %d entries (size=%d, hits=%d, misses=%d, hit_rate=%.2f)",
        pruned,
        stats.size,
        stats.hits,
        stats.misses,
        stats.hit_rate,
    )


def build_scheduler(settings: AppSettings, service: CalendarService) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=settings.timezone)
    scheduler.add_job(
        run_events_refresh_job,
        "interval",
        kwargs={"service": service},
        minutes=settings.yaml.refresh.interval_minutes,
        jitter=settings.yaml.refresh.jitter_seconds,
        id="events_refresh_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    scheduler.add_job(
        run_cache_maintenance_job,
        "interval",
        kwargs={"service": service},
        seconds=settings.yaml.cache.prune_interval_seconds,
        id="cache_maintenance_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=60,
    )
    return scheduler
