from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import Settings, get_settings
from .exceptions import IndicatorDefinitionError, PersistenceError
from .providers.eurostat import EurostatProvider
from .services.current_view import build_current_payload
from .services.indicator_catalog import get_indicator_definitions
from .services.indicator_store import IndicatorStore, get_indicator_store
from .services.resolver import (
    INDICATOR_DESCRIPTIONS,
    LOCATION_DESCRIPTIONS,
    IndicatorResolver,
    run_resolution,
)

settings: Settings = get_settings()

logger = logging.getLogger("regiodata")
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


class ResolveRequest(BaseModel):
    indicators: Optional[List[str]] = None


def get_store() -> IndicatorStore:
    return get_indicator_store()


def get_resolver(store: IndicatorStore = Depends(get_store)) -> IndicatorResolver:
    return IndicatorResolver(EurostatProvider(settings=settings), store, settings)


async def _resolution_loop() -> None:
    resolver = IndicatorResolver(EurostatProvider(settings=settings), get_indicator_store(), settings)
    while True:
        try:
            await run_resolution(resolver)
        except Exception as e:
            logger.error(f"Resolution loop error: {e}")
        await asyncio.sleep(settings.resolution_interval_seconds)


def seconds_until_next_month(now: datetime) -> float:
    """Seconds from ``now`` to 00:00 UTC on the 1st of the following month."""
    now = now.astimezone(timezone.utc)
    if now.month == 12:
        boundary = datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        boundary = datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)
    return (boundary - now).total_seconds()


async def _snapshot_loop() -> None:
    # One snapshot per calendar month, stamped just past midnight on the 1st
    while True:
        await asyncio.sleep(seconds_until_next_month(datetime.now(timezone.utc)) + 1)
        try:
            get_indicator_store().take_snapshot()
        except Exception as e:
            logger.error(f"Snapshot loop error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    # === STARTUP ===
    from .services.http_pool import HTTPClientPool
    HTTPClientPool()
    logger.info("HTTP client pool ready")

    # Fail fast on a broken catalog
    definitions = get_indicator_definitions()
    logger.info(f"Serving {len(definitions)} indicators ({settings.environment})")

    if not settings.disable_background_jobs:
        app.state.resolution_task = asyncio.create_task(_resolution_loop())
        app.state.snapshot_task = asyncio.create_task(_snapshot_loop())
    else:
        app.state.resolution_task = None
        app.state.snapshot_task = None
        logger.info("Background jobs disabled")

    yield

    # === SHUTDOWN ===
    for task_name in ("resolution_task", "snapshot_task"):
        task: asyncio.Task | None = getattr(app.state, task_name, None)
        if task:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    from .services.http_pool import close_http_pool
    await close_http_pool()


app = FastAPI(title="regiodata API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request, exc: PersistenceError):
    logger.error(f"Store error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=exc.to_dict())


@app.get("/api/health")
async def health():
    from .services.http_pool import HTTPClientPool

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "indicators": len(get_indicator_definitions()),
        "backgroundJobs": not settings.disable_background_jobs,
        "httpPool": HTTPClientPool.get_stats(),
    }


@app.get("/api/v1/current")
def current(store: IndicatorStore = Depends(get_store)):
    """Every current indicator value, flattened indicator -> location -> year."""
    return build_current_payload(
        store.load_current(),
        store.load_description(INDICATOR_DESCRIPTIONS),
        store.load_description(LOCATION_DESCRIPTIONS),
    )


@app.get("/api/v1/snapshots/list")
def list_snapshots(store: IndicatorStore = Depends(get_store)):
    return [{"id": snapshot_id, "date": date} for snapshot_id, date in store.list_snapshots()]


@app.get("/api/v1/snapshots/{month}-{year}")
def get_snapshot(month: int, year: int, store: IndicatorStore = Depends(get_store)):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Month must be 1-12")
    snapshot = store.get_snapshot(year, month)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No snapshot for {month:02d}-{year}",
        )
    return snapshot


@app.post("/api/v1/resolve")
async def resolve(
    request: Optional[ResolveRequest] = None,
    resolver: IndicatorResolver = Depends(get_resolver),
):
    """Resolve the catalog (or the listed indicators) now."""
    names = request.indicators if request else None
    try:
        report = await run_resolution(resolver, names)
    except IndicatorDefinitionError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    return report.to_dict()


@app.get("/")
async def root():
    return {"name": "regiodata", "docs": "/docs"}
