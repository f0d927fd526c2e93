"""
Batch geocoding worker pool.

Candidates are loaded once into an asyncio.Queue and drained by a fixed number
of worker tasks. Each item is processed independently: any failure is recorded
in the summary under an error code and the worker moves on to the next item.
Supabase calls are blocking, so they run in threads via asyncio.to_thread.
"""
import asyncio
import logging
import math
import time
from typing import Any, List, Optional

from supabase import Client

from app.modules.geocoding.client import GeocodeError, GoogleMapsClient
from app.modules.geocoding.schemas import (
    GeoBatchError, GeoBatchOptions, GeoBatchSuccess, GeoBatchSummary, GeoCandidate
)
from app.modules.geocoding.service import GeoService

logger = logging.getLogger(__name__)

MAX_SUCCESS_SAMPLE = 10
MAX_ERRORS_REPORTED = 25

LIMIT_RANGE = (1, 1000)
CONCURRENCY_RANGE = (1, 10)
DELAY_MS_RANGE = (50, 5000)


def _number(value: Any, default: float) -> float:
    """Coerce a loosely typed input to a finite number, falling back to default"""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _clamp(value: float, bounds) -> float:
    low, high = bounds
    return min(high, max(low, value))


def clamp_batch_options(
    limit: Any = 100,
    max_age_days: Any = 30,
    concurrency: Any = 2,
    force: bool = False,
    delay_ms: Any = 120,
) -> GeoBatchOptions:
    """Numeric inputs are clamped into range, never rejected"""
    return GeoBatchOptions(
        limit=int(_clamp(_number(limit, 100), LIMIT_RANGE)),
        max_age_days=int(max(0, _number(max_age_days, 30))),
        concurrency=int(_clamp(_number(concurrency, 2), CONCURRENCY_RANGE)),
        force=force,
        delay_ms=int(_clamp(_number(delay_ms, 120), DELAY_MS_RANGE)),
    )


class GeoBatch:
    def __init__(self, supabase: Client, maps: GoogleMapsClient, options: GeoBatchOptions):
        self.geo = GeoService(supabase)
        self.maps = maps
        self.options = options
        self.processed = 0
        self.skipped = 0
        self.errors: List[GeoBatchError] = []
        self.successful: List[GeoBatchSuccess] = []

    def _fail(self, item: GeoCandidate, code: str, message: str) -> None:
        self.errors.append(GeoBatchError(id=item.id, name=item.name, error=message, error_code=code))

    async def _process(self, worker_id: int, item: GeoCandidate) -> None:
        if not self.options.force:
            try:
                fresh = await asyncio.to_thread(self.geo.get_fresh_geo, item.id, self.options.max_age_days)
            except Exception as e:
                logger.error(f"Worker {worker_id}: freshness check failed for {item.id}: {e}")
                self._fail(item, "GEO_CHECK_ERROR", "Failed to check existing geo data")
                return
            if fresh:
                self.skipped += 1
                return

        try:
            result = await self.maps.geocode(item.name, item.parent_city)
        except GeocodeError as e:
            logger.warning(f"Worker {worker_id}: geocode failed for {item.id}: {e.code} {e.message}")
            self._fail(item, e.code, e.message)
            return

        try:
            await asyncio.to_thread(self.geo.upsert_geo, item.id, result)
        except Exception as e:
            logger.error(f"Worker {worker_id}: upsert failed for {item.id}: {e}")
            self._fail(item, "GEO_UPSERT_ERROR", f"Failed to save geo data: {e}")
            return

        self.successful.append(GeoBatchSuccess(id=item.id, name=item.name, lat=result.lat, lng=result.lng))
        self.processed += 1
        await asyncio.sleep(self.options.delay_ms / 1000)

    async def _worker(self, worker_id: int, queue: "asyncio.Queue[GeoCandidate]") -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await self._process(worker_id, item)
            except Exception as e:
                logger.exception(f"Worker {worker_id}: unexpected error for {item.id}")
                self._fail(item, "UNEXPECTED_ERROR", str(e) or "Unknown error")
            finally:
                queue.task_done()

    async def run(self, candidates: List[GeoCandidate]) -> GeoBatchSummary:
        queue: "asyncio.Queue[GeoCandidate]" = asyncio.Queue()
        for item in candidates:
            queue.put_nowait(item)

        started = time.monotonic()
        workers = [
            asyncio.create_task(self._worker(i, queue))
            for i in range(self.options.concurrency)
        ]
        await asyncio.gather(*workers)
        elapsed = time.monotonic() - started

        return GeoBatchSummary(
            requested=self.options.limit,
            candidates_found=len(candidates),
            processed=self.processed,
            skipped=self.skipped,
            failed=len(self.errors),
            successful_geocodes=self.successful[:MAX_SUCCESS_SAMPLE],
            errors=self.errors[:MAX_ERRORS_REPORTED],
            processing_time_seconds=round(elapsed),
            concurrency=self.options.concurrency,
            delay_ms=self.options.delay_ms,
            force_mode=self.options.force,
        )


async def run_geo_batch(
    supabase: Client,
    maps: GoogleMapsClient,
    options: GeoBatchOptions,
    candidates: Optional[List[GeoCandidate]] = None,
) -> GeoBatchSummary:
    """Geocode restaurants missing or holding stale coordinates.

    Candidates come from the list_restaurants_needing_geo RPC unless given.
    A failure of that RPC propagates; per-item failures never do.
    """
    if candidates is None:
        candidates = await asyncio.to_thread(
            GeoService(supabase).list_candidates, options.limit, options.max_age_days
        )
    logger.info(
        f"Geo batch: {len(candidates)} candidates, concurrency={options.concurrency}, "
        f"delay={options.delay_ms}ms, force={options.force}"
    )
    return await GeoBatch(supabase, maps, options).run(candidates)
