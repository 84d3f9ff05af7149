"""Concurrent fan-out across listing sources with partial-failure tolerance.

Stop-flag checkpoints: once before dispatch, then at every ``poll_interval``
slice while fetchers are outstanding. A stop or the global deadline returns
whatever has settled; threads still running are abandoned and end on their
own HTTP timeout.
"""
from __future__ import annotations

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable

from jobscout.errors import SourceFailure
from jobscout.log import get_logger
from jobscout.models import AggregationResult, RawListing, SourceStatus
from jobscout.process_control import ProcessControl
from jobscout.sink import StreamingSink, emit_log
from jobscout.sources.base import ListingSource

log = get_logger(__name__)

DEFAULT_DEADLINE = 45.0
DEFAULT_POLL_INTERVAL = 0.25


def _fetch_one(source: ListingSource, query: str, location: str | None) -> list[RawListing]:
    started = time.monotonic()
    listings = source.fetch(query, location)
    log.info("[%s] returned %d listings in %.1fs", source.name, len(listings), time.monotonic() - started)
    return listings


def _settle(future: Future, source: ListingSource, sink: StreamingSink | None) -> tuple[list[RawListing], SourceStatus]:
    try:
        listings = future.result()
    except SourceFailure as exc:
        log.warning("[%s] FAILED: %s", source.name, exc.message)
        emit_log(sink, f"{source.name}: failed to fetch jobs ({exc.message})", "error")
        return [], SourceStatus(name=source.name, succeeded=False, error=exc.message)
    except Exception as exc:
        log.error("[%s] FAILED unexpectedly: %s", source.name, exc, exc_info=True)
        emit_log(sink, f"{source.name}: failed to fetch jobs", "error")
        return [], SourceStatus(name=source.name, succeeded=False, error=str(exc) or type(exc).__name__)

    if listings:
        emit_log(sink, f"{source.name}: found {len(listings)} jobs", "success")
    else:
        emit_log(sink, f"{source.name}: no jobs found matching criteria", "warning")
    return listings, SourceStatus(name=source.name, succeeded=True, count=len(listings))


def aggregate(
    query: str,
    location: str | None,
    sources: list[ListingSource],
    *,
    process_control: ProcessControl,
    process_name: str,
    sink: StreamingSink | None = None,
    deadline: float = DEFAULT_DEADLINE,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    clock: Callable[[], float] = time.monotonic,
) -> AggregationResult:
    """Fetch from every source in parallel and merge in arrival order."""
    if process_control.should_stop(process_name):
        emit_log(sink, "Search stopped before fetching", "warning")
        return AggregationResult(listings=[], statuses=[], stopped=True)
    if not sources:
        emit_log(sink, "No job sources available for this search", "warning")
        return AggregationResult(listings=[], statuses=[])

    emit_log(sink, f"Using {len(sources)} APIs: {' + '.join(s.name for s in sources)}")
    emit_log(sink, "Fetching jobs from all sources (please wait)...")

    listings: list[RawListing] = []
    statuses: list[SourceStatus] = []
    stopped = False
    ends_at = clock() + deadline

    pool = ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="fetch")
    futures = {pool.submit(_fetch_one, src, query, location): src for src in sources}
    pending: set[Future] = set(futures)
    try:
        while pending:
            if process_control.should_stop(process_name):
                stopped = True
                break
            remaining = ends_at - clock()
            if remaining <= 0:
                break
            done, pending = wait(pending, timeout=min(poll_interval, remaining), return_when=FIRST_COMPLETED)
            for future in done:
                batch, status = _settle(future, futures[future], sink)
                listings.extend(batch)
                statuses.append(status)
        # Fetchers that finished after the last wait still count
        for future in [f for f in pending if f.done()]:
            pending.discard(future)
            batch, status = _settle(future, futures[future], sink)
            listings.extend(batch)
            statuses.append(status)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    for future in pending:
        source = futures[future]
        reason = "cancelled before completion" if stopped else f"timed out after {deadline:.0f}s"
        log.warning("[%s] %s", source.name, reason)
        statuses.append(SourceStatus(name=source.name, succeeded=False, error=reason))

    failed = sum(1 for s in statuses if not s.succeeded)
    succeeded = len(statuses) - failed
    emit_log(sink, f"Retrieved {len(listings)} jobs from {succeeded} sources")
    if failed:
        emit_log(sink, f"{failed} source(s) failed to respond", "warning")
    if stopped:
        emit_log(sink, f"Search stopped while fetching; keeping {len(listings)} jobs", "warning")
    log.info(
        "Aggregated %d listings from %d/%d sources%s",
        len(listings), succeeded, len(sources), " (stopped)" if stopped else "",
    )
    return AggregationResult(listings=listings, statuses=statuses, stopped=stopped)
