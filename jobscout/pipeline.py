"""
Listing search pipeline.

Runs: fetch (or reuse cached fetch) → dedupe/enrich/filter → hybrid scoring → ranked result.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Callable

from jobscout import normalize as norm
from jobscout.aggregator import aggregate
from jobscout.cache import CacheTier, cache_keys
from jobscout.config import Settings
from jobscout.log import get_logger
from jobscout.matcher import Matcher
from jobscout.models import (
    AggregationResult,
    CandidateProfile,
    RawListing,
    SearchOptions,
    SearchResult,
    SourceStatus,
)
from jobscout.oracle import ScoringOracle
from jobscout.process_control import ProcessControl
from jobscout.sink import StreamingSink, emit_log
from jobscout.sources import ListingSource, get_sources

log = get_logger(__name__)

SEARCH_TAG = "search"


class ListingSearch:
    """One configured pipeline; ``search`` may be called repeatedly."""

    def __init__(
        self,
        cache: CacheTier,
        process_control: ProcessControl,
        sink: StreamingSink | None = None,
        oracle: ScoringOracle | None = None,
        settings: Settings | None = None,
        source_factory: Callable[[SearchOptions], list[ListingSource]] = get_sources,
    ) -> None:
        self.cache = cache
        self.process_control = process_control
        self.sink = sink
        self.settings = settings or Settings()
        self.source_factory = source_factory
        self.matcher = Matcher(
            oracle=oracle,
            cache=cache,
            process_control=process_control,
            sink=sink,
            settings=self.settings,
        )

    def _cached_aggregation(self, key: str) -> AggregationResult | None:
        data = self.cache.get(key)
        if not data:
            return None
        try:
            listings = [RawListing.from_dict(item) for item in data["listings"]]
            statuses = [SourceStatus(**item) for item in data.get("statuses", [])]
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("Discarding unreadable cached search %s: %s", key, exc)
            self.cache.delete(key)
            return None
        log.info("Using %d cached listings for %s", len(listings), key)
        emit_log(self.sink, f"Using {len(listings)} cached jobs from a recent identical search")
        return AggregationResult(listings=listings, statuses=statuses)

    def _aggregate(self, query: str, options: SearchOptions, process_name: str) -> AggregationResult:
        key = cache_keys.job_search(query, options.location, options.remote_only)
        cached = self._cached_aggregation(key)
        if cached is not None:
            return cached

        result = aggregate(
            query,
            options.location,
            self.source_factory(options),
            process_control=self.process_control,
            process_name=process_name,
            sink=self.sink,
            deadline=self.settings.aggregation_deadline,
            poll_interval=self.settings.aggregation_poll_interval,
        )
        if result.stopped or result.failed or not result.statuses:
            log.debug("Not caching search %s (stopped=%s, failed=%d)", key, result.stopped, len(result.failed))
            return result
        self.cache.set(
            key,
            {
                "listings": [listing.to_dict() for listing in result.listings],
                "statuses": [asdict(status) for status in result.statuses],
            },
            ttl=self.settings.search_cache_ttl,
            tags=(SEARCH_TAG,),
        )
        return result

    def search(
        self,
        query: str,
        options: SearchOptions | None = None,
        profile: CandidateProfile | None = None,
        streaming_threshold: int | None = None,
        process_name: str = "jobs",
    ) -> SearchResult:
        options = options or SearchOptions(query=query)
        profile = profile or CandidateProfile()
        threshold = self.settings.stream_threshold if streaming_threshold is None else streaming_threshold

        self.process_control.start(process_name)
        stopped = False
        try:
            emit_log(self.sink, f"Searching for: {query}")
            fetched = self._aggregate(query, options, process_name)
            if fetched.stopped:
                stopped = True
                return SearchResult(
                    results=[],
                    stopped=True,
                    source_statuses=fetched.statuses,
                    aggregated=len(fetched.listings),
                )

            unique = norm.dedupe(fetched.listings)
            enriched = norm.enrich_all(unique)
            kept = norm.filter_listings(enriched, options)
            log.info(
                "Pipeline: %d fetched -> %d unique -> %d after filters",
                len(fetched.listings), len(unique), len(kept),
            )
            emit_log(self.sink, f"{len(unique)} unique jobs, {len(kept)} match your filters")

            run = self.matcher.score_all(kept, profile, threshold=threshold, process_name=process_name)
            stopped = run.stopped
            return SearchResult(
                results=run.results,
                stopped=run.stopped,
                source_statuses=fetched.statuses,
                processed=run.processed,
                streamed=run.streamed,
                aggregated=len(fetched.listings),
                deduplicated=len(unique),
                filtered=len(kept),
            )
        finally:
            self.process_control.complete(process_name, was_stopped=stopped)

    def stop(self, process_name: str = "jobs", requested_by: str | None = None) -> bool:
        return self.process_control.request_stop(process_name, requested_by)
