"""Hybrid scoring: one oracle attempt per listing, keyword fallback on failure.

Listings are scored one at a time. The stop flag is checked before every
listing, so a stop takes effect within one oracle call.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Iterable

from jobscout.cache import CacheTier, cache_keys
from jobscout.config import Settings
from jobscout.errors import OracleUnavailable
from jobscout.log import get_logger
from jobscout.models import (
    CandidateProfile,
    MatchResult,
    NormalizedListing,
    OracleScore,
    ScoreOutcome,
    ScoringRun,
)
from jobscout.oracle import ScoringOracle
from jobscout.process_control import ProcessControl
from jobscout.scorer import fallback_score
from jobscout.sink import MATCH_EVENT, StreamingSink, emit_log, publish

log = get_logger(__name__)

PROGRESS_EVERY = 5


def _oracle_from_cache(data: dict) -> OracleScore:
    return OracleScore(
        score=data["score"],
        matched_skills=tuple(data.get("matched_skills") or ()),
        missing_skills=tuple(data.get("missing_skills") or ()),
        rationale=data.get("rationale", ""),
    )


class Matcher:
    def __init__(
        self,
        oracle: ScoringOracle | None = None,
        cache: CacheTier | None = None,
        process_control: ProcessControl | None = None,
        sink: StreamingSink | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.oracle = oracle
        self.cache = cache
        self.process_control = process_control or ProcessControl()
        self.sink = sink
        self.settings = settings or Settings()

    def _ask_oracle(self, listing: NormalizedListing, profile: CandidateProfile) -> OracleScore:
        if self.cache is None:
            return self.oracle.score(listing, profile)
        key = cache_keys.match(listing.id, profile.fingerprint())
        data = self.cache.get_or_set(
            key,
            lambda: asdict(self.oracle.score(listing, profile)),
            ttl=self.settings.match_cache_ttl,
            tags=("match",),
        )
        return _oracle_from_cache(data)

    def score_listing(self, listing: NormalizedListing, profile: CandidateProfile) -> ScoreOutcome:
        """Oracle score when available, otherwise the deterministic fallback."""
        if self.oracle is None:
            return fallback_score(listing, profile)
        if not profile.skills and not profile.desired_titles:
            log.debug("Profile has no skills or desired titles - skipping oracle")
            return fallback_score(listing, profile)
        try:
            return self._ask_oracle(listing, profile)
        except OracleUnavailable as exc:
            log.warning("Oracle unavailable for %s @ %s (%s), using fallback", listing.title, listing.organization, exc)
        except Exception as exc:
            log.error("Oracle raised unexpectedly for %s: %s", listing.id, exc, exc_info=True)
        return fallback_score(listing, profile)

    def score_all(
        self,
        listings: Iterable[NormalizedListing],
        profile: CandidateProfile,
        *,
        threshold: int = 75,
        process_name: str = "jobs",
    ) -> ScoringRun:
        pending = list(listings)
        total = len(pending)
        results: list[MatchResult] = []
        streamed = 0
        stopped = False

        log.info("Scoring %d listings (stream threshold %d%%)", total, threshold)
        emit_log(self.sink, f"Starting analysis of {total} jobs...")
        emit_log(self.sink, f"Jobs with {threshold}%+ match will appear immediately")

        for listing in pending:
            if self.process_control.should_stop(process_name):
                stopped = True
                emit_log(self.sink, f"Stopping... processed {len(results)}/{total} jobs", "warning")
                break

            result = MatchResult.from_outcome(listing, self.score_listing(listing, profile))
            results.append(result)
            processed = len(results)
            log.info("  %s at %s: %d%% (%s)", listing.title, listing.organization, result.score, result.scored_by)

            if result.score >= threshold:
                streamed += 1
                publish(self.sink, MATCH_EVENT, {
                    "job": result.to_dict(),
                    "progress": {"processed": processed, "total": total, "streamedCount": streamed},
                })
                emit_log(self.sink, f"{result.score}% Match: {listing.title} at {listing.organization}", "success")

            if processed % PROGRESS_EVERY == 0:
                emit_log(self.sink, f"Progress: {processed}/{total} jobs analyzed ({streamed} matches found)")

        results.sort(key=lambda r: r.score, reverse=True)

        if stopped:
            log.info("Scoring stopped after %d/%d listings", len(results), total)
            emit_log(
                self.sink,
                f"Search stopped. Found {streamed} matches in {len(results)} jobs analyzed.",
                "warning",
            )
        else:
            log.info("Scored %d listings, %d at or above %d%%", len(results), streamed, threshold)
            emit_log(self.sink, f"Analysis complete! {streamed} jobs meet your {threshold}%+ threshold", "success")
        return ScoringRun(results=results, processed=len(results), streamed=streamed, stopped=stopped)
