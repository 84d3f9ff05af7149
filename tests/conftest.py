"""Shared builders and fakes for the jobscout test suite."""
from __future__ import annotations

import logging
import os
import threading
import time

os.environ.setdefault("LOG_TO_FILE", "0")
# pytest owns log capture; jobscout must not bind a handler to the captured stdout
logging.getLogger().addHandler(logging.NullHandler())

import pytest

from jobscout.errors import OracleUnavailable, SourceFailure
from jobscout.models import CandidateProfile, NormalizedListing, OracleScore, RawListing
from jobscout.normalize import enrich
from jobscout.oracle import ScoringOracle
from jobscout.sources.base import ListingSource


def make_raw(**overrides) -> RawListing:
    fields = dict(
        id="test-1",
        source="Test",
        title="Backend Engineer",
        organization="Acme",
        location="Berlin, Germany",
        remote=False,
        description="Build Python services on AWS.",
        apply_url="https://jobs.example.com/1",
    )
    fields.update(overrides)
    return RawListing(**fields)


def make_listing(**overrides) -> NormalizedListing:
    return enrich(make_raw(**overrides))


class FakeSource(ListingSource):
    """Returns canned listings, optionally after a delay or by raising."""

    def __init__(self, name: str, listings=(), *, error: Exception | None = None,
                 delay: float = 0.0, release: threading.Event | None = None) -> None:
        super().__init__(lambda key: "")
        self.name = name
        self.listings = list(listings)
        self.error = error
        self.delay = delay
        self.release = release
        self.calls = 0

    def fetch(self, query, location=None):
        self.calls += 1
        if self.release is not None:
            self.release.wait(5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.listings)


class FakeOracle(ScoringOracle):
    """Scores by listing id from a table; ids missing from the table are unavailable."""

    def __init__(self, scores: dict[str, int] | None = None, *, fail: bool = False) -> None:
        self.scores = scores or {}
        self.fail = fail
        self.calls: list[str] = []

    def score(self, listing, profile):
        self.calls.append(listing.id)
        if self.fail or listing.id not in self.scores:
            raise OracleUnavailable(f"no score for {listing.id}")
        return OracleScore(
            score=self.scores[listing.id],
            matched_skills=("Python",),
            missing_skills=(),
            rationale="fake oracle",
        )


@pytest.fixture
def profile() -> CandidateProfile:
    return CandidateProfile(
        skills=["Python", "AWS", "Docker", "Kubernetes"],
        desired_titles=["Backend Engineer"],
        years_of_experience=6,
        seniority="senior",
        current_title="Software Engineer",
    )


@pytest.fixture
def source_failure() -> SourceFailure:
    return SourceFailure("Broken", "HTTP 500", status_code=500)
