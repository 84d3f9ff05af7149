"""Data models for listings, search options, profiles and match results."""
from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

SENIORITY_LEVELS = ("junior", "mid", "senior")
UNSPECIFIED = "unspecified"
EMPLOYMENT_TYPES = ("full-time", "contract", "freelance", "internship")
ORGANIZATION_SIZES = ("startup", "midsize", "enterprise")
DOMAINS = ("fintech", "cybersecurity", "healthtech", "ecommerce", "saas", "ai", "gaming")


@dataclass(frozen=True)
class RawListing:
    id: str
    source: str
    title: str
    organization: str
    location: str
    remote: bool
    description: str
    apply_url: str
    salary: str | None = None
    posted_at: str | None = None
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawListing:
        return cls(
            id=str(data["id"]),
            source=data.get("source", "unknown"),
            title=data.get("title", ""),
            organization=data.get("organization", ""),
            location=data.get("location", ""),
            remote=bool(data.get("remote", False)),
            description=data.get("description", ""),
            apply_url=data.get("apply_url", ""),
            salary=data.get("salary"),
            posted_at=data.get("posted_at"),
            tags=tuple(data.get("tags") or ()),
        )


@dataclass(frozen=True)
class NormalizedListing:
    """A raw listing plus attributes inferred from its title and description."""

    raw: RawListing
    seniority: str = UNSPECIFIED
    employment_type: str = "full-time"
    organization_size: str | None = None
    domain_tags: tuple[str, ...] = ()

    def __getattr__(self, name: str) -> Any:
        # Only reached for names not defined here; forward to the raw listing.
        if name == "raw":
            raise AttributeError(name)
        return getattr(self.raw, name)

    @property
    def text(self) -> str:
        return f"{self.raw.title} {self.raw.description}"

    def to_dict(self) -> dict[str, Any]:
        data = self.raw.to_dict()
        data.update(
            seniority=self.seniority,
            employment_type=self.employment_type,
            organization_size=self.organization_size,
            domain_tags=list(self.domain_tags),
        )
        return data


@dataclass
class SearchOptions:
    """Structured filters. ``None`` (or ``"any"``) on a field means no constraint."""

    query: str = ""
    location: str | None = None
    remote_only: bool | None = None
    organization_size: str | None = None
    domain: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None
    seniority: str | None = None
    employment_type: str | None = None


@dataclass
class CandidateProfile:
    skills: list[str] = field(default_factory=list)
    desired_titles: list[str] = field(default_factory=list)
    years_of_experience: int | None = None
    seniority: str | None = None
    current_title: str | None = None

    def fingerprint(self) -> str:
        payload = json.dumps(asdict(self), sort_keys=True)
        return hashlib.sha256(payload.encode()).hexdigest()[:16]


@dataclass(frozen=True)
class OracleScore:
    score: int
    matched_skills: tuple[str, ...]
    missing_skills: tuple[str, ...]
    rationale: str
    scored_by: str = "oracle"


@dataclass(frozen=True)
class FallbackScore:
    score: int
    matched_skills: tuple[str, ...]
    missing_skills: tuple[str, ...]
    rationale: str
    scored_by: str = "fallback"


ScoreOutcome = Union[OracleScore, FallbackScore]


def clamp_score(value: Any) -> int:
    """Coerce to an int in [0, 100]; garbage becomes 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(round(min(max(number, 0.0), 100.0)))


@dataclass
class MatchResult:
    listing: NormalizedListing
    score: int
    matched_skills: list[str]
    missing_skills: list[str]
    rationale: str
    scored_by: str = "fallback"

    def __post_init__(self) -> None:
        self.score = clamp_score(self.score)

    @classmethod
    def from_outcome(cls, listing: NormalizedListing, outcome: ScoreOutcome) -> MatchResult:
        return cls(
            listing=listing,
            score=outcome.score,
            matched_skills=list(outcome.matched_skills),
            missing_skills=list(outcome.missing_skills),
            rationale=outcome.rationale,
            scored_by=outcome.scored_by,
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.listing.to_dict()
        data.update(
            match_score=self.score,
            matched_skills=list(self.matched_skills),
            missing_skills=list(self.missing_skills),
            reasoning=self.rationale,
            scored_by=self.scored_by,
        )
        return data


@dataclass
class SourceStatus:
    name: str
    succeeded: bool
    count: int = 0
    error: str | None = None


@dataclass
class AggregationResult:
    listings: list[RawListing]
    statuses: list[SourceStatus]
    stopped: bool = False

    @property
    def failed(self) -> list[SourceStatus]:
        return [s for s in self.statuses if not s.succeeded]


@dataclass
class ScoringRun:
    results: list[MatchResult]
    processed: int = 0
    streamed: int = 0
    stopped: bool = False


@dataclass
class SearchResult:
    results: list[MatchResult]
    stopped: bool
    source_statuses: list[SourceStatus]
    processed: int = 0
    streamed: int = 0
    aggregated: int = 0
    deduplicated: int = 0
    filtered: int = 0
    finished_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
