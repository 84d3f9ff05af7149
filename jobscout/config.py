"""Load environment settings and candidate profiles."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobscout.log import get_logger
from jobscout.models import CandidateProfile

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
PROFILE_PATH: Path = CONFIG_DIR / "profile.yaml"
REPORTS_DIR: Path = ROOT_DIR / "reports"


def get_env(key: str, default: str = "") -> str:
    # Keys pasted from dashboards often arrive quoted
    return os.environ.get(key, default).strip().strip("'\"")


def _env_float(key: str, default: float) -> float:
    raw = get_env(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r, using %s", key, raw, default)
        return default


def _env_int(key: str, default: int) -> int:
    return int(_env_float(key, default))


@dataclass
class Settings:
    """Tunables for one pipeline instance; every field has an env override."""

    aggregation_deadline: float = 45.0
    aggregation_poll_interval: float = 0.25
    cache_memory_ttl: int = 300
    cache_shared_ttl: int = 3600
    cache_max_keys: int = 1000
    search_cache_ttl: int = 600
    match_cache_ttl: int = 3600
    redis_url: str = ""
    stream_threshold: int = 75
    reports_dir: Path = REPORTS_DIR

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            aggregation_deadline=_env_float("AGGREGATION_DEADLINE_SECONDS", 45.0),
            aggregation_poll_interval=_env_float("AGGREGATION_POLL_SECONDS", 0.25),
            cache_memory_ttl=_env_int("CACHE_MEMORY_TTL", 300),
            cache_shared_ttl=_env_int("CACHE_SHARED_TTL", 3600),
            cache_max_keys=_env_int("CACHE_MAX_KEYS", 1000),
            search_cache_ttl=_env_int("SEARCH_CACHE_TTL", 600),
            match_cache_ttl=_env_int("MATCH_CACHE_TTL", 3600),
            redis_url=get_env("REDIS_URL") or get_env("UPSTASH_REDIS_URL"),
            stream_threshold=_env_int("STREAM_THRESHOLD", 75),
            reports_dir=Path(get_env("REPORTS_DIR") or REPORTS_DIR),
        )


def _as_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


def profile_from_dict(data: dict[str, Any]) -> CandidateProfile:
    # Accept both the flat layout and a nested "profile:" block
    body = data["profile"] if isinstance(data.get("profile"), dict) else data
    years = body.get("years_of_experience", body.get("years_experience"))
    level = (body.get("seniority") or body.get("level") or "").strip().lower() or None
    if level == "intermediate":
        level = "mid"
    return CandidateProfile(
        skills=_as_list(body.get("skills")),
        desired_titles=_as_list(
            body.get("desired_titles") or data.get("desired_titles") or data.get("preferred_roles")
        ),
        years_of_experience=int(years) if years not in (None, "") else None,
        seniority=level,
        current_title=(body.get("current_title") or body.get("title") or None),
    )


def load_profile(path: Path | None = None) -> CandidateProfile:
    path = path or PROFILE_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    profile = profile_from_dict(data)
    log.info(
        "Loaded profile %s: %d skills, %d desired titles",
        path.name, len(profile.skills), len(profile.desired_titles),
    )
    return profile
