"""Semantic match scoring through an OpenAI-compatible chat endpoint (Groq by default)."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable

from jobscout.config import get_env
from jobscout.errors import OracleUnavailable
from jobscout.log import get_logger
from jobscout.models import CandidateProfile, NormalizedListing, OracleScore, clamp_score
from jobscout.retry import retry

log = get_logger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"
DESCRIPTION_LIMIT = 1500
ORACLE_TIMEOUT = 30.0


class ScoringOracle(ABC):
    """Anything that can turn (listing, profile) into an ``OracleScore``.

    Implementations raise ``OracleUnavailable`` for every failure mode so the
    caller only has one exception to turn into a fallback.
    """

    name: str = "oracle"

    @abstractmethod
    def score(self, listing: NormalizedListing, profile: CandidateProfile) -> OracleScore:
        pass


def _or_unspecified(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) if value else "Not specified"
    return str(value) if value not in (None, "") else "Not specified"


def build_prompt(listing: NormalizedListing, profile: CandidateProfile) -> str:
    description = (listing.description or "")[:DESCRIPTION_LIMIT] or "No description available"
    return f"""Analyze how well this job matches the candidate's profile.

JOB POSTING:
Title: {listing.title}
Company: {listing.organization}
Description: {description}

CANDIDATE PROFILE:
Skills: {_or_unspecified(profile.skills)}
Desired Roles: {_or_unspecified(profile.desired_titles)}
Years of Experience: {_or_unspecified(profile.years_of_experience)}
Seniority Level: {_or_unspecified(profile.seniority)}
Current Role: {_or_unspecified(profile.current_title)}

Score 0-100 weighting skills overlap 40%, role title fit 30%, seniority fit 20%,
general fit 10%. List which candidate skills the job uses and which required
skills the candidate lacks.

Respond ONLY with valid JSON (no markdown):
{{"score": 85, "matched_skills": ["Python"], "missing_skills": ["Kubernetes"], "rationale": "one sentence"}}"""


def _as_strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v).strip() for v in value if str(v).strip())


def parse_response(text: str) -> OracleScore:
    """Pull the first JSON object out of a model reply; tolerant of code fences."""
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end <= start:
        raise OracleUnavailable("oracle reply contained no JSON object")
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise OracleUnavailable(f"oracle reply was not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise OracleUnavailable("oracle reply was not a JSON object")

    raw_score = data.get("score", data.get("matchScore"))
    if raw_score is None:
        raise OracleUnavailable("oracle reply had no score")
    return OracleScore(
        score=clamp_score(raw_score),
        matched_skills=_as_strings(data.get("matched_skills", data.get("matchedSkills"))),
        missing_skills=_as_strings(data.get("missing_skills", data.get("missingSkills"))),
        rationale=str(data.get("rationale") or data.get("reasoning") or ""),
    )


class LLMScoringOracle(ScoringOracle):
    name = "llm"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = GROQ_BASE_URL,
        timeout: float = ORACLE_TIMEOUT,
        client: Any = None,
    ) -> None:
        if client is None:
            from openai import OpenAI

            client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        self.client = client
        self.model = model

    @retry(max_attempts=2, base_delay=2.0, retryable=(Exception,))
    def _complete(self, prompt: str) -> str:
        r = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=400,
            temperature=0,
        )
        return (r.choices[0].message.content or "").strip()

    def score(self, listing: NormalizedListing, profile: CandidateProfile) -> OracleScore:
        try:
            reply = self._complete(build_prompt(listing, profile))
        except Exception as exc:
            raise OracleUnavailable(f"oracle call failed: {exc}") from exc
        result = parse_response(reply)
        log.debug("Oracle scored %s @ %s: %d", listing.title, listing.organization, result.score)
        return result


def get_oracle(env: Callable[[str], str] = get_env) -> ScoringOracle | None:
    api_key = env("GROQ_API_KEY")
    if not api_key:
        log.info("No GROQ_API_KEY - scoring with the keyword fallback only")
        return None
    model = env("GROQ_LLM_MODEL") or DEFAULT_MODEL
    base_url = env("ORACLE_BASE_URL") or GROQ_BASE_URL
    log.info("Scoring oracle: %s via %s", model, base_url)
    return LLMScoringOracle(api_key, model=model, base_url=base_url)
