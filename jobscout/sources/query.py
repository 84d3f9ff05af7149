"""Client-side query matching for feeds that ignore (or lack) a search parameter."""
from __future__ import annotations

import re

SYNONYMS: dict[str, list[str]] = {
    "developer": ["developer", "engineer", "programmer", "coder", "software engineer"],
    "frontend": ["frontend", "front-end", "front end", "ui", "client-side"],
    "backend": ["backend", "back-end", "back end", "server-side", "api"],
    "fullstack": ["fullstack", "full-stack", "full stack", "frontend and backend"],
    "mobile": ["mobile", "ios", "android", "react native", "flutter"],
    "devops": ["devops", "sre", "site reliability", "infrastructure"],
    "data": ["data", "analytics", "data science", "ml", "machine learning"],
    "security": ["security", "cybersecurity", "infosec", "appsec"],
    "manager": ["manager", "lead", "head of", "director", "vp"],
    "javascript": ["javascript", "js", "node", "nodejs", "typescript", "ts"],
    "python": ["python", "django", "flask", "fastapi"],
    "java": ["java", "spring", "kotlin"],
    "react": ["react", "reactjs", "react.js"],
    "angular": ["angular", "angularjs"],
    "vue": ["vue", "vuejs", "vue.js"],
}

SENIOR_WORDS = ["senior", "sr.", "sr", "lead", "principal", "staff", "architect", "expert"]
MID_WORDS = ["mid", "mid-level", "intermediate", "experienced"]
JUNIOR_WORDS = ["junior", "jr.", "jr", "entry", "entry-level", "graduate", "associate"]
ROLE_WORDS = ["developer", "engineer", "architect", "programmer", "software", "designer", "analyst", "manager"]
STOP_WORDS = {"and", "or", "the", "for", "with", "job", "position", "role", "remote"}

# Share of technology words that must be present for a match
MIN_TECH_RATIO = 0.25


def _has_word(text: str, word: str) -> bool:
    return re.search(rf"(?<![a-z0-9]){re.escape(word)}(?![a-z0-9])", text) is not None


def _query_seniority(words: list[str]) -> str | None:
    if any(w in SENIOR_WORDS for w in words):
        return "senior"
    if any(w in MID_WORDS for w in words):
        return "mid"
    if any(w in JUNIOR_WORDS for w in words):
        return "junior"
    return None


def matches_query(text: str, query: str) -> bool:
    """Seniority-aware keyword match with synonym expansion.

    A query naming a seniority requires (senior) or forbids (junior) senior
    wording in the text. Role words must match directly or via synonyms, and
    at least a quarter of the remaining technology words must appear.
    """
    low = (text or "").lower()
    words = [w for w in re.split(r"[\s,/]+", (query or "").lower()) if w]
    if not words:
        return True

    seniority = _query_seniority(words)
    has_senior = any(_has_word(low, s) for s in SENIOR_WORDS)
    if seniority == "senior" and not has_senior:
        return False
    if seniority == "junior" and has_senior:
        return False

    roles = [r for r in ROLE_WORDS if r in words]
    if roles and not any(
        _has_word(low, variant) for r in roles for variant in SYNONYMS.get(r, [r])
    ):
        return False

    level_words = set(SENIOR_WORDS) | set(MID_WORDS) | set(JUNIOR_WORDS)
    tech = [
        w for w in words
        if len(w) > 2 and w not in level_words and w not in ROLE_WORDS and w not in STOP_WORDS
    ]
    if not tech:
        return True
    matched = sum(
        1 for w in tech
        if w in low or any(_has_word(low, v) for v in SYNONYMS.get(w, []))
    )
    return matched / len(tech) >= MIN_TECH_RATIO
