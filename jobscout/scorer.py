"""Deterministic keyword scorer used whenever the oracle cannot answer.

``fallback_score`` is a pure function of (listing, profile): no clock, no
I/O, no randomness. Point budget:

  - up to 50 for the fraction of profile skills found in title+description
  - 25 when a desired title or the current title appears
  - 15 when the listing's inferred seniority equals the profile's
  - 10 for generic engineering vocabulary
"""
from __future__ import annotations

import re

from jobscout.models import UNSPECIFIED, CandidateProfile, FallbackScore, NormalizedListing, clamp_score

SKILL_WEIGHT = 50
TITLE_BONUS = 25
SENIORITY_BONUS = 15
TECH_BONUS = 10

MAX_MATCHED = 10
MAX_MISSING = 5

COMMON_TECH: list[str] = [
    "python", "java", "javascript", "typescript", "react", "node", "aws",
    "docker", "kubernetes", "sql", "mongodb", "go", "rust",
]

TECH_INDICATORS: list[str] = ["startup", "tech", "software", "engineering", "developer", "engineer"]


def _skill_variants(skill: str) -> list[str]:
    """Node.js also matches node; a "js" inside a skill also matches javascript."""
    low = skill.lower().strip()
    variants = [low]
    if low.endswith(".js") and len(low) > 3:
        variants.append(low[:-3])
    if "js" in low and low != "js":
        variants.append(low.replace("js", "javascript"))
    return variants


def _has_skill(text: str, skill: str) -> bool:
    return any(v and v in text for v in _skill_variants(skill))


def _has_word(text: str, word: str) -> bool:
    return re.search(rf"\b{re.escape(word)}\b", text) is not None


def matched_skills(text: str, skills: list[str]) -> list[str]:
    return [s for s in skills if s.strip() and _has_skill(text, s)]


def missing_skills(text: str, skills: list[str]) -> list[str]:
    owned = [s.lower() for s in skills]
    missing = [
        tech for tech in COMMON_TECH
        if _has_word(text, tech) and not any(tech in s for s in owned)
    ]
    return missing[:MAX_MISSING]


def title_matches(text: str, profile: CandidateProfile) -> bool:
    titles = list(profile.desired_titles)
    if profile.current_title:
        titles.append(profile.current_title)
    return any(t.strip() and t.strip().lower() in text for t in titles)


def seniority_matches(listing: NormalizedListing, profile: CandidateProfile) -> bool:
    wanted = (profile.seniority or "").strip().lower()
    if not wanted or wanted == UNSPECIFIED:
        return False
    return listing.seniority == wanted


def fallback_score(listing: NormalizedListing, profile: CandidateProfile) -> FallbackScore:
    text = listing.text.lower()
    skills = [s for s in profile.skills if s and s.strip()]
    found = matched_skills(text, skills)

    # Without skills or desired titles only the generic keyword bonus applies
    targeted = bool(skills or profile.desired_titles)

    score = 0
    if skills:
        score = round(len(found) / len(skills) * SKILL_WEIGHT)

    role_hit = targeted and title_matches(text, profile)
    if role_hit:
        score += TITLE_BONUS
    if targeted and seniority_matches(listing, profile):
        score += SENIORITY_BONUS
    if any(word in text for word in TECH_INDICATORS):
        score += TECH_BONUS

    if found:
        rationale = f"Basic match: {len(found)} of {len(skills)} skills matched"
        if role_hit:
            rationale += ", role title matches"
    else:
        rationale = "Low match - few skill overlaps detected"

    return FallbackScore(
        score=clamp_score(score),
        matched_skills=tuple(found[:MAX_MATCHED]),
        missing_skills=tuple(missing_skills(text, skills)),
        rationale=rationale,
    )
