"""Deduplicate, enrich and filter raw listings.

All three steps are pure and synchronous. Classifiers only look at the
listing title and description, and anything they cannot classify degrades to
"unspecified" / absent instead of raising.
"""
from __future__ import annotations

import re
from typing import Iterable

from jobscout.log import get_logger
from jobscout.models import UNSPECIFIED, NormalizedListing, RawListing, SearchOptions

log = get_logger(__name__)

_SENIOR_RE = re.compile(r"\b(?:senior|lead|principal|staff|architect|head of|director)\b|\bsr\.")
_JUNIOR_RE = re.compile(r"\b(?:junior|entry[\s-]level|graduate|intern|associate)\b|\bjr\.")
_MID_RE = re.compile(r"\b(mid[\s-]level|intermediate)\b")
_YEARS_RE = re.compile(
    r"\b(\d{1,2})\s*(?:\+|-\s*\d{1,2}|to\s+\d{1,2})?\s*\+?\s*(?:years?|yrs?)\b.{0,40}?experience"
)

_EMPLOYMENT_RULES: list[tuple[str, re.Pattern]] = [
    ("internship", re.compile(r"\b(internship|intern)\b")),
    ("freelance", re.compile(r"\b(freelance|freelancer|independent contractor)\b")),
    ("contract", re.compile(r"\b(contract|contractor|temporary|temp|fixed[\s-]term)\b")),
]

_SIZE_RULES: list[tuple[str, re.Pattern]] = [
    ("enterprise", re.compile(
        r"fortune (500|1000)|\benterprise\b|global leader|multinational"
        r"|10,?000\+ employees|established (19|20)\d{2}"
    )),
    ("startup", re.compile(
        r"\bstart-?up\b|early[\s-]stage|seed[\s-]funded|series [abc]\b"
        r"|founded 20(1[5-9]|2\d)|\b\d{1,2} employees|stealth mode"
    )),
    ("midsize", re.compile(
        r"scale[\s-]?up|growing (company|team)|series [def]\b|established company|\b\d{3} employees"
    )),
]

_DOMAIN_RULES: list[tuple[str, re.Pattern]] = [
    ("fintech", re.compile(r"fintech|financial technology|banking|payments|trading|cryptocurrency|blockchain")),
    ("cybersecurity", re.compile(
        r"cyber[\s-]?security|security engineer|penetration test|soc analyst|\bthreat|vulnerabilit"
    )),
    ("healthtech", re.compile(r"health[\s-]?tech|medical|healthcare|telemedicine|biotech|pharmaceutical")),
    ("ecommerce", re.compile(r"e-?commerce|\bretail|marketplace|shopify|woocommerce|online store")),
    ("saas", re.compile(r"\bsaas\b|software as a service|b2b software|enterprise software|cloud platform")),
    ("ai", re.compile(
        r"\bai\b|machine learning|artificial intelligence|deep learning|\bnlp\b|computer vision|\bllms?\b"
    )),
    ("gaming", re.compile(r"\bgaming\b|game dev|\bunity\b|unreal engine|playstation|xbox|mobile games")),
]

_SALARY_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([kK])?")


def _text(listing: RawListing) -> str:
    return f"{listing.title or ''} {listing.description or ''}".lower()


def _collapse(value: str | None) -> str:
    return " ".join((value or "").lower().split())


# ── Deduplicate ──────────────────────────────────────────────────────────


def dedupe_key(listing: RawListing) -> tuple[str, str]:
    return _collapse(listing.title), _collapse(listing.organization)


def dedupe(listings: Iterable[RawListing]) -> list[RawListing]:
    """Drop later listings whose (title, organization) matches an earlier one."""
    seen: set[tuple[str, str]] = set()
    unique: list[RawListing] = []
    for listing in listings:
        key = dedupe_key(listing)
        if key in seen:
            continue
        seen.add(key)
        unique.append(listing)
    return unique


# ── Enrich ───────────────────────────────────────────────────────────────


def classify_seniority(text: str) -> str:
    low = text.lower()
    if _SENIOR_RE.search(low):
        return "senior"
    if _JUNIOR_RE.search(low):
        return "junior"
    if _MID_RE.search(low):
        return "mid"
    match = _YEARS_RE.search(low)
    if match:
        years = int(match.group(1))
        if years <= 2:
            return "junior"
        if years <= 5:
            return "mid"
        return "senior"
    return UNSPECIFIED


def classify_employment_type(text: str) -> str:
    low = text.lower()
    for label, pattern in _EMPLOYMENT_RULES:
        if pattern.search(low):
            return label
    return "full-time"


def classify_organization_size(text: str) -> str | None:
    low = text.lower()
    for label, pattern in _SIZE_RULES:
        if pattern.search(low):
            return label
    return None


def classify_domains(text: str) -> tuple[str, ...]:
    low = text.lower()
    return tuple(label for label, pattern in _DOMAIN_RULES if pattern.search(low))


def enrich(listing: RawListing) -> NormalizedListing:
    text = _text(listing)
    return NormalizedListing(
        raw=listing,
        seniority=classify_seniority(text),
        employment_type=classify_employment_type(text),
        organization_size=classify_organization_size(text),
        domain_tags=classify_domains(text),
    )


def enrich_all(listings: Iterable[RawListing]) -> list[NormalizedListing]:
    return [enrich(listing) for listing in listings]


# ── Filter ───────────────────────────────────────────────────────────────


def parse_salary_floor(salary: str | None) -> float | None:
    """First number in a free-text salary; "120k" reads as 120000."""
    if not salary:
        return None
    match = _SALARY_RE.search(salary)
    if not match:
        return None
    try:
        amount = float(match.group(1).replace(",", ""))
    except ValueError:
        return None
    if match.group(2):
        amount *= 1000
    return amount


def _wanted(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    return None if value in ("", "any") else value


def _location_parts(location: str | None) -> list[str]:
    if not location:
        return []
    return [p.strip() for p in location.lower().split(",") if len(p.strip()) >= 3]


def matches_options(listing: NormalizedListing, options: SearchOptions) -> bool:
    if options.remote_only is True and not listing.remote:
        return False
    if options.remote_only is False and listing.remote:
        return False

    parts = _location_parts(options.location)
    if parts:
        exempt = listing.remote and options.remote_only is not False
        where = (listing.location or "").lower()
        if not exempt and not any(part in where for part in parts):
            return False

    size = _wanted(options.organization_size)
    if size and listing.organization_size != size:
        return False

    domain = _wanted(options.domain)
    if domain and domain not in listing.domain_tags:
        return False

    level = _wanted(options.seniority)
    if level and listing.seniority != level:
        return False

    kind = _wanted(options.employment_type)
    if kind and listing.employment_type != kind:
        return False

    if options.salary_min is not None or options.salary_max is not None:
        amount = parse_salary_floor(listing.salary)
        if amount is not None:
            if options.salary_min is not None and amount < options.salary_min:
                return False
            if options.salary_max is not None and amount > options.salary_max:
                return False

    return True


def filter_listings(listings: Iterable[NormalizedListing], options: SearchOptions) -> list[NormalizedListing]:
    return [listing for listing in listings if matches_options(listing, options)]


def normalize(listings: Iterable[RawListing], options: SearchOptions) -> list[NormalizedListing]:
    """Dedupe, enrich and filter in one pass."""
    unique = dedupe(listings)
    enriched = enrich_all(unique)
    kept = filter_listings(enriched, options)
    log.info("Normalized %d unique listings -> %d after filters", len(unique), len(kept))
    return kept
