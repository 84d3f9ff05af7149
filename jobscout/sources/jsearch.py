"""JSearch API (RapidAPI) — aggregates LinkedIn, Glassdoor, Indeed, ZipRecruiter."""
from __future__ import annotations

from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, listing_id, looks_remote, parse_posted_at

log = get_logger(__name__)

BASE = "https://jsearch.p.rapidapi.com"
MAX_RESULTS = 30


def _salary(hit: dict) -> str | None:
    low, high = hit.get("job_min_salary"), hit.get("job_max_salary")
    if low and high:
        currency = hit.get("job_salary_currency") or "USD"
        period = hit.get("job_salary_period") or "YEAR"
        return f"{currency} {round(low):,} - {round(high):,}/{period}"
    return hit.get("job_salary") or None


def _description(hit: dict) -> str:
    highlights = hit.get("job_highlights") or {}
    parts = [hit.get("job_description") or ""]
    for section in ("Qualifications", "Responsibilities", "Benefits"):
        items = highlights.get(section) or []
        if items:
            parts.append(", ".join(items))
    return "\n\n".join(p for p in parts if p)


def _location(hit: dict) -> str:
    city, country = hit.get("job_city"), hit.get("job_country")
    if city and country:
        return f"{city}, {country}"
    return country or hit.get("job_location") or "Remote"


class JSearchSource(ListingSource):
    name = "JSearch"
    timeout = 20.0
    required_env = ("RAPIDAPI_KEY",)

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        data = self.get_json(
            f"{BASE}/search",
            params={
                "query": f"{query} in {location}" if location else query,
                "page": "1",
                "num_pages": "1",
                "date_posted": "month",
                "employment_types": "FULLTIME,CONTRACTOR,PARTTIME",
            },
            headers={
                "X-RapidAPI-Key": self.env("RAPIDAPI_KEY"),
                "X-RapidAPI-Host": "jsearch.p.rapidapi.com",
            },
        )

        listings: list[RawListing] = []
        for hit in (data.get("data", []) or [])[:MAX_RESULTS]:
            where = _location(hit)
            tags = list(hit.get("job_required_skills") or ())
            if hit.get("job_employment_type"):
                tags.append(hit["job_employment_type"])
            listings.append(
                RawListing(
                    id=listing_id("jsearch", hit.get("job_id"), hit.get("job_title", ""), hit.get("employer_name", "")),
                    source=hit.get("job_publisher") or self.name,
                    title=hit.get("job_title", ""),
                    organization=hit.get("employer_name", ""),
                    location=where,
                    remote=bool(hit.get("job_is_remote")) or looks_remote(hit.get("job_location")),
                    description=_description(hit),
                    apply_url=hit.get("job_apply_link") or hit.get("job_google_link") or "",
                    salary=_salary(hit),
                    posted_at=parse_posted_at(
                        hit.get("job_posted_at_datetime_utc") or hit.get("job_posted_at_timestamp")
                    ),
                    tags=tuple(tags),
                )
            )
        log.debug("JSearch query=%r returned %d listings", query, len(listings))
        return listings
