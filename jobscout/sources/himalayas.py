"""Himalayas — community remote-jobs board with a public JSON feed."""
from __future__ import annotations

from typing import Any

from jobscout.errors import SourceFailure
from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, html_to_text, listing_id, parse_posted_at
from jobscout.sources.query import matches_query

log = get_logger(__name__)

API_URL = "https://himalayas.app/jobs/api"
MAX_RESULTS = 20


def _unwrap(data: Any) -> list[dict]:
    """The feed has shipped as a bare list, ``{"jobs": [...]}`` and ``{"data": [...]}``."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("jobs", "data"):
            if isinstance(data.get(key), list):
                return data[key]
    raise SourceFailure("Himalayas", "unexpected response shape")


def _salary(hit: dict) -> str | None:
    low, high = hit.get("minSalary"), hit.get("maxSalary")
    currency = hit.get("currency") or "USD"
    if low and high:
        return f"{currency} {low} - {high}"
    return hit.get("salary_range") or None


class HimalayasSource(ListingSource):
    name = "Himalayas"
    remote_only = True

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        data = self.get_json(API_URL, params={"limit": 100})

        listings: list[RawListing] = []
        for hit in _unwrap(data):
            title = hit.get("title", "")
            description = html_to_text(hit.get("description") or hit.get("excerpt"))
            if not matches_query(f"{title} {description}", query):
                continue
            company = hit.get("companyName") or (hit.get("company") or {}).get("name") or "Unknown"
            restrictions = hit.get("locationRestrictions") or []
            slug = hit.get("guid") or hit.get("id") or hit.get("slug")
            listings.append(
                RawListing(
                    id=listing_id("himalayas", slug, title, company),
                    source=self.name,
                    title=title,
                    organization=company,
                    location=", ".join(restrictions) if restrictions else "Remote",
                    remote=True,
                    description=description,
                    apply_url=hit.get("applicationLink") or hit.get("apply_url") or "",
                    salary=_salary(hit),
                    posted_at=parse_posted_at(hit.get("pubDate") or hit.get("published_at")),
                    tags=tuple(hit.get("categories") or hit.get("tags") or ()),
                )
            )
            if len(listings) >= MAX_RESULTS:
                break
        log.debug("Himalayas matched %d listings", len(listings))
        return listings
