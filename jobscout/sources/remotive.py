"""Remotive — free API for remote tech jobs (no API key required).

Docs: https://remotive.com/api/remote-jobs
"""
from __future__ import annotations

from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, html_to_text, listing_id, parse_posted_at
from jobscout.sources.query import matches_query

log = get_logger(__name__)

API_URL = "https://remotive.com/api/remote-jobs"
MAX_RESULTS = 20

# Remotive's search works best with one distinctive term, not a full title
_GENERIC = {"senior", "junior", "lead", "staff", "principal", "manager",
            "engineer", "developer", "specialist", "consultant", "remote",
            "ii", "iii", "iv", "sr", "jr"}


def _search_term(query: str) -> str:
    words = [w for w in query.lower().split() if w not in _GENERIC]
    return words[0] if words else ""


class RemotiveSource(ListingSource):
    name = "Remotive"
    remote_only = True

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        params: dict = {"limit": 100}
        term = _search_term(query)
        if term:
            params["search"] = term
        data = self.get_json(API_URL, params=params)

        listings: list[RawListing] = []
        for hit in data.get("jobs", []) or []:
            title = hit.get("title", "")
            description = html_to_text(hit.get("description"))
            if not matches_query(f"{title} {description} {hit.get('category', '')}", query):
                continue
            listings.append(
                RawListing(
                    id=listing_id("remotive", hit.get("id"), title, hit.get("company_name", "")),
                    source=self.name,
                    title=title,
                    organization=hit.get("company_name", ""),
                    location=hit.get("candidate_required_location") or "Remote",
                    remote=True,
                    description=description,
                    apply_url=hit.get("url", ""),
                    salary=hit.get("salary") or None,
                    posted_at=parse_posted_at(hit.get("publication_date")),
                    tags=tuple(t for t in (hit.get("category"), hit.get("job_type")) if t),
                )
            )
            if len(listings) >= MAX_RESULTS:
                break
        log.debug("Remotive search=%r returned %d listings", term, len(listings))
        return listings
