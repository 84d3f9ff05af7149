"""The Muse public jobs API (engineering category, no key needed for light use).

Docs: https://www.themuse.com/developers/api/v2
"""
from __future__ import annotations

from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, html_to_text, listing_id, looks_remote, parse_posted_at
from jobscout.sources.query import matches_query

log = get_logger(__name__)

API_URL = "https://www.themuse.com/api/public/jobs"
MAX_RESULTS = 20

_LEVELS = {"entry level": "Entry Level", "mid level": "Mid Level", "senior level": "Senior Level"}


class TheMuseSource(ListingSource):
    name = "The Muse"

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        params: dict = {"category": "Software Engineering", "page": 0, "descending": "true"}
        if location:
            params["location"] = location
        data = self.get_json(API_URL, params=params)

        listings: list[RawListing] = []
        for hit in data.get("results", []) or []:
            title = hit.get("name", "")
            description = html_to_text(hit.get("contents"))
            if not matches_query(f"{title} {description}", query):
                continue
            locations = [loc.get("name", "") for loc in hit.get("locations") or [] if loc.get("name")]
            where = "; ".join(locations) or "Remote"
            levels = [lvl.get("name", "") for lvl in hit.get("levels") or [] if lvl.get("name")]
            company = (hit.get("company") or {}).get("name") or "Unknown"
            listings.append(
                RawListing(
                    id=listing_id("themuse", hit.get("id"), title, company),
                    source=self.name,
                    title=title,
                    organization=company,
                    location=where,
                    remote=looks_remote(where) or "flexible" in where.lower(),
                    description=description,
                    apply_url=(hit.get("refs") or {}).get("landing_page")
                    or f"https://www.themuse.com/jobs/{hit.get('id', '')}",
                    posted_at=parse_posted_at(hit.get("publication_date")),
                    tags=tuple(levels),
                )
            )
            if len(listings) >= MAX_RESULTS:
                break
        log.debug("The Muse matched %d listings", len(listings))
        return listings
