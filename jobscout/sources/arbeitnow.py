"""Arbeitnow job board API — free, global, mixes remote and on-site roles.

Docs: https://www.arbeitnow.com/api/job-board-api
"""
from __future__ import annotations

from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, html_to_text, listing_id, parse_posted_at
from jobscout.sources.query import matches_query

log = get_logger(__name__)

API_URL = "https://www.arbeitnow.com/api/job-board-api"
MAX_RESULTS = 20


class ArbeitnowSource(ListingSource):
    name = "Arbeitnow"

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        data = self.get_json(API_URL)

        listings: list[RawListing] = []
        for hit in data.get("data", []) or []:
            title = hit.get("title", "")
            description = html_to_text(hit.get("description"))
            if not matches_query(f"{title} {description}", query):
                continue
            tags = list(hit.get("tags") or ()) + list(hit.get("job_types") or ())
            listings.append(
                RawListing(
                    id=listing_id("arbeitnow", hit.get("slug"), title, hit.get("company_name", "")),
                    source=self.name,
                    title=title,
                    organization=hit.get("company_name", ""),
                    location=hit.get("location") or "Remote",
                    remote=bool(hit.get("remote", False)),
                    description=description,
                    apply_url=hit.get("url", ""),
                    posted_at=parse_posted_at(hit.get("created_at")),
                    tags=tuple(tags),
                )
            )
            if len(listings) >= MAX_RESULTS:
                break
        log.debug("Arbeitnow matched %d listings", len(listings))
        return listings
