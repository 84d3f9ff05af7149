"""Findwork.dev — developer jobs API (token required).

Sign up: https://findwork.dev/developers/
"""
from __future__ import annotations

from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, html_to_text, listing_id, parse_posted_at

log = get_logger(__name__)

API_URL = "https://findwork.dev/api/jobs/"
MAX_RESULTS = 20


class FindworkSource(ListingSource):
    name = "Findwork.dev"
    required_env = ("FINDWORK_API_KEY",)

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        params: dict = {"search": query, "sort_by": "relevance"}
        if location:
            params["location"] = location
        data = self.get_json(
            API_URL,
            params=params,
            headers={"Authorization": f"Token {self.env('FINDWORK_API_KEY')}"},
        )

        listings: list[RawListing] = []
        for hit in (data.get("results", []) or [])[:MAX_RESULTS]:
            title = hit.get("role", "")
            company = hit.get("company_name") or "Unknown"
            tags = list(hit.get("keywords") or ())
            if hit.get("employment_type"):
                tags.append(hit["employment_type"])
            listings.append(
                RawListing(
                    id=listing_id("findwork", hit.get("id"), title, company),
                    source=self.name,
                    title=title,
                    organization=company,
                    location=hit.get("location") or "Remote",
                    remote=bool(hit.get("remote", False)),
                    description=html_to_text(hit.get("text")),
                    apply_url=hit.get("url") or f"https://findwork.dev/job/{hit.get('id', '')}",
                    salary=hit.get("salary_range") or None,
                    posted_at=parse_posted_at(hit.get("date_posted")),
                    tags=tuple(tags),
                )
            )
        log.debug("Findwork returned %d listings", len(listings))
        return listings
