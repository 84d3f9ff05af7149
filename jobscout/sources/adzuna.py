"""Adzuna job search — aggregator covering the US, UK, EU, India and more.

Free tier: 250 requests/day.  Sign up at https://developer.adzuna.com/
"""
from __future__ import annotations

import re

from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, listing_id, looks_remote, parse_posted_at

log = get_logger(__name__)

BASE_URL = "https://api.adzuna.com/v1/api/jobs"
PER_PAGE = 20
DEFAULT_COUNTRY = "us"

# Location keyword -> Adzuna country code; None marks a country Adzuna does not serve
_COUNTRY_HINTS: list[tuple[tuple[str, ...], str | None]] = [
    (("israel", "tel aviv", "jerusalem", "haifa"), None),
    (("uk", "united kingdom", "london", "england", "manchester"), "gb"),
    (("canada", "toronto", "vancouver"), "ca"),
    (("germany", "berlin", "munich"), "de"),
    (("france", "paris"), "fr"),
    (("netherlands", "amsterdam"), "nl"),
    (("australia", "sydney", "melbourne"), "au"),
    (("india", "bangalore", "bengaluru", "hyderabad", "pune", "gurgaon"), "in"),
]


def country_for(location: str | None) -> str | None:
    """Adzuna country code for a location, or None when Adzuna has no coverage."""
    if not location:
        return DEFAULT_COUNTRY
    low = location.lower()
    for hints, code in _COUNTRY_HINTS:
        if any(re.search(rf"\b{re.escape(h)}\b", low) for h in hints):
            return code
    return DEFAULT_COUNTRY


class AdzunaSource(ListingSource):
    name = "Adzuna"
    required_env = ("ADZUNA_APP_ID", "ADZUNA_APP_KEY")

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        country = country_for(location)
        if country is None:
            log.info("Adzuna has no coverage for %r", location)
            return []
        params: dict = {
            "app_id": self.env("ADZUNA_APP_ID"),
            "app_key": self.env("ADZUNA_APP_KEY"),
            "what": query,
            "results_per_page": PER_PAGE,
            "sort_by": "relevance",
            "content-type": "application/json",
        }
        if location:
            params["where"] = location
        data = self.get_json(f"{BASE_URL}/{country}/search/1", params=params)

        listings: list[RawListing] = []
        for hit in data.get("results", []) or []:
            title = hit.get("title", "")
            company = (hit.get("company") or {}).get("display_name", "")
            where = (hit.get("location") or {}).get("display_name", "")

            salary_text = None
            sal_min, sal_max = hit.get("salary_min"), hit.get("salary_max")
            if sal_min and sal_max:
                salary_text = f"{round(sal_min):,} - {round(sal_max):,}"
            elif sal_min:
                salary_text = f"{round(sal_min):,}"

            tag = (hit.get("category") or {}).get("tag")
            listings.append(
                RawListing(
                    id=listing_id("adzuna", hit.get("id"), title, company, where),
                    source=self.name,
                    title=title,
                    organization=company,
                    location=where,
                    remote=looks_remote(where, title),
                    description=hit.get("description", ""),
                    apply_url=hit.get("redirect_url", ""),
                    salary=salary_text,
                    posted_at=parse_posted_at(hit.get("created")),
                    tags=(tag,) if tag else (),
                )
            )
        log.debug("Adzuna country=%s returned %d listings", country, len(listings))
        return listings
