"""RemoteOK — free public feed of remote jobs; the whole feed comes back and is filtered here."""
from __future__ import annotations

from jobscout.errors import SourceFailure
from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.sources.base import ListingSource, html_to_text, listing_id, parse_posted_at
from jobscout.sources.query import matches_query

log = get_logger(__name__)

API_URL = "https://remoteok.com/api"
MAX_RESULTS = 20


def _salary(hit: dict) -> str | None:
    low, high = hit.get("salary_min"), hit.get("salary_max")
    if not (low and high):
        return None
    try:
        return f"${int(low):,} - ${int(high):,}"
    except (TypeError, ValueError):
        return None


class RemoteOKSource(ListingSource):
    name = "RemoteOK"
    remote_only = True

    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        data = self.get_json(API_URL)
        if not isinstance(data, list):
            raise SourceFailure(self.name, "unexpected response shape")

        listings: list[RawListing] = []
        # The first element is a legal notice, not a job
        for hit in data[1:]:
            if not isinstance(hit, dict):
                continue
            title = hit.get("position", "")
            description = html_to_text(hit.get("description"))
            if not matches_query(f"{title} {description}", query):
                continue
            listings.append(
                RawListing(
                    id=listing_id("remoteok", hit.get("id"), title, hit.get("company", "")),
                    source=self.name,
                    title=title,
                    organization=hit.get("company", ""),
                    location=hit.get("location") or "Remote",
                    remote=True,
                    description=description,
                    apply_url=hit.get("url", ""),
                    salary=_salary(hit),
                    posted_at=parse_posted_at(hit.get("epoch") or hit.get("date")),
                    tags=tuple(hit.get("tags") or ()),
                )
            )
            if len(listings) >= MAX_RESULTS:
                break
        log.debug("RemoteOK matched %d of %d listings", len(listings), max(len(data) - 1, 0))
        return listings
