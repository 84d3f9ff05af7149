from __future__ import annotations

from typing import Callable

from jobscout.config import get_env
from jobscout.errors import ConfigurationGap
from jobscout.log import get_logger
from jobscout.models import SearchOptions

from .adzuna import AdzunaSource, country_for
from .arbeitnow import ArbeitnowSource
from .base import ListingSource
from .findwork import FindworkSource
from .himalayas import HimalayasSource
from .jsearch import JSearchSource
from .remoteok import RemoteOKSource
from .remotive import RemotiveSource
from .themuse import TheMuseSource

log = get_logger(__name__)

__all__ = [
    "ListingSource", "RemoteOKSource", "RemotiveSource", "ArbeitnowSource",
    "TheMuseSource", "HimalayasSource", "FindworkSource", "JSearchSource",
    "AdzunaSource", "ALL_SOURCES", "get_sources",
]

ALL_SOURCES: tuple[type[ListingSource], ...] = (
    RemoteOKSource,
    RemotiveSource,
    ArbeitnowSource,
    TheMuseSource,
    HimalayasSource,
    FindworkSource,
    JSearchSource,
    AdzunaSource,
)


def get_sources(
    options: SearchOptions,
    env_getter: Callable[[str], str] = get_env,
    candidates: tuple[type[ListingSource], ...] = ALL_SOURCES,
) -> list[ListingSource]:
    """Instantiate every source that applies to *options* and is configured."""
    sources: list[ListingSource] = []
    for cls in candidates:
        if cls.remote_only and options.remote_only is False:
            log.info("Skipping %s (remote-only source, on-site search)", cls.name)
            continue
        if cls is AdzunaSource and country_for(options.location) is None:
            log.info("Skipping %s (no coverage for %r)", cls.name, options.location)
            continue
        try:
            sources.append(cls(env_getter))
        except ConfigurationGap as gap:
            log.info("Skipping %s (not configured: %s)", gap.source, ", ".join(gap.missing))
            continue
        log.debug("Registered source: %s", cls.name)
    log.info("Using %d source(s): %s", len(sources), ", ".join(s.name for s in sources))
    return sources
