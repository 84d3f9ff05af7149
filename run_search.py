#!/usr/bin/env python3
"""Entry point: search every configured job source and rank results against a profile."""
from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path

from jobscout.cache import CacheTier
from jobscout.config import PROFILE_PATH, Settings, load_profile
from jobscout.log import configure_logging, get_logger
from jobscout.models import CandidateProfile, SearchOptions
from jobscout.oracle import get_oracle
from jobscout.pipeline import ListingSearch
from jobscout.process_control import ProcessControl
from jobscout.report import build_search_report, write_search_report
from jobscout.sink import LoggingSink

log = get_logger(__name__)

PROCESS_NAME = "jobs"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument("query", help='what to search for, e.g. "senior python developer"')
    p.add_argument("--location", help='comma-separated, e.g. "Berlin, Germany"')
    remote = p.add_mutually_exclusive_group()
    remote.add_argument("--remote", dest="remote_only", action="store_true", default=None, help="remote jobs only")
    remote.add_argument("--onsite", dest="remote_only", action="store_false", help="exclude remote jobs")
    p.add_argument("--size", dest="organization_size", choices=["startup", "midsize", "enterprise", "any"])
    p.add_argument("--domain", choices=["fintech", "cybersecurity", "healthtech", "ecommerce", "saas", "ai", "gaming", "any"])
    p.add_argument("--seniority", choices=["junior", "mid", "senior", "any"])
    p.add_argument("--type", dest="employment_type", choices=["full-time", "contract", "freelance", "internship", "any"])
    p.add_argument("--salary-min", type=int)
    p.add_argument("--salary-max", type=int)
    p.add_argument("--profile", type=Path, help=f"candidate profile YAML (default: {PROFILE_PATH})")
    p.add_argument("--threshold", type=int, help="stream matches at or above this score")
    p.add_argument("--limit", type=int, default=20, help="rows to print")
    p.add_argument("--report", action="store_true", help="write a markdown report to the reports folder")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging on the console")
    return p.parse_args(argv)


def _profile(path: Path | None) -> CandidateProfile:
    path = path or PROFILE_PATH
    if not path.exists():
        log.warning("No profile at %s - scoring without one", path)
        return CandidateProfile()
    return load_profile(path)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        configure_logging("DEBUG")
    settings = Settings.from_env()
    sink = LoggingSink()
    control = ProcessControl(sink)
    cache = CacheTier.from_settings(settings)
    search = ListingSearch(cache, control, sink=sink, oracle=get_oracle(), settings=settings)

    def _on_sigint(signum, frame):
        if not control.request_stop(PROCESS_NAME, requested_by="SIGINT"):
            raise KeyboardInterrupt
    signal.signal(signal.SIGINT, _on_sigint)

    options = SearchOptions(
        query=args.query,
        location=args.location,
        remote_only=args.remote_only,
        organization_size=args.organization_size,
        domain=args.domain,
        salary_min=args.salary_min,
        salary_max=args.salary_max,
        seniority=args.seniority,
        employment_type=args.employment_type,
    )
    try:
        result = search.search(
            args.query,
            options,
            profile=_profile(args.profile),
            streaming_threshold=args.threshold,
            process_name=PROCESS_NAME,
        )
    finally:
        cache.close()

    print()
    for i, r in enumerate(result.results[: args.limit], 1):
        job = r.listing
        print(f"{i:>3}. {r.score:>3}%  {job.title} @ {job.organization}  [{job.location}]  ({r.scored_by})")
        if job.apply_url:
            print(f"        {job.apply_url}")
    print()

    failed = [s.name for s in result.source_statuses if not s.succeeded]
    log.info("Search %s.", "stopped" if result.stopped else "complete")
    log.info("  Results: %d (streamed %d)", len(result.results), result.streamed)
    if failed:
        log.info("  Failed sources: %s", ", ".join(failed))

    if args.report:
        path = write_search_report(build_search_report(result, args.query), settings.reports_dir)
        log.info("  Report: %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
