"""Error taxonomy for the search pipeline.

Only ``SourceFailure`` and ``OracleUnavailable`` are raised during a normal
search, and both are absorbed by the stage that calls the failing
collaborator. Cancellation is never signalled with an exception.
"""
from __future__ import annotations


class JobScoutError(Exception):
    """Base class for all expected pipeline conditions."""


class SourceFailure(JobScoutError):
    """A single source could not be fetched (transport, auth or parse error)."""

    def __init__(self, source: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message
        self.status_code = status_code

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class OracleUnavailable(JobScoutError):
    """The scoring oracle timed out, failed, or returned something unparseable."""


class ConfigurationGap(JobScoutError):
    """A source cannot run because required credentials are absent."""

    def __init__(self, source: str, missing: list[str]) -> None:
        super().__init__(f"{source} skipped: missing {', '.join(missing)}")
        self.source = source
        self.missing = missing
