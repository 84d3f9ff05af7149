"""Shared plumbing for source fetchers: HTTP, error mapping, field cleanup."""
from __future__ import annotations

import hashlib
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable

import requests
from bs4 import BeautifulSoup

from jobscout.config import get_env
from jobscout.errors import ConfigurationGap, SourceFailure
from jobscout.log import get_logger
from jobscout.models import RawListing
from jobscout.retry import retry

log = get_logger(__name__)

USER_AGENT = "jobscout/1.0"
_WS_RE = re.compile(r"\s+")


def _is_permanent(exc: BaseException) -> bool:
    """4xx other than 429 will not heal on retry."""
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        code = exc.response.status_code
        return 400 <= code < 500 and code != 429
    return False


def html_to_text(value: str | None) -> str:
    if not value:
        return ""
    if "<" not in value:
        return _WS_RE.sub(" ", value).strip()
    text = BeautifulSoup(value, "html.parser").get_text(" ", strip=True)
    return _WS_RE.sub(" ", text).strip()


def parse_posted_at(value: Any) -> str | None:
    """Normalize ISO strings and epoch seconds/millis to an ISO-8601 UTC string."""
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        ts = float(value)
        if ts <= 0:
            return None
        if ts > 1e12:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).isoformat()
    except ValueError:
        return text


def listing_id(prefix: str, raw_id: Any, *fallback: str) -> str:
    if raw_id not in (None, ""):
        return f"{prefix}-{raw_id}"
    digest = hashlib.sha256("|".join(fallback).encode()).hexdigest()[:12]
    return f"{prefix}-{digest}"


def looks_remote(*texts: str | None) -> bool:
    return any(t and ("remote" in t.lower() or "anywhere" in t.lower()) for t in texts)


class ListingSource(ABC):
    """One external listing provider.

    ``fetch`` returns ``[]`` when the provider simply has nothing for the
    query and raises ``SourceFailure`` for transport, auth or parse errors.
    Subclasses listing ``required_env`` raise ``ConfigurationGap`` on
    construction when any of those variables is empty.
    """

    name: str = "base"
    timeout: float = 15.0
    remote_only: bool = False
    required_env: tuple[str, ...] = ()

    def __init__(self, env_getter: Callable[[str], str] = get_env) -> None:
        missing = [key for key in self.required_env if not env_getter(key)]
        if missing:
            raise ConfigurationGap(self.name, missing)
        self.env = env_getter

    @abstractmethod
    def fetch(self, query: str, location: str | None = None) -> list[RawListing]:
        pass

    @retry(
        max_attempts=2,
        base_delay=1.5,
        retryable=(requests.RequestException, OSError),
        give_up=_is_permanent,
    )
    def _request(self, url: str, params: dict | None, headers: dict) -> requests.Response:
        r = requests.get(url, params=params, headers=headers, timeout=self.timeout)
        r.raise_for_status()
        return r

    def get_json(self, url: str, params: dict | None = None, headers: dict | None = None) -> Any:
        merged = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        merged.update(headers or {})
        try:
            r = self._request(url, params, merged)
        except requests.HTTPError as exc:
            code = exc.response.status_code if exc.response is not None else None
            if code in (401, 403):
                message = f"authentication failed (HTTP {code})"
            elif code == 429:
                message = "rate limit exceeded (HTTP 429)"
            else:
                message = f"HTTP {code}"
            raise SourceFailure(self.name, message, status_code=code) from exc
        except requests.Timeout as exc:
            raise SourceFailure(self.name, f"timed out after {self.timeout:.0f}s") from exc
        except (requests.RequestException, OSError) as exc:
            raise SourceFailure(self.name, str(exc) or type(exc).__name__) from exc
        try:
            return r.json()
        except ValueError as exc:
            raise SourceFailure(self.name, "response was not valid JSON") from exc

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
