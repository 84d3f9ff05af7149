"""Tests for source fetchers: HTTP error mapping, parsing and the registry."""
from __future__ import annotations

import json
from unittest.mock import patch

import pytest
import requests

from jobscout.errors import SourceFailure
from jobscout.models import SearchOptions
from jobscout.sources import (
    AdzunaSource,
    FindworkSource,
    HimalayasSource,
    JSearchSource,
    RemoteOKSource,
    RemotiveSource,
    get_sources,
)
from jobscout.sources.adzuna import country_for
from jobscout.sources.base import html_to_text, listing_id, parse_posted_at
from jobscout.sources.query import matches_query


def _response(status: int = 200, payload=None, text: str | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.url = "https://api.example.test"
    r._content = (json.dumps(payload) if payload is not None else (text or "")).encode()
    return r


@pytest.fixture(autouse=True)
def no_backoff():
    with patch("jobscout.retry.time.sleep"):
        yield


def _no_keys(key: str) -> str:
    return ""


class TestHttpErrors:
    def test_auth_error_is_not_retried(self):
        with patch("jobscout.sources.base.requests.get", return_value=_response(401)) as get:
            with pytest.raises(SourceFailure) as info:
                RemotiveSource(_no_keys).fetch("python developer")
        assert get.call_count == 1
        assert info.value.is_auth_error
        assert "authentication failed" in info.value.message

    def test_server_error_is_retried_then_reported(self):
        with patch("jobscout.sources.base.requests.get", return_value=_response(503)) as get:
            with pytest.raises(SourceFailure) as info:
                RemotiveSource(_no_keys).fetch("python developer")
        assert get.call_count == 2
        assert info.value.message == "HTTP 503"
        assert info.value.source == "Remotive"

    def test_rate_limit_message(self):
        with patch("jobscout.sources.base.requests.get", return_value=_response(429)):
            with pytest.raises(SourceFailure, match="rate limit"):
                RemoteOKSource(_no_keys).fetch("python")

    def test_timeout(self):
        with patch("jobscout.sources.base.requests.get", side_effect=requests.Timeout("slow")):
            with pytest.raises(SourceFailure, match="timed out after 15s"):
                RemotiveSource(_no_keys).fetch("python")

    def test_invalid_json(self):
        with patch("jobscout.sources.base.requests.get", return_value=_response(200, text="<html>")):
            with pytest.raises(SourceFailure, match="not valid JSON"):
                RemotiveSource(_no_keys).fetch("python")


class TestParsing:
    def test_remotive(self):
        payload = {"jobs": [
            {
                "id": 42,
                "title": "Senior Python Developer",
                "company_name": "Acme",
                "candidate_required_location": "Europe",
                "description": "<p>Build <b>Python</b> APIs</p>",
                "url": "https://remotive.com/42",
                "salary": "$120k",
                "publication_date": "2024-05-01T10:00:00",
                "category": "Software Development",
            },
            {"id": 43, "title": "Sales Manager", "company_name": "Other", "description": "Sell things"},
        ]}
        with patch("jobscout.sources.base.requests.get", return_value=_response(200, payload)) as get:
            listings = RemotiveSource(_no_keys).fetch("senior python developer")
        assert get.call_args.kwargs["params"]["search"] == "python"
        assert len(listings) == 1
        job = listings[0]
        assert job.id == "remotive-42"
        assert job.remote is True
        assert job.description == "Build Python APIs"
        assert job.location == "Europe"
        assert job.salary == "$120k"

    def test_remoteok_skips_legal_notice(self):
        payload = [
            {"legal": "terms"},
            {"id": "7", "position": "Python Engineer", "company": "Beta", "description": "python",
             "salary_min": 100000, "salary_max": 140000, "epoch": 1714557600, "tags": ["python"]},
        ]
        with patch("jobscout.sources.base.requests.get", return_value=_response(200, payload)):
            listings = RemoteOKSource(_no_keys).fetch("python")
        assert [l.id for l in listings] == ["remoteok-7"]
        assert listings[0].salary == "$100,000 - $140,000"
        assert listings[0].posted_at.startswith("2024-05-01")

    def test_remoteok_rejects_non_list_payload(self):
        with patch("jobscout.sources.base.requests.get", return_value=_response(200, {"error": "blocked"})):
            with pytest.raises(SourceFailure, match="unexpected response shape") as info:
                RemoteOKSource(_no_keys).fetch("python")
        assert info.value.source == "RemoteOK"

    def test_empty_result_is_not_a_failure(self):
        with patch("jobscout.sources.base.requests.get", return_value=_response(200, {"jobs": []})):
            assert RemotiveSource(_no_keys).fetch("python") == []

    def test_himalayas_unexpected_shape(self):
        with patch("jobscout.sources.base.requests.get", return_value=_response(200, {"oops": 1})):
            with pytest.raises(SourceFailure, match="unexpected response shape"):
                HimalayasSource(_no_keys).fetch("python")

    def test_findwork_sends_token(self):
        env = {"FINDWORK_API_KEY": "secret"}.get
        with patch("jobscout.sources.base.requests.get", return_value=_response(200, {"results": []})) as get:
            FindworkSource(lambda k: env(k, "")).fetch("python")
        assert get.call_args.kwargs["headers"]["Authorization"] == "Token secret"


class TestHelpers:
    def test_html_to_text(self):
        assert html_to_text("<ul><li>One</li><li>Two</li></ul>") == "One Two"
        assert html_to_text(None) == ""

    def test_parse_posted_at(self):
        assert parse_posted_at(1714557600000).startswith("2024-05-01")
        assert parse_posted_at("2024-05-01T10:00:00Z") == "2024-05-01T10:00:00+00:00"
        assert parse_posted_at(None) is None

    def test_listing_id_fallback_is_stable(self):
        assert listing_id("x", None, "Dev", "Acme") == listing_id("x", "", "Dev", "Acme")
        assert listing_id("x", 5) == "x-5"

    def test_country_for(self):
        assert country_for("London, UK") == "gb"
        assert country_for("Milwaukee, WI") == "us"
        assert country_for("Tel Aviv, Israel") is None
        assert country_for(None) == "us"


class TestQueryMatching:
    def test_synonyms(self):
        assert matches_query("Senior Python Engineer", "senior python developer")

    def test_junior_query_rejects_senior_text(self):
        assert not matches_query("Senior Python Engineer", "junior python developer")

    def test_senior_query_requires_senior_text(self):
        assert not matches_query("Python Engineer", "senior python developer")

    def test_empty_query_matches(self):
        assert matches_query("anything", "")


class TestRegistry:
    def test_keyless_sources_only_without_credentials(self):
        sources = get_sources(SearchOptions(), env_getter=_no_keys)
        names = {s.name for s in sources}
        assert "Remotive" in names
        assert not names & {FindworkSource.name, JSearchSource.name, AdzunaSource.name}

    def test_remote_only_sources_skipped_for_onsite(self):
        sources = get_sources(SearchOptions(remote_only=False), env_getter=_no_keys)
        assert all(not s.remote_only for s in sources)

    def test_configured_sources_are_included(self):
        env = {"ADZUNA_APP_ID": "id", "ADZUNA_APP_KEY": "key", "RAPIDAPI_KEY": "k"}
        sources = get_sources(SearchOptions(location="London"), env_getter=lambda k: env.get(k, ""))
        names = {s.name for s in sources}
        assert {AdzunaSource.name, JSearchSource.name} <= names

    def test_adzuna_skipped_for_uncovered_country(self):
        env = {"ADZUNA_APP_ID": "id", "ADZUNA_APP_KEY": "key"}
        sources = get_sources(SearchOptions(location="Haifa, Israel"), env_getter=lambda k: env.get(k, ""))
        assert AdzunaSource.name not in {s.name for s in sources}
