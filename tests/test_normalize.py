"""Tests for dedupe, enrichment classifiers and structured filters."""
from __future__ import annotations

import pytest

from conftest import make_listing, make_raw
from jobscout.models import SearchOptions
from jobscout.normalize import (
    classify_domains,
    classify_employment_type,
    classify_organization_size,
    classify_seniority,
    dedupe,
    enrich,
    filter_listings,
    normalize,
    parse_salary_floor,
)


class TestDedupe:
    def test_case_and_whitespace_variants_collapse(self):
        """Two sources returning the same job with different casing yield one entry."""
        a = make_raw(id="a-1", source="A", title="Senior Python Engineer", organization="Acme Corp")
        b = make_raw(id="b-9", source="B", title="senior  python engineer", organization="ACME CORP ")
        result = normalize([a, b], SearchOptions())
        assert len(result) == 1
        assert result[0].id == "a-1"

    def test_first_occurrence_wins(self):
        a = make_raw(id="1", title="Dev", organization="X")
        b = make_raw(id="2", title="Dev", organization="X")
        assert [l.id for l in dedupe([a, b])] == ["1"]

    def test_idempotent(self):
        listings = [
            make_raw(id="1", title="Dev", organization="X"),
            make_raw(id="2", title="DEV", organization="x"),
            make_raw(id="3", title="Dev", organization="Y"),
        ]
        once = dedupe(listings)
        assert dedupe(once) == once
        assert len(once) == 2

    def test_different_organizations_are_kept(self):
        listings = [make_raw(id="1", organization="X"), make_raw(id="2", organization="Y")]
        assert len(dedupe(listings)) == 2


class TestSeniority:
    @pytest.mark.parametrize("text, expected", [
        ("Senior Backend Engineer", "senior"),
        ("Sr. Data Engineer", "senior"),
        ("Staff Engineer, Platform", "senior"),
        ("Head of Engineering", "senior"),
        ("Junior Frontend Developer", "junior"),
        ("Graduate Software Engineer", "junior"),
        ("Mid-level QA Engineer", "mid"),
        ("Backend Engineer. 1+ years of experience required", "junior"),
        ("Backend Engineer with 4 years of professional experience", "mid"),
        ("Backend Engineer, 8+ years experience", "senior"),
        ("Backend Engineer", "unspecified"),
    ])
    def test_classification(self, text, expected):
        assert classify_seniority(text) == expected

    def test_keywords_beat_years(self):
        assert classify_seniority("Senior engineer, 1 year of experience") == "senior"

    def test_internal_is_not_intern(self):
        assert classify_seniority("Engineer for internal tools") == "unspecified"


class TestOtherClassifiers:
    @pytest.mark.parametrize("text, expected", [
        ("Summer internship in data", "internship"),
        ("Freelance React developer", "freelance"),
        ("6-month contract, Python", "contract"),
        ("Python developer", "full-time"),
    ])
    def test_employment_type(self, text, expected):
        assert classify_employment_type(text) == expected

    @pytest.mark.parametrize("text, expected", [
        ("Join our seed-funded startup", "startup"),
        ("A Fortune 500 company", "enterprise"),
        ("Fast growing scale-up", "midsize"),
        ("We build things", None),
    ])
    def test_organization_size(self, text, expected):
        assert classify_organization_size(text) == expected

    def test_domains_can_overlap(self):
        tags = classify_domains("Machine learning for payments fraud in a SaaS product")
        assert set(tags) == {"ai", "fintech", "saas"}

    def test_no_domain(self):
        assert classify_domains("Warehouse operative") == ()

    def test_odd_inputs_do_not_raise(self):
        listing = enrich(make_raw(title="", description=""))
        assert listing.seniority == "unspecified"
        assert listing.employment_type == "full-time"
        assert listing.organization_size is None
        assert listing.domain_tags == ()


class TestSalary:
    @pytest.mark.parametrize("text, expected", [
        ("$120,000 - $150,000", 120000),
        ("120k-150k", 120000),
        ("EUR 65000", 65000),
        ("Competitive", None),
        (None, None),
    ])
    def test_first_number(self, text, expected):
        assert parse_salary_floor(text) == expected


class TestFilters:
    def _mixed(self):
        return [
            make_listing(id="r1", title="Dev 1", remote=True, location="Remote"),
            make_listing(id="r2", title="Dev 2", remote=True, location="Anywhere"),
            make_listing(id="r3", title="Dev 3", remote=True, location="Remote - EU"),
            make_listing(id="o1", title="Dev 4", remote=False, location="Berlin, Germany"),
            make_listing(id="o2", title="Dev 5", remote=False, location="Paris, France"),
        ]

    def test_remote_only_keeps_remote(self):
        """3 remote + 2 on-site with remote_only=True leaves exactly the 3 remote."""
        kept = filter_listings(self._mixed(), SearchOptions(remote_only=True))
        assert [l.id for l in kept] == ["r1", "r2", "r3"]

    def test_remote_excluded(self):
        kept = filter_listings(self._mixed(), SearchOptions(remote_only=False))
        assert [l.id for l in kept] == ["o1", "o2"]

    def test_location_parts_and_remote_exemption(self):
        kept = filter_listings(self._mixed(), SearchOptions(location="Berlin, DE"))
        assert [l.id for l in kept] == ["r1", "r2", "r3", "o1"]

    def test_short_location_parts_ignored(self):
        kept = filter_listings(self._mixed(), SearchOptions(location="DE"))
        assert len(kept) == 5

    def test_any_means_unconstrained(self):
        options = SearchOptions(seniority="any", domain="any", organization_size="any", employment_type="any")
        assert len(filter_listings(self._mixed(), options)) == 5

    def test_seniority_filter(self):
        listings = [make_listing(id="s", title="Senior Dev"), make_listing(id="j", title="Junior Dev")]
        assert [l.id for l in filter_listings(listings, SearchOptions(seniority="senior"))] == ["s"]

    def test_salary_bounds_and_unknown_salary_passes(self):
        listings = [
            make_listing(id="low", title="A", salary="$50,000"),
            make_listing(id="high", title="B", salary="$150k"),
            make_listing(id="none", title="C", salary=None),
        ]
        kept = filter_listings(listings, SearchOptions(salary_min=100000))
        assert [l.id for l in kept] == ["high", "none"]
        kept = filter_listings(listings, SearchOptions(salary_max=100000))
        assert [l.id for l in kept] == ["low", "none"]

    def test_adding_constraints_never_grows_the_result(self):
        listings = self._mixed() + [make_listing(id="s", title="Senior Fintech Dev", description="payments")]
        loose = filter_listings(listings, SearchOptions(remote_only=None))
        tighter = filter_listings(listings, SearchOptions(domain="fintech"))
        tightest = filter_listings(listings, SearchOptions(domain="fintech", seniority="senior", remote_only=False))
        assert {l.id for l in tightest} <= {l.id for l in tighter} <= {l.id for l in loose}
