"""Tests for the LLM scoring oracle: prompt, parsing and failure mapping."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from conftest import make_listing
from jobscout.errors import OracleUnavailable
from jobscout.oracle import DESCRIPTION_LIMIT, LLMScoringOracle, build_prompt, get_oracle, parse_response


def _client(*replies) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.side_effect = [
        r if isinstance(r, Exception)
        else SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=r))])
        for r in replies
    ]
    return client


@pytest.fixture(autouse=True)
def no_backoff():
    with patch("jobscout.retry.time.sleep"):
        yield


class TestParseResponse:
    def test_plain_json(self):
        result = parse_response(
            '{"score": 82, "matched_skills": ["Python"], "missing_skills": ["Go"], "rationale": "good"}'
        )
        assert result.score == 82
        assert result.matched_skills == ("Python",)
        assert result.missing_skills == ("Go",)
        assert result.scored_by == "oracle"

    def test_fenced_and_camel_case(self):
        reply = '```json\n{"matchScore": 70, "matchedSkills": ["AWS"], "reasoning": "ok"}\n```'
        result = parse_response(reply)
        assert result.score == 70
        assert result.rationale == "ok"

    def test_score_is_clamped(self):
        assert parse_response('{"score": 140}').score == 100
        assert parse_response('{"score": -3}').score == 0

    @pytest.mark.parametrize("reply", ["no json here", "{not json}", '{"rationale": "no score"}', "[1, 2]"])
    def test_malformed_raises_unavailable(self, reply):
        with pytest.raises(OracleUnavailable):
            parse_response(reply)


class TestLLMScoringOracle:
    def test_scores_listing(self, profile):
        client = _client('{"score": 91, "matched_skills": ["Python"], "missing_skills": [], "rationale": "fit"}')
        oracle = LLMScoringOracle("key", client=client)
        result = oracle.score(make_listing(), profile)
        assert result.score == 91
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama-3.3-70b-versatile"

    def test_transport_error_retried_then_unavailable(self, profile):
        client = _client(ConnectionError("down"), ConnectionError("down"))
        with pytest.raises(OracleUnavailable):
            LLMScoringOracle("key", client=client).score(make_listing(), profile)
        assert client.chat.completions.create.call_count == 2

    def test_recovers_on_retry(self, profile):
        client = _client(TimeoutError("slow"), '{"score": 60}')
        assert LLMScoringOracle("key", client=client).score(make_listing(), profile).score == 60

    def test_garbage_reply_is_unavailable(self, profile):
        client = _client("I think it's a great fit!")
        with pytest.raises(OracleUnavailable):
            LLMScoringOracle("key", client=client).score(make_listing(), profile)


class TestPrompt:
    def test_description_is_truncated(self, profile):
        listing = make_listing(description="x" * (DESCRIPTION_LIMIT + 500))
        prompt = build_prompt(listing, profile)
        assert "x" * DESCRIPTION_LIMIT in prompt
        assert "x" * (DESCRIPTION_LIMIT + 1) not in prompt

    def test_profile_fields_present(self, profile):
        prompt = build_prompt(make_listing(), profile)
        assert "Python, AWS, Docker, Kubernetes" in prompt
        assert "Seniority Level: senior" in prompt


class TestGetOracle:
    def test_none_without_key(self):
        assert get_oracle(lambda key: "") is None

    def test_builds_llm_oracle(self):
        env = {"GROQ_API_KEY": "gsk_test", "GROQ_LLM_MODEL": "mixtral"}
        with patch("openai.OpenAI") as openai_cls:
            oracle = get_oracle(lambda key: env.get(key, ""))
        assert isinstance(oracle, LLMScoringOracle)
        assert oracle.model == "mixtral"
        assert openai_cls.call_args.kwargs["base_url"] == "https://api.groq.com/openai/v1"
