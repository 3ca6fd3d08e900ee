"""Tests for the planner and its decision cache."""

import pytest

from plugmate.core.decision_cache import DecisionCache, create_decision_cache, decision_cache_key
from plugmate.core.planner import Planner, create_planner
from plugmate.llm.client import AskOptions
from plugmate.llm.decision import Action, DecisionResult

from .helpers import FakeClient, decision


def _decide(planner, prompt="check the repo"):
    return planner.decide(prompt, "- git_status", "- search: find files")


class TestPlannerDecide:
    """Tests for one planner round-trip."""

    def test_fenced_json_needs_no_repair(self):
        client = FakeClient(["```json\n" + decision(action="run_plugin", plugin="git_status") + "\n```"])

        result = _decide(create_planner(client))

        assert result.action is Action.RUN_PLUGIN
        assert result.plugin == "git_status"
        assert result.provider == "fake"
        assert result.model == "fake-model"
        assert client.call_count == 1

    def test_prompt_contains_request_and_catalogs(self):
        client = FakeClient([decision(action="answer", answer="ok")])

        _decide(create_planner(client), prompt="how big is my disk")

        assert "how big is my disk" in client.prompts[0]
        assert "- git_status" in client.prompts[0]
        assert "- search: find files" in client.prompts[0]

    def test_malformed_reply_is_repaired_once(self):
        client = FakeClient(["I think you should run git", decision(action="answer", answer="fixed")])

        result = _decide(create_planner(client))

        assert result.action is Action.ANSWER
        assert result.answer == "fixed"
        assert client.call_count == 2
        assert "I think you should run git" in client.prompts[1]

    def test_failed_repair_returns_raw_text(self):
        client = FakeClient(["  plain words  ", "still not json"])

        result = _decide(create_planner(client))

        assert result.action is Action.ANSWER
        assert result.answer == "plain words"
        assert client.call_count == 2


class TestDecideWithCache:
    """Tests for cached planning."""

    def test_second_identical_request_is_cached(self):
        client = FakeClient([decision(action="answer", answer="hello")])
        planner = create_planner(client, create_decision_cache(60))

        first, first_cached = planner.decide_with_cache("hi", "(none)", "tools")
        second, second_cached = planner.decide_with_cache("hi", "(none)", "tools")

        assert (first_cached, second_cached) == (False, True)
        assert second == first
        assert second is not first
        assert client.call_count == 1

    def test_different_catalog_misses(self):
        client = FakeClient([decision(action="answer", answer="hello")])
        planner = create_planner(client, create_decision_cache(60))

        planner.decide_with_cache("hi", "(none)", "tools")
        _, cached = planner.decide_with_cache("hi", "- new_plugin", "tools")

        assert cached is False
        assert client.call_count == 2

    def test_without_cache_always_calls(self):
        client = FakeClient([decision(action="answer", answer="hello")])
        planner = Planner(client)

        planner.decide_with_cache("hi", "(none)", "tools")
        _, cached = planner.decide_with_cache("hi", "(none)", "tools")

        assert cached is False
        assert client.call_count == 2


class TestDecisionCache:
    """Tests for TTL expiry."""

    def test_fresh_entry_returned(self):
        cache = DecisionCache(ttl=10)
        value = DecisionResult(answer="x")

        cache.set("k", value, now=100.0)

        assert cache.get("k", now=110.0) is value

    def test_expired_entry_evicted(self):
        cache = DecisionCache(ttl=10)
        cache.set("k", DecisionResult(answer="x"), now=100.0)

        assert cache.get("k", now=110.5) is None
        assert len(cache) == 0

    def test_missing_key(self):
        assert DecisionCache().get("nope") is None

    def test_clear(self):
        cache = DecisionCache()
        cache.set("k", DecisionResult())
        cache.clear()
        assert len(cache) == 0


class TestDecisionCacheKey:
    """Tests for request key normalization."""

    def test_whitespace_and_case_insensitive_options(self):
        a = decision_cache_key(
            " hi ", "cat\n", "tools",
            AskOptions(provider="Ollama", model="Llama3", base_url="http://LOCALHOST:11434/"),
        )
        b = decision_cache_key(
            "hi", "cat", " tools ",
            AskOptions(provider="ollama", model="llama3", base_url="http://localhost:11434"),
        )
        assert a == b

    @pytest.mark.parametrize("changed", [
        ("bye", "cat", "tools", AskOptions(), ""),
        ("hi", "cat2", "tools", AskOptions(), ""),
        ("hi", "cat", "tools", AskOptions(model="other"), ""),
        ("hi", "cat", "tools", AskOptions(), "os=linux"),
    ])
    def test_any_part_changes_the_key(self, changed):
        assert decision_cache_key("hi", "cat", "tools", AskOptions(), "") != decision_cache_key(*changed)
