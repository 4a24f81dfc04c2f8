"""
Tests for concurrent candidate generation and post-hoc deduplication.
"""

import asyncio

import pytest
from pydantic import ValidationError

from conftest import FakeCompletionClient
from embedaxes.agents.candidates import CandidateGenerator, merge_unique
from embedaxes.core.errors import MissingApiKeyError, NoWordsError
from embedaxes.core.schema import GenerationRequest, GeneratingIdeas


FIVE = ["fast", "slow", "loud", "quiet", "furry"]


def run_generate(client, **kwargs):
    request = GenerationRequest(
        words=kwargs.pop("words", ["cat", "dog", "car"]),
        iteration_count=kwargs.pop("iteration_count", 1),
        outputs_per_prompt=kwargs.pop("outputs_per_prompt", 5),
    )
    return asyncio.run(CandidateGenerator(client).generate(request, **kwargs))


def test_merge_unique_ignores_case():
    accumulated = ["Fast"]
    added = merge_unique(accumulated, ["fast", "slow", "SLOW", "loud"])

    assert added == ["slow", "loud"]
    assert accumulated == ["Fast", "slow", "loud"]


def test_identical_outputs_collapse_to_one_set():
    client = FakeCompletionClient([FIVE])

    candidates = run_generate(client, iteration_count=3, outputs_per_prompt=5)

    assert candidates == FIVE
    assert len(client.calls) == 3


def test_merge_across_calls_is_case_insensitive():
    client = FakeCompletionClient([["Fast", "slow"], ["fast", "Loud"], ["LOUD", "quiet"]])

    candidates = run_generate(client, iteration_count=3)

    assert candidates == ["Fast", "slow", "Loud", "quiet"]


def test_all_calls_share_one_snapshot():
    client = FakeCompletionClient([["slow"], ["loud"]])

    candidates = run_generate(client, iteration_count=2, existing=["fast"])

    assert candidates == ["slow", "loud"]
    assert [call["existing"] for call in client.calls] == [["fast"], ["fast"]]


def test_existing_candidates_are_not_returned():
    client = FakeCompletionClient([["FAST", "slow"]])

    candidates = run_generate(client, existing=["fast"])

    assert candidates == ["slow"]


def test_request_is_passed_to_client():
    client = FakeCompletionClient([FIVE])

    run_generate(client, words=[" cat ", "dog", ""], outputs_per_prompt=7)

    assert client.calls[0]["words"] == ["cat", "dog"]
    assert client.calls[0]["count"] == 7


def test_failed_call_contributes_nothing():
    client = FakeCompletionClient([["fast"], ["slow"], ["loud"]], fail_calls={1})
    events = []

    candidates = run_generate(client, iteration_count=3, on_progress=events.append)

    assert candidates == ["fast", "loud"]
    assert len(events) == 3
    assert events[-1] == GeneratingIdeas(3, 3)


def test_all_calls_failing_returns_empty_list():
    client = FakeCompletionClient([FIVE], fail_calls={0, 1})

    assert run_generate(client, iteration_count=2) == []


def test_progress_reported_per_call():
    client = FakeCompletionClient([FIVE])
    events = []

    run_generate(client, iteration_count=4, on_progress=events.append)

    assert [e.completed for e in events] == [1, 2, 3, 4]
    assert all(e.total == 4 for e in events)


def test_missing_credentials():
    client = FakeCompletionClient([FIVE], credentials=False)

    with pytest.raises(MissingApiKeyError):
        run_generate(client)

    assert client.calls == []


def test_no_words():
    client = FakeCompletionClient([FIVE])

    with pytest.raises(NoWordsError):
        run_generate(client, words=["", "   "])


def test_request_validation():
    with pytest.raises(ValidationError):
        GenerationRequest(words=["cat"], iteration_count=0)
    with pytest.raises(ValidationError):
        GenerationRequest(words=["cat"], outputs_per_prompt=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
