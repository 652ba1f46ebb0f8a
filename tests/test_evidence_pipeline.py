import json

import pytest

from conftest import FakeCompletionClient, unavailable
from tabwriter.core.exceptions import CompletionUnavailable, InvalidInputError, SourceReadError
from tabwriter.models.evidence import EvidenceOptions
from tabwriter.services.evidence_pipeline import NO_CANDIDATES_MESSAGE, extract_evidence
from tabwriter.services.recommendations import NO_EVIDENCE_RECOMMENDATION
from tabwriter.services.source_reader import SourceDocument

INTENT_MARK = "Analyze the user's text"
EXTRACT_MARK = "Extract statistics and quotable"
SCORE_MARK = "Score how relevant"
RECOMMEND_MARK = "Provide specific recommendations"

INTENT_REPLY = json.dumps(
    {
        "mainArgument": "Dark mode is what users want",
        "keyTopics": ["dark mode"],
        "evidenceNeeds": ["usage statistics"],
        "gaps": ["adoption numbers"],
        "audience": "designers",
    }
)


def make_responder(extraction_reply: str, scores: dict, recommendation: str = "Lead with the 75% figure."):
    def responder(system: str, user: str):
        if INTENT_MARK in system:
            return INTENT_REPLY
        if EXTRACT_MARK in system:
            return extraction_reply
        if SCORE_MARK in system:
            for text, score in scores.items():
                if f'"{text}"' in user:
                    return score if isinstance(score, BaseException) else json.dumps({"score": score, "reason": f"score {score}"})
            return '{"score": 0.5, "reason": "default"}'
        if RECOMMEND_MARK in system:
            return recommendation
        raise AssertionError(f"unexpected prompt: {system[:40]}")

    return responder


@pytest.mark.asyncio
async def test_dark_mode_statistic_survives_threshold(tmp_path):
    source = tmp_path / "survey.txt"
    source.write_text(
        "Our survey found 75% of users prefer dark mode. Only 12% chose light mode.",
        encoding="utf-8",
    )
    extraction = json.dumps(
        {
            "statistics": [
                {"text": "75% of users prefer dark mode", "context": "survey", "source": "Survey", "position": "start"},
                {"text": "12% chose light mode", "context": "survey"},
            ],
            "quotes": [],
        }
    )
    client = FakeCompletionClient(
        responder=make_responder(extraction, {"75% of users prefer dark mode": 0.9, "12% chose light mode": 0.1})
    )

    result = await extract_evidence(
        "More apps should default to dark mode.",
        source,
        EvidenceOptions(max_stats=5, max_quotes=5, relevance_threshold=0.2),
        client=client,
    )

    assert [s.text for s in result.statistics] == ["75% of users prefer dark mode"]
    assert result.statistics[0].relevance_score == 0.9
    assert result.quotes == []
    assert result.recommendations == "Lead with the 75% figure."
    assert result.message is None
    assert result.user_context.main_argument == "Dark mode is what users want"

    info = result.source_info
    assert info.file == "survey.txt"
    assert info.total_stats_found == 2
    assert info.relevant_stats_count == 1
    assert info.total_quotes_found == 0
    assert info.word_count == 14

    payload = result.to_json_dict()
    assert payload["statistics"][0]["relevanceScore"] == 0.9
    assert payload["statistics"][0]["type"] == "statistic"
    assert payload["sourceInfo"]["totalStatsFound"] == 2
    assert payload["userContext"]["keyTopics"] == ["dark mode"]


@pytest.mark.asyncio
async def test_empty_extraction_short_circuits():
    client = FakeCompletionClient(
        responder=make_responder('{"statistics": [], "quotes": []}', {})
    )
    doc = SourceDocument.from_text("Nothing quantitative in here at all.", "plain.txt")

    result = await extract_evidence("Anything useful?", doc, client=client)

    assert result.statistics == [] and result.quotes == []
    assert result.message == NO_CANDIDATES_MESSAGE
    assert result.recommendations == NO_EVIDENCE_RECOMMENDATION
    assert client.calls_matching(SCORE_MARK) == []
    assert client.calls_matching(RECOMMEND_MARK) == []
    assert result.source_info.length == len("Nothing quantitative in here at all.")


@pytest.mark.asyncio
async def test_scoring_failure_degrades_single_item():
    extraction = json.dumps(
        {
            "statistics": [{"text": "40% growth"}],
            "quotes": [{"text": "We have never seen demand like this"}],
        }
    )
    client = FakeCompletionClient(
        responder=make_responder(extraction, {"40% growth": unavailable(), "We have never seen demand like this": 0.8})
    )
    doc = SourceDocument.from_text("...", "notes.txt")

    result = await extract_evidence("Demand is rising.", doc, {"relevanceThreshold": 0.5}, client=client)

    assert [s.relevance_score for s in result.statistics] == [0.5]
    assert [q.relevance_score for q in result.quotes] == [0.8]


@pytest.mark.asyncio
async def test_nothing_above_threshold_skips_recommendation_call():
    extraction = json.dumps({"statistics": [{"text": "3% decline"}], "quotes": []})
    client = FakeCompletionClient(responder=make_responder(extraction, {"3% decline": 0.1}))

    result = await extract_evidence("x", SourceDocument.from_text("3% decline"), client=client)

    assert result.statistics == []
    assert result.source_info.total_stats_found == 1
    assert result.recommendations == NO_EVIDENCE_RECOMMENDATION
    assert client.calls_matching(RECOMMEND_MARK) == []


@pytest.mark.asyncio
async def test_missing_source_raises(tmp_path):
    client = FakeCompletionClient(responder=make_responder("{}", {}))
    with pytest.raises(SourceReadError):
        await extract_evidence("Some text", tmp_path / "missing.txt", client=client)
    assert client.calls_matching(EXTRACT_MARK) == []


@pytest.mark.asyncio
async def test_blank_user_text_raises():
    client = FakeCompletionClient()
    with pytest.raises(InvalidInputError):
        await extract_evidence("   ", SourceDocument.from_text("10%"), client=client)
    assert client.calls == []


@pytest.mark.asyncio
async def test_extractor_outage_is_fatal():
    def responder(system: str, user: str):
        if INTENT_MARK in system:
            return INTENT_REPLY
        return unavailable()

    with pytest.raises(CompletionUnavailable):
        await extract_evidence(
            "text", SourceDocument.from_text("10% more"), client=FakeCompletionClient(responder=responder)
        )
