import pytest

from conftest import FakeCompletionClient
from tabwriter.services.text_utils import STOP_WORDS, tokenize, top_keywords
from tabwriter.services.topic_extractor import MAX_TOPICS, extract_topics, fallback_topics


@pytest.mark.asyncio
async def test_topics_from_json_array():
    client = FakeCompletionClient(['Here you go: ["Phenomenology", "Husserl", "phenomenology", "", 7]'])
    topics = await extract_topics("Husserl and the lived body", client)
    assert topics == ["Phenomenology", "Husserl", "phenomenology"]
    assert client.calls[0]["max_tokens"] == 300
    assert client.calls[0]["temperature"] == 0.3


@pytest.mark.asyncio
async def test_topics_capped_at_five():
    client = FakeCompletionClient(['["a1", "a2", "a3", "a4", "a5", "a6", "a7"]'])
    assert len(await extract_topics("text", client)) == MAX_TOPICS


@pytest.mark.asyncio
async def test_unparseable_reply_uses_fallback():
    client = FakeCompletionClient(["I would search for modernism and memory."])
    topics = await extract_topics("Virginia Woolf and modernism in London", client)
    assert topics
    assert topics[0] == "modernism"
    assert "virginia" in topics


@pytest.mark.asyncio
async def test_empty_array_uses_fallback():
    client = FakeCompletionClient(["[]"])
    topics = await extract_topics("tractors tractors harvest yields", client)
    assert topics == ["tractors", "harvest", "yields"]


def test_fallback_prefers_curated_terms_then_capitalised_words():
    text = "A study of oral history and discourse analysis in Manchester and Liverpool archives."
    topics = fallback_topics(text)
    assert topics[:2] == ["oral history", "discourse analysis"]
    assert "manchester" in topics and "liverpool" in topics
    assert len(topics) <= MAX_TOPICS


def test_fallback_keywords_skip_stop_words():
    topics = fallback_topics("the weather was about the weather and also rain")
    assert topics[0] == "weather"
    assert not set(topics) & STOP_WORDS


def test_tokenize_and_keywords():
    assert tokenize("The Cat and the HAT") == ["cat", "hat"]
    assert top_keywords("river river bank bank bank 2024 2024 2024", limit=2) == ["bank", "river"]
