import json
from typing import Dict, List

import pytest

from conftest import FakeCompletionClient, unavailable
from tabwriter.core import config
from tabwriter.core.exceptions import CompletionUnavailable, InvalidInputError, SearchProviderError
from tabwriter.models.research import ResearchPaper
from tabwriter.services.research_aggregator import (
    UNAVAILABLE_ANALYSIS,
    find_relevant_research,
    parse_paper_score,
    remove_duplicate_papers,
    search_sources,
)
from tabwriter.services.search_apis import BaseSearchAPI, SearchAPIManager, SearchConfig

TOPIC_MARK = "humanities research specialist"
RESCORE_MARK = "Analyze how relevant a research paper"


def _paper(title: str, doi: str = "", source: str = "stub") -> ResearchPaper:
    slug = title.lower().replace(" ", "-")
    return ResearchPaper(title=title, url=f"https://example.org/{slug}", doi=doi, source=source)


class StubProvider(BaseSearchAPI):
    def __init__(self, name: str, results: Dict[str, List[ResearchPaper]], fail: bool = False):
        super().__init__()
        self.name = name
        self.results = results
        self.fail = fail
        self.queries: List[tuple] = []
        self.closed = False

    async def search(self, query: str, cfg: SearchConfig) -> List[ResearchPaper]:
        self.queries.append((query, cfg.max_results))
        if self.fail:
            raise SearchProviderError(f"{self.name} exploded", provider=self.name)
        return list(self.results.get(query, []))[: cfg.max_results]

    async def close(self) -> None:
        self.closed = True


def _manager(*providers: StubProvider) -> SearchAPIManager:
    manager = SearchAPIManager()
    for provider in providers:
        manager.add_api(provider.name, provider)
    return manager


def test_dedup_by_title_and_doi():
    papers = [
        _paper("Memory and Empire", doi="10.1/ABC"),
        _paper("memory and empire!"),
        _paper("A Different Title", doi="https://doi.org/10.1/abc"),
        _paper("Fresh Work", doi="10.2/xyz"),
    ]
    unique = remove_duplicate_papers(papers)
    assert [p.title for p in unique] == ["Memory and Empire", "Fresh Work"]


def test_dedup_never_grows_and_is_idempotent():
    papers = [_paper("A"), _paper("B"), _paper("a"), _paper("C", doi="10.9/c"), _paper("D", doi="10.9/C")]
    once = remove_duplicate_papers(papers)
    assert len(once) <= len(papers)
    assert remove_duplicate_papers(once) == once


@pytest.mark.asyncio
async def test_failing_provider_is_isolated(monkeypatch):
    monkeypatch.setattr(config, "RESEARCH_MAX_TOPICS_SEARCHED", 2)
    good = StubProvider("good", {"ethics": [_paper("Care Ethics")], "memory": [_paper("Memory Work")]})
    bad = StubProvider("bad", {}, fail=True)

    papers = await search_sources(["ethics", "memory", "ignored"], 3, _manager(good, bad))

    assert [p.title for p in papers] == ["Care Ethics", "Memory Work"]
    assert [q for q, _ in good.queries] == ["ethics", "memory"]
    assert all(limit == 2 for _, limit in good.queries)  # ceil(3 / 2 providers)


@pytest.mark.asyncio
async def test_all_providers_failing_gives_empty():
    bad = StubProvider("bad", {}, fail=True)
    assert await search_sources(["ethics"], 3, _manager(bad)) == []


@pytest.mark.parametrize(
    "reply, expected",
    [
        ('{"score": 8, "analysis": "Close methodological fit."}', (8, "Close methodological fit.")),
        ("7/10 - Strong theoretical overlap.", (7, "Strong theoretical overlap.")),
        ("Score: 42. Way off the scale.", (10, "Score: 42. Way off the scale.")),
        ('{"score": 0}', (1, UNAVAILABLE_ANALYSIS)),
    ],
)
def test_parse_paper_score(reply, expected):
    assert parse_paper_score(reply) == expected


def test_parse_paper_score_without_number_fails():
    with pytest.raises(ValueError):
        parse_paper_score("Quite relevant overall.")


@pytest.mark.asyncio
async def test_find_relevant_research_plain_mode():
    client = FakeCompletionClient(['["postcolonial literature", "archive", "memory studies"]'])
    provider = StubProvider(
        "stub",
        {
            "postcolonial literature": [_paper("Writing Back"), _paper("Empire Writes")],
            "archive": [_paper("writing back"), _paper("Archive Fever")],
        },
    )
    manager = _manager(provider)

    papers = await find_relevant_research("Archives in postcolonial fiction", 3, client=client, manager=manager)

    assert [p.title for p in papers] == ["Writing Back", "Empire Writes", "Archive Fever"]
    assert all(p.relevance_score is None for p in papers)
    assert not provider.closed  # caller-owned manager stays open
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_enhanced_mode_rescores_and_sorts():
    scores = {"Low Fit": 3, "High Fit": 9, "Broken Fit": None, "Mid Fit": 6}

    def responder(system: str, user: str):
        if TOPIC_MARK in system:
            return '["hermeneutics"]'
        for title, score in scores.items():
            if f'"{title}"' in user:
                if score is None:
                    return unavailable()
                return json.dumps({"score": score, "analysis": f"{title} analysis"})
        raise AssertionError("unexpected prompt")

    client = FakeCompletionClient(responder=responder)
    provider = StubProvider("stub", {"hermeneutics": [_paper(t) for t in scores]})

    papers = await find_relevant_research("Interpretation", 2, enhanced=True, client=client, manager=_manager(provider))

    assert provider.queries == [("hermeneutics", 4)]
    assert [p.title for p in papers] == ["High Fit", "Mid Fit"]
    assert papers[0].relevance_score == 9
    assert papers[0].relevance_analysis == "High Fit analysis"
    assert len(client.calls_matching(RESCORE_MARK)) == 4


@pytest.mark.asyncio
async def test_rescoring_failure_defaults_to_five():
    def responder(system: str, user: str):
        if TOPIC_MARK in system:
            return '["rhetoric"]'
        return unavailable()

    provider = StubProvider("stub", {"rhetoric": [_paper("Only One")]})
    papers = await find_relevant_research(
        "Persuasion", 1, enhanced=True, client=FakeCompletionClient(responder=responder), manager=_manager(provider)
    )
    assert papers[0].relevance_score == 5
    assert papers[0].relevance_analysis == UNAVAILABLE_ANALYSIS


@pytest.mark.asyncio
async def test_no_results_returns_empty_list():
    client = FakeCompletionClient(['["nothing"]'])
    papers = await find_relevant_research("Obscure", 3, client=client, manager=_manager(StubProvider("stub", {})))
    assert papers == []


@pytest.mark.asyncio
async def test_owned_manager_is_closed(monkeypatch):
    provider = StubProvider("stub", {"ethics": [_paper("Care Ethics")]})
    monkeypatch.setattr(
        "tabwriter.services.research_aggregator.create_search_manager", lambda: _manager(provider)
    )
    papers = await find_relevant_research("x", 1, client=FakeCompletionClient(['["ethics"]']))
    assert [p.title for p in papers] == ["Care Ethics"]
    assert provider.closed


@pytest.mark.asyncio
async def test_invalid_input_rejected():
    with pytest.raises(InvalidInputError):
        await find_relevant_research("   ", 3, client=FakeCompletionClient(), manager=SearchAPIManager())
    with pytest.raises(InvalidInputError):
        await find_relevant_research("text", 0, client=FakeCompletionClient(), manager=SearchAPIManager())


@pytest.mark.asyncio
async def test_topic_outage_propagates():
    with pytest.raises(CompletionUnavailable):
        await find_relevant_research(
            "text", 3, client=FakeCompletionClient([unavailable()]), manager=SearchAPIManager()
        )
