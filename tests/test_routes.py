import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeCompletionClient, unavailable
from tabwriter.core.app import create_app
from tabwriter.core.dependencies import get_completion_client
from tabwriter.models.research import ResearchPaper
from tabwriter.services.llm_client import llm_client
from tabwriter.services.search_apis import BaseSearchAPI, SearchAPIManager


class OnePaperProvider(BaseSearchAPI):
    name = "one"

    async def search(self, query, cfg):
        return [ResearchPaper(title=f"On {query}", url="https://example.org/p", source="Stub")]


def _client_for(fake: FakeCompletionClient) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_completion_client] = lambda: fake
    return TestClient(app)


def _evidence_responder(system: str, user: str):
    if "Analyze the user's text" in system:
        return '{"mainArgument": "Reading is declining", "keyTopics": ["reading"]}'
    if "Extract statistics" in system:
        return json.dumps({"statistics": [{"text": "Only 23% read daily"}], "quotes": []})
    if "Score how relevant" in system:
        return '{"score": 0.95, "reason": "core claim"}'
    return "Cite the 23% figure early."


def test_evidence_route_returns_camel_case_result():
    http = _client_for(FakeCompletionClient(responder=_evidence_responder))
    resp = http.post(
        "/api/evidence",
        json={"userText": "People read less.", "sourceText": "Only 23% read daily.", "filename": "poll.txt"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    evidence = body["evidence"]
    assert evidence["statistics"][0]["text"] == "Only 23% read daily"
    assert evidence["statistics"][0]["relevanceScore"] == 0.95
    assert evidence["sourceInfo"]["file"] == "poll.txt"
    assert evidence["recommendations"] == "Cite the 23% figure early."
    assert resp.headers["X-Request-ID"]


def test_evidence_route_rejects_unsupported_extension():
    http = _client_for(FakeCompletionClient())
    resp = http.post("/api/evidence", json={"userText": "x", "sourceText": "y", "filename": "deck.pptx"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid input"


def test_evidence_route_validation_error():
    http = _client_for(FakeCompletionClient())
    resp = http.post("/api/evidence", json={"userText": "   ", "sourceText": "y"})
    assert resp.status_code == 422
    assert resp.json()["error"] == "Validation Error"


def test_completion_outage_maps_to_502():
    http = _client_for(FakeCompletionClient([unavailable()]))
    resp = http.post("/api/tone-analysis", json={"text": "A sufficiently long sentence."})
    assert resp.status_code == 502
    assert resp.json()["error"] == "Completion service unavailable"


def test_missing_credentials_map_to_500(monkeypatch):
    for var in ("OPENAI_API_KEY", "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_DEPLOYMENT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(llm_client, "_initialized", False)
    monkeypatch.setattr(llm_client, "azure_client", None)
    monkeypatch.setattr(llm_client, "openai_client", None)

    http = TestClient(create_app())
    resp = http.post("/api/tone-analysis", json={"text": "A sufficiently long sentence."})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Service not configured"


def test_research_route(monkeypatch):
    def _manager():
        manager = SearchAPIManager()
        manager.add_api("one", OnePaperProvider())
        return manager

    monkeypatch.setattr("tabwriter.services.research_aggregator.create_search_manager", _manager)
    http = _client_for(FakeCompletionClient(['["stoicism"]']))
    resp = http.post("/api/research", json={"text": "Seneca on anger", "maxPapers": 2})
    assert resp.status_code == 200
    articles = resp.json()["articles"]
    assert articles == [
        {
            "title": "On stoicism",
            "authors": "Unknown",
            "abstract": "",
            "published": "",
            "updated": "",
            "url": "https://example.org/p",
            "doi": "",
            "source": "Stub",
            "subjects": "",
            "relevantTopic": "",
            "pdfUrl": "",
            "language": "en",
            "type": "academic_paper",
            "citationCount": None,
            "relevanceScore": None,
            "relevanceAnalysis": None,
        }
    ]


def test_research_route_rejects_out_of_range_max_papers():
    http = _client_for(FakeCompletionClient())
    assert http.post("/api/research", json={"text": "x", "maxPapers": 0}).status_code == 422


def test_tone_route():
    reply = '{"tone": "urgent", "purpose": "persuasive", "suggestions": ["Soften the ask", "Add a deadline"]}'
    http = _client_for(FakeCompletionClient([reply]))
    resp = http.post("/api/tone-analysis", json={"text": "Act now before it is too late!"})
    assert resp.status_code == 200
    assert resp.json() == {
        "detectedTone": "urgent",
        "detectedPurpose": "persuasive",
        "suggestions": ["Soften the ask", "Add a deadline"],
    }


def test_autocomplete_route_caches_per_app():
    fake = FakeCompletionClient(["the quarterly targets."])
    http = _client_for(fake)
    payload = {"text": "We exceeded", "tone": "professional", "purpose": "informative", "genre": "email", "structure": "list"}

    first = http.post("/api/autocomplete", json=payload)
    second = http.post("/api/autocomplete", json=payload)

    assert first.status_code == 200
    assert first.json() == {
        "suggestion": "the quarterly targets.",
        "tone": "professional",
        "purpose": "informative",
        "genre": "email",
        "structure": "list",
        "status": "success",
    }
    assert second.json()["suggestion"] == "the quarterly targets."
    assert len(fake.calls) == 1


def test_autocomplete_rejects_unknown_tone():
    http = _client_for(FakeCompletionClient())
    payload = {"text": "Hi", "tone": "grumpy", "purpose": "informative", "genre": "email", "structure": "list"}
    assert http.post("/api/autocomplete", json=payload).status_code == 422


def test_health(monkeypatch):
    monkeypatch.setenv("SEARCH_DISABLE_ARXIV", "1")
    resp = TestClient(create_app()).get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["searchProviders"] == ["doaj", "semanticscholar"]


def test_health_lists_providers_without_building_them(monkeypatch):
    def refuse(self, *args, **kwargs):
        raise AssertionError("health should not open provider clients")

    monkeypatch.setattr(BaseSearchAPI, "__init__", refuse)
    monkeypatch.setenv("SEARCH_DISABLE_SEMANTICSCHOLAR", "true")
    resp = TestClient(create_app()).get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["searchProviders"] == ["arxiv", "doaj"]
