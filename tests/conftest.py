"""Shared fixtures: a scripted completion client and network-free providers."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from tabwriter.core.exceptions import CompletionUnavailable
from tabwriter.utils.retry import RetryConfig

Reply = Union[str, BaseException]
Responder = Callable[[str, str], Reply]


class FakeCompletionClient:
    """Records every call; replies come from a queue or a responder callable."""

    def __init__(self, replies: Optional[List[Reply]] = None, responder: Optional[Responder] = None):
        self._replies = list(replies or [])
        self._responder = responder
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, system_instruction: str, user_prompt: str, **kwargs: Any) -> str:
        self.calls.append({"system": system_instruction, "user": user_prompt, **kwargs})
        if self._responder is not None:
            reply = self._responder(system_instruction, user_prompt)
        elif self._replies:
            reply = self._replies.pop(0)
        else:
            reply = ""
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def calls_matching(self, marker: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if marker in c["system"]]


class DummyResponse:
    def __init__(self, status: int = 200, payload: Any = None, text: str = "", headers: Optional[Dict[str, str]] = None):
        self.status = status
        self._payload = payload if payload is not None else {}
        self._text = text
        self.headers = headers or {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, **kwargs):
        return self._payload

    async def text(self):
        return self._text


class DummySession:
    """Returns queued responses in order; the last one repeats."""

    def __init__(self, *responses: DummyResponse):
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def get(self, url, params=None, **kwargs):
        self.calls.append({"url": url, "params": params, **kwargs})
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]

    async def close(self):
        self.closed = True


def unavailable(message: str = "upstream down") -> CompletionUnavailable:
    return CompletionUnavailable(message)


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture(autouse=True)
def _no_retry_sleep(monkeypatch):
    monkeypatch.setattr(RetryConfig, "RATE_LIMIT_BASE_DELAY", 0.0)
    monkeypatch.setattr(RetryConfig, "RATE_LIMIT_MAX_DELAY", 0.0)
