import asyncio

import pytest
import structlog

from tabwriter.logging_config import bind_request_context
from tabwriter.services.rate_limiter import ProviderPacer
from tabwriter.utils.date_utils import format_date
from tabwriter.utils.retry import parse_retry_after
from tabwriter.utils.text_sanitize import clean_scholarly_text
from tabwriter.utils.url_utils import extract_doi, normalize_doi


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://doi.org/10.1000/ABC.1", "10.1000/abc.1"),
        ("doi:10.1000/x", "10.1000/x"),
        ("HTTP://DX.DOI.ORG/10.5/Y", "10.5/y"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_doi(raw, expected):
    assert normalize_doi(raw) == expected


def test_extract_doi():
    assert extract_doi("see https://doi.org/10.1234/abc-def for details") == "10.1234/abc-def"
    assert extract_doi("no identifier") is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2021-03-04T05:06:07Z", "2021-03-04"),
        (2019, "2019-01-01"),
        ("2018-07", "2018-07-01"),
        (["2017"], "2017-01-01"),
        ("Spring 2020 issue", "Spring 202"),
        (None, ""),
    ],
)
def test_format_date(raw, expected):
    assert format_date(raw) == expected


def test_clean_scholarly_text():
    assert clean_scholarly_text(["<b>Title:</b>  Sub–title &amp; more", "ignored"]) == "Title: Subtitle more"
    assert clean_scholarly_text(None) == ""


def test_parse_retry_after():
    assert parse_retry_after("3") == 3.0
    assert parse_retry_after("-5") == 0.0
    assert parse_retry_after(None) is None
    assert parse_retry_after("soon") is None


@pytest.mark.asyncio
async def test_pacer_consumes_tokens():
    now = [0.0]
    pacer = ProviderPacer(calls_per_minute=60, burst=2, clock=lambda: now[0])
    await pacer.acquire()
    await pacer.acquire()
    assert pacer.available == pytest.approx(0.0)
    now[0] = 1.0
    assert pacer.available == pytest.approx(1.0)
    await asyncio.wait_for(pacer.acquire(), timeout=1)


def test_pacer_cool_down_window():
    now = [10.0]
    pacer = ProviderPacer(calls_per_minute=60, clock=lambda: now[0])
    pacer.defer(None)
    assert not pacer.cooling_down
    pacer.defer(5)
    pacer.defer(2)
    assert pacer.cooling_down
    now[0] = 15.5
    assert not pacer.cooling_down


def test_pacer_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        ProviderPacer(calls_per_minute=0)


def test_bind_request_context_only_sets_given_keys():
    structlog.contextvars.clear_contextvars()
    bind_request_context(request_id="abc")
    bind_request_context(operation=None)
    assert structlog.contextvars.get_contextvars() == {"request_id": "abc"}
    structlog.contextvars.clear_contextvars()
