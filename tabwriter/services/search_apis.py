"""
Scholarly search integrations (arXiv, DOAJ, Semantic Scholar).

Every provider turns a topic string into ``ResearchPaper`` objects. Rate
limiting (HTTP 429) is retried with backoff; any other failure raises
``SearchProviderError`` and is isolated by the research aggregator.
"""

from __future__ import annotations

import asyncio
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import aiohttp
import structlog

from tabwriter.core import config
from tabwriter.core.exceptions import RateLimitedError, SearchProviderError
from tabwriter.models.research import ResearchPaper
from tabwriter.services.rate_limiter import ProviderPacer
from tabwriter.utils.date_utils import format_date
from tabwriter.utils.retry import RetryConfig, get_search_retry_decorator, parse_retry_after
from tabwriter.utils.text_sanitize import clean_scholarly_text
from tabwriter.utils.url_utils import extract_doi

# --------------------------------------------------------------------------- #
#                        ENV / LOGGING / INITIALISATION                       #
# --------------------------------------------------------------------------- #

logger = structlog.get_logger(__name__)

MAX_AUTHORS = 5

_ARXIV_VERSION_RE = re.compile(r"v\d+$")


@dataclass
class SearchConfig:
    max_results: int = 10
    # Per-call timeout override (seconds); provider default when unset
    timeout: Optional[float] = None
    subject_filter: bool = True

    def __post_init__(self):
        self.max_results = max(1, min(int(self.max_results), config.RESEARCH_MAX_RESULTS_PER_QUERY))


def _join_authors(names: Iterable[Optional[str]]) -> str:
    cleaned = [(n or "").strip() or "Unknown" for n in names]
    return ", ".join(cleaned[:MAX_AUTHORS]) or "Unknown"


def _mentions_any(text: str, keywords: Iterable[str]) -> bool:
    lowered = (text or "").lower()
    return any(k in lowered for k in keywords)


# --------------------------------------------------------------------------- #
#                       BASE SEARCH API                                       #
# --------------------------------------------------------------------------- #


class BaseSearchAPI:
    name = "base"
    DEFAULT_TIMEOUT = 10.0

    def __init__(self, api_key: str = "", rate: int = 60):
        self.api_key = api_key
        self.pacer = ProviderPacer(calls_per_minute=rate, provider=self.name)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self._sess()
        return self

    async def __aexit__(self, *_exc):
        await self.close()

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    def _sess(self) -> aiohttp.ClientSession:
        if not self.session or self.session.closed:
            timeout = config.get_search_timeout(self.DEFAULT_TIMEOUT)
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout))
        return self.session

    def _timeout(self, cfg: SearchConfig) -> float:
        return cfg.timeout or config.get_search_timeout(self.DEFAULT_TIMEOUT)

    def _headers(self) -> Dict[str, str]:
        return {"User-Agent": config.SEARCH_USER_AGENT}

    async def _get(self, url: str, params: Dict[str, Any], cfg: SearchConfig, *, as_json: bool = True) -> Any:
        """One GET; 429 raises RateLimitedError, other non-200 SearchProviderError."""
        await self.pacer.acquire()
        timeout = aiohttp.ClientTimeout(total=self._timeout(cfg))
        try:
            async with self._sess().get(
                url, params=params, headers=self._headers(), timeout=timeout
            ) as r:
                if r.status == 429:
                    retry_after = parse_retry_after(r.headers.get("retry-after"))
                    if retry_after is not None:
                        retry_after = min(retry_after, RetryConfig.RATE_LIMIT_MAX_DELAY)
                    self.pacer.defer(retry_after)
                    raise RateLimitedError(
                        f"{self.name} rate limited", provider=self.name, retry_after=retry_after
                    )
                if r.status != 200:
                    raise SearchProviderError(f"{self.name} returned HTTP {r.status}", provider=self.name)
                if as_json:
                    return await r.json(content_type=None)
                return await r.text()
        except asyncio.TimeoutError as e:
            raise SearchProviderError(f"{self.name} timed out", provider=self.name) from e
        except aiohttp.ClientError as e:
            raise SearchProviderError(f"{self.name} request failed: {e}", provider=self.name) from e
        except ValueError as e:
            raise SearchProviderError(f"{self.name} sent invalid JSON", provider=self.name) from e

    async def _fetch(self, query: str, cfg: SearchConfig) -> Any:
        raise NotImplementedError

    def _parse(self, payload: Any, query: str, cfg: SearchConfig) -> List[ResearchPaper]:
        raise NotImplementedError

    async def search(self, query: str, cfg: SearchConfig) -> List[ResearchPaper]:
        fetch = get_search_retry_decorator()(self._fetch)
        payload = await fetch(query, cfg)
        papers = self._parse(payload, query, cfg)
        logger.debug("Provider search finished", provider=self.name, topic=query, results=len(papers))
        return papers


# --------------------------------------------------------------------------- #
#                              ArxivAPI                                       #
# --------------------------------------------------------------------------- #

class ArxivAPI(BaseSearchAPI):
    """
    ArXiv does not require an API-key.  It returns Atom XML which we parse
    into ResearchPaper objects.
    """

    name = "arxiv"
    BASE_URL = "http://export.arxiv.org/api/query"
    NS = {"a": "http://www.w3.org/2005/Atom", "arxiv": "http://arxiv.org/schemas/atom"}
    HUMANITIES_CATEGORIES = ("cs.CL", "cs.CY", "cs.DL")
    ABSTRACT_KEYWORDS = ("humanities", "cultural", "literary")

    def __init__(self):
        super().__init__(rate=20)           # be polite

    async def _fetch(self, query: str, cfg: SearchConfig) -> str:
        params = {
            "search_query": f"all:{query}",
            "start": 0,
            "max_results": cfg.max_results,
            "sortBy": "relevance",
            "sortOrder": "descending",
        }
        return await self._get(self.BASE_URL, params, cfg, as_json=False)

    def _is_humanities(self, title: str, abstract: str, categories: List[str]) -> bool:
        if any(cat.startswith(self.HUMANITIES_CATEGORIES) for cat in categories):
            return True
        return "digital humanities" in title.lower() or _mentions_any(abstract, self.ABSTRACT_KEYWORDS)

    @staticmethod
    def doi_for(entry_url: str) -> str:
        arxiv_id = _ARXIV_VERSION_RE.sub("", entry_url.rstrip("/").split("/")[-1])
        return f"10.48550/arXiv.{arxiv_id}" if arxiv_id else ""

    def _parse(self, payload: str, query: str, cfg: SearchConfig) -> List[ResearchPaper]:
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as e:
            raise SearchProviderError(f"arxiv returned malformed XML: {e}", provider=self.name) from e

        ns = self.NS
        papers: List[ResearchPaper] = []
        for entry in root.findall("a:entry", ns):
            raw_title = entry.findtext("a:title", default="", namespaces=ns) or ""
            raw_abstract = entry.findtext("a:summary", default="", namespaces=ns) or ""
            url = (entry.findtext("a:id", default="", namespaces=ns) or "").strip()
            categories = [c.get("term", "") for c in entry.findall("a:category", ns)]

            if cfg.subject_filter and not self._is_humanities(raw_title, raw_abstract, categories):
                continue

            title = clean_scholarly_text(raw_title)
            if not title or not url:
                continue

            pdf_url = ""
            for link in entry.findall("a:link", ns):
                if link.get("title") == "pdf" and link.get("href"):
                    pdf_url = link.get("href")
                    break
            if not pdf_url:
                pdf_url = url.replace("/abs/", "/pdf/") + ".pdf"

            journal_doi = (entry.findtext("arxiv:doi", default="", namespaces=ns) or "").strip()
            papers.append(
                ResearchPaper(
                    title=title,
                    authors=_join_authors(
                        a.findtext("a:name", default="", namespaces=ns)
                        for a in entry.findall("a:author", ns)
                    ),
                    abstract=clean_scholarly_text(raw_abstract),
                    published=format_date(entry.findtext("a:published", default="", namespaces=ns)),
                    updated=format_date(entry.findtext("a:updated", default="", namespaces=ns)),
                    url=url,
                    doi=journal_doi or self.doi_for(url),
                    source="arXiv",
                    subjects=", ".join(c for c in categories if c),
                    relevant_topic=query,
                    pdf_url=pdf_url,
                    language="en",
                    paper_type="preprint",
                )
            )
        return papers


# --------------------------------------------------------------------------- #
#                              DOAJAPI                                        #
# --------------------------------------------------------------------------- #

class DOAJAPI(BaseSearchAPI):
    """
    Directory of Open Access Journals article search. No key required.
    """

    name = "doaj"
    BASE = "https://doaj.org/api/v2/search/articles"
    SUBJECT_KEYWORDS = (
        "humanities", "literature", "philosophy", "history",
        "cultural", "linguistics", "religion", "art",
    )

    def __init__(self):
        super().__init__(rate=60)

    async def _fetch(self, query: str, cfg: SearchConfig) -> Dict[str, Any]:
        params = {"q": query, "pageSize": cfg.max_results, "sort": "score"}
        return await self._get(self.BASE, params, cfg)

    def _is_humanities(self, subjects: List[str], title: str, abstract: str) -> bool:
        if not subjects:
            return True
        if any(_mentions_any(s, self.SUBJECT_KEYWORDS) for s in subjects):
            return True
        return _mentions_any(title, ("humanities",)) or _mentions_any(abstract, ("humanities",))

    @staticmethod
    def _fulltext_url(links: Any) -> str:
        for link in links or []:
            if isinstance(link, dict) and link.get("type") == "fulltext" and link.get("url"):
                return str(link["url"])
        return ""

    @staticmethod
    def _doi(bib: Dict[str, Any]) -> str:
        for ident in bib.get("identifier") or []:
            if isinstance(ident, dict) and str(ident.get("type", "")).lower() == "doi" and ident.get("id"):
                return str(ident["id"])
        # some journals only expose the DOI as a doi.org link
        for link in bib.get("link") or []:
            if isinstance(link, dict):
                found = extract_doi(str(link.get("url") or ""))
                if found:
                    return found
        return ""

    @staticmethod
    def _language(bib: Dict[str, Any]) -> str:
        langs = bib.get("language") or (bib.get("journal") or {}).get("language") or []
        if isinstance(langs, str):
            return langs or "en"
        return str(langs[0]) if langs else "en"

    def _parse(self, payload: Any, query: str, cfg: SearchConfig) -> List[ResearchPaper]:
        if not isinstance(payload, dict):
            raise SearchProviderError("doaj payload is not an object", provider=self.name)

        papers: List[ResearchPaper] = []
        for article in payload.get("results") or []:
            bib = (article or {}).get("bibjson") or {}
            subjects = [
                str(s.get("term")) for s in bib.get("subject") or []
                if isinstance(s, dict) and s.get("term")
            ]
            raw_title = bib.get("title") or ""
            raw_abstract = bib.get("abstract") or ""
            if cfg.subject_filter and not self._is_humanities(subjects, raw_title, raw_abstract):
                continue

            title = clean_scholarly_text(raw_title)
            url = self._fulltext_url(bib.get("link"))
            if not title or not url:
                continue

            year = bib.get("year")
            papers.append(
                ResearchPaper(
                    title=title,
                    authors=_join_authors(
                        a.get("name") for a in bib.get("author") or [] if isinstance(a, dict)
                    ),
                    abstract=clean_scholarly_text(raw_abstract),
                    published=format_date(year),
                    updated=format_date(year),
                    url=url,
                    doi=self._doi(bib),
                    source="DOAJ",
                    subjects=", ".join(subjects),
                    relevant_topic=query,
                    language=self._language(bib),
                    paper_type="journal_article",
                )
            )
        return papers


# --------------------------------------------------------------------------- #
#                          SemanticScholarAPI                                 #
# --------------------------------------------------------------------------- #

class SemanticScholarAPI(BaseSearchAPI):
    """
    Free Graph API ( /graph/v1/paper/search ).  Optional key via
    SEMANTIC_SCHOLAR_API_KEY.
    """

    name = "semanticscholar"
    BASE = "https://api.semanticscholar.org/graph/v1/paper/search"
    DEFAULT_TIMEOUT = 15.0
    FIELDS = "paperId,title,authors,abstract,year,url,openAccessPdf,fieldsOfStudy,citationCount,externalIds"
    FIELD_KEYWORDS = ("art", "history", "philosophy", "literature", "linguistics", "religious", "cultural")
    TITLE_KEYWORDS = ("humanities", "cultural", "literary")

    def __init__(self):
        super().__init__(os.getenv("SEMANTIC_SCHOLAR_API_KEY", ""), rate=30)

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Accept"] = "application/json"
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def _fetch(self, query: str, cfg: SearchConfig) -> Dict[str, Any]:
        params = {"query": query, "limit": cfg.max_results, "fields": self.FIELDS}
        return await self._get(self.BASE, params, cfg)

    def _is_humanities(self, fields: List[str], title: str) -> bool:
        if not fields:
            return True
        if any(_mentions_any(f, self.FIELD_KEYWORDS) for f in fields):
            return True
        return _mentions_any(title, self.TITLE_KEYWORDS)

    def _parse(self, payload: Any, query: str, cfg: SearchConfig) -> List[ResearchPaper]:
        if not isinstance(payload, dict):
            raise SearchProviderError("semanticscholar payload is not an object", provider=self.name)

        papers: List[ResearchPaper] = []
        for p in payload.get("data") or []:
            if not isinstance(p, dict):
                continue
            fields = [str(f) for f in p.get("fieldsOfStudy") or [] if f]
            raw_title = p.get("title") or ""
            if cfg.subject_filter and not self._is_humanities(fields, raw_title):
                continue

            title = clean_scholarly_text(raw_title)
            url = p.get("url") or (
                f"https://www.semanticscholar.org/paper/{p['paperId']}" if p.get("paperId") else ""
            )
            if not title or not url:
                continue

            year = str(p["year"]) if p.get("year") else ""
            citations = p.get("citationCount")
            papers.append(
                ResearchPaper(
                    title=title,
                    authors=_join_authors(
                        a.get("name") for a in p.get("authors") or [] if isinstance(a, dict)
                    ),
                    abstract=clean_scholarly_text(p.get("abstract") or "No abstract available"),
                    published=year,
                    updated=year,
                    url=url,
                    doi=str((p.get("externalIds") or {}).get("DOI") or ""),
                    source="Semantic Scholar",
                    subjects=", ".join(fields),
                    relevant_topic=query,
                    pdf_url=str((p.get("openAccessPdf") or {}).get("url") or ""),
                    language="en",
                    paper_type="academic_paper",
                    citation_count=int(citations) if isinstance(citations, (int, float)) else 0,
                )
            )
        return papers


# --------------------------------------------------------------------------- #
#                       SEARCH API MANAGER                                    #
# --------------------------------------------------------------------------- #

class SearchAPIManager:
    """Ordered provider registry owning the providers' HTTP sessions."""

    def __init__(self):
        self.apis: Dict[str, BaseSearchAPI] = {}

    def add_api(self, name: str, api: BaseSearchAPI) -> None:
        self.apis[name] = api
        logger.debug("Search provider registered", provider=name)

    def __len__(self) -> int:
        return len(self.apis)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *_exc):
        await self.close()

    async def close(self) -> None:
        for api in self.apis.values():
            await api.close()


def _disabled(flag: str) -> bool:
    return os.getenv(flag, "0").lower() in {"1", "true", "yes"}


PROVIDERS = (
    ("arxiv", "SEARCH_DISABLE_ARXIV", ArxivAPI),
    ("doaj", "SEARCH_DISABLE_DOAJ", DOAJAPI),
    ("semanticscholar", "SEARCH_DISABLE_SEMANTICSCHOLAR", SemanticScholarAPI),
)


def enabled_provider_names() -> List[str]:
    return [name for name, flag, _ in PROVIDERS if not _disabled(flag)]


def create_search_manager() -> SearchAPIManager:
    mgr = SearchAPIManager()
    for name, flag, factory in PROVIDERS:
        if not _disabled(flag):
            mgr.add_api(name, factory())
    return mgr
