#!/usr/bin/env python3
"""
Command-line front end.

Examples:
  python -m tabwriter evidence "Remote work boosts output" survey.csv --threshold 0.4
  python -m tabwriter research "Memory and archive in postcolonial fiction" --max-papers 5 --enhanced
  python -m tabwriter evidence "..." notes.txt --json
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional, Sequence

import structlog

from tabwriter.core.exceptions import TabWriterError
from tabwriter.logging_config import bind_request_context, configure_logging
from tabwriter.models.evidence import EvidenceOptions, EvidenceResult, ScoredEvidence
from tabwriter.models.research import ResearchPaper
from tabwriter.services.evidence_pipeline import extract_evidence
from tabwriter.services.research_aggregator import find_relevant_research
from tabwriter.services.source_reader import SourceDocument

logger = structlog.get_logger(__name__)


def _print_items(title: str, items: Sequence[ScoredEvidence]) -> None:
    print(f"\n{title} ({len(items)})")
    print("-" * 60)
    for idx, item in enumerate(items, 1):
        print(f"{idx}. {item.text}")
        print(f"   score: {item.relevance_score:.2f}  ({item.relevance_reason})")
        if item.source:
            print(f"   source: {item.source}")
        if item.position:
            print(f"   position: {item.position}")


def render_evidence(result: EvidenceResult) -> str:
    """Human-readable evidence report."""
    lines: List[str] = []
    info = result.source_info
    lines.append("=" * 60)
    lines.append(f"Evidence from {info.file}")
    lines.append("=" * 60)
    lines.append(f"Main argument: {result.user_context.main_argument}")
    lines.append(
        f"Found {info.total_stats_found} statistics and {info.total_quotes_found} quotes; "
        f"kept {info.relevant_stats_count} and {info.relevant_quotes_count}"
    )
    if result.message:
        lines.append(result.message)
    return "\n".join(lines)


def render_papers(papers: Sequence[ResearchPaper]) -> str:
    if not papers:
        return "No relevant research found."
    lines: List[str] = []
    for idx, paper in enumerate(papers, 1):
        lines.append(f"\n{idx}. {paper.title}")
        lines.append(f"   {paper.authors} ({paper.published or 'n.d.'}) [{paper.source}]")
        lines.append(f"   URL: {paper.url}")
        if paper.doi:
            lines.append(f"   DOI: {paper.doi}")
        if paper.relevance_score is not None:
            lines.append(f"   Relevance: {paper.relevance_score:g}/10  {paper.relevance_analysis or ''}".rstrip())
    return "\n".join(lines)


async def run_evidence(args: argparse.Namespace) -> int:
    overrides = {}
    if args.max_stats is not None:
        overrides["max_stats"] = args.max_stats
    if args.max_quotes is not None:
        overrides["max_quotes"] = args.max_quotes
    if args.threshold is not None:
        overrides["relevance_threshold"] = args.threshold
    options = EvidenceOptions(**overrides)

    result = await extract_evidence(args.text, SourceDocument.from_path(args.file), options)
    if args.json:
        print(json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False))
        return 0

    print(render_evidence(result))
    _print_items("Statistics", result.statistics)
    _print_items("Quotes", result.quotes)
    print("\nRecommendations")
    print("-" * 60)
    print(result.recommendations)
    return 0


async def run_research(args: argparse.Namespace) -> int:
    papers = await find_relevant_research(args.text, args.max_papers, enhanced=args.enhanced)
    if args.json:
        print(json.dumps({"articles": [p.to_json_dict() for p in papers]}, indent=2, ensure_ascii=False))
    else:
        print(render_papers(papers))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tabwriter", description="TabWriter evidence and research tools")
    sub = parser.add_subparsers(dest="command", required=True)

    ev = sub.add_parser("evidence", help="Find statistics and quotes supporting a draft")
    ev.add_argument("text", help="The draft text")
    ev.add_argument("file", help="Source document (.txt, .md, .json, .csv)")
    ev.add_argument("--max-stats", type=int, default=None)
    ev.add_argument("--max-quotes", type=int, default=None)
    ev.add_argument("--threshold", type=float, default=None, help="Minimum relevance score (0-1)")
    ev.add_argument("--json", action="store_true", help="Print the raw JSON result")
    ev.set_defaults(handler=run_evidence)

    rs = sub.add_parser("research", help="Recommend scholarly papers for a draft")
    rs.add_argument("text", help="The draft text")
    rs.add_argument("--max-papers", type=int, default=None)
    rs.add_argument("--enhanced", action="store_true", help="Re-score candidates with the completion model")
    rs.add_argument("--json", action="store_true", help="Print the raw JSON result")
    rs.set_defaults(handler=run_research)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    bind_request_context(operation=f"cli.{args.command}")
    try:
        return asyncio.run(args.handler(args))
    except (TabWriterError, ValueError) as e:
        logger.error("Command failed", command=args.command, error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
