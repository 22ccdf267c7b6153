# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
ClearView CLI Commands

Thin command-line surface over ClearviewEngine, configured from the
environment (OPENAI_API_KEY, EXA_API_KEY, REDIS_URL, CROSSREF_EMAIL, ...).

Commands:
- analyze: Analyze an article for bias (JSON result, or event frames with --stream)
- perspectives: Rank diverse news sources for a topic
- evidence: Build a research dossier for a topic
- doi: Look up a DOI on CrossRef
- complete: Run a plain-text generation call to check credentials and budget
- cost-status: Show today's generation spend
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, NoReturn

from clearview_core.config import ClearviewConfig
from clearview_core.engine import ClearviewEngine
from clearview_core.errors import describe_error
from clearview_core.schema.analysis import AnalysisRequest


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _run(func: Callable[[ClearviewEngine], Awaitable[int]]) -> int:
    async def _with_engine() -> int:
        async with ClearviewEngine(ClearviewConfig.from_env()) as engine:
            return await func(engine)

    try:
        return asyncio.run(_with_engine())
    except Exception as e:
        error = describe_error(e)
        _print_json(error)
        print(f"✗ {error['message']}", file=sys.stderr)
        return 1


def _read_content(args: argparse.Namespace) -> str:
    if args.content_file == "-":
        return sys.stdin.read()
    return Path(args.content_file).read_text(encoding="utf-8")


def cmd_analyze(args: argparse.Namespace) -> int:
    """Analyze an article for bias."""
    try:
        content = _read_content(args)
    except OSError as e:
        print(f"✗ Failed to read content: {e}", file=sys.stderr)
        return 1

    request = AnalysisRequest(url=args.url, title=args.title, source=args.source, content=content)

    async def _analyze(engine: ClearviewEngine) -> int:
        if args.stream:
            async for frame in engine.stream_analysis(request):
                sys.stdout.write(frame)
                sys.stdout.flush()
            return 0
        result = await engine.analyze(request)
        _print_json(result.to_dict())
        return 0

    return _run(_analyze)


def cmd_perspectives(args: argparse.Namespace) -> int:
    """Rank diverse news sources covering a topic."""

    async def _perspectives(engine: ClearviewEngine) -> int:
        result = await engine.get_perspectives(args.topic, args.keywords or [], args.lean)
        _print_json(result.to_dict())
        return 0

    return _run(_perspectives)


def cmd_evidence(args: argparse.Namespace) -> int:
    """Build a research dossier for a topic."""

    async def _evidence(engine: ClearviewEngine) -> int:
        dossier = await engine.get_evidence(
            args.topic,
            core_argument=args.argument,
            summary_text=args.summary,
            claims=args.claims,
        )
        _print_json(dossier.to_dict())
        return 0

    return _run(_evidence)


def cmd_doi(args: argparse.Namespace) -> int:
    """Look up a DOI; exits 1 when it does not resolve."""

    async def _doi(engine: ClearviewEngine) -> int:
        meta = await engine.lookup_doi(args.doi)
        _print_json(meta.to_dict())
        return 0 if meta.valid else 1

    return _run(_doi)


def cmd_complete(args: argparse.Namespace) -> int:
    """Send a free-form prompt through the generation gate."""

    async def _complete(engine: ClearviewEngine) -> int:
        text = await engine.complete(args.prompt, instructions=args.instructions)
        print(text)
        _print_json(engine.cost_status())
        return 0

    return _run(_complete)


def cmd_cost_status(args: argparse.Namespace) -> int:
    """Show generation spend for the current day."""

    async def _status(engine: ClearviewEngine) -> int:
        _print_json(engine.health() if args.health else engine.cost_status())
        return 0

    return _run(_status)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="clearview",
        description="ClearView news bias analysis commands",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze an article for bias",
    )
    analyze_parser.add_argument("--url", required=True, help="Article URL")
    analyze_parser.add_argument("--title", required=True, help="Article title")
    analyze_parser.add_argument("--source", required=True, help="Publication name")
    analyze_parser.add_argument(
        "--content-file", "-f",
        required=True,
        help="Path to the article text ('-' for stdin)",
    )
    analyze_parser.add_argument(
        "--stream",
        action="store_true",
        help="Print streaming event frames instead of a single JSON result",
    )
    analyze_parser.set_defaults(func=cmd_analyze)

    # perspectives command
    perspectives_parser = subparsers.add_parser(
        "perspectives",
        help="Rank diverse news sources for a topic",
    )
    perspectives_parser.add_argument("topic", help="Topic to search")
    perspectives_parser.add_argument(
        "--keyword", "-k",
        dest="keywords",
        action="append",
        help="Extra search keyword (repeatable)",
    )
    perspectives_parser.add_argument(
        "--lean",
        choices=["left", "center-left", "center", "center-right", "right"],
        help="Political lean of the article being read",
    )
    perspectives_parser.set_defaults(func=cmd_perspectives)

    # evidence command
    evidence_parser = subparsers.add_parser(
        "evidence",
        help="Build a research dossier for a topic",
    )
    evidence_parser.add_argument("topic", help="Topic to research")
    evidence_parser.add_argument("--argument", "-a", help="Core argument of the article")
    evidence_parser.add_argument("--summary", help="Article summary, used when no argument is given")
    evidence_parser.add_argument(
        "--claim", "-c",
        dest="claims",
        action="append",
        help="Article claim (repeatable), used when no argument or summary is given",
    )
    evidence_parser.set_defaults(func=cmd_evidence)

    # doi command
    doi_parser = subparsers.add_parser(
        "doi",
        help="Look up a DOI on CrossRef",
    )
    doi_parser.add_argument("doi", help="DOI or doi.org URL")
    doi_parser.set_defaults(func=cmd_doi)

    # complete command
    complete_parser = subparsers.add_parser(
        "complete",
        help="Run a plain-text generation call (diagnostics)",
    )
    complete_parser.add_argument("prompt", help="Prompt text")
    complete_parser.add_argument("--instructions", "-i", help="Optional system instructions")
    complete_parser.set_defaults(func=cmd_complete)

    # cost-status command
    cost_parser = subparsers.add_parser(
        "cost-status",
        help="Show today's generation spend",
    )
    cost_parser.add_argument(
        "--health",
        action="store_true",
        help="Include service configuration and cache state",
    )
    cost_parser.set_defaults(func=cmd_cost_status)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the ClearView CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    sys.exit(args.func(args))
