"""Command line entry point: validate one incident article."""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markdown import Markdown

from .domain.services.verdict_report import render_report
from .infrastructure.corpus.local_adapter import LocalCorpusAdapter
from .infrastructure.dependencies import ServiceContainer


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate and fact-check an incident article.")
    parser.add_argument("article", type=Path, help="Markdown article to validate")
    parser.add_argument(
        "--corpus",
        type=Path,
        help="Local corpus checkout used for the duplication check",
    )
    parser.add_argument("--json", action="store_true", help="Print the verdict as JSON")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, console: Console) -> int:
    """Run the pipeline once; the exit status is 0 for a valid article."""
    content = args.article.read_text(encoding="utf-8")

    corpus = LocalCorpusAdapter(args.corpus) if args.corpus is not None else None
    container = ServiceContainer(corpus=corpus)
    try:
        pipeline = await container.get_pipeline()
        verdict = await pipeline.validate_article(content, args.article.name)
    finally:
        await container.shutdown()

    if args.json:
        console.print_json(json.dumps(verdict.to_dict()))
    else:
        console.print(Markdown(render_report(verdict)))
    return 0 if verdict.is_valid else 1


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = parse_args(argv)
    console = Console()
    if not args.article.is_file():
        console.print(f"[red]Article not found: {args.article}[/red]")
        return 2
    return asyncio.run(run(args, console))


if __name__ == "__main__":
    sys.exit(main())
