"""
Command-line entry point.

Usage:
    ladybug-console build notes.md -o notes.html
    ladybug-console filter html5 < doc.json > filtered.json
    ladybug-console run notes.html -o notes.run.html
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from ladybug_console.document.markdown_build import MarkdownPageBuilder
from ladybug_console.document.pandoc_filter import run_filter
from ladybug_console.runner.client import CypherClient
from ladybug_console.runner.page import Page
from ladybug_console.runner.runner import QueryRunner
from ladybug_console.shared.config import DEFAULT_ENDPOINT, LadybugSettings
from ladybug_console.shared.exceptions import LadybugError
from ladybug_console.shared.logging import setup_logging


def _write(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)


def _cmd_build(args, settings: LadybugSettings) -> None:
    source = Path(args.input)
    builder = MarkdownPageBuilder(settings)
    page = builder.build(
        source.read_text(encoding="utf-8"),
        title=args.title or source.stem,
        output_format=args.format,
    )
    _write(page, args.output)


def _cmd_filter(args, settings: LadybugSettings) -> None:
    run_filter(args.format)


async def _run_page(args, settings: LadybugSettings) -> str:
    page = Page.from_html(Path(args.input).read_text(encoding="utf-8"))
    timeout = args.timeout or page.timeout_seconds or settings.timeout_seconds
    default_endpoint = args.endpoint or settings.endpoint or DEFAULT_ENDPOINT
    async with CypherClient(settings, timeout=timeout) as client:
        runner = QueryRunner(client, default_endpoint=default_endpoint)
        await runner.run_all(page)
    return page.to_html()


def _cmd_run(args, settings: LadybugSettings) -> None:
    _write(asyncio.run(_run_page(args, settings)), args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ladybug-console",
        description="Interactive Cypher query blocks for published documents.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Render a markdown document to an HTML page")
    build.add_argument("input", help="Markdown source file")
    build.add_argument("-o", "--output", help="Output file (default: stdout)")
    build.add_argument("--title", help="Page title (default: input file name)")
    build.add_argument("--format", default="html", help="Output format name (default: html)")
    build.set_defaults(handler=_cmd_build)

    filt = sub.add_parser("filter", help="Run as a pandoc JSON filter on stdin/stdout")
    filt.add_argument("format", nargs="?", default="html", help="Target format passed by pandoc")
    filt.set_defaults(handler=_cmd_filter)

    run = sub.add_parser("run", help="Execute every query block of a published page")
    run.add_argument("input", help="Published HTML page")
    run.add_argument("-o", "--output", help="Output file (default: stdout)")
    run.add_argument("--timeout", type=float, help="Per-query timeout in seconds")
    run.add_argument("--endpoint", help="Endpoint for blocks without their own")
    run.set_defaults(handler=_cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    settings = LadybugSettings()
    logger = setup_logging("cli", level=settings.log_level)

    try:
        args.handler(args, settings)
    except LadybugError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("%s: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
