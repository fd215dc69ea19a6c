from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import yaml

from .acquisition import acquire_files
from .config import AppConfig, load_config, with_languages
from .errors import ConfigurationError
from .pipeline import QuotePipeline
from .report import build_report, render_progress, render_summary_text
from .types import FileFailure, ProgressEvent
from .utils import write_json


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="notary-quote")
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    sub = p.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Estimate the translation price of PDFs and images")
    quote.add_argument("files", nargs="+", help="PDF or image files (.pdf, .jpg, .jpeg, .png, .webp)")
    quote.add_argument("--config", default=None, help="YAML/JSON config path (defaults if omitted)")
    quote.add_argument("--lang", default=None, help="OCR languages, comma separated (e.g. ru,en)")
    quote.add_argument("--json", dest="json_out", default=None, help="Write a JSON report to this path")
    quote.add_argument("--quiet", action="store_true", help="Do not print progress to stderr")
    quote.add_argument("--pages", action="store_true", help="List characters and price per page")

    show = sub.add_parser("show-config", help="Print the effective configuration")
    show.add_argument("--config", default=None, help="YAML/JSON config path")

    return p


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _effective_config(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    if getattr(args, "lang", None):
        cfg = with_languages(cfg, args.lang.split(","))
    return cfg


async def _run_quote(cfg: AppConfig, args: argparse.Namespace) -> int:
    accepted, rejected = acquire_files(args.files, cfg.limits)
    for r in rejected:
        print(f"skipped {r.file_name}: {r.message}", file=sys.stderr)

    def on_event(event: ProgressEvent) -> None:
        if not args.quiet:
            print(render_progress(event), file=sys.stderr)

    async with QuotePipeline(cfg) as pipeline:
        await pipeline.run_batch(accepted, on_event=on_event)
        results = list(pipeline.results)
        failures: list[FileFailure] = rejected + pipeline.failures
        summary = pipeline.summary()

    if results:
        print(render_summary_text(results, summary, cfg.ui, show_pages=args.pages))
    else:
        print("No documents could be priced.", file=sys.stderr)

    if args.json_out:
        write_json(args.json_out, build_report(results, summary, failures))

    return 0 if results else 1


def cmd_quote(args: argparse.Namespace) -> int:
    try:
        cfg = _effective_config(args)
    except ConfigurationError as e:
        print(f"invalid options: {e}", file=sys.stderr)
        return 2
    return asyncio.run(_run_quote(cfg, args))


def cmd_show_config(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    print(yaml.safe_dump(cfg.to_dict(), allow_unicode=True, sort_keys=False), end="")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "quote":
        return cmd_quote(args)

    if args.command == "show-config":
        return cmd_show_config(args)

    raise SystemExit(2)


if __name__ == "__main__":
    raise SystemExit(main())
