# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Flow Map CLI: analyze a crawl export into a user-flow graph.

Usage:
    python -m flowmap.cli analyze CRAWL_JSON [--config YAML] [--format json|text] [-o PATH]
    python -m flowmap.cli config [--config YAML]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import logging_config
from .errors import EmptyCrawlError, FlowMapError

logger = logging.getLogger(__name__)


def _validate_output_path(path_str: str | None) -> Path | None:
    """Return the output file path, creating its parent directory if needed."""
    if not path_str:
        return None
    p = Path(path_str)
    if p.exists() and p.is_dir():
        p = p / "user-flow.json"
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def cmd_analyze(args: argparse.Namespace) -> None:
    """Load a crawl export, run the analysis, print or save the result."""
    from .analysis.pipeline import analyze
    from .config import load_config
    from .schemas import load_crawl_file
    from .serializer import to_json, to_text_outline

    config = load_config(args.config)
    crawl = load_crawl_file(args.crawl)
    if not crawl.pages:
        raise EmptyCrawlError(f"No pages in crawl export {args.crawl}", source=args.crawl)

    result = analyze(crawl.pages, crawl.start_url, config=config)
    flow = result.flow

    rendered = to_text_outline(flow) if args.format == "text" else to_json(flow, crawl.crawl_duration_ms)

    out_path = _validate_output_path(args.output)
    if out_path is None:
        print(rendered)
        return
    out_path.write_text(rendered + "\n", encoding="utf-8")
    logger.info("Saved %s output to %s", args.format, out_path)
    print(
        f"{len(flow.nodes)} nodes, {len(flow.edges)} edges from {flow.metadata.total_pages} pages -> {out_path}",
        file=sys.stderr,
    )


def cmd_config(args: argparse.Namespace) -> None:
    """Print the effective analyzer configuration."""
    from .config import load_config

    print(json.dumps(load_config(args.config).to_dict(), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Flow Map CLI",
        prog="python -m flowmap.cli",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    _analyze_epilog = """\
examples:
  %(prog)s crawl.json                         Print visualization JSON
  %(prog)s crawl.json --format text           Print text outline
  %(prog)s crawl.json -o out/flow.json        Save to file
  %(prog)s crawl.json --config flowmap.yaml   Override thresholds
"""
    p_analyze = subparsers.add_parser(
        "analyze",
        help="Build a user-flow graph from a crawl export",
        epilog=_analyze_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_analyze.add_argument("crawl", type=str, metavar="CRAWL_JSON", help="Crawl export JSON file")
    p_analyze.add_argument("--config", type=str, metavar="YAML", help="Analyzer config (default: $FLOWMAP_CONFIG)")
    p_analyze.add_argument(
        "--format",
        type=str,
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)",
    )
    p_analyze.add_argument("-o", "--output", type=str, metavar="PATH", help="Write output to file instead of stdout")

    p_config = subparsers.add_parser("config", help="Show the effective analyzer configuration")
    p_config.add_argument("--config", type=str, metavar="YAML", help="Analyzer config (default: $FLOWMAP_CONFIG)")

    return parser


COMMANDS = {"analyze": cmd_analyze, "config": cmd_config}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging_config.configure(json_output=args.json_logs, level="DEBUG" if args.verbose else "WARNING")

    try:
        COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except FlowMapError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            logger.debug("Command failed", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
