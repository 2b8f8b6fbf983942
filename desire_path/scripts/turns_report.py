#!/usr/bin/env python3
"""Report the turns reconstructed from one Claude Code transcript.

Usage:
  python -m desire_path.scripts.turns_report ~/.claude/projects/x/session.jsonl
  python -m desire_path.scripts.turns_report session.jsonl --min-length 8 --json
  python -m desire_path.scripts.turns_report session.jsonl --patterns
  python -m desire_path.scripts.turns_report session.jsonl --pattern "Grep → Read{2+} → Edit"
  python -m desire_path.scripts.turns_report session.jsonl --tool-use-id toolu_01ABC
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, TextIO

from desire_path import config, observability
from desire_path.models import Turn
from desire_path.parsers import TranscriptDecodeError, parse_transcript_file
from desire_path.turn_context import find_turn_context
from desire_path.turn_patterns import cluster_patterns, long_turns, turn_rows, turns_matching_pattern

logger = logging.getLogger("desire_path.scripts")


def _write_json(out: TextIO, payload: Any) -> None:
    out.write(json.dumps(payload, indent=2, ensure_ascii=False))
    out.write("\n")


def _write_table(out: TextIO, headers: list[str], rows: list[list[str]]) -> None:
    widths = [len(header) for header in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))
    for row in [headers, *rows]:
        out.write("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
        out.write("\n")


def _write_turns(out: TextIO, turns: list[Turn], as_json: bool) -> None:
    rows = turn_rows(turns)
    if as_json:
        _write_json(out, [row.model_dump() for row in rows])
        return
    _write_table(
        out,
        ["SESSION", "TURN", "LENGTH", "DURATION_MS", "TOOLS"],
        [
            [
                row.sessionId[:8],
                str(row.turnIndex),
                str(row.length),
                str(row.durationMs),
                " → ".join(row.tools),
            ]
            for row in rows
        ],
    )


def run(args: argparse.Namespace, out: TextIO) -> int:
    try:
        turns = parse_transcript_file(Path(args.transcript).expanduser())
    except OSError as exc:
        print(f"Cannot read transcript: {exc}", file=sys.stderr)
        return 1
    except TranscriptDecodeError as exc:
        print(f"Invalid transcript: {exc}", file=sys.stderr)
        return 1

    if args.tool_use_id:
        context = find_turn_context(turns, args.tool_use_id)
        if context is None:
            print(f"No step found for tool use id: {args.tool_use_id}", file=sys.stderr)
            return 1
        if args.json:
            _write_json(out, context.model_dump())
        else:
            out.write(f"{context.turnId} step {context.turnSequence + 1}/{context.turnLength}\n")
        return 0

    if args.patterns:
        stats = cluster_patterns(turns)
        if args.json:
            _write_json(out, [item.model_dump() for item in stats])
        else:
            _write_table(
                out,
                ["PATTERN", "COUNT", "AVG_LENGTH", "SESSIONS"],
                [[s.pattern, str(s.count), f"{s.avgLength:.1f}", str(s.sessions)] for s in stats],
            )
        return 0

    if args.pattern:
        _write_turns(out, turns_matching_pattern(turns, args.pattern), args.json)
        return 0

    min_length = args.min_length if args.min_length is not None else config.TURN_LENGTH_THRESHOLD
    _write_turns(out, long_turns(turns, min_length), args.json)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dp-turns",
        description="Show turns reconstructed from a Claude Code transcript",
    )
    parser.add_argument("transcript", help="Path to the session JSONL transcript")
    parser.add_argument(
        "--min-length",
        type=int,
        default=None,
        help=f"Minimum steps per turn (default: DP_TURN_LENGTH_THRESHOLD={config.TURN_LENGTH_THRESHOLD})",
    )
    parser.add_argument("--patterns", action="store_true", help="Cluster turns by abstract tool pattern")
    parser.add_argument("--pattern", default="", help="Show turns matching one abstract pattern")
    parser.add_argument("--tool-use-id", default="", help="Show the turn position of one tool invocation")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of a table")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
    observability.initialize()
    try:
        return run(args, sys.stdout)
    finally:
        observability.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
