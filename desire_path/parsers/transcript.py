"""Reconstruct turns and steps from a Claude Code JSONL transcript.

The whole transcript is held in memory for the duration of one call; memory
grows linearly with the number of events and there is no streaming mode.
Calls share no state, so separate transcripts can be reconstructed
concurrently from any number of threads or processes.
"""
from __future__ import annotations

import logging
import time
from collections import Counter
from pathlib import Path
from typing import IO, Union

from desire_path import observability
from desire_path.models import Turn
from desire_path.parsers.events import TranscriptDecodeError, decode_events
from desire_path.parsers.ordering import order_events
from desire_path.parsers.outcomes import apply_outcomes
from desire_path.parsers.segmenter import detect_session_id, segment_turns

logger = logging.getLogger("desire_path.parsers")

TranscriptSource = Union[bytes, bytearray, str, IO[bytes], IO[str]]


def _read_all(source: TranscriptSource) -> bytes | str:
    if isinstance(source, (bytes, str)):
        return source
    if isinstance(source, bytearray):
        return bytes(source)
    return source.read()


def _record_step_outcomes(turns: list[Turn]) -> None:
    outcomes: Counter[tuple[str, str]] = Counter()
    for turn in turns:
        for step in turn.steps:
            outcomes[(step.toolName, "error" if step.isError else "success")] += 1
    for (tool, status), count in outcomes.items():
        observability.record_step_outcome(tool, status, count=count)


def reconstruct_turns(source: TranscriptSource, *, max_line_bytes: int | None = None) -> list[Turn]:
    """Decode, order, segment and correlate one session transcript.

    Returns the turns in order; an empty transcript yields an empty list.
    Raises TranscriptDecodeError for a malformed or oversized line, in which
    case no turns are returned.
    """
    t0 = time.monotonic()
    with observability.start_span("transcript.reconstruct") as span:
        try:
            events = decode_events(_read_all(source), max_line_bytes=max_line_bytes)
        except TranscriptDecodeError as exc:
            logger.warning("Transcript rejected at line %s: %s", exc.line_number, exc.reason)
            observability.record_parser_failure("transcript")
            observability.record_reconstruction("error", (time.monotonic() - t0) * 1000)
            raise

        ordered = order_events(events)
        turns = segment_turns(ordered, detect_session_id(ordered))
        apply_outcomes(turns, ordered)

        step_count = sum(len(turn.steps) for turn in turns)
        if span is not None:
            span.set_attribute("transcript.events", len(events))
            span.set_attribute("transcript.turns", len(turns))
            span.set_attribute("transcript.steps", step_count)

    elapsed_ms = (time.monotonic() - t0) * 1000
    observability.record_reconstruction("success", elapsed_ms, turns=len(turns), steps=step_count)
    _record_step_outcomes(turns)
    logger.debug(
        "Reconstructed %s turns / %s steps from %s events in %.1fms",
        len(turns),
        step_count,
        len(events),
        elapsed_ms,
    )
    return turns


def parse_transcript_file(path: Path, *, max_line_bytes: int | None = None) -> list[Turn]:
    """Read a transcript file and reconstruct its turns. OSError propagates."""
    data = Path(path).read_bytes()
    return reconstruct_turns(data, max_line_bytes=max_line_bytes)
