"""Locate a tool invocation inside its session's reconstructed turns."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from desire_path.models import Turn, TurnContext
from desire_path.parsers.events import TranscriptDecodeError
from desire_path.parsers.transcript import parse_transcript_file

logger = logging.getLogger("desire_path.turn_context")


def make_turn_id(session_id: str, index: int) -> str:
    return f"{session_id}:{index}"


def find_turn_context(
    turns: Iterable[Turn],
    tool_use_id: str,
    fallback_session_id: str = "",
) -> TurnContext | None:
    """Return turn id, step sequence and turn length for ``tool_use_id``.

    The turn's own session id wins; ``fallback_session_id`` is used when the
    transcript carried none.
    """
    if not tool_use_id:
        return None
    for turn in turns:
        for step in turn.steps:
            if step.toolUseId != tool_use_id:
                continue
            session_id = turn.sessionId or fallback_session_id
            return TurnContext(
                turnId=make_turn_id(session_id, turn.index),
                turnSequence=step.sequence,
                turnLength=len(turn.steps),
            )
    return None


def lookup_turn_context(
    transcript_path: Path | str,
    tool_use_id: str,
    fallback_session_id: str = "",
) -> TurnContext | None:
    """Best-effort variant for ingestion: unreadable or invalid transcripts give None."""
    if not transcript_path or not tool_use_id:
        return None
    try:
        turns = parse_transcript_file(Path(transcript_path))
    except OSError as exc:
        logger.debug("Transcript %s not readable: %s", transcript_path, exc)
        return None
    except TranscriptDecodeError as exc:
        logger.debug("Transcript %s not parseable: %s", transcript_path, exc)
        return None
    return find_turn_context(turns, tool_use_id, fallback_session_id)
