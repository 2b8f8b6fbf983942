"""Group ordered transcript events into turns of tool-invocation steps.

A turn opens on a plain-text human prompt and closes on a ``turn_duration``
system marker, on the next human prompt, or at the end of the transcript.
Tool-use blocks emitted by the assistant while a turn is open become steps.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from desire_path.date_utils import format_timestamp
from desire_path.models import Step, Turn
from desire_path.parsers.events import (
    Event,
    HumanPrompt,
    Inert,
    ToolInvocation,
    TurnComplete,
    classify_event,
)
from desire_path.parsers.parallelism import detect_parallel

logger = logging.getLogger("desire_path.parsers")


class SegmenterState(enum.Enum):
    IDLE = "idle"
    IN_TURN = "in_turn"


@dataclass
class PendingStep:
    tool_name: str
    tool_use_id: str
    input: Any = None
    origin: str | None = None


@dataclass
class TurnBuilder:
    started_at: datetime | None
    duration_ms: int = 0
    steps: list[PendingStep] = field(default_factory=list)

    def build(self, session_id: str, index: int) -> Turn:
        flags = detect_parallel([step.origin for step in self.steps])
        return Turn(
            sessionId=session_id,
            index=index,
            startedAt=format_timestamp(self.started_at),
            durationMs=self.duration_ms,
            steps=[
                Step(
                    toolName=pending.tool_name,
                    toolUseId=pending.tool_use_id,
                    input=pending.input,
                    sequence=sequence,
                    isParallel=flags[sequence],
                )
                for sequence, pending in enumerate(self.steps)
            ],
        )


class TurnSegmenter:
    """Single-pass Idle/InTurn state machine over chronologically ordered events."""

    def __init__(self, session_id: str = "") -> None:
        self.session_id = session_id
        self.state = SegmenterState.IDLE
        self._current: TurnBuilder | None = None
        self._turns: list[Turn] = []

    @property
    def turns(self) -> list[Turn]:
        return list(self._turns)

    def feed(self, event: Event) -> None:
        variant = classify_event(event)
        if isinstance(variant, HumanPrompt):
            self._open(variant.event.timestamp)
        elif isinstance(variant, ToolInvocation):
            self._add_steps(variant)
        elif isinstance(variant, TurnComplete):
            self._complete(variant.duration_ms)
        elif isinstance(variant, Inert):
            return

    def finish(self) -> list[Turn]:
        if self.state is SegmenterState.IN_TURN:
            self._close()
        return self.turns

    def _open(self, started_at: datetime | None) -> None:
        if self.state is SegmenterState.IN_TURN:
            self._close()
        self._current = TurnBuilder(started_at=started_at)
        self.state = SegmenterState.IN_TURN

    def _add_steps(self, invocation: ToolInvocation) -> None:
        if self.state is not SegmenterState.IN_TURN or self._current is None:
            logger.debug("line %s: tool use outside a turn ignored", invocation.event.line_number)
            return
        for block in invocation.blocks:
            self._current.steps.append(
                PendingStep(
                    tool_name=block.name,
                    tool_use_id=block.id,
                    input=block.input,
                    origin=invocation.origin,
                )
            )

    def _complete(self, duration_ms: int) -> None:
        if self.state is not SegmenterState.IN_TURN or self._current is None:
            return
        self._current.duration_ms = duration_ms
        self._close()

    def _close(self) -> None:
        if self._current is None:
            return
        self._turns.append(self._current.build(self.session_id, len(self._turns)))
        self._current = None
        self.state = SegmenterState.IDLE


def detect_session_id(events: Iterable[Event]) -> str:
    for event in events:
        if event.session_id:
            return event.session_id
    return ""


def segment_turns(events: list[Event], session_id: str | None = None) -> list[Turn]:
    """Run the segmenter over already-ordered events."""
    segmenter = TurnSegmenter(detect_session_id(events) if session_id is None else session_id)
    for event in events:
        segmenter.feed(event)
    return segmenter.finish()
