"""Attach tool_result outcomes to reconstructed steps."""
from __future__ import annotations

import logging
from typing import Iterable

from desire_path.models import Turn
from desire_path.parsers.events import Event, ToolResultBlock

logger = logging.getLogger("desire_path.parsers")


def index_outcomes(events: Iterable[Event]) -> dict[str, ToolResultBlock]:
    """Map tool_use id to the first tool_result block reported for it.

    One outcome event may carry results for several invocations. Blocks
    without a tool_use id and events without a block list are skipped.
    """
    outcomes: dict[str, ToolResultBlock] = {}
    for event in events:
        if event.type != "user" or event.message is None or event.message.blocks is None:
            continue
        for block in event.message.blocks:
            if not isinstance(block, ToolResultBlock):
                continue
            if not block.tool_use_id:
                logger.debug("line %s: tool_result without tool_use_id skipped", event.line_number)
                continue
            outcomes.setdefault(block.tool_use_id, block)
    return outcomes


def apply_outcomes(turns: list[Turn], events: Iterable[Event]) -> list[Turn]:
    """Set isError/error on each step whose outcome reports a failure."""
    outcomes = index_outcomes(events)
    if not outcomes:
        return turns
    for turn in turns:
        for step in turn.steps:
            outcome = outcomes.get(step.toolUseId) if step.toolUseId else None
            if outcome is None or not outcome.is_error:
                continue
            step.isError = True
            step.error = outcome.content
    return turns
