"""Decode transcript JSONL lines into typed events.

Each non-blank line is one JSON object. Content blocks are decoded here once,
so the segmenter and the outcome correlator never look at raw dicts.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from desire_path import config
from desire_path.date_utils import parse_timestamp

logger = logging.getLogger("desire_path.parsers")

TURN_COMPLETE_SUBTYPES = {"turn_duration"}


class TranscriptDecodeError(ValueError):
    """A transcript line could not be decoded; the whole transcript is rejected."""

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason


# ── Content blocks ──────────────────────────────────────────────────

@dataclass(frozen=True)
class TextBlock:
    text: str = ""


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    input: Any = None


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    is_error: bool = False
    content: str = ""


@dataclass(frozen=True)
class UnknownBlock:
    type: str = ""


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock, UnknownBlock]


@dataclass(frozen=True)
class MessageEnvelope:
    role: str
    text: str | None = None
    blocks: tuple[ContentBlock, ...] | None = None
    message_id: str = ""

    @property
    def is_plain_text(self) -> bool:
        return self.text is not None


@dataclass(frozen=True)
class Event:
    line_number: int
    type: str
    uuid: str = ""
    parent_uuid: str = ""
    subtype: str = ""
    session_id: str = ""
    timestamp: datetime | None = None
    duration_ms: int = 0
    message: MessageEnvelope | None = None
    source_tool_assistant_uuid: str = ""


# ── Segmenter-facing variants ───────────────────────────────────────

@dataclass(frozen=True)
class HumanPrompt:
    event: Event


@dataclass(frozen=True)
class ToolInvocation:
    event: Event
    origin: str
    blocks: tuple[ToolUseBlock, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TurnComplete:
    event: Event
    duration_ms: int = 0


@dataclass(frozen=True)
class Inert:
    event: Event


EventVariant = Union[HumanPrompt, ToolInvocation, TurnComplete, Inert]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _coerce_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def tool_result_text(content: Any) -> str:
    """Flatten a tool_result payload (string or list of text blocks) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                parts.append(item["text"])
        return "\n".join(part for part in parts if part)
    if isinstance(content, dict) and isinstance(content.get("text"), str):
        return content["text"]
    return ""


def _decode_block(raw: Any) -> ContentBlock:
    if not isinstance(raw, dict):
        return UnknownBlock()
    block_type = _text(raw.get("type"))
    if block_type == "text":
        return TextBlock(text=_text(raw.get("text")))
    if block_type == "tool_use":
        return ToolUseBlock(id=_text(raw.get("id")), name=_text(raw.get("name")), input=raw.get("input"))
    if block_type == "tool_result":
        return ToolResultBlock(
            tool_use_id=_text(raw.get("tool_use_id")),
            is_error=raw.get("is_error") is True,
            content=tool_result_text(raw.get("content")),
        )
    return UnknownBlock(type=block_type)


def _decode_message(raw: Any) -> MessageEnvelope | None:
    if not isinstance(raw, dict):
        return None
    role = _text(raw.get("role"))
    message_id = _text(raw.get("id"))
    content = raw.get("content")
    # String content is a human prompt; a list is structured blocks.
    if isinstance(content, str):
        return MessageEnvelope(role=role, text=content, message_id=message_id)
    if isinstance(content, list):
        blocks = tuple(_decode_block(item) for item in content)
        return MessageEnvelope(role=role, blocks=blocks, message_id=message_id)
    return None


def decode_event(record: dict[str, Any], line_number: int) -> Event:
    """Build an Event from one decoded JSON object, tolerating odd field types."""
    message = None
    if "message" in record:
        message = _decode_message(record.get("message"))
        if message is None:
            logger.debug("line %s: unusable message envelope, event treated as inert", line_number)
    return Event(
        line_number=line_number,
        type=_text(record.get("type")),
        uuid=_text(record.get("uuid")),
        parent_uuid=_text(record.get("parentUuid")),
        subtype=_text(record.get("subtype")),
        session_id=_text(record.get("sessionId")),
        timestamp=parse_timestamp(record.get("timestamp")),
        duration_ms=_coerce_int(record.get("durationMs")),
        message=message,
        source_tool_assistant_uuid=_text(record.get("sourceToolAssistantUUID")),
    )


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-JSON constant {token}")


def _split_lines(data: bytes | str) -> list[bytes]:
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    return raw.split(b"\n")


def decode_events(data: bytes | str, *, max_line_bytes: int | None = None) -> list[Event]:
    """Decode a whole transcript, in file order.

    Raises TranscriptDecodeError naming the 1-based line of the first line that
    is not a JSON object or exceeds ``max_line_bytes``.
    """
    limit = config.MAX_LINE_BYTES if max_line_bytes is None else max_line_bytes
    events: list[Event] = []
    for line_number, line in enumerate(_split_lines(data), start=1):
        line = line.rstrip(b"\r")
        if len(line) > limit:
            raise TranscriptDecodeError(line_number, f"line exceeds {limit} bytes")
        if not line.strip():
            continue
        try:
            record = json.loads(line, parse_constant=_reject_constant)
        except ValueError as exc:
            raise TranscriptDecodeError(line_number, f"invalid JSON: {exc}") from exc
        except RecursionError as exc:
            raise TranscriptDecodeError(line_number, "JSON nested too deeply") from exc
        if not isinstance(record, dict):
            raise TranscriptDecodeError(line_number, "expected a JSON object")
        events.append(decode_event(record, line_number))
    return events


def classify_event(event: Event) -> EventVariant:
    """Map a decoded event onto the variant the turn segmenter reacts to."""
    message = event.message
    if event.type == "user":
        if message is not None and message.role == "user" and message.is_plain_text:
            return HumanPrompt(event)
        return Inert(event)
    if event.type == "assistant":
        if message is None or message.role != "assistant" or message.blocks is None:
            return Inert(event)
        tool_blocks = tuple(block for block in message.blocks if isinstance(block, ToolUseBlock))
        if not tool_blocks:
            return Inert(event)
        origin = message.message_id or event.uuid or f"line:{event.line_number}"
        return ToolInvocation(event, origin=origin, blocks=tool_blocks)
    if event.type == "system" and event.subtype in TURN_COMPLETE_SUBTYPES:
        return TurnComplete(event, duration_ms=event.duration_ms)
    return Inert(event)
