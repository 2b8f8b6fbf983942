"""Chronological ordering of decoded transcript events."""
from __future__ import annotations

from typing import Iterable

from desire_path.date_utils import sort_key
from desire_path.parsers.events import Event


def order_events(events: Iterable[Event]) -> list[Event]:
    """Sort events by timestamp, keeping file order for equal timestamps.

    Tool results are often written in the same millisecond as the call that
    produced them, so the sort must be stable. Events with no timestamp sort
    first, in file order.
    """
    return sorted(events, key=lambda event: sort_key(event.timestamp))
