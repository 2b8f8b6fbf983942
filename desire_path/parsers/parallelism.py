"""Flag tool invocations that the assistant issued together."""
from __future__ import annotations

from typing import Sequence


def detect_parallel(origins: Sequence[str | None]) -> list[bool]:
    """Return one flag per step: True when it shares an origin with a neighbour.

    ``origins`` holds the originating assistant response of each step, in the
    order the steps were observed. Runs propagate: three adjacent steps with one
    origin are all flagged. Steps with no origin are never flagged.
    """
    flags = [False] * len(origins)
    for i in range(1, len(origins)):
        current = origins[i]
        if current and current == origins[i - 1]:
            flags[i - 1] = True
            flags[i] = True
    return flags
