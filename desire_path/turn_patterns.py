"""Turn-length and tool-sequence summaries over reconstructed turns."""
from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from desire_path import config
from desire_path.models import Turn, TurnPatternStats, TurnRow

PATTERN_SEPARATOR = " → "


def _runs(tools: Sequence[str]) -> list[tuple[str, int]]:
    runs: list[tuple[str, int]] = []
    for tool in tools:
        if runs and runs[-1][0] == tool:
            runs[-1] = (tool, runs[-1][1] + 1)
        else:
            runs.append((tool, 1))
    return runs


def abstract_pattern(tools: Sequence[str]) -> str:
    """Collapse consecutive repeats, e.g. Read, Read, Read -> ``Read{3+}``."""
    parts = [f"{tool}{{{count}+}}" if count > 1 else tool for tool, count in _runs(tools)]
    return PATTERN_SEPARATOR.join(parts)


def pattern_key(tools: Sequence[str]) -> str:
    """Clustering key: every run of two or more collapses to ``Tool{2+}``."""
    parts = [f"{tool}{{2+}}" if count > 1 else tool for tool, count in _runs(tools)]
    return PATTERN_SEPARATOR.join(parts)


def long_turns(turns: Iterable[Turn], min_length: int | None = None) -> list[Turn]:
    threshold = config.TURN_LENGTH_THRESHOLD if min_length is None else min_length
    return [turn for turn in turns if len(turn.steps) >= threshold]


def turn_rows(turns: Iterable[Turn]) -> list[TurnRow]:
    return [
        TurnRow(
            sessionId=turn.sessionId,
            turnIndex=turn.index,
            length=len(turn.steps),
            durationMs=turn.durationMs,
            tools=turn.tools,
            startedAt=turn.startedAt or None,
        )
        for turn in turns
    ]


def cluster_patterns(turns: Iterable[Turn]) -> list[TurnPatternStats]:
    """Group turns by pattern key, most frequent first."""
    counts: dict[str, int] = defaultdict(int)
    total_lengths: dict[str, int] = defaultdict(int)
    sessions: dict[str, set[str]] = defaultdict(set)
    for turn in turns:
        key = pattern_key(turn.tools)
        counts[key] += 1
        total_lengths[key] += len(turn.steps)
        sessions[key].add(turn.sessionId)

    stats = [
        TurnPatternStats(
            pattern=key,
            count=count,
            avgLength=total_lengths[key] / count,
            sessions=len(sessions[key]),
        )
        for key, count in counts.items()
    ]
    stats.sort(key=lambda item: item.count, reverse=True)
    return stats


def turns_matching_pattern(turns: Iterable[Turn], pattern: str) -> list[Turn]:
    return [turn for turn in turns if pattern_key(turn.tools) == pattern]
