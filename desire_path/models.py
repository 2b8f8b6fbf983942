"""Pydantic models for reconstructed transcript turns."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Optional

# ── Turn-related models ─────────────────────────────────────────────

class Step(BaseModel):
    toolName: str = ""
    toolUseId: str = ""
    input: Any = None
    sequence: int = 0
    isParallel: bool = False
    isError: bool = False
    error: str = ""


class Turn(BaseModel):
    sessionId: str = ""
    index: int = 0
    startedAt: str = ""
    durationMs: int = 0  # 0 unless a turn_duration marker closed the turn
    steps: list[Step] = Field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.steps)

    @property
    def tools(self) -> list[str]:
        return [step.toolName for step in self.steps]


class TurnContext(BaseModel):
    """Position of one tool invocation inside its turn."""

    turnId: str
    turnSequence: int
    turnLength: int


# ── Report models ───────────────────────────────────────────────────

class TurnPatternStats(BaseModel):
    pattern: str
    count: int = 0
    avgLength: float = 0.0
    sessions: int = 0


class TurnRow(BaseModel):
    sessionId: str = ""
    turnIndex: int = 0
    length: int = 0
    durationMs: int = 0
    tools: list[str] = Field(default_factory=list)
    startedAt: Optional[str] = None
