import json
import tempfile
import unittest
from pathlib import Path

from desire_path.models import Step, Turn
from desire_path.turn_context import find_turn_context, lookup_turn_context, make_turn_id


class TurnContextTests(unittest.TestCase):
    def _turns(self) -> list[Turn]:
        return [
            Turn(sessionId="sess-1", index=0, steps=[Step(toolName="Read", toolUseId="t1", sequence=0)]),
            Turn(
                sessionId="sess-1",
                index=1,
                steps=[
                    Step(toolName="Grep", toolUseId="t2", sequence=0),
                    Step(toolName="Read", toolUseId="t3", sequence=1),
                    Step(toolName="Edit", toolUseId="t4", sequence=2),
                ],
            ),
        ]

    def test_finds_position_within_turn(self) -> None:
        context = find_turn_context(self._turns(), "t3")

        self.assertIsNotNone(context)
        assert context is not None
        self.assertEqual(context.turnId, "sess-1:1")
        self.assertEqual(context.turnSequence, 1)
        self.assertEqual(context.turnLength, 3)

    def test_miss_returns_none(self) -> None:
        self.assertIsNone(find_turn_context(self._turns(), "t404"))
        self.assertIsNone(find_turn_context(self._turns(), ""))

    def test_fallback_session_used_only_when_turn_has_none(self) -> None:
        turns = [Turn(index=2, steps=[Step(toolUseId="t1")])]

        self.assertEqual(find_turn_context(turns, "t1", "hook-session").turnId, "hook-session:2")
        self.assertEqual(find_turn_context(self._turns(), "t1", "hook-session").turnId, "sess-1:0")

    def test_make_turn_id(self) -> None:
        self.assertEqual(make_turn_id("abc", 7), "abc:7")


class LookupTurnContextTests(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "session.jsonl"
        path.write_text(text, encoding="utf-8")
        return path

    def test_reads_transcript_and_locates_step(self) -> None:
        lines = [
            {"type": "user", "sessionId": "s-1", "timestamp": "2026-01-15T10:00:00Z", "message": {"role": "user", "content": "go"}},
            {
                "type": "assistant",
                "uuid": "a1",
                "timestamp": "2026-01-15T10:00:01Z",
                "message": {
                    "role": "assistant",
                    "content": [
                        {"type": "tool_use", "id": "t1", "name": "Grep", "input": {}},
                        {"type": "tool_use", "id": "t2", "name": "Glob", "input": {}},
                    ],
                },
            },
        ]
        path = self._write("\n".join(json.dumps(line) for line in lines))

        context = lookup_turn_context(path, "t2")

        self.assertIsNotNone(context)
        assert context is not None
        self.assertEqual((context.turnId, context.turnSequence, context.turnLength), ("s-1:0", 1, 2))

    def test_unreadable_or_invalid_transcript_yields_none(self) -> None:
        self.assertIsNone(lookup_turn_context("/nonexistent/session.jsonl", "t1"))
        self.assertIsNone(lookup_turn_context(self._write("{not json\n"), "t1"))
        self.assertIsNone(lookup_turn_context("", "t1"))


if __name__ == "__main__":
    unittest.main()
