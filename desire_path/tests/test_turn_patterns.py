import unittest

from desire_path.models import Step, Turn
from desire_path.turn_patterns import (
    abstract_pattern,
    cluster_patterns,
    long_turns,
    pattern_key,
    turn_rows,
    turns_matching_pattern,
)


def _turn(session: str, index: int, *tools: str) -> Turn:
    return Turn(
        sessionId=session,
        index=index,
        steps=[Step(toolName=tool, toolUseId=f"{session}-{index}-{i}", sequence=i) for i, tool in enumerate(tools)],
    )


class TurnPatternTests(unittest.TestCase):
    def test_abstract_pattern_keeps_run_length(self) -> None:
        self.assertEqual(abstract_pattern(["Grep", "Read", "Read", "Read", "Edit"]), "Grep → Read{3+} → Edit")
        self.assertEqual(abstract_pattern([]), "")

    def test_pattern_key_normalizes_runs(self) -> None:
        self.assertEqual(pattern_key(["Read", "Read", "Read", "Edit"]), "Read{2+} → Edit")
        self.assertEqual(pattern_key(["Read", "Read", "Read", "Read", "Read", "Edit"]), "Read{2+} → Edit")
        self.assertEqual(pattern_key(["Read", "Edit", "Read"]), "Read → Edit → Read")

    def test_long_turns_uses_threshold(self) -> None:
        turns = [_turn("s", 0, "Read"), _turn("s", 1, "Read", "Edit", "Bash")]

        self.assertEqual([t.index for t in long_turns(turns, 3)], [1])
        self.assertEqual(len(long_turns(turns, 0)), 2)

    def test_cluster_patterns_sorted_by_count(self) -> None:
        turns = [
            _turn("a", 0, "Grep", "Read", "Read", "Edit"),
            _turn("b", 0, "Grep", "Read", "Read", "Read", "Read", "Edit"),
            _turn("b", 1, "Bash"),
        ]

        stats = cluster_patterns(turns)

        self.assertEqual(stats[0].pattern, "Grep → Read{2+} → Edit")
        self.assertEqual(stats[0].count, 2)
        self.assertAlmostEqual(stats[0].avgLength, 5.0)
        self.assertEqual(stats[0].sessions, 2)
        self.assertEqual(stats[1].pattern, "Bash")

    def test_turns_matching_pattern(self) -> None:
        turns = [_turn("a", 0, "Read", "Read", "Edit"), _turn("a", 1, "Read", "Edit")]

        self.assertEqual([t.index for t in turns_matching_pattern(turns, "Read{2+} → Edit")], [0])

    def test_turn_rows(self) -> None:
        turn = _turn("sess", 3, "Read", "Edit")
        turn.durationMs = 4000

        row = turn_rows([turn])[0]

        self.assertEqual((row.sessionId, row.turnIndex, row.length, row.durationMs), ("sess", 3, 2, 4000))
        self.assertEqual(row.tools, ["Read", "Edit"])
        self.assertIsNone(row.startedAt)


if __name__ == "__main__":
    unittest.main()
