import itertools
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.history import state as timeline_state  # noqa: E402
from resume_revision.history.state import EMPTY, At, Empty  # noqa: E402


class TimelineStateTests(unittest.TestCase):
    def test_empty_state_cannot_move(self):
        self.assertFalse(timeline_state.undo(EMPTY).moved)
        self.assertEqual(timeline_state.undo(EMPTY).reason, "nothing_to_undo")
        self.assertFalse(timeline_state.redo(EMPTY, 0).moved)
        self.assertEqual(timeline_state.redo(EMPTY, 0).reason, "nothing_to_redo")

    def test_first_commit_points_at_zero(self):
        state, keep = timeline_state.commit(EMPTY, 0)
        self.assertEqual(state, At(0))
        self.assertEqual(keep, 0)

    def test_commit_after_undo_truncates_future(self):
        state, keep = timeline_state.commit(At(1), 4)
        self.assertEqual(keep, 2)
        self.assertEqual(state, At(2))

    def test_undo_at_oldest_version_does_not_move(self):
        transition = timeline_state.undo(At(0))
        self.assertFalse(transition.moved)
        self.assertEqual(transition.state, At(0))

    def test_invalid_states_are_rejected(self):
        with self.assertRaises(ValueError):
            At(-1)
        with self.assertRaises(ValueError):
            timeline_state.check_invariant(At(3), 3)
        with self.assertRaises(ValueError):
            timeline_state.check_invariant(Empty(), 2)

    def test_state_from_cursor(self):
        self.assertIs(timeline_state.state_from_cursor(-1), EMPTY)
        self.assertEqual(timeline_state.state_from_cursor(2), At(2))

    def test_all_operation_sequences_keep_cursor_in_range(self):
        operations = ("commit", "undo", "redo")
        for size in range(1, 7):
            for sequence in itertools.product(operations, repeat=size):
                versions: list[int] = []
                state = EMPTY
                counter = 0
                for operation in sequence:
                    if operation == "commit":
                        cursor_before = state.cursor
                        state, keep = timeline_state.commit(state, len(versions))
                        self.assertEqual(keep, cursor_before + 1)
                        counter += 1
                        versions = versions[:keep] + [counter]
                        self.assertEqual(state.cursor, len(versions) - 1)
                    elif operation == "undo":
                        state = timeline_state.undo(state).state
                    else:
                        state = timeline_state.redo(state, len(versions)).state
                    self.assertTrue(-1 <= state.cursor < len(versions) or state.cursor == -1)
                    timeline_state.check_invariant(state, len(versions))

    def test_undo_redo_round_trip(self):
        state = EMPTY
        length = 0
        for _ in range(3):
            state, keep = timeline_state.commit(state, length)
            length = keep + 1
        visited = []
        for _ in range(2):
            state = timeline_state.undo(state).state
            visited.append(state.cursor)
        for _ in range(2):
            state = timeline_state.redo(state, length).state
            visited.append(state.cursor)
        self.assertEqual(visited, [1, 0, 1, 2])


if __name__ == "__main__":
    unittest.main()
