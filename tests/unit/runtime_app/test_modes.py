"""Tests for the single-slot mode history."""

from __future__ import annotations

import unittest

from redisrover.modes import Mode, ModeTracker


class ModeTrackerTests(unittest.TestCase):
    def test_back_restores_remembered_mode_once(self) -> None:
        modes = ModeTracker(Mode.KEYSPACE)
        modes.enter(Mode.POPUP_FILTER)
        self.assertIs(modes.back(), Mode.KEYSPACE)
        self.assertIsNone(modes.previous)
        self.assertIs(modes.back(), Mode.KEYSPACE)

    def test_overwritten_history_falls_back_to_last_tab(self) -> None:
        modes = ModeTracker(Mode.INFO)
        modes.switch(Mode.KEYSPACE)
        modes.enter(Mode.CMD)
        modes.enter(Mode.POPUP_ERROR)

        self.assertIs(modes.back(), Mode.CMD)
        self.assertIs(modes.back(), Mode.KEYSPACE)
        self.assertEqual(modes.base, Mode.KEYSPACE)

    def test_non_tab_initial_mode_falls_back_to_info(self) -> None:
        modes = ModeTracker(Mode.POPUP_INFO)
        self.assertIs(modes.back(), Mode.INFO)


if __name__ == "__main__":
    unittest.main()
