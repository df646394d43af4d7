#!/usr/bin/env python3

from __future__ import annotations

import threading
import time
import unittest
from unittest import mock

from apps.api.fairsim_api.services.runtime_scheduler import FairRuntimeScheduler
from packages.fairsim_core.sim.runner import SimulationBusyError, get_simulation_state, reset_simulation_for_tests

TICK_TARGET = "apps.api.fairsim_api.services.runtime_scheduler.tick_simulation"


class FairRuntimeSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        reset_simulation_for_tests(dialogue=None)
        self.scheduler = FairRuntimeScheduler()

    def tearDown(self) -> None:
        self.scheduler.stop()

    def test_tick_once_counts_frames(self) -> None:
        self.scheduler._tick_once()
        status = self.scheduler.status()
        self.assertEqual(status["frames_processed"], 1)
        self.assertIsNotNone(status["last_tick_at"])
        self.assertEqual(get_simulation_state()["frame_count"], 1)

    def test_busy_runtime_is_skipped(self) -> None:
        with mock.patch(TICK_TARGET, side_effect=SimulationBusyError("busy")):
            self.scheduler._tick_once()
        status = self.scheduler.status()
        self.assertEqual(status["busy_skips"], 1)
        self.assertEqual(status["frames_processed"], 0)
        self.assertIsNone(status["last_error"])

    def test_failures_are_recorded(self) -> None:
        with mock.patch(TICK_TARGET, side_effect=ValueError("bad frame")):
            self.scheduler._tick_once()
        status = self.scheduler.status()
        self.assertEqual(status["errors"], 1)
        self.assertEqual(status["last_error"], "ValueError: bad frame")

    def test_start_stop(self) -> None:
        self.assertFalse(self.scheduler.stop())
        self.assertTrue(self.scheduler.start(tick_interval_ms=1))
        self.assertEqual(self.scheduler.status()["tick_interval_ms"], 10)
        self.assertFalse(self.scheduler.start(tick_interval_ms=1000))
        self.assertEqual(self.scheduler.status()["tick_interval_ms"], 10)

        deadline = time.time() + 3
        while time.time() < deadline and self.scheduler.status()["frames_processed"] == 0:
            time.sleep(0.01)
        self.assertGreater(self.scheduler.status()["frames_processed"], 0)

        self.assertTrue(self.scheduler.stop())
        self.assertFalse(self.scheduler.status()["running"])

    def test_slow_frame_keeps_single_worker(self) -> None:
        entered = threading.Event()
        release = threading.Event()

        def slow_tick(frames: int = 1):
            entered.set()
            release.wait(5)

        with mock.patch(TICK_TARGET, side_effect=slow_tick):
            self.assertTrue(self.scheduler.start(tick_interval_ms=10))
            self.assertTrue(entered.wait(2))

            # join times out while the frame is still running
            self.assertFalse(self.scheduler.stop(join_timeout_seconds=0.1))
            self.assertTrue(self.scheduler.status()["running"])
            self.assertFalse(self.scheduler.start(tick_interval_ms=10))

            release.set()
            self.assertTrue(self.scheduler.stop())
        self.assertFalse(self.scheduler.status()["running"])


if __name__ == "__main__":
    unittest.main()
