#!/usr/bin/env python3

from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from scripts.benchmark_fair_runtime import main, percentile, summarize_latencies


class BenchmarkScriptTests(unittest.TestCase):
    def test_percentile_interpolates(self) -> None:
        self.assertEqual(percentile([], 0.5), 0.0)
        self.assertEqual(percentile([4.0], 0.95), 4.0)
        self.assertAlmostEqual(percentile([1.0, 2.0, 3.0, 4.0], 0.5), 2.5)

    def test_summarize_empty(self) -> None:
        self.assertEqual(summarize_latencies([])["count"], 0)

    def test_headless_run_writes_report(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "report.json"
            argv = ["benchmark_fair_runtime.py", "--frames", "120", "--seed", "3", "--output", str(output)]
            with mock.patch("sys.argv", argv), contextlib.redirect_stdout(io.StringIO()):
                main()
            report = json.loads(output.read_text(encoding="utf-8"))
        self.assertEqual(report["frames"], 120)
        self.assertEqual(report["agents"], 7)
        self.assertEqual(report["latency_ms"]["process_frame"]["count"], 120)
        self.assertEqual(len(report["leaderboard"]["students"]), 4)
        self.assertLessEqual(report["conversations_closed"], report["conversations_started"])


if __name__ == "__main__":
    unittest.main()
