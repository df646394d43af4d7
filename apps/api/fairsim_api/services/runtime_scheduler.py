"""Background ticker that advances the fair at a fixed cadence."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import threading
import uuid

from packages.fairsim_core.sim.runner import SimulationBusyError, tick_simulation


logger = logging.getLogger("fairsim_api.runtime_scheduler")
DEFAULT_TICK_INTERVAL_MS = 500
MIN_TICK_INTERVAL_MS = 10


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class FairRuntimeScheduler:
    """One daemon thread calling ``tick_simulation(frames=1)`` every interval.

    A tick that finds the runtime lock held (an HTTP tick or reset in flight)
    is counted as skipped rather than queued.
    """

    def __init__(self) -> None:
        self._worker: threading.Thread | None = None
        self._halt = threading.Event()
        self._guard = threading.Lock()
        self._interval_ms = DEFAULT_TICK_INTERVAL_MS
        self._counters = {"frames": 0, "busy_skips": 0, "errors": 0}
        self._last_tick_at: str | None = None
        self._last_error: str | None = None
        self._instance_id = f"ticker-{uuid.uuid4().hex[:12]}"

    def _alive(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self, *, tick_interval_ms: int | None = None) -> bool:
        with self._guard:
            if self._alive():
                return False
            if tick_interval_ms is not None:
                self._interval_ms = max(MIN_TICK_INTERVAL_MS, int(tick_interval_ms))
            self._halt = threading.Event()
            self._worker = threading.Thread(
                target=self._loop, args=(self._halt,), name="fairsim-ticker", daemon=True
            )
            self._worker.start()
        logger.info("[RUNTIME] Ticker started every %dms", self._interval_ms)
        return True

    def stop(self, *, join_timeout_seconds: float = 3.0) -> bool:
        with self._guard:
            worker = self._worker
            if worker is None:
                return False
            self._halt.set()
        worker.join(timeout=max(0.1, float(join_timeout_seconds)))
        with self._guard:
            if worker.is_alive():
                logger.warning("[RUNTIME] Ticker did not stop within %.1fs", join_timeout_seconds)
                return False
            if self._worker is worker:
                self._worker = None
        logger.info("[RUNTIME] Ticker stopped after %d frames", self._counters["frames"])
        return True

    def status(self) -> dict[str, object]:
        with self._guard:
            return {
                "running": self._alive(),
                "instance_id": self._instance_id,
                "tick_interval_ms": self._interval_ms,
                "frames_processed": self._counters["frames"],
                "busy_skips": self._counters["busy_skips"],
                "errors": self._counters["errors"],
                "last_tick_at": self._last_tick_at,
                "last_error": self._last_error,
            }

    def _tick_once(self) -> None:
        try:
            tick_simulation(frames=1)
        except SimulationBusyError:
            with self._guard:
                self._counters["busy_skips"] += 1
            logger.debug("[RUNTIME] Runtime lock held, frame skipped")
            return
        except Exception as exc:
            with self._guard:
                self._counters["errors"] += 1
                self._last_error = f"{exc.__class__.__name__}: {exc}"
            logger.exception("[RUNTIME] Frame failed: %s", exc)
            return
        with self._guard:
            self._counters["frames"] += 1
            self._last_tick_at = _utc_now_iso()

    def _loop(self, halt: threading.Event) -> None:
        while not halt.is_set():
            self._tick_once()
            halt.wait(self._interval_ms / 1000.0)


_TICKER = FairRuntimeScheduler()


def start_fair_runtime_scheduler(*, tick_interval_ms: int | None = None) -> bool:
    return _TICKER.start(tick_interval_ms=tick_interval_ms)


def stop_fair_runtime_scheduler() -> bool:
    return _TICKER.stop()


def fair_runtime_scheduler_status() -> dict[str, object]:
    return _TICKER.status()
