"""Engine tunables, overridable through ``FAIRSIM_*`` environment variables."""

from __future__ import annotations

from dataclasses import dataclass
import math
import os


def _truthy_env(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = str(os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    return max(minimum, parsed)


def _float_env(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = str(os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        parsed = float(raw)
    except ValueError:
        return default
    if not math.isfinite(parsed):
        return default
    return max(minimum, parsed)


@dataclass(frozen=True)
class SimulationSettings:
    grid_size: int = 10
    cooldown_ticks: int = 5
    ending_delay_ms: int = 1500
    cleanup_interval_frames: int = 60
    conversation_retention_ms: int = 60_000
    seed_default_world: bool = True
    lock_timeout_seconds: float = 5.0

    @classmethod
    def from_env(cls) -> SimulationSettings:
        defaults = cls()
        return cls(
            grid_size=_int_env("FAIRSIM_GRID_SIZE", defaults.grid_size, minimum=1),
            cooldown_ticks=_int_env("FAIRSIM_COOLDOWN_TICKS", defaults.cooldown_ticks, minimum=1),
            ending_delay_ms=_int_env("FAIRSIM_ENDING_DELAY_MS", defaults.ending_delay_ms),
            cleanup_interval_frames=_int_env(
                "FAIRSIM_CLEANUP_INTERVAL_FRAMES", defaults.cleanup_interval_frames, minimum=1
            ),
            conversation_retention_ms=_int_env(
                "FAIRSIM_CONVERSATION_RETENTION_MS", defaults.conversation_retention_ms
            ),
            seed_default_world=_truthy_env("FAIRSIM_SEED_DEFAULT_WORLD", defaults.seed_default_world),
            lock_timeout_seconds=_float_env("FAIRSIM_LOCK_TIMEOUT_SECONDS", defaults.lock_timeout_seconds),
        )
