"""
Centralized configuration using pydantic-settings.

How it works:
- Reads environment variables automatically (e.g., MAX_CONCURRENT_JOBS env var → Settings.MAX_CONCURRENT_JOBS)
- Falls back to defaults defined here if env vars are not set
- Can also read from a .env file in the project root

Schedulers take explicit constructor arguments; `create_scheduler_from_settings`
in scheduler/registry.py is the one place that reads these values for them.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Resource pool ───────────────────────────────────────────
    TOTAL_CPU_CAPACITY: float = 8.0      # cores
    TOTAL_MEMORY_CAPACITY: float = 16.0  # GB

    # ── Scheduling loop ─────────────────────────────────────────
    MAX_CONCURRENT_JOBS: int = 3
    POLL_INTERVAL: float = 0.1           # seconds between loop ticks

    # ── Policies ────────────────────────────────────────────────
    DEFAULT_SCHEDULING_POLICY: str = "priority"
    ROUND_ROBIN_TIME_SLICE_MS: int = 2000
    FAIR_SHARE_DEFAULT_PERCENT: float = 10.0  # share given to unknown owners

    # ── Job defaults ────────────────────────────────────────────
    DEFAULT_MAX_RETRIES: int = 3
    DEFAULT_CPU_REQUIREMENT: float = 1.0
    DEFAULT_MEMORY_REQUIREMENT: float = 0.5
    DEFAULT_ESTIMATED_DURATION: float = 5.0  # seconds

    # ── Simulated execution ─────────────────────────────────────
    SIMULATED_FAILURE_RATE: float = 0.1

    # ── App ─────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Module-level instance shared by every entry point
settings = Settings()
