"""
Host process entry point.

Builds one scheduler from settings, seeds it with demo jobs and runs its
loop in a daemon thread, with a SimulatedExecutor standing in for real work.
The main thread logs a status line every few seconds and waits for Ctrl+C
(SIGINT) or a kill signal (SIGTERM) to shut down gracefully.

To run:
    python -m worker.main                          # policy from settings
    python -m worker.main --policy fair_share      # override
    python -m worker.main --policy round_robin --exit-when-idle
"""

import argparse
import logging
import signal
import threading

from config.settings import settings
from models.enums import SchedulingPolicy
from scheduler.registry import create_scheduler_from_settings
from scripts.seed_jobs import seed
from worker.executor import SimulatedExecutor

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _log_status(scheduler) -> None:
    snap = scheduler.snapshot()
    res = snap.resources
    logger.info(
        f"[{snap.policy}] queued={snap.queue_size} running={snap.running_count} "
        f"completed={snap.completed_count} failed={snap.failed_count} "
        f"cpu={res.used_cpu:g}/{res.total_cpu:g} mem={res.used_memory:g}/{res.total_memory:g}"
    )
    for row in snap.owner_shares or []:
        logger.info(
            f"    {row.owner:<12} share={row.allocated_share_percent:5.1f}% "
            f"usage={row.current_usage:6.2f} ratio={row.fair_share_ratio:5.2f} jobs={row.job_count}"
        )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run a scheduler over simulated jobs")
    parser.add_argument(
        "--policy", type=str, default=settings.DEFAULT_SCHEDULING_POLICY,
        choices=[p.value for p in SchedulingPolicy],
    )
    parser.add_argument(
        "--status-interval", type=float, default=2.0,
        help="Seconds between status lines (default: 2.0)",
    )
    parser.add_argument(
        "--exit-when-idle", action="store_true",
        help="Stop once no job is queued or running",
    )
    args = parser.parse_args(argv)

    executor = SimulatedExecutor(failure_rate=settings.SIMULATED_FAILURE_RATE)
    scheduler = create_scheduler_from_settings(policy=args.policy, executor=executor)
    seed(scheduler)
    scheduler.start()

    # ── Graceful shutdown on Ctrl+C or SIGTERM ──────────────────
    shutdown_event = threading.Event()

    def shutdown(signum, frame):
        logger.info("Shutdown signal received, stopping...")
        shutdown_event.set()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    logger.info("Scheduler process running. Press Ctrl+C to stop.")
    while not shutdown_event.wait(args.status_interval):
        _log_status(scheduler)
        snap = scheduler.snapshot()
        if args.exit_when_idle and snap.queue_size == 0 and snap.running_count == 0:
            break

    scheduler.shutdown()
    _log_status(scheduler)
    for job in scheduler.dead_letter():
        logger.warning(f"Dead letter: {job!r} after {job.retry_count} retries: {job.error_message}")
    logger.info("Scheduler process exited")


if __name__ == "__main__":
    main()
