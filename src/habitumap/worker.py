"""Background daily-reset checker for habitumap.

Checks the local-day boundary every ``HABITUMAP_RESET_CHECK_INTERVAL_S``
seconds and marks all habits incomplete once per calendar day.

Run with:  python -m habitumap.worker
"""
from __future__ import annotations

import logging
import signal
import threading

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [worker] %(levelname)s %(message)s",
)
log = logging.getLogger(__name__)


def build_scheduler():
    from habitumap.core.habits import HabitService
    from habitumap.core.reset import DailyResetScheduler
    from habitumap.storage.repository import get_repository

    repo = get_repository()
    return DailyResetScheduler(repo, HabitService(repo))


def main() -> None:
    from habitumap.config import settings

    log.info("Worker starting (interval=%ds)", settings.reset_check_interval_s)

    stop = threading.Event()

    def _shutdown(signum, _frame) -> None:
        log.info("Signal %s received, stopping", signum)
        stop.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    scheduler = build_scheduler()
    log.info("Next reset in %s", scheduler.next_reset_string())
    scheduler.run(settings.reset_check_interval_s, stop)
    log.info("Worker stopped")


if __name__ == "__main__":
    main()
