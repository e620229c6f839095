"""
Interval Ticker for periodic monitoring jobs
Runs one evaluation callable on a fixed cadence in a background thread.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.errors import AppError

logger = logging.getLogger(__name__)


class IntervalTicker:
    """
    Cancellable periodic job

    - start() schedules the job every interval_seconds (first tick immediately)
    - stop() prevents further ticks; a tick already running is not interrupted
    - run_once() runs a single tick synchronously and returns its result
    """

    def __init__(
        self,
        job: Callable[[], Any],
        interval_seconds: int,
        name: str,
        run_immediately: bool = True
    ):
        """
        Args:
            job: Evaluation entry point called on every tick
            interval_seconds: Seconds between ticks
            name: Job id, also used in log lines
            run_immediately: Fire the first tick as soon as the ticker starts
        """
        self.job = job
        self.interval_seconds = interval_seconds
        self.name = name
        self.run_immediately = run_immediately
        self.scheduler = None
        self.is_running = False
        self.last_run: Optional[datetime] = None
        self.last_status: Any = None
        self.last_error: Optional[str] = None

    def run_once(self) -> Any:
        """Run one tick now; errors propagate to the caller"""
        self.last_run = datetime.now()
        result = self.job()
        self.last_status = result
        self.last_error = None
        return result

    def _tick(self):
        """Scheduled tick; failures are logged and kept for get_status()"""
        try:
            self.run_once()
        except AppError as e:
            self.last_error = e.message
            logger.error(f"{self.name} tick failed [{e.code}]: {e.message}")

    def start(self) -> bool:
        """Start the background scheduler"""
        if self.is_running:
            logger.warning(f"{self.name} already running")
            return True

        self.scheduler = BackgroundScheduler()

        job_kwargs = {}
        if self.run_immediately:
            job_kwargs['next_run_time'] = datetime.now()

        self.scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.name,
            name=self.name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs
        )

        self.scheduler.start()
        self.is_running = True
        logger.info(f"{self.name} started. Running every {self.interval_seconds} seconds.")

        return True

    def stop(self):
        """Stop scheduling further ticks"""
        if self.scheduler and self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info(f"{self.name} stopped")

    def get_status(self) -> dict:
        """Get current ticker status"""
        return {
            'name': self.name,
            'is_running': self.is_running,
            'interval_seconds': self.interval_seconds,
            'last_run': self.last_run.isoformat() if self.last_run else None,
            'last_error': self.last_error
        }
