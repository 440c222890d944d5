"""
Scheduler for background refreshes.

This module uses APScheduler to reload the credit balance and the saved
ticket list at a fixed interval, so server-driven changes (settled tickets,
weekly credit resets) show up without user action. Refresh failures are
logged only; overlapping runs are skipped.
"""

import logging
import threading
from typing import Callable, Optional
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR
import pytz

from betly.config import Config

# Configure module logger
logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Runs a refresh callable on an interval in a background thread.

    Only one refresh runs at a time; a tick that arrives while the previous
    refresh is still in flight is skipped.
    """

    def __init__(self, refresh_function: Callable[[], None]):
        """
        Args:
            refresh_function: Callable performing one refresh (e.g. BetlySession.refresh)
        """
        self.refresh_function = refresh_function
        self.scheduler: Optional[BackgroundScheduler] = None
        self.is_running = False
        self.interval_minutes: Optional[int] = None
        self._execution_lock = threading.Lock()
        self._job_id = "refresh_job"

    def start(self, interval_minutes: Optional[int] = None) -> bool:
        """
        Start the scheduler.

        Args:
            interval_minutes: Minutes between refreshes. If None, uses Config.REFRESH_INTERVAL_MINUTES

        Returns:
            True if the scheduler started, False otherwise
        """
        if self.is_running:
            logger.warning("Scheduler is already running")
            return False

        if interval_minutes is None:
            interval_minutes = Config.REFRESH_INTERVAL_MINUTES

        if interval_minutes < 1:
            logger.error(f"Invalid interval_minutes: {interval_minutes}. Must be >= 1")
            return False

        self.scheduler = BackgroundScheduler(timezone=pytz.timezone(Config.REFRESH_TIMEZONE))
        self.scheduler.add_listener(
            self._on_job_executed,
            EVENT_JOB_EXECUTED | EVENT_JOB_ERROR
        )
        self.scheduler.add_job(
            func=self.run_once,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=self._job_id,
            name="Balance and ticket refresh",
            replace_existing=True,
            max_instances=1
        )
        self.scheduler.start()
        self.is_running = True
        self.interval_minutes = interval_minutes

        logger.info(f"Refresh scheduler started with {interval_minutes} minute interval")
        return True

    def stop(self, wait: bool = True) -> bool:
        """
        Stop the scheduler.

        Args:
            wait: Whether to wait for a running refresh to complete

        Returns:
            True if the scheduler was stopped, False if it was not running
        """
        if not self.is_running or not self.scheduler:
            logger.warning("Scheduler is not running")
            return False

        self.scheduler.shutdown(wait=wait)
        self.scheduler = None
        self.is_running = False
        logger.info("Refresh scheduler stopped")
        return True

    def run_once(self) -> bool:
        """
        Execute one refresh unless another is in progress.

        Returns:
            True if a refresh ran to completion, False if skipped or failed
        """
        if not self._execution_lock.acquire(blocking=False):
            logger.warning("Refresh skipped: previous run still in progress")
            return False

        start_time = datetime.utcnow()
        try:
            self.refresh_function()
            duration = (datetime.utcnow() - start_time).total_seconds()
            logger.debug(f"Refresh completed in {duration:.2f} seconds")
            return True

        except Exception as e:
            logger.error(f"Refresh failed: {e}", exc_info=True)
            return False

        finally:
            self._execution_lock.release()

    def _on_job_executed(self, event) -> None:
        if event.exception:
            logger.error(f"Job {event.job_id} raised an exception: {event.exception}")
        else:
            logger.debug(f"Job {event.job_id} executed successfully")

    def get_next_run_time(self) -> Optional[datetime]:
        if not self.is_running or not self.scheduler:
            return None

        job = self.scheduler.get_job(self._job_id)
        return job.next_run_time if job else None

    def get_status(self) -> dict:
        """
        Current scheduler status.

        Returns:
            Dictionary with is_running, next_run_time and interval_minutes
        """
        next_run = self.get_next_run_time()
        return {
            "is_running": self.is_running,
            "next_run_time": next_run.isoformat() if next_run else None,
            "interval_minutes": self.interval_minutes if self.is_running else None,
        }
