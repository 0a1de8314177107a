"""Job scheduling for pricewatch."""

from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from ..utils.config import Config

if TYPE_CHECKING:
    from .coordinator import PriceMonitor


class JobScheduler:
    """Runs the crawl cycle on a fixed interval.

    Only one cycle runs at a time: a tick that comes due while the previous
    cycle is still running is skipped, and missed ticks are coalesced.
    """

    def __init__(self, monitor: "PriceMonitor", config: Config):
        """Initialize job scheduler.

        Args:
            monitor: Price monitor whose crawl cycle is scheduled
            config: Configuration model
        """
        self.monitor = monitor
        self.config = config
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": config.schedule.misfire_grace_time_seconds,
            }
        )

    def configure_jobs(self):
        """Set up the crawl job based on configuration."""
        schedule = self.config.schedule

        self.scheduler.add_job(
            self.monitor.run_crawl_cycle,
            IntervalTrigger(hours=schedule.crawl_interval_hours),
            id="crawl_cycle",
            name="Price Crawl Cycle",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.info(f"Scheduled crawl cycle every {schedule.crawl_interval_hours} hours")

        if schedule.run_on_start:
            self.scheduler.add_job(
                self.monitor.run_crawl_cycle,
                DateTrigger(),
                id="crawl_on_start",
                name="Initial Price Crawl",
                replace_existing=True,
            )
            logger.info("Scheduled an initial crawl cycle on start")

    def start(self):
        """Start the scheduler."""
        logger.info("Starting job scheduler")
        self.scheduler.start()

    def stop(self):
        """Stop the scheduler."""
        logger.info("Stopping job scheduler")
        self.scheduler.shutdown()

    def get_jobs(self):
        """Get list of scheduled jobs."""
        return self.scheduler.get_jobs()
