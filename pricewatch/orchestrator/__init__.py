"""Crawl cycle orchestration and scheduling"""

from .coordinator import CycleReport, PriceMonitor
from .scheduler import JobScheduler

__all__ = ["CycleReport", "PriceMonitor", "JobScheduler"]
