"""Crawl cycle coordination for pricewatch."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from ..alerts.email import EmailNotifier, LogTransport, SmtpTransport
from ..exceptions import ExtractionError, StoreIOError
from ..extractors.price import PriceExtractor
from ..storage.models import Item
from ..storage.store import SubscriptionStore
from ..utils.config import Config, Settings, get_config, get_settings


@dataclass
class CycleReport:
    """Outcome of one crawl cycle."""

    checked: int = 0
    failed: int = 0
    dropped: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    skipped: bool = False
    store_error: Optional[str] = None


class PriceMonitor:
    """Re-prices every tracked item and notifies subscribers of drops."""

    def __init__(
        self,
        store: SubscriptionStore,
        extractor: PriceExtractor,
        notifier: EmailNotifier,
    ):
        self.store = store
        self.extractor = extractor
        self.notifier = notifier
        self._running = False

    @classmethod
    def from_config(
        cls, config: Optional[Config] = None, settings: Optional[Settings] = None
    ) -> "PriceMonitor":
        """Wire up store, extractor and notifier from configuration."""
        if config is None:
            config = get_config()
        if settings is None:
            settings = get_settings()

        extractor = PriceExtractor.from_config(config)
        store = SubscriptionStore(config.store.path, extractor=extractor)

        if config.email.enabled and settings.smtp_user:
            transport = SmtpTransport.from_settings(settings)
            logger.info(f"Initialized SMTP transport via {settings.smtp_host}:{settings.smtp_port}")
        else:
            transport = LogTransport()
            logger.warning("SMTP not configured; price-drop mails will only be logged")

        notifier = EmailNotifier(transport, subject=config.email.subject)
        return cls(store, extractor, notifier)

    async def run_crawl_cycle(self) -> CycleReport:
        """Check every tracked item once.

        Items whose price can't be extracted are skipped for this cycle. A
        call made while another cycle is still running returns immediately.
        """
        if self._running:
            logger.warning("Crawl cycle already in progress, skipping")
            return CycleReport(skipped=True)

        self._running = True
        try:
            return await self._crawl()
        finally:
            self._running = False

    async def _crawl(self) -> CycleReport:
        report = CycleReport()
        start_time = datetime.utcnow()

        try:
            snapshot = self.store.snapshot()
        except StoreIOError as e:
            logger.error(f"Crawl cycle aborted, store unreadable: {e}")
            report.store_error = str(e)
            return report

        logger.info(f"Starting crawl cycle over {len(snapshot.items)} items")

        for item in snapshot.items:
            try:
                await self._check_item(item, report)
            except ExtractionError as e:
                report.failed += 1
                logger.warning(f"Skipping {item.link}: {e.reason}")
            except Exception as e:
                report.failed += 1
                logger.exception(f"Error checking {item.link}: {e}")

        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info(
            f"Crawl cycle done in {duration:.1f}s: {report.checked} checked, "
            f"{report.failed} failed, {report.dropped} price drops, "
            f"{report.notifications_sent} mails sent, "
            f"{report.notifications_failed} mails failed"
        )
        return report

    async def _check_item(self, item: Item, report: CycleReport):
        new_price = await self.extractor.extract(item.link, item.site)
        report.checked += 1

        old_price = item.price
        if not new_price < old_price:
            logger.debug(f"No drop for {item.link}: {old_price} -> {new_price}")
            return

        report.dropped += 1
        title = await self.extractor.fetch_title(item.link)
        logger.info(f"Price drop for {title}: {old_price} -> {new_price}")

        for email in item.subscribers:
            try:
                sent = await self.notifier.notify(
                    email, title, old_price, new_price, item.link
                )
            except Exception as e:
                logger.error(f"Unexpected error notifying {email}: {e}")
                sent = False

            if sent:
                report.notifications_sent += 1
            else:
                report.notifications_failed += 1

        if not self.store.update_price(item.link, new_price):
            logger.info(f"{item.link} was removed during the cycle, price not stored")
