"""Main entry point for pricewatch."""

import argparse
import asyncio
import json
import sys

from loguru import logger

from .exceptions import PriceWatchError
from .orchestrator.coordinator import PriceMonitor
from .orchestrator.scheduler import JobScheduler
from .storage.models import RemovalResult
from .utils.config import get_config
from .utils.logger import setup_logging


async def run_scheduler():
    """Run the crawl scheduler on its own."""
    config = get_config()

    logger.info("=" * 80)
    logger.info("pricewatch scheduler - Starting")
    logger.info("=" * 80)

    monitor = PriceMonitor.from_config(config)
    scheduler = JobScheduler(monitor, config)

    scheduler.configure_jobs()
    scheduler.start()

    logger.info("Scheduler started. Press Ctrl+C to stop.")

    try:
        while True:
            await asyncio.sleep(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Shutting down...")
        scheduler.stop()


async def run_check():
    """Run a single crawl cycle."""
    monitor = PriceMonitor.from_config()
    report = await monitor.run_crawl_cycle()
    logger.info(f"Crawl cycle report: {report}")


async def run_subscribe(link: str, email: str):
    """Subscribe an address to a link."""
    monitor = PriceMonitor.from_config()
    result = await monitor.store.add_subscription(link, email)
    print(result.value)


def run_unsubscribe(link: str, email: str) -> int:
    """Unsubscribe an address from a link."""
    monitor = PriceMonitor.from_config()
    result = monitor.store.remove_subscription(link, email)
    print(result.value)
    return 0 if result is RemovalResult.REMOVED else 2


def run_list():
    """Print the store contents."""
    monitor = PriceMonitor.from_config()
    print(json.dumps(monitor.store.snapshot().model_dump(mode="json"), indent=2, ensure_ascii=False))


def run_api():
    """Run the API server with the crawl scheduler in the same process."""
    import uvicorn

    from .api.main import create_app

    config = get_config()

    logger.info("=" * 80)
    logger.info("pricewatch API - Starting")
    logger.info("=" * 80)

    monitor = PriceMonitor.from_config(config)
    scheduler = JobScheduler(monitor, config)
    app = create_app(monitor, scheduler)

    uvicorn.run(
        app,
        host=config.api.host,
        port=config.api.port,
        log_level=config.logging.level.lower(),
        log_config=None,
    )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="pricewatch - price-drop notifications")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("serve", help="Run the API server and the crawl scheduler")
    subparsers.add_parser("scheduler", help="Run the crawl scheduler only")
    subparsers.add_parser("check", help="Run one crawl cycle and exit")
    subparsers.add_parser("list", help="Print tracked items")

    for name, help_text in (
        ("subscribe", "Subscribe an e-mail address to a product link"),
        ("unsubscribe", "Unsubscribe an e-mail address from a product link"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("link", help="Product page URL")
        sub.add_argument("email", help="Subscriber e-mail address")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(get_config())

    try:
        if args.command == "serve":
            run_api()
        elif args.command == "scheduler":
            asyncio.run(run_scheduler())
        elif args.command == "check":
            asyncio.run(run_check())
        elif args.command == "subscribe":
            asyncio.run(run_subscribe(args.link, args.email))
        elif args.command == "unsubscribe":
            sys.exit(run_unsubscribe(args.link, args.email))
        elif args.command == "list":
            run_list()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except PriceWatchError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
