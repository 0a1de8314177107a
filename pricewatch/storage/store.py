"""JSON-file subscription store.

The whole store lives in one JSON document that is read in full and
rewritten in full. Writes go to a temporary file in the same directory
which is then renamed over the original, so readers always see either the
previous or the new snapshot, never a partial one.

Every mutation runs its load-mutate-save sequence under a single lock.
Network calls (seeding the price of a new item) happen outside it.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ..exceptions import StoreIOError
from ..extractors.price import PriceExtractor
from ..extractors.sites import SiteFamily, SiteResolver
from .models import AddResult, Item, RemovalResult, StoreSnapshot


class SubscriptionStore:
    """Durable mapping from tracked link to price and subscriber set."""

    def __init__(
        self,
        path: Union[str, Path] = "data/db.json",
        extractor: Optional[PriceExtractor] = None,
        resolver: Optional[Callable[[str], SiteFamily]] = None,
    ):
        self.path = Path(path)
        self.extractor = extractor
        self.resolver = resolver or SiteResolver()
        self._lock = threading.Lock()
        logger.info(f"Subscription store initialized: {self.path}")

    # ------------------------------------------------------------------
    # Snapshot I/O
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        """Read the last committed snapshot. A missing file is an empty store."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return StoreSnapshot()
        except OSError as e:
            raise StoreIOError(f"cannot read {self.path}: {e}") from e

        if not raw.strip():
            return StoreSnapshot()

        try:
            return StoreSnapshot.model_validate_json(raw)
        except ValidationError as e:
            raise StoreIOError(f"corrupt store file {self.path}: {e}") from e

    def replace(self, snapshot: StoreSnapshot) -> None:
        """Atomically persist ``snapshot`` as the new store contents."""
        with self._lock:
            self._write(snapshot)

    def _write(self, snapshot: StoreSnapshot) -> None:
        # Re-validate so mutated models can't persist a broken store
        try:
            snapshot = StoreSnapshot.model_validate(snapshot.model_dump())
        except ValidationError as e:
            raise StoreIOError(f"refusing to write invalid store: {e}") from e

        payload = snapshot.model_dump_json(indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreIOError(f"cannot write {self.path}: {e}") from e

        logger.debug(f"Wrote {len(snapshot.items)} items to {self.path}")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_subscription(self, link: str, email: str) -> AddResult:
        """Subscribe ``email`` to price drops of ``link``.

        Subscribing twice is a no-op. When the link is not tracked yet, its
        current price is extracted first (outside the store lock) to seed
        the new item.

        Raises:
            ExtractionError: if a new item's price can't be extracted.
            StoreIOError: if the store file can't be read or written.
        """
        result = self._append_subscriber(link, email)
        if result is not None:
            return result

        if self.extractor is None:
            raise RuntimeError("store has no price extractor to seed new items")

        site = self.resolver(link)
        price = await self.extractor.extract(link, site)

        with self._lock:
            snapshot = self.snapshot()
            existing = snapshot.find(link)
            if existing is not None:
                # Created by a concurrent caller while we were extracting
                result = self._add_to(existing, email)
                if result is AddResult.SUBSCRIBED:
                    self._write(snapshot)
                return result

            snapshot.items.append(
                Item(site=site, link=link, subscribers=[email], price=price)
            )
            self._write(snapshot)

        logger.info(f"Tracking new item {link} ({site.value}) at {price}")
        return AddResult.CREATED

    def _append_subscriber(self, link: str, email: str) -> Optional[AddResult]:
        """Add ``email`` to an existing item; None if the link is untracked."""
        with self._lock:
            snapshot = self.snapshot()
            item = snapshot.find(link)
            if item is None:
                return None

            result = self._add_to(item, email)
            if result is AddResult.SUBSCRIBED:
                self._write(snapshot)
                logger.info(f"Subscribed {email} to {link}")
            return result

    @staticmethod
    def _add_to(item: Item, email: str) -> AddResult:
        if email in item.subscribers:
            return AddResult.ALREADY_SUBSCRIBED
        item.subscribers.append(email)
        return AddResult.SUBSCRIBED

    def remove_subscription(self, link: str, email: str) -> RemovalResult:
        """Unsubscribe ``email`` from ``link``, dropping the item if it was the last one."""
        with self._lock:
            snapshot = self.snapshot()
            item = snapshot.find(link)
            if item is None:
                return RemovalResult.NO_SUCH_LINK
            if email not in item.subscribers:
                return RemovalResult.NO_SUCH_USER

            item.subscribers.remove(email)
            if not item.subscribers:
                snapshot.items.remove(item)
                logger.info(f"Last subscriber left, no longer tracking {link}")
            self._write(snapshot)

        logger.info(f"Unsubscribed {email} from {link}")
        return RemovalResult.REMOVED

    def update_price(self, link: str, price: float) -> bool:
        """Store a new last-known price. Returns False if the item is gone."""
        with self._lock:
            snapshot = self.snapshot()
            item = snapshot.find(link)
            if item is None:
                return False

            item.price = price
            self._write(snapshot)
        return True
