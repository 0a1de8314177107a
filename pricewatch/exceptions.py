"""Error types shared across pricewatch."""


class PriceWatchError(Exception):
    """Base class for all pricewatch errors."""


class ExtractionError(PriceWatchError):
    """A page could not be fetched or no price could be read from it."""

    def __init__(self, link: str, reason: str):
        self.link = link
        self.reason = reason
        super().__init__(f"{link}: {reason}")


class StoreIOError(PriceWatchError):
    """The subscription file could not be read, parsed or written."""


class DeliveryError(PriceWatchError):
    """A notification could not be handed to the mail server."""

    def __init__(self, recipient: str, reason: str):
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"delivery to {recipient} failed: {reason}")
