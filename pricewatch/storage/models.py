"""Data models for the subscription store."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..extractors.sites import SiteFamily


class Item(BaseModel):
    """One tracked product link with its last known price and subscribers."""

    site: SiteFamily
    link: str
    subscribers: List[str] = Field(default_factory=list)
    price: float

    @field_validator("subscribers")
    @classmethod
    def _dedupe_subscribers(cls, value: List[str]) -> List[str]:
        # Keep first occurrence of each address
        return list(dict.fromkeys(value))


class StoreSnapshot(BaseModel):
    """Complete contents of the store file."""

    items: List[Item] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _null_items(cls, value):
        # Older store files hold "items": null once the last item is removed
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_invariants(self) -> "StoreSnapshot":
        seen = set()
        for item in self.items:
            if item.link in seen:
                raise ValueError(f"duplicate link in store: {item.link}")
            if not item.subscribers:
                raise ValueError(f"item without subscribers: {item.link}")
            seen.add(item.link)
        return self

    def find(self, link: str) -> Optional[Item]:
        for item in self.items:
            if item.link == link:
                return item
        return None


class AddResult(str, Enum):
    CREATED = "created"
    SUBSCRIBED = "subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"


class RemovalResult(str, Enum):
    REMOVED = "removed"
    NO_SUCH_USER = "no_such_user"
    NO_SUCH_LINK = "no_such_link"
