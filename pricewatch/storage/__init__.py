"""Subscription storage and persistence layer"""

from .models import AddResult, Item, RemovalResult, StoreSnapshot
from .store import SubscriptionStore

__all__ = [
    "AddResult",
    "Item",
    "RemovalResult",
    "StoreSnapshot",
    "SubscriptionStore",
]
