"""Guestmerge protocols."""

from guestmerge.protocols.stores import (
    CartLine,
    CartStore,
    CustomerRecord,
    CustomerStore,
    NewCustomer,
    OrderRecord,
    OrderStore,
    WishlistEntry,
    WishlistStore,
)

__all__ = [
    # Records
    "CustomerRecord",
    "NewCustomer",
    "CartLine",
    "WishlistEntry",
    "OrderRecord",
    # Stores
    "CustomerStore",
    "CartStore",
    "WishlistStore",
    "OrderStore",
]
