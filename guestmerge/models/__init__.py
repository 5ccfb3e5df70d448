"""Guestmerge models."""

from guestmerge.models.customer import Customer, CustomerStatus, CustomerType
from guestmerge.models.cart import CartItem
from guestmerge.models.wishlist import WishlistItem
from guestmerge.models.order import Order

__all__ = [
    # Customer directory
    "Customer",
    "CustomerType",
    "CustomerStatus",
    # Guest/user owned rows
    "CartItem",
    "WishlistItem",
    "Order",
]
