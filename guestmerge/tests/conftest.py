"""Pytest fixtures for Guestmerge tests."""

from types import SimpleNamespace

import pytest

from guestmerge.models import CartItem, Customer, Order, WishlistItem
from guestmerge.services.merge import GuestMerger
from guestmerge.tests.fakes import (
    MemoryCartStore,
    MemoryCustomerStore,
    MemoryOrderStore,
    MemoryWishlistStore,
)


# ═══════════════════════════════════════════════════════════════════
# In-memory stores
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def stores():
    """Fresh in-memory stores."""
    return SimpleNamespace(
        customers=MemoryCustomerStore(),
        carts=MemoryCartStore(),
        wishlists=MemoryWishlistStore(),
        orders=MemoryOrderStore(),
    )


@pytest.fixture
def merger(stores):
    """GuestMerger wired to the in-memory stores."""
    return GuestMerger(
        customers=stores.customers,
        carts=stores.carts,
        wishlists=stores.wishlists,
        orders=stores.orders,
    )


# ═══════════════════════════════════════════════════════════════════
# Database rows
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def guest_customer(db):
    """Guest checkout customer for a@b.com."""
    return Customer.objects.create(
        customer_type="guest",
        guest_id="g1",
        email="A@B.com",
        phone="+919800000001",
        metadata={"source": "guest_checkout"},
    )


@pytest.fixture
def guest_trail(db, guest_customer):
    """Cart line, wishlist entry and order left behind by guest session g1."""
    return SimpleNamespace(
        customer=guest_customer,
        cart_item=CartItem.objects.create(guest_id="g1", variant_id="V1", quantity=2),
        wishlist_item=WishlistItem.objects.create(guest_id="g1", product_id="P1"),
        order=Order.objects.create(number="ORD-001", guest_id="g1", total_q=149900),
    )


@pytest.fixture
def orm_merger(db):
    """GuestMerger wired to the configured (Django ORM) stores."""
    return GuestMerger.from_settings()
