"""
Guestmerge configuration.

Usage in settings.py:
    GUESTMERGE = {
        "GUEST_COOKIE_NAME": "guest_id",
        "MERGE_ON_LOGIN": True,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class GuestmergeSettings:
    """Guestmerge configuration settings."""

    # Anonymous session cookie
    GUEST_COOKIE_NAME: str = "guest_id"
    GUEST_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 365
    # None = secure everywhere except DEBUG
    GUEST_COOKIE_SECURE: bool | None = None

    # Run the merge from the user_logged_in signal
    MERGE_ON_LOGIN: bool = True

    # Store backends (dotted paths)
    CUSTOMER_STORE: str = "guestmerge.adapters.orm.DjangoCustomerStore"
    CART_STORE: str = "guestmerge.adapters.orm.DjangoCartStore"
    WISHLIST_STORE: str = "guestmerge.adapters.orm.DjangoWishlistStore"
    ORDER_STORE: str = "guestmerge.adapters.orm.DjangoOrderStore"

    @property
    def cookie_secure(self) -> bool:
        if self.GUEST_COOKIE_SECURE is None:
            return not settings.DEBUG
        return self.GUEST_COOKIE_SECURE


def get_guestmerge_settings() -> GuestmergeSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "GUESTMERGE", {})
    return GuestmergeSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_guestmerge_settings(), name)


guestmerge_settings = _LazySettings()
