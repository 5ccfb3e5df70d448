"""Store protocols consumed by the merge service.

Each store is a narrow repository over one table. Records crossing the
boundary are frozen dataclasses, so the merge service never touches ORM rows
directly and can be driven by in-memory fakes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class CustomerRecord:
    """Customer directory entry."""

    id: int
    customer_type: str  # "guest" | "registered"
    status: str  # "active" | "merged"
    auth_user_id: str | None = None
    guest_id: str | None = None
    email: str | None = None
    phone: str | None = None
    metadata: dict = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class NewCustomer:
    """Values for a customer about to be inserted."""

    customer_type: str
    status: str
    auth_user_id: str | None = None
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class CartLine:
    """Cart line owned by a guest session or a user."""

    id: int
    variant_id: str
    quantity: int
    guest_id: str | None = None
    auth_user_id: str | None = None


@dataclass(frozen=True)
class WishlistEntry:
    """Saved product owned by a guest session or a user."""

    id: int
    product_id: str
    guest_id: str | None = None
    auth_user_id: str | None = None


@dataclass(frozen=True)
class OrderRecord:
    """Order ownership snapshot."""

    id: int
    number: str
    guest_id: str | None = None
    guest_email: str | None = None
    auth_user_id: str | None = None
    customer_id: int | None = None


@runtime_checkable
class CustomerStore(Protocol):
    """Customer directory."""

    def find_by_variant_and_contact(
        self,
        variant: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> list[CustomerRecord]:
        """Customers of a type matching the given contact, oldest first."""
        ...

    def find_by_auth_user_id(self, auth_user_id: str) -> CustomerRecord | None:
        """
        Return the customer bound to an authenticated user.

        Returns None when no row exists. Any other failure must raise.
        """
        ...

    def insert(self, record: NewCustomer) -> CustomerRecord:
        ...

    def update(self, customer_id: int, **fields) -> None:
        ...


@runtime_checkable
class CartStore(Protocol):
    """Cart lines keyed by owner and variant."""

    def find_by_guest_session(self, guest_id: str) -> list[CartLine]:
        ...

    def find_by_user(self, auth_user_id: str) -> list[CartLine]:
        ...

    def update_quantity(self, line_id: int, quantity: int) -> None:
        ...

    def delete(self, line_id: int) -> None:
        ...

    def reassign_owner(self, line_id: int, auth_user_id: str) -> None:
        """Point the line at the user and clear its guest session."""
        ...


@runtime_checkable
class WishlistStore(Protocol):
    """Wishlist entries keyed by owner and product."""

    def find_by_guest_session(self, guest_id: str) -> list[WishlistEntry]:
        ...

    def find_by_user(self, auth_user_id: str) -> list[WishlistEntry]:
        ...

    def delete(self, entry_id: int) -> None:
        ...

    def reassign_owner(self, entry_id: int, auth_user_id: str) -> None:
        ...


@runtime_checkable
class OrderStore(Protocol):
    """
    Order ownership transfer.

    Both operations only touch orders with no authenticated owner yet and
    return the orders they changed.
    """

    def reassign_unowned_by_guest_session(
        self,
        guest_id: str,
        auth_user_id: str,
        customer_id: int,
    ) -> list[OrderRecord]:
        ...

    def reassign_unowned_by_guest_email(
        self,
        email: str,
        auth_user_id: str,
        customer_id: int,
    ) -> list[OrderRecord]:
        ...
