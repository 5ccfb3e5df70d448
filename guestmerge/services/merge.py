"""Guest merge service.

Folds an anonymous guest trail (cart lines, wishlist entries, orders and the
guest customer row) into the identity of a user who just logged in.

Steps run in a fixed order:
    1. find the guest customer (by email, then phone)
    2. resolve or create the user's registered customer   <- only fatal step
    3. merge cart lines
    4. merge wishlist entries
    5. reassign unowned orders by guest session
    6. reassign unowned orders by guest email
    7. flag the guest customer as merged

A failing step other than 2 is logged, recorded as a PartialStepError on the
result and counts zero; the next step still runs. Nothing is rolled back, so
calling again with the same arguments converges on the same end state.

Concurrent merges for the same user are not locked against each other: two
logins racing through step 3 can add a guest quantity twice.
"""

import logging
from dataclasses import asdict, dataclass, field, replace

from django.utils import timezone
from django.utils.module_loading import import_string

from guestmerge.exceptions import (
    FatalCreateError,
    FatalLookupError,
    GuestMergeError,
    PartialStepError,
)
from guestmerge.models import CustomerStatus, CustomerType
from guestmerge.protocols.stores import (
    CartStore,
    CustomerRecord,
    CustomerStore,
    NewCustomer,
    OrderStore,
    WishlistStore,
)
from guestmerge.signals import customer_created, guest_merged

logger = logging.getLogger(__name__)


@dataclass
class MergedCounts:
    """How many guest rows each step moved."""

    cart_items: int = 0
    wishlist_items: int = 0
    orders: int = 0


@dataclass
class MergeResult:
    """Merge outcome returned to the auth callback."""

    success: bool
    merged_counts: MergedCounts | None = None
    customer_id: int | None = None
    error: str | None = None
    errors: list[PartialStepError] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "merged_counts": asdict(self.merged_counts) if self.merged_counts else None,
            "customer_id": self.customer_id,
            "error": self.error,
            "errors": [e.as_dict() for e in self.errors],
        }


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class GuestMerger:
    """
    Guest-to-registered reconciliation over four injected stores.

    Usage:
        merger = GuestMerger.from_settings()
        result = merger.reconcile("user-42", email="a@b.com", guest_session_id=gid)
        if not result.success:
            ...  # login proceeds anyway, next login retries
    """

    def __init__(
        self,
        customers: CustomerStore,
        carts: CartStore,
        wishlists: WishlistStore,
        orders: OrderStore,
    ):
        self.customers = customers
        self.carts = carts
        self.wishlists = wishlists
        self.orders = orders

    @classmethod
    def from_settings(cls) -> "GuestMerger":
        """Build a merger from the GUESTMERGE store settings."""
        from guestmerge.conf import guestmerge_settings

        return cls(
            customers=import_string(guestmerge_settings.CUSTOMER_STORE)(),
            carts=import_string(guestmerge_settings.CART_STORE)(),
            wishlists=import_string(guestmerge_settings.WISHLIST_STORE)(),
            orders=import_string(guestmerge_settings.ORDER_STORE)(),
        )

    # ======================================================================
    # Entry point
    # ======================================================================

    def reconcile(
        self,
        auth_user_id: str,
        email: str | None = None,
        phone: str | None = None,
        guest_session_id: str | None = None,
    ) -> MergeResult:
        """
        Merge everything the guest identity owns into auth_user_id.

        Never raises: store failures and unexpected errors are reported via
        MergeResult.success / error / errors.
        """
        auth_user_id = _clean(auth_user_id)
        if not auth_user_id:
            return MergeResult(
                success=False, error=GuestMergeError("INVALID_USER").message
            )

        email = _clean(email)
        email = email.lower() if email else None
        phone = _clean(phone)
        guest_session_id = _clean(guest_session_id)
        errors: list[PartialStepError] = []
        context = {"guest_session_id": guest_session_id, "email": email}

        logger.info(
            "merge_guest: starting user=%s guest=%s", auth_user_id, guest_session_id
        )

        try:
            guest = self._run_step(
                "find_guest_customer",
                errors,
                context,
                None,
                self.find_guest_customer,
                auth_user_id,
                email,
                phone,
            )
            customer = self.resolve_customer(auth_user_id, email, phone)

            counts = MergedCounts()
            if guest_session_id:
                counts.cart_items = self._run_step(
                    "merge_cart",
                    errors,
                    context,
                    0,
                    self.merge_cart,
                    guest_session_id,
                    auth_user_id,
                )
                counts.wishlist_items = self._run_step(
                    "merge_wishlist",
                    errors,
                    context,
                    0,
                    self.merge_wishlist,
                    guest_session_id,
                    auth_user_id,
                )
                counts.orders += self._run_step(
                    "reassign_orders_by_session",
                    errors,
                    context,
                    0,
                    self.reassign_orders_by_session,
                    guest_session_id,
                    auth_user_id,
                    customer.id,
                )

            if email and guest:
                counts.orders += self._run_step(
                    "reassign_orders_by_email",
                    errors,
                    context,
                    0,
                    self.reassign_orders_by_email,
                    email,
                    auth_user_id,
                    customer.id,
                )

            if guest:
                self._run_step(
                    "retire_guest_customer",
                    errors,
                    context,
                    None,
                    self.retire_guest_customer,
                    guest,
                    auth_user_id,
                )
        except (FatalLookupError, FatalCreateError) as exc:
            logger.error(
                "merge_guest: %s for user=%s: %s",
                exc.code,
                auth_user_id,
                exc.data.get("reason", ""),
            )
            return MergeResult(success=False, error=exc.message, errors=errors)
        except Exception:
            logger.exception("merge_guest: unexpected error for user=%s", auth_user_id)
            return MergeResult(
                success=False, error="Unexpected error during merge", errors=errors
            )

        result = MergeResult(
            success=True,
            merged_counts=counts,
            customer_id=customer.id,
            errors=errors,
        )
        logger.info(
            "merge_guest: complete user=%s cart=%d wishlist=%d orders=%d failed_steps=%d",
            auth_user_id,
            counts.cart_items,
            counts.wishlist_items,
            counts.orders,
            len(errors),
        )
        responses = guest_merged.send_robust(
            sender=self.__class__,
            auth_user_id=auth_user_id,
            guest_session_id=guest_session_id,
            result=result,
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    "merge_guest: guest_merged receiver %r failed: %s", receiver, response
                )
        return result

    # ======================================================================
    # Steps
    # ======================================================================

    def find_guest_customer(
        self,
        auth_user_id: str,
        email: str | None,
        phone: str | None,
    ) -> CustomerRecord | None:
        """
        First guest customer matching email, or phone when no email is given.

        A supplied email is the only key: a miss never falls through to
        phone, since a shared phone would pick up someone else's record.

        Unlike plain first-match, guest rows already stamped as merged into
        a different user are skipped, so a second account cannot re-stamp
        them. The cost is that such a second account never claims unowned
        orders tagged with that email.
        """
        if email:
            lookup = {"email": email}
        elif phone:
            lookup = {"phone": phone}
        else:
            return None

        candidates = self.customers.find_by_variant_and_contact(
            CustomerType.GUEST, **lookup
        )
        for candidate in candidates:
            merged_into = (candidate.metadata or {}).get("merged_into_user_id")
            if merged_into in (None, auth_user_id):
                return candidate
        return None

    def resolve_customer(
        self,
        auth_user_id: str,
        email: str | None,
        phone: str | None,
    ) -> CustomerRecord:
        """
        Registered customer for auth_user_id, created on first login.

        Raises:
            FatalLookupError: If the directory cannot be read
            FatalCreateError: If the customer has to be created and cannot be
        """
        try:
            customer = self.customers.find_by_auth_user_id(auth_user_id)
        except Exception as exc:
            raise FatalLookupError(auth_user_id=auth_user_id, reason=str(exc)) from exc

        if customer:
            return customer

        try:
            customer = self.customers.insert(
                NewCustomer(
                    customer_type=CustomerType.REGISTERED,
                    status=CustomerStatus.ACTIVE,
                    auth_user_id=auth_user_id,
                    email=email,
                    phone=phone,
                )
            )
        except Exception as exc:
            raise FatalCreateError(auth_user_id=auth_user_id, reason=str(exc)) from exc

        if customer is None:
            raise FatalCreateError(auth_user_id=auth_user_id, reason="no row returned")

        logger.info(
            "merge_guest: created customer id=%s for user=%s", customer.id, auth_user_id
        )
        customer_created.send(sender=self.__class__, customer=customer)
        return customer

    def merge_cart(self, guest_session_id: str, auth_user_id: str) -> int:
        """
        Move guest cart lines to the user.

        A variant the user already has gets the guest quantity added and the
        guest line deleted; anything else is re-pointed. Both count.
        """
        guest_lines = self.carts.find_by_guest_session(guest_session_id)
        if not guest_lines:
            return 0

        logger.info("merge_guest: found %d guest cart items", len(guest_lines))
        by_variant = {line.variant_id: line for line in self.carts.find_by_user(auth_user_id)}

        merged = 0
        for line in guest_lines:
            existing = by_variant.get(line.variant_id)
            if existing and existing.id != line.id:
                quantity = existing.quantity + line.quantity
                self.carts.update_quantity(existing.id, quantity)
                self.carts.delete(line.id)
                by_variant[line.variant_id] = replace(existing, quantity=quantity)
            else:
                self.carts.reassign_owner(line.id, auth_user_id)
                by_variant[line.variant_id] = replace(
                    line, guest_id=None, auth_user_id=auth_user_id
                )
            merged += 1
        return merged

    def merge_wishlist(self, guest_session_id: str, auth_user_id: str) -> int:
        """
        Move guest wishlist entries to the user.

        Products the user already saved are dropped and not counted.
        """
        guest_entries = self.wishlists.find_by_guest_session(guest_session_id)
        if not guest_entries:
            return 0

        logger.info("merge_guest: found %d guest wishlist items", len(guest_entries))
        owned = {
            entry.product_id: entry.id
            for entry in self.wishlists.find_by_user(auth_user_id)
        }

        merged = 0
        for entry in guest_entries:
            owner_entry_id = owned.get(entry.product_id)
            if owner_entry_id is not None and owner_entry_id != entry.id:
                self.wishlists.delete(entry.id)
                continue
            self.wishlists.reassign_owner(entry.id, auth_user_id)
            owned[entry.product_id] = entry.id
            merged += 1
        return merged

    def reassign_orders_by_session(
        self, guest_session_id: str, auth_user_id: str, customer_id: int
    ) -> int:
        orders = self.orders.reassign_unowned_by_guest_session(
            guest_session_id, auth_user_id, customer_id
        )
        if orders:
            logger.info("merge_guest: reassigned %d orders via guest_id", len(orders))
        return len(orders)

    def reassign_orders_by_email(
        self, email: str, auth_user_id: str, customer_id: int
    ) -> int:
        orders = self.orders.reassign_unowned_by_guest_email(
            email, auth_user_id, customer_id
        )
        if orders:
            logger.info("merge_guest: reassigned %d orders via email", len(orders))
        return len(orders)

    def retire_guest_customer(self, guest: CustomerRecord, auth_user_id: str) -> None:
        """Flag the guest row as merged, keeping its existing metadata."""
        metadata = dict(guest.metadata) if isinstance(guest.metadata, dict) else {}
        metadata["merged_into_user_id"] = auth_user_id
        metadata["merged_at"] = timezone.now().isoformat()
        self.customers.update(guest.id, status=CustomerStatus.MERGED, metadata=metadata)

    # ======================================================================
    # Internal
    # ======================================================================

    def _run_step(self, step, errors, context, default, func, *args):
        """Run one non-fatal step, turning any failure into a PartialStepError."""
        try:
            return func(*args)
        except Exception as exc:
            logger.warning(
                "merge_guest: step %s failed (guest=%s email=%s): %s",
                step,
                context.get("guest_session_id"),
                context.get("email"),
                exc,
                exc_info=True,
            )
            errors.append(
                PartialStepError(
                    step,
                    message=str(exc) or exc.__class__.__name__,
                    **context,
                )
            )
            return default


def merge_guest_data(
    auth_user_id: str,
    email: str | None = None,
    phone: str | None = None,
    guest_session_id: str | None = None,
) -> MergeResult:
    """Run a merge against the configured stores."""
    return GuestMerger.from_settings().reconcile(
        auth_user_id,
        email=email,
        phone=phone,
        guest_session_id=guest_session_id,
    )
