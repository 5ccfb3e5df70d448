"""Django ORM implementations of the merge store protocols.

Configuration in settings.py (these are the defaults):
    GUESTMERGE = {
        "CUSTOMER_STORE": "guestmerge.adapters.orm.DjangoCustomerStore",
        "CART_STORE": "guestmerge.adapters.orm.DjangoCartStore",
        "WISHLIST_STORE": "guestmerge.adapters.orm.DjangoWishlistStore",
        "ORDER_STORE": "guestmerge.adapters.orm.DjangoOrderStore",
    }
"""

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from guestmerge.models import CartItem, Customer, Order, WishlistItem
from guestmerge.protocols.stores import (
    CartLine,
    CustomerRecord,
    NewCustomer,
    OrderRecord,
    WishlistEntry,
)

UNOWNED = Q(auth_user_id__isnull=True) | Q(auth_user_id="")


class DjangoCustomerStore:
    """Customer directory backed by guestmerge.Customer."""

    UPDATABLE_FIELDS = {"email", "phone", "status", "metadata", "guest_id"}

    def find_by_variant_and_contact(
        self,
        variant: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> list[CustomerRecord]:
        qs = Customer.objects.filter(customer_type=variant)
        if email:
            qs = qs.filter(email__iexact=email.strip())
        elif phone:
            qs = qs.filter(phone=phone.strip())
        else:
            return []
        return [self._to_record(c) for c in qs.order_by("created_at", "id")]

    def find_by_auth_user_id(self, auth_user_id: str) -> CustomerRecord | None:
        try:
            return self._to_record(Customer.objects.get(auth_user_id=auth_user_id))
        except Customer.DoesNotExist:
            return None

    def insert(self, record: NewCustomer) -> CustomerRecord:
        try:
            with transaction.atomic():
                cust = Customer.objects.create(
                    auth_user_id=record.auth_user_id,
                    email=record.email or "",
                    phone=record.phone or "",
                    customer_type=record.customer_type,
                    status=record.status,
                )
        except IntegrityError:
            # A concurrent login created the row first: use theirs
            if record.auth_user_id:
                existing = self.find_by_auth_user_id(record.auth_user_id)
                if existing:
                    return existing
            raise
        return self._to_record(cust)

    def update(self, customer_id: int, **fields) -> None:
        unknown = set(fields) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update customer fields: {sorted(unknown)}")

        with transaction.atomic():
            cust = Customer.objects.select_for_update().get(pk=customer_id)
            for key, value in fields.items():
                setattr(cust, key, value)
            cust.save(update_fields=[*fields, "updated_at"])

    @staticmethod
    def _to_record(c: Customer) -> CustomerRecord:
        return CustomerRecord(
            id=c.pk,
            customer_type=c.customer_type,
            status=c.status,
            auth_user_id=c.auth_user_id,
            guest_id=c.guest_id or None,
            email=c.email or None,
            phone=c.phone or None,
            metadata=dict(c.metadata) if isinstance(c.metadata, dict) else {},
            created_at=c.created_at,
            updated_at=c.updated_at,
        )


class DjangoCartStore:
    """Cart lines backed by guestmerge.CartItem."""

    def find_by_guest_session(self, guest_id: str) -> list[CartLine]:
        return [self._to_line(i) for i in CartItem.objects.filter(guest_id=guest_id)]

    def find_by_user(self, auth_user_id: str) -> list[CartLine]:
        return [
            self._to_line(i) for i in CartItem.objects.filter(auth_user_id=auth_user_id)
        ]

    def update_quantity(self, line_id: int, quantity: int) -> None:
        CartItem.objects.filter(pk=line_id).update(
            quantity=quantity, updated_at=timezone.now()
        )

    def delete(self, line_id: int) -> None:
        CartItem.objects.filter(pk=line_id).delete()

    def reassign_owner(self, line_id: int, auth_user_id: str) -> None:
        CartItem.objects.filter(pk=line_id).update(
            auth_user_id=auth_user_id, guest_id=None, updated_at=timezone.now()
        )

    @staticmethod
    def _to_line(i: CartItem) -> CartLine:
        return CartLine(
            id=i.pk,
            variant_id=i.variant_id,
            quantity=i.quantity,
            guest_id=i.guest_id,
            auth_user_id=i.auth_user_id,
        )


class DjangoWishlistStore:
    """Wishlist entries backed by guestmerge.WishlistItem."""

    def find_by_guest_session(self, guest_id: str) -> list[WishlistEntry]:
        return [
            self._to_entry(i) for i in WishlistItem.objects.filter(guest_id=guest_id)
        ]

    def find_by_user(self, auth_user_id: str) -> list[WishlistEntry]:
        return [
            self._to_entry(i)
            for i in WishlistItem.objects.filter(auth_user_id=auth_user_id)
        ]

    def delete(self, entry_id: int) -> None:
        WishlistItem.objects.filter(pk=entry_id).delete()

    def reassign_owner(self, entry_id: int, auth_user_id: str) -> None:
        WishlistItem.objects.filter(pk=entry_id).update(
            auth_user_id=auth_user_id, guest_id=None
        )

    @staticmethod
    def _to_entry(i: WishlistItem) -> WishlistEntry:
        return WishlistEntry(
            id=i.pk,
            product_id=i.product_id,
            guest_id=i.guest_id,
            auth_user_id=i.auth_user_id,
        )


class DjangoOrderStore:
    """Order ownership transfer backed by guestmerge.Order."""

    def reassign_unowned_by_guest_session(
        self,
        guest_id: str,
        auth_user_id: str,
        customer_id: int,
    ) -> list[OrderRecord]:
        return self._reassign(Q(guest_id=guest_id), auth_user_id, customer_id)

    def reassign_unowned_by_guest_email(
        self,
        email: str,
        auth_user_id: str,
        customer_id: int,
    ) -> list[OrderRecord]:
        return self._reassign(
            Q(guest_email__iexact=email.strip()), auth_user_id, customer_id
        )

    def _reassign(self, match: Q, auth_user_id: str, customer_id: int) -> list[OrderRecord]:
        with transaction.atomic():
            ids = list(
                Order.objects.select_for_update()
                .filter(match)
                .filter(UNOWNED)
                .values_list("pk", flat=True)
            )
            if not ids:
                return []
            # Re-apply the guard: only rows still unowned are touched
            Order.objects.filter(pk__in=ids).filter(UNOWNED).update(
                auth_user_id=auth_user_id,
                customer_id=customer_id,
                updated_at=timezone.now(),
            )
            changed = Order.objects.filter(
                pk__in=ids, auth_user_id=auth_user_id, customer_id=customer_id
            ).order_by("pk")
            return [self._to_record(o) for o in changed]

    @staticmethod
    def _to_record(o: Order) -> OrderRecord:
        return OrderRecord(
            id=o.pk,
            number=o.number,
            guest_id=o.guest_id,
            guest_email=o.guest_email or None,
            auth_user_id=o.auth_user_id,
            customer_id=o.customer_id,
        )
