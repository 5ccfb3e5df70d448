"""Tests for Guestmerge models, admin, exceptions and the reconcile command."""

import json
from io import StringIO
from unittest.mock import patch

import pytest
from django.contrib import admin
from django.core.management import CommandError, call_command
from django.db import IntegrityError, transaction

from guestmerge.exceptions import (
    FatalCreateError,
    FatalLookupError,
    GuestMergeError,
    PartialStepError,
)
from guestmerge.models import CartItem, Customer, Order, WishlistItem
from guestmerge.services.merge import MergeResult


pytestmark = pytest.mark.django_db


class TestCustomer:
    def test_contact_normalized(self, db):
        cust = Customer.objects.create(email="  Shopper@Example.COM ", phone=" +91 98 ")
        assert cust.email == "shopper@example.com"
        assert cust.phone == "+91 98"

    def test_defaults(self, db):
        cust = Customer.objects.create(email="a@b.com")
        assert cust.customer_type == "guest"
        assert cust.status == "active"
        assert cust.metadata == {}
        assert cust.is_merged is False
        assert cust.merged_into_user_id is None

    def test_blank_auth_user_ids_do_not_collide(self, db):
        Customer.objects.create(email="a@b.com", auth_user_id="")
        Customer.objects.create(email="a@b.com", auth_user_id="")
        assert Customer.objects.filter(auth_user_id__isnull=True).count() == 2

    def test_one_registered_customer_per_user(self, db):
        Customer.objects.create(customer_type="registered", auth_user_id="u1")
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Customer.objects.create(customer_type="registered", auth_user_id="u1")

    def test_str(self, guest_customer):
        assert str(guest_customer) == "Guest: a@b.com"


class TestOwnedRows:
    def test_one_cart_line_per_user_variant(self, db):
        CartItem.objects.create(auth_user_id="u1", variant_id="V1", quantity=1)
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                CartItem.objects.create(auth_user_id="u1", variant_id="V1", quantity=2)

    def test_guest_lines_may_repeat_variant(self, db):
        CartItem.objects.create(guest_id="g1", variant_id="V1", quantity=1)
        CartItem.objects.create(guest_id="g1", variant_id="V1", quantity=1)
        assert CartItem.objects.filter(guest_id="g1").count() == 2

    def test_one_wishlist_entry_per_user_product(self, db):
        WishlistItem.objects.create(auth_user_id="u1", product_id="P1")
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                WishlistItem.objects.create(auth_user_id="u1", product_id="P1")

    def test_order_guest_email_normalized(self, db):
        order = Order.objects.create(number="ORD-1", guest_email="A@B.com")
        assert order.guest_email == "a@b.com"
        assert order.is_owned is False


class TestAdmin:
    def test_models_registered(self):
        for model in (Customer, CartItem, WishlistItem, Order):
            assert admin.site.is_registered(model)

    def test_merged_into_column(self, guest_customer):
        model_admin = admin.site._registry[Customer]
        assert model_admin.merged_into(guest_customer) == "-"

        guest_customer.metadata = {"merged_into_user_id": "u1"}
        assert model_admin.merged_into(guest_customer) == "u1"


class TestExceptions:
    def test_default_messages(self):
        assert FatalLookupError().message == "Failed to get customer record"
        assert FatalCreateError().code == "CUSTOMER_CREATE_FAILED"
        assert isinstance(FatalLookupError(), GuestMergeError)

    def test_partial_step_error(self):
        err = PartialStepError("merge_cart", message="timeout", guest_session_id="g1")
        assert err.step == "merge_cart"
        assert err.as_dict() == {
            "code": "MERGE_STEP_FAILED",
            "message": "timeout",
            "data": {"step": "merge_cart", "guest_session_id": "g1"},
        }

    def test_custom_code(self):
        err = GuestMergeError("INVALID_USER")
        assert err.code == "INVALID_USER"
        assert str(err) == "Authenticated user id is required"


class TestReconcileCommand:
    def test_merges_and_reports(self, guest_trail):
        out = StringIO()

        call_command(
            "guestmerge_reconcile",
            "--user-id", "u1",
            "--email", "a@b.com",
            "--guest-id", "g1",
            stdout=out,
        )

        assert "1 cart items, 1 wishlist items, 1 orders" in out.getvalue()
        guest_trail.order.refresh_from_db()
        assert guest_trail.order.auth_user_id == "u1"

    def test_json_output(self, db):
        out = StringIO()

        call_command("guestmerge_reconcile", "--user-id", "u1", "--json", stdout=out)

        data = json.loads(out.getvalue())
        assert data["success"] is True
        assert data["merged_counts"] == {"cart_items": 0, "wishlist_items": 0, "orders": 0}

    def test_failure_raises_command_error(self, db):
        failed = MergeResult(success=False, error="Failed to get customer record")
        with patch(
            "guestmerge.management.commands.guestmerge_reconcile.merge_guest_data",
            return_value=failed,
        ):
            with pytest.raises(CommandError, match="Failed to get customer record"):
                call_command("guestmerge_reconcile", "--user-id", "u1")
