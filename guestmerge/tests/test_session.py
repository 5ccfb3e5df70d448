"""Tests for the guest session cookie and the merge-on-login receiver."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.signals import user_logged_in
from django.http import HttpResponse

from guestmerge.exceptions import PartialStepError
from guestmerge.middleware import GuestSessionMiddleware, get_guest_id
from guestmerge.models import CartItem, Customer, Order
from guestmerge.services.merge import MergeResult


def run_middleware(request, view=None):
    def default_view(req):
        return HttpResponse("ok")

    return GuestSessionMiddleware(view or default_view)(request)


# ═══════════════════════════════════════════════════════════════════
# GuestSessionMiddleware
# ═══════════════════════════════════════════════════════════════════


class TestGuestSessionMiddleware:
    def test_anonymous_visitor_gets_cookie(self, rf):
        request = rf.get("/")

        response = run_middleware(request)

        cookie = response.cookies["guest_id"]
        assert cookie.value == request.guest_id
        assert len(cookie.value) == 36
        assert cookie["httponly"] is True
        assert cookie["samesite"] == "Lax"
        assert cookie["max-age"] == 60 * 60 * 24 * 365

    def test_existing_cookie_reused(self, rf):
        request = rf.get("/")
        request.COOKIES["guest_id"] = "g1"

        response = run_middleware(request)

        assert request.guest_id == "g1"
        assert "guest_id" not in response.cookies

    def test_authenticated_user_not_issued_cookie(self, rf):
        request = rf.get("/")
        request.user = SimpleNamespace(is_authenticated=True)

        response = run_middleware(request)

        assert request.guest_id is None
        assert "guest_id" not in response.cookies

    def test_consumed_cookie_deleted(self, rf):
        request = rf.get("/")
        request.COOKIES["guest_id"] = "g1"

        def consuming_view(req):
            req.guest_id_consumed = True
            return HttpResponse("ok")

        response = run_middleware(request, consuming_view)

        assert response.cookies["guest_id"].value == ""
        assert response.cookies["guest_id"]["max-age"] == 0

    def test_cookie_settings(self, rf, settings):
        settings.GUESTMERGE = {
            "GUEST_COOKIE_NAME": "dude_guest",
            "GUEST_COOKIE_MAX_AGE": 3600,
            "GUEST_COOKIE_SECURE": False,
        }
        request = rf.get("/")

        response = run_middleware(request)

        cookie = response.cookies["dude_guest"]
        assert cookie["max-age"] == 3600
        assert not cookie["secure"]

    def test_secure_follows_debug(self, rf, settings):
        settings.DEBUG = False
        response = run_middleware(rf.get("/"))
        assert response.cookies["guest_id"]["secure"] is True

    def test_get_guest_id_falls_back_to_cookie(self, rf):
        request = rf.get("/")
        request.COOKIES["guest_id"] = "g7"

        assert get_guest_id(request) == "g7"


# ═══════════════════════════════════════════════════════════════════
# merge_guest_on_login
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestMergeOnLogin:
    @pytest.fixture
    def user(self):
        return get_user_model().objects.create_user(
            username="shopper", email="a@b.com", password="x"
        )

    @pytest.fixture
    def login_request(self, rf):
        request = rf.post("/login/")
        request.COOKIES["guest_id"] = "g1"
        return request

    def login(self, request, user):
        user_logged_in.send(sender=user.__class__, request=request, user=user)

    def test_guest_trail_merged(self, login_request, user, guest_trail):
        self.login(login_request, user)

        guest_trail.order.refresh_from_db()
        assert guest_trail.order.auth_user_id == str(user.pk)
        assert CartItem.objects.get(auth_user_id=str(user.pk)).variant_id == "V1"
        assert Customer.objects.get(auth_user_id=str(user.pk)).email == "a@b.com"
        assert login_request.guest_id_consumed is True

    def test_disabled_by_setting(self, login_request, user, guest_trail, settings):
        settings.GUESTMERGE = {"MERGE_ON_LOGIN": False}

        self.login(login_request, user)

        assert not Customer.objects.filter(auth_user_id=str(user.pk)).exists()
        assert not getattr(login_request, "guest_id_consumed", False)

    def test_failed_merge_keeps_cookie(self, login_request, user):
        failed = MergeResult(success=False, error="Failed to get customer record")
        with patch("guestmerge.receivers.merge_guest_data", return_value=failed):
            self.login(login_request, user)

        assert not getattr(login_request, "guest_id_consumed", False)

    def test_failed_cart_step_keeps_cookie(self, login_request, user, guest_trail):
        with patch(
            "guestmerge.adapters.orm.DjangoCartStore.find_by_guest_session",
            side_effect=TimeoutError("cart store timeout"),
        ):
            self.login(login_request, user)

        assert CartItem.objects.filter(guest_id="g1").count() == 1
        assert not getattr(login_request, "guest_id_consumed", False)

    def test_failed_email_step_still_clears_cookie(self, login_request, user):
        partial = MergeResult(
            success=True,
            errors=[PartialStepError("reassign_orders_by_email", message="timeout")],
        )
        with patch("guestmerge.receivers.merge_guest_data", return_value=partial):
            self.login(login_request, user)

        assert login_request.guest_id_consumed is True

    def test_merge_exception_does_not_block_login(self, login_request, user):
        with patch(
            "guestmerge.receivers.merge_guest_data", side_effect=RuntimeError("boom")
        ):
            self.login(login_request, user)

        assert not getattr(login_request, "guest_id_consumed", False)

    def test_login_without_request(self, user):
        Order.objects.create(number="ORD-1", guest_email="a@b.com")

        user_logged_in.send(sender=user.__class__, request=None, user=user)

        assert Customer.objects.filter(auth_user_id=str(user.pk)).exists()
        assert Order.objects.get(number="ORD-1").auth_user_id is None
