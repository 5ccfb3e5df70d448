"""Guest session middleware.

Anonymous visitors get a long-lived guest_id cookie. Cart, wishlist and
guest-checkout rows are tagged with it until the visitor logs in and the
merge consumes it.

Usage in settings.py (after AuthenticationMiddleware):
    MIDDLEWARE = [
        ...
        "django.contrib.auth.middleware.AuthenticationMiddleware",
        "guestmerge.middleware.GuestSessionMiddleware",
    ]
"""

import uuid

from guestmerge.conf import guestmerge_settings


def new_guest_id() -> str:
    return str(uuid.uuid4())


def get_guest_id(request) -> str | None:
    """Guest session id for this request, if any."""
    guest_id = getattr(request, "guest_id", None)
    if guest_id:
        return guest_id
    return request.COOKIES.get(guestmerge_settings.GUEST_COOKIE_NAME) or None


def clear_guest_id(request) -> None:
    """Drop the guest cookie on the way out (the merge consumed it)."""
    request.guest_id_consumed = True


class GuestSessionMiddleware:
    """Issue, expose and clear the guest session cookie."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        cookie_name = guestmerge_settings.GUEST_COOKIE_NAME
        guest_id = request.COOKIES.get(cookie_name) or None
        issued = False

        user = getattr(request, "user", None)
        if not guest_id and not (user is not None and user.is_authenticated):
            guest_id = new_guest_id()
            issued = True

        request.guest_id = guest_id
        request.guest_id_consumed = False

        response = self.get_response(request)

        if request.guest_id_consumed:
            response.delete_cookie(cookie_name, samesite="Lax")
        elif issued:
            response.set_cookie(
                cookie_name,
                guest_id,
                max_age=guestmerge_settings.GUEST_COOKIE_MAX_AGE,
                httponly=True,
                secure=guestmerge_settings.cookie_secure,
                samesite="Lax",
            )
        return response
