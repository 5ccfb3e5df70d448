"""Signal receivers: merge the guest trail when a user logs in."""

import logging

from django.contrib.auth.signals import user_logged_in
from django.dispatch import receiver

from guestmerge.conf import guestmerge_settings
from guestmerge.middleware import clear_guest_id, get_guest_id
from guestmerge.services.merge import merge_guest_data

logger = logging.getLogger(__name__)

# Steps whose rows are reachable only through the guest cookie.
GUEST_SESSION_STEPS = frozenset(
    {"merge_cart", "merge_wishlist", "reassign_orders_by_session"}
)


@receiver(user_logged_in, dispatch_uid="guestmerge.merge_guest_on_login")
def merge_guest_on_login(sender, request, user, **kwargs):
    """
    Fold the visitor's guest session into the user who just logged in.

    A failed merge never blocks the login: it is logged and the guest cookie
    is kept so the next login retries. The cookie is also kept when a cart,
    wishlist or session-order step failed, since those rows are keyed only
    by the guest id.
    """
    if not guestmerge_settings.MERGE_ON_LOGIN:
        return

    guest_id = get_guest_id(request) if request is not None else None
    try:
        result = merge_guest_data(
            str(user.pk),
            email=getattr(user, "email", None),
            phone=getattr(user, "phone", None),
            guest_session_id=guest_id,
        )
    except Exception:
        logger.exception("Guest merge on login failed for user %s", user.pk)
        return

    if not result.success:
        logger.warning(
            "Guest merge on login incomplete for user %s: %s", user.pk, result.error
        )
        return

    failed = {error.step for error in result.errors} & GUEST_SESSION_STEPS
    if failed:
        logger.warning(
            "Keeping guest cookie for user %s, unmerged steps: %s",
            user.pk,
            ", ".join(sorted(failed)),
        )
        return

    if guest_id and request is not None:
        clear_guest_id(request)
