"""WishlistItem model."""

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class WishlistItem(models.Model):
    """Saved product, owned by a guest session or an authenticated user."""

    guest_id = models.CharField(
        _("guest session id"), max_length=255, null=True, blank=True, db_index=True
    )
    auth_user_id = models.CharField(
        _("auth user id"), max_length=255, null=True, blank=True, db_index=True
    )
    product_id = models.CharField(_("product"), max_length=255)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    class Meta:
        verbose_name = _("wishlist item")
        verbose_name_plural = _("wishlist items")
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["auth_user_id", "product_id"],
                condition=Q(auth_user_id__isnull=False),
                name="guestmerge_unique_user_wishlist_product",
            ),
            models.UniqueConstraint(
                fields=["guest_id", "product_id"],
                condition=Q(guest_id__isnull=False),
                name="guestmerge_unique_guest_wishlist_product",
            ),
        ]

    def __str__(self):
        return f"{self.auth_user_id or self.guest_id}: {self.product_id}"
