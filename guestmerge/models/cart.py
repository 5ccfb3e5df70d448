"""CartItem model."""

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class CartItem(models.Model):
    """
    Cart line owned by a guest session or by an authenticated user.

    One line per (user, variant): adding the same variant again bumps the
    quantity instead of creating a second line.
    """

    guest_id = models.CharField(
        _("guest session id"), max_length=255, null=True, blank=True, db_index=True
    )
    auth_user_id = models.CharField(
        _("auth user id"), max_length=255, null=True, blank=True, db_index=True
    )
    variant_id = models.CharField(_("variant"), max_length=255)
    quantity = models.PositiveIntegerField(
        _("quantity"), default=1, validators=[MinValueValidator(1)]
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("cart item")
        verbose_name_plural = _("cart items")
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["auth_user_id", "variant_id"],
                condition=Q(auth_user_id__isnull=False),
                name="guestmerge_unique_user_cart_variant",
            ),
        ]

    def __str__(self):
        owner = self.auth_user_id or self.guest_id
        return f"{owner}: {self.variant_id} x{self.quantity}"
