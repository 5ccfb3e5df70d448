"""Order model (ownership fields only).

Pricing, payment and fulfilment live elsewhere; this table only carries what
the merge needs to move an order from a guest identity to a user.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Order(models.Model):
    """Storefront order."""

    number = models.CharField(_("number"), max_length=50, unique=True)

    # Guest identity (pre-merge)
    guest_id = models.CharField(
        _("guest session id"), max_length=255, null=True, blank=True, db_index=True
    )
    guest_email = models.EmailField(_("guest email"), blank=True, db_index=True)

    # Authenticated owner (post-merge)
    auth_user_id = models.CharField(
        _("auth user id"), max_length=255, null=True, blank=True, db_index=True
    )
    customer = models.ForeignKey(
        "guestmerge.Customer",
        on_delete=models.SET_NULL,
        related_name="orders",
        null=True,
        blank=True,
        verbose_name=_("customer"),
    )

    status = models.CharField(_("status"), max_length=30, default="pending")
    total_q = models.BigIntegerField(_("total (minor units)"), default=0)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("order")
        verbose_name_plural = _("orders")
        ordering = ["-created_at"]

    def __str__(self):
        return self.number

    @property
    def is_owned(self) -> bool:
        return bool(self.auth_user_id)

    def save(self, *args, **kwargs):
        if self.guest_email:
            self.guest_email = self.guest_email.lower().strip()
        super().save(*args, **kwargs)
