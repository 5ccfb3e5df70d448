"""Customer model (customer directory).

Data architecture:
    Customer (customer_type=guest)
        Created by guest checkout. Carries the guest session id and whatever
        contact the shopper typed in. Several guest rows may share an email
        or phone; they are never deleted, only flagged status=merged.

    Customer (customer_type=registered)
        One per authenticated user (auth_user_id). Created lazily by the
        merge service the first time the user logs in.
"""

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class CustomerType(models.TextChoices):
    GUEST = "guest", _("Guest")
    REGISTERED = "registered", _("Registered")


class CustomerStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    MERGED = "merged", _("Merged")


class Customer(models.Model):
    """Guest or registered storefront customer."""

    auth_user_id = models.CharField(
        _("auth user id"),
        max_length=255,
        null=True,
        blank=True,
        help_text=_("Authenticated user id (registered customers only)"),
    )
    guest_id = models.CharField(
        _("guest session id"), max_length=255, blank=True, db_index=True
    )

    email = models.EmailField(_("email"), blank=True, db_index=True)
    phone = models.CharField(_("phone"), max_length=20, blank=True, db_index=True)

    customer_type = models.CharField(
        _("type"),
        max_length=20,
        choices=CustomerType.choices,
        default=CustomerType.GUEST,
        db_index=True,
    )
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=CustomerStatus.choices,
        default=CustomerStatus.ACTIVE,
        db_index=True,
    )

    # merged_into_user_id / merged_at are stamped here on merge
    metadata = models.JSONField(_("metadata"), default=dict, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("customer")
        verbose_name_plural = _("customers")
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["auth_user_id"],
                condition=Q(auth_user_id__isnull=False),
                name="guestmerge_unique_auth_user",
            ),
        ]

    def __str__(self):
        who = self.email or self.phone or self.auth_user_id or self.guest_id
        return f"{self.get_customer_type_display()}: {who}"

    @property
    def is_merged(self) -> bool:
        return self.status == CustomerStatus.MERGED

    @property
    def merged_into_user_id(self) -> str | None:
        return (self.metadata or {}).get("merged_into_user_id")

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower().strip()
        if self.phone:
            self.phone = self.phone.strip()
        if not self.auth_user_id:
            self.auth_user_id = None

        super().save(*args, **kwargs)
