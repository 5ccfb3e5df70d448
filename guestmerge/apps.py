from django.apps import AppConfig


class GuestmergeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "guestmerge"
    verbose_name = "Guestmerge - Guest Account Reconciliation"

    def ready(self):
        import guestmerge.receivers  # noqa: F401
