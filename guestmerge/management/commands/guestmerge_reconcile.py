"""Management command to re-run a guest merge for one user."""

import json

from django.core.management.base import BaseCommand, CommandError

from guestmerge.services.merge import merge_guest_data


class Command(BaseCommand):
    help = "Merge a guest session / guest email into an authenticated user"

    def add_arguments(self, parser):
        parser.add_argument("--user-id", required=True, help="Authenticated user id")
        parser.add_argument("--email", default=None, help="Email used at guest checkout")
        parser.add_argument("--phone", default=None, help="Phone used at guest checkout")
        parser.add_argument("--guest-id", default=None, help="Guest session id")
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the full result as JSON",
        )

    def handle(self, *args, **options):
        result = merge_guest_data(
            options["user_id"],
            email=options["email"],
            phone=options["phone"],
            guest_session_id=options["guest_id"],
        )

        if not result.success:
            raise CommandError(f"Merge failed: {result.error}")

        if options["json"]:
            self.stdout.write(json.dumps(result.as_dict(), indent=2))
            return

        counts = result.merged_counts
        self.stdout.write(
            self.style.SUCCESS(
                f"Merged into customer {result.customer_id}: "
                f"{counts.cart_items} cart items, "
                f"{counts.wishlist_items} wishlist items, "
                f"{counts.orders} orders."
            )
        )
        for error in result.errors:
            self.stderr.write(self.style.WARNING(f"{error.step}: {error.message}"))
