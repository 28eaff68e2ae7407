"""Expire lapsed waiting list offers and promote the next divers."""

from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Remove expired waiting list offers and offer the freed seats to the next divers"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show affected trips without making changes",
        )

    def handle(self, *args, **options):
        from divemarket.bookings.waitlist import (
            sweep_expired_promotions,
            trips_with_lapsed_offers,
        )

        if options["dry_run"]:
            trip_ids = trips_with_lapsed_offers()
            self.stdout.write(f"Found {len(trip_ids)} trips with lapsed offers")
            self.stdout.write(self.style.WARNING("Dry run - no changes will be made"))
            for trip_id in trip_ids:
                self.stdout.write(f"  Would sweep trip {trip_id}")
            return

        promoted = sweep_expired_promotions()
        for entry in promoted:
            self.stdout.write(
                f"  Promoted diver {entry.diver_id} on trip {entry.trip_id} "
                f"(offer expires {entry.expires_at:%Y-%m-%d %H:%M})"
            )
        self.stdout.write(self.style.SUCCESS(f"Done! Promoted {len(promoted)} divers"))
