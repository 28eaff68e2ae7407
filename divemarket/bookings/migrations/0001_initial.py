import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DivingCenter",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="owned_centers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "staff",
                    models.ManyToManyField(
                        blank=True,
                        related_name="staffed_centers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="DiveSite",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                (
                    "site_code",
                    models.CharField(
                        help_text="Site code issued by the conservation authority",
                        max_length=50,
                        unique=True,
                    ),
                ),
                (
                    "conservation_zone",
                    models.CharField(
                        choices=[
                            ("zone_0", "Zone 0 (no fee)"),
                            ("zone_1", "Zone 1 (strict protection)"),
                            ("zone_2", "Zone 2 (managed use)"),
                            ("zone_3", "Zone 3 (general use)"),
                        ],
                        default="zone_2",
                        max_length=10,
                    ),
                ),
                (
                    "conservation_fee",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Explicit per-diver fee (overrides the zone fee)",
                        max_digits=10,
                        null=True,
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "abstract": False,
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("conservation_fee__isnull", True), ("conservation_fee__gte", 0), _connector="OR"),
                        name="bookings_site_conservation_fee_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DiverProfile",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                ("total_logged_dives", models.PositiveIntegerField(default=0)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="diver_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="DiverCertification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("agency", models.CharField(blank=True, max_length=50)),
                ("level", models.CharField(max_length=100)),
                ("certification_number", models.CharField(blank=True, max_length=100)),
                (
                    "verification_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("verified", "Verified"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                (
                    "diver",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="certifications",
                        to="bookings.diverprofile",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["diver", "verification_status"], name="bookings_cert_diver_status"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Trip",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=200)),
                ("departure_time", models.DateTimeField()),
                ("return_time", models.DateTimeField(blank=True, null=True)),
                ("max_participants", models.PositiveIntegerField()),
                ("current_participants", models.PositiveIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("full", "Full"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("min_age", models.PositiveSmallIntegerField(default=10)),
                ("max_age", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("min_certification_level", models.CharField(blank=True, max_length=100)),
                ("min_logged_dives", models.PositiveIntegerField(default=0)),
                ("price_per_person", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "equipment_rental_price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Per-diver rental price (null = no rental offered)",
                        max_digits=10,
                        null=True,
                    ),
                ),
                ("conservation_fee_included", models.BooleanField(default=False)),
                ("cancellation_deadline_hours", models.PositiveIntegerField(default=24)),
                ("published_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True)),
                (
                    "center",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="trips",
                        to="bookings.divingcenter",
                    ),
                ),
                (
                    "site",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trips",
                        to="bookings.divesite",
                    ),
                ),
            ],
            options={
                "ordering": ["departure_time"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["status", "departure_time"], name="bookings_trip_status_dep"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("max_participants__gt", 0)),
                        name="bookings_trip_max_participants_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("current_participants__lte", models.F("max_participants"))),
                        name="bookings_trip_current_lte_max",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("price_per_person__gte", 0)),
                        name="bookings_trip_price_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("booking_number", models.CharField(max_length=20, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("paid", "Paid"),
                            ("checked_in", "Checked In"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("refunded", "Refunded"),
                            ("partially_refunded", "Partially Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("number_of_divers", models.PositiveSmallIntegerField(default=1)),
                ("needs_equipment", models.BooleanField(default=False)),
                ("currency", models.CharField(default="SAR", max_length=3)),
                ("base_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("equipment_rental", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("conservation_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("insurance_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("platform_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("vat_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "price_snapshot",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Full pricing context at booking time (immutable snapshot)",
                    ),
                ),
                ("special_requests", models.TextField(blank=True)),
                ("dietary_requirements", models.TextField(blank=True)),
                ("equipment_sizes", models.JSONField(blank=True, default=dict)),
                ("waiver_signed_at", models.DateTimeField(blank=True, null=True)),
                ("waiver_ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("parent_consent_required", models.BooleanField(default=False)),
                ("parent_consent_given_at", models.DateTimeField(blank=True, null=True)),
                ("parent_consent_by", models.CharField(blank=True, max_length=200)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True)),
                (
                    "refund_amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Refund computed by the booking core at cancellation",
                        max_digits=10,
                        null=True,
                    ),
                ),
                (
                    "amount_refunded",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Money actually returned, as reported by the payment system",
                        max_digits=10,
                    ),
                ),
                (
                    "booked_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dive_bookings_made",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dive_bookings_cancelled",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "checked_in_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dive_check_ins",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "diver",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dive_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "trip",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="bookings.trip",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["trip", "status"], name="bookings_booking_trip_status"),
                    models.Index(fields=["diver", "status"], name="bookings_booking_diver_status"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(
                            (
                                "status__in",
                                [
                                    "pending",
                                    "confirmed",
                                    "paid",
                                    "checked_in",
                                    "completed",
                                    "partially_refunded",
                                ],
                            )
                        ),
                        fields=("trip", "diver"),
                        name="bookings_booking_one_active_per_trip",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("number_of_divers__gte", 1)),
                        name="bookings_booking_number_of_divers_gte_one",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WaitingListEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField()),
                ("notified_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "diver",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="waiting_list_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "trip",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="waiting_list",
                        to="bookings.trip",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Waiting list entries",
                "ordering": ["trip", "position"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("trip", "diver"),
                        name="bookings_waitlist_one_per_diver",
                    ),
                    models.UniqueConstraint(
                        fields=("trip", "position"),
                        name="bookings_waitlist_unique_position",
                    ),
                ],
            },
        ),
    ]
