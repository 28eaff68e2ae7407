import uuid

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
            name="AuditLog",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "actor_display",
                    models.CharField(
                        blank=True,
                        help_text="Snapshot of actor identity at the time of the action",
                        max_length=200,
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        db_index=True,
                        help_text="Stable action string, e.g. booking_created",
                        max_length=50,
                    ),
                ),
                (
                    "model_label",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text='Model label in app.model format (e.g., "bookings.booking")',
                        max_length=100,
                    ),
                ),
                (
                    "object_id",
                    models.CharField(
                        blank=True,
                        help_text="Primary key of affected object as string",
                        max_length=50,
                    ),
                ),
                (
                    "object_repr",
                    models.CharField(
                        blank=True,
                        help_text="String representation of object at time of action",
                        max_length=200,
                    ),
                ),
                (
                    "changes",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text='Before/after field changes: {"field": {"old": x, "new": y}}',
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Additional context (price breakdown, refund decision, etc.)",
                    ),
                ),
                (
                    "is_system",
                    models.BooleanField(
                        default=False,
                        help_text="True if action was performed by the system (not a user)",
                    ),
                ),
                (
                    "actor_user",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who performed the action (null for system actions)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Audit Log",
                "verbose_name_plural": "Audit Logs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["model_label", "created_at"],
                        name="audit_log_a_model_l_3c1f0e_idx",
                    ),
                    models.Index(
                        fields=["action", "created_at"],
                        name="audit_log_a_action_8d2b4a_idx",
                    ),
                    models.Index(
                        fields=["object_id", "model_label"],
                        name="audit_log_a_object__5e7a91_idx",
                    ),
                ],
            },
        ),
    ]
