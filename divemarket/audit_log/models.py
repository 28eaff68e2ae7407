"""Audit log model for the booking core.

Every capacity, pricing and refund decision the core makes is recorded here:
- Actor tracking (user + display snapshot)
- Target tracking (model label, object id, string snapshot)
- Before/after change diffs (JSON)
- Free-form metadata (price breakdowns, refund decisions, positions)
- System action flag for scheduler-driven events

NOTE: Audit entries are append-only. They are never updated or deleted.
"""
import uuid

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """Immutable audit log entry."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    actor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
        help_text="User who performed the action (null for system actions)",
    )
    actor_display = models.CharField(
        max_length=200,
        blank=True,
        help_text="Snapshot of actor identity at the time of the action",
    )

    action = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Stable action string, e.g. booking_created",
    )

    model_label = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text='Model label in app.model format (e.g., "bookings.booking")',
    )
    object_id = models.CharField(
        max_length=50,
        blank=True,
        help_text="Primary key of affected object as string",
    )
    object_repr = models.CharField(
        max_length=200,
        blank=True,
        help_text="String representation of object at time of action",
    )

    changes = models.JSONField(
        default=dict,
        blank=True,
        help_text='Before/after field changes: {"field": {"old": x, "new": y}}',
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional context (price breakdown, refund decision, etc.)",
    )
    is_system = models.BooleanField(
        default=False,
        help_text="True if action was performed by the system (not a user)",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Audit Log"
        verbose_name_plural = "Audit Logs"
        indexes = [
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
        ]

    def __str__(self):
        actor = self.actor_display or "System"
        return f"{actor} {self.action} {self.model_label}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Audit logs are immutable and cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Audit logs are immutable and cannot be deleted")
