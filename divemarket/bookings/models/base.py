"""Abstract base model for booking core models.

Usage:
    from divemarket.bookings.models.base import BaseModel

    class MyModel(BaseModel):
        name = models.CharField(max_length=100)

        class Meta(BaseModel.Meta):
            pass  # Inherits abstract = True behavior
"""
import uuid

from django.db import models


class BaseModel(models.Model):
    """Abstract base model with UUID primary key and timestamps.

    Attributes:
        id: UUID4 primary key
        created_at: Set once when the row is inserted
        updated_at: Refreshed on every save()
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]
