"""Public API for audit logging.

    from divemarket.audit_log import log

    log(action="booking_created", obj=booking, actor=user, metadata={...})
"""
from .models import AuditLog


def _get_actor_display(actor):
    """Get display string for actor."""
    if not actor:
        return ""
    if getattr(actor, "email", ""):
        return actor.email
    if getattr(actor, "username", ""):
        return actor.username
    return str(actor)


def log(
    action,
    obj=None,
    obj_label=None,
    obj_id=None,
    obj_repr=None,
    actor=None,
    changes=None,
    metadata=None,
    is_system=False,
):
    """Record an audit entry.

    Args:
        action: Stable action string
        obj: Model instance (label/id/repr are extracted from it)
        obj_label: Model label in app.model format (if obj not provided)
        obj_id: Object primary key (if obj not provided)
        obj_repr: Object string representation (if obj not provided)
        actor: User who performed the action (optional)
        changes: Dict of field changes: {"field": {"old": x, "new": y}}
        metadata: Additional context as dict (must be JSON-serialisable)
        is_system: True if action performed by the system

    Returns:
        AuditLog instance
    """
    if obj is not None:
        obj_label = f"{obj._meta.app_label}.{obj._meta.model_name}"
        obj_id = str(obj.pk) if obj.pk else ""
        obj_repr = str(obj)[:200] if obj_repr is None else obj_repr

    actor_display = _get_actor_display(actor)

    return AuditLog.objects.create(
        action=action,
        model_label=obj_label or "",
        object_id=str(obj_id) if obj_id else "",
        object_repr=obj_repr[:200] if obj_repr else "",
        actor_user=actor if getattr(actor, "pk", None) else None,
        actor_display=actor_display[:200],
        changes=changes or {},
        metadata=metadata or {},
        is_system=is_system,
    )
