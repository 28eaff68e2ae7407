"""Append-only audit trail for the booking core."""


def log(*args, **kwargs):
    """Record an audit entry for a model operation."""
    from .api import log as _log
    return _log(*args, **kwargs)


__all__ = ["log"]
