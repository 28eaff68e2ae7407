"""Django app configuration for the audit trail."""
from django.apps import AppConfig


class AuditLogConfig(AppConfig):
    name = "divemarket.audit_log"
    label = "audit_log"
    verbose_name = "Audit Log"
    default_auto_field = "django.db.models.BigAutoField"
