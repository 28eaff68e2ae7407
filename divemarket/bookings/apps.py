from django.apps import AppConfig


class BookingsConfig(AppConfig):
    name = "divemarket.bookings"
    label = "bookings"
    verbose_name = "Dive Trip Bookings"
    default_auto_field = "django.db.models.BigAutoField"
