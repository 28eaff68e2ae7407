"""Booking core: eligibility, pricing, capacity, waiting list, refunds, lifecycle."""
