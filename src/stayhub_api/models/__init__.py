"""API-specific request/response models.

Domain models (Booking, AvailabilityCalendar, PriceBreakdown, etc.) live in
stayhub.models and are reused here where they already fit the wire shape.

Modules:
- common: Error wrappers, success message and input validation helper
- availability: Calendar override requests, quotes and alternative dates
"""

__all__: list[str] = []
