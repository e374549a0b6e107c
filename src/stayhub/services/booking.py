"""Booking service: the only entry point that changes bookings.

Writes that claim nights (reserve, reschedule) run their check-price-commit
sequence while holding the property's lock, and commit with a write that
is conditional on the property's calendar version. A commit that loses the
version race raises ``ConcurrentModificationError`` rather than
``ConflictError``: the caller's dates may still be free.
"""

import datetime as dt
import math
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

from stayhub.models import (
    Booking,
    BookingCreate,
    BookingDatesChange,
    BookingError,
    BookingPage,
    BookingSearch,
    BookingStatus,
    ConcurrentModificationError,
    ForbiddenError,
    GuestLimitExceededError,
    InvalidStateError,
    NotFoundError,
    PaymentStatus,
    StoreError,
    ensure_transition,
)
from stayhub.utils.dates import utc_now
from stayhub.utils.logging import get_logger, log_booking_operation

from .locks import PropertyLockRegistry

if TYPE_CHECKING:
    from .calendar import CalendarResolver
    from .conflicts import ConflictChecker
    from .pricing import PricingCalculator
    from .store import BookingStore

logger = get_logger(__name__)


class BookingService:
    """Validates and commits reservations and their status changes."""

    def __init__(
        self,
        store: "BookingStore",
        calendar: "CalendarResolver",
        conflicts: "ConflictChecker",
        pricing: "PricingCalculator",
        locks: PropertyLockRegistry | None = None,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        """Initialize booking service.

        Args:
            store: Booking store
            calendar: Calendar resolver
            conflicts: Conflict checker
            pricing: Pricing calculator
            locks: Per-property lock registry, shared by every writer in
                the process
            clock: Source of the current UTC time
        """
        self.store = store
        self.calendar = calendar
        self.conflicts = conflicts
        self.pricing = pricing
        self.locks = locks or PropertyLockRegistry()
        self.clock = clock

    # Reservations

    def reserve(self, guest_id: str, request: BookingCreate) -> Booking:
        """Create a booking for a guest.

        Args:
            guest_id: Authenticated guest making the booking
            request: Validated booking request

        Returns:
            The committed booking, ``confirmed`` for instant-book
            properties and ``pending`` otherwise

        Raises:
            NotFoundError: Property does not exist or is not published
            GuestLimitExceededError: Party is larger than the property allows
            InvalidRangeError: Stay length outside the property's bounds
            UnavailableError: A night is blocked by the host
            ConflictError: The stay overlaps an active booking
            ConcurrentModificationError: The calendar changed during commit
        """
        try:
            booking = self._reserve(guest_id, request)
        except BookingError as e:
            log_booking_operation(
                logger,
                "reserve",
                property_id=request.property_id,
                actor_id=guest_id,
                rejected=e.code.value,
            )
            raise
        except StoreError as e:
            log_booking_operation(
                logger,
                "reserve",
                property_id=request.property_id,
                actor_id=guest_id,
                error=str(e) or e.code.value,
            )
            raise

        log_booking_operation(
            logger,
            "reserve",
            booking_id=booking.booking_id,
            property_id=booking.property_id,
            actor_id=guest_id,
            status=booking.status.value,
            nights=booking.nights,
            total=str(booking.pricing.total),
        )
        return booking

    def _reserve(self, guest_id: str, request: BookingCreate) -> Booking:
        guests = request.guests
        with self.locks.hold(request.property_id):
            # Every check below runs on this one read; its version guards the commit
            prop = self.calendar.get_property(request.property_id)
            if not prop.is_published:
                raise NotFoundError(details={"property_id": prop.property_id})
            if guests.occupancy > prop.max_guests:
                raise GuestLimitExceededError(
                    details={"requested": str(guests.occupancy), "maximum": str(prop.max_guests)},
                )

            report = self.conflicts.evaluate(prop, request.check_in_date, request.check_out_date)
            report.raise_for_conflict()
            pricing = self.pricing.price_days(prop, report.days)

            now = self.clock()
            status = BookingStatus.CONFIRMED if prop.is_instant_book else BookingStatus.PENDING
            booking = Booking(
                booking_id=str(uuid.uuid4()),
                property_id=prop.property_id,
                guest_id=guest_id,
                host_id=prop.host_id,
                check_in_date=request.check_in_date,
                check_out_date=request.check_out_date,
                guests=guests,
                pricing=pricing,
                status=status,
                payment_status=PaymentStatus.PENDING,
                guest_message=request.guest_message,
                created_at=now,
                updated_at=now,
                confirmed_at=now if status == BookingStatus.CONFIRMED else None,
            )

            committed = self.store.insert_booking(booking, prop.calendar_version)
            if committed is None:
                raise ConcurrentModificationError(
                    f"Calendar of property {prop.property_id} changed during reserve"
                )
            return committed

    def reschedule(
        self,
        booking_id: str,
        actor_id: str,
        change: BookingDatesChange,
    ) -> Booking:
        """Move an active booking to new dates, re-validated and re-priced.

        The booking's own current nights do not count as a conflict.

        Raises:
            NotFoundError: Booking does not exist
            ForbiddenError: Caller is not the booking's guest
            InvalidStateError: Booking is cancelled or completed
            InvalidRangeError, UnavailableError, ConflictError: New dates
                cannot be booked
            ConcurrentModificationError: The calendar changed during commit
        """
        booking = self._get_existing(booking_id)
        try:
            if actor_id != booking.guest_id:
                raise ForbiddenError(details={"booking_id": booking_id})
            if not booking.is_active:
                raise InvalidStateError(details={"current_status": booking.status.value})
            updated = self._reschedule(booking, change)
        except BookingError as e:
            log_booking_operation(
                logger,
                "reschedule",
                booking_id=booking_id,
                property_id=booking.property_id,
                actor_id=actor_id,
                rejected=e.code.value,
            )
            raise
        except StoreError as e:
            log_booking_operation(
                logger,
                "reschedule",
                booking_id=booking_id,
                property_id=booking.property_id,
                actor_id=actor_id,
                error=str(e) or e.code.value,
            )
            raise

        log_booking_operation(
            logger,
            "reschedule",
            booking_id=booking_id,
            property_id=updated.property_id,
            actor_id=actor_id,
            status=updated.status.value,
            check_in=updated.check_in_date.isoformat(),
            check_out=updated.check_out_date.isoformat(),
        )
        return updated

    def _reschedule(self, booking: Booking, change: BookingDatesChange) -> Booking:
        with self.locks.hold(booking.property_id):
            prop = self.calendar.get_property(booking.property_id)
            report = self.conflicts.evaluate(
                prop,
                change.check_in_date,
                change.check_out_date,
                exclude_booking_id=booking.booking_id,
            )
            report.raise_for_conflict()
            pricing = self.pricing.price_days(prop, report.days)

            moved = booking.model_copy(
                update={
                    "check_in_date": change.check_in_date,
                    "check_out_date": change.check_out_date,
                    "pricing": pricing,
                    "updated_at": self.clock(),
                }
            )
            committed = self.store.update_booking_dates(moved, prop.calendar_version)
            if committed is not None:
                return committed

            current = self._get_existing(booking.booking_id)
            if not current.is_active:
                raise InvalidStateError(details={"current_status": current.status.value})
            raise ConcurrentModificationError(
                f"Calendar of property {booking.property_id} changed during reschedule"
            )

    # Status transitions

    def cancel(self, booking_id: str, actor_id: str) -> Booking:
        """Cancel a booking on behalf of its guest or host.

        Raises:
            NotFoundError: Booking does not exist
            ForbiddenError: Caller is neither the guest nor the host
            InvalidStateError: Booking is already cancelled or completed
        """
        return self._transition(
            "cancel",
            booking_id,
            actor_id,
            BookingStatus.CANCELLED,
            allow_guest=True,
        )

    def confirm(self, booking_id: str, actor_id: str) -> Booking:
        """Confirm a pending booking. Host only."""
        return self._transition(
            "confirm",
            booking_id,
            actor_id,
            BookingStatus.CONFIRMED,
            allow_guest=False,
        )

    def complete(self, booking_id: str, actor_id: str) -> Booking:
        """Mark a confirmed stay as completed. Host only."""
        return self._transition(
            "complete",
            booking_id,
            actor_id,
            BookingStatus.COMPLETED,
            allow_guest=False,
        )

    def _transition(
        self,
        operation: str,
        booking_id: str,
        actor_id: str,
        target: BookingStatus,
        allow_guest: bool,
    ) -> Booking:
        booking = self._get_existing(booking_id)
        try:
            allowed_actors = {booking.host_id}
            if allow_guest:
                allowed_actors.add(booking.guest_id)
            if actor_id not in allowed_actors:
                raise ForbiddenError(details={"booking_id": booking_id})

            ensure_transition(booking.status, target)
            updated = self.store.update_booking_status(booking, target, self.clock(), actor_id)
            if updated is None:
                # Someone else moved the booking since it was read
                current = self._get_existing(booking_id)
                raise InvalidStateError(
                    details={"current_status": current.status.value, "target_status": target.value}
                )
        except BookingError as e:
            log_booking_operation(
                logger,
                operation,
                booking_id=booking_id,
                property_id=booking.property_id,
                actor_id=actor_id,
                rejected=e.code.value,
            )
            raise
        except StoreError as e:
            log_booking_operation(
                logger,
                operation,
                booking_id=booking_id,
                property_id=booking.property_id,
                actor_id=actor_id,
                error=str(e) or e.code.value,
            )
            raise

        log_booking_operation(
            logger,
            operation,
            booking_id=booking_id,
            property_id=updated.property_id,
            actor_id=actor_id,
            status=updated.status.value,
        )
        return updated

    # Reads

    def get_booking(self, booking_id: str, actor_id: str) -> Booking:
        """Get a booking visible to its guest or host.

        Raises:
            NotFoundError: Booking does not exist
            ForbiddenError: Caller is neither the guest nor the host
        """
        booking = self._get_existing(booking_id)
        if actor_id not in (booking.guest_id, booking.host_id):
            raise ForbiddenError(details={"booking_id": booking_id})
        return booking

    def list_bookings(self, guest_id: str, search: BookingSearch) -> BookingPage:
        """List a guest's bookings, filtered and paginated.

        Args:
            guest_id: Guest whose bookings to list
            search: Status, upcoming/past filters and page

        Returns:
            The requested page, ordered by check-in date
        """
        today = self.clock().date()
        bookings = self.store.list_guest_bookings(guest_id)

        if search.status is not None:
            bookings = [b for b in bookings if b.status == search.status]
        if search.upcoming:
            bookings = [b for b in bookings if b.check_in_date >= today]
        if search.past:
            bookings = [b for b in bookings if b.check_out_date < today]
        bookings.sort(key=lambda b: (b.check_in_date, b.booking_id))

        total = len(bookings)
        offset = (search.page - 1) * search.limit
        return BookingPage(
            data=bookings[offset : offset + search.limit],
            page=search.page,
            limit=search.limit,
            total=total,
            total_pages=math.ceil(total / search.limit),
        )

    def _get_existing(self, booking_id: str) -> Booking:
        booking = self.store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(details={"booking_id": booking_id})
        return booking
