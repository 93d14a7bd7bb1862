from django.conf import settings
from django.contrib.auth.models import User
from django.core.paginator import Paginator
from django.db import IntegrityError, transaction
from django.utils import timezone
import logging

from cinemabooking.exceptions import (
    Forbidden, IllegalStateTransition, InvalidRequest, NotFound, SeatConflict,
)
from movies.models import Refreshment
from movies.theater_models import Seat, Showtime
from movies.utils import lock_for_update
from . import policies
from .models import Booking, BookingRefreshment, Ticket
from .utils import SeatManager, PriceCalculator, generate_booking_code

logger = logging.getLogger(__name__)

def _bookings():
    return (
        Booking.objects
        .select_related('user__profile', 'showtime__movie', 'showtime__room__cinema')
        .prefetch_related('tickets__seat', 'booking_refreshments__refreshment')
    )

class BookingService:

    @staticmethod
    def _load(booking_id):
        booking = _bookings().filter(id=booking_id).first()
        if booking is None:
            raise NotFound(f"Booking {booking_id} does not exist")
        return booking

    @staticmethod
    def create_booking(caller, showtime_id, seat_ids, refreshment_orders=()):
        """Reserve ``seat_ids`` for the caller, with optional refreshments.

        ``refreshment_orders`` holds ``(refreshment_id, quantity)`` pairs. The
        occupancy check and the ticket inserts share one transaction; if a
        concurrent booking still wins the race, the active-seat unique
        constraint rejects the insert and the caller gets the same
        ``SeatConflict`` a failed occupancy check produces.
        """
        seat_ids = list(seat_ids)
        refreshment_orders = list(refreshment_orders)

        try:
            booking_id = BookingService._create_booking(caller, showtime_id, seat_ids, refreshment_orders)
        except IntegrityError:
            occupied = SeatManager.get_occupied_seat_numbers(showtime_id, seat_ids)
            if not occupied:
                raise
            logger.warning(f"Seat race lost by user {caller.id} on showtime {showtime_id}: {occupied}")
            raise SeatConflict(occupied)

        SeatManager.invalidate_booked_seats(showtime_id)
        return BookingService._load(booking_id)

    @staticmethod
    @transaction.atomic
    def _create_booking(caller, showtime_id, seat_ids, refreshment_orders):

        user = User.objects.filter(id=caller.id).first()
        if user is None:
            raise NotFound(f"User {caller.id} does not exist")

        # Row lock on the showtime serializes bookings for it where the backend supports it
        showtime = lock_for_update(Showtime.objects.filter(id=showtime_id)).first()
        if showtime is None:
            raise NotFound(f"Showtime {showtime_id} does not exist")
        if showtime.has_started():
            raise InvalidRequest('Cannot book a showtime that has already started')

        if not seat_ids:
            raise InvalidRequest('Select at least one seat')
        if len(set(seat_ids)) != len(seat_ids):
            raise InvalidRequest('The same seat was requested more than once')

        seats = list(Seat.objects.filter(id__in=seat_ids).order_by('id'))
        if len(seats) != len(seat_ids):
            missing = sorted(set(seat_ids) - {seat.id for seat in seats})
            raise NotFound(f"Seat(s) {', '.join(str(i) for i in missing)} do not exist")

        if any(seat.room_id != showtime.room_id for seat in seats):
            raise InvalidRequest("One or more seats are not in the showtime's room")

        occupied = SeatManager.get_occupied_seat_numbers(showtime.id, seat_ids)
        if occupied:
            logger.warning(f"User {user.id} requested taken seats {occupied} for showtime {showtime.id}")
            raise SeatConflict(occupied)

        refreshment_lines = BookingService._resolve_refreshments(refreshment_orders)
        amounts = PriceCalculator.calculate_booking_amount(showtime, len(seats), refreshment_lines)

        booking = BookingService._create_booking_record(user, showtime, amounts['total_price'])

        Ticket.objects.bulk_create([
            Ticket(booking=booking, showtime=showtime, seat=seat, price=amounts['ticket_price'])
            for seat in seats
        ])
        BookingRefreshment.objects.bulk_create([
            BookingRefreshment(
                booking=booking,
                refreshment=refreshment,
                quantity=quantity,
                unit_price=refreshment.price,
                total_price=PriceCalculator.refreshment_line_total(refreshment, quantity),
            )
            for refreshment, quantity in refreshment_lines
        ])

        logger.info(
            f"Booking created: {booking.booking_code} for user {user.id}, showtime {showtime.id}, "
            f"seats {[seat.seat_number for seat in seats]}, total {booking.total_price}"
        )
        return booking.id

    @staticmethod
    def _resolve_refreshments(refreshment_orders):
        if not refreshment_orders:
            return []

        ids = [refreshment_id for refreshment_id, _ in refreshment_orders]
        if len(set(ids)) != len(ids):
            raise InvalidRequest('Each refreshment may appear only once per booking')
        if any(quantity < 1 for _, quantity in refreshment_orders):
            raise InvalidRequest('Refreshment quantity must be at least 1')

        refreshments = Refreshment.objects.in_bulk(ids)
        missing = sorted(set(ids) - set(refreshments))
        if missing:
            raise NotFound(f"Refreshment(s) {', '.join(str(i) for i in missing)} do not exist")

        retired = [r.name for r in refreshments.values() if not r.is_current]
        if retired:
            raise InvalidRequest(f"No longer sold: {', '.join(sorted(retired))}")

        return [(refreshments[refreshment_id], quantity) for refreshment_id, quantity in refreshment_orders]

    @staticmethod
    def _create_booking_record(user, showtime, total_price):
        for _ in range(settings.BOOKING_CODE_ATTEMPTS):
            booking_code = generate_booking_code()
            try:
                with transaction.atomic():
                    return Booking.objects.create(
                        user=user,
                        showtime=showtime,
                        booking_code=booking_code,
                        total_price=total_price,
                        status=Booking.STATUS_PENDING,
                    )
            except IntegrityError:
                logger.warning(f"Booking code collision on {booking_code}, regenerating")
        raise RuntimeError('Could not generate a unique booking code')

    @staticmethod
    def list_bookings(caller, status=None, page=0, size=10):
        if status and status not in dict(Booking.BOOKING_STATUS):
            raise InvalidRequest(f"Unknown booking status: {status}")
        if page < 0 or size < 1:
            raise InvalidRequest('Page must be >= 0 and size >= 1')

        bookings = _bookings()
        if not caller.is_admin:
            bookings = bookings.filter(user_id=caller.id)
        if status:
            bookings = bookings.filter(status=status)

        paginator = Paginator(bookings, size)
        # Pages are zero-based for API callers
        return paginator, paginator.get_page(page + 1)

    @staticmethod
    def get_booking(caller, booking_id):
        booking = BookingService._load(booking_id)
        if not policies.can_view(caller, booking):
            raise Forbidden('You do not have permission to view this booking')
        return booking

    @staticmethod
    def get_tickets(caller, booking_id):
        return list(BookingService.get_booking(caller, booking_id).tickets.all())

    @staticmethod
    @transaction.atomic
    def confirm_booking(caller, booking_id):

        booking = lock_for_update(Booking.objects.filter(id=booking_id)).first()
        if booking is None:
            raise NotFound(f"Booking {booking_id} does not exist")
        if not policies.can_confirm(caller, booking):
            raise Forbidden('Only admins can confirm payment')

        if booking.is_paid:
            raise IllegalStateTransition('Booking has already been paid')
        if booking.is_cancelled:
            raise IllegalStateTransition('Booking has been cancelled')

        booking.status = Booking.STATUS_PAID
        booking.payment_time = timezone.now()
        booking.save(update_fields=['status', 'payment_time', 'updated_at'])

        logger.info(f"Booking {booking.booking_code} confirmed as paid by user {caller.id}")
        return BookingService._load(booking.id)

    @staticmethod
    def cancel_booking(caller, booking_id):
        booking = BookingService._cancel_booking(caller, booking_id)
        SeatManager.invalidate_booked_seats(booking.showtime_id)
        return BookingService._load(booking.id)

    @staticmethod
    @transaction.atomic
    def _cancel_booking(caller, booking_id):

        booking = lock_for_update(Booking.objects.filter(id=booking_id)).first()
        if booking is None:
            raise NotFound(f"Booking {booking_id} does not exist")
        if not policies.can_cancel(caller, booking):
            raise Forbidden('You do not have permission to cancel this booking')

        if booking.is_paid:
            raise IllegalStateTransition('Paid bookings cannot be cancelled')
        if booking.is_cancelled:
            raise IllegalStateTransition('Booking has already been cancelled')
        if booking.showtime.has_started():
            raise IllegalStateTransition('Cannot cancel a booking after the showtime has started')

        booking.status = Booking.STATUS_CANCELLED
        booking.save(update_fields=['status', 'updated_at'])
        # Tickets stay for history; deactivating them frees the seats
        released = Ticket.objects.filter(booking=booking).update(is_active=False)

        logger.info(f"Booking {booking.booking_code} cancelled by user {caller.id}, {released} seats released")
        return booking

    @staticmethod
    @transaction.atomic
    def delete_booking(caller, booking_id):

        booking = lock_for_update(Booking.objects.filter(id=booking_id)).first()
        if booking is None:
            raise NotFound(f"Booking {booking_id} does not exist")
        if not policies.can_delete(caller, booking):
            raise Forbidden('Only admins can delete bookings')

        BookingService.delete_bookings(Booking.objects.filter(id=booking.id))
        logger.info(f"Booking {booking.booking_code} deleted by user {caller.id}")

    @staticmethod
    @transaction.atomic
    def delete_bookings(bookings):
        """Delete bookings with their tickets and refreshment lines, dependents first."""

        rows = list(bookings.values_list('id', 'showtime_id'))
        booking_ids = [booking_id for booking_id, _ in rows]
        if not booking_ids:
            return 0

        BookingRefreshment.objects.filter(booking_id__in=booking_ids).delete()
        Ticket.objects.filter(booking_id__in=booking_ids).delete()
        deleted, _ = Booking.objects.filter(id__in=booking_ids).delete()

        for showtime_id in {showtime_id for _, showtime_id in rows}:
            SeatManager.invalidate_booked_seats(showtime_id)
        return deleted

    @staticmethod
    def get_booked_seats(showtime_id):
        if not Showtime.objects.filter(id=showtime_id).exists():
            raise NotFound(f"Showtime {showtime_id} does not exist")
        return SeatManager.get_booked_seats(showtime_id)
