import uuid
from decimal import Decimal
from django.conf import settings
from django.core.cache import cache

from .models import Booking, Ticket

class SeatManager:
    """Seat occupancy for a showtime.

    A seat is occupied when a ticket for it exists under a booking of that
    showtime whose status is not CANCELLED; PENDING bookings hold their seats.
    """

    @staticmethod
    def get_occupied_tickets(showtime_id, seat_ids):

        return (
            Ticket.objects
            .filter(
                seat_id__in=list(seat_ids),
                booking__showtime_id=showtime_id,
            )
            .exclude(booking__status=Booking.STATUS_CANCELLED)
            .select_related('seat')
        )

    @staticmethod
    def get_occupied_seat_ids(showtime_id, seat_ids):
        if not seat_ids:
            return set()
        return set(
            SeatManager.get_occupied_tickets(showtime_id, seat_ids).values_list('seat_id', flat=True)
        )

    @staticmethod
    def get_occupied_seat_numbers(showtime_id, seat_ids):
        numbers = SeatManager.get_occupied_tickets(showtime_id, seat_ids).values_list('seat__seat_number', flat=True)
        return sorted(set(numbers), key=lambda number: (len(number), number))

    @staticmethod
    def booked_seats_cache_key(showtime_id):
        return f"booked_seats_{showtime_id}"

    @staticmethod
    def get_booked_seats(showtime_id):
        """Seat summaries for every sold seat of a showtime.

        Only a courtesy for seat maps: the result may lag by the cache timeout,
        while booking creation always re-checks against the database.
        """
        cache_key = SeatManager.booked_seats_cache_key(showtime_id)
        booked = cache.get(cache_key)

        if booked is None:
            tickets = (
                Ticket.objects
                .filter(booking__showtime_id=showtime_id)
                .exclude(booking__status=Booking.STATUS_CANCELLED)
                .select_related('seat')
                .order_by('seat_id')
            )
            booked = [
                {
                    'id': ticket.id,
                    'seat_id': ticket.seat_id,
                    'seat_number': ticket.seat.seat_number,
                    'row': ticket.seat.row,
                    'col': ticket.seat.col,
                    'price': ticket.price,
                }
                for ticket in tickets
            ]
            cache.set(cache_key, booked, timeout=settings.BOOKED_SEATS_CACHE_TIMEOUT)

        return booked

    @staticmethod
    def invalidate_booked_seats(showtime_id):
        cache.delete(SeatManager.booked_seats_cache_key(showtime_id))

class PriceCalculator:
    # Every seat of a showtime costs the showtime price; seat type does not change it

    @staticmethod
    def ticket_subtotal(showtime, seat_count):
        return showtime.price * seat_count

    @staticmethod
    def refreshment_line_total(refreshment, quantity):
        return refreshment.price * quantity

    @staticmethod
    def calculate_booking_amount(showtime, seat_count, refreshment_lines=()):
        """``refreshment_lines`` is an iterable of ``(refreshment, quantity)`` pairs."""

        ticket_subtotal = PriceCalculator.ticket_subtotal(showtime, seat_count)

        refreshment_subtotal = Decimal('0.00')
        for refreshment, quantity in refreshment_lines:
            refreshment_subtotal += PriceCalculator.refreshment_line_total(refreshment, quantity)

        return {
            'ticket_price': showtime.price,
            'ticket_subtotal': ticket_subtotal,
            'refreshment_subtotal': refreshment_subtotal,
            'total_price': ticket_subtotal + refreshment_subtotal,
        }

def generate_booking_code():
    # BK + 10 upper-case hex characters
    return f"BK{uuid.uuid4().hex[:10].upper()}"
