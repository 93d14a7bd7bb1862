from django.db import models
from django.db.models import Q
from django.contrib.auth.models import User
from movies.models import Refreshment
from movies.theater_models import Showtime, Seat

class Booking(models.Model):
    STATUS_PENDING = 'PENDING'
    STATUS_PAID = 'PAID'
    STATUS_CANCELLED = 'CANCELLED'
    BOOKING_STATUS = (
        (STATUS_PENDING, 'Pending Payment'),
        (STATUS_PAID, 'Paid'),
        (STATUS_CANCELLED, 'Cancelled'),
    )

    booking_code = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='bookings')
    showtime = models.ForeignKey(Showtime, on_delete=models.PROTECT, related_name='bookings')

    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(max_length=20, choices=BOOKING_STATUS, default=STATUS_PENDING, db_index=True)
    payment_time = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['showtime', 'status'], name='booking_showtime_status_idx'),
        ]

    def __str__(self):
        return f"{self.booking_code} - {self.user.username}"

    @property
    def is_pending(self):
        return self.status == self.STATUS_PENDING

    @property
    def is_paid(self):
        return self.status == self.STATUS_PAID

    @property
    def is_cancelled(self):
        return self.status == self.STATUS_CANCELLED

    def get_seats_display(self):
        return ", ".join(ticket.seat.seat_number for ticket in self.tickets.all())

    def get_formatted_total(self):
        return f"{self.total_price:,.2f}"

class Ticket(models.Model):

    booking = models.ForeignKey(Booking, on_delete=models.PROTECT, related_name='tickets')
    # Copied from booking.showtime so the database can enforce one active ticket per seat and showtime
    showtime = models.ForeignKey(Showtime, on_delete=models.PROTECT, related_name='tickets')
    seat = models.ForeignKey(Seat, on_delete=models.PROTECT, related_name='tickets')

    price = models.DecimalField(max_digits=10, decimal_places=2)

    # Cleared when the booking is cancelled, releasing the seat
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'seat'], name='unique_ticket_per_booking_seat'),
            models.UniqueConstraint(
                fields=['showtime', 'seat'],
                condition=Q(is_active=True),
                name='unique_active_ticket_per_showtime_seat',
            ),
        ]

    def __str__(self):
        return f"{self.booking.booking_code} - {self.seat.seat_number}"

class BookingRefreshment(models.Model):

    booking = models.ForeignKey(Booking, on_delete=models.PROTECT, related_name='booking_refreshments')
    refreshment = models.ForeignKey(Refreshment, on_delete=models.PROTECT, related_name='booking_refreshments')

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)  # unit_price x quantity

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'refreshment'], name='unique_booking_refreshment'),
            models.CheckConstraint(condition=Q(quantity__gte=1), name='booking_refreshment_quantity_positive'),
        ]

    def __str__(self):
        return f"{self.booking.booking_code} - {self.refreshment.name} x{self.quantity}"
