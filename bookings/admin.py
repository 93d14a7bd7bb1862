from django.contrib import admin, messages
from .models import Booking, Ticket, BookingRefreshment
from django.utils.html import format_html

from accounts.utils import get_caller
from cinemabooking.exceptions import CinemaError
from .services import BookingService

class TicketInline(admin.TabularInline):
    model = Ticket
    fields = ['seat', 'price', 'is_active']
    readonly_fields = ['seat', 'price', 'is_active']
    extra = 0
    can_delete = False

class BookingRefreshmentInline(admin.TabularInline):
    model = BookingRefreshment
    fields = ['refreshment', 'quantity', 'unit_price', 'total_price']
    readonly_fields = ['refreshment', 'quantity', 'unit_price', 'total_price']
    extra = 0
    can_delete = False

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['booking_code', 'user', 'showtime', 'seats', 'total_price', 'payment_status', 'created_at']
    list_filter = ['status', 'created_at', 'showtime__movie']
    search_fields = ['booking_code', 'user__username', 'showtime__movie__title']
    actions = ['confirm_payments', 'cancel_bookings', 'export_as_csv']

    readonly_fields = ['booking_code', 'user', 'showtime', 'total_price', 'status', 'payment_time', 'created_at', 'updated_at']
    inlines = [TicketInline, BookingRefreshmentInline]

    fieldsets = [
        ('Booking Information', {
            'fields': ['booking_code', 'user', 'showtime']
        }),
        ('Payment Information', {
            'fields': ['total_price', 'status', 'payment_time']
        }),
        ('Timestamps', {
            'fields': ['created_at', 'updated_at']
        }),
    ]

    def has_add_permission(self, request):
        # Bookings are only created through the booking API
        return False

    def seats(self, obj):
        return obj.get_seats_display()

    def payment_status(self, obj):
        colors = {
            'PENDING': 'orange',
            'PAID': 'green',
            'CANCELLED': 'red',
        }
        color = colors.get(obj.status, 'gray')

        return format_html('<span style="color: {};">{}</span>', color, obj.get_status_display())
    payment_status.short_description = 'Status'

    def _apply(self, request, queryset, operation, verb):
        caller = get_caller(request.user)
        updated = 0
        for booking_id in queryset.values_list('id', flat=True):
            try:
                operation(caller, booking_id)
                updated += 1
            except CinemaError as e:
                self.message_user(request, f"Booking {booking_id}: {e.message}", level=messages.WARNING)
        self.message_user(request, f"{updated} bookings {verb} successfully.")

    @admin.action(description="Confirm payment for selected bookings")
    def confirm_payments(self, request, queryset):
        self._apply(request, queryset, BookingService.confirm_booking, 'confirmed')

    @admin.action(description="Cancel selected bookings")
    def cancel_bookings(self, request, queryset):
        self._apply(request, queryset, BookingService.cancel_booking, 'cancelled')

    @admin.action(description="Export selected bookings to CSV")
    def export_as_csv(self, request, queryset):
        import csv
        from django.http import HttpResponse
        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = 'attachment; filename="selected_bookings.csv"'
        writer = csv.writer(response)
        writer.writerow(['Booking Code', 'User', 'Movie', 'Seats', 'Amount', 'Status', 'Date'])

        for booking in queryset.select_related('user', 'showtime__movie').prefetch_related('tickets__seat'):
            writer.writerow([
                booking.booking_code,
                booking.user.username,
                booking.showtime.movie.title,
                booking.get_seats_display(),
                booking.total_price,
                booking.status,
                booking.created_at.strftime('%Y-%m-%d %H:%M')
            ])
        return response
