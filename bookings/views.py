from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods
import logging

from accounts.decorators import api_login_required
from cinemabooking.exceptions import InvalidRequest
from cinemabooking.http import read_json, form_errors
from .forms import BookingForm
from .serializers import booking_to_dict, ticket_to_dict
from .services import BookingService

logger = logging.getLogger(__name__)

def _page_params(request):
    try:
        page = int(request.GET.get('page', 0))
        size = int(request.GET.get('size', 10))
    except ValueError:
        raise InvalidRequest("Query parameters 'page' and 'size' must be integers")
    return page, size

@require_http_methods(["GET", "POST"])
@api_login_required
def booking_list(request):
    if request.method == 'POST':
        form = BookingForm(read_json(request))
        if not form.is_valid():
            raise InvalidRequest('Booking data is invalid', errors=form_errors(form))

        booking = BookingService.create_booking(
            request.caller,
            form.cleaned_data['showtime_id'],
            form.cleaned_data['seat_ids'],
            form.cleaned_data['refreshments'],
        )
        return JsonResponse(booking_to_dict(booking), status=201)

    page, size = _page_params(request)
    paginator, bookings = BookingService.list_bookings(
        request.caller, status=request.GET.get('status') or None, page=page, size=size,
    )
    return JsonResponse({
        'results': [booking_to_dict(booking) for booking in bookings],
        'page': page,
        'size': size,
        'total_elements': paginator.count,
        'total_pages': paginator.num_pages if paginator.count else 0,
    })

@require_http_methods(["GET", "DELETE"])
@api_login_required
def booking_detail(request, booking_id):
    if request.method == 'DELETE':
        BookingService.delete_booking(request.caller, booking_id)
        return HttpResponse(status=204)
    return JsonResponse(booking_to_dict(BookingService.get_booking(request.caller, booking_id)))

@require_GET
@api_login_required
def booking_tickets(request, booking_id):
    tickets = BookingService.get_tickets(request.caller, booking_id)
    return JsonResponse({'results': [ticket_to_dict(ticket) for ticket in tickets]})

@require_http_methods(["PUT", "POST"])
@api_login_required
def confirm_booking(request, booking_id):
    booking = BookingService.confirm_booking(request.caller, booking_id)
    return JsonResponse(booking_to_dict(booking))

@require_http_methods(["PUT", "POST"])
@api_login_required
def cancel_booking(request, booking_id):
    booking = BookingService.cancel_booking(request.caller, booking_id)
    return JsonResponse(booking_to_dict(booking))

@require_GET
def booked_seats(request, showtime_id):
    seats = BookingService.get_booked_seats(showtime_id)
    return JsonResponse({'showtime_id': showtime_id, 'results': seats})
