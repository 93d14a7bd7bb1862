from django.http import HttpResponse, JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_http_methods
import logging

from accounts.decorators import api_login_required
from cinemabooking.exceptions import InvalidRequest
from cinemabooking.http import read_json, form_errors
from .forms import ShowtimeForm, RoomForm, RoomUpdateForm
from .serializers import (
    movie_to_dict, cinema_to_dict, room_to_dict, showtime_to_dict, refreshment_to_dict,
)
from .services import CatalogService, RoomService, ShowtimeService

logger = logging.getLogger(__name__)

def _int_param(request, name):
    value = request.GET.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidRequest(f"Query parameter '{name}' must be an integer")

def _clean(form_class, data, message):
    form = form_class(data)
    if not form.is_valid():
        raise InvalidRequest(message, errors=form_errors(form))
    return form.cleaned_data

@require_GET
def movie_list(request):
    movies = CatalogService.list_movies(status=request.GET.get('status'))
    return JsonResponse({'results': [movie_to_dict(movie) for movie in movies]})

@require_GET
def movie_detail(request, movie_id):
    return JsonResponse(movie_to_dict(CatalogService.get_movie(movie_id)))

@require_GET
def cinema_list(request):
    cinemas = CatalogService.list_cinemas()
    return JsonResponse({'results': [
        dict(cinema_to_dict(cinema), rooms=[room_to_dict(room) for room in cinema.rooms.all()])
        for cinema in cinemas
    ]})

@require_GET
def refreshment_list(request):
    refreshments = CatalogService.list_current_refreshments()
    return JsonResponse({'results': [refreshment_to_dict(r) for r in refreshments]})

@require_http_methods(["POST"])
@api_login_required
def room_create(request):
    data = _clean(RoomForm, read_json(request), 'Room data is invalid')
    room = RoomService.create_room(request.caller, data)
    return JsonResponse(room_to_dict(room, include_seats=True), status=201)

@api_login_required
def _update_room(request, room_id):
    data = _clean(RoomUpdateForm, read_json(request), 'Room data is invalid')
    room = RoomService.update_room(request.caller, room_id, data)
    return JsonResponse(room_to_dict(room, include_seats=True))

@require_http_methods(["GET", "PUT"])
def room_detail(request, room_id):
    if request.method == 'PUT':
        return _update_room(request, room_id)
    return JsonResponse(room_to_dict(RoomService.get_room(room_id), include_seats=True))

@api_login_required
def _create_showtime(request):
    data = _clean(ShowtimeForm, read_json(request), 'Showtime data is invalid')
    showtime = ShowtimeService.create_showtime(request.caller, data)
    return JsonResponse(showtime_to_dict(showtime), status=201)

@require_http_methods(["GET", "POST"])
def showtime_list(request):
    if request.method == 'POST':
        return _create_showtime(request)

    day = None
    if request.GET.get('date'):
        try:
            day = parse_date(request.GET['date'])
        except ValueError:
            day = None
        if day is None:
            raise InvalidRequest("Query parameter 'date' must be formatted as YYYY-MM-DD")

    showtimes = ShowtimeService.list_showtimes(movie_id=_int_param(request, 'movie_id'), day=day)
    return JsonResponse({'results': [showtime_to_dict(s) for s in showtimes]})

@api_login_required
def _change_showtime(request, showtime_id):
    if request.method == 'DELETE':
        ShowtimeService.delete_showtime(request.caller, showtime_id)
        return HttpResponse(status=204)

    data = _clean(ShowtimeForm, read_json(request), 'Showtime data is invalid')
    showtime = ShowtimeService.update_showtime(request.caller, showtime_id, data)
    return JsonResponse(showtime_to_dict(showtime))

@require_http_methods(["GET", "PUT", "DELETE"])
def showtime_detail(request, showtime_id):
    if request.method == 'GET':
        return JsonResponse(showtime_to_dict(ShowtimeService.get_showtime(showtime_id)))
    return _change_showtime(request, showtime_id)

@require_GET
def showtimes_for_movie(request, movie_id):
    showtimes = ShowtimeService.list_showtimes_for_movie(movie_id)
    return JsonResponse({'results': [showtime_to_dict(s) for s in showtimes]})
