from datetime import timedelta
from django.conf import settings
from django.db import transaction
from django.utils import timezone
import logging

from accounts.utils import require_admin
from cinemabooking.exceptions import InvalidRequest, NotFound
from .models import Movie, Refreshment
from .theater_models import Cinema, Room, Showtime
from .utils import ShowtimeScheduler, SeatLayoutGenerator, lock_for_update

logger = logging.getLogger(__name__)

def _showtimes():
    return Showtime.objects.select_related('movie', 'room__cinema')

class ShowtimeService:

    @staticmethod
    def get_showtime(showtime_id):
        showtime = _showtimes().filter(id=showtime_id).first()
        if showtime is None:
            raise NotFound(f"Showtime {showtime_id} does not exist")
        return showtime

    @staticmethod
    def list_showtimes(movie_id=None, day=None):
        showtimes = _showtimes()
        if movie_id is not None:
            showtimes = showtimes.filter(movie_id=movie_id)
        if day is not None:
            showtimes = showtimes.filter(start_time__date=day)
        return showtimes.order_by('start_time')

    @staticmethod
    def list_showtimes_for_movie(movie_id):
        """Upcoming showtimes of a movie that can still reasonably be booked."""
        if not Movie.objects.filter(id=movie_id).exists():
            raise NotFound(f"Movie {movie_id} does not exist")

        earliest = timezone.now() + timedelta(minutes=settings.SHOWTIME_LISTING_LEAD_MINUTES)
        return _showtimes().filter(movie_id=movie_id, start_time__gt=earliest).order_by('start_time')

    @staticmethod
    def _resolve_schedule(data):
        movie = Movie.objects.filter(id=data['movie_id']).first()
        if movie is None:
            raise NotFound(f"Movie {data['movie_id']} does not exist")

        # Locking the room serializes concurrent scheduling in it
        room = lock_for_update(Room.objects.filter(id=data['room_id'])).first()
        if room is None:
            raise NotFound(f"Room {data['room_id']} does not exist")

        start_time = data['start_time']
        end_time = ShowtimeScheduler.resolve_end_time(movie, start_time, data.get('end_time'))

        ShowtimeScheduler.validate_times(start_time, end_time)
        ShowtimeScheduler.validate_movie(movie, start_time)
        return movie, room, start_time, end_time

    @staticmethod
    @transaction.atomic
    def create_showtime(caller, data):
        require_admin(caller)

        movie, room, start_time, end_time = ShowtimeService._resolve_schedule(data)
        ShowtimeScheduler.ensure_no_conflict(room.id, start_time, end_time)

        showtime = Showtime.objects.create(
            movie=movie,
            room=room,
            start_time=start_time,
            end_time=end_time,
            price=data['price'],
        )
        logger.info(f"Showtime {showtime.id} created: movie {movie.id} in room {room.id} [{start_time}, {end_time})")
        return ShowtimeService.get_showtime(showtime.id)

    @staticmethod
    @transaction.atomic
    def update_showtime(caller, showtime_id, data):
        from bookings.models import Booking, Ticket

        require_admin(caller)

        showtime = lock_for_update(Showtime.objects.filter(id=showtime_id)).first()
        if showtime is None:
            raise NotFound(f"Showtime {showtime_id} does not exist")

        movie, room, start_time, end_time = ShowtimeService._resolve_schedule(data)

        # Tickets point at seats of the current room, so sold showtimes keep their schedule
        schedule_changed = (movie.id, room.id, start_time, end_time) != (
            showtime.movie_id, showtime.room_id, showtime.start_time, showtime.end_time
        )
        bookings = Booking.objects.filter(showtime=showtime)
        if schedule_changed and bookings.exclude(status=Booking.STATUS_CANCELLED).exists():
            raise InvalidRequest('Showtime has active bookings; only its price can change')
        if room.id != showtime.room_id and Ticket.objects.filter(showtime=showtime).exists():
            raise InvalidRequest('Showtime has tickets for seats in its current room; the room cannot change')

        ShowtimeScheduler.ensure_no_conflict(room.id, start_time, end_time, exclude_id=showtime.id)

        showtime.movie = movie
        showtime.room = room
        showtime.start_time = start_time
        showtime.end_time = end_time
        showtime.price = data['price']
        showtime.save()

        logger.info(f"Showtime {showtime.id} updated: movie {movie.id} in room {room.id} [{start_time}, {end_time})")
        return ShowtimeService.get_showtime(showtime.id)

    @staticmethod
    @transaction.atomic
    def delete_showtime(caller, showtime_id):
        from bookings.models import Booking
        from bookings.services import BookingService

        require_admin(caller)

        showtime = lock_for_update(Showtime.objects.filter(id=showtime_id)).first()
        if showtime is None:
            raise NotFound(f"Showtime {showtime_id} does not exist")

        bookings = Booking.objects.filter(showtime=showtime)
        if bookings.exclude(status=Booking.STATUS_CANCELLED).exists():
            raise InvalidRequest('Showtime has active bookings and cannot be deleted')

        BookingService.delete_bookings(bookings)
        showtime.delete()
        logger.info(f"Showtime {showtime_id} deleted")

class RoomService:

    @staticmethod
    def get_room(room_id):
        room = Room.objects.select_related('cinema').prefetch_related('seats').filter(id=room_id).first()
        if room is None:
            raise NotFound(f"Room {room_id} does not exist")
        return room

    @staticmethod
    @transaction.atomic
    def create_room(caller, data):
        require_admin(caller)

        cinema = Cinema.objects.filter(id=data['cinema_id']).first()
        if cinema is None:
            raise NotFound(f"Cinema {data['cinema_id']} does not exist")

        if Room.objects.filter(cinema=cinema, room_number=data['room_number']).exists():
            raise InvalidRequest(f"Room {data['room_number']} already exists in {cinema.name}")

        room = Room.objects.create(
            cinema=cinema,
            room_number=data['room_number'],
            total_rows=data['total_rows'],
            total_cols=data['total_cols'],
        )
        SeatLayoutGenerator.create_seats_for_room(room)

        logger.info(f"Room {room.id} created in cinema {cinema.id} with {room.total_seats} seats")
        return RoomService.get_room(room.id)

    @staticmethod
    @transaction.atomic
    def update_room(caller, room_id, data):
        from bookings.models import Ticket

        require_admin(caller)

        room = lock_for_update(Room.objects.filter(id=room_id)).first()
        if room is None:
            raise NotFound(f"Room {room_id} does not exist")

        room_number = data.get('room_number')
        if room_number and room_number != room.room_number:
            if Room.objects.filter(cinema_id=room.cinema_id, room_number=room_number).exists():
                raise InvalidRequest(f"Room {room_number} already exists in this cinema")
            room.room_number = room_number

        total_rows = data.get('total_rows') or room.total_rows
        total_cols = data.get('total_cols') or room.total_cols
        layout_changed = (total_rows, total_cols) != (room.total_rows, room.total_cols)

        if layout_changed and Ticket.objects.filter(seat__room=room).exists():
            raise InvalidRequest('Seats of this room have tickets; the layout cannot change')

        room.total_rows = total_rows
        room.total_cols = total_cols
        room.save()

        if layout_changed:
            room.seats.all().delete()
            SeatLayoutGenerator.create_seats_for_room(room)
            logger.info(f"Room {room.id} seats regenerated: {total_rows}x{total_cols}")

        return RoomService.get_room(room.id)

class CatalogService:

    @staticmethod
    def list_movies(status=None):
        movies = Movie.objects.all()
        if status:
            movies = movies.filter(status=status)
        return movies

    @staticmethod
    def get_movie(movie_id):
        movie = Movie.objects.filter(id=movie_id).first()
        if movie is None:
            raise NotFound(f"Movie {movie_id} does not exist")
        return movie

    @staticmethod
    def list_cinemas():
        return Cinema.objects.prefetch_related('rooms')

    @staticmethod
    def list_current_refreshments():
        return Refreshment.objects.filter(is_current=True)
