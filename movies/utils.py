from datetime import timedelta
from django.conf import settings
from django.db import connection
from django.utils import timezone

from cinemabooking.exceptions import InvalidRequest, SchedulingConflict
from .models import Movie
from .theater_models import Seat, Showtime

class ShowtimeScheduler:
    """Time-range rules for showtimes within a room.

    Intervals are half-open ``[start, end)``: two showtimes conflict only when
    ``s1 < e2 and e1 > s2``, so one may start exactly when another ends.
    """

    @staticmethod
    def find_conflicts(room_id, start_time, end_time, exclude_id=None):

        conflicts = Showtime.objects.filter(
            room_id=room_id,
            start_time__lt=end_time,
            end_time__gt=start_time,
        )
        if exclude_id is not None:
            conflicts = conflicts.exclude(id=exclude_id)
        return conflicts.order_by('start_time')

    @staticmethod
    def has_conflict(room_id, start_time, end_time, exclude_id=None):
        return ShowtimeScheduler.find_conflicts(room_id, start_time, end_time, exclude_id).exists()

    @staticmethod
    def ensure_no_conflict(room_id, start_time, end_time, exclude_id=None):
        conflict_ids = list(
            ShowtimeScheduler.find_conflicts(room_id, start_time, end_time, exclude_id)
            .values_list('id', flat=True)
        )
        if conflict_ids:
            raise SchedulingConflict(
                f"Showtime overlaps existing showtime(s) {', '.join(str(i) for i in conflict_ids)} in the same room",
                conflicts=conflict_ids,
            )

    @staticmethod
    def resolve_end_time(movie, start_time, end_time=None):
        if end_time is not None:
            return end_time
        if not movie.duration or movie.duration <= 0:
            raise InvalidRequest('Cannot derive the end time: the movie has no valid duration')
        return start_time + timedelta(minutes=movie.duration)

    @staticmethod
    def validate_times(start_time, end_time, now=None):
        if start_time >= end_time:
            raise InvalidRequest('Start time must be before end time')

        now = now or timezone.now()
        tolerance = timedelta(seconds=settings.SHOWTIME_PAST_TOLERANCE_SECONDS)
        if start_time < now - tolerance:
            raise InvalidRequest('Start time must not be in the past')

    @staticmethod
    def validate_movie(movie, start_time):
        if movie.status == Movie.STATUS_ENDED:
            raise InvalidRequest(f"Movie '{movie.title}' has ended; no new showtimes can be scheduled")

        show_date = timezone.localtime(start_time).date()
        if not movie.is_screening_on(show_date):
            raise InvalidRequest(
                f"Showtime date {show_date} is outside the movie's screening window "
                f"{movie.release_date} to {movie.end_date}"
            )

class SeatLayoutGenerator:

    VIP_ROWS = 2  # The last rows of every room are VIP

    @staticmethod
    def row_label(index):
        # 0 -> A, 25 -> Z, 26 -> AA
        label = ''
        index += 1
        while index > 0:
            index, remainder = divmod(index - 1, 26)
            label = chr(65 + remainder) + label
        return label

    @staticmethod
    def generate_seat_layout(total_rows, total_cols):

        layout = []
        for row in range(total_rows):
            row_letter = SeatLayoutGenerator.row_label(row)
            seat_type = Seat.TYPE_VIP if row >= total_rows - SeatLayoutGenerator.VIP_ROWS else Seat.TYPE_NORMAL
            for col in range(1, total_cols + 1):
                layout.append({
                    'seat_number': f"{row_letter}{col}",
                    'row': row_letter,
                    'col': col,
                    'seat_type': seat_type,
                })
        return layout

    @staticmethod
    def create_seats_for_room(room):
        seats = [
            Seat(room=room, **seat)
            for seat in SeatLayoutGenerator.generate_seat_layout(room.total_rows, room.total_cols)
        ]
        Seat.objects.bulk_create(seats)
        return seats

def supports_select_for_update():
    return connection.features.has_select_for_update

def lock_for_update(queryset):
    # SQLite has no row locks; IMMEDIATE transactions serialize writers there instead
    if supports_select_for_update():
        return queryset.select_for_update()
    return queryset
