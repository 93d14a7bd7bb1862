class CinemaError(Exception):
    """Base class for errors surfaced to API callers as a JSON error body."""

    status_code = 400
    error = 'Bad Request'

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {
            'error': self.error,
            'message': self.message,
        }


class NotFound(CinemaError):
    status_code = 404
    error = 'Not Found'


class InvalidRequest(CinemaError):
    status_code = 400
    error = 'Invalid Request'

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self):
        data = super().to_dict()
        if self.errors:
            data['errors'] = self.errors
        return data


class SchedulingConflict(CinemaError):
    status_code = 409
    error = 'Scheduling Conflict'

    def __init__(self, message, conflicts=()):
        super().__init__(message)
        self.conflicts = list(conflicts)

    def to_dict(self):
        data = super().to_dict()
        data['conflicting_showtime_ids'] = self.conflicts
        return data


class SeatConflict(CinemaError):
    status_code = 409
    error = 'Seat Conflict'

    def __init__(self, seat_numbers):
        self.seat_numbers = list(seat_numbers)
        super().__init__(f"Seats already booked: {', '.join(self.seat_numbers)}")

    def to_dict(self):
        data = super().to_dict()
        data['seat_numbers'] = self.seat_numbers
        return data


class Forbidden(CinemaError):
    status_code = 403
    error = 'Forbidden'


class Unauthenticated(CinemaError):
    status_code = 401
    error = 'Unauthorized'


class IllegalStateTransition(CinemaError):
    status_code = 409
    error = 'Illegal State Transition'
