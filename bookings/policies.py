"""Authorization rules for bookings.

Each function takes the caller (``accounts.utils.Caller``) and a booking and
answers one question; services call exactly one of them per operation.
"""


def is_owner(caller, booking):
    return booking.user_id == caller.id


def can_view(caller, booking):
    return caller.is_admin or is_owner(caller, booking)


def can_cancel(caller, booking):
    return caller.is_admin or is_owner(caller, booking)


def can_confirm(caller, booking):
    return caller.is_admin


def can_delete(caller, booking):
    return caller.is_admin
