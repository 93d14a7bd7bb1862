from movies.serializers import showtime_to_dict

def ticket_to_dict(ticket):
    seat = ticket.seat
    return {
        'id': ticket.id,
        'booking_id': ticket.booking_id,
        'seat_id': seat.id,
        'seat_number': seat.seat_number,
        'row': seat.row,
        'col': seat.col,
        'seat_type': seat.seat_type,
        'price': ticket.price,
    }

def booking_refreshment_to_dict(line):
    return {
        'id': line.id,
        'refreshment_id': line.refreshment_id,
        'name': line.refreshment.name,
        'picture': line.refreshment.picture,
        'unit_price': line.unit_price,
        'quantity': line.quantity,
        'total_price': line.total_price,
    }

def booking_to_dict(booking):
    user = booking.user
    profile = getattr(user, 'profile', None)
    return {
        'id': booking.id,
        'booking_code': booking.booking_code,
        'user_id': user.id,
        'showtime_id': booking.showtime_id,
        'status': booking.status,
        'total_price': booking.total_price,
        'payment_time': booking.payment_time,
        'created_at': booking.created_at,
        'updated_at': booking.updated_at,
        'user': {
            'id': user.id,
            'email': user.email,
            'full_name': profile.full_name if profile else user.get_full_name(),
        },
        'showtime': showtime_to_dict(booking.showtime),
        'tickets': [ticket_to_dict(ticket) for ticket in booking.tickets.all()],
        'refreshments': [booking_refreshment_to_dict(line) for line in booking.booking_refreshments.all()],
    }
