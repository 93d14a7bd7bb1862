def movie_to_dict(movie):
    return {
        'id': movie.id,
        'title': movie.title,
        'description': movie.description,
        'genre': movie.genre,
        'duration': movie.duration,
        'duration_formatted': movie.duration_formatted(),
        'poster': movie.poster,
        'trailer_url': movie.trailer_url,
        'release_date': movie.release_date,
        'end_date': movie.end_date,
        'status': movie.status,
        'age_rating': movie.age_rating,
        'director': movie.director,
        'cast': movie.get_cast_list(),
    }

def cinema_to_dict(cinema):
    return {
        'id': cinema.id,
        'name': cinema.name,
        'address': cinema.address,
        'phone': cinema.phone,
        'email': cinema.email,
    }

def seat_to_dict(seat):
    return {
        'id': seat.id,
        'room_id': seat.room_id,
        'seat_number': seat.seat_number,
        'row': seat.row,
        'col': seat.col,
        'seat_type': seat.seat_type,
    }

def room_to_dict(room, include_seats=False):
    data = {
        'id': room.id,
        'cinema_id': room.cinema_id,
        'cinema_name': room.cinema.name,
        'room_number': room.room_number,
        'total_rows': room.total_rows,
        'total_cols': room.total_cols,
        'total_seats': room.total_seats,
    }
    if include_seats:
        data['seats'] = [seat_to_dict(seat) for seat in room.seats.all()]
    return data

def showtime_to_dict(showtime):
    # Expects movie and room__cinema to be loaded with select_related
    room = showtime.room
    return {
        'id': showtime.id,
        'movie_id': showtime.movie_id,
        'movie_title': showtime.movie.title,
        'room_id': room.id,
        'room_number': room.room_number,
        'cinema_id': room.cinema_id,
        'cinema_name': room.cinema.name,
        'start_time': showtime.start_time,
        'end_time': showtime.end_time,
        'price': showtime.price,
    }

def refreshment_to_dict(refreshment):
    return {
        'id': refreshment.id,
        'name': refreshment.name,
        'picture': refreshment.picture,
        'price': refreshment.price,
        'is_current': refreshment.is_current,
    }
