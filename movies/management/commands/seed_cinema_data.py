from datetime import datetime, time, timedelta
from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from movies.models import Movie, Refreshment
from movies.theater_models import Cinema, Room, Showtime
from movies.utils import ShowtimeScheduler, SeatLayoutGenerator

MOVIES = [
    {
        'title': 'The Last Projectionist',
        'genre': 'Drama',
        'duration': 130,
        'age_rating': 'PG-13',
        'director': 'Mai Linh',
        'cast': 'An Nguyen, Bao Tran, Chi Pham',
    },
    {
        'title': 'Orbit of Glass',
        'genre': 'Sci-Fi',
        'duration': 115,
        'age_rating': 'PG',
        'director': 'Tomas Ekberg',
        'cast': 'Lena Ström, Arif Kaya',
    },
    {
        'title': 'Harbor Lights',
        'genre': 'Romance',
        'duration': 98,
        'age_rating': 'G',
        'director': 'Sofia Reyes',
        'cast': 'Marco Diaz, Elena Ruiz',
    },
]

REFRESHMENTS = [
    ('Popcorn (Large)', Decimal('65000.00')),
    ('Popcorn (Small)', Decimal('45000.00')),
    ('Soft Drink', Decimal('35000.00')),
    ('Combo: Popcorn + 2 Drinks', Decimal('120000.00')),
]

ROOMS = [('1', 8, 12), ('2', 6, 10), ('3', 10, 14)]

SHOW_HOURS = [10, 13, 16, 19, 22]

class Command(BaseCommand):
    help = 'Seed a demo cinema with rooms, seats, movies, refreshments and showtimes'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=3,
            help='Number of days of showtimes to create (default: 3)'
        )
        parser.add_argument(
            '--price',
            type=str,
            default='75000',
            help='Ticket price for seeded showtimes (default: 75000)'
        )

    @transaction.atomic
    def handle(self, *args, **options):
        days = options['days']
        price = Decimal(options['price'])
        today = timezone.localdate()

        cinema, created = Cinema.objects.get_or_create(
            name='Galaxy Downtown',
            defaults={
                'address': '116 Nguyen Du, District 1',
                'phone': '1900 2224',
                'email': 'downtown@galaxy.example',
            },
        )
        if created:
            self.stdout.write(f'Created cinema: {cinema.name}')

        rooms = []
        for room_number, total_rows, total_cols in ROOMS:
            room, created = Room.objects.get_or_create(
                cinema=cinema,
                room_number=room_number,
                defaults={'total_rows': total_rows, 'total_cols': total_cols},
            )
            if created:
                SeatLayoutGenerator.create_seats_for_room(room)
                self.stdout.write(f'Created room {room.room_number} with {room.total_seats} seats')
            rooms.append(room)

        movies = []
        for details in MOVIES:
            movie, created = Movie.objects.get_or_create(
                title=details['title'],
                defaults=dict(
                    details,
                    release_date=today - timedelta(days=7),
                    end_date=today + timedelta(days=60),
                    status=Movie.STATUS_NOW_SHOWING,
                ),
            )
            if created:
                self.stdout.write(f'Created movie: {movie.title}')
            movies.append(movie)

        for name, refreshment_price in REFRESHMENTS:
            Refreshment.objects.get_or_create(name=name, defaults={'price': refreshment_price})

        created_showtimes = 0
        now = timezone.now()
        for day_offset in range(days):
            day = today + timedelta(days=day_offset)
            for index, room in enumerate(rooms):
                for slot, hour in enumerate(SHOW_HOURS):
                    movie = movies[(index + slot) % len(movies)]
                    start_time = timezone.make_aware(datetime.combine(day, time(hour)))
                    end_time = start_time + timedelta(minutes=movie.duration)

                    if start_time <= now or not movie.is_screening_on(day):
                        continue
                    if ShowtimeScheduler.has_conflict(room.id, start_time, end_time):
                        continue

                    Showtime.objects.create(
                        movie=movie,
                        room=room,
                        start_time=start_time,
                        end_time=end_time,
                        price=price,
                    )
                    created_showtimes += 1

        self.stdout.write(self.style.SUCCESS(
            f'Seed complete: {len(rooms)} rooms, {len(movies)} movies, '
            f'{len(REFRESHMENTS)} refreshments, {created_showtimes} new showtimes'
        ))
