import json
from datetime import datetime, time, timedelta
from decimal import Decimal
from django.contrib.auth.models import User
from django.core.cache import cache
from django.test import TestCase, Client
from django.utils import timezone

from accounts.utils import get_caller
from cinemabooking.exceptions import Forbidden, InvalidRequest, NotFound, SchedulingConflict
from .models import Movie
from .services import RoomService, ShowtimeService
from .theater_models import Cinema, Room, Seat, Showtime
from .utils import ShowtimeScheduler, SeatLayoutGenerator

def at(hour, minute=0, days=1):
    day = timezone.localdate() + timedelta(days=days)
    return timezone.make_aware(datetime.combine(day, time(hour, minute)))

class CatalogFixtureMixin:

    def create_catalog(self):
        today = timezone.localdate()
        self.movie = Movie.objects.create(
            title='Test Movie',
            duration=130,
            release_date=today - timedelta(days=10),
            end_date=today + timedelta(days=30),
            status=Movie.STATUS_NOW_SHOWING,
        )
        self.cinema = Cinema.objects.create(name='Test Cinema', address='123 Test St')
        self.room = Room.objects.create(cinema=self.cinema, room_number='1', total_rows=1, total_cols=10)
        SeatLayoutGenerator.create_seats_for_room(self.room)
        self.other_room = Room.objects.create(cinema=self.cinema, room_number='2', total_rows=2, total_cols=5)
        SeatLayoutGenerator.create_seats_for_room(self.other_room)

        self.admin_user = User.objects.create_user(username='admin', password='testpass123', is_staff=True)
        self.customer_user = User.objects.create_user(username='customer', password='testpass123')
        self.admin = get_caller(self.admin_user)
        self.customer = get_caller(self.customer_user)

    def create_showtime(self, start, end, room=None, price='75000'):
        return Showtime.objects.create(
            movie=self.movie,
            room=room or self.room,
            start_time=start,
            end_time=end,
            price=Decimal(price),
        )

class ShowtimeSchedulerTests(CatalogFixtureMixin, TestCase):

    def setUp(self):
        self.create_catalog()
        self.showtime = self.create_showtime(at(14), at(16, 10))

    def test_back_to_back_showtimes_do_not_conflict(self):
        self.assertFalse(ShowtimeScheduler.has_conflict(self.room.id, at(16, 10), at(18)))
        self.assertFalse(ShowtimeScheduler.has_conflict(self.room.id, at(12), at(14)))

    def test_overlapping_showtimes_conflict(self):
        self.assertTrue(ShowtimeScheduler.has_conflict(self.room.id, at(15), at(17)))
        self.assertTrue(ShowtimeScheduler.has_conflict(self.room.id, at(13), at(14, 1)))
        self.assertTrue(ShowtimeScheduler.has_conflict(self.room.id, at(14, 30), at(15)))
        self.assertTrue(ShowtimeScheduler.has_conflict(self.room.id, at(13), at(17)))

    def test_other_room_is_independent(self):
        self.assertFalse(ShowtimeScheduler.has_conflict(self.other_room.id, at(15), at(17)))

    def test_excluded_showtime_is_ignored(self):
        self.assertFalse(
            ShowtimeScheduler.has_conflict(self.room.id, at(14, 10), at(16, 20), exclude_id=self.showtime.id)
        )

    def test_ensure_no_conflict_reports_ids(self):
        with self.assertRaises(SchedulingConflict) as ctx:
            ShowtimeScheduler.ensure_no_conflict(self.room.id, at(15), at(17))

        self.assertEqual(ctx.exception.conflicts, [self.showtime.id])

    def test_validate_times(self):
        with self.assertRaises(InvalidRequest):
            ShowtimeScheduler.validate_times(at(14), at(14))
        with self.assertRaises(InvalidRequest):
            ShowtimeScheduler.validate_times(at(16), at(14))

        now = timezone.now()
        with self.assertRaises(InvalidRequest):
            ShowtimeScheduler.validate_times(now - timedelta(minutes=5), now + timedelta(hours=2), now=now)

        # Small clock skew is tolerated
        ShowtimeScheduler.validate_times(now - timedelta(seconds=30), now + timedelta(hours=2), now=now)

    def test_validate_movie(self):
        ShowtimeScheduler.validate_movie(self.movie, at(14))

        with self.assertRaises(InvalidRequest):
            ShowtimeScheduler.validate_movie(self.movie, at(14, days=45))

        self.movie.status = Movie.STATUS_ENDED
        with self.assertRaises(InvalidRequest):
            ShowtimeScheduler.validate_movie(self.movie, at(14))

    def test_resolve_end_time(self):
        self.assertEqual(ShowtimeScheduler.resolve_end_time(self.movie, at(14)), at(16, 10))
        self.assertEqual(ShowtimeScheduler.resolve_end_time(self.movie, at(14), at(17)), at(17))

        self.movie.duration = 0
        with self.assertRaises(InvalidRequest):
            ShowtimeScheduler.resolve_end_time(self.movie, at(14))

class SeatLayoutGeneratorTests(TestCase):

    def test_row_labels(self):
        self.assertEqual(SeatLayoutGenerator.row_label(0), 'A')
        self.assertEqual(SeatLayoutGenerator.row_label(25), 'Z')
        self.assertEqual(SeatLayoutGenerator.row_label(26), 'AA')

    def test_layout_is_row_major_with_vip_back_rows(self):
        layout = SeatLayoutGenerator.generate_seat_layout(3, 4)

        self.assertEqual(len(layout), 12)
        self.assertEqual(layout[0]['seat_number'], 'A1')
        self.assertEqual(layout[-1]['seat_number'], 'C4')
        self.assertEqual({s['seat_type'] for s in layout if s['row'] == 'A'}, {Seat.TYPE_NORMAL})
        self.assertEqual({s['seat_type'] for s in layout if s['row'] in ('B', 'C')}, {Seat.TYPE_VIP})

class ShowtimeServiceTests(CatalogFixtureMixin, TestCase):

    def setUp(self):
        cache.clear()
        self.create_catalog()

    def showtime_data(self, start, end=None, room=None):
        return {
            'movie_id': self.movie.id,
            'room_id': (room or self.room).id,
            'start_time': start,
            'end_time': end,
            'price': Decimal('75000'),
        }

    def test_create_derives_end_time(self):
        showtime = ShowtimeService.create_showtime(self.admin, self.showtime_data(at(14)))

        self.assertEqual(showtime.end_time, at(16, 10))
        self.assertEqual(showtime.price, Decimal('75000'))

    def test_customer_cannot_schedule(self):
        with self.assertRaises(Forbidden):
            ShowtimeService.create_showtime(self.customer, self.showtime_data(at(14)))
        self.assertFalse(Showtime.objects.exists())

    def test_create_rejects_overlap_and_accepts_back_to_back(self):
        ShowtimeService.create_showtime(self.admin, self.showtime_data(at(14)))

        with self.assertRaises(SchedulingConflict):
            ShowtimeService.create_showtime(self.admin, self.showtime_data(at(15), at(17)))

        ShowtimeService.create_showtime(self.admin, self.showtime_data(at(16, 10), at(18)))
        self.assertEqual(Showtime.objects.filter(room=self.room).count(), 2)

    def test_create_with_unknown_room(self):
        data = self.showtime_data(at(14))
        data['room_id'] = 9999

        with self.assertRaises(NotFound):
            ShowtimeService.create_showtime(self.admin, data)

    def test_update_ignores_own_slot(self):
        showtime = ShowtimeService.create_showtime(self.admin, self.showtime_data(at(14)))

        updated = ShowtimeService.update_showtime(self.admin, showtime.id, self.showtime_data(at(14, 30)))

        self.assertEqual(updated.start_time, at(14, 30))
        self.assertEqual(updated.end_time, at(16, 40))

    def test_update_into_other_showtime_conflicts(self):
        first = ShowtimeService.create_showtime(self.admin, self.showtime_data(at(10)))
        ShowtimeService.create_showtime(self.admin, self.showtime_data(at(14)))

        with self.assertRaises(SchedulingConflict):
            ShowtimeService.update_showtime(self.admin, first.id, self.showtime_data(at(13)))

        first.refresh_from_db()
        self.assertEqual(first.start_time, at(10))

    def test_delete_refuses_active_bookings(self):
        from bookings.models import Booking
        from bookings.services import BookingService

        showtime = ShowtimeService.create_showtime(self.admin, self.showtime_data(at(14)))
        seat = self.room.seats.get(seat_number='A1')
        booking = BookingService.create_booking(self.customer, showtime.id, [seat.id])

        with self.assertRaises(InvalidRequest):
            ShowtimeService.delete_showtime(self.admin, showtime.id)

        BookingService.cancel_booking(self.customer, booking.id)
        ShowtimeService.delete_showtime(self.admin, showtime.id)

        self.assertFalse(Showtime.objects.filter(id=showtime.id).exists())
        self.assertFalse(Booking.objects.exists())

    def test_sold_showtime_keeps_room_and_schedule(self):
        from bookings.services import BookingService

        showtime = ShowtimeService.create_showtime(self.admin, self.showtime_data(at(14)))
        seats = self.room.seats.filter(seat_number__in=['A1', 'A2'])
        BookingService.create_booking(self.customer, showtime.id, [seat.id for seat in seats])

        with self.assertRaises(InvalidRequest):
            ShowtimeService.update_showtime(self.admin, showtime.id, self.showtime_data(at(14), room=self.other_room))
        with self.assertRaises(InvalidRequest):
            ShowtimeService.update_showtime(self.admin, showtime.id, self.showtime_data(at(18)))

        showtime.refresh_from_db()
        self.assertEqual(showtime.room_id, self.room.id)
        self.assertEqual(showtime.start_time, at(14))

        data = self.showtime_data(at(14))
        data['price'] = Decimal('80000')
        repriced = ShowtimeService.update_showtime(self.admin, showtime.id, data)
        self.assertEqual(repriced.price, Decimal('80000'))
        self.assertEqual(
            {ticket.seat.room_id for ticket in repriced.tickets.select_related('seat')},
            {repriced.room_id},
        )

    def test_cancelled_tickets_still_pin_the_room(self):
        from bookings.services import BookingService

        showtime = ShowtimeService.create_showtime(self.admin, self.showtime_data(at(14)))
        seat = self.room.seats.get(seat_number='A1')
        booking = BookingService.create_booking(self.customer, showtime.id, [seat.id])
        BookingService.cancel_booking(self.customer, booking.id)

        moved = ShowtimeService.update_showtime(self.admin, showtime.id, self.showtime_data(at(18)))
        self.assertEqual(moved.start_time, at(18))

        with self.assertRaises(InvalidRequest):
            ShowtimeService.update_showtime(self.admin, showtime.id, self.showtime_data(at(18), room=self.other_room))

    def test_mixed_creates_and_updates_never_overlap(self):
        import random

        rng = random.Random(20261019)
        created = []
        for _ in range(60):
            start = at(8) + timedelta(minutes=15 * rng.randrange(0, 56))
            end = start + timedelta(minutes=15 * rng.randrange(4, 13))
            room = rng.choice([self.room, self.other_room])
            try:
                if created and rng.random() < 0.4:
                    target = rng.choice(created)
                    ShowtimeService.update_showtime(self.admin, target, self.showtime_data(start, end, room=room))
                else:
                    created.append(ShowtimeService.create_showtime(self.admin, self.showtime_data(start, end, room=room)).id)
            except SchedulingConflict:
                pass

        self.assertTrue(created)
        for room in (self.room, self.other_room):
            showtimes = list(Showtime.objects.filter(room=room).order_by('start_time'))
            for earlier, later in zip(showtimes, showtimes[1:]):
                self.assertLessEqual(earlier.end_time, later.start_time)

    def test_listing_for_movie_skips_imminent_showtimes(self):
        soon = timezone.now() + timedelta(minutes=10)
        self.create_showtime(soon, soon + timedelta(minutes=130))
        later = self.create_showtime(at(14), at(16, 10))

        showtimes = list(ShowtimeService.list_showtimes_for_movie(self.movie.id))

        self.assertEqual(showtimes, [later])
        with self.assertRaises(NotFound):
            ShowtimeService.list_showtimes_for_movie(9999)

class RoomServiceTests(CatalogFixtureMixin, TestCase):

    def setUp(self):
        cache.clear()
        self.create_catalog()

    def test_create_room_generates_seats(self):
        room = RoomService.create_room(self.admin, {
            'cinema_id': self.cinema.id,
            'room_number': '3',
            'total_rows': 4,
            'total_cols': 6,
        })

        self.assertEqual(room.total_seats, 24)
        self.assertEqual(room.seats.count(), 24)

    def test_duplicate_room_number_is_rejected(self):
        with self.assertRaises(InvalidRequest):
            RoomService.create_room(self.admin, {
                'cinema_id': self.cinema.id,
                'room_number': '1',
                'total_rows': 4,
                'total_cols': 6,
            })

    def test_layout_change_regenerates_seats(self):
        room = RoomService.update_room(self.admin, self.other_room.id, {'total_rows': 3, 'total_cols': 3})

        self.assertEqual(room.total_seats, 9)
        self.assertEqual(sorted(s.seat_number for s in room.seats.all())[-1], 'C3')

    def test_layout_change_refused_once_tickets_exist(self):
        from bookings.services import BookingService

        showtime = self.create_showtime(at(14), at(16, 10))
        seat = self.room.seats.get(seat_number='A1')
        BookingService.create_booking(self.customer, showtime.id, [seat.id])

        with self.assertRaises(InvalidRequest):
            RoomService.update_room(self.admin, self.room.id, {'total_rows': 2, 'total_cols': 10})

        self.assertEqual(self.room.seats.count(), 10)

class ShowtimeApiTests(CatalogFixtureMixin, TestCase):

    def setUp(self):
        cache.clear()
        self.create_catalog()
        self.client = Client()

    def post_showtime(self, start, end=None):
        payload = {
            'movie_id': self.movie.id,
            'room_id': self.room.id,
            'start_time': start.isoformat(),
            'price': '75000',
        }
        if end is not None:
            payload['end_time'] = end.isoformat()
        return self.client.post('/api/showtimes/', json.dumps(payload), content_type='application/json')

    def test_anonymous_cannot_schedule(self):
        self.assertEqual(self.post_showtime(at(14)).status_code, 401)

    def test_customer_cannot_schedule(self):
        self.client.force_login(self.customer_user)

        response = self.post_showtime(at(14))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error'], 'Forbidden')

    def test_admin_schedules_and_conflict_is_409(self):
        self.client.force_login(self.admin_user)

        created = self.post_showtime(at(14))
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()['price'], '75000.00')

        conflict = self.post_showtime(at(15), at(17))
        self.assertEqual(conflict.status_code, 409)
        self.assertEqual(conflict.json()['conflicting_showtime_ids'], [created.json()['id']])

    def test_invalid_payload_is_400(self):
        self.client.force_login(self.admin_user)

        response = self.client.post(
            '/api/showtimes/',
            json.dumps({'movie_id': self.movie.id, 'room_id': self.room.id, 'price': '0'}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn('start_time', response.json()['errors'])
        self.assertIn('price', response.json()['errors'])

    def test_list_filters_and_bad_date(self):
        self.create_showtime(at(14), at(16, 10))
        self.create_showtime(at(14, days=2), at(16, 10, days=2))

        response = self.client.get('/api/showtimes/', {'date': at(14).date().isoformat()})
        self.assertEqual(len(response.json()['results']), 1)

        self.assertEqual(self.client.get('/api/showtimes/', {'date': 'tomorrow'}).status_code, 400)

    def test_changes_require_login(self):
        showtime = self.create_showtime(at(14), at(16, 10))

        self.assertEqual(self.client.delete(f'/api/showtimes/{showtime.id}/').status_code, 401)
        self.assertEqual(
            self.client.put(f'/api/rooms/{self.room.id}/', json.dumps({'total_rows': 2}), content_type='application/json').status_code,
            401,
        )

        self.client.force_login(self.customer_user)
        self.assertEqual(self.client.delete(f'/api/showtimes/{showtime.id}/').status_code, 403)
        self.assertTrue(Showtime.objects.filter(id=showtime.id).exists())

        self.client.force_login(self.admin_user)
        self.assertEqual(self.client.delete(f'/api/showtimes/{showtime.id}/').status_code, 204)

    def test_unknown_showtime_is_404(self):
        response = self.client.get('/api/showtimes/9999/')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Not Found')

    def test_room_detail_lists_seats(self):
        response = self.client.get(f'/api/rooms/{self.room.id}/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual([s['seat_number'] for s in response.json()['seats']][:3], ['A1', 'A2', 'A3'])
