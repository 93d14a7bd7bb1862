import json
import re
import threading
from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock
from django.contrib.auth.models import User
from django.core.cache import cache
from django.db import connection
from django.test import TestCase, TransactionTestCase, Client
from django.utils import timezone

from accounts.models import UserProfile
from accounts.utils import Caller, get_caller
from cinemabooking.exceptions import (
    Forbidden, IllegalStateTransition, InvalidRequest, NotFound, SchedulingConflict, SeatConflict,
)
from movies.models import Refreshment
from movies.services import ShowtimeService
from movies.theater_models import Showtime
from movies.tests import CatalogFixtureMixin, at
from . import policies
from .models import Booking, BookingRefreshment, Ticket
from .services import BookingService
from .utils import PriceCalculator, SeatManager, generate_booking_code

class BookingFixtureMixin(CatalogFixtureMixin):

    def create_booking_fixture(self):
        cache.clear()
        self.create_catalog()
        self.showtime = ShowtimeService.create_showtime(self.admin, {
            'movie_id': self.movie.id,
            'room_id': self.room.id,
            'start_time': at(14),
            'end_time': None,
            'price': Decimal('75000'),
        })
        self.seats = {seat.seat_number: seat for seat in self.room.seats.all()}

        self.other_user = User.objects.create_user(username='other', password='testpass123')
        self.other = get_caller(self.other_user)

    def seat_ids(self, *numbers):
        return [self.seats[number].id for number in numbers]

    def book(self, caller, *numbers, **kwargs):
        return BookingService.create_booking(caller, self.showtime.id, self.seat_ids(*numbers), **kwargs)

class BookingScenarioTests(BookingFixtureMixin, TestCase):

    def setUp(self):
        self.create_booking_fixture()

    def test_showtime_end_derived_from_duration(self):
        self.assertEqual(self.showtime.end_time, at(16, 10))

    def test_end_to_end_booking_flow(self):
        booking = self.book(self.customer, 'A1', 'A2')

        self.assertEqual(booking.total_price, Decimal('150000'))
        self.assertEqual(booking.status, Booking.STATUS_PENDING)
        self.assertEqual(booking.tickets.count(), 2)
        self.assertIsNone(booking.payment_time)

        with self.assertRaises(SeatConflict) as ctx:
            self.book(self.other, 'A2', 'A3')
        self.assertEqual(ctx.exception.seat_numbers, ['A2'])
        self.assertIn('A2', ctx.exception.message)
        self.assertEqual(Booking.objects.count(), 1)
        self.assertFalse(Ticket.objects.filter(seat=self.seats['A3']).exists())

        second = self.book(self.other, 'A3', 'A4')
        self.assertEqual(second.get_seats_display(), 'A3, A4')

        with self.assertRaises(SchedulingConflict):
            ShowtimeService.create_showtime(self.admin, {
                'movie_id': self.movie.id,
                'room_id': self.room.id,
                'start_time': at(15),
                'end_time': at(17),
                'price': Decimal('75000'),
            })

        back_to_back = ShowtimeService.create_showtime(self.admin, {
            'movie_id': self.movie.id,
            'room_id': self.room.id,
            'start_time': at(16, 10),
            'end_time': at(18),
            'price': Decimal('75000'),
        })
        self.assertEqual(back_to_back.start_time, self.showtime.end_time)

    def test_ticket_price_and_code(self):
        booking = self.book(self.customer, 'A5')
        ticket = booking.tickets.get()

        self.assertEqual(ticket.price, Decimal('75000'))
        self.assertEqual(ticket.showtime_id, self.showtime.id)
        self.assertTrue(ticket.is_active)
        self.assertRegex(booking.booking_code, r'^BK[0-9A-F]{10}$')

    def test_refreshments_are_added_to_total(self):
        popcorn = Refreshment.objects.create(name='Popcorn', price=Decimal('65000'))
        soda = Refreshment.objects.create(name='Soda', price=Decimal('35000'))

        booking = self.book(self.customer, 'A1', 'A2', refreshment_orders=[(popcorn.id, 2), (soda.id, 1)])

        self.assertEqual(booking.total_price, Decimal('315000'))
        line = booking.booking_refreshments.get(refreshment=popcorn)
        self.assertEqual(line.unit_price, Decimal('65000'))
        self.assertEqual(line.total_price, Decimal('130000'))

    def test_retired_refreshment_is_rejected(self):
        retired = Refreshment.objects.create(name='Nachos', price=Decimal('50000'), is_current=False)

        with self.assertRaises(InvalidRequest):
            self.book(self.customer, 'A1', refreshment_orders=[(retired.id, 1)])
        self.assertFalse(Booking.objects.exists())

    def test_showtime_is_resolved_before_seats(self):
        with self.assertRaises(NotFound):
            BookingService.create_booking(self.customer, 999999, [])

        Showtime.objects.filter(id=self.showtime.id).update(start_time=timezone.now() - timedelta(minutes=1))
        with self.assertRaises(InvalidRequest) as ctx:
            BookingService.create_booking(self.customer, self.showtime.id, [])
        self.assertIn('started', ctx.exception.message)

    def test_invalid_seat_requests(self):
        with self.assertRaises(InvalidRequest):
            BookingService.create_booking(self.customer, self.showtime.id, [])

        with self.assertRaises(InvalidRequest):
            BookingService.create_booking(self.customer, self.showtime.id, self.seat_ids('A1', 'A1'))

        with self.assertRaises(NotFound):
            BookingService.create_booking(self.customer, self.showtime.id, [999999])

        with self.assertRaises(NotFound):
            BookingService.create_booking(self.customer, 999999, self.seat_ids('A1'))

        foreign_seat = self.other_room.seats.first()
        with self.assertRaises(InvalidRequest):
            BookingService.create_booking(self.customer, self.showtime.id, [foreign_seat.id])

        self.assertFalse(Booking.objects.exists())

    def test_started_showtime_cannot_be_booked(self):
        Showtime.objects.filter(id=self.showtime.id).update(start_time=timezone.now() - timedelta(minutes=1))

        with self.assertRaises(InvalidRequest):
            self.book(self.customer, 'A1')

    def test_cancel_releases_seats(self):
        booking = self.book(self.customer, 'A1', 'A2')

        cancelled = BookingService.cancel_booking(self.customer, booking.id)

        self.assertEqual(cancelled.status, Booking.STATUS_CANCELLED)
        self.assertFalse(booking.tickets.filter(is_active=True).exists())
        self.assertEqual(SeatManager.get_occupied_seat_ids(self.showtime.id, self.seat_ids('A1', 'A2')), set())

        rebooked = self.book(self.other, 'A1', 'A2')
        self.assertEqual(rebooked.status, Booking.STATUS_PENDING)

    def test_confirm_marks_paid(self):
        booking = self.book(self.customer, 'A1')

        paid = BookingService.confirm_booking(self.admin, booking.id)

        self.assertEqual(paid.status, Booking.STATUS_PAID)
        self.assertIsNotNone(paid.payment_time)

    def test_paid_seats_stay_occupied(self):
        booking = self.book(self.customer, 'A1')
        BookingService.confirm_booking(self.admin, booking.id)

        with self.assertRaises(SeatConflict):
            self.book(self.other, 'A1')

    def test_illegal_transitions_leave_state_unchanged(self):
        booking = self.book(self.customer, 'A1')
        BookingService.confirm_booking(self.admin, booking.id)

        with self.assertRaises(IllegalStateTransition):
            BookingService.confirm_booking(self.admin, booking.id)
        with self.assertRaises(IllegalStateTransition):
            BookingService.cancel_booking(self.customer, booking.id)

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_PAID)

        other = self.book(self.other, 'A2')
        BookingService.cancel_booking(self.other, other.id)

        with self.assertRaises(IllegalStateTransition):
            BookingService.cancel_booking(self.other, other.id)
        with self.assertRaises(IllegalStateTransition):
            BookingService.confirm_booking(self.admin, other.id)

        other.refresh_from_db()
        self.assertEqual(other.status, Booking.STATUS_CANCELLED)
        self.assertIsNone(other.payment_time)

    def test_cannot_cancel_after_showtime_started(self):
        booking = self.book(self.customer, 'A1')
        Showtime.objects.filter(id=self.showtime.id).update(
            start_time=timezone.now() - timedelta(minutes=1)
        )

        with self.assertRaises(IllegalStateTransition):
            BookingService.cancel_booking(self.customer, booking.id)

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_PENDING)
        self.assertTrue(booking.tickets.filter(is_active=True).exists())

    def test_authorization(self):
        booking = self.book(self.customer, 'A1')

        with self.assertRaises(Forbidden):
            BookingService.get_booking(self.other, booking.id)
        with self.assertRaises(Forbidden):
            BookingService.cancel_booking(self.other, booking.id)
        with self.assertRaises(Forbidden):
            BookingService.confirm_booking(self.customer, booking.id)
        with self.assertRaises(Forbidden):
            BookingService.delete_booking(self.customer, booking.id)

        self.assertEqual(BookingService.get_booking(self.admin, booking.id).id, booking.id)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_PENDING)

    def test_delete_removes_dependents(self):
        popcorn = Refreshment.objects.create(name='Popcorn', price=Decimal('65000'))
        booking = self.book(self.customer, 'A1', refreshment_orders=[(popcorn.id, 1)])

        BookingService.delete_booking(self.admin, booking.id)

        self.assertFalse(Booking.objects.exists())
        self.assertFalse(Ticket.objects.exists())
        self.assertFalse(BookingRefreshment.objects.exists())
        with self.assertRaises(NotFound):
            BookingService.get_booking(self.admin, booking.id)

    def test_list_scoping_and_pages(self):
        self.book(self.customer, 'A1')
        self.book(self.customer, 'A2')
        self.book(self.other, 'A3')

        paginator, page = BookingService.list_bookings(self.customer, page=0, size=1)
        self.assertEqual(paginator.count, 2)
        self.assertEqual(paginator.num_pages, 2)
        self.assertEqual(len(page.object_list), 1)

        paginator, _ = BookingService.list_bookings(self.admin)
        self.assertEqual(paginator.count, 3)

        paginator, _ = BookingService.list_bookings(self.admin, status=Booking.STATUS_PAID)
        self.assertEqual(paginator.count, 0)

        with self.assertRaises(InvalidRequest):
            BookingService.list_bookings(self.admin, status='REFUNDED')

    def test_booked_seats_follow_bookings(self):
        self.assertEqual(BookingService.get_booked_seats(self.showtime.id), [])

        booking = self.book(self.customer, 'A1', 'A2')
        booked = BookingService.get_booked_seats(self.showtime.id)
        self.assertEqual([seat['seat_number'] for seat in booked], ['A1', 'A2'])

        BookingService.cancel_booking(self.customer, booking.id)
        self.assertEqual(BookingService.get_booked_seats(self.showtime.id), [])

        with self.assertRaises(NotFound):
            BookingService.get_booked_seats(999999)

    def test_unique_constraint_catches_lost_race(self):
        self.book(self.customer, 'A1')

        real_check = SeatManager.get_occupied_seat_numbers
        calls = []

        def stale_check(showtime_id, seat_ids):
            # The first check runs as if the other booking had not committed yet
            calls.append(seat_ids)
            if len(calls) == 1:
                return []
            return real_check(showtime_id, seat_ids)

        with mock.patch.object(SeatManager, 'get_occupied_seat_numbers', side_effect=stale_check):
            with self.assertRaises(SeatConflict) as ctx:
                self.book(self.other, 'A1', 'A5')

        self.assertEqual(ctx.exception.seat_numbers, ['A1'])
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(Ticket.objects.filter(seat=self.seats['A1'], is_active=True).count(), 1)
        self.assertFalse(Ticket.objects.filter(seat=self.seats['A5']).exists())

class ConcurrentBookingTests(BookingFixtureMixin, TransactionTestCase):

    THREADS = 6

    def setUp(self):
        if connection.vendor == 'sqlite' and connection.is_in_memory_db():
            self.skipTest('Threads cannot share an in-memory SQLite database')
        self.create_booking_fixture()
        self.callers = [
            get_caller(User.objects.create_user(username=f'racer{i}', password='testpass123'))
            for i in range(self.THREADS)
        ]

    def test_one_winner_per_seat(self):
        seat_ids = self.seat_ids('A7')
        barrier = threading.Barrier(self.THREADS)
        outcomes = []
        lock = threading.Lock()

        def attempt(caller):
            try:
                barrier.wait()
                try:
                    booking = BookingService.create_booking(caller, self.showtime.id, seat_ids)
                    result = ('booked', booking.id)
                except SeatConflict as e:
                    result = ('conflict', e.seat_numbers)
                except Exception as e:
                    result = ('error', repr(e))
                with lock:
                    outcomes.append(result)
            finally:
                connection.close()

        threads = [threading.Thread(target=attempt, args=(caller,)) for caller in self.callers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        kinds = [kind for kind, _ in outcomes]
        self.assertEqual(len(outcomes), self.THREADS, outcomes)
        self.assertEqual(kinds.count('booked'), 1, outcomes)
        self.assertEqual(kinds.count('conflict'), self.THREADS - 1, outcomes)
        self.assertTrue(all(detail == ['A7'] for kind, detail in outcomes if kind == 'conflict'))

        self.assertEqual(Booking.objects.filter(showtime=self.showtime).count(), 1)
        self.assertEqual(Ticket.objects.filter(seat_id=seat_ids[0], is_active=True).count(), 1)

class PriceCalculatorTests(TestCase):

    def test_amounts_are_exact(self):
        showtime = SimpleNamespace(price=Decimal('75000.00'))
        popcorn = SimpleNamespace(price=Decimal('0.10'))

        amounts = PriceCalculator.calculate_booking_amount(showtime, 3, [(popcorn, 3)])

        self.assertEqual(amounts['ticket_price'], Decimal('75000.00'))
        self.assertEqual(amounts['ticket_subtotal'], Decimal('225000.00'))
        self.assertEqual(amounts['refreshment_subtotal'], Decimal('0.30'))
        self.assertEqual(amounts['total_price'], Decimal('225000.30'))

    def test_no_refreshments(self):
        amounts = PriceCalculator.calculate_booking_amount(SimpleNamespace(price=Decimal('99.99')), 2)

        self.assertEqual(amounts['refreshment_subtotal'], Decimal('0'))
        self.assertEqual(amounts['total_price'], Decimal('199.98'))

    def test_booking_codes_are_distinct(self):
        codes = {generate_booking_code() for _ in range(50)}

        self.assertEqual(len(codes), 50)
        self.assertTrue(all(re.match(r'^BK[0-9A-F]{10}$', code) for code in codes))

class PolicyTests(TestCase):

    def setUp(self):
        self.admin = Caller(id=1, role=UserProfile.ROLE_ADMIN)
        self.owner = Caller(id=2, role=UserProfile.ROLE_CUSTOMER)
        self.stranger = Caller(id=3, role=UserProfile.ROLE_CUSTOMER)
        self.booking = SimpleNamespace(user_id=2)

    def test_owner_rules(self):
        self.assertTrue(policies.is_owner(self.owner, self.booking))
        self.assertTrue(policies.can_view(self.owner, self.booking))
        self.assertTrue(policies.can_cancel(self.owner, self.booking))
        self.assertFalse(policies.can_confirm(self.owner, self.booking))
        self.assertFalse(policies.can_delete(self.owner, self.booking))

    def test_stranger_rules(self):
        self.assertFalse(policies.can_view(self.stranger, self.booking))
        self.assertFalse(policies.can_cancel(self.stranger, self.booking))

    def test_admin_rules(self):
        self.assertFalse(policies.is_owner(self.admin, self.booking))
        for rule in (policies.can_view, policies.can_cancel, policies.can_confirm, policies.can_delete):
            self.assertTrue(rule(self.admin, self.booking))

class BookingApiTests(BookingFixtureMixin, TestCase):

    def setUp(self):
        self.create_booking_fixture()
        self.client = Client()

    def post_booking(self, *numbers):
        payload = {'showtime_id': self.showtime.id, 'seat_ids': self.seat_ids(*numbers)}
        return self.client.post('/api/bookings/', json.dumps(payload), content_type='application/json')

    def test_anonymous_is_401(self):
        self.assertEqual(self.client.get('/api/bookings/').status_code, 401)
        self.assertEqual(self.post_booking('A1').status_code, 401)

    def test_create_and_conflict(self):
        self.client.force_login(self.customer_user)

        response = self.post_booking('A1', 'A2')
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['status'], 'PENDING')
        self.assertEqual(body['total_price'], '150000.00')
        self.assertEqual([t['seat_number'] for t in body['tickets']], ['A1', 'A2'])

        self.client.force_login(self.other_user)
        conflict = self.post_booking('A2', 'A3')
        self.assertEqual(conflict.status_code, 409)
        self.assertEqual(conflict.json()['seat_numbers'], ['A2'])

    def test_invalid_payload_is_400(self):
        self.client.force_login(self.customer_user)

        response = self.client.post(
            '/api/bookings/',
            json.dumps({'showtime_id': self.showtime.id, 'seat_ids': []}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors']['seat_ids'], ['Select at least one seat.'])

        malformed = self.client.post('/api/bookings/', '{not json', content_type='application/json')
        self.assertEqual(malformed.status_code, 400)

    def test_detail_permissions(self):
        booking = self.book(self.customer, 'A1')

        self.client.force_login(self.other_user)
        self.assertEqual(self.client.get(f'/api/bookings/{booking.id}/').status_code, 403)
        self.assertEqual(self.client.get('/api/bookings/999999/').status_code, 404)

        self.client.force_login(self.customer_user)
        tickets = self.client.get(f'/api/bookings/{booking.id}/tickets/')
        self.assertEqual(tickets.status_code, 200)
        self.assertEqual(tickets.json()['results'][0]['seat_number'], 'A1')

    def test_confirm_and_cancel_endpoints(self):
        booking = self.book(self.customer, 'A1')

        self.client.force_login(self.customer_user)
        self.assertEqual(self.client.put(f'/api/bookings/{booking.id}/confirm/').status_code, 403)

        self.client.force_login(self.admin_user)
        paid = self.client.put(f'/api/bookings/{booking.id}/confirm/')
        self.assertEqual(paid.status_code, 200)
        self.assertEqual(paid.json()['status'], 'PAID')

        self.client.force_login(self.customer_user)
        refused = self.client.put(f'/api/bookings/{booking.id}/cancel/')
        self.assertEqual(refused.status_code, 409)
        self.assertEqual(refused.json()['error'], 'Illegal State Transition')

    def test_list_is_paginated(self):
        self.book(self.customer, 'A1')
        self.book(self.customer, 'A2')
        self.book(self.other, 'A3')

        self.client.force_login(self.customer_user)
        response = self.client.get('/api/bookings/', {'page': 0, 'size': 1})

        body = response.json()
        self.assertEqual(body['total_elements'], 2)
        self.assertEqual(body['total_pages'], 2)
        self.assertEqual(len(body['results']), 1)

    def test_delete_requires_admin(self):
        booking = self.book(self.customer, 'A1')

        self.client.force_login(self.customer_user)
        self.assertEqual(self.client.delete(f'/api/bookings/{booking.id}/').status_code, 403)

        self.client.force_login(self.admin_user)
        self.assertEqual(self.client.delete(f'/api/bookings/{booking.id}/').status_code, 204)
        self.assertFalse(Booking.objects.exists())

    def test_booked_seats_endpoint(self):
        self.book(self.customer, 'A1')

        response = self.client.get(f'/api/bookings/showtime/{self.showtime.id}/seats/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual([s['seat_number'] for s in response.json()['results']], ['A1'])
        self.assertEqual(self.client.get('/api/bookings/showtime/999999/seats/').status_code, 404)
