import json
from io import StringIO
from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, Client

from cinemabooking.exceptions import Forbidden, Unauthenticated
from .models import UserProfile
from .utils import Caller, get_caller, get_profile, require_admin

class CallerTests(TestCase):

    def test_anonymous_user_is_unauthenticated(self):
        from django.contrib.auth.models import AnonymousUser

        with self.assertRaises(Unauthenticated):
            get_caller(AnonymousUser())

    def test_customer_profile_is_created_on_demand(self):
        user = User.objects.create_user(username='alice', password='testpass123')

        caller = get_caller(user)

        self.assertEqual(caller, Caller(id=user.id, role=UserProfile.ROLE_CUSTOMER))
        self.assertFalse(caller.is_admin)
        self.assertEqual(UserProfile.objects.get(user=user).role, UserProfile.ROLE_CUSTOMER)

    def test_staff_user_is_admin(self):
        user = User.objects.create_user(username='staff', password='testpass123', is_staff=True)

        self.assertTrue(get_caller(user).is_admin)

    def test_admin_role_grants_admin(self):
        user = User.objects.create_user(username='boss', password='testpass123')
        UserProfile.objects.create(user=user, role=UserProfile.ROLE_ADMIN)

        self.assertTrue(get_caller(user).is_admin)

    def test_locked_account_is_forbidden(self):
        user = User.objects.create_user(username='bob', password='testpass123')
        get_profile(user).lock()

        with self.assertRaises(Forbidden):
            get_caller(user)

    def test_require_admin(self):
        require_admin(Caller(id=1, role=UserProfile.ROLE_ADMIN))
        with self.assertRaises(Forbidden):
            require_admin(Caller(id=2, role=UserProfile.ROLE_CUSTOMER))

class AuthApiTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_user(
            username='testuser',
            email='test@example.com',
            password='testpass123'
        )

    def post_json(self, url, data):
        return self.client.post(url, json.dumps(data), content_type='application/json')

    def test_register_creates_customer_and_logs_in(self):
        response = self.post_json('/api/auth/register/', {
            'username': 'newbie',
            'email': 'Newbie@Example.com',
            'password': 'S3cure-pass-42',
            'full_name': 'New Bie',
        })

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['email'], 'newbie@example.com')
        self.assertEqual(body['role'], UserProfile.ROLE_CUSTOMER)

        me = self.client.get('/api/auth/me/')
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()['username'], 'newbie')

    def test_register_rejects_duplicate_email(self):
        response = self.post_json('/api/auth/register/', {
            'username': 'other',
            'email': 'TEST@example.com',
            'password': 'S3cure-pass-42',
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('email', response.json()['errors'])

    def test_login_with_email(self):
        response = self.post_json('/api/auth/login/', {'username': 'test@example.com', 'password': 'testpass123'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['id'], self.user.id)

    def test_login_with_wrong_password(self):
        response = self.post_json('/api/auth/login/', {'username': 'testuser', 'password': 'wrong'})

        self.assertEqual(response.status_code, 401)

    def test_locked_account_cannot_log_in(self):
        get_profile(self.user).lock()

        response = self.post_json('/api/auth/login/', {'username': 'testuser', 'password': 'testpass123'})

        self.assertEqual(response.status_code, 401)

    def test_me_requires_login(self):
        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'Unauthorized')

    def test_locked_account_loses_its_session(self):
        self.client.force_login(self.user)
        get_profile(self.user).lock()

        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.status_code, 401)

class CreateAdminCommandTests(TestCase):

    def test_creates_superuser_with_admin_profile(self):
        call_command('create_admin', '--username', 'root', '--password', 'rootpass123', stdout=StringIO())

        user = User.objects.get(username='root')
        self.assertTrue(user.is_superuser)
        self.assertEqual(user.profile.role, UserProfile.ROLE_ADMIN)
        self.assertTrue(user.check_password('rootpass123'))

    def test_existing_user_requires_reset(self):
        User.objects.create_user(username='root', password='old-pass-123')

        with self.assertRaises(CommandError):
            call_command('create_admin', '--username', 'root', stdout=StringIO())

        call_command('create_admin', '--username', 'root', '--password', 'new-pass-123', '--reset', stdout=StringIO())
        self.assertTrue(User.objects.get(username='root').check_password('new-pass-123'))

class CsrfTests(TestCase):

    def setUp(self):
        self.client = Client(enforce_csrf_checks=True)

    def post_json(self, url, data, token=None):
        extra = {'HTTP_X_CSRFTOKEN': token} if token else {}
        return self.client.post(url, json.dumps(data), content_type='application/json', **extra)

    def test_missing_token_is_json_403(self):
        response = self.post_json('/api/auth/login/', {'username': 'nobody', 'password': 'whatever1'})

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response['Content-Type'], 'application/json')
        self.assertEqual(response.json()['error'], 'Forbidden')

    def test_new_client_can_register_then_log_out(self):
        token = self.client.get('/api/auth/csrf/').json()['csrf_token']

        response = self.post_json('/api/auth/register/', {
            'username': 'fresh',
            'email': 'fresh@example.com',
            'password': 'S3cure-pass-42',
        }, token=token)
        self.assertEqual(response.status_code, 201)

        # Logging in rotates the token; the cookie carries the new one
        rotated = self.client.cookies['csrftoken'].value
        logout = self.client.post('/api/auth/logout/', HTTP_X_CSRFTOKEN=rotated)
        self.assertEqual(logout.status_code, 200)
        self.assertEqual(self.client.get('/api/auth/me/').status_code, 401)

    def test_login_with_token(self):
        User.objects.create_user(username='returning', password='testpass123')
        token = self.client.get('/api/auth/csrf/').json()['csrf_token']

        response = self.post_json('/api/auth/login/', {'username': 'returning', 'password': 'testpass123'}, token=token)

        self.assertEqual(response.status_code, 200)
