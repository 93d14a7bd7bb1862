from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth.models import User
from django.db import transaction
from accounts.models import UserProfile


class Command(BaseCommand):
    help = 'Create or reset an admin account with an ADMIN profile'

    def add_arguments(self, parser):
        parser.add_argument(
            '--username',
            type=str,
            default='admin',
            help='Admin username (default: admin)'
        )
        parser.add_argument(
            '--email',
            type=str,
            default='admin@cinema.local',
            help='Admin email (default: admin@cinema.local)'
        )
        parser.add_argument(
            '--password',
            type=str,
            default=None,
            help='Admin password (default: admin123)'
        )
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Reset existing admin user if found'
        )

    def handle(self, *args, **options):
        username = options['username']
        email = options['email']
        password = options.get('password') or 'admin123'
        reset = options['reset']

        user = User.objects.filter(username=username).first()

        if user and not reset:
            raise CommandError(f'User "{username}" already exists. Use --reset to reset it.')

        try:
            with transaction.atomic():
                if user:
                    self.stdout.write(self.style.WARNING(f'Resetting existing user: {username}'))
                    user.email = email
                    user.set_password(password)
                    user.is_staff = True
                    user.is_superuser = True
                    user.is_active = True
                    user.save()
                else:
                    self.stdout.write(self.style.WARNING(f'Creating new admin user: {username}'))
                    user = User.objects.create_superuser(
                        username=username,
                        email=email,
                        password=password
                    )

                profile, _ = UserProfile.objects.get_or_create(user=user)
                profile.role = UserProfile.ROLE_ADMIN
                profile.status = UserProfile.STATUS_ACTIVE
                profile.save()
        except Exception as e:
            raise CommandError(f'Failed to create/reset admin: {e}')

        self.stdout.write(self.style.SUCCESS('=' * 60))
        self.stdout.write(f'  Username:   {user.username}')
        self.stdout.write(f'  Email:      {user.email}')
        self.stdout.write(f'  Role:       {profile.role}')
        self.stdout.write(f'  Status:     {profile.status}')
        self.stdout.write(self.style.SUCCESS('=' * 60))
        self.stdout.write(self.style.SUCCESS('Admin user is ready.'))
