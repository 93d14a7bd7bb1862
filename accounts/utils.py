from collections import namedtuple

from cinemabooking.exceptions import Forbidden, Unauthenticated
from .models import UserProfile


class Caller(namedtuple('Caller', ['id', 'role'])):
    """The authenticated principal, reduced to the data authorization needs."""

    __slots__ = ()

    @property
    def is_admin(self):
        return self.role == UserProfile.ROLE_ADMIN


def get_profile(user):
    profile, _ = UserProfile.objects.get_or_create(
        user=user,
        defaults={
            'role': UserProfile.ROLE_ADMIN if user.is_staff or user.is_superuser else UserProfile.ROLE_CUSTOMER,
            'full_name': user.get_full_name(),
        },
    )
    return profile


def get_caller(user):

    if user is None or not user.is_authenticated:
        raise Unauthenticated('Authentication required')

    profile = get_profile(user)
    if profile.is_locked:
        raise Forbidden('This account is locked')

    role = UserProfile.ROLE_ADMIN if profile.is_admin else UserProfile.ROLE_CUSTOMER
    return Caller(id=user.id, role=role)


def require_admin(caller, message='Only admins can perform this action'):
    if not caller.is_admin:
        raise Forbidden(message)
