from django.contrib.auth.backends import ModelBackend
from django.contrib.auth.models import User
from django.db.models import Q

from .models import UserProfile


class EmailBackend(ModelBackend):

    def authenticate(self, request, username=None, password=None, **kwargs):
        if username is None:
            username = kwargs.get('email')

        if username is None or password is None:
            return None

        user = User.objects.filter(
            Q(email__iexact=username) | Q(username__iexact=username)
        ).order_by('-date_joined').first()

        if user is None:
            # Run the hasher anyway so response timing does not reveal unknown accounts
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None

    def user_can_authenticate(self, user):
        if not super().user_can_authenticate(user):
            return False
        return not UserProfile.objects.filter(user=user, status=UserProfile.STATUS_LOCKED).exists()
