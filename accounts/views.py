from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.models import User
from django.db import transaction
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST
from cinemabooking.exceptions import InvalidRequest, Unauthenticated
from cinemabooking.http import read_json, form_errors
from .decorators import api_login_required
from .forms import RegistrationForm, LoginForm
from .models import UserProfile
from .utils import get_profile
import logging

logger = logging.getLogger(__name__)

def user_to_dict(user):
    profile = get_profile(user)
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'full_name': profile.full_name,
        'phone': profile.phone,
        'role': UserProfile.ROLE_ADMIN if profile.is_admin else UserProfile.ROLE_CUSTOMER,
        'status': profile.status,
    }

@ensure_csrf_cookie
@require_GET
def csrf(request):
    """Hand a new client the CSRF token its first POST (register or login) must carry."""
    return JsonResponse({'csrf_token': get_token(request)})

@require_POST
def register(request):
    form = RegistrationForm(read_json(request))
    if not form.is_valid():
        raise InvalidRequest('Registration data is invalid', errors=form_errors(form))

    with transaction.atomic():
        user = User.objects.create_user(
            username=form.cleaned_data['username'],
            email=form.cleaned_data['email'],
            password=form.cleaned_data['password'],
        )
        UserProfile.objects.create(
            user=user,
            role=UserProfile.ROLE_CUSTOMER,
            full_name=form.cleaned_data.get('full_name', ''),
            phone=form.cleaned_data.get('phone', ''),
        )

    logger.info(f"User registered: {user.username} ({user.email})")
    login(request, user, backend='accounts.backends.EmailBackend')
    return JsonResponse(user_to_dict(user), status=201)

@ensure_csrf_cookie
@require_POST
def login_view(request):
    form = LoginForm(read_json(request))
    if not form.is_valid():
        raise InvalidRequest('Please enter both username and password', errors=form_errors(form))

    user = authenticate(
        request,
        username=form.cleaned_data['username'].strip(),
        password=form.cleaned_data['password'],
    )
    if user is None:
        logger.warning(f"Failed login attempt for: {form.cleaned_data['username']}")
        raise Unauthenticated('Invalid username or password')

    login(request, user)
    logger.info(f"User logged in: {user.username}")
    return JsonResponse(user_to_dict(user))

@require_POST
def logout_view(request):
    if request.user.is_authenticated:
        logger.info(f"User logged out: {request.user.username}")
    logout(request)
    return JsonResponse({'success': True})

@ensure_csrf_cookie
@require_GET
@api_login_required
def me(request):
    return JsonResponse(user_to_dict(request.user))
