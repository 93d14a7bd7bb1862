import logging
from django.http import Http404, JsonResponse
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError

from cinemabooking.exceptions import CinemaError

logger = logging.getLogger(__name__)

def handler400(request, exception=None):

    logger.warning(f'400 Error: {exception}')
    return JsonResponse({
        'error': 'Bad Request',
        'message': 'The request could not be understood.'
    }, status=400)

def handler403(request, exception=None):

    logger.warning(f'403 Error: {exception}')
    return JsonResponse({
        'error': 'Forbidden',
        'message': 'You do not have permission to access this resource.'
    }, status=403)

def handler404(request, exception=None):

    logger.warning(f'404 Error: {request.path}')
    return JsonResponse({
        'error': 'Not Found',
        'message': 'The requested resource was not found.'
    }, status=404)

def handler500(request):

    logger.error('500 Internal Server Error')
    return JsonResponse({
        'error': 'Internal Server Error',
        'message': 'An unexpected error occurred.'
    }, status=500)

def handler503(request, exception=None):

    logger.error('503 Service Unavailable')
    return JsonResponse({
        'error': 'Service Unavailable',
        'message': 'The service is temporarily unavailable.'
    }, status=503)

class GlobalExceptionMiddleware:
    """Turn exceptions escaping views into JSON error responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        return response

    def process_exception(self, request, exception):

        if isinstance(exception, CinemaError):
            logger.info(f'{request.method} {request.path} rejected ({exception.status_code}): {exception.message}')
            return JsonResponse(exception.to_dict(), status=exception.status_code)

        if isinstance(exception, Http404):
            return handler404(request, exception)
        if isinstance(exception, PermissionDenied):
            return handler403(request, exception)

        logger.error(f'Unhandled exception on {request.method} {request.path}: {exception}', exc_info=True)

        if isinstance(exception, DatabaseError):
            return handler503(request, exception)
        return handler500(request)

def csrf_failure(request, reason=""):

    logger.warning(f'CSRF check failed on {request.method} {request.path}: {reason}')
    return JsonResponse({
        'error': 'Forbidden',
        'message': 'CSRF verification failed. Fetch a token from /api/auth/csrf/ and send it in the X-CSRFToken header.'
    }, status=403)
