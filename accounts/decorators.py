from functools import wraps

from .utils import get_caller


def api_login_required(view_func):
    """Resolve the caller once and hand it to the view as ``request.caller``.

    Anonymous or locked users raise, and the global exception middleware turns
    that into a 401/403 JSON response.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        request.caller = get_caller(request.user)
        return view_func(request, *args, **kwargs)

    return wrapper
