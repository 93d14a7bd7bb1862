import json

from .exceptions import InvalidRequest


def read_json(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise InvalidRequest('Request body must be valid JSON')
    if not isinstance(data, dict):
        raise InvalidRequest('Request body must be a JSON object')
    return data


def form_errors(form):
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}
