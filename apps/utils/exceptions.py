"""
DRF exception handler producing a single error envelope:

    {"code": "<stable_code>", "message": "<text>", "data": {"status": <http>, ...}}
"""
import logging
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions
from rest_framework.views import exception_handler

logger = logging.getLogger('apps.api')


def _first_code(codes):
    """Flatten DRF's nested get_codes() structure down to its first code."""
    if isinstance(codes, dict):
        for value in codes.values():
            return _first_code(value)
        return None
    if isinstance(codes, (list, tuple)):
        return _first_code(codes[0]) if codes else None
    return codes


def _flatten_messages(detail):
    if isinstance(detail, dict):
        return {key: _flatten_messages(value) for key, value in detail.items()}
    if isinstance(detail, (list, tuple)):
        return [str(item) if not isinstance(item, (dict, list)) else _flatten_messages(item) for item in detail]
    return str(detail)


def _is_missing_params(codes):
    if isinstance(codes, dict):
        return bool(codes) and all(_is_missing_params(value) for value in codes.values())
    if isinstance(codes, (list, tuple)):
        return bool(codes) and all(code == 'required' for code in codes)
    return codes == 'required'


def error_payload(exc, status_code=None):
    """Build the error envelope for an APIException (also used by batch requests)."""
    status_code = status_code or getattr(exc, 'status_code', 500)

    if isinstance(exc, exceptions.ValidationError):
        detail = exc.detail if isinstance(exc.detail, dict) else {'non_field_errors': exc.detail}
        codes = exc.get_codes()
        if _is_missing_params(codes):
            code = 'rest_missing_callback_param'
            message = f"Missing parameter(s): {', '.join(detail)}"
        else:
            code = 'rest_invalid_param'
            message = f"Invalid parameter(s): {', '.join(detail)}"
        return {
            'code': code,
            'message': message,
            'data': {'status': status_code, 'params': _flatten_messages(detail)},
        }

    data = {'status': status_code}
    data.update(getattr(exc, 'data', None) or {})
    code = getattr(exc, 'code', None) or _first_code(exc.get_codes()) or 'error'
    return {
        'code': str(code),
        'message': str(exc.detail),
        'data': data,
    }


def api_exception_handler(exc, context):
    """REST_FRAMEWORK['EXCEPTION_HANDLER'] entry point."""
    if isinstance(exc, Http404):
        exc = exceptions.NotFound(*exc.args)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied(*exc.args)

    response = exception_handler(exc, context)
    if response is None:
        # Non-API exceptions become Django's regular 500
        return None

    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if response.status_code >= 500:
        logger.error(f"{view_name} failed with {response.status_code}: {exc}")
    else:
        logger.info(f"{view_name} rejected request with {response.status_code}: {exc}")

    response.data = error_payload(exc, response.status_code)
    return response
