"""
Security middleware for the OWLS reviews platform.

Adds security headers to every response and keeps an audit trail of calls
to the review and moderation endpoints.
"""

from apps.utils.security import (
    add_security_headers,
    IPValidator,
    SecurityAuditLogger,
)


class SecurityHeadersMiddleware:
    """
    Middleware to add security headers to all responses.

    Headers added:
    - X-Frame-Options: DENY
    - X-Content-Type-Options: nosniff
    - Referrer-Policy: strict-origin-when-cross-origin
    - Content-Security-Policy (production only)
    - Permissions-Policy
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        add_security_headers(response)
        return response


class RequestLoggingMiddleware:
    """
    Middleware to log writes against audited API paths.
    Logs: IP, path, method, user, response status.
    """

    AUDITED_PATHS = [
        '/api/auth/login/',
        '/api/social/reviews/',
        '/api/core/discussion/',
    ]
    SAFE_METHODS = ('GET', 'HEAD', 'OPTIONS')

    def __init__(self, get_response):
        self.get_response = get_response
        self.audit = SecurityAuditLogger()

    def __call__(self, request):
        response = self.get_response(request)

        if request.method in self.SAFE_METHODS:
            return response

        if any(request.path.startswith(p) for p in self.AUDITED_PATHS):
            user = getattr(request, 'user', None)
            user_id = getattr(user, 'id', None) if user is not None else None
            self.audit.log_api_access(
                request.path,
                request.method,
                IPValidator.get_client_ip(request),
                user_id,
                response.status_code,
            )

        return response
