"""
Security utilities for the OWLS reviews platform.

This module provides:
- Sensitive data filtering for logs
- Review/comment input sanitization
- Client IP extraction
- Security headers management
"""

import logging
import re
import ipaddress
import nh3
from django.conf import settings
from django.http import HttpRequest
from django.utils.html import strip_tags


# ==================== LOGGING SECURITY ====================

class SensitiveDataFilter(logging.Filter):
    """
    Logging filter to mask sensitive data in log messages.
    Reviewer emails and JWTs travel through the reviews API, keep them out of logs.
    """

    PATTERNS = [
        # Credentials
        (r'password["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', 'password=***MASKED***'),
        (r'token["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', 'token=***MASKED***'),
        (r'secret["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', 'secret=***MASKED***'),
        (r'bearer\s+[a-zA-Z0-9._-]+', 'Bearer ***MASKED***'),

        # Email masking (partial)
        (r'([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})', r'\1[...]@\2'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Apply all masking patterns to log message."""
        if record.msg:
            msg = str(record.msg)
            for pattern, replacement in self.PATTERNS:
                msg = re.sub(pattern, replacement, msg, flags=re.IGNORECASE)
            record.msg = msg
        return True


class SecurityAuditLogger:
    """
    Centralized security audit logging for tracking security-related events.
    """

    def __init__(self, logger_name: str = 'security.audit'):
        self.logger = logging.getLogger(logger_name)

    def log_api_access(self, path: str, method: str, ip: str, user_id=None, status: int = 0):
        self.logger.info(
            f"API_ACCESS: path={path}, method={method}, ip={ip}, user={user_id}, status={status}"
        )


# ==================== INPUT VALIDATION & SANITIZATION ====================

class InputValidator:
    """
    Input validation and sanitization for user submitted review content.
    """

    # Markup allowed in review bodies; everything else is stripped
    ALLOWED_TAGS = {
        'a', 'abbr', 'acronym', 'b', 'blockquote', 'br', 'cite', 'code', 'del',
        'em', 'i', 'li', 'ol', 'p', 'q', 's', 'strike', 'strong', 'ul',
    }
    ALLOWED_ATTRIBUTES = {
        'a': {'href', 'title'},
        'abbr': {'title'},
        'acronym': {'title'},
        'blockquote': {'cite'},
        'del': {'datetime'},
        'q': {'cite'},
    }
    ALLOWED_URL_SCHEMES = {'http', 'https', 'mailto'}
    # Removed together with their content
    STRIPPED_BLOCKS = {'script', 'style', 'iframe', 'object', 'embed', 'form', 'textarea', 'noscript'}

    @classmethod
    def sanitize_html(cls, input_str: str) -> str:
        """
        Allowlist sanitizer for review bodies: a fixed set of formatting tags
        and attributes survives, links only keep http, https and mailto URLs.
        """
        if not input_str:
            return ''
        return nh3.clean(
            input_str,
            tags=cls.ALLOWED_TAGS,
            clean_content_tags=cls.STRIPPED_BLOCKS,
            attributes=cls.ALLOWED_ATTRIBUTES,
            url_schemes=cls.ALLOWED_URL_SCHEMES,
            link_rel=None,
        )

    @classmethod
    def clean_text(cls, input_str: str) -> str:
        """Plain text only: strip every tag and surrounding whitespace."""
        if not input_str:
            return ''
        return strip_tags(input_str).strip()

    @classmethod
    def clean_email(cls, email: str) -> str:
        if not email:
            return ''
        return re.sub(r'[^a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~@-]', '', email.strip())


# ==================== IP SECURITY ====================

class IPValidator:
    """
    IP address validation and security utilities.
    """

    @staticmethod
    def get_client_ip(request: HttpRequest) -> str:
        """Extract real client IP from request, handling proxies."""
        # Check for forwarded headers (in order of reliability)
        headers = [
            'HTTP_X_REAL_IP',
            'HTTP_X_FORWARDED_FOR',
            'HTTP_CF_CONNECTING_IP',  # Cloudflare
            'REMOTE_ADDR',
        ]

        for header in headers:
            ip = request.META.get(header)
            if ip:
                # X-Forwarded-For can contain multiple IPs
                if ',' in ip:
                    ip = ip.split(',')[0].strip()
                return ip

        return '127.0.0.1'

    @staticmethod
    def is_valid_ip(ip: str) -> bool:
        """Check if IP address is valid."""
        try:
            ipaddress.ip_address(ip)
            return True
        except ValueError:
            return False

    @classmethod
    def get_valid_client_ip(cls, request: HttpRequest) -> str:
        """Client IP, falling back to loopback when the header value is garbage."""
        ip = cls.get_client_ip(request)
        return ip if cls.is_valid_ip(ip) else '127.0.0.1'


# ==================== SECURITY MIDDLEWARE HELPERS ====================

def add_security_headers(response) -> None:
    """Add security headers to HTTP response."""
    # Prevent clickjacking
    response['X-Frame-Options'] = 'DENY'

    # Prevent MIME type sniffing
    response['X-Content-Type-Options'] = 'nosniff'

    # Referrer policy
    response['Referrer-Policy'] = 'strict-origin-when-cross-origin'

    # Content Security Policy (basic)
    if not settings.DEBUG:
        response['Content-Security-Policy'] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https:; "
        )

    # Permissions Policy
    response['Permissions-Policy'] = (
        'geolocation=(), '
        'microphone=(), '
        'camera=()'
    )


# ==================== EXPORTS ====================

__all__ = [
    'SensitiveDataFilter',
    'SecurityAuditLogger',
    'InputValidator',
    'IPValidator',
    'add_security_headers',
]
