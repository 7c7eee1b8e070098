"""
Logging sanitization for address data.

Address records are personal data. This module keeps street-level details
and URL credentials out of log output; identifiers, status codes and city
level fields stay readable for debugging.
"""

import re
from typing import Any, Dict, List, Optional


class LogSanitizer:
    """Sanitizes personal address data from log output."""

    # Field names whose values are always redacted (case-insensitive)
    SENSITIVE_FIELD_PATTERNS = {
        'street', 'postal_code', 'postalcode', 'zip', 'phone', 'email',
        'password', 'secret', 'token', 'session', 'cookie', 'authorization'
    }

    # Free-text patterns redacted inside string values
    SENSITIVE_VALUE_PATTERNS = [
        # Email addresses
        r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b',
        # Phone numbers
        r'\b\+?1?[-.\s]?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b',
    ]

    REPLACEMENT_TEXT = "***REDACTED***"

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any], max_depth: int = 10) -> Dict[str, Any]:
        """
        Recursively sanitize a dictionary.

        Args:
            data: Dictionary to sanitize
            max_depth: Maximum recursion depth

        Returns:
            New dictionary with sensitive fields redacted
        """
        if max_depth <= 0:
            return {"error": "max_depth_reached"}

        sanitized = {}

        for key, value in data.items():
            normalized_key = str(key).lower()

            if any(pattern in normalized_key for pattern in cls.SENSITIVE_FIELD_PATTERNS):
                sanitized[key] = cls.REPLACEMENT_TEXT
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value, max_depth - 1)
            elif isinstance(value, list):
                sanitized[key] = cls._sanitize_list(value, max_depth - 1)
            else:
                sanitized[key] = value

        return sanitized

    @classmethod
    def _sanitize_list(cls, data: List[Any], max_depth: int) -> List[Any]:
        if max_depth <= 0:
            return ["max_depth_reached"]

        sanitized = []
        for item in data:
            if isinstance(item, dict):
                sanitized.append(cls.sanitize_dict(item, max_depth - 1))
            elif isinstance(item, list):
                sanitized.append(cls._sanitize_list(item, max_depth - 1))
            else:
                sanitized.append(item)

        return sanitized

    @classmethod
    def sanitize_string(cls, text: str) -> str:
        """Replace sensitive patterns inside free text."""
        sanitized = text
        for pattern in cls.SENSITIVE_VALUE_PATTERNS:
            sanitized = re.sub(pattern, cls.REPLACEMENT_TEXT, sanitized)
        return sanitized

    @classmethod
    def sanitize_url(cls, url: str) -> str:
        """Remove credentials (user:pass@host) from a URL."""
        return re.sub(r'://[^@/]+@', '://***:***@', url)


class StructlogSanitizer:
    """Structlog processor that sanitizes event data."""

    def __init__(self, sanitizer: Optional[LogSanitizer] = None):
        self.sanitizer = sanitizer or LogSanitizer()

    def __call__(self, logger, method_name, event_dict):
        sanitized_event = self.sanitizer.sanitize_dict(event_dict)

        for url_key in ('url', 'base_url'):
            if isinstance(sanitized_event.get(url_key), str):
                sanitized_event[url_key] = self.sanitizer.sanitize_url(sanitized_event[url_key])

        if isinstance(sanitized_event.get('error'), str):
            sanitized_event['error'] = self.sanitizer.sanitize_string(sanitized_event['error'])

        return sanitized_event
