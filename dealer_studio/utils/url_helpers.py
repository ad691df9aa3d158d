"""URL utilities for the Dealer Studio application.

Generated outfit images are stored by reference, so every image URL kept on
an outfit must be absolute: an ``http``/``https`` scheme and a host. Relative
paths and ``data:`` blobs are rejected.
"""

from typing import Any
from urllib.parse import urlparse

ALLOWED_SCHEMES = {'http', 'https'}


class URLValidationError(ValueError):
    """Raised when URL validation fails."""
    pass


def is_absolute_url(url: Any) -> bool:
    """Check that ``url`` parses as an absolute web URL."""
    if not isinstance(url, str) or not url.strip():
        return False
    if url != url.strip():
        return False

    try:
        parsed = urlparse(url)
        # Accessing .port raises on malformed ports like "host:abc"
        parsed.port
    except ValueError:
        return False

    return parsed.scheme.lower() in ALLOWED_SCHEMES and bool(parsed.hostname)


def validate_image_url(url: Any) -> str:
    """Return ``url`` unchanged, or raise ``URLValidationError``."""
    if not is_absolute_url(url):
        raise URLValidationError(f"Not an absolute image URL: {url!r}")
    return url
