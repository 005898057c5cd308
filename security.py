"""
Request-level security helpers: rate limiting, security headers,
client identification and the operation guard used by the routes.
"""

from functools import wraps
from datetime import datetime, timedelta
from collections import defaultdict, deque
import threading

from flask import request, abort, current_app, g
from flask_login import current_user

from services import get_services


class RateLimiter:
    """
    Sliding-window request counter keyed by an arbitrary string.
    State is per process; each application owns one instance.
    """

    def __init__(self):
        self.requests = defaultdict(deque)
        self.lock = threading.Lock()

    def is_rate_limited(self, key, limit, period_seconds):
        """
        Record a hit for ``key`` unless it already has ``limit`` hits
        within the last ``period_seconds``.

        Returns:
            True if the hit was refused, False if it was recorded
        """
        now = datetime.now()
        cutoff = now - timedelta(seconds=period_seconds)

        with self.lock:
            hits = self.requests[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= limit:
                return True

            hits.append(now)
            return False


def add_security_headers(response):
    """Apply SECURITY_HEADERS and the request id to a response."""
    headers = current_app.config.get('SECURITY_HEADERS', {})
    for header, value in headers.items():
        response.headers[header] = value

    response.headers['X-Request-Id'] = getattr(g, 'request_id', 'unknown')
    return response


def get_client_ip():
    """Client address, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get('X-Forwarded-For')
    if forwarded:
        return forwarded.split(',')[0].strip()

    if request.headers.get('X-Real-IP'):
        return request.headers.get('X-Real-IP')

    return request.remote_addr


def rate_limit(config_key):
    """
    Limit a view to the ``(limit, period_seconds)`` pair stored under
    ``config_key``, counted per client address.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_app.config.get('RATELIMIT_ENABLED', True):
                return f(*args, **kwargs)

            limit, period = current_app.config[config_key]
            key = f'{request.endpoint}:{get_client_ip()}'

            if get_services().rate_limiter.is_rate_limited(key, limit, period):
                current_app.logger.warning(
                    f"[{g.get('request_id', 'N/A')}] rate limited {key}"
                )
                abort(429)

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def current_token():
    """Session token carried by the Flask-Login cookie, if any."""
    if current_user.is_authenticated:
        return current_user.get_id()
    return None


def requires(operation):
    """
    Run the access controller for ``operation`` before the view.
    The resolved identity (or None) is stored on ``g.identity``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            g.identity = get_services().access.authorize(current_token(), operation)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
