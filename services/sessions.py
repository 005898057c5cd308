"""In-memory table of live login sessions."""

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    token: str
    user_name: str
    created_at: datetime = field(default_factory=datetime.utcnow)


class SessionRegistry:
    """
    Maps opaque session tokens to user names.

    Tokens are 256-bit values from ``secrets``. Entries live until they are
    destroyed; there is no timed expiry.
    """

    TOKEN_BYTES = 32

    def __init__(self):
        self.sessions = {}
        self.lock = threading.Lock()

    def create(self, name):
        """Start a session for ``name`` and return its token."""
        with self.lock:
            token = secrets.token_urlsafe(self.TOKEN_BYTES)
            while token in self.sessions:
                token = secrets.token_urlsafe(self.TOKEN_BYTES)
            self.sessions[token] = Session(token=token, user_name=name)
        logger.debug('Session created for %s (%d live)', name, len(self))
        return token

    def resolve(self, token):
        """Return the user name bound to ``token``, or None."""
        if not token:
            return None
        session = self.sessions.get(token)
        return session.user_name if session else None

    def destroy(self, token):
        """Forget ``token``. Unknown tokens are ignored."""
        with self.lock:
            session = self.sessions.pop(token, None)
        if session:
            logger.debug('Session destroyed for %s', session.user_name)

    def __len__(self):
        return len(self.sessions)
