from flask import current_app

from services.access import AccessController
from services.content import ContentStore
from services.credentials import CredentialStore
from services.sessions import SessionRegistry

EXTENSION_KEY = 'photodrop'


class Services:
    """The service objects owned by one application instance."""

    def __init__(self, credentials, sessions, content, access, rate_limiter):
        self.credentials = credentials
        self.sessions = sessions
        self.content = content
        self.access = access
        self.rate_limiter = rate_limiter


def init_services(app, db):
    """Construct the services from ``app.config`` and attach them to ``app``."""
    from security import RateLimiter

    credentials = CredentialStore(db, rounds=app.config['BCRYPT_ROUNDS'])
    sessions = SessionRegistry()
    content = ContentStore(
        db,
        credentials,
        root=app.config['UPLOAD_FOLDER'],
        prefix=app.config['STORED_FILE_PREFIX'],
        allowed_mime_prefixes=app.config['ALLOWED_MIME_PREFIXES'],
    )
    access = AccessController(sessions, credentials)

    services = Services(credentials, sessions, content, access, RateLimiter())
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services():
    return current_app.extensions[EXTENSION_KEY]
