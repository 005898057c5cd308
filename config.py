import os
from datetime import timedelta


def _mime_prefixes(value):
    """Parse a comma separated list; an empty list allows every type."""
    return tuple(p.strip().lower() for p in value.split(',') if p.strip())


class Config:
    """Base configuration."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///photodrop.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie; it carries the session token
    PERMANENT_SESSION_LIFETIME = timedelta(hours=12)
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_NAME = '__Host-session'

    # Upload storage
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or \
        os.path.join(os.path.dirname(os.path.abspath(__file__)), 'uploads')
    STORED_FILE_PREFIX = 'upload_'
    MAX_CONTENT_LENGTH = 20 * 1024 * 1024  # 20MB max upload
    # Photo sharing by default; set ALLOWED_MIME_PREFIXES='' to accept any file
    ALLOWED_MIME_PREFIXES = _mime_prefixes(os.environ.get('ALLOWED_MIME_PREFIXES', 'image/'))

    # Unknown names are registered on their first login
    AUTO_REGISTER = os.environ.get('AUTO_REGISTER', 'true').lower() in ('1', 'true', 'yes')

    # bcrypt cost factor
    BCRYPT_ROUNDS = 12

    # Rate limiting as (requests, period in seconds) per client address
    RATELIMIT_ENABLED = True
    RATELIMIT_LOGIN = (10, 60)
    RATELIMIT_SIGNUP = (5, 60)
    RATELIMIT_UPLOAD = (20, 60)

    AUDIT_PAGE_SIZE = 20

    # Security Headers
    SECURITY_HEADERS = {
        'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'Content-Security-Policy': "default-src 'self'; img-src 'self' data:;",
        'Referrer-Policy': 'strict-origin-when-cross-origin',
    }


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SESSION_COOKIE_SECURE = False  # Allow HTTP in development
    SESSION_COOKIE_NAME = 'session'


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_NAME = 'session'
    BCRYPT_ROUNDS = 4  # bcrypt minimum, keeps tests fast
    ALLOWED_MIME_PREFIXES = ('image/',)
    AUTO_REGISTER = True


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
