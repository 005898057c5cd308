"""Decides whether the holder of a session token may perform an operation."""

import enum

from flask_login import UserMixin

from services.errors import AuthorizationError, NotAuthenticatedError


class Operation(enum.Enum):
    LOGIN = 'login'
    SIGNUP = 'signup'
    LOGOUT = 'logout'
    CURRENT_USER = 'current_user'
    UPLOAD = 'upload'
    LIST = 'list'
    READ_ITEM = 'read_item'
    AUDIT_LOG = 'audit_log'


# Operations that succeed with or without a session
OPEN_OPERATIONS = frozenset({
    Operation.LOGIN, Operation.SIGNUP, Operation.LOGOUT, Operation.CURRENT_USER
})


class Identity(UserMixin):
    """The authenticated caller as seen by Flask-Login.

    ``get_id`` returns the session token rather than the user id, so the
    cookie only stays valid while the registry still holds the token.
    """

    def __init__(self, user, token):
        self.user = user
        self.token = token

    @property
    def id(self):
        return self.user.id

    @property
    def name(self):
        return self.user.name

    def get_id(self):
        return self.token

    def __repr__(self):
        return f'<Identity {self.user.name}>'


class AccessController:
    """Resolves tokens through the session registry and applies the policy."""

    def __init__(self, sessions, credentials):
        self.sessions = sessions
        self.credentials = credentials

    def identify(self, token):
        """Return the Identity for ``token``, or None if it no longer resolves."""
        name = self.sessions.resolve(token)
        if name is None:
            return None
        user = self.credentials.find(name)
        if user is None:
            return None
        return Identity(user, token)

    def authorize(self, token, operation, item=None):
        """
        Check ``operation`` for the caller holding ``token``.

        Returns the caller's Identity, or None for an anonymous caller of an
        open operation. For READ_ITEM the ownership rule is only applied once
        ``item`` is given; without it only the session is checked.

        Raises:
            NotAuthenticatedError: the operation needs a session and there is none.
            AuthorizationError: the caller is not party to ``item``.
        """
        identity = self.identify(token)

        if operation in OPEN_OPERATIONS:
            return identity

        if identity is None:
            raise NotAuthenticatedError()

        if operation is Operation.READ_ITEM and item is not None:
            if not item.involves(identity.id):
                raise AuthorizationError('You are not the sender or recipient of this item')

        return identity
