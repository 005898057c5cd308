"""User records and password verification."""

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.user import User
from services.errors import (
    DuplicateNameError, InvalidCredentialsError, InvalidRequestError,
    NotFoundError, StorageFault
)


logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class CredentialStore:
    """Creates users and checks their passwords against bcrypt hashes."""

    def __init__(self, db, rounds=12):
        self.db = db
        self.rounds = rounds

    def find(self, name):
        """Return the user called ``name``, or None."""
        if not name:
            return None
        return User.query.filter_by(name=name).first()

    def get(self, user_id):
        return self.db.session.get(User, user_id)

    def register(self, name: str, password: str) -> User:
        """
        Persist a new user with a salted bcrypt hash of ``password``.

        Raises:
            DuplicateNameError: the name is taken, including when a concurrent
                registration wins the race to commit.
        """
        if self.find(name) is not None:
            raise DuplicateNameError(details={'name': name})

        user = User(name=name, password_hash=self._hash(password))
        self.db.session.add(user)
        try:
            self.db.session.commit()
        except IntegrityError:
            self.db.session.rollback()
            raise DuplicateNameError(details={'name': name})
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            logger.exception('Could not persist user %s', name)
            raise StorageFault() from exc

        logger.info('Registered user %s (id=%s)', user.name, user.id)
        return user

    def verify(self, name: str, password: str) -> User:
        """
        Return the user if ``password`` matches the stored hash.

        Raises:
            NotFoundError: no user is called ``name``.
            InvalidCredentialsError: the password does not match.
        """
        user = self.find(name)
        if user is None:
            raise NotFoundError(f'No user named {name!r}')

        if not self._check(password, user.password_hash):
            logger.info('Password mismatch for user %s', name)
            raise InvalidCredentialsError()
        return user

    def _hash(self, password):
        encoded = password.encode('utf-8')
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidRequestError(
                f'Password must be at most {MAX_PASSWORD_BYTES} bytes'
            )
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode('utf-8')

    @staticmethod
    def _check(password, password_hash):
        encoded = password.encode('utf-8')
        # Such a password could never have been registered
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        # checkpw re-derives with the salt and cost embedded in the hash
        return bcrypt.checkpw(encoded, password_hash.encode('utf-8'))
