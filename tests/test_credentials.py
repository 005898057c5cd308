"""Unit tests for CredentialStore."""

import pytest

from models import User
from services.errors import (
    DuplicateNameError, InvalidCredentialsError, InvalidRequestError, NotFoundError
)


class TestCredentialStore:

    def test_register_persists_hashed_password(self, services):
        user = services.credentials.register('alice', 'p1')

        assert user.id is not None
        assert user.name == 'alice'
        assert user.password_hash != 'p1'
        assert user.password_hash.startswith('$2')
        assert User.query.filter_by(name='alice').one() is user

    def test_register_then_verify_same_password(self, services):
        registered = services.credentials.register('alice', 'p1')

        assert services.credentials.verify('alice', 'p1') is registered

    @pytest.mark.parametrize('attempt', ['wrong', 'P1', 'p1 ', ''])
    def test_verify_other_password_fails(self, services, attempt):
        services.credentials.register('alice', 'p1')

        with pytest.raises(InvalidCredentialsError):
            services.credentials.verify('alice', attempt)

    @pytest.mark.parametrize('name', ['bob', 'Alice', 'alice2'])
    def test_verify_unknown_name_is_not_found(self, services, name):
        services.credentials.register('alice', 'p1')

        with pytest.raises(NotFoundError):
            services.credentials.verify(name, 'p1')

    def test_register_duplicate_name(self, services):
        services.credentials.register('alice', 'p1')

        with pytest.raises(DuplicateNameError):
            services.credentials.register('alice', 'other')
        assert User.query.count() == 1

    def test_register_race_translated_from_integrity_error(self, services, monkeypatch):
        """A concurrent insert slipping past the pre-check hits the unique constraint."""
        services.credentials.register('alice', 'p1')
        monkeypatch.setattr(services.credentials, 'find', lambda name: None)

        with pytest.raises(DuplicateNameError):
            services.credentials.register('alice', 'p2')

        monkeypatch.undo()
        assert services.credentials.register('bob', 'p3').name == 'bob'

    def test_same_password_is_salted_per_user(self, services):
        a = services.credentials.register('alice', 'shared')
        b = services.credentials.register('bob', 'shared')

        assert a.password_hash != b.password_hash

    def test_password_longer_than_bcrypt_limit(self, services):
        with pytest.raises(InvalidRequestError):
            services.credentials.register('alice', 'x' * 73)

        services.credentials.register('bob', 'x' * 72)
        with pytest.raises(InvalidCredentialsError):
            services.credentials.verify('bob', 'x' * 73)

    def test_find_and_get(self, services):
        user = services.credentials.register('alice', 'p1')

        assert services.credentials.find('alice') is user
        assert services.credentials.find('nobody') is None
        assert services.credentials.find('') is None
        assert services.credentials.get(user.id) is user
        assert services.credentials.get(999) is None
