import pytest

from app import create_app
from models import db
from services import get_services


@pytest.fixture
def app(tmp_path):
    """Fresh application with an in-memory database and a temporary upload folder."""
    app = create_app('testing', UPLOAD_FOLDER=str(tmp_path / 'uploads'))
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def services(app, ctx):
    return get_services()


@pytest.fixture
def upload_dir(app):
    return app.config['UPLOAD_FOLDER']


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(app):
    """Return a helper that logs a user in on a new test client."""
    def _login(name, password='secret'):
        client = app.test_client()
        response = client.post('/login', data={'username': name, 'password': password})
        assert response.status_code == 200, response.get_json()
        return client
    return _login


