import pytest
from app import create_app
from models import db, User
from services.records import OwnerContext
from datetime import datetime


@pytest.fixture
def habits_file(tmp_path):
    return tmp_path / 'data' / 'habits.json'


@pytest.fixture
def app(habits_file):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'HABITS_FILE': str(habits_file),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def auth_client(client):
    client.post('/auth/signup', json={'email': 'test@example.com', 'password': 'password'})
    user = User.query.filter_by(email='test@example.com').first()
    return client, user


@pytest.fixture
def owner(auth_client):
    _, user = auth_client
    return OwnerContext(authenticated=True, owner_key=user.id)


def ms(year, month, day, hour=0, minute=0):
    """Epoch-ms of a local wall-clock time."""
    return int(datetime(year, month, day, hour, minute).timestamp() * 1000)
