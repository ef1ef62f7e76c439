import os
import sys
import pytest

# Ensure the project root (containing the `partygames` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from partygames import create_app, db, socketio
from partygames.models import (
    Event, Family, FamilyGameAccess, Game, Guest, GuestGameAccess, Organizer, QRCode, Question,
)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    CORS_ORIGINS = ['http://localhost:5173']
    LEADERBOARD_LIMIT = 50
    LEADERBOARD_MAX_LIMIT = 200
    PUBLIC_TOKEN_PROVISIONING = True
    EXPOSE_ERROR_DETAILS = False
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        import partygames.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


def make_organizer(email='owner@example.com', password='password'):
    organizer = Organizer(email=email, name='Owner')
    organizer.set_password(password)
    db.session.add(organizer)
    db.session.commit()
    return organizer


def make_event(organizer, name='Wedding'):
    event = Event(organizer_id=organizer.id, name=name)
    db.session.add(event)
    db.session.commit()
    return event


def make_game(event, status='active', settings=None, **kwargs):
    game = Game(event_id=event.id, name=kwargs.pop('name', 'Couple quiz'), type='quiz',
                status=status, settings=settings, **kwargs)
    db.session.add(game)
    db.session.flush()
    db.session.add_all([
        Question(game_id=game.id, sort_order=1, points=10, question_type='multiple_choice',
                 question='Where did they meet?',
                 options=[{'text': 'Paris', 'isCorrect': True}, {'text': 'Lyon', 'isCorrect': False}]),
        Question(game_id=game.id, sort_order=2, points=5, question_type='text',
                 question='First monument visited?', correct_answer='Eiffel Tower'),
        Question(game_id=game.id, sort_order=3, points=5, question_type='boolean',
                 question='Did Bob propose?', correct_answer='true'),
        Question(game_id=game.id, sort_order=4, points=3, question_type='photo',
                 question='Send a selfie with the bride'),
    ])
    db.session.commit()
    return game


def make_guest_grant(game, first_name='Claire', token=None):
    guest = Guest(event_id=game.event_id, first_name=first_name, qr_code=f'QR-{first_name.upper()}')
    db.session.add(guest)
    db.session.flush()
    grant = GuestGameAccess(game_id=game.id, guest_id=guest.id, qr_code=guest.qr_code,
                            access_token=token or f'token-{first_name.lower()}-{game.id}')
    db.session.add(grant)
    db.session.commit()
    return grant


def make_family_grant(game, name='Dupont', token=None):
    family = Family(event_id=game.event_id, name=name, qr_code=f'QR-FAM-{name.upper()}')
    db.session.add(family)
    db.session.flush()
    grant = FamilyGameAccess(game_id=game.id, family_id=family.id, qr_code=family.qr_code,
                             access_token=token or f'family-{name.lower()}-{game.id}')
    db.session.add(grant)
    db.session.commit()
    return grant


def make_qr(event, guest=None, family=None, code='QR-INVITE', **kwargs):
    qr = QRCode(code=code, event_id=event.id,
                guest_id=guest.id if guest else None,
                family_id=family.id if family else None, **kwargs)
    db.session.add(qr)
    db.session.commit()
    return qr


def answers_for(game, mc='Paris', text='Eiffel Tower', boolean='true'):
    by_type = {q.question_type: q for q in game.questions}
    return [
        {'questionId': by_type['multiple_choice'].id, 'answer': mc},
        {'questionId': by_type['text'].id, 'answer': text},
        {'questionId': by_type['boolean'].id, 'answer': boolean},
    ]


@pytest.fixture()
def organizer(flask_app):
    return make_organizer()


@pytest.fixture()
def event(organizer):
    return make_event(organizer)


@pytest.fixture()
def game(event):
    return make_game(event)
