from partygames import db
from partygames.models import Event, Family, Game, Guest, Organizer, QRCode, Question, utcnow


def seed_demo_data() -> Game:
    """Demo organizer, event, invitees and one active quiz."""
    organizer = Organizer(email='organizer@example.com', name='Demo Organizer')
    organizer.set_password('password')
    db.session.add(organizer)
    db.session.flush()

    event = Event(organizer_id=organizer.id, name='Alice & Bob wedding')
    db.session.add(event)
    db.session.flush()

    guests = [
        Guest(event_id=event.id, first_name='Claire', last_name='Martin', qr_code='QR-CLAIRE'),
        Guest(event_id=event.id, first_name='Hugo', last_name='Bernard', qr_code='QR-HUGO'),
    ]
    family = Family(event_id=event.id, name='Dupont', qr_code='QR-DUPONT')
    db.session.add_all(guests + [family])
    db.session.flush()

    for guest in guests:
        db.session.add(QRCode(code=guest.qr_code, event_id=event.id, guest_id=guest.id))
    db.session.add(QRCode(code=family.qr_code, event_id=event.id, family_id=family.id))

    game = Game(
        event_id=event.id,
        name='How well do you know the couple?',
        type='quiz',
        status='active',
        started_at=utcnow(),
        settings={'publicAccess': True},
    )
    db.session.add(game)
    db.session.flush()
    db.session.add_all([
        Question(
            game_id=game.id, sort_order=1, points=10, question_type='multiple_choice',
            question='Where did they meet?',
            options=[{'text': 'Paris', 'isCorrect': True}, {'text': 'Lyon', 'isCorrect': False}],
        ),
        Question(
            game_id=game.id, sort_order=2, points=5, question_type='text',
            question='Which monument did they visit first?', correct_answer='Eiffel Tower',
        ),
        Question(
            game_id=game.id, sort_order=3, points=5, question_type='boolean',
            question='Did Bob propose first?', correct_answer='true',
        ),
    ])
    db.session.commit()
    return game
