from partygames import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone

GAME_TYPES = ('quiz', 'puzzle', 'shoe_game', 'photo_scavenger', 'blind_test', 'twelve_months', 'memory', 'trivia')
GAME_STATUSES = ('draft', 'active', 'paused', 'completed')
QUESTION_TYPES = ('multiple_choice', 'text', 'photo', 'boolean', 'ordering')
PLAYER_TYPES = ('individual', 'family', 'public')


def utcnow():
    """Naive UTC timestamp, comparable with values read back from any backend."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class Organizer(UserMixin, db.Model):
    __tablename__ = 'organizer'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    events = db.relationship('Event', back_populates='organizer')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
        }


class Event(db.Model):
    __tablename__ = 'event'
    id = db.Column(db.Integer, primary_key=True)
    organizer_id = db.Column(db.Integer, db.ForeignKey('organizer.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    organizer = db.relationship('Organizer', back_populates='events')
    guests = db.relationship('Guest', backref='event', lazy='dynamic')
    families = db.relationship('Family', backref='event', lazy='dynamic')
    games = db.relationship('Game', backref='event', lazy='dynamic')

    def is_owned_by(self, organizer):
        return organizer is not None and getattr(organizer, 'id', None) == self.organizer_id


class Guest(db.Model):
    __tablename__ = 'guest'
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=True)
    qr_code = db.Column(db.String(120), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    @property
    def full_name(self):
        return ' '.join(part for part in (self.first_name, self.last_name) if part)


class Family(db.Model):
    __tablename__ = 'family'
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    qr_code = db.Column(db.String(120), nullable=True)


class QRCode(db.Model):
    """Invitation QR code pointing at a guest or a family of one event."""
    __tablename__ = 'qr_code'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(120), unique=True, nullable=False, index=True)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False)
    guest_id = db.Column(db.Integer, db.ForeignKey('guest.id'), nullable=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id'), nullable=True)
    is_valid = db.Column(db.Boolean, default=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=True)
    scan_count = db.Column(db.Integer, default=0, nullable=False)

    def is_usable(self, now=None):
        if not self.is_valid:
            return False
        if self.expires_at is not None and self.expires_at < (now or utcnow()):
            return False
        return True


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(50), nullable=False, default='quiz')
    status = db.Column(db.String(20), nullable=False, default='draft')  # draft, active, paused, completed
    description = db.Column(db.Text, nullable=True)
    settings = db.Column(db.JSON, nullable=True)  # accessCode (legacy shared token), publicAccess
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    started_at = db.Column(db.DateTime, nullable=True)
    ended_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    questions = db.relationship(
        'Question', backref='game',
        order_by=lambda: [Question.sort_order, Question.id],
    )

    __table_args__ = (
        db.CheckConstraint(f"type IN {GAME_TYPES!r}", name='ck_game_type'),
        db.CheckConstraint(f"status IN {GAME_STATUSES!r}", name='ck_game_status'),
    )

    @property
    def active_questions(self):
        return [q for q in self.questions if q.is_active]

    @property
    def total_questions(self):
        return len(self.active_questions)

    def setting(self, key, default=None):
        return (self.settings or {}).get(key, default)

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'name': self.name,
            'type': self.type,
            'status': self.status,
            'description': self.description,
            'is_active': self.is_active,
            'total_questions': self.total_questions,
            'started_at': _iso(self.started_at),
            'ended_at': _iso(self.ended_at),
        }


class Question(db.Model):
    __tablename__ = 'game_question'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    question = db.Column(db.Text, nullable=False)
    question_type = db.Column(db.String(50), nullable=False, default='multiple_choice')
    options = db.Column(db.JSON, nullable=True)  # [{"text": ..., "isCorrect": bool}]
    correct_answer = db.Column(db.Text, nullable=True)
    points = db.Column(db.Integer, nullable=False, default=1)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    media_url = db.Column(db.Text, nullable=True)
    time_limit = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'question': self.question,
            'question_type': self.question_type,
            'options': self.options,
            'correct_answer': self.correct_answer,
            'points': self.points,
            'sort_order': self.sort_order,
            'media_url': self.media_url,
            'time_limit': self.time_limit,
            'is_active': self.is_active,
        }


class GuestGameAccess(db.Model):
    """Access grant for an individual guest, or a public player when is_public."""
    __tablename__ = 'game_guest_access'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    guest_id = db.Column(db.Integer, db.ForeignKey('guest.id'), nullable=True)
    qr_code = db.Column(db.String(120), nullable=True)
    access_token = db.Column(db.String(128), unique=True, nullable=False, index=True)
    is_public = db.Column(db.Boolean, default=False, nullable=False)
    has_played = db.Column(db.Boolean, default=False, nullable=False)
    played_at = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    game = db.relationship('Game')


class FamilyGameAccess(db.Model):
    __tablename__ = 'game_family_access'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id'), nullable=False)
    qr_code = db.Column(db.String(120), nullable=True)
    access_token = db.Column(db.String(128), unique=True, nullable=False, index=True)
    has_played = db.Column(db.Boolean, default=False, nullable=False)
    played_at = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    game = db.relationship('Game')


class Participation(db.Model):
    __tablename__ = 'game_participation'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    guest_id = db.Column(db.Integer, db.ForeignKey('guest.id'), nullable=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id'), nullable=True)
    access_token = db.Column(db.String(128), nullable=True)
    qr_code = db.Column(db.String(120), nullable=True)
    # guest:<id>, family:<id> or token:<access token>
    identity_key = db.Column(db.String(160), nullable=False)
    player_name = db.Column(db.String(100), nullable=True)
    player_type = db.Column(db.String(20), nullable=False)
    total_score = db.Column(db.Integer, nullable=False, default=0)
    correct_answers = db.Column(db.Integer, nullable=False, default=0)
    total_answers = db.Column(db.Integer, nullable=False, default=0)
    is_completed = db.Column(db.Boolean, default=False, nullable=False)
    started_at = db.Column(db.DateTime, default=utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)
    rank = db.Column(db.Integer, nullable=True)
    answers = db.relationship('Answer', backref='participation', order_by='Answer.id')

    __table_args__ = (
        db.UniqueConstraint('game_id', 'identity_key', name='uq_participation_game_identity'),
        db.Index('ix_participation_game_completed_rank', 'game_id', 'is_completed', 'rank'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'guest_id': self.guest_id,
            'family_id': self.family_id,
            'player_name': self.player_name,
            'player_type': self.player_type,
            'total_score': self.total_score,
            'correct_answers': self.correct_answers,
            'total_answers': self.total_answers,
            'is_completed': self.is_completed,
            'completed_at': _iso(self.completed_at),
            'rank': self.rank,
        }


class Answer(db.Model):
    __tablename__ = 'game_answer'
    id = db.Column(db.Integer, primary_key=True)
    participation_id = db.Column(db.Integer, db.ForeignKey('game_participation.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('game_question.id'), nullable=False)
    answer = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    points_earned = db.Column(db.Integer, default=0, nullable=False)
    time_spent = db.Column(db.Integer, nullable=True)
    answered_at = db.Column(db.DateTime, default=utcnow)
    question = db.relationship('Question')

    __table_args__ = (
        db.UniqueConstraint('participation_id', 'question_id', name='uq_answer_participation_question'),
    )


class PlayOriginRecord(db.Model):
    """One row per (game, network origin) that has already played."""
    __tablename__ = 'game_ip_tracking'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False)
    ip_address = db.Column(db.String(64), nullable=False)
    user_agent = db.Column(db.String(512), nullable=True)
    participation_id = db.Column(db.Integer, db.ForeignKey('game_participation.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    participation = db.relationship('Participation')

    __table_args__ = (
        db.UniqueConstraint('game_id', 'ip_address', name='uq_ip_tracking_game_ip'),
    )
