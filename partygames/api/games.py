from functools import wraps

from flask import Blueprint, jsonify, request, current_app, g
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from partygames import db, socketio
from partygames.auth import guest_optional, guest_required
from partygames.models import Event, Game, utcnow
from partygames.services.games import authoring
from partygames.services.games.access import ensure_same_event, find_completed_participation, generate_game_access
from partygames.services.games.errors import (
    AccessDenied, EventNotFound, GameAccessError, GameNotFound, InvalidTransition, MalformedSubmission,
    NotPlayedYet,
)
from partygames.services.games.guard import client_origin
from partygames.services.games.play import play_game
from partygames.services.games.ranking import get_leaderboard, leaderboard_stats, public_entry
from partygames.services.games.scoring import normalize_answers
from partygames.services.games.snapshot import ensure_playable, load_game, public_game_view


games = Blueprint('games', __name__)

STATUS_TRANSITIONS = {
    'draft': {'active'},
    'active': {'paused', 'completed'},
    'paused': {'active', 'completed'},
    'completed': set(),
}


@games.errorhandler(GameAccessError)
def handle_game_error(err):
    return jsonify(err.to_dict()), err.status_code


@games.errorhandler(SQLAlchemyError)
def handle_storage_error(err):
    db.session.rollback()
    guest = g.get('guest')
    game_id = (request.view_args or {}).get('game_id')
    current_app.logger.error(
        f"[storage] {request.method} {request.path} game={game_id} "
        f"identity={guest.access_type if guest else None} failed",
        exc_info=err,
    )
    payload = {'error': 'Server error while processing request', 'code': 'STORAGE_FAILURE'}
    if current_app.config.get('EXPOSE_ERROR_DETAILS'):
        payload['detail'] = str(err)
    return jsonify(payload), 500


def _owned_event(event_id) -> Event:
    event = db.session.get(Event, event_id)
    if not event:
        raise EventNotFound()
    if not event.is_owned_by(current_user):
        current_app.logger.warning(f"[idor] organizer={current_user.id} denied event={event_id}")
        raise AccessDenied()
    return event


def _owned_game(game_id) -> Game:
    game = db.session.get(Game, game_id)
    if not game or not game.is_active:
        raise GameNotFound('Game not found')
    if not game.event or not game.event.is_owned_by(current_user):
        current_app.logger.warning(f"[idor] organizer={current_user.id} denied game={game_id}")
        raise AccessDenied()
    return game


def _organizer_view(game) -> dict:
    payload = game.to_dict()
    payload['settings'] = game.settings
    payload['questions'] = [q.to_dict() for q in game.active_questions]
    return payload


def submission_first(view):
    """Validate a play body onto `g.submission` before credentials are resolved.

    Resolving can provision a public grant, so a malformed body must be
    turned away first.
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise MalformedSubmission('Request body must be a JSON object')
        player_name = data.get('playerName')
        if player_name is not None:
            if not isinstance(player_name, str) or len(player_name) > 100:
                raise MalformedSubmission('playerName must be a string of at most 100 characters')
            player_name = player_name.strip() or None
        g.submission = (normalize_answers(data.get('answers')), player_name)
        return view(*args, **kwargs)
    return wrapped


def _leaderboard_limit() -> int:
    cfg = current_app.config
    default = int(cfg.get('LEADERBOARD_LIMIT', 50))
    try:
        limit = int(request.args.get('limit', default))
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, int(cfg.get('LEADERBOARD_MAX_LIMIT', 200))))


# ---- Guest routes ----

@games.route('/public', methods=['GET'])
@guest_required()
def list_public_games():
    """Active games of the caller's event, without answers."""
    event_games = Game.query.filter_by(
        event_id=g.guest.event_id, is_active=True, status='active'
    ).order_by(Game.id).all()
    return jsonify({'games': [public_game_view(game) for game in event_games]})


@games.route('/public/<int:game_id>', methods=['GET'])
@guest_required(reject_if_played=True)
def get_public_game(game_id):
    game = load_game(game_id)
    ensure_same_event(g.guest, game)
    ensure_playable(game)
    payload = public_game_view(game)
    payload['guest'] = {
        'accessType': g.guest.access_type,
        'hasPlayed': g.guest.has_played,
    }
    return jsonify(payload)


@games.route('/public/<int:game_id>/play', methods=['POST'])
@submission_first
@guest_required(reject_if_played=True)
def play_public_game(game_id):
    answers, player_name = g.submission
    game = load_game(game_id)
    result = play_game(
        game,
        g.guest,
        answers,
        player_name=player_name,
        origin=client_origin(request),
        user_agent=request.headers.get('User-Agent'),
    )
    result.pop('participationId', None)
    socketio.emit(
        'leaderboard_update',
        {'game_id': game.id, 'totalParticipants': result['totalParticipants']},
        to=f"leaderboard:{game.id}",
        namespace='/ws',
    )
    return jsonify(result)


@games.route('/public/<int:game_id>/leaderboard', methods=['GET'])
@guest_optional
def get_public_leaderboard(game_id):
    game = load_game(game_id)
    if g.guest is not None:
        ensure_same_event(g.guest, game)
    ordered = get_leaderboard(game.id)
    payload = {
        'gameName': game.name,
        'gameStatus': game.status,
        'totalParticipants': len(ordered),
        'leaderboard': [public_entry(p) for p in ordered[:_leaderboard_limit()]],
    }
    if g.guest is not None:
        mine = next((p for p in ordered if p.identity_key == g.guest.identity_key), None)
        payload['me'] = public_entry(mine) if mine else None
    return jsonify(payload)


@games.route('/public/<int:game_id>/my-result', methods=['GET'])
@guest_required()
def get_my_result(game_id):
    game = load_game(game_id)
    ensure_same_event(g.guest, game)
    get_leaderboard(game.id)
    participation = find_completed_participation(game.id, g.guest)
    if participation is None:
        raise NotPlayedYet()
    answers = [
        {
            'questionId': a.question_id,
            'question': a.question.question if a.question else None,
            'answer': a.answer,
            'isCorrect': a.is_correct,
            'pointsEarned': a.points_earned,
            'points': a.question.points if a.question else None,
        }
        for a in participation.answers
    ]
    return jsonify({
        'score': participation.total_score,
        'rank': participation.rank,
        'correctAnswers': participation.correct_answers,
        'totalAnswers': participation.total_answers,
        'completedAt': participation.completed_at.isoformat() if participation.completed_at else None,
        'answers': answers,
    })


# ---- Organizer routes ----

@games.route('/<int:game_id>/full-leaderboard', methods=['GET'])
@login_required
def get_full_leaderboard(game_id):
    game = _owned_game(game_id)
    ordered = get_leaderboard(game.id)
    entries = []
    for p in ordered:
        entry = p.to_dict()
        entry['identity_key'] = p.identity_key
        entry['access_token'] = p.access_token
        entry['qr_code'] = p.qr_code
        entries.append(entry)
    payload = {'gameName': game.name, 'gameStatus': game.status, 'leaderboard': entries}
    payload.update(leaderboard_stats(ordered))
    return jsonify(payload)


@games.route('/<int:game_id>/generate-access', methods=['POST'])
@login_required
def generate_access(game_id):
    game = _owned_game(game_id)
    tokens = generate_game_access(game)
    current_app.logger.info(f"[access] organizer={current_user.id} game={game.id} issued={len(tokens)}")
    return jsonify({
        'message': f'Generated {len(tokens)} access tokens',
        'tokens': tokens,
    })


@games.route('/<int:game_id>/status', methods=['POST'])
@login_required
def update_game_status(game_id):
    game = _owned_game(game_id)
    data = request.get_json(silent=True) or {}
    new_status = data.get('status')
    if new_status not in STATUS_TRANSITIONS.get(game.status, set()):
        raise InvalidTransition(f'Cannot move game from {game.status} to {new_status}')
    game.status = new_status
    if new_status == 'active' and game.started_at is None:
        game.started_at = utcnow()
    elif new_status == 'completed':
        game.ended_at = utcnow()
    db.session.commit()
    current_app.logger.info(f"[status] game={game.id} -> {new_status}")
    socketio.emit('game_status', {'game_id': game.id, 'status': game.status}, to=f"leaderboard:{game.id}", namespace='/ws')
    return jsonify(game.to_dict())


# ---- Organizer authoring ----

@games.route('/event/<int:event_id>', methods=['GET'])
@login_required
def list_event_games(event_id):
    event = _owned_event(event_id)
    event_games = event.games.filter_by(is_active=True).order_by(Game.created_at.desc(), Game.id.desc()).all()
    return jsonify({'games': [_organizer_view(game) for game in event_games]})


@games.route('/event/<int:event_id>', methods=['POST'])
@login_required
def create_game(event_id):
    event = _owned_event(event_id)
    game = authoring.create_game(event, request.get_json(silent=True))
    return jsonify(_organizer_view(game)), 201


@games.route('/<int:game_id>', methods=['GET'])
@login_required
def get_game(game_id):
    return jsonify(_organizer_view(_owned_game(game_id)))


@games.route('/<int:game_id>', methods=['PUT'])
@login_required
def update_game(game_id):
    game = authoring.update_game(_owned_game(game_id), request.get_json(silent=True))
    return jsonify(_organizer_view(game))


@games.route('/<int:game_id>', methods=['DELETE'])
@login_required
def delete_game(game_id):
    authoring.soft_delete_game(_owned_game(game_id))
    return jsonify({'message': 'Game deleted'})


@games.route('/<int:game_id>/questions', methods=['POST'])
@login_required
def create_questions(game_id):
    questions = authoring.add_questions(_owned_game(game_id), request.get_json(silent=True))
    return jsonify({'questions': [q.to_dict() for q in questions]}), 201


@games.route('/<int:game_id>/questions/<int:question_id>', methods=['PUT'])
@login_required
def update_question(game_id, question_id):
    question = authoring.update_question(_owned_game(game_id), question_id, request.get_json(silent=True))
    return jsonify(question.to_dict())


@games.route('/<int:game_id>/questions/<int:question_id>', methods=['DELETE'])
@login_required
def delete_question(game_id, question_id):
    outcome = authoring.remove_question(_owned_game(game_id), question_id)
    return jsonify({'message': f'Question {outcome}'})


@games.route('/<int:game_id>/questions/reorder', methods=['POST'])
@login_required
def reorder_questions(game_id):
    data = request.get_json(silent=True)
    ordered_ids = data.get('orderedIds') if isinstance(data, dict) else None
    questions = authoring.reorder_questions(_owned_game(game_id), ordered_ids)
    return jsonify({'questions': [q.to_dict() for q in questions]})
