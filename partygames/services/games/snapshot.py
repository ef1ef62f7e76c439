from partygames import db
from partygames.models import Game
from .errors import GameNotFound, GameNotPlayable


def load_game(game_id) -> Game:
    """Fetch a game that exists and has not been soft-deactivated."""
    game = db.session.get(Game, game_id)
    if not game or not game.is_active:
        raise GameNotFound()
    return game


def ensure_playable(game) -> Game:
    if game.status != 'active':
        raise GameNotPlayable(game.status)
    return game


def redact_question(question) -> dict:
    """Player-safe view of a question: no correctness flags, no canonical answer."""
    options = None
    if question.options is not None:
        options = [{'text': opt.get('text')} for opt in question.options if isinstance(opt, dict)]
    return {
        'id': question.id,
        'question': question.question,
        'question_type': question.question_type,
        'options': options,
        'points': question.points,
        'sort_order': question.sort_order,
        'media_url': question.media_url,
        'time_limit': question.time_limit,
    }


def public_game_view(game, include_questions=True) -> dict:
    payload = {
        'id': game.id,
        'name': game.name,
        'type': game.type,
        'status': game.status,
        'description': game.description,
        'total_questions': game.total_questions,
    }
    if include_questions:
        payload['questions'] = [redact_question(q) for q in game.active_questions]
    return payload
