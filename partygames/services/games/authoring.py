"""Organizer-side game and question authoring.

Games are never deleted, only soft-deactivated. A question that already
has recorded answers is deactivated rather than deleted so past results
keep their question text.
"""

from typing import List

from flask import current_app

from partygames import db
from partygames.models import GAME_TYPES, QUESTION_TYPES, Answer, Game, Question, utcnow
from .errors import InvalidPayload, QuestionNotFound

GAME_CREATE_FIELDS = {'name', 'type', 'description', 'settings', 'questions'}
GAME_UPDATE_FIELDS = {'name', 'description', 'settings'}
QUESTION_FIELDS = {
    'question', 'question_type', 'options', 'correct_answer', 'points',
    'time_limit', 'media_url', 'sort_order',
}


def _require_object(data) -> dict:
    if not isinstance(data, dict):
        raise InvalidPayload('Request body must be a JSON object')
    return data


def _reject_unknown(data, allowed) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise InvalidPayload(f"Unknown field(s): {', '.join(unknown)}")


def _string(data, key, max_len, required=False):
    value = data.get(key)
    if value is None:
        if required:
            raise InvalidPayload(f'{key} is required')
        return None
    if not isinstance(value, str) or (required and not value.strip()):
        raise InvalidPayload(f'{key} must be a non-empty string' if required else f'{key} must be a string')
    if len(value) > max_len:
        raise InvalidPayload(f'{key} must be at most {max_len} characters')
    return value


def _integer(data, key, low=None, high=None):
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPayload(f'{key} must be an integer')
    if (low is not None and value < low) or (high is not None and value > high):
        raise InvalidPayload(f'{key} must be between {low} and {high}')
    return value


def _clean_game(data, partial) -> dict:
    _reject_unknown(data, GAME_UPDATE_FIELDS if partial else GAME_CREATE_FIELDS)
    cleaned = {}
    if not partial or 'name' in data:
        cleaned['name'] = _string(data, 'name', 200, required=True)
    if not partial:
        game_type = data.get('type')
        if game_type not in GAME_TYPES:
            raise InvalidPayload(f"type must be one of: {', '.join(GAME_TYPES)}")
        cleaned['type'] = game_type
    if 'description' in data:
        cleaned['description'] = _string(data, 'description', 1000)
    if 'settings' in data:
        settings = data.get('settings')
        if settings is not None and not isinstance(settings, dict):
            raise InvalidPayload('settings must be an object')
        cleaned['settings'] = settings
    return cleaned


def _clean_question(data, partial) -> dict:
    _require_object(data)
    _reject_unknown(data, QUESTION_FIELDS)
    cleaned = {}
    if not partial or 'question' in data:
        cleaned['question'] = _string(data, 'question', 500, required=True)
    if 'question_type' in data or not partial:
        question_type = data.get('question_type') or 'multiple_choice'
        if question_type not in QUESTION_TYPES:
            raise InvalidPayload(f"question_type must be one of: {', '.join(QUESTION_TYPES)}")
        cleaned['question_type'] = question_type
    if 'options' in data:
        options = data.get('options')
        if options is not None and (
            not isinstance(options, list) or not all(isinstance(opt, dict) for opt in options)
        ):
            raise InvalidPayload('options must be a list of objects')
        cleaned['options'] = options
    if 'correct_answer' in data:
        cleaned['correct_answer'] = _string(data, 'correct_answer', 500)
    if 'points' in data or not partial:
        points = _integer(data, 'points', 1, 100)
        if points is None and partial:
            raise InvalidPayload('points must be an integer')
        cleaned['points'] = points if points is not None else 1
    if 'time_limit' in data:
        cleaned['time_limit'] = _integer(data, 'time_limit', 5, 300)
    if 'media_url' in data:
        cleaned['media_url'] = _string(data, 'media_url', 2000)
    if 'sort_order' in data:
        sort_order = _integer(data, 'sort_order')
        if sort_order is not None:
            cleaned['sort_order'] = sort_order
    return cleaned


def _next_sort_order(game) -> int:
    orders = [q.sort_order for q in game.questions]
    return (max(orders) + 1) if orders else 0


def _clean_questions(items) -> List[dict]:
    if not isinstance(items, list) or not items:
        raise InvalidPayload('At least one question is required')
    return [_clean_question(item, partial=False) for item in items]


def _build_questions(game, cleaned) -> List[Question]:
    start = _next_sort_order(game)
    questions = []
    for offset, fields in enumerate(cleaned):
        fields.setdefault('sort_order', start + offset)
        questions.append(Question(game_id=game.id, is_active=True, **fields))
    return questions


def create_game(event, data) -> Game:
    """Create a game in `event`.

    A game created together with its questions starts active; an empty one
    starts as a draft.
    """
    data = _require_object(data)
    fields = _clean_game(data, partial=False)
    cleaned = _clean_questions(data['questions']) if data.get('questions') is not None else []
    game = Game(event_id=event.id, status='draft', is_active=True, **fields)
    db.session.add(game)
    db.session.flush()
    if cleaned:
        db.session.add_all(_build_questions(game, cleaned))
        game.status = 'active'
        game.started_at = utcnow()
    db.session.commit()
    current_app.logger.info(
        f"[authoring] event={event.id} created game={game.id} status={game.status} "
        f"questions={len(cleaned)}"
    )
    return game


def update_game(game, data) -> Game:
    fields = _clean_game(_require_object(data), partial=True)
    for key, value in fields.items():
        setattr(game, key, value)
    db.session.commit()
    current_app.logger.info(f"[authoring] game={game.id} updated {sorted(fields)}")
    return game


def soft_delete_game(game) -> Game:
    game.is_active = False
    db.session.commit()
    current_app.logger.info(f"[authoring] game={game.id} deactivated")
    return game


def add_questions(game, data) -> List[Question]:
    """Append one question (an object) or several (a list) to a game."""
    items = data if isinstance(data, list) else [_require_object(data)]
    questions = _build_questions(game, _clean_questions(items))
    db.session.add_all(questions)
    db.session.commit()
    current_app.logger.info(f"[authoring] game={game.id} added {len(questions)} question(s)")
    return questions


def get_question(game, question_id) -> Question:
    question = db.session.get(Question, question_id)
    if question is None or question.game_id != game.id or not question.is_active:
        raise QuestionNotFound()
    return question


def update_question(game, question_id, data) -> Question:
    question = get_question(game, question_id)
    fields = _clean_question(data, partial=True)
    for key, value in fields.items():
        setattr(question, key, value)
    db.session.commit()
    current_app.logger.info(f"[authoring] game={game.id} question={question.id} updated {sorted(fields)}")
    return question


def remove_question(game, question_id) -> str:
    """Delete a question, or deactivate it when answers already point at it."""
    question = get_question(game, question_id)
    if Answer.query.filter_by(question_id=question.id).first() is not None:
        question.is_active = False
        outcome = 'deactivated'
    else:
        db.session.delete(question)
        outcome = 'deleted'
    db.session.commit()
    current_app.logger.info(f"[authoring] game={game.id} question={question_id} {outcome}")
    return outcome


def reorder_questions(game, ordered_ids) -> List[Question]:
    if not isinstance(ordered_ids, list) or not all(
        isinstance(qid, int) and not isinstance(qid, bool) for qid in ordered_ids
    ):
        raise InvalidPayload('orderedIds must be a list of question ids')
    by_id = {q.id: q for q in game.active_questions}
    if len(set(ordered_ids)) != len(ordered_ids) or set(ordered_ids) != set(by_id):
        raise InvalidPayload('orderedIds must list every question of the game exactly once')
    for position, qid in enumerate(ordered_ids):
        by_id[qid].sort_order = position
    db.session.commit()
    current_app.logger.info(f"[authoring] game={game.id} reordered {len(ordered_ids)} question(s)")
    return game.active_questions
