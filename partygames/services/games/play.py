from flask import current_app

from .access import ensure_same_event
from .guard import check_play_allowed
from .ranking import recompute_ranks
from .recorder import mark_grant_played, record_participation, record_play_origin
from .scoring import score_submission
from .snapshot import ensure_playable


def play_game(game, grant, answers, player_name=None, origin='unknown', user_agent=None) -> dict:
    """Run one play submission end to end and return the result summary.

    `answers` is the output of `normalize_answers`. The event is checked
    before the game status so a foreign grant learns nothing about the game.
    """
    ensure_same_event(grant, game)
    ensure_playable(game)
    check_play_allowed(game, grant, origin)

    result = score_submission(game.active_questions, answers)

    participation = record_participation(game, grant, result, player_name)
    current_app.logger.info(
        f"[play] game={game.id} participation={participation.id} type={grant.access_type} "
        f"score={result.total_score} correct={result.correct_answers}/{result.total_answers}"
    )

    mark_grant_played(grant, result.total_score)
    record_play_origin(game.id, origin, participation.id, user_agent)

    ordered = recompute_ranks(game.id)
    rank = next((p.rank for p in ordered if p.id == participation.id), None)
    return {
        'participationId': participation.id,
        'score': result.total_score,
        'correctAnswers': result.correct_answers,
        'totalQuestions': game.total_questions,
        'rank': rank,
        'totalParticipants': len(ordered),
    }
