from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from partygames import db
from partygames.models import Answer, Participation, PlayOriginRecord, utcnow
from .access import find_completed_participation
from .errors import AlreadyPlayed


def _as_text(answer) -> str:
    if isinstance(answer, bool):
        return 'true' if answer else 'false'
    return answer


def record_participation(game, grant, result, player_name, completed_at=None) -> Participation:
    """Persist a graded attempt and its answers in a single commit.

    The (game, identity) unique constraint is the authoritative
    already-played signal: losing that race surfaces as AlreadyPlayed with
    the winner's participation.
    """
    now = completed_at or utcnow()
    participation = Participation(
        game_id=game.id,
        guest_id=grant.guest_id if grant.access_type == 'individual' else None,
        family_id=grant.family_id if grant.access_type == 'family' else None,
        access_token=grant.access_token,
        qr_code=grant.qr_code,
        identity_key=grant.identity_key,
        player_name=player_name or grant.default_player_name,
        player_type=grant.access_type,
        total_score=result.total_score,
        correct_answers=result.correct_answers,
        total_answers=result.total_answers,
        is_completed=True,
        started_at=now,
        completed_at=now,
    )
    for graded in result.graded:
        participation.answers.append(Answer(
            question_id=graded.question_id,
            answer=_as_text(graded.answer),
            is_correct=graded.is_correct,
            points_earned=graded.points_earned,
            time_spent=graded.time_spent,
            answered_at=now,
        ))
    try:
        db.session.add(participation)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        previous = find_completed_participation(game.id, grant)
        if previous is None:
            raise
        current_app.logger.info(f"[play] game={game.id} identity={grant.access_type} lost insert race")
        raise AlreadyPlayed(previous)
    return participation


def mark_grant_played(grant, score) -> None:
    """Update the denormalized has_played/score on the grant row, best effort."""
    row = grant.record
    if row is None:
        return
    try:
        row.has_played = True
        row.played_at = utcnow()
        row.score = score
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[play] could not update grant {row.id}: {exc}")


def record_play_origin(game_id, origin, participation_id, user_agent=None) -> None:
    """Remember that this network origin has played; failures are only logged."""
    try:
        db.session.add(PlayOriginRecord(
            game_id=game_id,
            ip_address=origin[:64],
            participation_id=participation_id,
            user_agent=(user_agent or '')[:512] or None,
        ))
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[play] could not record origin for game={game_id}: {exc}")
