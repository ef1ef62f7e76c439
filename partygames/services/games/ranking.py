from datetime import datetime
from typing import List, Optional

from flask import current_app

from partygames import db
from partygames.models import Participation

_FAR_FUTURE = datetime.max


def rank_order(participations) -> List[Participation]:
    """Leaderboard order: score descending, earlier completion first, then id."""
    return sorted(
        participations,
        key=lambda p: (-(p.total_score or 0), p.completed_at or _FAR_FUTURE, p.id or 0),
    )


def _completed(game_id) -> List[Participation]:
    return Participation.query.filter_by(game_id=game_id, is_completed=True).all()


def _apply_ranks(ordered) -> int:
    changed = 0
    for position, participation in enumerate(ordered, start=1):
        if participation.rank != position:
            participation.rank = position
            changed += 1
    return changed


def recompute_ranks(game_id) -> List[Participation]:
    """Rewrite the rank of every completed participation of a game."""
    ordered = rank_order(_completed(game_id))
    changed = _apply_ranks(ordered)
    db.session.commit()
    current_app.logger.info(f"[rank] game={game_id} participants={len(ordered)} updated={changed}")
    return ordered


def get_leaderboard(game_id, limit: Optional[int] = None) -> List[Participation]:
    """Ordered completed participations, repairing stale ranks on the way."""
    ordered = rank_order(_completed(game_id))
    changed = _apply_ranks(ordered)
    if changed:
        db.session.commit()
        current_app.logger.info(f"[rank] game={game_id} self-healed {changed} stale rank(s)")
    if limit is not None:
        return ordered[:limit]
    return ordered


def leaderboard_stats(ordered) -> dict:
    scores = [p.total_score or 0 for p in ordered]
    return {
        'totalParticipants': len(scores),
        'averageScore': (sum(scores) / len(scores)) if scores else 0,
        'highestScore': max(scores) if scores else 0,
        'lowestScore': min(scores) if scores else 0,
    }


def public_entry(participation) -> dict:
    fallback = 'A family' if participation.player_type == 'family' else 'A guest'
    return {
        'rank': participation.rank,
        'playerName': participation.player_name or fallback,
        'score': participation.total_score,
        'correctAnswers': participation.correct_answers,
        'totalAnswers': participation.total_answers,
        'isTop3': participation.rank is not None and participation.rank <= 3,
    }
