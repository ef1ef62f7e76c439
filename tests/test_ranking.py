from datetime import datetime, timedelta
from types import SimpleNamespace

from partygames import db
from partygames.models import Participation
from partygames.services.games.ranking import (
    get_leaderboard, leaderboard_stats, rank_order, recompute_ranks,
)

T0 = datetime(2026, 6, 20, 18, 0, 0)


def _p(pid, score, minutes):
    return SimpleNamespace(id=pid, total_score=score, completed_at=T0 + timedelta(minutes=minutes))


def _participation(game, key, score, minutes, rank=None, completed=True):
    p = Participation(
        game_id=game.id, identity_key=key, player_type='public', player_name=key,
        total_score=score, correct_answers=0, total_answers=0,
        is_completed=completed, completed_at=T0 + timedelta(minutes=minutes), rank=rank,
    )
    db.session.add(p)
    db.session.commit()
    return p


def test_rank_order_sorts_by_score_then_completion():
    ordered = rank_order([_p(1, 10, 5), _p(2, 30, 9), _p(3, 10, 1)])
    assert [p.id for p in ordered] == [2, 3, 1]


def test_rank_order_earlier_completion_wins_tie():
    late, early = _p(1, 20, 2), _p(2, 20, 1)
    assert rank_order([late, early])[0] is early


def test_recompute_ranks_is_contiguous(game):
    for idx, score in enumerate([5, 20, 20, 0, 15]):
        _participation(game, f'token:p{idx}', score, minutes=idx)
    ordered = recompute_ranks(game.id)
    assert [p.rank for p in ordered] == [1, 2, 3, 4, 5]
    assert [p.total_score for p in ordered] == [20, 20, 15, 5, 0]
    # p1 finished before p2 at equal score
    assert ordered[0].identity_key == 'token:p1'
    persisted = Participation.query.filter_by(game_id=game.id).order_by(Participation.rank).all()
    assert [p.rank for p in persisted] == [1, 2, 3, 4, 5]


def test_incomplete_participations_are_not_ranked(game):
    _participation(game, 'token:done', 10, minutes=1)
    pending = _participation(game, 'token:pending', 99, minutes=0, completed=False)
    ordered = recompute_ranks(game.id)
    assert len(ordered) == 1
    assert db.session.get(Participation, pending.id).rank is None


def test_leaderboard_read_heals_stale_ranks(game):
    a = _participation(game, 'token:a', 10, minutes=1, rank=1)
    b = _participation(game, 'token:b', 30, minutes=2, rank=None)
    ordered = get_leaderboard(game.id)
    assert [p.id for p in ordered] == [b.id, a.id]
    assert db.session.get(Participation, b.id).rank == 1
    assert db.session.get(Participation, a.id).rank == 2


def test_leaderboard_limit_and_stats(game):
    for idx, score in enumerate([4, 8, 12]):
        _participation(game, f'token:s{idx}', score, minutes=idx)
    top = get_leaderboard(game.id, limit=2)
    assert [p.total_score for p in top] == [12, 8]
    stats = leaderboard_stats(get_leaderboard(game.id))
    assert stats == {'totalParticipants': 3, 'averageScore': 8, 'highestScore': 12, 'lowestScore': 4}


def test_stats_for_empty_board():
    assert leaderboard_stats([])['averageScore'] == 0
