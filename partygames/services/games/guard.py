from flask import current_app

from partygames.models import PlayOriginRecord
from .access import find_completed_participation
from .errors import AlreadyPlayed, AlreadyPlayedByOrigin


def client_origin(req) -> str:
    """Best guess at the caller's network address.

    First hop of X-Forwarded-For, then X-Real-IP, then the socket peer.
    Never fails: an unknown origin is the literal 'unknown'.
    """
    forwarded = req.headers.get('X-Forwarded-For', '')
    first_hop = forwarded.split(',')[0].strip() if forwarded else ''
    if first_hop:
        return first_hop
    real_ip = (req.headers.get('X-Real-IP') or '').strip()
    if real_ip:
        return real_ip
    return req.remote_addr or 'unknown'


def check_play_allowed(game, grant, origin: str) -> None:
    """Reject a play before anything is written.

    Checked in order: the network origin, then the identity. Neither check
    is atomic with the insert that follows; the recorder's unique
    constraint is what settles a true race.
    """
    seen = PlayOriginRecord.query.filter_by(game_id=game.id, ip_address=origin).first()
    if seen is not None:
        current_app.logger.info(f"[guard] game={game.id} origin={origin} already played")
        raise AlreadyPlayedByOrigin()

    previous = find_completed_participation(game.id, grant)
    if previous is not None:
        current_app.logger.info(f"[guard] game={game.id} identity={grant.access_type} already played")
        raise AlreadyPlayed(previous)
