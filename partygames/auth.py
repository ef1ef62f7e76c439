from functools import wraps

from flask import g, request

from partygames.services.games.access import ensure_not_played, resolve_access


def _credentials():
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        body = {}
    access_token = request.args.get('token') or body.get('accessToken') or request.headers.get('X-Access-Token')
    qr_code = request.args.get('qr') or body.get('qrCode')
    return access_token, qr_code


def guest_required(reject_if_played=False):
    """Resolve the caller's access grant onto `g.guest` or reject the request.

    With `reject_if_played`, a caller whose identity already completed the
    game in the URL is turned away with their previous score.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            access_token, qr_code = _credentials()
            game_id = kwargs.get('game_id')
            g.guest = resolve_access(access_token, qr_code, game_id)
            if reject_if_played and game_id is not None:
                ensure_not_played(game_id, g.guest)
            return view(*args, **kwargs)
        return wrapped
    return decorator


def guest_optional(view):
    """Like guest_required, but anonymous callers get `g.guest = None`.

    Never provisions public grants for unknown tokens.
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        access_token, qr_code = _credentials()
        g.guest = None
        if access_token or qr_code:
            g.guest = resolve_access(access_token, qr_code)
        return view(*args, **kwargs)
    return wrapped
