from flask_socketio import join_room, leave_room, emit
from flask import current_app
from partygames import socketio, db
from partygames.models import Game
from partygames.services.games.ranking import get_leaderboard, public_entry


def _room(game_id) -> str:
    return f"leaderboard:{game_id}"


def _game_id(data):
    try:
        return int((data or {}).get('game_id'))
    except (TypeError, ValueError):
        return None


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_leaderboard(data):
    """Subscribe a live screen to a game's leaderboard and send the current board."""
    game_id = _game_id(data)
    if game_id is None:
        emit('error', {'message': 'game_id is required'})
        return
    game = db.session.get(Game, game_id)
    if not game or not game.is_active:
        emit('error', {'message': 'Game not found'})
        return
    room = _room(game.id)
    join_room(room)
    limit = int(current_app.config.get('LEADERBOARD_LIMIT', 50))
    ordered = get_leaderboard(game.id)
    emit('joined', {
        'room': room,
        'gameStatus': game.status,
        'totalParticipants': len(ordered),
        'leaderboard': [public_entry(p) for p in ordered[:limit]],
    })


def handle_leave_leaderboard(data):
    game_id = _game_id(data)
    if game_id is None:
        emit('error', {'message': 'game_id is required'})
        return
    room = _room(game_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace='/ws')
    socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace='/')
        socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
