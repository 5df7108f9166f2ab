from flask import current_app, request
from flask_socketio import join_room, leave_room, emit
from songquiz import socketio
from songquiz.errors import RoomUnavailable

DEFAULT_PLAYER_NAME = 'Player'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _registry():
    return current_app.extensions['songquiz']


def _leave_current_room(sid: str) -> None:
    registry = _registry()
    room_id = registry.unbind_session(sid)
    if not room_id:
        return
    leave_room(room_id)
    room = registry.get(room_id)
    if room:
        room.leave(sid)


def make_emitter(namespace: str = '/'):
    """Outbound channel for rooms: ``to`` is a room code or a single sid.

    Uses ``socketio.emit`` so timer callbacks running as background tasks
    (outside any request context) can broadcast too.
    """
    def _emit(event, data=None, to=None):
        if data is None:
            socketio.emit(event, to=to, namespace=namespace)
        else:
            socketio.emit(event, data, to=to, namespace=namespace)
    return _emit


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    registry = _registry()
    room = registry.get(registry.unbind_session(sid))
    if room:
        room.leave(sid)


def handle_create_room(data=None):
    data = data or {}
    sid = _get_sid()
    _leave_current_room(sid)
    room = _registry().create(sid, data.get('playerName') or DEFAULT_PLAYER_NAME, data.get('totalRounds'))
    join_room(room.id)
    _registry().bind_session(sid, room.id)
    emit('room_created', room.snapshot())


def handle_join_room(data=None):
    data = data or {}
    sid = _get_sid()
    room_id = data.get('roomId')
    room = _registry().get(room_id)
    if not room:
        current_app.logger.info(f"[join-rejected] sid={sid} room={room_id} not found")
        emit('error', RoomUnavailable(room_id).to_dict())
        return
    already_member = _registry().session_room(sid) == room.id
    if not already_member:
        _leave_current_room(sid)
    # Subscribe first so the joiner also receives the player_joined broadcast
    join_room(room.id)
    try:
        room.join(sid, data.get('playerName') or DEFAULT_PLAYER_NAME)
    except RoomUnavailable as exc:
        if not already_member:
            leave_room(room.id)
        current_app.logger.info(f"[join-rejected] sid={sid} room={room.id} state={room.room.state}")
        emit('error', exc.to_dict())
        return
    _registry().bind_session(sid, room.id)
    emit('room_joined', room.snapshot())


def handle_start_game(data=None):
    data = data or {}
    room = _registry().get(data.get('roomId'))
    if not room:
        return
    room.start(
        rounds=data.get('rounds'),
        genre=data.get('genre'),
        genres=data.get('genres'),
        decade=data.get('decade'),
        language=data.get('language'),
        difficulty=data.get('difficulty'),
    )


def handle_submit_guess(data=None):
    data = data or {}
    room = _registry().get(data.get('roomId'))
    if not room:
        return
    room.submit_guess(_get_sid(), data.get('guess'))


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create_room', handle_create_room, namespace=namespace)
    socketio.on_event('join_room', handle_join_room, namespace=namespace)
    socketio.on_event('start_game', handle_start_game, namespace=namespace)
    socketio.on_event('submit_guess', handle_submit_guess, namespace=namespace)
