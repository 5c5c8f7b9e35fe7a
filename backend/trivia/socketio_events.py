from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from trivia.services.games.codes import normalize_room_code
from trivia.services.games.errors import GameError
from trivia.services.games.orchestrator import room_name


def _orchestrator():
    return current_app.extensions['trivia']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _report(exc: GameError) -> None:
    emit('error', exc.to_dict())


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    _orchestrator().disconnect(_get_sid())


def handle_create_room(data=None):
    try:
        code = _orchestrator().create_room(_get_sid(), _payload(data))
    except GameError as exc:
        _report(exc)
        return
    join_room(room_name(code))


def handle_join_room(data=None):
    data = _payload(data)
    sid = _get_sid()
    orchestrator = _orchestrator()
    room = room_name(normalize_room_code(data.get('code')))
    with orchestrator.store.lock:
        # Subscribe before joining so the roster broadcast reaches the new player too
        subscribe = orchestrator.store.find_by_participant(sid) is None
        if subscribe:
            join_room(room)
        try:
            orchestrator.join_room(sid, data.get('code'), data.get('nickname'), data.get('avatar'))
        except GameError as exc:
            if subscribe:
                leave_room(room)
            _report(exc)


def handle_start_room(data=None):
    try:
        _orchestrator().start_room(_get_sid())
    except GameError as exc:
        _report(exc)


def handle_advance_question(data=None):
    try:
        _orchestrator().advance_question(_get_sid())
    except GameError as exc:
        _report(exc)


def handle_submit_answer(data=None):
    try:
        _orchestrator().submit_answer(_get_sid(), _payload(data).get('answer'))
    except GameError as exc:
        _report(exc)


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'create_room': handle_create_room,
    'join_room': handle_join_room,
    'start_room': handle_start_room,
    'advance_question': handle_advance_question,
    'submit_answer': handle_submit_answer,
}


def register_socketio_handlers(socketio, testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
