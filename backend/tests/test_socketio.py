from trivia import socketio


def _events(client, name):
    return [pkt['args'][0] if pkt['args'] else None
            for pkt in client.get_received('/ws') if pkt['name'] == name]


def _received(client):
    return client.get_received('/ws')


def _connect(flask_app):
    c = socketio.test_client(flask_app, namespace='/ws')
    assert c.is_connected('/ws')
    return c


def _create_room(host, settings=None):
    _received(host)  # flush 'connected'
    host.emit('create_room', settings or {}, namespace='/ws')
    created = [p for p in _received(host) if p['name'] == 'room_created']
    assert created
    return created[0]['args'][0]['code']


def test_socket_connect(sio_client):
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)


def test_join_unknown_room_reports_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_room', {'code': 'ZZZZ', 'nickname': 'Alice'}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['kind'] == 'not_found'


def test_join_requires_nickname(flask_app, sio_client):
    host = _connect(flask_app)
    code = _create_room(host)
    sio_client.get_received('/ws')
    sio_client.emit('join_room', {'code': code}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['kind'] == 'validation'


def test_full_game_over_sockets(seeded):
    host = _connect(seeded)
    player = _connect(seeded)
    code = _create_room(host, {'question_count': 1, 'time_per_question': 10})

    _received(player)
    player.emit('join_room', {'code': code, 'nickname': 'Alice', 'avatar': 'bat'}, namespace='/ws')
    got = {p['name']: p['args'][0] for p in _received(player)}
    assert got['joined']['code'] == code
    assert got['player_joined']['player_count'] == 1
    assert any(p['name'] == 'player_joined' for p in _received(host))

    host.emit('start_room', namespace='/ws')
    host_events = {p['name']: p['args'][0] for p in _received(host)}
    assert host_events['room_started'] == {'total_questions': 1, 'player_count': 1}
    host_question = host_events['question']
    assert host_question['correct_option'] in ('A', 'B', 'C', 'D')

    player_events = {p['name']: p['args'][0] for p in _received(player)}
    assert 'correct_option' not in player_events['question']
    assert player_events['question']['question'] == host_question['question']

    player.emit('submit_answer', {'answer': host_question['correct_option']}, namespace='/ws')
    host_events = {p['name']: p['args'][0] for p in _received(host)}
    assert host_events['answer_progress'] == {'answered_count': 1, 'total_players': 1}
    assert host_events['question_results']['results'][0]['nickname'] == 'Alice'

    result = _events(player, 'answer_result')[0]
    assert result['correct'] is True
    assert result['rank'] == 1
    assert result['points_earned'] >= 1000

    host.emit('advance_question', namespace='/ws')
    over = _events(player, 'room_over')[0]
    assert over['standings'][0]['nickname'] == 'Alice'
    assert over['standings'][0]['rank'] == 1
    assert code not in seeded.extensions['trivia'].store

    player.disconnect(namespace='/ws')
    host.disconnect(namespace='/ws')


def test_start_with_empty_question_bank_reports_error(flask_app):
    host = _connect(flask_app)
    player = _connect(flask_app)
    code = _create_room(host)
    player.emit('join_room', {'code': code, 'nickname': 'Alice'}, namespace='/ws')
    _received(host)

    host.emit('start_room', namespace='/ws')
    errors = _events(host, 'error')
    assert errors and 'No questions available' in errors[0]['message']
    assert flask_app.extensions['trivia'].store.get_session(code).state.value == 'lobby'


def test_host_disconnect_ends_session(flask_app, sio_client):
    host = _connect(flask_app)
    code = _create_room(host)

    sio_client.emit('join_room', {'code': code, 'nickname': 'Bob'}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    host.disconnect(namespace='/ws')
    assert _events(sio_client, 'host_disconnected') == [{'code': code}]
    assert code not in flask_app.extensions['trivia'].store


def test_join_with_malformed_payload_reports_validation_error(flask_app, sio_client):
    host = _connect(flask_app)
    code = _create_room(host)
    sio_client.get_received('/ws')

    sio_client.emit('join_room', {'code': 1234, 'nickname': 'Alice'}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['kind'] == 'validation'

    sio_client.emit('join_room', code, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['kind'] == 'validation'

    sio_client.emit('submit_answer', 'A', namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['kind'] == 'validation'
    assert flask_app.extensions['trivia'].store.get_session(code).players == {}


def test_join_looks_up_participants_under_store_lock(flask_app, sio_client, monkeypatch):
    host = _connect(flask_app)
    code = _create_room(host)
    store = flask_app.extensions['trivia'].store
    lookup = store.find_by_participant
    held = []

    def recording_lookup(connection_id):
        held.append(store.lock._is_owned())
        return lookup(connection_id)

    monkeypatch.setattr(store, 'find_by_participant', recording_lookup)
    sio_client.emit('join_room', {'code': code, 'nickname': 'Alice'}, namespace='/ws')
    assert _events(sio_client, 'joined')
    assert held and all(held)
