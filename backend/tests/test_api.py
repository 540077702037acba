def _create_room(client, token='host-token', name='Hana'):
    res = client.post('/api/rooms', json={'host_token': token, 'name': name})
    assert res.status_code == 201
    return res.get_json()


def _join(client, code, token, name):
    return client.post('/api/rooms/join', json={'join_code': code, 'player_token': token, 'name': name})


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_create_room(client):
    data = _create_room(client)
    assert 'room_id' in data
    code = data['join_code']
    assert len(code) == 6
    assert code == code.upper() and code.isalnum()

    room = client.get(f"/api/rooms/{data['room_id']}").get_json()
    assert room['status'] == 'waiting'
    assert room['current_round'] == 0
    assert room['max_rounds'] == 6
    assert room['host_id'] == 'host-token'
    assert [p['player_id'] for p in room['players']] == ['host-token']


def test_create_room_requires_fields(client):
    res = client.post('/api/rooms', json={'host_token': 'h'})
    assert res.status_code == 400
    assert res.get_json()['kind'] == 'InvalidArgument'


def test_player_token_flow(client):
    token = client.post('/api/players', json={'name': 'Ada'}).get_json()['player_token']
    assert token
    # Known token keeps identity and syncs the name
    again = client.post('/api/players', json={'player_token': token, 'name': 'Ada L.'}).get_json()
    assert again['player_token'] == token
    player = client.get(f'/api/players/{token}').get_json()
    assert player['name'] == 'Ada L.'
    assert player['current_room_id'] is None

    renamed = client.put(f'/api/players/{token}', json={'name': 'Countess'}).get_json()
    assert renamed['name'] == 'Countess'
    assert client.get('/api/players/nope').status_code == 404


def test_join_unknown_code(client):
    res = _join(client, 'ZZZZZZ', 'p1', 'Pat')
    assert res.status_code == 404
    assert res.get_json()['kind'] == 'NotFound'


def test_join_rejects_non_string_code(client):
    _create_room(client)
    res = _join(client, 123456, 'p1', 'Pat')
    assert res.status_code == 400
    body = res.get_json()
    assert body['kind'] == 'InvalidArgument'
    assert 'join_code' in body['error']


def test_join_is_case_insensitive_and_idempotent(client):
    room = _create_room(client)
    res = _join(client, room['join_code'].lower(), 'p1', 'Pat')
    assert res.status_code == 200
    assert res.get_json()['room_id'] == room['room_id']
    # Joining again only refreshes the name
    assert _join(client, room['join_code'], 'p1', 'Patricia').status_code == 200
    players = client.get(f"/api/rooms/{room['room_id']}").get_json()['players']
    assert len(players) == 2
    assert any(p['name'] == 'Patricia' for p in players)


def test_full_round_flow(client, oracle):
    room = _create_room(client)
    room_id = room['room_id']
    assert _join(client, room['join_code'], 'p1', 'Pat').status_code == 200
    assert _join(client, room['join_code'], 'p2', 'Sam').status_code == 200

    started = client.post(f'/api/rooms/{room_id}/start', json={'host_token': 'host-token'})
    assert started.status_code == 200
    state = started.get_json()
    assert state['status'] == 'prompt'
    assert state['current_round'] == 1
    assert state['all_judged'] is False
    assert state['scenario'] is not None

    # Joining after start is rejected
    late = _join(client, room['join_code'], 'p3', 'Lou')
    assert late.status_code == 409
    assert late.get_json()['kind'] == 'InvalidState'

    assert client.post(f'/api/rooms/{room_id}/submit', json={'player_token': 'host-token', 'prompt': 'I win with geese'}).status_code == 201
    assert client.post(f'/api/rooms/{room_id}/submit', json={'player_token': 'p1', 'prompt': 'I give up'}).status_code == 201
    state = client.get(f'/api/rooms/{room_id}/state').get_json()
    assert state['status'] == 'prompt'

    # Last member submitting triggers judging
    assert client.post(f'/api/rooms/{room_id}/submit', json={'player_token': 'p2', 'prompt': 'Sam will win'}).status_code == 201
    state = client.get(f'/api/rooms/{room_id}/state').get_json()
    assert state['status'] == 'results'
    assert state['all_judged'] is True
    assert len(state['submissions']) == 3
    assert all(s['outcome'] is not None for s in state['submissions'])
    by_player = {s['player_id']: s for s in state['submissions']}
    assert by_player['host-token']['is_winner'] is True
    assert by_player['p1']['is_winner'] is False
    assert by_player['p2']['player_name'] == 'Sam'
    assert len(oracle.calls) == 3

    board = client.get(f'/api/rooms/{room_id}/scoreboard').get_json()
    scores = {p['player_id']: p['score'] for p in board}
    assert scores == {'host-token': 1, 'p1': 0, 'p2': 1}
    assert board[-1]['player_id'] == 'p1'

    nxt = client.post(f'/api/rooms/{room_id}/next').get_json()
    assert nxt == {'finished': False, 'round': 2}
    state = client.get(f'/api/rooms/{room_id}/state').get_json()
    assert state['status'] == 'prompt'
    assert state['submissions'] == []
    assert client.get(f'/api/rooms/{room_id}').get_json()['current_round'] == 2


def test_start_game_errors(client):
    room = _create_room(client)
    room_id = room['room_id']
    _join(client, room['join_code'], 'p1', 'Pat')

    res = client.post(f'/api/rooms/{room_id}/start', json={'host_token': 'p1'})
    assert res.status_code == 403
    assert client.post(f'/api/rooms/{room_id}/start', json={}).status_code == 200
    again = client.post(f'/api/rooms/{room_id}/start', json={})
    assert again.status_code == 409
    assert client.post('/api/rooms/999/start', json={}).status_code == 409


def test_submit_outside_prompt_phase(client):
    room = _create_room(client)
    res = client.post(f"/api/rooms/{room['room_id']}/submit", json={'player_token': 'host-token', 'prompt': 'hi'})
    assert res.status_code == 404

    _join(client, room['join_code'], 'p1', 'Pat')
    client.post(f"/api/rooms/{room['room_id']}/start", json={})
    res = client.post(f"/api/rooms/{room['room_id']}/submit", json={'player_token': 'stranger', 'prompt': 'hi'})
    assert res.status_code == 403


def test_host_forces_judging(client):
    room = _create_room(client)
    room_id = room['room_id']
    _join(client, room['join_code'], 'p1', 'Pat')
    client.post(f'/api/rooms/{room_id}/start', json={})

    # No submissions yet
    res = client.post(f'/api/rooms/{room_id}/judge', json={'host_token': 'host-token'})
    assert res.status_code == 409

    client.post(f'/api/rooms/{room_id}/submit', json={'player_token': 'p1', 'prompt': 'win it'})
    assert client.post(f'/api/rooms/{room_id}/judge', json={'host_token': 'p1'}).status_code == 403

    res = client.post(f'/api/rooms/{room_id}/judge', json={'host_token': 'host-token'})
    assert res.status_code == 202
    state = res.get_json()
    assert state['status'] == 'results'
    assert len(state['submissions']) == 1

    # The round cannot be judged again
    again = client.post(f'/api/rooms/{room_id}/judge', json={'host_token': 'host-token'})
    assert again.status_code == 409
    board = client.get(f'/api/rooms/{room_id}/scoreboard').get_json()
    assert {p['player_id']: p['score'] for p in board}['p1'] == 1


def test_next_round_requires_results(client):
    room = _create_room(client)
    room_id = room['room_id']
    assert client.post(f'/api/rooms/{room_id}/next').status_code == 404
    client.post(f'/api/rooms/{room_id}/start', json={})
    res = client.post(f'/api/rooms/{room_id}/next')
    assert res.status_code == 409


def test_room_full_rejects_seventh_player(client):
    room = _create_room(client)
    for i in range(5):
        assert _join(client, room['join_code'], f'p{i}', f'Player {i}').status_code == 200

    # The seventh player already belongs to another room with points
    other = _create_room(client, token='elsewhere', name='Eli')
    res = _join(client, room['join_code'], 'elsewhere', 'Eli')
    assert res.status_code == 409
    assert res.get_json()['kind'] == 'RoomFull'

    eli = client.get('/api/players/elsewhere').get_json()
    assert eli['current_room_id'] == other['room_id']
    assert len(client.get(f"/api/rooms/{room['room_id']}").get_json()['players']) == 6

    # Existing members can still rejoin a full room
    assert _join(client, room['join_code'], 'p0', 'Player 0').status_code == 200


def test_kick_player(client):
    room = _create_room(client)
    room_id = room['room_id']
    _join(client, room['join_code'], 'p1', 'Pat')
    _join(client, room['join_code'], 'p2', 'Sam')

    assert client.post(f'/api/rooms/{room_id}/kick', json={'host_token': 'p1', 'player_id': 'p2'}).status_code == 403
    res = client.post(f'/api/rooms/{room_id}/kick', json={'host_token': 'host-token', 'player_id': 'host-token'})
    assert res.status_code == 400
    assert res.get_json()['kind'] == 'InvalidArgument'

    res = client.post(f'/api/rooms/{room_id}/kick', json={'host_token': 'host-token', 'player_id': 'p2'})
    assert res.status_code == 200
    assert [p['player_id'] for p in res.get_json()['players']] == ['host-token', 'p1']

    kicked = client.get('/api/players/p2').get_json()
    assert kicked['current_room_id'] is None
    assert kicked['score'] == 0

    client.post(f'/api/rooms/{room_id}/start', json={})
    res = client.post(f'/api/rooms/{room_id}/kick', json={'host_token': 'host-token', 'player_id': 'p1'})
    assert res.status_code == 409


def test_leave_room(client):
    room = _create_room(client)
    room_id = room['room_id']
    _join(client, room['join_code'], 'p1', 'Pat')
    assert client.post(f'/api/rooms/{room_id}/leave', json={'player_token': 'p1'}).status_code == 200
    assert client.get('/api/players/p1').get_json()['current_room_id'] is None
    assert client.post('/api/rooms/999/leave', json={'player_token': 'p1'}).status_code == 404


def test_host_leave_keeps_room(client):
    room = _create_room(client)
    room_id = room['room_id']
    _join(client, room['join_code'], 'p1', 'Pat')
    client.post(f'/api/rooms/{room_id}/leave', json={'player_token': 'host-token'})
    data = client.get(f'/api/rooms/{room_id}').get_json()
    assert data['host_id'] == 'host-token'
    assert data['status'] == 'waiting'
    assert [p['player_id'] for p in data['players']] == ['p1']


def test_unknown_room_projections(client):
    assert client.get('/api/rooms/42').status_code == 404
    assert client.get('/api/rooms/42/state').status_code == 404
    assert client.get('/api/rooms/42/scoreboard').get_json() == []
