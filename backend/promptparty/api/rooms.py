from flask import Blueprint, jsonify, request

from promptparty.api import require_fields
from promptparty.errors import NotFound
from promptparty.services.games import projections, rooms as registry, roster, state_machine


rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['POST'])
def create_room():
    host_token, name = require_fields('host_token', 'name')
    created = registry.create_room(host_token, name)
    return jsonify(created), 201


@rooms.route('/join', methods=['POST'])
def join_room():
    join_code, player_token, name = require_fields('join_code', 'player_token', 'name')
    room_id = roster.join_room(join_code, player_token, name)
    return jsonify({'room_id': room_id})


@rooms.route('/<int:room_id>/kick', methods=['POST'])
def kick_player(room_id):
    host_token, player_id = require_fields('host_token', 'player_id')
    roster.kick_player(room_id, host_token, player_id)
    return jsonify(projections.get_room(room_id))


@rooms.route('/<int:room_id>/leave', methods=['POST'])
def leave_room(room_id):
    (player_token,) = require_fields('player_token')
    roster.leave_room(room_id, player_token)
    return jsonify({'ok': True})


@rooms.route('/<int:room_id>/start', methods=['POST'])
def start_game(room_id):
    data = request.get_json(silent=True) or {}
    registry.start_game(room_id, host_token=data.get('host_token'))
    return jsonify(projections.get_game_state(room_id))


@rooms.route('/<int:room_id>/submit', methods=['POST'])
def submit_prompt(room_id):
    player_token, prompt = require_fields('player_token', 'prompt')
    submission = state_machine.submit_prompt(room_id, player_token, prompt)
    return jsonify(submission.to_dict()), 201


@rooms.route('/<int:room_id>/judge', methods=['POST'])
def judge_round(room_id):
    (host_token,) = require_fields('host_token')
    state_machine.force_judging(room_id, host_token)
    # Judging may still be running; clients poll or wait for state_update
    return jsonify(projections.get_game_state(room_id)), 202


@rooms.route('/<int:room_id>/next', methods=['POST'])
def next_round(room_id):
    return jsonify(state_machine.next_round(room_id))


@rooms.route('/<int:room_id>', methods=['GET'])
def get_room(room_id):
    payload = projections.get_room(room_id)
    if payload is None:
        raise NotFound('Room not found')
    return jsonify(payload)


@rooms.route('/<int:room_id>/state', methods=['GET'])
def get_game_state(room_id):
    payload = projections.get_game_state(room_id)
    if payload is None:
        raise NotFound('Game state not found')
    return jsonify(payload)


@rooms.route('/<int:room_id>/scoreboard', methods=['GET'])
def get_scoreboard(room_id):
    return jsonify(projections.get_scoreboard(room_id))
