from flask import Blueprint, jsonify, request

from promptparty.api import require_fields
from promptparty.errors import NotFound
from promptparty.services.games.identity import get_or_create_player, get_player, set_player_name


players = Blueprint('players', __name__)


@players.route('', methods=['POST'])
def create_or_refresh_player():
    (name,) = require_fields('name')
    data = request.get_json(silent=True) or {}
    token = get_or_create_player(data.get('player_token'), name)
    return jsonify({'player_token': token})


@players.route('/<string:token>', methods=['GET'])
def show_player(token):
    player = get_player(token)
    if not player:
        raise NotFound('Player not found')
    return jsonify(player.to_dict())


@players.route('/<string:token>', methods=['PUT'])
def rename_player(token):
    (name,) = require_fields('name')
    player = set_player_name(token, name)
    if not player:
        raise NotFound('Player not found')
    return jsonify(player.to_dict())
