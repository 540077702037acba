from typing import List

from flask import current_app

from promptparty import db
from promptparty.errors import Forbidden, InvalidArgument, InvalidState, NotFound, RoomFull
from promptparty.models import Player, Room
from .identity import detach_player, get_player, upsert_player
from .notify import broadcast_state


def members(room_id: int) -> List[Player]:
    return Player.query.filter_by(current_room_id=room_id).order_by(Player.created_at, Player.id).all()


def _get_room(room_id: int) -> Room:
    room = Room.query.filter_by(id=room_id).first()
    if not room:
        raise NotFound('Room not found')
    return room


def join_room(join_code: str, player_token: str, name: str) -> int:
    room = Room.query.filter_by(join_code=(join_code or '').upper()).first()
    if not room:
        raise NotFound('Room not found')
    if room.status != 'waiting':
        raise InvalidState('Game has already started')

    current = members(room.id)
    already_member = any(p.id == player_token for p in current)
    max_players = int(current_app.config.get('MAX_PLAYERS', 6))
    if not already_member and len(current) >= max_players:
        raise RoomFull(f'Room is full (maximum {max_players} players)')

    player = get_player(player_token)
    if player is None:
        upsert_player(player_token, name, room_id=room.id)
    elif player.current_room_id != room.id:
        previous_room_id = player.current_room_id
        player.current_room_id = room.id
        player.name = name
        # Score resets when moving to a different room
        player.score = 0
        db.session.add(player)
        db.session.commit()
        if previous_room_id is not None:
            release_previous_room(previous_room_id)
    elif player.name != name:
        player.name = name
        db.session.add(player)
        db.session.commit()

    current_app.logger.info(f"[join] room={room.id} player={player_token}")
    broadcast_state(room.id)
    return room.id


def kick_player(room_id: int, host_token: str, target_player_id: str) -> None:
    room = _get_room(room_id)
    if room.host_id != host_token:
        raise Forbidden('Only the host can kick players')
    if room.status != 'waiting':
        raise InvalidState('Cannot kick players after game has started')
    if room.host_id == target_player_id:
        raise InvalidArgument('Cannot kick the host')

    target = get_player(target_player_id)
    if target and target.current_room_id == room.id:
        detach_player(target)
        current_app.logger.info(f"[kick] room={room.id} player={target_player_id}")
        broadcast_state(room.id)


def leave_room(room_id: int, player_token: str) -> None:
    """Detach a player at any room status, including mid-game.

    The host leaving keeps the room and its host id untouched; the room is
    then orphaned for host-only actions.
    """
    room = _get_room(room_id)
    player = get_player(player_token)
    if not player or player.current_room_id != room.id:
        return

    detach_player(player)
    if player.id == room.host_id:
        current_app.logger.warning(f"[host-left] room={room.id} status={room.status} host={player.id}")
    else:
        current_app.logger.info(f"[leave] room={room.id} player={player.id}")
    release_previous_room(room.id)


def release_previous_room(room_id: int) -> None:
    """Push the shrunken roster of a room a player just left.

    Mid-game, the departed player may have been the last member the round was
    waiting on, so the judging trigger is checked again.
    """
    broadcast_state(room_id)
    room = Room.query.filter_by(id=room_id).first()
    if room and room.status == 'playing':
        from .state_machine import maybe_trigger_judging
        maybe_trigger_judging(room_id)
