import uuid
from typing import Optional

from flask import current_app

from promptparty import db
from promptparty.models import Player


def get_player(token: str) -> Optional[Player]:
    if not token:
        return None
    return Player.query.filter_by(id=token).first()


def upsert_player(token: str, name: str, room_id: Optional[int] = None) -> Player:
    """Create the player for ``token`` if unseen, otherwise sync the name.

    ``room_id`` only applies to newly created players; membership changes of
    known players go through the roster.
    """
    player = get_player(token)
    if player is None:
        player = Player(id=token, name=name, current_room_id=room_id, score=0)
        db.session.add(player)
        db.session.commit()
        current_app.logger.info(f"[player-create] player={token} room={room_id}")
    elif player.name != name:
        player.name = name
        db.session.add(player)
        db.session.commit()
    return player


def get_or_create_player(token: Optional[str], name: str) -> str:
    """Return a usable player token, minting a new one for unknown callers."""
    if token:
        existing = get_player(token)
        if existing:
            if existing.name != name:
                existing.name = name
                db.session.add(existing)
                db.session.commit()
            return token

    new_token = str(uuid.uuid4())
    db.session.add(Player(id=new_token, name=name, current_room_id=None, score=0))
    db.session.commit()
    current_app.logger.info(f"[player-create] player={new_token}")
    return new_token


def set_player_name(token: str, name: str) -> Optional[Player]:
    player = get_player(token)
    if player and player.name != name:
        player.name = name
        db.session.add(player)
        db.session.commit()
    return player


def detach_player(player: Player) -> None:
    """Soft-orphan a player: clear the room and reset the score."""
    player.current_room_id = None
    player.score = 0
    db.session.add(player)
    db.session.commit()
