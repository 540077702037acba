import random
import string
from typing import Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from promptparty import db
from promptparty.errors import Forbidden, InvalidState
from promptparty.models import Room, RoundState
from .identity import upsert_player
from .notify import broadcast_state
from .roster import release_previous_room
from .scenarios import pick_scenario


JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code() -> str:
    """Draw a join code that no existing room uses.

    Every ``JOIN_CODE_MAX_ATTEMPTS`` collisions in a row widen the code by one
    character, so the loop cannot spin forever on a crowded code space.
    """
    length = int(current_app.config.get('JOIN_CODE_LENGTH', 6))
    max_attempts = int(current_app.config.get('JOIN_CODE_MAX_ATTEMPTS', 50))
    attempts = 0
    while True:
        code = ''.join(random.choices(JOIN_CODE_ALPHABET, k=length))
        if not Room.query.filter_by(join_code=code).first():
            return code
        attempts += 1
        if attempts >= max_attempts:
            current_app.logger.warning(f"[join-code] {attempts} collisions at length={length}, widening")
            length += 1
            attempts = 0


def create_room(host_token: str, host_name: str) -> dict:
    host = upsert_player(host_token, host_name)
    max_rounds = int(current_app.config.get('MAX_ROUNDS', 6))
    max_attempts = int(current_app.config.get('JOIN_CODE_MAX_ATTEMPTS', 50))

    attempts = 0
    while True:
        room = Room(
            join_code=generate_join_code(),
            host_id=host.id,
            current_round=0,
            max_rounds=max_rounds,
            status='waiting',
        )
        db.session.add(room)
        try:
            db.session.commit()
            break
        except IntegrityError:
            # Usually another room claimed the same code between check and insert
            db.session.rollback()
            attempts += 1
            if attempts >= max_attempts:
                current_app.logger.error(f"[room-create] giving up after {attempts} failed inserts host={host_token}")
                raise
            current_app.logger.info("[join-code] concurrent collision, redrawing")

    previous_room_id = host.current_room_id
    if previous_room_id != room.id:
        if previous_room_id is not None:
            host.score = 0
        host.current_room_id = room.id
        db.session.add(host)
        db.session.commit()
        if previous_room_id is not None:
            release_previous_room(previous_room_id)

    current_app.logger.info(f"[room-create] room={room.id} code={room.join_code} host={host.id}")
    return {'room_id': room.id, 'join_code': room.join_code}


def start_game(room_id: int, host_token: Optional[str] = None) -> RoundState:
    room = Room.query.filter_by(id=room_id).first()
    if not room or room.status != 'waiting':
        raise InvalidState('Game already started or room does not exist')
    if host_token is not None and host_token != room.host_id:
        raise Forbidden('Only the host can start the game')

    scenario = pick_scenario()

    # Claim the room only if it is still waiting; a concurrent start loses here
    claimed = db.session.execute(
        update(Room)
        .where(Room.id == room_id, Room.status == 'waiting')
        .values(status='playing', current_round=1)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        db.session.rollback()
        raise InvalidState('Game already started or room does not exist')

    round_state = RoundState(
        room_id=room_id,
        current_round=1,
        current_scenario_id=scenario.id,
        status='prompt',
        all_judged=False,
    )
    db.session.add(round_state)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info(f"[start] room={room_id} lost the start race")
        raise InvalidState('Game already started or room does not exist')

    current_app.logger.info(f"[start] room={room_id} round=1 scenario={scenario.id}")
    broadcast_state(room_id)
    return round_state
