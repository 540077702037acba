"""Read-only views that clients re-fetch on every ``state_update`` push."""

from typing import List, Optional

from promptparty.models import Player, Room, Submission
from .roster import members
from .state_machine import get_round_state


def get_room(room_id: int) -> Optional[dict]:
    room = Room.query.filter_by(id=room_id).first()
    if not room:
        return None
    payload = room.to_dict()
    payload['players'] = [p.to_roster_entry() for p in members(room.id)]
    return payload


def get_game_state(room_id: int) -> Optional[dict]:
    round_state = get_round_state(room_id)
    if not round_state:
        return None

    scenario = round_state.scenario if round_state.current_scenario_id else None
    submissions = (
        Submission.query.filter_by(room_id=room_id, round=round_state.current_round)
        .order_by(Submission.submitted_at, Submission.id)
        .all()
    )
    # Names come from the player table so players who left still show up
    player_ids = {s.player_id for s in submissions}
    names = {}
    if player_ids:
        names = {p.id: p.name for p in Player.query.filter(Player.id.in_(player_ids)).all()}

    payload = round_state.to_dict()
    payload['scenario'] = scenario.to_dict() if scenario else None
    payload['submissions'] = []
    for s in submissions:
        sd = s.to_dict()
        sd['player_name'] = names.get(s.player_id, 'Unknown')
        payload['submissions'].append(sd)
    return payload


def get_scoreboard(room_id: int) -> List[dict]:
    players = sorted(members(room_id), key=lambda p: p.score, reverse=True)
    return [p.to_roster_entry() for p in players]
