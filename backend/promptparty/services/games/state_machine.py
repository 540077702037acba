"""Per-room round state machine.

A room's RoundState moves ``prompt -> judging -> results`` and then either
back to ``prompt`` for the next round or the room finishes. Status changes
are expressed as transition commands; each command names the one status it
may leave from, and :func:`apply_transition` writes it with a conditional
UPDATE so that concurrent callers race on the database row rather than on a
read-then-write in Python.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar, Optional, Union

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from promptparty import db
from promptparty.errors import Forbidden, InvalidArgument, InvalidState, NotFound
from promptparty.models import Room, RoundState, Submission
from .identity import get_player
from .notify import broadcast_state
from .roster import members
from .scenarios import pick_scenario


@dataclass(frozen=True)
class SetJudging:
    """Claim the round for judging."""
    round: int
    source: ClassVar[str] = 'prompt'


@dataclass(frozen=True)
class SetResults:
    round: int
    all_judged: bool = True
    source: ClassVar[str] = 'judging'


@dataclass(frozen=True)
class BeginRound:
    round: int
    scenario_id: int
    source: ClassVar[str] = 'results'


RoundTransition = Union[SetJudging, SetResults, BeginRound]


def _transition_values(command: RoundTransition) -> dict:
    if isinstance(command, SetJudging):
        return {'status': 'judging'}
    if isinstance(command, SetResults):
        return {'status': 'results', 'all_judged': command.all_judged}
    if isinstance(command, BeginRound):
        return {
            'status': 'prompt',
            'all_judged': False,
            'current_round': command.round,
            'current_scenario_id': command.scenario_id,
        }
    raise TypeError(f'Unknown round transition: {command!r}')


def apply_transition(round_state: RoundState, command: RoundTransition) -> bool:
    """Compare-and-swap ``command`` onto ``round_state``.

    Returns False when the row was not in the command's source status (or
    not on the expected round), meaning another caller got there first.
    """
    expected_round = command.round - 1 if isinstance(command, BeginRound) else command.round
    stmt = (
        update(RoundState)
        .where(
            RoundState.id == round_state.id,
            RoundState.status == command.source,
            RoundState.current_round == expected_round,
        )
        .values(**_transition_values(command))
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    db.session.commit()
    # commit expires round_state, so attribute access reloads the row
    won = result.rowcount == 1
    current_app.logger.info(
        f"[transition] round_state={round_state.id} {type(command).__name__} round={command.round} won={won}"
    )
    return won


def get_round_state(room_id: int) -> Optional[RoundState]:
    return RoundState.query.filter_by(room_id=room_id).first()


def _upsert_submission(room_id: int, player_id: str, round_number: int, text: str) -> Submission:
    now = datetime.now(timezone.utc)
    existing = Submission.query.filter_by(room_id=room_id, player_id=player_id, round=round_number).first()
    if existing is None:
        submission = Submission(
            room_id=room_id,
            player_id=player_id,
            round=round_number,
            prompt=text,
            outcome=None,
            is_winner=None,
            submitted_at=now,
        )
        db.session.add(submission)
        try:
            db.session.commit()
            return submission
        except IntegrityError:
            # A concurrent submit inserted the same key first; overwrite it
            db.session.rollback()
            existing = Submission.query.filter_by(room_id=room_id, player_id=player_id, round=round_number).first()
    existing.prompt = text
    existing.submitted_at = now
    db.session.add(existing)
    db.session.commit()
    return existing


def all_members_submitted(room_id: int, round_number: int) -> bool:
    member_ids = {p.id for p in members(room_id)}
    if not member_ids:
        return False
    submitted = {
        s.player_id for s in Submission.query.filter_by(room_id=room_id, round=round_number).all()
    }
    return member_ids.issubset(submitted)


def submit_prompt(room_id: int, player_token: str, text: str) -> Submission:
    round_state = get_round_state(room_id)
    if not round_state:
        raise NotFound('Game state not found')
    if round_state.status != 'prompt':
        raise InvalidState('Not in prompt submission phase')
    if not text or not text.strip():
        raise InvalidArgument('Prompt text is required')
    player = get_player(player_token)
    if not player or player.current_room_id != room_id:
        raise Forbidden('You are not a player in this room')

    round_number = round_state.current_round
    submission = _upsert_submission(room_id, player.id, round_number, text)
    current_app.logger.info(f"[submit] room={room_id} round={round_number} player={player.id}")
    broadcast_state(room_id)

    maybe_trigger_judging(room_id)
    return submission


def maybe_trigger_judging(room_id: int) -> bool:
    """Start judging once every current member has submitted for the round."""
    round_state = get_round_state(room_id)
    if not round_state or round_state.status != 'prompt':
        return False
    if not all_members_submitted(room_id, round_state.current_round):
        return False

    from .judging import judge_round
    try:
        judge_round(room_id)
    except InvalidState as exc:
        # Lost the race to another trigger; the round is judged either way
        current_app.logger.info(f"[judge-trigger] room={room_id} skipped: {exc.message}")
        return False
    return True


def force_judging(room_id: int, host_token: str) -> RoundState:
    """Host-initiated early judging; needs at least one submission."""
    room = Room.query.filter_by(id=room_id).first()
    if not room:
        raise NotFound('Room not found')
    if room.host_id != host_token:
        raise Forbidden('Only the host can start judging')

    from .judging import judge_round
    return judge_round(room_id)


def next_round(room_id: int) -> dict:
    room = Room.query.filter_by(id=room_id).first()
    if not room:
        raise NotFound('Room not found')
    round_state = get_round_state(room_id)
    if not round_state:
        raise NotFound('Game state not found')
    if room.status != 'playing':
        raise InvalidState('Game is not in progress')
    if round_state.status != 'results':
        raise InvalidState('The current round has not finished judging')

    prev_round = round_state.current_round
    next_round_num = prev_round + 1
    if next_round_num > room.max_rounds:
        room.status = 'finished'
        db.session.add(room)
        db.session.commit()
        current_app.logger.info(f"[finish] room={room.id} finished at round={prev_round}")
        broadcast_state(room.id)
        return {'finished': True}

    scenario = pick_scenario(exclude_id=round_state.current_scenario_id)
    if not apply_transition(round_state, BeginRound(round=next_round_num, scenario_id=scenario.id)):
        raise InvalidState('Round was already advanced')

    room.current_round = next_round_num
    db.session.add(room)
    db.session.commit()
    current_app.logger.info(
        f"[next_round] room={room.id} advance round {prev_round} -> {next_round_num} scenario={scenario.id}"
    )
    broadcast_state(room.id)
    return {'finished': False, 'round': next_round_num}
