from typing import Dict, Iterable, List

from flask import current_app
from sqlalchemy import update

from promptparty import db, socketio
from promptparty.errors import InvalidState, NotFound
from promptparty.models import Player, RoundState, Submission
from .notify import broadcast_state
from .oracle import RoundPrompt, ScoringOracle, Verdict, failed_verdict
from .state_machine import SetJudging, SetResults, apply_transition, get_round_state


def get_oracle() -> ScoringOracle:
    return current_app.extensions['scoring_oracle']


def judge_round(room_id: int) -> RoundState:
    """Claim the current round for judging and score it.

    The claim is a compare-and-swap from ``prompt`` to ``judging``, so a
    second trigger for the same round fails with InvalidState. Scoring runs
    as a background task; clients follow progress through the round status.
    """
    round_state = get_round_state(room_id)
    if not round_state:
        raise NotFound('Game state not found')
    if round_state.status != 'prompt':
        raise InvalidState('Not ready to judge')
    if not round_state.current_scenario_id or round_state.scenario is None:
        raise InvalidState('No scenario found')
    round_number = round_state.current_round
    if Submission.query.filter_by(room_id=room_id, round=round_number).count() == 0:
        raise InvalidState('No submissions to judge')

    if not apply_transition(round_state, SetJudging(round=round_number)):
        raise InvalidState('Round is already being judged')
    current_app.logger.info(f"[judge-claim] room={room_id} round={round_number}")
    broadcast_state(room_id)

    app = current_app._get_current_object()
    if app.config.get('TESTING') and not app.config.get('JUDGE_IN_BACKGROUND'):
        judge_submissions(room_id, round_number)
    else:
        socketio.start_background_task(run_judging, app, room_id, round_number)
    return round_state


def run_judging(app, room_id: int, round_number: int) -> None:
    """Background entry point; a crash leaves the round stuck in judging."""
    with app.app_context():
        try:
            judge_submissions(room_id, round_number)
        except Exception:
            db.session.rollback()
            app.logger.exception(f"[judge-failed] room={room_id} round={round_number}")
            raise


def _player_names(player_ids: Iterable[str]) -> Dict[str, str]:
    ids = list(set(player_ids))
    if not ids:
        return {}
    return {p.id: p.name for p in Player.query.filter(Player.id.in_(ids)).all()}


def _ask_oracle(oracle: ScoringOracle, scenario: str, prompt: str, all_prompts: List[RoundPrompt]) -> Verdict:
    try:
        return oracle.judge(scenario, prompt, all_prompts)
    except Exception as exc:
        current_app.logger.error(f"[oracle-error] {type(exc).__name__}: {exc}")
        return failed_verdict()


def award_point(player_id: str, room_id: int) -> bool:
    """Add one point, but only while the player is still in the room."""
    result = db.session.execute(
        update(Player)
        .where(Player.id == player_id, Player.current_room_id == room_id)
        .values(score=Player.score + 1)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return result.rowcount == 1


def record_verdict(submission: Submission, verdict: Verdict) -> None:
    submission.outcome = verdict.outcome
    submission.is_winner = verdict.is_winner
    db.session.add(submission)
    db.session.commit()
    if verdict.is_winner:
        awarded = award_point(submission.player_id, submission.room_id)
        if not awarded:
            current_app.logger.info(
                f"[judge-award-skip] room={submission.room_id} player={submission.player_id} left the room"
            )


def judge_submissions(room_id: int, round_number: int) -> None:
    """Score every unjudged submission of the round, one oracle call at a time."""
    round_state = get_round_state(room_id)
    if not round_state or round_state.status != 'judging' or round_state.current_round != round_number:
        raise InvalidState('Round is not claimed for judging')
    scenario_description = round_state.scenario.description

    submissions = (
        Submission.query.filter_by(room_id=room_id, round=round_number)
        .order_by(Submission.submitted_at, Submission.id)
        .all()
    )
    names = _player_names(s.player_id for s in submissions)
    all_prompts: List[RoundPrompt] = [
        {'player_name': names.get(s.player_id, 'Unknown'), 'prompt': s.prompt} for s in submissions
    ]

    oracle = get_oracle()
    for submission in submissions:
        if submission.outcome is not None:
            continue
        verdict = _ask_oracle(oracle, scenario_description, submission.prompt, all_prompts)
        record_verdict(submission, verdict)
        current_app.logger.info(
            f"[judge-verdict] room={room_id} round={round_number} player={submission.player_id} winner={verdict.is_winner}"
        )
        broadcast_state(room_id)

    if not apply_transition(round_state, SetResults(round=round_number, all_judged=True)):
        current_app.logger.warning(f"[judge-done] room={room_id} round={round_number} results already set")
        return
    current_app.logger.info(f"[judge-done] room={room_id} round={round_number} judged={len(submissions)}")
    broadcast_state(room_id)
