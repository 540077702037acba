import random
from typing import List, Optional

from flask import current_app

from promptparty import db
from promptparty.models import Scenario


SEED_SCENARIOS = [
    {
        'text': 'Herd the geese into the paddock',
        'description': 'You need to get all the geese from the field into the fenced paddock area.',
    },
    {
        'text': 'Cross the raging river without getting wet',
        'description': 'Find a way to cross the fast-flowing river without getting any part of you wet.',
    },
    {
        'text': 'Convince the grumpy cat to move from the keyboard',
        'description': "The cat is blocking the keyboard and won't move. You need to get it to leave.",
    },
    {
        'text': 'Retrieve the balloon from the tall tree',
        'description': "A child's balloon is stuck in the top branches of a very tall tree. Get it down safely.",
    },
    {
        'text': 'Make the robots dance in sync',
        'description': 'Program or instruct multiple robots to perform a synchronized dance routine.',
    },
    {
        'text': 'Build a tower that reaches the clouds',
        'description': 'Construct a tower tall enough to touch the clouds using whatever materials you can find.',
    },
    {
        'text': 'Get the diamond through the laser security grid',
        'description': 'Navigate a valuable diamond through a complex laser security system without triggering alarms.',
    },
    {
        'text': 'Calm the thunderstorm over the city',
        'description': "Stop the violent thunderstorm that's been raging over the city for hours.",
    },
    {
        'text': "Extract the splinter from the sleeping dragon's paw",
        'description': "Remove a painful splinter from a dragon's paw without waking it up.",
    },
    {
        'text': 'Cook a perfect soufflé in zero gravity',
        'description': 'Prepare and bake a flawless soufflé while floating in a zero-gravity environment.',
    },
]


def list_scenarios() -> List[Scenario]:
    return Scenario.query.order_by(Scenario.id).all()


def ensure_seeded() -> int:
    """Insert the seed set if the bank is empty. Returns the inserted count."""
    if Scenario.query.first():
        return 0
    for entry in SEED_SCENARIOS:
        db.session.add(Scenario(text=entry['text'], description=entry['description']))
    db.session.commit()
    current_app.logger.info(f"[scenarios-seed] inserted={len(SEED_SCENARIOS)}")
    return len(SEED_SCENARIOS)


def pick_scenario(exclude_id: Optional[int] = None) -> Scenario:
    """Pick a scenario uniformly at random, seeding the bank when empty.

    With ``exclude_id`` the draw is repeated while it hits that scenario and
    the bank holds more than one entry. After ``SCENARIO_MAX_REDRAWS`` misses
    the pick falls back to the other scenarios directly.
    """
    ensure_seeded()
    scenarios = list_scenarios()
    choice = random.choice(scenarios)
    if exclude_id is None or len(scenarios) < 2:
        return choice

    max_redraws = int(current_app.config.get('SCENARIO_MAX_REDRAWS', 50))
    redraws = 0
    while choice.id == exclude_id and redraws < max_redraws:
        choice = random.choice(scenarios)
        redraws += 1
    if choice.id == exclude_id:
        choice = random.choice([s for s in scenarios if s.id != exclude_id])
    return choice
