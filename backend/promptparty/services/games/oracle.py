"""Scoring oracle: turns a (scenario, prompt) pair into a pass/fail verdict.

The model is asked to narrate what happens and to finish with a fixed
``<WINNER: True>`` / ``<WINNER: False>`` marker. A missing or malformed
marker counts as a loss, and any API failure yields :data:`FAILED_OUTCOME`.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, TypedDict

from openai import OpenAI


FAILED_OUTCOME = 'Error evaluating prompt. Please try again.'

WINNER_MARKER = re.compile(r'<WINNER:\s*(True|False)\s*>', re.IGNORECASE)

SYSTEM_PROMPT = """You are judging a creative game where players attempt to complete scenarios using AI prompts.

Evaluate whether the player's prompt would successfully complete the given scenario. Consider creativity, feasibility, and effectiveness.

Your response should:
1. Describe what would actually happen based on the prompt
2. Evaluate if this outcome successfully completes the scenario
3. End with exactly: <WINNER: True> or <WINNER: False>"""


class RoundPrompt(TypedDict):
    player_name: str
    prompt: str


@dataclass(frozen=True)
class Verdict:
    outcome: str
    is_winner: bool


def failed_verdict() -> Verdict:
    return Verdict(outcome=FAILED_OUTCOME, is_winner=False)


def parse_verdict(response: str) -> Verdict:
    """Split a model response into the narrative and the boolean verdict."""
    response = response or ''
    match = WINNER_MARKER.search(response)
    is_winner = bool(match) and match.group(1).lower() == 'true'
    outcome = WINNER_MARKER.sub('', response, count=1).strip()
    return Verdict(outcome=outcome, is_winner=is_winner)


def build_user_prompt(scenario: str, prompt: str, all_prompts: Optional[List[RoundPrompt]] = None) -> str:
    text = f"Scenario: {scenario}\n\nPlayer's attempt: {prompt}"
    # Other players' prompts let the judge account for sabotage
    if all_prompts and len(all_prompts) > 1:
        text += "\n\nOther players' attempts (for context):\n"
        for entry in all_prompts:
            if entry['prompt'] != prompt:
                text += f"{entry['player_name']}: {entry['prompt']}\n"
        text += "\nNote: Players can mention each other in prompts to sabotage. Evaluate the logical sequence of events."
    return text


class ScoringOracle:
    """Interface for judges; subclasses must never raise from :meth:`judge`."""

    def judge(self, scenario: str, prompt: str, all_prompts: List[RoundPrompt]) -> Verdict:
        raise NotImplementedError


class OpenAIScoringOracle(ScoringOracle):
    def __init__(self, api_key: str, model: str = 'gpt-4o-mini', temperature: float = 0.7,
                 logger: Optional[logging.Logger] = None, client: Optional[OpenAI] = None):
        self.model = model
        self.temperature = temperature
        self.logger = logger or logging.getLogger(__name__)
        self.client = client or OpenAI(api_key=api_key)

    def judge(self, scenario: str, prompt: str, all_prompts: List[RoundPrompt]) -> Verdict:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': build_user_prompt(scenario, prompt, all_prompts)},
                ],
                temperature=self.temperature,
            )
        except Exception as exc:
            self.logger.error(f"[oracle-error] {type(exc).__name__}: {exc}")
            return failed_verdict()

        content = completion.choices[0].message.content if completion.choices else ''
        return parse_verdict(content or '')
