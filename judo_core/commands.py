"""Operator command routing (keyboard/UI events as plain dicts).

An input layer (key bindings, buttons, a remote control) sends commands like
{"type": "ASSIGN_PIN", "competitor": 0}. apply_command() validates them with
ValidatedCmd and maps each one onto exactly one MatchStateMachine operation, so
every command is applied atomically.

Command types:
- HAJIME / MATTE / OSAEKOMI / TOKETA / RESUME_PIN / RESET_PIN: clock control
- ASSIGN_PIN: give the osaekomi to a competitor (competitor=None unassigns)
- AWARD_POINT / REVOKE_POINT: manual scoring (revoke never stops the clock)
- SET_MAIN_CLOCK / SET_GOLDEN_SCORE: remainingMs or "M:SS" clock string
- SET_PIN_ELAPSED: correct the osaekomi time (elapsedMs or pinSeconds)
- TOGGLE_MAIN / TOGGLE_PIN / TOGGLE_PIN_PAUSE: single-key toggles
- RESET_MATCH: new match (applies staged rules)
- RELOAD_RULES: validate and stage new rules for the next match
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from .match import MatchStateMachine
from .state import MatchSnapshot
from .validation import ValidatedCmd, parse_command

logger = logging.getLogger(__name__)


@dataclass
class CommandOutcome:
    """Result of applying an operator command."""

    snapshot: MatchSnapshot
    cmd_payload: Dict[str, Any]


_SIMPLE_COMMANDS = {
    "HAJIME": MatchStateMachine.start_main,
    "MATTE": MatchStateMachine.stop_all,
    "OSAEKOMI": MatchStateMachine.start_pin,
    "TOKETA": MatchStateMachine.pause_pin,
    "RESUME_PIN": MatchStateMachine.resume_pin,
    "RESET_PIN": MatchStateMachine.reset_pin,
    "RESET_MATCH": MatchStateMachine.reset_match,
    "TOGGLE_MAIN": MatchStateMachine.toggle_main,
    "TOGGLE_PIN": MatchStateMachine.toggle_pin,
    "TOGGLE_PIN_PAUSE": MatchStateMachine.toggle_pin_pause,
}


def _dispatch(machine: MatchStateMachine, cmd: ValidatedCmd, payload: Dict[str, Any]) -> None:
    ctype = cmd.type

    if ctype in _SIMPLE_COMMANDS:
        _SIMPLE_COMMANDS[ctype](machine)

    elif ctype == "ASSIGN_PIN":
        machine.assign_pin_holder(cmd.competitor, start_if_zero=cmd.startIfZero)

    elif ctype == "AWARD_POINT":
        machine.award_point(cmd.competitor, cmd.category)
        payload["category"] = cmd.category

    elif ctype == "REVOKE_POINT":
        machine.revoke_point(cmd.competitor, cmd.category)
        payload["category"] = cmd.category

    elif ctype == "SET_MAIN_CLOCK":
        remaining = cmd.remaining_ms()
        machine.set_main_clock(remaining)
        payload["remainingMs"] = remaining

    elif ctype == "SET_GOLDEN_SCORE":
        remaining = cmd.remaining_ms() or 0
        machine.set_golden_score(remaining)
        payload["remainingMs"] = remaining

    elif ctype == "SET_PIN_ELAPSED":
        elapsed = cmd.elapsed_ms()
        machine.override_pin_elapsed(elapsed)
        payload["elapsedMs"] = elapsed

    elif ctype == "RELOAD_RULES":
        rules = machine.reload_rules(cmd.rules)
        payload["rules"] = rules.model_dump()


def apply_command(machine: MatchStateMachine, cmd: Dict[str, Any]) -> CommandOutcome:
    """Validate and apply an operator command.

    Args:
        machine: the state machine of the mat
        cmd: Command dict with 'type' field and command-specific params

    Returns:
        CommandOutcome with a snapshot taken after the command and the command
        payload enriched with resolved values (ms durations, category names)

    Raises:
        InvalidArgument: malformed command; nothing was applied
        ConfigError: RELOAD_RULES with invalid rules; current rules are kept
    """
    validated = parse_command(cmd)
    payload = dict(cmd)
    with machine.transaction():
        _dispatch(machine, validated, payload)
        snapshot = machine.snapshot()
    logger.debug(f"Applied command {validated.type}")
    return CommandOutcome(snapshot=snapshot, cmd_payload=payload)


__all__ = ["CommandOutcome", "apply_command"]
