from .commands import CommandOutcome, apply_command
from .driver import TickDriver
from .formatting import format_clock, format_seconds, format_tenths, parse_clock_preset
from .match import InvalidArgument, MatchStateMachine
from .rules import ConfigError, RuleConfig, load_rules, load_rules_json
from .signals import SignalBus
from .state import (
    MatchClock,
    MatchSnapshot,
    MatchState,
    PinTimer,
    PointsSnapshot,
    ScoreLedger,
)
from .types import CommandPayload, Competitor, MatchStatePayload, PointCategory, Signal
from .validation import ValidatedCmd

__all__ = [
    "CommandOutcome",
    "CommandPayload",
    "Competitor",
    "ConfigError",
    "InvalidArgument",
    "MatchClock",
    "MatchSnapshot",
    "MatchState",
    "MatchStatePayload",
    "MatchStateMachine",
    "PinTimer",
    "PointCategory",
    "PointsSnapshot",
    "RuleConfig",
    "ScoreLedger",
    "Signal",
    "SignalBus",
    "TickDriver",
    "ValidatedCmd",
    "apply_command",
    "format_clock",
    "format_seconds",
    "format_tenths",
    "load_rules",
    "load_rules_json",
    "parse_clock_preset",
]
