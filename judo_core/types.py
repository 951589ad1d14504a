"""Type definitions for match state payloads and domain enums."""
from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, Optional, TypedDict


class Competitor(IntEnum):
    """The two sides of a match (0 = white, 1 = blue)."""

    WHITE = 0
    BLUE = 1


class PointCategory(str, Enum):
    """Scoring categories, highest first.

    Values are the judo names used on the scoreboard.
    """

    IPPON = "ippon"
    MAJOR = "wazari"
    MINOR = "yuko"
    CATEGORY4 = "shido"


class Signal(str, Enum):
    """Audible alerts emitted by the match core."""

    BELL_TIME_EXPIRED = "bell_time_expired"
    BELL_POINT_STOP = "bell_point_stop"
    ERROR_UNASSIGNED_REMINDER = "error_unassigned_reminder"


class PointsPayload(TypedDict):
    """Point counts of one competitor, keyed by category value."""
    ippon: int
    wazari: int
    yuko: int
    shido: int


class MatchStatePayload(TypedDict, total=False):
    """
    TypedDict representing the broadcast form of a match snapshot.

    Read-only viewers receive this; it is never fed back into the core.
    """
    # Main clock
    clockRunning: bool
    clockRemainingMs: int
    clockDisplay: str  # "M:SS"
    clockTenths: str
    goldenScore: bool

    # Pin timer
    pinRunning: bool
    pinElapsedMs: int
    pinDisplay: str  # whole seconds
    pinTenths: str
    pinHolder: Optional[int]  # None when unassigned
    pinUnassignedWarning: bool

    # Points, keyed by competitor id as string ("0" | "1")
    points: Dict[str, PointsPayload]


class CommandPayload(TypedDict, total=False):
    """
    TypedDict for command payloads sent to apply_command().

    Fields vary by command type.
    """
    # Common
    type: str
    actionId: Optional[str]

    # ASSIGN_PIN / AWARD_POINT / REVOKE_POINT
    competitor: Optional[int]
    category: Optional[str]
    startIfZero: Optional[bool]

    # SET_MAIN_CLOCK / SET_GOLDEN_SCORE
    remainingMs: Optional[int]
    clock: Optional[str]  # "M:SS"

    # SET_PIN_ELAPSED
    elapsedMs: Optional[int]
    pinSeconds: Optional[int]

    # RELOAD_RULES
    rules: Optional[dict]
