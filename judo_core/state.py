"""Match state: clocks, osaekomi timer and the point ledger.

The mutable dataclasses here are owned by MatchStateMachine and are only
changed through its operations. Observers get a MatchSnapshot, a frozen copy
taken between ticks.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .formatting import format_clock, format_seconds, format_tenths
from .rules import RuleConfig
from .types import Competitor, MatchStatePayload, PointCategory, PointsPayload


def _empty_counts() -> Dict[PointCategory, int]:
    return {category: 0 for category in PointCategory}


@dataclass
class ScoreLedger:
    """Per-competitor counts of each point category."""

    counts: Dict[Competitor, Dict[PointCategory, int]] = field(
        default_factory=lambda: {c: _empty_counts() for c in Competitor}
    )

    def count(self, competitor: Competitor, category: PointCategory) -> int:
        return self.counts[competitor][category]

    def add(self, competitor: Competitor, category: PointCategory) -> int:
        self.counts[competitor][category] += 1
        return self.counts[competitor][category]

    def remove(self, competitor: Competitor, category: PointCategory) -> int:
        """Decrement a category, floored at zero."""
        current = max(self.counts[competitor][category] - 1, 0)
        self.counts[competitor][category] = current
        return current

    def effective_ippons(
        self, competitor: Competitor, majors_per_ippon: Optional[int]
    ) -> int:
        """Ippons plus the ippons made up of accumulated majors."""
        n_ippons = self.counts[competitor][PointCategory.IPPON]
        if majors_per_ippon is not None:
            n_ippons += self.counts[competitor][PointCategory.MAJOR] // majors_per_ippon
        return n_ippons


@dataclass
class PinTimer:
    running: bool = False
    elapsed: int = 0
    holder: Optional[Competitor] = None


@dataclass
class MatchClock:
    running: bool = False
    remaining: int = 0
    golden_score: bool = False


@dataclass
class MatchState:
    clock: MatchClock
    pin: PinTimer
    score: ScoreLedger

    @classmethod
    def fresh(cls, rules: RuleConfig) -> "MatchState":
        """State at the start of a match under the given rules."""
        return cls(
            clock=MatchClock(remaining=rules.total_time),
            pin=PinTimer(),
            score=ScoreLedger(),
        )


@dataclass(frozen=True)
class PointsSnapshot:
    ippon: int
    major: int
    minor: int
    category4: int

    def to_dict(self) -> PointsPayload:
        return {
            "ippon": self.ippon,
            "wazari": self.major,
            "yuko": self.minor,
            "shido": self.category4,
        }


@dataclass(frozen=True)
class MatchSnapshot:
    """Immutable copy of the match state, safe to hand to other threads."""

    clock_running: bool
    clock_remaining: int
    golden_score: bool
    pin_running: bool
    pin_elapsed: int
    pin_holder: Optional[Competitor]
    # True once an osaekomi has run past the warning time without a holder.
    pin_unassigned_warning: bool
    points: Tuple[PointsSnapshot, PointsSnapshot]

    @classmethod
    def capture(cls, state: MatchState, rules: RuleConfig) -> "MatchSnapshot":
        pin = state.pin
        warn = (
            rules.pin_warn_unassigned is not None
            and pin.holder is None
            and pin.elapsed > rules.pin_warn_unassigned
        )
        points = tuple(
            PointsSnapshot(
                ippon=state.score.count(c, PointCategory.IPPON),
                major=state.score.count(c, PointCategory.MAJOR),
                minor=state.score.count(c, PointCategory.MINOR),
                category4=state.score.count(c, PointCategory.CATEGORY4),
            )
            for c in Competitor
        )
        return cls(
            clock_running=state.clock.running,
            clock_remaining=state.clock.remaining,
            golden_score=state.clock.golden_score,
            pin_running=pin.running,
            pin_elapsed=pin.elapsed,
            pin_holder=pin.holder,
            pin_unassigned_warning=warn,
            points=points,
        )

    def points_for(self, competitor: Competitor) -> PointsSnapshot:
        return self.points[competitor]

    def to_dict(self) -> MatchStatePayload:
        """Broadcast payload for read-only viewers."""
        return {
            "clockRunning": self.clock_running,
            "clockRemainingMs": self.clock_remaining,
            "clockDisplay": format_clock(self.clock_remaining),
            "clockTenths": format_tenths(self.clock_remaining),
            "goldenScore": self.golden_score,
            "pinRunning": self.pin_running,
            "pinElapsedMs": self.pin_elapsed,
            "pinDisplay": format_seconds(self.pin_elapsed),
            "pinTenths": format_tenths(self.pin_elapsed),
            "pinHolder": None if self.pin_holder is None else int(self.pin_holder),
            "pinUnassignedWarning": self.pin_unassigned_warning,
            "points": {str(int(c)): self.points[c].to_dict() for c in Competitor},
        }
