"""Judo match rules state machine (pure, no UI/audio/network).

This module implements the scoring and timing rules of a judo match. It never
performs I/O: bells and reminders go out through a SignalBus, and observers
receive frozen snapshots through an injected publish callback.

Architecture:
- MatchState (clock + osaekomi timer + point ledger) is owned by one
  MatchStateMachine and replaced wholesale on reset_match()
- tick() advances both clocks by one tick_period and applies the point and
  clock-stopping rules that fall on that tick
- Operator transitions (hajime, matte, osaekomi, ...) are methods; every public
  method runs under one re-entrant lock, so a tick never interleaves with a
  transition

Key concepts:
- Osaekomi thresholds fire during tick() on exact equality. elapsed only moves
  one tick at a time, so each threshold fires exactly once per hold
- Reassigning the holder revokes what the old holder earned for the current
  elapsed time (>= comparison, highest category only) and re-awards it to the
  new holder, so the ledger always matches "holder's points for elapsed so far"
- Rules reloaded mid-match are validated immediately but only take effect on
  the next reset_match()
"""
from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, Mapping, Optional

from .rules import ConfigError, RuleConfig, load_rules, load_rules_json
from .signals import SignalBus
from .state import MatchSnapshot, MatchState
from .types import Competitor, PointCategory, Signal

logger = logging.getLogger(__name__)

PublishHook = Callable[[MatchSnapshot], None]


class InvalidArgument(ValueError):
    """An operation was called with a bad argument; state is unchanged."""


def coerce_competitor(value: Any) -> Competitor:
    if isinstance(value, Competitor):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"competitor must be 0 or 1, got {value!r}")
    try:
        return Competitor(value)
    except ValueError:
        raise InvalidArgument(f"competitor must be 0 or 1, got {value!r}") from None


def coerce_category(value: Any) -> PointCategory:
    """Accept a PointCategory, its judo name ("wazari") or its name ("major")."""
    if isinstance(value, PointCategory):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for category in PointCategory:
            if key in (category.value, category.name.lower()):
                return category
    raise InvalidArgument(f"unknown point category {value!r}")


def _coerce_duration(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer number of ms, got {value!r}")
    if value < 0:
        raise InvalidArgument(f"{name} must not be negative, got {value}")
    return value


def _crossed(before: int, after: int, multiple: Optional[int]) -> bool:
    """True when a count changed onto a positive multiple of the stop rule."""
    return (
        multiple is not None
        and before != after
        and after > 0
        and after % multiple == 0
    )


def _atomic(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class MatchStateMachine:
    """
    Clock, osaekomi timer and point ledger of one mat.

    Attributes:
        signals: bus receiving bell and reminder signals
    """

    def __init__(
        self,
        rules: "RuleConfig | Mapping[str, Any] | None" = None,
        *,
        signals: Optional[SignalBus] = None,
        publish: Optional[PublishHook] = None,
    ):
        self._rules = load_rules(rules)
        self._next_rules: Optional[RuleConfig] = None
        self.signals = signals or SignalBus()
        self._publish = publish
        self._lock = threading.RLock()
        self._state = MatchState.fresh(self._rules)

    # ------------------------------------------------------------------ rules

    @property
    def rules(self) -> RuleConfig:
        """Rules governing the current match."""
        return self._rules

    @property
    def next_rules(self) -> RuleConfig:
        """Rules the next reset_match() will use."""
        return self._next_rules or self._rules

    @_atomic
    def reload_rules(self, data: "RuleConfig | Mapping[str, Any] | str") -> RuleConfig:
        """Validate new rules and stage them for the next match.

        Raises:
            ConfigError: rules are invalid; the staged and active rules are kept
        """
        if isinstance(data, str):
            rules = load_rules_json(data)
        else:
            rules = load_rules(data)
        self._next_rules = rules
        logger.info("New rules staged; they apply from the next reset")
        return rules

    # ------------------------------------------------------------------- tick

    @_atomic
    def tick(self) -> None:
        """Advance the match by exactly one tick_period."""
        rules = self._rules
        period = rules.tick_period
        clock = self._state.clock
        pin = self._state.pin

        if clock.running:
            clock.remaining -= period
            # Golden score never expires on its own.
            if not clock.golden_score:
                if clock.remaining <= 0 and not pin.running:
                    clock.running = False
                    logger.info("Match time expired")
                    self.signals.emit(Signal.BELL_TIME_EXPIRED)
                if clock.remaining < 0:
                    clock.remaining = 0

        if pin.running:
            pin.elapsed += period

            if pin.holder is not None:
                self._award_pin_thresholds(pin.holder, pin.elapsed)

            max_time = rules.pin_max_time
            if max_time is not None:
                if pin.elapsed > max_time:
                    logger.warning(
                        f"Osaekomi elapsed {pin.elapsed}ms passed pin_max_time {max_time}ms; clamping"
                    )
                    pin.elapsed = max_time
                if pin.elapsed == max_time:
                    pin.running = False

            if pin.running and self._pin_needs_reminder():
                self.signals.emit(Signal.ERROR_UNASSIGNED_REMINDER)

    def _award_pin_thresholds(self, holder: Competitor, elapsed: int) -> None:
        # Thresholds are tick multiples, so the category changes exactly on
        # the tick where elapsed equals a configured threshold.
        reached = self._category_reached(elapsed)
        previous = self._category_reached(elapsed - self._rules.tick_period)
        if reached is None or reached is previous:
            return
        # upgrade: what this hold earned so far is replaced, not added to
        if previous is not None:
            self.revoke_point(holder, previous)
        self.award_point(holder, reached)

    def _pin_needs_reminder(self) -> bool:
        rules = self._rules
        pin = self._state.pin
        return (
            pin.holder is None
            and rules.pin_warn_unassigned is not None
            and rules.unassigned_reminder_period is not None
            and pin.elapsed > rules.pin_warn_unassigned
            and pin.elapsed % rules.unassigned_reminder_period == 0
        )

    # ----------------------------------------------------------------- points

    @_atomic
    def award_point(self, competitor: Any, category: Any) -> None:
        """Add one point and stop the clocks if a stop rule is crossed."""
        competitor = coerce_competitor(competitor)
        category = coerce_category(category)
        rules = self._rules
        score = self._state.score

        n_ippons_before = score.effective_ippons(competitor, rules.majors_per_ippon)
        n_majors_before = score.count(competitor, PointCategory.MAJOR)
        n_minors_before = score.count(competitor, PointCategory.MINOR)
        n_category4_before = score.count(competitor, PointCategory.CATEGORY4)

        score.add(competitor, category)
        logger.debug(f"Point {category.value} for competitor {int(competitor)}")

        n_ippons = score.effective_ippons(competitor, rules.majors_per_ippon)
        n_majors = score.count(competitor, PointCategory.MAJOR)
        n_minors = score.count(competitor, PointCategory.MINOR)
        n_category4 = score.count(competitor, PointCategory.CATEGORY4)

        clock_stop = (
            _crossed(n_ippons_before, n_ippons, rules.stop_clock_on_ippon_multiple)
            or _crossed(n_majors_before, n_majors, rules.stop_clock_on_major_multiple)
            or _crossed(
                n_minors_before, n_minors, rules.stop_clock_on_minor_category_multiple
            )
            or _crossed(
                n_category4_before, n_category4, rules.stop_clock_on_category4_multiple
            )
        )
        if clock_stop:
            self.signals.emit(Signal.BELL_POINT_STOP)
            self.stop_all()

        pin_stop = _crossed(
            n_ippons_before, n_ippons, rules.stop_pin_on_ippon_multiple
        ) or _crossed(n_majors_before, n_majors, rules.stop_pin_on_major_multiple)
        if pin_stop:
            self.signals.emit(Signal.BELL_POINT_STOP)
            self._state.pin.running = False

    @_atomic
    def revoke_point(self, competitor: Any, category: Any) -> None:
        """Remove one point (floored at zero). Never stops a clock."""
        competitor = coerce_competitor(competitor)
        category = coerce_category(category)
        self._state.score.remove(competitor, category)
        logger.debug(f"Point {category.value} revoked from competitor {int(competitor)}")

    @_atomic
    def effective_ippons(self, competitor: Any) -> int:
        competitor = coerce_competitor(competitor)
        return self._state.score.effective_ippons(competitor, self._rules.majors_per_ippon)

    # ------------------------------------------------------------ transitions

    @_atomic
    def start_main(self) -> None:
        """Hajime."""
        self._state.clock.running = True

    @_atomic
    def stop_all(self) -> None:
        """Matte: stop the main clock and the osaekomi timer."""
        self._state.clock.running = False
        self._state.pin.running = False

    @_atomic
    def start_pin(self) -> None:
        """Osaekomi. Starting the hold also restarts the main clock."""
        self._state.clock.running = True
        self._state.pin.running = True

    @_atomic
    def assign_pin_holder(self, competitor: Any, start_if_zero: bool = True) -> None:
        """
        Give the current osaekomi to a competitor (or to nobody with None).

        Order matters and is part of the contract:
            1. start the hold if it has not run yet and start_if_zero is set
            2. revoke what the previous holder earned for the elapsed time
            3. switch the holder
            4. award the new holder what the elapsed time is worth
        """
        new_holder = None if competitor is None else coerce_competitor(competitor)
        pin = self._state.pin

        if pin.elapsed == 0 and start_if_zero:
            self.start_pin()

        if pin.holder is not None:
            earned = self._category_reached(pin.elapsed)
            if earned is not None:
                self.revoke_point(pin.holder, earned)

        pin.holder = new_holder

        if new_holder is not None:
            earned = self._category_reached(pin.elapsed)
            if earned is not None:
                self.award_point(new_holder, earned)

    def _category_reached(self, elapsed: int) -> Optional[PointCategory]:
        """Highest category an osaekomi of this length is worth."""
        rules = self._rules
        if rules.pin_ippon_time is not None and elapsed >= rules.pin_ippon_time:
            return PointCategory.IPPON
        if rules.pin_major_time is not None and elapsed >= rules.pin_major_time:
            return PointCategory.MAJOR
        if rules.pin_minor_time is not None and elapsed >= rules.pin_minor_time:
            return PointCategory.MINOR
        return None

    @_atomic
    def pause_pin(self) -> None:
        """Toketa: stop the osaekomi timer only."""
        self._state.pin.running = False

    @_atomic
    def resume_pin(self) -> None:
        self.start_main()
        self.start_pin()

    @_atomic
    def reset_pin(self) -> None:
        """Clear the osaekomi timer. Points already awarded stay."""
        pin = self._state.pin
        pin.running = False
        pin.holder = None
        pin.elapsed = 0

    @_atomic
    def reset_match(self) -> None:
        """Start a new match, switching to staged rules if there are any."""
        if self._next_rules is not None:
            self._rules = self._next_rules
            self._next_rules = None
            logger.info("Staged rules are now active")
        self._state = MatchState.fresh(self._rules)
        logger.info(f"Match reset ({self._rules.total_time}ms)")

    @_atomic
    def set_golden_score(self, new_remaining: int = 0) -> None:
        """Stop everything and switch to golden score starting at new_remaining."""
        new_remaining = _coerce_duration(new_remaining, "new_remaining")
        self.stop_all()
        self._state.clock.remaining = new_remaining
        self._state.clock.golden_score = True
        logger.info("Golden score")

    @_atomic
    def set_main_clock(self, new_remaining: int) -> None:
        """Overwrite the main clock and leave golden score."""
        new_remaining = _coerce_duration(new_remaining, "new_remaining")
        self._state.clock.golden_score = False
        self._state.clock.remaining = new_remaining

    @_atomic
    def override_pin_elapsed(self, new_elapsed_ms: int) -> None:
        """Correct the osaekomi time; the holder's points follow the new value."""
        new_elapsed_ms = _coerce_duration(new_elapsed_ms, "new_elapsed_ms")
        period = self._rules.tick_period
        if new_elapsed_ms % period != 0:
            raise InvalidArgument(
                f"new_elapsed_ms={new_elapsed_ms} is not a multiple of tick_period={period}"
            )

        pin = self._state.pin
        holder = pin.holder
        self.assign_pin_holder(None, start_if_zero=False)

        max_time = self._rules.pin_max_time
        if max_time is not None and new_elapsed_ms >= max_time:
            new_elapsed_ms = max_time
            pin.running = False
        pin.elapsed = new_elapsed_ms

        self.assign_pin_holder(holder, start_if_zero=False)

    @_atomic
    def toggle_main(self) -> None:
        """Space bar: matte while running, otherwise clear osaekomi and hajime."""
        if self._state.clock.running:
            self.stop_all()
        else:
            self.reset_pin()
            self.start_main()

    @_atomic
    def toggle_pin(self) -> None:
        """Toketa while the hold runs, otherwise start a fresh osaekomi."""
        if self._state.pin.running:
            self.pause_pin()
        else:
            self.reset_pin()
            self.start_main()
            self.start_pin()

    @_atomic
    def toggle_pin_pause(self) -> None:
        if self._state.pin.running:
            self.pause_pin()
        else:
            self.resume_pin()

    # -------------------------------------------------------------- observers

    @_atomic
    def snapshot(self) -> MatchSnapshot:
        return MatchSnapshot.capture(self._state, self._rules)

    def transaction(self) -> threading.RLock:
        """Context manager holding the machine lock across several calls.

        No tick can run between operations made inside the block, e.g. a
        command and the snapshot describing its result.
        """
        return self._lock

    def publish_snapshot(self) -> MatchSnapshot:
        """Hand a fresh snapshot to the publish hook (if any) and return it."""
        snapshot = self.snapshot()
        if self._publish is not None:
            try:
                self._publish(snapshot)
            except Exception:
                logger.exception("Publishing match snapshot failed")
        return snapshot


__all__ = [
    "ConfigError",
    "InvalidArgument",
    "MatchStateMachine",
    "coerce_category",
    "coerce_competitor",
]
