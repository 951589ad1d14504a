"""
Catch-up tick driver.

Runs MatchStateMachine.tick() on a fixed period measured against a monotonic
clock. When the driver is woken late it runs every tick that is due before
publishing, so the simulated match time never drifts from wall-clock time
(at the cost of a burst of ticks after a stall).
"""

import logging
import threading
import time
from typing import Callable, Optional

from .match import MatchStateMachine

logger = logging.getLogger(__name__)

# Invocations before lag warnings start (startup jitter is expected).
WARMUP_CALLS = 1000
STATS_EVERY = 1000


class TickDriver:
    """Fixed-period scheduler that compensates for delays.

    Args:
        machine: the state machine to advance
        clock: monotonic time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        machine: MatchStateMachine,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.machine = machine
        self._clock = clock
        self._next_tick_ms: Optional[float] = None
        self._first_tick_ms: Optional[float] = None
        self._n_calls = 0
        self._max_lag_reported = 0.0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def period_ms(self) -> int:
        return self.machine.rules.tick_period

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def run_pending(self) -> int:
        """
        Run every tick due by now, then publish one snapshot.

        Returns:
            Number of ticks run (0 when woken early, >1 when catching up)
        """
        now = self._now_ms()
        if self._next_tick_ms is None:
            self._next_tick_ms = now
            self._first_tick_ms = now

        self._n_calls += 1
        if self._n_calls % STATS_EVERY == 0:
            average = (now - self._first_tick_ms) / self._n_calls
            logger.debug(f"Average call frequency: {average:.2f}ms")

        period = self.period_ms
        lag = now - self._next_tick_ms
        if (
            lag >= period * 1.1
            and lag > self._max_lag_reported
            and self._n_calls >= WARMUP_CALLS
        ):
            self._max_lag_reported = lag
            logger.warning(
                f"Tick driver is behind: ticks every {period}ms, now={now:.1f}ms, "
                f"next tick was due at {self._next_tick_ms:.1f}ms (lag {lag:.1f}ms)"
            )

        ticks = 0
        while self._next_tick_ms <= now:
            self.machine.tick()
            self._next_tick_ms += period
            ticks += 1

        self.machine.publish_snapshot()
        return ticks

    def seconds_until_next_tick(self) -> float:
        if self._next_tick_ms is None:
            return 0.0
        return max(0.0, self._next_tick_ms - self._now_ms()) / 1000.0

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Drive the machine until stop_event is set."""
        stop_event = stop_event or self._stop
        while not stop_event.is_set():
            self.run_pending()
            stop_event.wait(self.seconds_until_next_tick())

    def start(self) -> threading.Thread:
        """Run the driver on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop,), name="judo-tick-driver", daemon=True
        )
        self._thread.start()
        logger.info(f"Tick driver started ({self.period_ms}ms period)")
        return self._thread

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                # keep the handle so start() cannot launch a second driver
                logger.warning("Tick driver thread did not stop within timeout")
                return
            self._thread = None
            logger.info("Tick driver stopped")


__all__ = ["TickDriver"]
