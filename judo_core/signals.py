"""Signal sink for audible alerts (bell, unassigned-osaekomi reminder).

The core never plays sounds itself; collaborators subscribe and decide what to
do with each event. A viewer-only window simply never subscribes.
"""
from __future__ import annotations

import logging
from typing import Callable, List

from .types import Signal

logger = logging.getLogger(__name__)

SignalHandler = Callable[[Signal], None]


class SignalBus:
    """Fan-out of core signals to subscribed handlers."""

    def __init__(self) -> None:
        self._handlers: List[SignalHandler] = []

    def subscribe(self, handler: SignalHandler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, signal: Signal) -> None:
        logger.debug(f"Signal: {signal.value}")
        for handler in list(self._handlers):
            # A broken speaker must not stop the clock.
            try:
                handler(signal)
            except Exception:
                logger.exception(f"Signal handler failed for {signal.value}")
