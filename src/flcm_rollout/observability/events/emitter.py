"""Observability events – EventEmitter.

In-process, synchronous notifications between components: the circuit
breaker, cohort manager, remote config client and metrics collector each
own an emitter, and the flag manager subscribes to them.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

from flcm_rollout.observability.logging import get_logger

Listener = Callable[[Any], None]

logger = get_logger(__name__)


class EventEmitter:
    """Named-event fan-out to synchronous listeners.

    Listeners run in registration order.  A failing listener is logged and
    skipped; it never prevents the remaining listeners from running and
    never propagates to the component that emitted the event.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Subscribe *listener* to *event*; returns an unsubscribe callable."""
        self._listeners[event].append(listener)
        return lambda: self.off(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, payload: Any = None) -> int:
        """Deliver *payload* to every listener of *event*; returns the count."""
        delivered = 0
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
                delivered += 1
            except Exception:  # noqa: BLE001
                logger.exception("events.listener_failed", event_name=event)
        return delivered

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def remove_all_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)


__all__ = ["EventEmitter", "Listener"]
