"""Explicit subscription objects for SDK event callbacks.

SDK adapters wrap callback-style SDK objects with :class:`EventEmitter` so the
room controller receives a cancellable :class:`HandlerSubscription` from every
``on()`` call.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class HandlerSubscription:
    """Handle returned by :meth:`EventEmitter.on`; cancelling it unregisters the handler."""

    def __init__(self, emitter: "EventEmitter", event: str, handler: Handler) -> None:
        self.event = event
        self.handler = handler
        self._emitter = emitter
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._emitter._remove(self)


class EventEmitter:
    """Register handlers per event name and fan events out to them."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[HandlerSubscription]] = {}

    def on(self, event: str, handler: Handler) -> HandlerSubscription:
        subscription = HandlerSubscription(self, event, handler)
        self._handlers.setdefault(subscription.event, []).append(subscription)
        return subscription

    def emit(self, event: str, *args: Any) -> int:
        """Call every handler registered for ``event`` and return how many ran."""

        ran = 0
        for subscription in list(self._handlers.get(event, [])):
            if subscription.active:
                subscription.handler(*args)
                ran += 1
        return ran

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def _remove(self, subscription: HandlerSubscription) -> None:
        handlers = self._handlers.get(subscription.event)
        if not handlers:
            return
        try:
            handlers.remove(subscription)
        except ValueError:
            logger.debug("Subscription for %s already removed", subscription.event)
        if not handlers:
            self._handlers.pop(subscription.event, None)
