"""Domain events facade.

Publishes named events (``appointment.created`` ...) to in-process
subscribers such as notification or search-index adapters. Emission is
fire-and-forget: order is guaranteed, delivery is not.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], None]


class AppointmentEvents:
    CREATED = "appointment.created"
    UPDATED = "appointment.updated"
    DELETED = "appointment.deleted"


_handlers: dict[str, list[EventHandler]] = defaultdict(list)


def subscribe(event_name: str, handler: EventHandler) -> None:
    """Register a handler for an event name."""
    _handlers[event_name].append(handler)


def unsubscribe(event_name: str, handler: EventHandler) -> None:
    handlers = _handlers.get(event_name)
    if handlers and handler in handlers:
        handlers.remove(handler)


def clear_subscribers() -> None:
    _handlers.clear()


def build_payload(entity_id: Any, fields: list[str] | None = None) -> dict[str, Any]:
    """Event payload: ``{"id": ..., "fields": [...]}`` (fields only for updates)."""
    payload: dict[str, Any] = {"id": str(entity_id)}
    if fields is not None:
        payload["fields"] = list(fields)
    return payload


def emit(event_name: str, payload: dict[str, Any]) -> None:
    """Dispatch an event to its subscribers in registration order."""
    logger.info("Emitting %s", event_name, extra={"event": event_name, "entity_id": payload.get("id")})
    for handler in list(_handlers.get(event_name, ())):
        try:
            handler(event_name, payload)
        except Exception:
            # A failing subscriber must not undo an already committed booking
            logger.exception("Event handler failed for %s", event_name)
