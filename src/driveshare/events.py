"""EventBus and event types for sharing and lifecycle notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Kinds of committed changes handlers can subscribe to."""

    GRANT_CREATED = "grant_created"
    GRANT_UPDATED = "grant_updated"
    GRANT_REVOKED = "grant_revoked"
    LINK_CREATED = "link_created"
    LINK_REVOKED = "link_revoked"
    RESOURCE_TRASHED = "resource_trashed"
    RESOURCE_RESTORED = "resource_restored"
    RESOURCE_PURGED = "resource_purged"


@dataclass(frozen=True, slots=True)
class DriveEvent:
    """Immutable record of a committed sharing or lifecycle change.

    Attributes:
        event_type: The kind of change that occurred.
        resource_id: Id of the affected file or folder.
        resource_kind: ``"file"`` or ``"folder"``.
        actor_id: User who made the change, None for background sweeps.
        grantee_email: Grantee for grant events.
        permission: New permission for grant and link events.
        details: Extra event-specific values (e.g. ``send_email``).
    """

    event_type: EventType
    resource_id: int
    resource_kind: str
    actor_id: int | None = None
    grantee_email: str | None = None
    permission: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class EventBus:
    """Dispatches events to registered handlers.

    Handlers are called sequentially in registration order.
    Exceptions are logged but never propagated: a failing handler
    loses a notification, it does not undo the committed change.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Callable[..., Any]]] = {et: [] for et in EventType}

    def register(self, event_type: EventType, handler: Callable[..., Any]) -> None:
        """Append *handler* to the list for *event_type*."""
        self._handlers[event_type].append(handler)

    def unregister(self, event_type: EventType, handler: Callable[..., Any]) -> bool:
        """Remove first occurrence of *handler*. Return True if found."""
        handlers = self._handlers[event_type]
        try:
            handlers.remove(handler)
            return True
        except ValueError:
            return False

    async def emit(self, event: DriveEvent) -> None:
        """Dispatch *event* to all registered handlers for its type."""
        for handler in self._handlers[event.event_type]:
            try:
                await handler(event)
            except Exception:
                logger.warning(
                    "Handler %r failed for %s on %s %s",
                    handler,
                    event.event_type.value,
                    event.resource_kind,
                    event.resource_id,
                    exc_info=True,
                )

    @property
    def handler_count(self) -> int:
        """Total number of registered handlers across all event types."""
        return sum(len(h) for h in self._handlers.values())

    def clear(self) -> None:
        """Remove all registered handlers."""
        for handlers in self._handlers.values():
            handlers.clear()
