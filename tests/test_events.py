"""Tests for EventBus and event types."""

from __future__ import annotations

import logging

import pytest

from driveshare.api.app import log_share_notification
from driveshare.events import DriveEvent, EventBus, EventType

# =========================================================================
# Helpers
# =========================================================================


def _grant_event(**details: object) -> DriveEvent:
    return DriveEvent(
        event_type=EventType.GRANT_CREATED,
        resource_id=7,
        resource_kind="folder",
        actor_id=1,
        grantee_email="alice@x.com",
        permission="edit",
        details=dict(details),
    )


async def _failing_handler(event: DriveEvent) -> None:
    """Handler that always raises."""
    raise RuntimeError(f"boom on {event.resource_id}")


# =========================================================================
# EventType
# =========================================================================


class TestEventType:
    def test_member_count(self) -> None:
        assert len(EventType) == 8

    def test_values(self) -> None:
        assert EventType.GRANT_CREATED.value == "grant_created"
        assert EventType.LINK_REVOKED.value == "link_revoked"
        assert EventType.RESOURCE_PURGED.value == "resource_purged"

    def test_unique_values(self) -> None:
        values = [et.value for et in EventType]
        assert len(values) == len(set(values))


# =========================================================================
# DriveEvent
# =========================================================================


class TestDriveEvent:
    def test_defaults(self) -> None:
        ev = DriveEvent(event_type=EventType.RESOURCE_TRASHED, resource_id=1, resource_kind="file")
        assert ev.actor_id is None
        assert ev.grantee_email is None
        assert ev.details == {}

    def test_immutable(self) -> None:
        ev = _grant_event()
        with pytest.raises(AttributeError):
            ev.resource_id = 8  # type: ignore[misc]


# =========================================================================
# EventBus
# =========================================================================


class TestEventBusRegistration:
    def test_register_and_unregister(self) -> None:
        bus = EventBus()
        assert bus.handler_count == 0
        bus.register(EventType.GRANT_CREATED, _failing_handler)
        bus.register(EventType.LINK_CREATED, _failing_handler)
        assert bus.handler_count == 2
        assert bus.unregister(EventType.GRANT_CREATED, _failing_handler) is True
        assert bus.unregister(EventType.GRANT_CREATED, _failing_handler) is False
        bus.clear()
        assert bus.handler_count == 0


class TestEventBusEmit:
    async def test_type_filtering_and_order(self) -> None:
        bus = EventBus()
        order: list[str] = []

        async def first(event: DriveEvent) -> None:
            order.append("first")

        async def second(event: DriveEvent) -> None:
            order.append("second")

        async def on_link(event: DriveEvent) -> None:
            order.append("link")

        bus.register(EventType.GRANT_CREATED, first)
        bus.register(EventType.GRANT_CREATED, second)
        bus.register(EventType.LINK_CREATED, on_link)
        await bus.emit(_grant_event())
        assert order == ["first", "second"]

    async def test_error_isolation(self) -> None:
        bus = EventBus()
        collected: list[DriveEvent] = []

        async def good_handler(event: DriveEvent) -> None:
            collected.append(event)

        bus.register(EventType.GRANT_CREATED, _failing_handler)
        bus.register(EventType.GRANT_CREATED, good_handler)
        await bus.emit(_grant_event())
        assert len(collected) == 1

    async def test_error_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        bus = EventBus()
        bus.register(EventType.GRANT_CREATED, _failing_handler)

        with caplog.at_level(logging.WARNING, logger="driveshare.events"):
            await bus.emit(_grant_event())

        assert "failed" in caplog.text
        assert "grant_created" in caplog.text


# =========================================================================
# Share notification handler
# =========================================================================


class TestShareNotification:
    async def test_logs_when_email_requested(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="driveshare.api.app"):
            await log_share_notification(_grant_event(send_email=True, resource_name="Team"))
        assert "alice@x.com" in caplog.text
        assert "'Team'" in caplog.text

    async def test_silent_without_email(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="driveshare.api.app"):
            await log_share_notification(_grant_event(send_email=False))
        assert caplog.text == ""
