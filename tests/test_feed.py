"""Tests for the live booking feed."""

from __future__ import annotations

import asyncio

import pytest

from front_desk_sync.errors import ServerError
from front_desk_sync.sync.feed import LiveBookingFeed, parse_shape_rows
from front_desk_sync.sync.models import Scope

SCOPE = Scope(hotel_id="h1", today="2024-01-01")


class TestParseShapeRows:
    def test_plain_rows(self, booking_row):
        rows = [booking_row("1", "Alice"), booking_row("2", "Bob")]
        assert [b.guest_name for b in parse_shape_rows(rows)] == ["Alice", "Bob"]

    def test_shape_log_messages(self, booking_row):
        payload = [
            {"key": "1", "value": booking_row("1", "Alice"), "headers": {"operation": "insert"}},
            {"key": "2", "value": booking_row("2", "Bob"), "headers": {"operation": "insert"}},
            {"key": "1", "value": {"status": "checked_in", "room_number": 4}, "headers": {"operation": "update"}},
            {"key": "2", "headers": {"operation": "delete"}},
            {"headers": {"control": "up-to-date"}},
        ]

        bookings = parse_shape_rows(payload)

        assert len(bookings) == 1
        assert bookings[0].id == "1"
        assert bookings[0].status.value == "checked_in"
        assert bookings[0].room_number == 4
        assert bookings[0].guest_name == "Alice"

    def test_empty_list(self):
        assert parse_shape_rows([]) == []

    def test_non_list_rejected(self):
        with pytest.raises(ValueError):
            parse_shape_rows({"rows": []})

    def test_non_object_row_rejected(self):
        with pytest.raises(ValueError):
            parse_shape_rows(["oops"])

    def test_invalid_row_rejects_whole_payload(self, booking_row):
        bad = booking_row("2", "Bob")
        del bad["status"]
        with pytest.raises(ValueError):
            parse_shape_rows([booking_row("1", "Alice"), bad])


class TestRefresh:
    async def test_delivery_marks_connected(self, fake_client, monitor, booking_row):
        fake_client.bookings = [booking_row("1", "Alice"), booking_row("2", "Eve", hotel_id="h2")]
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        seen = []
        feed.subscribe(seen.append)

        assert await feed.refresh() is True

        assert feed.is_connected is True
        assert [b.id for b in feed.bookings] == ["1"]
        assert len(seen) == 1
        assert monitor.is_offline is False

    async def test_not_live_before_first_delivery(self, fake_client, monitor):
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        assert feed.bookings is None
        assert feed.is_connected is False

    async def test_transport_failure_drops_live_data(self, fake_client, monitor, booking_row):
        fake_client.bookings = [booking_row("1", "Alice")]
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        await feed.refresh()
        fake_client.offline = True

        assert await feed.refresh() is False

        assert feed.is_connected is False
        assert feed.bookings is None
        assert monitor.is_offline is True

    async def test_server_error_keeps_previous_data(self, fake_client, monitor, booking_row):
        fake_client.bookings = [booking_row("1", "Alice")]
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        await feed.refresh()

        def _fail(hotel_id, today):
            raise ServerError(502, "Bad Gateway")

        fake_client.get_booking_shape = _fail
        assert await feed.refresh() is False
        assert [b.id for b in feed.bookings] == ["1"]
        assert feed.is_connected is True

    async def test_malformed_delivery_discarded(self, fake_client, monitor, booking_row):
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        seen = []
        feed.subscribe(seen.append)
        fake_client.get_booking_shape = lambda hotel_id, today: [{"id": "1"}]

        assert await feed.refresh() is False
        assert feed.bookings is None
        assert seen == []

    async def test_bookings_returns_copy(self, fake_client, monitor, booking_row):
        fake_client.bookings = [booking_row("1", "Alice")]
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        await feed.refresh()
        feed.bookings.clear()
        assert len(feed.bookings) == 1


class TestRunLoop:
    async def test_reconnect_wakes_loop(self, fake_client, monitor):
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        task = asyncio.create_task(feed.run(60))
        try:
            await asyncio.sleep(0.05)
            assert fake_client.shape_calls == 1
            feed.reconnect()
            for _ in range(50):
                if fake_client.shape_calls >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        assert fake_client.shape_calls == 2

    async def test_host_up_forces_reconnect(self, fake_client, monitor):
        feed = LiveBookingFeed(fake_client, monitor, SCOPE)
        monitor.add_reconnect_hook(feed.reconnect)
        task = asyncio.create_task(feed.run(60))
        try:
            await asyncio.sleep(0.05)
            monitor.host_network_up()
            for _ in range(50):
                if fake_client.shape_calls >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        assert fake_client.shape_calls == 2
