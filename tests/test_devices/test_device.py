"""Tests for the Device base class."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from yeelight_async.devices.base import Device
from yeelight_async.exceptions import (
    YeelightConnectionError,
    YeelightDecodeError,
    YeelightUnsupportedCommandError,
)
from yeelight_async.network.discovery import DiscoveredDevice
from yeelight_async.protocol.codec import CommandResult
from yeelight_async.protocol.methods import Method
from yeelight_async.protocol.models import Model
from yeelight_async.protocol.properties import ALL_PROPERTIES, Property


def _device(bulb, **kwargs) -> Device:
    return Device("127.0.0.1", bulb.port, **kwargs)


class TestDeviceInit:
    """Tests for construction."""

    def test_defaults(self) -> None:
        """Test default attribute values."""
        device = Device("192.168.1.50")

        assert device.port == 55443
        assert device.model is Model.UNKNOWN
        assert device.supported_methods == []
        assert device.properties == {}
        assert device.is_connected is False

    def test_state_shared_with_connection(self) -> None:
        """Test that notifications and commands update the same store."""
        device = Device("192.168.1.50", properties={"power": "on"})

        assert device.connection.state is device.state
        assert device["power"] == "on"
        assert device[Property.BRIGHTNESS] is None

    def test_from_discovered(self) -> None:
        """Test building a device from a discovery descriptor."""
        descriptor = DiscoveredDevice(
            hostname="192.168.1.50",
            port=55444,
            id="0x000000000015243f",
            model=Model.COLOR,
            properties={"power": "off", "name": "hall"},
            supported_methods=(Method.GET_PROP, Method.SET_POWER),
        )

        device = Device.from_discovered(descriptor, timeout=1.0)

        assert device.hostname == "192.168.1.50"
        assert device.port == 55444
        assert device.id == "0x000000000015243f"
        assert device.name == "hall"
        assert device.supported_methods == [Method.GET_PROP, Method.SET_POWER]
        assert device.connection.default_timeout == 1.0

    def test_str_and_repr(self) -> None:
        """Test readable forms."""
        device = Device("192.168.1.50", model=Model.STRIPE)

        assert str(device) == "stripe (192.168.1.50:55443)"
        assert "hostname='192.168.1.50'" in repr(device)


class TestSupportedMethods:
    """Tests for rejecting unsupported methods."""

    def test_empty_list_allows_everything(self) -> None:
        """Test that a device without a method list accepts any method."""
        device = Device("192.168.1.50")

        assert device.is_method_supported(Method.SET_MUSIC) is True

    @pytest.mark.asyncio
    async def test_unsupported_rejected_before_io(self) -> None:
        """Test that an unsupported method never reaches the connection."""
        device = Device("192.168.1.50", supported_methods=[Method.GET_PROP])
        device.connection.request = AsyncMock()
        device.connection.send_command = AsyncMock()

        with pytest.raises(YeelightUnsupportedCommandError, match="set_power"):
            await device.execute_command_with_response(Method.SET_POWER, ["on"])
        with pytest.raises(YeelightUnsupportedCommandError):
            await device.execute_command(Method.TOGGLE)

        device.connection.request.assert_not_awaited()
        device.connection.send_command.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_supported_forwarded(self) -> None:
        """Test that a supported method is sent by wire name."""
        device = Device("192.168.1.50", supported_methods=[Method.TOGGLE])
        device.connection.send_command = AsyncMock(return_value=3)

        assert await device.execute_command(Method.TOGGLE) == 3
        device.connection.send_command.assert_awaited_once_with("toggle", None)


class TestGetProps:
    """Tests for property fetching."""

    @pytest.mark.asyncio
    async def test_requests_chunked(self) -> None:
        """Test that large selections are split into requests of 20 names."""
        device = Device("192.168.1.50")

        async def request(method, params, converter=None, timeout=None):
            return CommandResult(id=1, result=converter([f"v-{p}" for p in params]))

        device.connection.request = AsyncMock(side_effect=request)

        values = await device.get_props(ALL_PROPERTIES)

        calls = device.connection.request.await_args_list
        assert [len(call.args[1]) for call in calls] == [20, 3]
        assert all(call.args[0] == "get_prop" for call in calls)
        assert calls[0].args[1][0] == "power"
        assert len(values) == 23
        assert values[Property.ACTIVE_MODE] == "v-active_mode"
        assert device.state["nl_br"] == "v-nl_br"

    @pytest.mark.asyncio
    async def test_get_prop_single_value(self) -> None:
        """Test fetching one property."""
        device = Device("192.168.1.50")
        device.connection.request = AsyncMock(
            return_value=CommandResult(id=1, result=["42"])
        )

        assert await device.get_prop(Property.BRIGHTNESS) == "42"
        assert device["bright"] == "42"

    @pytest.mark.asyncio
    async def test_get_prop_wrong_count(self) -> None:
        """Test that anything but exactly one value gives None."""
        device = Device("192.168.1.50")
        device.connection.request = AsyncMock(
            return_value=CommandResult(id=1, result=[])
        )

        assert await device.get_prop(Property.BRIGHTNESS) is None

    @pytest.mark.asyncio
    async def test_non_list_result_rejected(self, bulb) -> None:
        """Test that a get_prop reply that is not a list is a decode error."""
        bulb.results["get_prop"] = {"power": "on"}
        device = _device(bulb)
        await device.connection.open()

        try:
            with pytest.raises(YeelightDecodeError):
                await device.get_prop(Property.POWER)
        finally:
            await device.disconnect()


class TestConnect:
    """Tests for connecting to a device."""

    @pytest.mark.asyncio
    async def test_connect_loads_properties(self, bulb) -> None:
        """Test that connect fetches every property."""
        device = _device(bulb)

        assert await device.connect() is True

        assert device.is_connected is True
        assert device.properties["power"] == "on"
        assert device.name == "bedroom"
        assert len(device.properties) == 23
        assert [len(r["params"]) for r in bulb.received] == [20, 3]

        await device.disconnect()
        assert device.is_connected is False

    @pytest.mark.asyncio
    async def test_connect_empty_fetch(self, bulb) -> None:
        """Test that an empty initial fetch closes the connection."""
        bulb.results["get_prop"] = []
        device = _device(bulb)

        assert await device.connect() is False
        assert device.is_connected is False

    @pytest.mark.asyncio
    async def test_connect_fetch_timeout(self, bulb) -> None:
        """Test that an unanswered initial fetch reports failure."""
        bulb.silent_methods.add("get_prop")
        device = _device(bulb, timeout=0.1)

        assert await device.connect() is False
        assert device.is_connected is False

    @pytest.mark.asyncio
    async def test_connect_fetch_error_object(self, bulb) -> None:
        """Test that an error reply to the initial fetch closes the connection."""
        bulb.errors["get_prop"] = {"code": -1, "message": "method not supported"}
        device = _device(bulb)

        assert await device.connect() is False
        assert device.connection.is_open is False
        assert device.is_connected is False
        assert device.connection.pending_requests == 0

    @pytest.mark.asyncio
    async def test_connect_fetch_malformed_result(self, bulb) -> None:
        """Test that a non-list fetch result closes the connection."""
        bulb.results["get_prop"] = {"power": "on"}
        device = _device(bulb)

        assert await device.connect() is False
        assert device.connection.is_open is False

    @pytest.mark.asyncio
    async def test_connect_stream_dropped_during_fetch(
        self, bulb, wait_until
    ) -> None:
        """Test that losing the stream during the initial fetch closes cleanly."""
        bulb.silent_methods.add("get_prop")
        device = _device(bulb, timeout=5.0, auto_reconnect=False)

        task = asyncio.create_task(device.connect())
        await wait_until(lambda: bulb.received)
        await bulb.drop_clients()

        assert await asyncio.wait_for(task, timeout=2.0) is False
        assert device.connection.is_open is False
        assert device.connection.pending_requests == 0

    @pytest.mark.asyncio
    async def test_context_manager_fetch_error(self, bulb) -> None:
        """Test that async with raises and leaves nothing open on a fetch error."""
        bulb.errors["get_prop"] = {"code": -1, "message": "method not supported"}
        device = _device(bulb)

        with pytest.raises(YeelightConnectionError, match="Unable to connect"):
            async with device:
                pass

        assert device.connection.is_open is False

    @pytest.mark.asyncio
    async def test_connect_refused(self, unused_port) -> None:
        """Test that an unreachable device raises."""
        device = Device("127.0.0.1", unused_port)

        with pytest.raises(YeelightConnectionError):
            await device.connect()

    @pytest.mark.asyncio
    async def test_context_manager(self, bulb) -> None:
        """Test connect and disconnect through async with."""
        async with _device(bulb) as device:
            assert device.is_connected is True

        assert device.is_connected is False

    @pytest.mark.asyncio
    async def test_context_manager_failure(self, bulb) -> None:
        """Test that async with raises when connect fails."""
        bulb.results["get_prop"] = []

        with pytest.raises(YeelightConnectionError, match="Unable to connect"):
            async with _device(bulb):
                pass

    @pytest.mark.asyncio
    async def test_notifications_exposed(self, bulb, wait_until) -> None:
        """Test that the device forwards connection notifications."""
        received = []

        async with _device(bulb) as device:
            device.notifications.subscribe(received.append)
            await bulb.push({"method": "props", "params": {"bright": "5"}})
            await wait_until(lambda: received)

            assert device["bright"] == "5"
