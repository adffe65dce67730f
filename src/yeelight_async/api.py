"""High-level API for finding Yeelight devices."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Any

from yeelight_async.const import DEFAULT_DISCOVERY_TIMEOUT
from yeelight_async.devices.light import Light
from yeelight_async.network.discovery import DeviceLocator


async def discover(
    timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    interface: str | None = None,
    **device_kwargs: Any,
) -> AsyncGenerator[Light, None]:
    """Discover lights on the local network.

    Lights are yielded as soon as they answer; they are not connected yet.

    Args:
        timeout: Listen window of each probe in seconds
        interface: Restrict discovery to this interface name
        **device_kwargs: Extra Light constructor arguments (timeout, ...)

    Yields:
        Light for each device found

    Example:
        ```python
        async for light in discover():
            async with light:
                await light.toggle()
        ```
    """
    locator = DeviceLocator(timeout=timeout)
    async with aclosing(locator.stream(interface)) as devices:
        async for device in devices:
            yield Light.from_discovered(device, **device_kwargs)


async def find_by_id(
    device_id: str,
    timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    interface: str | None = None,
) -> Light | None:
    """Find a light by its device id (e.g. "0x000000000015243f")."""
    async with aclosing(discover(timeout=timeout, interface=interface)) as lights:
        async for light in lights:
            if light.id is not None and light.id.lower() == device_id.lower():
                return light
    return None


async def find_by_hostname(
    hostname: str,
    timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    interface: str | None = None,
) -> Light | None:
    """Find a light by its IP address."""
    async with aclosing(discover(timeout=timeout, interface=interface)) as lights:
        async for light in lights:
            if light.hostname == hostname:
                return light
    return None
