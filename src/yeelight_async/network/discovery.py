"""Device discovery over multicast.

A probe is sent from every usable local IPv4 address, several times in
parallel, and replies are collected for a short window. Replies are plain
text header blocks:

```
HTTP/1.1 200 OK
Location: yeelight://192.168.1.50:55443
id: 0x000000000015243f
model: color
fw_ver: 18
support: get_prop set_default set_power toggle set_bright ...
power: on
bright: 100
```
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import time
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field
from typing import Any

import netifaces

from yeelight_async.const import (
    DEFAULT_DISCOVERY_TIMEOUT,
    DISCOVERY_ATTEMPTS,
    DISCOVERY_LOCATION_PREFIX,
    DISCOVERY_MESSAGE,
    DISCOVERY_POLL_INTERVAL,
    VIRTUAL_INTERFACE_PREFIXES,
    YEELIGHT_DEFAULT_PORT,
)
from yeelight_async.events import EventStream
from yeelight_async.exceptions import YeelightNetworkError, YeelightTimeoutError
from yeelight_async.network.transport import MulticastTransport
from yeelight_async.protocol.methods import Method
from yeelight_async.protocol.models import Model
from yeelight_async.protocol.properties import Property

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredDevice:
    """Identity and last known state of a device found on the network.

    Descriptors are equal and hash alike when they share a hostname, which
    is the key discovery deduplicates on.

    Attributes:
        hostname: Device IP address
        port: Control port
        id: Device id (e.g. "0x000000000015243f")
        model: Model tag
        properties: Property values announced in the reply, by wire name
        supported_methods: Methods the device advertises
    """

    hostname: str
    port: int = YEELIGHT_DEFAULT_PORT
    id: str | None = None
    model: Model = Model.UNKNOWN
    properties: dict[str, Any] = field(default_factory=dict)
    supported_methods: tuple[Method, ...] = ()

    def __hash__(self) -> int:
        return hash(self.hostname)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DiscoveredDevice):
            return NotImplemented
        return self.hostname == other.hostname

    def __str__(self) -> str:
        return f"{self.model.value} ({self.hostname}:{self.port})"


def _parse_location(location: str) -> tuple[str | None, int]:
    parts = [part for part in location.strip().split(":") if part]
    host = parts[0] if parts else None
    port = YEELIGHT_DEFAULT_PORT
    if len(parts) == 2:
        try:
            port = int(parts[1])
        except ValueError:
            port = YEELIGHT_DEFAULT_PORT
    return host, port


def parse_discovery_response(message: str) -> DiscoveredDevice | None:
    """Parse a discovery reply into a descriptor.

    Args:
        message: Reply text

    Returns:
        DiscoveredDevice, or None if the reply carries no location
    """
    host: str | None = None
    port = YEELIGHT_DEFAULT_PORT
    device_id: str | None = None
    model = Model.UNKNOWN
    properties: dict[str, Any] = {}
    supported: list[Method] = []

    for line in message.splitlines():
        if not line:
            continue

        if line.startswith(DISCOVERY_LOCATION_PREFIX):
            host, port = _parse_location(line[len(DISCOVERY_LOCATION_PREFIX) :])
            continue

        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if Property.from_wire(key) is not None:
            properties[key] = value
        elif key == "id":
            device_id = value
        elif key == "model":
            model = Model.from_wire(value)
        elif key == "support":
            for token in value.split():
                method = Method.from_wire(token)
                if method is not None:
                    supported.append(method)

    if not host:
        return None

    return DiscoveredDevice(
        hostname=host,
        port=port,
        id=device_id,
        model=model,
        properties=properties,
        supported_methods=tuple(supported),
    )


def _is_virtual_interface(ifname: str) -> bool:
    return ifname.startswith(VIRTUAL_INTERFACE_PREFIXES)


def get_interface_addresses(interface: str | None = None) -> list[tuple[str, str]]:
    """List the local IPv4 addresses discovery probes are sent from.

    Loopback, virtual and tunnel interfaces are skipped, as are interfaces
    without an IPv4 gateway and link-local (169.254.0.0/16) addresses.

    netifaces does not expose interface flags, so whether an interface is
    administratively up is not checked directly. An interface that is down
    has no routes and therefore no gateway entry, which drops it here.

    Args:
        interface: Only consider this interface name (all if None)

    Returns:
        List of (interface name, IPv4 address) tuples
    """
    gateways = netifaces.gateways()
    gateway_interfaces = {entry[1] for entry in gateways.get(netifaces.AF_INET, [])}

    addresses: list[tuple[str, str]] = []
    for ifname in netifaces.interfaces():
        if interface is not None and ifname != interface:
            continue
        if _is_virtual_interface(ifname) or ifname not in gateway_interfaces:
            continue

        try:
            ifaddresses = netifaces.ifaddresses(ifname)
        except ValueError:
            # Interface disappeared between listing and lookup
            continue

        for addrinfo in ifaddresses.get(netifaces.AF_INET, []):
            address = addrinfo.get("addr")
            if not address:
                continue
            try:
                ip = ipaddress.IPv4Address(address)
            except ValueError:
                continue
            # No DHCP lease, or no carrier yet
            if ip.is_loopback or ip.is_link_local:
                continue
            addresses.append((ifname, address))

    _LOGGER.debug(
        {
            "function": "get_interface_addresses",
            "interface": interface,
            "addresses": addresses,
        }
    )
    return addresses


FoundCallback = Callable[[DiscoveredDevice], None]


class DeviceLocator:
    """Find devices on the local network.

    Every newly seen hostname is published once on :attr:`device_found`, in
    discovery order, while discovery is running.

    Example:
        ```python
        locator = DeviceLocator()
        locator.device_found.subscribe(lambda d: print("found", d))
        devices = await locator.discover()
        ```
    """

    def __init__(
        self,
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
        attempts: int = DISCOVERY_ATTEMPTS,
    ) -> None:
        """Initialize the locator.

        Args:
            timeout: Listen window of each probe in seconds
            attempts: Concurrent probes per local address
        """
        self.timeout = timeout
        self.attempts = attempts
        self.device_found: EventStream[DiscoveredDevice] = EventStream("device_found")

    async def discover(
        self,
        interface: str | None = None,
        on_found: FoundCallback | None = None,
    ) -> list[DiscoveredDevice]:
        """Probe every usable interface and collect the replies.

        Args:
            interface: Restrict discovery to this interface name
            on_found: Extra callback for devices found by this call only

        Returns:
            One descriptor per distinct hostname, in discovery order
        """
        addresses = get_interface_addresses(interface)
        found: dict[str, DiscoveredDevice] = {}

        probes = [
            self._probe(address, found, on_found)
            for _ifname, address in addresses
            for _ in range(self.attempts)
        ]
        if probes:
            await asyncio.gather(*probes)

        _LOGGER.debug(
            {
                "class": "DeviceLocator",
                "method": "discover",
                "interface": interface,
                "addresses": len(addresses),
                "devices": len(found),
            }
        )
        return list(found.values())

    async def stream(
        self, interface: str | None = None
    ) -> AsyncGenerator[DiscoveredDevice, None]:
        """Yield devices as they are found.

        Args:
            interface: Restrict discovery to this interface name

        Yields:
            DiscoveredDevice for each newly seen hostname
        """
        queue: asyncio.Queue[DiscoveredDevice | None] = asyncio.Queue()
        task = asyncio.create_task(self.discover(interface, on_found=queue.put_nowait))
        task.add_done_callback(lambda _: queue.put_nowait(None))

        try:
            while (device := await queue.get()) is not None:
                yield device
            await task
        finally:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    async def _probe(
        self,
        local_address: str,
        found: dict[str, DiscoveredDevice],
        on_found: FoundCallback | None,
    ) -> None:
        """Send one probe from a local address and collect replies."""
        try:
            async with MulticastTransport(local_address) as transport:
                await transport.send(DISCOVERY_MESSAGE)
                deadline = time.monotonic() + self.timeout

                while True:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    try:
                        data, addr = await transport.receive(
                            timeout=min(DISCOVERY_POLL_INTERVAL, remaining)
                        )
                    except YeelightTimeoutError:
                        continue
                    self._handle_response(data, addr, found, on_found)
        except YeelightNetworkError as e:
            _LOGGER.debug(
                {
                    "class": "DeviceLocator",
                    "method": "_probe",
                    "action": "skipped",
                    "local_address": local_address,
                    "error": str(e),
                }
            )

    def _handle_response(
        self,
        data: bytes,
        addr: tuple[str, int],
        found: dict[str, DiscoveredDevice],
        on_found: FoundCallback | None,
    ) -> None:
        device = parse_discovery_response(data.decode("utf-8", errors="replace"))
        if device is None:
            _LOGGER.debug(
                {
                    "class": "DeviceLocator",
                    "method": "_handle_response",
                    "action": "ignored",
                    "source": addr[0],
                }
            )
            return

        if device.hostname in found:
            return

        found[device.hostname] = device
        _LOGGER.debug(
            {
                "class": "DeviceLocator",
                "method": "_handle_response",
                "action": "found",
                "hostname": device.hostname,
                "port": device.port,
                "id": device.id,
                "model": device.model.value,
            }
        )
        self.device_found.publish(device)
        if on_found is not None:
            on_found(device)


async def discover_devices(
    timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    interface: str | None = None,
    attempts: int = DISCOVERY_ATTEMPTS,
) -> list[DiscoveredDevice]:
    """Discover devices on the local network.

    Args:
        timeout: Listen window of each probe in seconds
        interface: Restrict discovery to this interface name
        attempts: Concurrent probes per local address

    Returns:
        One DiscoveredDevice per distinct hostname
    """
    locator = DeviceLocator(timeout=timeout, attempts=attempts)
    return await locator.discover(interface)
