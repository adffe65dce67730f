"""Multicast UDP transport for discovery probes."""

from __future__ import annotations

import asyncio
import logging
import socket
import struct
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Self

from yeelight_async.const import MULTICAST_ADDRESS, MULTICAST_PORT, MULTICAST_TTL
from yeelight_async.exceptions import YeelightNetworkError, YeelightTimeoutError

_LOGGER = logging.getLogger(__name__)


class _DiscoveryProtocol(asyncio.DatagramProtocol):
    """Queue every datagram received on the probe socket."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue[tuple[bytes, tuple[str, int]]] = asyncio.Queue()
        self._transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self.queue.put_nowait((data, addr))

    def error_received(self, exc: Exception) -> None:
        _LOGGER.debug(
            {
                "class": "_DiscoveryProtocol",
                "method": "error_received",
                "error": str(exc),
            }
        )

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            _LOGGER.debug(
                {
                    "class": "_DiscoveryProtocol",
                    "method": "connection_lost",
                    "error": str(exc),
                }
            )


class MulticastTransport:
    """UDP socket bound to one local address and joined to the discovery group.

    Example:
        ```python
        async with MulticastTransport("192.168.1.20") as transport:
            await transport.send(DISCOVERY_MESSAGE)
            data, addr = await transport.receive(timeout=1.0)
        ```
    """

    def __init__(
        self,
        local_address: str = "0.0.0.0",  # nosec
        group: str = MULTICAST_ADDRESS,
        port: int = MULTICAST_PORT,
    ) -> None:
        """Initialize the transport.

        Args:
            local_address: IPv4 address of the interface to probe from
            group: Multicast group address
            port: Multicast group port
        """
        self.local_address = local_address
        self.group = group
        self.port = port
        self._socket: socket.socket | None = None
        self._transport: asyncio.DatagramTransport | None = None
        self._protocol: _DiscoveryProtocol | None = None

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._protocol is not None

    def _membership(self) -> bytes:
        return struct.pack(
            "4s4s", socket.inet_aton(self.group), socket.inet_aton(self.local_address)
        )

    async def open(self) -> None:
        """Bind the socket and join the multicast group.

        Raises:
            YeelightNetworkError: If the socket cannot be bound or joined
        """
        if self.is_open:
            return

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, MULTICAST_TTL)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 0)
            sock.bind((self.local_address, 0))
            sock.setsockopt(
                socket.IPPROTO_IP,
                socket.IP_MULTICAST_IF,
                socket.inet_aton(self.local_address),
            )
            sock.setsockopt(
                socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, self._membership()
            )
            sock.setblocking(False)

            loop = asyncio.get_running_loop()
            transport, protocol = await loop.create_datagram_endpoint(
                _DiscoveryProtocol, sock=sock
            )
        except OSError as e:
            sock.close()
            raise YeelightNetworkError(
                f"Cannot open discovery socket on {self.local_address}: {e}"
            ) from e

        self._socket = sock
        self._transport = transport
        self._protocol = protocol
        _LOGGER.debug(
            {
                "class": "MulticastTransport",
                "method": "open",
                "local_address": self.local_address,
                "group": self.group,
            }
        )

    async def send(self, data: bytes, address: tuple[str, int] | None = None) -> None:
        """Send a datagram, to the multicast group by default.

        Raises:
            YeelightNetworkError: If the socket is not open or the send fails
        """
        if self._protocol is None or self._transport is None:
            raise YeelightNetworkError("Socket not open")

        try:
            self._transport.sendto(data, address or (self.group, self.port))
        except OSError as e:
            raise YeelightNetworkError(f"Failed to send: {e}") from e

    async def receive(self, timeout: float = 1.0) -> tuple[bytes, tuple[str, int]]:
        """Receive one datagram.

        Args:
            timeout: Seconds to wait

        Returns:
            Tuple of (data, sender address)

        Raises:
            YeelightNetworkError: If the socket is not open
            YeelightTimeoutError: If nothing arrives within the timeout
        """
        if self._protocol is None:
            raise YeelightNetworkError("Socket not open")

        try:
            return await asyncio.wait_for(self._protocol.queue.get(), timeout=timeout)
        except TimeoutError as e:
            raise YeelightTimeoutError(
                f"No discovery data received within {timeout}s"
            ) from e

    async def close(self) -> None:
        """Leave the multicast group and close the socket."""
        if self._socket is not None:
            try:
                self._socket.setsockopt(
                    socket.IPPROTO_IP, socket.IP_DROP_MEMBERSHIP, self._membership()
                )
            except OSError:
                # The socket may already be unusable (interface went down)
                pass

        if self._transport is not None:
            self._transport.close()
        elif self._socket is not None:
            self._socket.close()

        self._transport = None
        self._protocol = None
        self._socket = None
