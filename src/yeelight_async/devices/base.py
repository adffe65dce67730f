"""Base device class for Yeelight devices."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import Self

from yeelight_async.const import (
    DEFAULT_MAX_RECONNECT_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    MAX_PROPERTIES_PER_REQUEST,
    YEELIGHT_DEFAULT_PORT,
)
from yeelight_async.events import EventStream
from yeelight_async.exceptions import (
    YeelightConnectionError,
    YeelightError,
    YeelightUnsupportedCommandError,
)
from yeelight_async.network.connection import DeviceConnection
from yeelight_async.network.correlator import ResultConverter
from yeelight_async.network.discovery import DiscoveredDevice
from yeelight_async.protocol.codec import CommandResult, Notification
from yeelight_async.protocol.methods import Method
from yeelight_async.protocol.models import Model
from yeelight_async.protocol.properties import ALL_PROPERTIES, Property, ordered
from yeelight_async.state import DeviceState

_LOGGER = logging.getLogger(__name__)


def _as_list(value: Any) -> list[Any]:
    if not isinstance(value, list):
        raise TypeError(f"Expected a list, got {type(value).__name__}")
    return value


class Device:
    """A Yeelight device reachable over the control protocol.

    The device owns a :class:`DeviceConnection` and the :class:`DeviceState`
    the connection keeps up to date from notifications.

    Attributes:
        hostname: Device IP address
        port: Control port
        id: Device id, if known
        model: Model tag
        supported_methods: Methods the device advertised (empty if unknown)
        state: Last known property values
        connection: The underlying connection

    Example:
        ```python
        async with Device("192.168.1.50") as device:
            print(device.properties)
            power = await device.get_prop(Property.POWER)
        ```
    """

    def __init__(
        self,
        hostname: str,
        port: int = YEELIGHT_DEFAULT_PORT,
        id: str | None = None,
        model: Model = Model.UNKNOWN,
        properties: dict[str, Any] | None = None,
        supported_methods: Iterable[Method] | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        auto_reconnect: bool = True,
        max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
    ) -> None:
        """Initialize the device. Nothing is opened until connect().

        Args:
            hostname: Device IP address or hostname
            port: Control port (default YEELIGHT_DEFAULT_PORT)
            id: Device id, if known
            model: Model tag
            properties: Initial property values by wire name
            supported_methods: Methods the device supports (all if empty)
            timeout: Default request timeout in seconds
            auto_reconnect: Reconnect automatically when the connection drops
            max_reconnect_attempts: Failed reconnects before giving up
        """
        self.hostname = hostname
        self.port = port
        self.id = id
        self.model = model
        self.supported_methods: list[Method] = list(supported_methods or [])
        self.state = DeviceState(properties)
        self.connection = DeviceConnection(
            hostname,
            port,
            timeout=timeout,
            auto_reconnect=auto_reconnect,
            max_reconnect_attempts=max_reconnect_attempts,
            state=self.state,
        )

    @classmethod
    def from_discovered(cls, device: DiscoveredDevice, **kwargs: Any) -> Self:
        """Create a device from a discovery descriptor.

        Args:
            device: Descriptor returned by discovery
            **kwargs: Extra constructor arguments (timeout, auto_reconnect, ...)
        """
        return cls(
            hostname=device.hostname,
            port=device.port,
            id=device.id,
            model=device.model,
            properties=dict(device.properties),
            supported_methods=device.supported_methods,
            **kwargs,
        )

    async def __aenter__(self) -> Self:
        """Enter async context manager and connect."""
        if not await self.connect():
            raise YeelightConnectionError(f"Unable to connect to {self}")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager and disconnect."""
        await self.disconnect()

    def __str__(self) -> str:
        return f"{self.model.value} ({self.hostname}:{self.port})"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(hostname={self.hostname!r}, port={self.port}, "
            f"id={self.id!r}, model={self.model})"
        )

    def __getitem__(self, key: Property | str) -> Any:
        """Return a property value by Property or wire name (None if unknown)."""
        return self.state.get(key)

    @property
    def properties(self) -> dict[str, Any]:
        """Snapshot of the last known property values."""
        return self.state.snapshot()

    @property
    def name(self) -> str | None:
        """Device name, as set with set_name."""
        return self.state.get(Property.NAME)

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    @property
    def notifications(self) -> EventStream[Notification]:
        """Notifications received from the device."""
        return self.connection.notifications

    @property
    def errors(self) -> EventStream[Exception]:
        """Errors raised while reading from the device."""
        return self.connection.errors

    async def connect(self) -> bool:
        """Connect and load every property.

        Returns:
            True if the connection is alive and the initial property fetch
            returned values. False otherwise, including when the fetch times
            out or the device answers with an error (the connection is
            closed again)

        Raises:
            YeelightConnectionError: If the TCP connection cannot be opened
        """
        if not await self.connection.open():
            return False

        try:
            props = await self.get_all_props()
        except YeelightError as e:
            _LOGGER.debug(
                {
                    "class": self.__class__.__name__,
                    "method": "connect",
                    "action": "initial_fetch_failed",
                    "hostname": self.hostname,
                    "error": str(e),
                }
            )
            props = {}

        if not props:
            await self.connection.close()
            return False

        _LOGGER.debug(
            {
                "class": self.__class__.__name__,
                "method": "connect",
                "hostname": self.hostname,
                "port": self.port,
                "properties": len(props),
            }
        )
        return True

    async def disconnect(self) -> None:
        """Close the connection."""
        await self.connection.close()

    def is_method_supported(self, method: Method) -> bool:
        """Whether a method may be sent to this device.

        A device that advertised no methods is assumed to support all of them.
        """
        if not self.supported_methods:
            return True
        return method in self.supported_methods

    def _ensure_supported(self, method: Method) -> None:
        if not self.is_method_supported(method):
            raise YeelightUnsupportedCommandError(
                f"The operation {method.wire_name} is not allowed by {self}"
            )

    async def execute_command(
        self, method: Method, params: list[Any] | None = None
    ) -> int:
        """Send a command without waiting for its result.

        Returns:
            Request id of the command

        Raises:
            YeelightUnsupportedCommandError: If the device doesn't support it
            YeelightNotConnectedError: If the device is not connected
        """
        self._ensure_supported(method)
        return await self.connection.send_command(method.wire_name, params)

    async def execute_command_with_response(
        self,
        method: Method,
        params: list[Any] | None = None,
        converter: ResultConverter | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Send a command and wait for its result.

        Args:
            method: Method to invoke
            params: Method parameters
            converter: Optional callable applied to the result payload
            timeout: Seconds to wait (connection default if None)

        Raises:
            YeelightUnsupportedCommandError: If the device doesn't support it
            YeelightTimeoutError: If no result arrives in time
            YeelightProtocolError: If the device returned an error
            YeelightConnectionError: If the connection is not usable
        """
        self._ensure_supported(method)
        return await self.connection.request(
            method.wire_name, params, converter=converter, timeout=timeout
        )

    async def get_prop(self, prop: Property) -> Any:
        """Fetch a single property value.

        Returns:
            The value, or None if the device returned no value
        """
        result = await self.execute_command_with_response(
            Method.GET_PROP, [prop.wire_name], converter=_as_list
        )
        values = result.result
        if len(values) != 1:
            return None
        self.state.merge({prop: values[0]})
        return values[0]

    async def get_props(
        self, props: Iterable[Property] = ALL_PROPERTIES
    ) -> dict[Property, Any]:
        """Fetch several property values and update the state.

        Requests are split so that no more than MAX_PROPERTIES_PER_REQUEST
        names are sent at once.

        Args:
            props: Properties to fetch (all by default)

        Returns:
            Values keyed by Property, in declaration order
        """
        selected = ordered(props)
        values: list[Any] = []
        for start in range(0, len(selected), MAX_PROPERTIES_PER_REQUEST):
            chunk = selected[start : start + MAX_PROPERTIES_PER_REQUEST]
            result = await self.execute_command_with_response(
                Method.GET_PROP,
                [prop.wire_name for prop in chunk],
                converter=_as_list,
            )
            values.extend(result.result)

        fetched = dict(zip(selected, values, strict=False))
        self.state.merge(fetched)
        return fetched

    async def get_all_props(self) -> dict[Property, Any]:
        """Fetch every property."""
        return await self.get_props(ALL_PROPERTIES)
