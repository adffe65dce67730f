"""yeelight-async

Async library for controlling Yeelight devices on the local network.
"""

from __future__ import annotations

from importlib.metadata import version as get_version

from yeelight_async.api import discover, find_by_hostname, find_by_id
from yeelight_async.devices import Device, Light
from yeelight_async.events import EventStream
from yeelight_async.exceptions import (
    YeelightCodecError,
    YeelightConnectionError,
    YeelightDecodeError,
    YeelightEncodeError,
    YeelightError,
    YeelightNetworkError,
    YeelightNotConnectedError,
    YeelightProtocolError,
    YeelightRequestCancelledError,
    YeelightTimeoutError,
    YeelightUnsupportedCommandError,
)
from yeelight_async.network.connection import ConnectionMetrics, DeviceConnection
from yeelight_async.network.discovery import (
    DeviceLocator,
    DiscoveredDevice,
    discover_devices,
)
from yeelight_async.protocol import (
    ALL_PROPERTIES,
    NO_PROPERTIES,
    CommandResult,
    Method,
    Model,
    Notification,
    Property,
)
from yeelight_async.state import DeviceState

__version__ = get_version("yeelight-async")  # type: ignore

__all__ = [
    # Version
    "__version__",
    # Devices
    "Device",
    "Light",
    "DeviceState",
    # High-level API
    "discover",
    "find_by_id",
    "find_by_hostname",
    # Discovery (low-level)
    "DeviceLocator",
    "DiscoveredDevice",
    "discover_devices",
    # Connection (low-level)
    "DeviceConnection",
    "ConnectionMetrics",
    "EventStream",
    # Protocol
    "Method",
    "Model",
    "Property",
    "ALL_PROPERTIES",
    "NO_PROPERTIES",
    "CommandResult",
    "Notification",
    # Exceptions
    "YeelightError",
    "YeelightCodecError",
    "YeelightEncodeError",
    "YeelightDecodeError",
    "YeelightConnectionError",
    "YeelightNotConnectedError",
    "YeelightNetworkError",
    "YeelightRequestCancelledError",
    "YeelightTimeoutError",
    "YeelightProtocolError",
    "YeelightUnsupportedCommandError",
]
