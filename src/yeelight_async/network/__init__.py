"""Connection and discovery for Yeelight devices."""

from __future__ import annotations

from yeelight_async.network.connection import ConnectionMetrics, DeviceConnection
from yeelight_async.network.correlator import PendingRequest, RequestCorrelator
from yeelight_async.network.discovery import (
    DeviceLocator,
    DiscoveredDevice,
    discover_devices,
    parse_discovery_response,
)
from yeelight_async.network.transport import MulticastTransport

__all__ = [
    "ConnectionMetrics",
    "DeviceConnection",
    "DeviceLocator",
    "DiscoveredDevice",
    "MulticastTransport",
    "PendingRequest",
    "RequestCorrelator",
    "discover_devices",
    "parse_discovery_response",
]
