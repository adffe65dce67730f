"""Yeelight device classes."""

from __future__ import annotations

from yeelight_async.devices.base import Device
from yeelight_async.devices.light import Light

__all__ = [
    "Device",
    "Light",
]
