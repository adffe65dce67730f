"""Yeelight wire protocol: identifiers and line codec."""

from __future__ import annotations

from yeelight_async.protocol.codec import (
    Command,
    CommandError,
    CommandResult,
    LineBuffer,
    Notification,
    decode_command,
    decode_line,
    encode,
)
from yeelight_async.protocol.methods import Method
from yeelight_async.protocol.models import Model
from yeelight_async.protocol.properties import (
    ALL_PROPERTIES,
    NO_PROPERTIES,
    Property,
    PropertySet,
)

__all__ = [
    "ALL_PROPERTIES",
    "NO_PROPERTIES",
    "Command",
    "CommandError",
    "CommandResult",
    "LineBuffer",
    "Method",
    "Model",
    "Notification",
    "Property",
    "PropertySet",
    "decode_command",
    "decode_line",
    "encode",
]
