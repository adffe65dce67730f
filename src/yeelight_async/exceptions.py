"""yeelight-async exceptions."""

from __future__ import annotations


class YeelightError(Exception):
    """Base exception for all yeelight-async errors."""


class YeelightCodecError(YeelightError):
    """Raised when a message cannot be converted to or from the wire format."""


class YeelightEncodeError(YeelightCodecError):
    """Raised when a command contains a parameter that cannot be encoded."""


class YeelightDecodeError(YeelightCodecError):
    """Raised when an inbound line is not a valid result or notification."""


class YeelightConnectionError(YeelightError):
    """Raised when the connection to a device fails or drops."""


class YeelightNotConnectedError(YeelightConnectionError):
    """Raised when sending without an open connection."""


class YeelightNetworkError(YeelightError):
    """Raised when a discovery socket cannot be used."""


class YeelightRequestCancelledError(YeelightError):
    """Raised when a pending request is cancelled before a result arrives.

    This is a cancellation outcome, not a fault reported by the device.
    """


class YeelightTimeoutError(YeelightRequestCancelledError):
    """Raised when no result arrives within the request timeout."""


class YeelightProtocolError(YeelightError):
    """Raised when the device answers a command with an error object.

    Attributes:
        code: Error code reported by the device
        message: Error message reported by the device
    """

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"{code} - {message}")
        self.code = code
        self.message = message


class YeelightUnsupportedCommandError(YeelightError):
    """Raised when a method is not in the device's supported method list."""
