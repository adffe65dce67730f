"""Line codec for the Yeelight control protocol.

Every message is a single JSON object terminated by ``\\r\\n``. Outbound
commands carry ``id``, ``method`` and ``params``. Inbound lines are either a
command result (non-zero ``id`` with ``result`` or ``error``) or a
notification (``method`` and a ``params`` object, no meaningful ``id``).
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from yeelight_async.const import LINE_SEPARATOR, MAX_LINE_LENGTH
from yeelight_async.exceptions import YeelightDecodeError, YeelightEncodeError


@dataclass(frozen=True)
class Command:
    """Outbound command.

    Attributes:
        id: Request id, unique per connection and never 0
        method: Method wire name
        params: Ordered parameter list
    """

    id: int
    method: str
    params: list[Any] = field(default_factory=list)

    @property
    def as_dict(self) -> dict[str, Any]:
        """Return the command as its wire dictionary."""
        return {"id": self.id, "method": self.method, "params": list(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Command:
        """Build a command from a decoded wire dictionary."""
        try:
            return cls(
                id=int(data["id"]), method=str(data["method"]), params=data["params"]
            )
        except (KeyError, TypeError, ValueError) as e:
            raise YeelightDecodeError(f"Invalid command: {data!r}") from e


@dataclass(frozen=True)
class CommandError:
    """Structured error returned by the device."""

    code: int
    message: str

    def __str__(self) -> str:
        return f"{self.code} - {self.message}"


@dataclass(frozen=True)
class CommandResult:
    """Result of a command, matched to its request by id.

    Attributes:
        id: Request id mirrored from the command
        result: Result payload (usually a list), None on error
        error: Error reported by the device, None on success
    """

    id: int
    result: Any = None
    error: CommandError | None = None

    @property
    def is_ok(self) -> bool:
        """Whether this is the plain ``["ok"]`` acknowledgement."""
        return (
            self.error is None
            and isinstance(self.result, list)
            and len(self.result) > 0
            and self.result[0] == "ok"
        )


@dataclass(frozen=True)
class Notification:
    """Unsolicited state change reported by the device."""

    method: str
    params: dict[str, Any] = field(default_factory=dict)


def encode(command: Command) -> bytes:
    """Encode a command as a wire line.

    Args:
        command: Command to encode

    Returns:
        ASCII JSON text followed by the line separator

    Raises:
        YeelightEncodeError: If a parameter cannot be represented as JSON
    """
    try:
        text = json.dumps(
            command.as_dict, separators=(",", ":"), ensure_ascii=True, allow_nan=False
        )
    except (TypeError, ValueError) as e:
        raise YeelightEncodeError(
            f"Cannot encode parameters for {command.method}: {e}"
        ) from e
    return text.encode("ascii") + LINE_SEPARATOR


def _decode_error(data: Any) -> CommandError:
    if not isinstance(data, dict):
        raise YeelightDecodeError(f"Invalid error object: {data!r}")
    try:
        code = int(data.get("code", 0))
    except (TypeError, ValueError) as e:
        raise YeelightDecodeError(f"Invalid error code: {data!r}") from e
    return CommandError(code=code, message=str(data.get("message", "")))


def decode_line(line: bytes | str) -> CommandResult | Notification:
    """Decode one inbound line.

    Args:
        line: A single message, with or without its terminator

    Returns:
        CommandResult if the line carries a non-zero id, otherwise Notification

    Raises:
        YeelightDecodeError: If the line is not valid JSON or has neither shape
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise YeelightDecodeError(f"Line is not valid UTF-8: {line!r}") from e

    try:
        data = json.loads(line)
    except ValueError as e:
        raise YeelightDecodeError(f"Invalid JSON: {line!r}") from e

    if not isinstance(data, dict):
        raise YeelightDecodeError(f"Expected a JSON object: {line!r}")

    request_id = data.get("id")
    if isinstance(request_id, int) and not isinstance(request_id, bool) and request_id:
        error = data.get("error")
        return CommandResult(
            id=request_id,
            result=data.get("result"),
            error=_decode_error(error) if error is not None else None,
        )

    method = data.get("method")
    if not isinstance(method, str) or not method:
        raise YeelightDecodeError(f"Neither a result nor a notification: {line!r}")

    params = data.get("params") or {}
    if not isinstance(params, dict):
        raise YeelightDecodeError(f"Notification params must be an object: {line!r}")

    return Notification(method=method, params=params)


def decode_command(line: bytes | str) -> Command:
    """Decode an outbound command line, as produced by :func:`encode`."""
    if isinstance(line, bytes):
        line = line.decode("ascii", errors="replace")
    try:
        data = json.loads(line)
    except ValueError as e:
        raise YeelightDecodeError(f"Invalid JSON: {line!r}") from e
    if not isinstance(data, dict):
        raise YeelightDecodeError(f"Expected a JSON object: {line!r}")
    return Command.from_dict(data)


class LineBuffer:
    """Accumulate stream bytes and split them into complete lines.

    Lines may arrive split across reads or several to a read. Complete lines
    are yielded in the order they appear; a trailing partial line is kept
    until the rest of it arrives.

    Args:
        max_line_length: Largest partial line kept, in bytes
    """

    def __init__(self, max_line_length: int = MAX_LINE_LENGTH) -> None:
        self.max_line_length = max_line_length
        self._buffer = b""

    def feed(self, data: bytes) -> Iterator[bytes]:
        """Add received bytes and yield every complete line.

        Raises:
            YeelightDecodeError: If the partial line grows past
                max_line_length. The partial line is discarded.
        """
        self._buffer += data
        *lines, self._buffer = self._buffer.split(b"\n")
        for line in lines:
            line = line.rstrip(b"\r")
            if line.strip():
                yield line

        if len(self._buffer) > self.max_line_length:
            size = len(self._buffer)
            self._buffer = b""
            raise YeelightDecodeError(
                f"Line exceeds {self.max_line_length} bytes "
                f"({size} bytes without a terminator)"
            )

    def clear(self) -> None:
        """Discard any partial line."""
        self._buffer = b""

    @property
    def pending(self) -> bytes:
        """Bytes of the incomplete trailing line."""
        return self._buffer
