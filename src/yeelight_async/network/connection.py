"""Connection management for Yeelight devices."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import Self

from yeelight_async.const import (
    DEFAULT_MAX_RECONNECT_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    READ_CHUNK_SIZE,
    READ_POLL_INTERVAL,
    RECONNECT_SLEEP_BASE,
    RECONNECT_SLEEP_MAX,
    YEELIGHT_DEFAULT_PORT,
)
from yeelight_async.events import EventStream
from yeelight_async.exceptions import (
    YeelightConnectionError,
    YeelightDecodeError,
    YeelightNotConnectedError,
    YeelightTimeoutError,
)
from yeelight_async.network.correlator import RequestCorrelator, ResultConverter
from yeelight_async.protocol.codec import (
    Command,
    CommandResult,
    LineBuffer,
    Notification,
    decode_line,
    encode,
)
from yeelight_async.state import DeviceState

_LOGGER = logging.getLogger(__name__)


@dataclass
class ConnectionMetrics:
    """Traffic counters for one connection.

    Inbound data that is dropped (results nobody waits for, lines that do not
    decode) is counted here so it can be observed without an error handler.

    Attributes:
        commands_sent: Commands written to the socket
        results_matched: Results delivered to a pending request
        results_unmatched: Results dropped because no request was pending
        notifications: Notifications received
        decode_errors: Inbound lines that could not be decoded
        timeouts: Requests that expired without a result
        reconnect_attempts: Reconnects attempted by the read loop
        reconnects: Reconnects that succeeded
    """

    commands_sent: int = 0
    results_matched: int = 0
    results_unmatched: int = 0
    notifications: int = 0
    decode_errors: int = 0
    timeouts: int = 0
    reconnect_attempts: int = 0
    reconnects: int = 0

    def reset(self) -> None:
        """Reset all counters to zero."""
        self.commands_sent = 0
        self.results_matched = 0
        self.results_unmatched = 0
        self.notifications = 0
        self.decode_errors = 0
        self.timeouts = 0
        self.reconnect_attempts = 0
        self.reconnects = 0


class DeviceConnection:
    """Persistent TCP connection to one device.

    This class handles:
    - Opening, closing and reconnecting the stream
    - Serializing writes from concurrent callers
    - A supervised read loop that routes results to waiting requests and
      applies notifications to the device state
    - Request id allocation and timeouts (through RequestCorrelator)

    Only writes and the pending-request table are locked. Many requests may
    be in flight at once and their results can arrive in any order.

    Example:
        ```python
        async with DeviceConnection("192.168.1.50") as conn:
            result = await conn.request("get_prop", ["power", "bright"])
            print(result.result)  # ['on', '100']
        ```
    """

    def __init__(
        self,
        hostname: str,
        port: int = YEELIGHT_DEFAULT_PORT,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        auto_reconnect: bool = True,
        max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
        state: DeviceState | None = None,
    ) -> None:
        """Initialize the connection. Nothing is opened until open().

        Args:
            hostname: Device IP address or hostname
            port: Device TCP port (default YEELIGHT_DEFAULT_PORT)
            timeout: Default timeout for requests in seconds (default: 5.0)
            auto_reconnect: Reconnect from the read loop when the stream drops
            max_reconnect_attempts: Consecutive failed reconnects before the
                read loop gives up
            state: Property store updated by notifications (new if None)
        """
        self.hostname = hostname
        self.port = port
        self.default_timeout = timeout
        self.auto_reconnect = auto_reconnect
        self.max_reconnect_attempts = max_reconnect_attempts
        self.state = state if state is not None else DeviceState()

        self.notifications: EventStream[Notification] = EventStream("notifications")
        self.errors: EventStream[Exception] = EventStream("errors")
        self.metrics = ConnectionMetrics()

        self._correlator = RequestCorrelator(timeout=timeout)
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._buffer = LineBuffer()
        # Serializes socket writes only; results are delivered without it
        self._write_lock = asyncio.Lock()
        self._read_task: asyncio.Task[None] | None = None
        self._closing = False
        self._failed_reconnects = 0

    async def __aenter__(self) -> Self:
        """Enter async context manager and open the connection."""
        if not await self.open():
            await self.close()
            raise YeelightConnectionError(
                f"Connection to {self.hostname}:{self.port} is not alive"
            )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager and close the connection."""
        await self.close()

    @property
    def is_connected(self) -> bool:
        """Whether the stream is open and the peer has not closed it.

        A reader at EOF means the peer closed its side even though the
        socket still exists.
        """
        return (
            self._reader is not None
            and self._writer is not None
            and not self._writer.is_closing()
            and not self._reader.at_eof()
        )

    @property
    def is_open(self) -> bool:
        """Whether the read loop is running."""
        return self._read_task is not None and not self._read_task.done()

    @property
    def pending_requests(self) -> int:
        """Number of requests awaiting a result."""
        return self._correlator.pending_count

    @property
    def correlator(self) -> RequestCorrelator:
        return self._correlator

    async def open(self) -> bool:
        """Open the connection and start the read loop.

        Any previous stream and read loop are closed first, and requests
        still waiting on that stream fail with YeelightConnectionError.

        Returns:
            True if the stream is alive, False otherwise

        Raises:
            YeelightConnectionError: If the TCP connection cannot be opened
        """
        await self._stop_read_loop()
        await self._close_stream()
        failed = self._correlator.fail_all(
            YeelightConnectionError(
                f"Connection to {self.hostname}:{self.port} was reopened"
            )
        )
        if failed:
            _LOGGER.debug(
                {
                    "class": "DeviceConnection",
                    "method": "open",
                    "action": "failed_pending",
                    "hostname": self.hostname,
                    "failed_requests": failed,
                }
            )
        self._closing = False
        self._failed_reconnects = 0

        await self._open_stream()
        if not self.is_connected:
            _LOGGER.debug(
                {
                    "class": "DeviceConnection",
                    "method": "open",
                    "action": "not_alive",
                    "hostname": self.hostname,
                    "port": self.port,
                }
            )
            await self._close_stream()
            return False

        self._read_task = asyncio.create_task(
            self._read_loop(), name=f"yeelight-read-{self.hostname}:{self.port}"
        )
        _LOGGER.debug(
            {
                "class": "DeviceConnection",
                "method": "open",
                "hostname": self.hostname,
                "port": self.port,
            }
        )
        return True

    async def close(self) -> None:
        """Close the connection and stop the read loop.

        Requests still waiting for a result fail with YeelightConnectionError.
        """
        self._closing = True
        await self._stop_read_loop()
        await self._close_stream()
        failed = self._correlator.fail_all(
            YeelightConnectionError(f"Connection to {self.hostname} closed")
        )
        _LOGGER.debug(
            {
                "class": "DeviceConnection",
                "method": "close",
                "hostname": self.hostname,
                "failed_requests": failed,
            }
        )

    async def send(self, data: bytes) -> None:
        """Write raw bytes under the write lock.

        Raises:
            YeelightNotConnectedError: If no stream is open
            YeelightConnectionError: If the write fails
        """
        async with self._write_lock:
            writer = self._writer
            if writer is None or writer.is_closing():
                raise YeelightNotConnectedError(
                    f"Not connected to {self.hostname}:{self.port}"
                )
            try:
                writer.write(data)
                await writer.drain()
            except (ConnectionError, OSError) as e:
                raise YeelightConnectionError(
                    f"Failed to send to {self.hostname}:{self.port}: {e}"
                ) from e

    async def _send_command(self, command: Command) -> None:
        await self.send(encode(command))
        self.metrics.commands_sent += 1
        _LOGGER.debug(
            {
                "class": "DeviceConnection",
                "method": "send_command",
                "request": command.as_dict,
                "hostname": self.hostname,
            }
        )

    async def send_command(self, method: str, params: list[Any] | None = None) -> int:
        """Send a command without waiting for its result.

        Args:
            method: Method wire name
            params: Command parameters

        Returns:
            The request id used for the command
        """
        command = Command(
            id=self._correlator.next_id(), method=method, params=list(params or [])
        )
        await self._send_command(command)
        return command.id

    async def request(
        self,
        method: str,
        params: list[Any] | None = None,
        converter: ResultConverter | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Send a command and wait for its result.

        Args:
            method: Method wire name
            params: Command parameters
            converter: Optional callable applied to the result payload
            timeout: Seconds to wait (connection default if None)

        Returns:
            The CommandResult carrying the same id as the command

        Raises:
            YeelightTimeoutError: If no result arrives in time
            YeelightProtocolError: If the device returned an error
            YeelightNotConnectedError: If the connection is not open
            YeelightConnectionError: If the connection drops before the result
        """
        try:
            result = await self._correlator.execute(
                self._send_command,
                method,
                params,
                converter=converter,
                timeout=timeout,
            )
        except YeelightTimeoutError:
            self.metrics.timeouts += 1
            raise

        _LOGGER.debug(
            {
                "class": "DeviceConnection",
                "method": "request",
                "request": {"method": method, "params": params or []},
                "reply": {"id": result.id, "result": result.result},
                "hostname": self.hostname,
            }
        )
        return result

    async def _open_stream(self) -> None:
        try:
            self._reader, self._writer = await asyncio.open_connection(
                self.hostname, self.port
            )
        except OSError as e:
            self._reader = self._writer = None
            raise YeelightConnectionError(
                f"Cannot connect to {self.hostname}:{self.port}: {e}"
            ) from e
        self._buffer.clear()

    async def _close_stream(self) -> None:
        writer = self._writer
        self._reader = self._writer = None
        self._buffer.clear()
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            _LOGGER.debug(
                {
                    "class": "DeviceConnection",
                    "method": "_close_stream",
                    "hostname": self.hostname,
                    "error": str(e),
                }
            )

    async def _stop_read_loop(self) -> None:
        task = self._read_task
        self._read_task = None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    @staticmethod
    def _calculate_retry_sleep_with_jitter(attempt: int) -> float:
        """Calculate reconnect sleep time with exponential backoff and jitter.

        Args:
            attempt: Failed attempt number (0-based)

        Returns:
            Sleep time in seconds, between 0 and the capped exponential delay
        """
        exponential_delay = min(RECONNECT_SLEEP_BASE * (2**attempt), RECONNECT_SLEEP_MAX)
        return random.uniform(0, exponential_delay)  # nosec

    async def _read_loop(self) -> None:
        """Read and dispatch inbound lines until the connection is closed."""
        try:
            while not self._closing:
                if not self.is_connected:
                    if not await self._recover():
                        break
                    continue

                reader = self._reader
                if reader is None:  # pragma: no cover
                    continue

                try:
                    data = await asyncio.wait_for(
                        reader.read(READ_CHUNK_SIZE), timeout=READ_POLL_INTERVAL
                    )
                except TimeoutError:
                    continue
                except (ConnectionError, OSError) as e:
                    _LOGGER.debug(
                        {
                            "class": "DeviceConnection",
                            "method": "_read_loop",
                            "action": "read_failed",
                            "hostname": self.hostname,
                            "error": str(e),
                        }
                    )
                    if self._writer is not None:
                        self._writer.close()
                    continue

                if data:
                    try:
                        for line in self._buffer.feed(data):
                            self._dispatch(line)
                    except YeelightDecodeError as e:
                        self._report_decode_error(e, data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            _LOGGER.exception(
                {
                    "class": "DeviceConnection",
                    "method": "_read_loop",
                    "action": "crashed",
                    "hostname": self.hostname,
                }
            )
            self._correlator.fail_all(
                YeelightConnectionError(f"Read loop for {self.hostname} failed: {e}")
            )
            self.errors.publish(e)
            await self._close_stream()

    async def _recover(self) -> bool:
        """Handle a dead stream and make one reconnect attempt.

        Returns:
            False when the read loop should stop
        """
        if self._reader is not None or self._writer is not None:
            error = YeelightConnectionError(
                f"Connection to {self.hostname}:{self.port} lost"
            )
            await self._close_stream()
            failed = self._correlator.fail_all(error)
            _LOGGER.warning(
                {
                    "class": "DeviceConnection",
                    "method": "_recover",
                    "action": "disconnected",
                    "hostname": self.hostname,
                    "port": self.port,
                    "failed_requests": failed,
                }
            )
            self.errors.publish(error)

        if not self.auto_reconnect:
            return False

        if self._failed_reconnects >= self.max_reconnect_attempts:
            _LOGGER.warning(
                {
                    "class": "DeviceConnection",
                    "method": "_recover",
                    "action": "gave_up",
                    "hostname": self.hostname,
                    "attempts": self._failed_reconnects,
                }
            )
            return False

        if self._failed_reconnects:
            await asyncio.sleep(
                self._calculate_retry_sleep_with_jitter(self._failed_reconnects - 1)
            )
            if self._closing:
                return False

        self.metrics.reconnect_attempts += 1
        try:
            await self._open_stream()
        except YeelightConnectionError as e:
            self._failed_reconnects += 1
            _LOGGER.debug(
                {
                    "class": "DeviceConnection",
                    "method": "_recover",
                    "action": "reconnect_failed",
                    "hostname": self.hostname,
                    "attempt": self._failed_reconnects,
                    "error": str(e),
                }
            )
            return True

        self._failed_reconnects = 0
        self.metrics.reconnects += 1
        _LOGGER.debug(
            {
                "class": "DeviceConnection",
                "method": "_recover",
                "action": "reconnected",
                "hostname": self.hostname,
                "port": self.port,
            }
        )
        return True

    def _report_decode_error(self, error: YeelightDecodeError, data: bytes) -> None:
        self.metrics.decode_errors += 1
        _LOGGER.warning(
            {
                "class": "DeviceConnection",
                "method": "_report_decode_error",
                "action": "decode_failed",
                "hostname": self.hostname,
                "error": str(error),
                "line": data[:200],
            }
        )
        self.errors.publish(error)

    def _dispatch(self, line: bytes) -> None:
        """Route one inbound line to its request or to the notification stream."""
        try:
            message = decode_line(line)
        except YeelightDecodeError as e:
            self._report_decode_error(e, line)
            return

        if isinstance(message, CommandResult):
            if self._correlator.resolve(message):
                self.metrics.results_matched += 1
            else:
                self.metrics.results_unmatched += 1
                _LOGGER.debug(
                    {
                        "class": "DeviceConnection",
                        "method": "_dispatch",
                        "action": "unmatched_result",
                        "hostname": self.hostname,
                        "id": message.id,
                    }
                )
            return

        self.metrics.notifications += 1
        applied = self.state.merge(message.params)
        _LOGGER.debug(
            {
                "class": "DeviceConnection",
                "method": "_dispatch",
                "action": "notification",
                "hostname": self.hostname,
                "notification": message.method,
                "values": applied,
            }
        )
        self.notifications.publish(message)
