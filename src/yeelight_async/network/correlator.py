"""Correlation of commands and their results by request id."""

from __future__ import annotations

import asyncio
import dataclasses
import itertools
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from yeelight_async.const import DEFAULT_REQUEST_TIMEOUT
from yeelight_async.exceptions import (
    YeelightDecodeError,
    YeelightError,
    YeelightProtocolError,
    YeelightRequestCancelledError,
    YeelightTimeoutError,
)
from yeelight_async.protocol.codec import Command, CommandResult

_LOGGER = logging.getLogger(__name__)

ResultConverter = Callable[[Any], Any]
SendCallable = Callable[[Command], Awaitable[None]]


@dataclass
class PendingRequest:
    """Bookkeeping for one in-flight command.

    Attributes:
        request_id: Id the result must carry
        future: Completed with the CommandResult, or failed with an error
        deadline: Monotonic time at which the request expires
        converter: Optional callable applied to the result payload
        timer: Handle of the expiry callback
    """

    request_id: int
    future: asyncio.Future[CommandResult]
    deadline: float
    converter: ResultConverter | None = None
    timer: asyncio.TimerHandle | None = None

    @property
    def done(self) -> bool:
        return self.future.done()

    def complete(self, result: CommandResult) -> None:
        """Deliver a result, converting the payload if a converter is set."""
        self._cancel_timer()
        if self.future.done():
            return

        if result.error is not None:
            self.future.set_exception(
                YeelightProtocolError(result.error.code, result.error.message)
            )
            return

        if self.converter is not None:
            try:
                result = dataclasses.replace(
                    result, result=self.converter(result.result)
                )
            except (TypeError, ValueError, KeyError, IndexError) as e:
                error = YeelightDecodeError(
                    f"Unexpected result for request {self.request_id}: "
                    f"{result.result!r}"
                )
                error.__cause__ = e
                self.future.set_exception(error)
                return

        self.future.set_result(result)

    def fail(self, error: BaseException) -> None:
        """Fail the request with an error."""
        self._cancel_timer()
        if not self.future.done():
            self.future.set_exception(error)

    def _cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class RequestCorrelator:
    """Issue request ids and match inbound results to pending requests.

    The pending table is guarded by its own lock. Table operations never
    await, so result delivery is never held up by a slow write.
    """

    def __init__(self, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        """Initialize the correlator.

        Args:
            timeout: Default request timeout in seconds
        """
        self.default_timeout = timeout
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()
        self._pending: dict[int, PendingRequest] = {}
        self._pending_lock = threading.Lock()

    def next_id(self) -> int:
        """Return the next request id. Ids start at 1 and never repeat."""
        with self._id_lock:
            return next(self._ids)

    def register(
        self,
        request_id: int,
        timeout: float | None = None,
        converter: ResultConverter | None = None,
    ) -> PendingRequest:
        """Create the pending entry for a request id.

        An entry already registered under the same id is cancelled and
        replaced.

        Args:
            request_id: Id of the command about to be sent
            timeout: Seconds before the request expires (default if None)
            converter: Optional callable applied to the result payload

        Returns:
            The new PendingRequest
        """
        if timeout is None:
            timeout = self.default_timeout

        loop = asyncio.get_running_loop()
        pending = PendingRequest(
            request_id=request_id,
            future=loop.create_future(),
            deadline=time.monotonic() + timeout,
            converter=converter,
        )

        with self._pending_lock:
            stale = self._pending.pop(request_id, None)
            self._pending[request_id] = pending

        if stale is not None:
            _LOGGER.warning(
                {
                    "class": "RequestCorrelator",
                    "method": "register",
                    "action": "superseded",
                    "request_id": request_id,
                }
            )
            stale.fail(
                YeelightRequestCancelledError(
                    f"Request {request_id} was superseded by a new request"
                )
            )

        pending.timer = loop.call_later(timeout, self._expire, pending, timeout)
        return pending

    def _expire(self, pending: PendingRequest, timeout: float) -> None:
        with self._pending_lock:
            if self._pending.get(pending.request_id) is pending:
                del self._pending[pending.request_id]
        pending.timer = None
        if not pending.done:
            _LOGGER.debug(
                {
                    "class": "RequestCorrelator",
                    "method": "_expire",
                    "request_id": pending.request_id,
                    "timeout": timeout,
                }
            )
            pending.fail(
                YeelightTimeoutError(
                    f"No result for request {pending.request_id} within {timeout:.3f}s"
                )
            )

    def resolve(self, result: CommandResult) -> bool:
        """Deliver a result to its pending request.

        Args:
            result: Decoded command result

        Returns:
            True if a pending request matched, False if the result was dropped
        """
        with self._pending_lock:
            pending = self._pending.pop(result.id, None)

        if pending is None:
            return False

        pending.complete(result)
        return True

    def fail(self, request_id: int, error: BaseException) -> bool:
        """Fail and remove the pending request for an id, if any."""
        with self._pending_lock:
            pending = self._pending.pop(request_id, None)
        if pending is None:
            return False
        pending.fail(error)
        return True

    def fail_all(self, error: BaseException) -> int:
        """Fail every pending request.

        Returns:
            Number of requests that were failed
        """
        with self._pending_lock:
            pending_requests = list(self._pending.values())
            self._pending.clear()
        for pending in pending_requests:
            pending.fail(error)
        return len(pending_requests)

    async def execute(
        self,
        send: SendCallable,
        method: str,
        params: list[Any] | None = None,
        converter: ResultConverter | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Send a command and wait for its result.

        Args:
            send: Coroutine function that writes the command
            method: Method wire name
            params: Command parameters
            converter: Optional callable applied to the result payload
            timeout: Seconds to wait for the result (default if None)

        Returns:
            CommandResult with the (converted) payload

        Raises:
            YeelightTimeoutError: If no result arrives in time
            YeelightRequestCancelledError: If the request was superseded
            YeelightProtocolError: If the device returned an error object
            YeelightConnectionError: If the command could not be sent or the
                connection dropped while waiting
        """
        request_id = self.next_id()
        command = Command(id=request_id, method=method, params=list(params or []))
        pending = self.register(request_id, timeout=timeout, converter=converter)

        try:
            await send(command)
        except (YeelightError, OSError) as e:
            self.fail(request_id, e)
            # Consume the stored exception so the loop doesn't report it
            pending.future.exception()
            raise

        try:
            return await pending.future
        except asyncio.CancelledError:
            self.fail(request_id, YeelightRequestCancelledError("Caller cancelled"))
            raise

    @property
    def pending_count(self) -> int:
        """Number of requests awaiting a result."""
        with self._pending_lock:
            return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        with self._pending_lock:
            return request_id in self._pending
