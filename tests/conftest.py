"""Shared fixtures for yeelight-async tests."""

from __future__ import annotations

import asyncio
import json
import socket
from typing import Any

import pytest

from yeelight_async.protocol.properties import Property


class FakeBulb:
    """Local TCP server speaking the Yeelight control protocol.

    Replies to ``get_prop`` from ``properties`` and to everything else with
    ``["ok"]``. Behaviour can be adjusted per method:

    - ``silent_methods``: never answered
    - ``delays``: seconds to wait before answering
    - ``errors``: error object returned instead of a result
    - ``results``: result payload returned instead of the default
    """

    def __init__(self) -> None:
        self.properties: dict[str, str] = {prop.value: "" for prop in Property}
        self.properties.update(
            {"power": "on", "bright": "80", "ct": "4000", "name": "bedroom"}
        )
        self.received: list[dict[str, Any]] = []
        self.silent_methods: set[str] = set()
        self.delays: dict[str, float] = {}
        self.errors: dict[str, dict[str, Any]] = {}
        self.results: dict[str, Any] = {}
        self.connections = 0
        self.port = 0
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []
        self._tasks: set[asyncio.Task[None]] = set()

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
        await self.drop_clients()
        for task in list(self._tasks):
            task.cancel()
        if self._server is not None:
            await self._server.wait_closed()
            self._server = None

    async def drop_clients(self) -> None:
        """Close every client connection from the server side."""
        writers, self._writers = self._writers, []
        for writer in writers:
            writer.close()
        for writer in writers:
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def push(self, payload: dict[str, Any] | bytes) -> None:
        """Send a raw line or a JSON object to every connected client."""
        data = payload if isinstance(payload, bytes) else _line(payload)
        for writer in self._writers:
            writer.write(data)
            await writer.drain()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self.connections += 1
        self._writers.append(writer)
        try:
            while line := await reader.readline():
                if not line.strip():
                    continue
                request = json.loads(line)
                self.received.append(request)
                task = asyncio.create_task(self._respond(writer, request))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        except (ConnectionError, OSError):
            pass
        finally:
            writer.close()

    async def _respond(
        self, writer: asyncio.StreamWriter, request: dict[str, Any]
    ) -> None:
        method = request["method"]
        if method in self.silent_methods:
            return

        delay = self.delays.get(method)
        if delay:
            await asyncio.sleep(delay)

        if method in self.errors:
            reply: dict[str, Any] = {
                "id": request["id"],
                "error": self.errors[method],
            }
        elif method in self.results:
            reply = {"id": request["id"], "result": self.results[method]}
        elif method == "get_prop":
            reply = {
                "id": request["id"],
                "result": [
                    self.properties.get(name, "") for name in request["params"]
                ],
            }
        else:
            reply = {"id": request["id"], "result": ["ok"]}

        if writer.is_closing():
            return
        writer.write(_line(reply))
        try:
            await writer.drain()
        except (ConnectionError, OSError):
            pass


def _line(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode() + b"\r\n"


async def _wait_for_condition(predicate, timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)


@pytest.fixture
def wait_until():
    """Coroutine function polling a predicate until it holds (2s limit)."""
    return _wait_for_condition


@pytest.fixture
async def bulb():
    """Running FakeBulb server."""
    server = FakeBulb()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def unused_port() -> int:
    """A local TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
