"""Tests for the line codec."""

from __future__ import annotations

import json

import pytest

from yeelight_async.exceptions import YeelightDecodeError, YeelightEncodeError
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


class TestEncode:
    """Tests for encoding outbound commands."""

    def test_compact_json_with_terminator(self) -> None:
        """Test that a command is encoded as compact JSON ending in CRLF."""
        data = encode(Command(id=1, method="set_power", params=["on", "smooth", 500]))

        assert data == b'{"id":1,"method":"set_power","params":["on","smooth",500]}\r\n'

    def test_empty_params(self) -> None:
        """Test that a command without params still carries an empty list."""
        data = encode(Command(id=7, method="toggle"))

        assert json.loads(data) == {"id": 7, "method": "toggle", "params": []}

    def test_non_ascii_is_escaped(self) -> None:
        """Test that non-ASCII parameters are escaped."""
        data = encode(Command(id=2, method="set_name", params=["Küche"]))

        assert b"\\u00fc" in data
        assert json.loads(data)["params"] == ["Küche"]

    def test_unencodable_param_raises(self) -> None:
        """Test that a parameter JSON cannot represent is rejected."""
        with pytest.raises(YeelightEncodeError, match="set_rgb"):
            encode(Command(id=3, method="set_rgb", params=[object()]))

    def test_nan_param_raises(self) -> None:
        """Test that NaN is rejected instead of producing invalid JSON."""
        with pytest.raises(YeelightEncodeError):
            encode(Command(id=4, method="set_bright", params=[float("nan")]))

    def test_round_trip(self) -> None:
        """Test that decoding an encoded command gives the same command."""
        command = Command(id=12, method="start_cf", params=[4, 2, "1000,2,2700,100"])

        assert decode_command(encode(command)) == command


class TestDecodeLine:
    """Tests for decoding inbound lines."""

    def test_ok_result(self) -> None:
        """Test decoding a plain acknowledgement."""
        message = decode_line(b'{"id":1, "result":["ok"]}')

        assert message == CommandResult(id=1, result=["ok"])
        assert message.is_ok is True

    def test_value_result(self) -> None:
        """Test decoding a get_prop result."""
        message = decode_line('{"id":2, "result":["on", "100"]}\r\n')

        assert isinstance(message, CommandResult)
        assert message.result == ["on", "100"]
        assert message.is_ok is False

    def test_error_result(self) -> None:
        """Test decoding an error reply."""
        message = decode_line(
            b'{"id":3, "error":{"code":-1, "message":"unsupported method"}}'
        )

        assert isinstance(message, CommandResult)
        assert message.error == CommandError(code=-1, message="unsupported method")
        assert message.is_ok is False
        assert str(message.error) == "-1 - unsupported method"

    def test_notification(self) -> None:
        """Test decoding a property change notification."""
        message = decode_line(
            b'{"method":"props","params":{"power":"on", "bright":"10"}}'
        )

        assert message == Notification(
            method="props", params={"power": "on", "bright": "10"}
        )

    def test_zero_id_is_notification(self) -> None:
        """Test that id 0 is not treated as a result."""
        message = decode_line(b'{"id":0,"method":"props","params":{"ct":"4000"}}')

        assert isinstance(message, Notification)

    def test_boolean_id_is_not_a_result(self) -> None:
        """Test that a boolean id does not pass as a request id."""
        message = decode_line(b'{"id":true,"method":"props","params":{}}')

        assert isinstance(message, Notification)

    def test_notification_without_params(self) -> None:
        """Test that missing params decode to an empty dict."""
        message = decode_line(b'{"method":"props"}')

        assert message == Notification(method="props", params={})

    @pytest.mark.parametrize(
        "line",
        [
            b"not json",
            b"[1, 2, 3]",
            b'{"result":["ok"]}',
            b'{"method":"props","params":["on"]}',
            b'{"id":4, "error":"boom"}',
            b"\xff\xfe",
        ],
    )
    def test_invalid_lines_raise(self, line: bytes) -> None:
        """Test that malformed lines raise a decode error."""
        with pytest.raises(YeelightDecodeError):
            decode_line(line)

    def test_decode_command_rejects_missing_fields(self) -> None:
        """Test that a command line without a method is rejected."""
        with pytest.raises(YeelightDecodeError):
            decode_command(b'{"id":1,"params":[]}')


class TestLineBuffer:
    """Tests for splitting a byte stream into lines."""

    def test_several_lines_in_one_read(self) -> None:
        """Test that several lines in one chunk are yielded in order."""
        buffer = LineBuffer()

        lines = list(buffer.feed(b'{"id":1}\r\n{"id":2}\r\n'))

        assert lines == [b'{"id":1}', b'{"id":2}']
        assert buffer.pending == b""

    def test_line_split_across_reads(self) -> None:
        """Test that a partial line is kept until its terminator arrives."""
        buffer = LineBuffer()

        assert list(buffer.feed(b'{"id":1,"res')) == []
        assert buffer.pending == b'{"id":1,"res'
        assert list(buffer.feed(b'ult":["ok"]}\r\n')) == [b'{"id":1,"result":["ok"]}']

    def test_bare_newline_terminator(self) -> None:
        """Test that a line ending in LF alone is accepted."""
        buffer = LineBuffer()

        assert list(buffer.feed(b'{"id":1}\n')) == [b'{"id":1}']

    def test_blank_lines_skipped(self) -> None:
        """Test that empty lines are not yielded."""
        buffer = LineBuffer()

        assert list(buffer.feed(b"\r\n\r\n{}\r\n")) == [b"{}"]

    def test_clear(self) -> None:
        """Test that clear discards a partial line."""
        buffer = LineBuffer()
        list(buffer.feed(b"partial"))

        buffer.clear()

        assert buffer.pending == b""

    def test_oversized_partial_line_discarded(self) -> None:
        """Test that a partial line past the limit raises and is dropped."""
        buffer = LineBuffer(max_line_length=16)
        lines = []

        with pytest.raises(YeelightDecodeError, match="exceeds 16 bytes"):
            for line in buffer.feed(b'{"id":1}\r\n' + b"x" * 32):
                lines.append(line)

        assert lines == [b'{"id":1}']
        assert buffer.pending == b""
        assert list(buffer.feed(b'{"id":2}\r\n')) == [b'{"id":2}']

    def test_partial_line_at_limit_kept(self) -> None:
        """Test that a partial line of exactly the limit is still buffered."""
        buffer = LineBuffer(max_line_length=16)

        assert list(buffer.feed(b"y" * 16)) == []
        assert buffer.pending == b"y" * 16
