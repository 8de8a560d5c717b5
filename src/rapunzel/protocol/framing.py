"""Length-prefixed JSON frame codec for the native messaging channel.

One frame is a 4-byte little-endian unsigned length followed by exactly that
many bytes of UTF-8 JSON. Bodies larger than :data:`MAX_FRAME_SIZE` are
rejected in both directions.

INVARIANT: stdout is the protocol channel. Nothing but frames written by
:class:`FrameWriter` may reach it.
"""

from __future__ import annotations

import io
import json
import logging
import struct
from typing import Any, BinaryIO

from rapunzel.domain.types import ErrorCode

logger = logging.getLogger(__name__)

MAX_FRAME_SIZE = 1024 * 1024
_HEADER = struct.Struct("<I")
_DRAIN_CHUNK = 64 * 1024
_SEPARATORS = (",", ":")


class ProtocolError(Exception):
    """A single frame could not be decoded. The stream remains usable."""

    code: ErrorCode = ErrorCode.MALFORMED_BODY


class FrameEmpty(ProtocolError):
    code = ErrorCode.FRAME_EMPTY


class FrameTooLarge(ProtocolError):
    code = ErrorCode.FRAME_TOO_LARGE


class MalformedBody(ProtocolError):
    code = ErrorCode.MALFORMED_BODY


class EndOfStream(Exception):
    """The input closed; no further frames will arrive."""


def encode(value: Any) -> bytes:
    """Serialize *value* into one complete frame (prefix + body).

    Strings holding lone surrogates (legal in JSON input, not in UTF-8) are
    sent as ``\\uXXXX`` escapes. Values JSON cannot represent, such as NaN,
    raise :class:`MalformedBody`.
    """
    try:
        text = json.dumps(value, ensure_ascii=False, separators=_SEPARATORS, allow_nan=False)
    except (TypeError, ValueError) as exc:
        msg = f"Value is not representable as JSON: {exc}"
        raise MalformedBody(msg) from exc
    try:
        body = text.encode("utf-8")
    except UnicodeEncodeError:
        body = json.dumps(value, ensure_ascii=True, separators=_SEPARATORS).encode("ascii")
    if len(body) > MAX_FRAME_SIZE:
        msg = f"Frame body of {len(body)} bytes exceeds the {MAX_FRAME_SIZE} byte limit"
        raise FrameTooLarge(msg)
    return _HEADER.pack(len(body)) + body


def decode(data: bytes) -> Any:
    """Decode the single frame held in *data*.

    Raises :class:`EndOfStream` if *data* does not hold a complete frame and
    :class:`MalformedBody` if bytes remain after it.
    """
    stream = io.BytesIO(data)
    value = FrameReader(stream).read()
    if stream.read(1):
        msg = "Trailing bytes after frame"
        raise MalformedBody(msg)
    return value


def _parse_body(body: bytes) -> Any:
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        msg = f"Invalid JSON: {exc}"
        raise MalformedBody(msg) from exc


class FrameReader:
    """Read frames from a binary stream, one per :meth:`read` call.

    Short reads are buffered until both the prefix and the full body have
    arrived, so pipes that deliver a frame in pieces are handled.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def read(self) -> Any:
        """Return the next decoded frame.

        Raises:
            EndOfStream: input closed (cleanly or mid-frame).
            FrameEmpty: advertised length is zero.
            FrameTooLarge: advertised length exceeds the limit. The body is
                drained first so the following frame stays aligned.
            MalformedBody: the body is not UTF-8 JSON.
        """
        header = self._read_exact(_HEADER.size)
        if header is None:
            raise EndOfStream
        (length,) = _HEADER.unpack(header)
        if length == 0:
            msg = "Frame advertised a zero-length body"
            raise FrameEmpty(msg)
        if length > MAX_FRAME_SIZE:
            self._drain(length)
            msg = f"Frame body of {length} bytes exceeds the {MAX_FRAME_SIZE} byte limit"
            raise FrameTooLarge(msg)
        body = self._read_exact(length)
        if body is None:
            raise EndOfStream
        return _parse_body(body)

    def _read_exact(self, size: int) -> bytes | None:
        """Read exactly *size* bytes, or None if the input ends first."""
        buf = bytearray()
        while len(buf) < size:
            chunk = self._stream.read(size - len(buf))
            if not chunk:
                if buf:
                    logger.warning("Input closed mid-frame (%d of %d bytes)", len(buf), size)
                return None
            buf.extend(chunk)
        return bytes(buf)

    def _drain(self, size: int) -> None:
        remaining = size
        while remaining > 0:
            chunk = self._stream.read(min(remaining, _DRAIN_CHUNK))
            if not chunk:
                return
            remaining -= len(chunk)


class FrameWriter:
    """Write frames to a binary stream.

    Prefix and body go out in one ``write`` followed by ``flush`` so a frame
    is never interleaved with another.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write(self, value: Any) -> None:
        frame = encode(value)
        self._stream.write(frame)
        self._stream.flush()
