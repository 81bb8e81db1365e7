"""Packet encoding/decoding for the RCON wire format.

Packets are size-prefixed with a fixed header and a two-byte terminator:
  [4-byte size][4-byte id][4-byte type][body][0x00][0x00]

The size field counts every byte after itself (len(body) + 10), so a
complete frame on the wire is size + 4 bytes long.

All integers are little-endian signed 32-bit.
"""

import logging
from dataclasses import dataclass
from typing import Literal

from common.connection import ProtocolError
from common.protocol import (
    HEADER_SIZE,
    INT32_MAX,
    INT32_SIZE,
    MAX_BODY_SIZE,
    MAX_PACKET_SIZE,
    MIN_PACKET_SIZE,
    PACKET_PADDING_SIZE,
    TERMINATOR,
    TRACE,
    PacketContext,
)

logger = logging.getLogger(__name__)

BYTE_ORDER: Literal["little", "big"] = "little"
INT32_MIN = -(2**31)


@dataclass(frozen=True)
class Packet:
    """A decoded RCON packet.

    `type` is the raw wire integer. Whether a type 2 packet is a command
    or an auth acknowledgement is known only from `context`, which the
    caller supplies when decoding.
    """

    id: int
    type: int
    body: bytes = b""
    context: PacketContext | None = None

    @property
    def size(self) -> int:
        """Value of the size field for this packet."""
        return len(self.body) + PACKET_PADDING_SIZE

    def encode(self) -> bytes:
        return encode(self.id, self.type, self.body)


def int32_to_bytes(value: int) -> bytes:
    """Encode signed 32-bit int as little-endian bytes."""
    return value.to_bytes(INT32_SIZE, BYTE_ORDER, signed=True)


def int32_from_bytes(data: bytes) -> int:
    """Decode little-endian bytes to signed 32-bit int."""
    return int.from_bytes(data, BYTE_ORDER, signed=True)


def encode(packet_id: int, packet_type: int, body: bytes) -> bytes:
    """Encode one packet into its wire form.

    Raises:
        ProtocolError: If the body exceeds MAX_BODY_SIZE or the id does not
            fit a signed 32-bit integer.
    """
    if len(body) > MAX_BODY_SIZE:
        raise ProtocolError(
            f"Packet body too large: {len(body)} bytes (max {MAX_BODY_SIZE})"
        )
    if not INT32_MIN <= packet_id <= INT32_MAX:
        raise ProtocolError(f"Packet id out of int32 range: {packet_id}")

    size = len(body) + PACKET_PADDING_SIZE
    return (
        int32_to_bytes(size)
        + int32_to_bytes(packet_id)
        + int32_to_bytes(int(packet_type))
        + body
        + TERMINATOR
    )


def decode_header(data: bytes) -> tuple[int, int]:
    """Decode (size, packet_id) from the first 8 bytes of a frame."""
    if len(data) < INT32_SIZE * 2:
        raise ProtocolError(
            f"Header too short: {len(data)} bytes, need at least {INT32_SIZE * 2}"
        )
    size = int32_from_bytes(data[:INT32_SIZE])
    packet_id = int32_from_bytes(data[INT32_SIZE : INT32_SIZE * 2])
    return size, packet_id


def extract_body(frame: bytes) -> bytes:
    """Return the body of a raw frame, without header and terminator."""
    return frame[HEADER_SIZE : len(frame) - len(TERMINATOR)]


def decode_packet(frame: bytes, context: PacketContext | None = None) -> Packet:
    """Decode one complete frame.

    Raises ProtocolError if the frame is shorter than its header or its
    length disagrees with the declared size.
    """
    if len(frame) < HEADER_SIZE + len(TERMINATOR):
        raise ProtocolError(f"Frame too short: {len(frame)} bytes")

    size, packet_id = decode_header(frame)
    if size + INT32_SIZE != len(frame):
        raise ProtocolError(
            f"Frame length {len(frame)} does not match declared size {size}"
        )

    packet_type = int32_from_bytes(frame[INT32_SIZE * 2 : HEADER_SIZE])
    return Packet(
        id=packet_id,
        type=packet_type,
        body=extract_body(frame),
        context=context,
    )


class FrameBuffer:
    """Reassembles complete frames from a byte stream.

    A single receive may return part of a frame, or several frames at
    once. Bytes are accumulated until the declared size is available.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete frame."""
        return len(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def feed(self, data: bytes) -> list[bytes]:
        """Append received bytes and return every frame now complete.

        Raises:
            ProtocolError: If a declared size is outside the valid range.
                The buffer is left untouched so the caller can drop it.
        """
        self._buffer.extend(data)
        frames: list[bytes] = []

        while len(self._buffer) >= INT32_SIZE:
            size = int32_from_bytes(bytes(self._buffer[:INT32_SIZE]))
            if not MIN_PACKET_SIZE <= size <= MAX_PACKET_SIZE:
                raise ProtocolError(
                    f"Invalid packet size {size} (expected {MIN_PACKET_SIZE}-{MAX_PACKET_SIZE})"
                )

            frame_len = size + INT32_SIZE
            if len(self._buffer) < frame_len:
                logger.log(
                    TRACE, f"Partial frame: have {len(self._buffer)} of {frame_len} bytes"
                )
                break

            frames.append(bytes(self._buffer[:frame_len]))
            del self._buffer[:frame_len]

        return frames
