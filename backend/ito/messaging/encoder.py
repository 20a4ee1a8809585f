"""
MessagePack wire codec.

Every frame on the game socket is a single MessagePack map. Incoming frames
are bounded tightly: the largest legitimate client message is a join request
with a short name, so anything bigger is rejected before it is unpacked.
"""

from typing import Any

import msgpack

# Client frames are tiny; these limits cap the cost of a hostile payload.
MAX_FRAME_BYTES = 4 * 1024
MAX_STR_LEN = 1024
MAX_BIN_LEN = 0
MAX_ARRAY_LEN = 16
MAX_MAP_LEN = 16
MAX_EXT_LEN = 0


class DecodeError(Exception):
    """Raised when an incoming frame is not a valid MessagePack map."""


def encode(data: dict[str, Any]) -> bytes:
    return msgpack.packb(data, use_bin_type=True)


def decode(data: bytes) -> dict[str, Any]:
    """
    Unpack a client frame.

    Raises DecodeError for oversized frames, malformed bytes, or a top-level
    value that is not a map.
    """
    if len(data) > MAX_FRAME_BYTES:
        raise DecodeError(f"frame too large: {len(data)} bytes (max {MAX_FRAME_BYTES})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            strict_map_key=True,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError, TypeError) as e:
        raise DecodeError(f"malformed frame: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected a map, got {type(result).__name__}")
    return result
