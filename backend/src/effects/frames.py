"""RGBA frame helpers shared by the core and the session."""

import numpy as np

from effects.errors import InvalidDimensions
from security import validate_buffer_length, validate_frame_shape


def check_frame(frame: np.ndarray, size_cap: bool = True) -> None:
    """Raise if ``frame`` is not a usable (H, W, 4) uint8 RGBA buffer.

    ``size_cap=False`` skips the MAX_FRAME_PIXELS limit, for frames the
    session downscales before they reach the transform.
    """
    if not isinstance(frame, np.ndarray):
        raise TypeError(f"Expected ndarray frame, got {type(frame).__name__}")
    errors = validate_frame_shape(frame, size_cap=size_cap)
    if errors:
        raise InvalidDimensions("; ".join(errors))
    if frame.dtype != np.uint8:
        raise TypeError(f"Expected uint8 frame, got {frame.dtype}")


def frame_from_bytes(data: bytes | bytearray | memoryview, width: int, height: int) -> np.ndarray:
    """Wrap a flat row-major RGBA byte sequence as an (H, W, 4) frame.

    The result is a copy; later changes to ``data`` don't leak into it.
    """
    errors = validate_buffer_length(len(data), width, height)
    if errors:
        raise InvalidDimensions("; ".join(errors))
    return np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4).copy()


def frame_to_bytes(frame: np.ndarray) -> bytes:
    """Flatten a frame back into row-major RGBA bytes."""
    check_frame(frame)
    return np.ascontiguousarray(frame).tobytes()
