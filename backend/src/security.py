"""Validation gates for Brave Pink frame buffers and telemetry."""

import json
import os
import re

import numpy as np

# SEC-1: Working buffer cap (longest side), host downscales above this
MAX_WORKING_DIMENSION = 3500

# SEC-2: Hard cap on any frame handed to the core (~100 MP)
MAX_FRAME_PIXELS = 100_000_000


def validate_frame_shape(frame: np.ndarray, size_cap: bool = True) -> list[str]:
    """Validate an RGBA frame's shape. Returns list of errors (empty = valid).

    Checks:
    - 3 dimensions, 4 channels (H, W, 4)
    - Width and height are positive
    - Pixel count <= MAX_FRAME_PIXELS, unless ``size_cap`` is False (frames
      that are about to be downscaled)
    """
    errors: list[str] = []
    if frame.ndim != 3 or frame.shape[2] != 4:
        errors.append(f"Expected (H, W, 4) RGBA frame, got shape {frame.shape}")
        return errors

    height, width = frame.shape[:2]
    if width == 0 or height == 0:
        errors.append(f"Frame has zero dimension: {width}x{height}")
        return errors

    if size_cap and width * height > MAX_FRAME_PIXELS:
        errors.append(
            f"Frame too large: {width}x{height} exceeds {MAX_FRAME_PIXELS} pixels (SEC-2)"
        )
    return errors


def validate_buffer_length(length: int, width: int, height: int) -> list[str]:
    """Validate a flat RGBA byte count against declared dimensions."""
    errors: list[str] = []
    if width <= 0 or height <= 0:
        errors.append(f"Width and height must be positive, got {width}x{height}")
        return errors
    expected = width * height * 4
    if length != expected:
        errors.append(
            f"Buffer length {length} does not match {width}x{height}x4 = {expected}"
        )
    return errors


# --- PII stripping for Sentry and crash dumps ---

_HOME = os.path.expanduser("~")
_USERNAME = os.path.basename(_HOME)
_PATH_PATTERN = re.compile(r"/Users/[^/\s]+|/home/[^/\s]+|C:\\Users\\[^\\\s]+")
_SENSITIVE_KEYS = {"token", "auth", "key", "secret", "password", "dsn"}


def _scrub_dict(d: dict):
    """Redact values for keys that look sensitive."""
    for key in list(d.keys()):
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            d[key] = "<REDACTED>"


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook. Strips file paths and secrets.

    Also usable for crash dump sanitization.
    """
    event_str = json.dumps(event)
    event_str = event_str.replace(_HOME, "<HOME>")
    if _USERNAME:
        event_str = event_str.replace(_USERNAME, "<USER>")
    event_str = _PATH_PATTERN.sub("<REDACTED_PATH>", event_str)
    event = json.loads(event_str)

    _scrub_dict(event.get("extra", {}))
    for ctx in event.get("contexts", {}).values():
        if isinstance(ctx, dict):
            _scrub_dict(ctx)
    return event
