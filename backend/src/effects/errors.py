"""Validation errors raised at the duotone core boundary."""


class InvalidDimensions(ValueError):
    """Pixel buffer has a zero dimension or a size that doesn't match W*H*4."""


class InvalidParameter(ValueError):
    """Tone parameter can't be interpreted as a finite number."""


class MalformedColorString(ValueError):
    """Hex color string is not 3 or 6 hex digits."""
