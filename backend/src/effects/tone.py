"""Tone parameters for the duotone transform.

Out-of-range values are clamped to the nearest boundary rather than rejected:
they come from bounded UI sliders, so clamping is the least surprising
outcome. Values that have no nearest boundary (NaN, inf, non-numbers) raise
InvalidParameter.
"""

import dataclasses
import logging
import math
from typing import Any, Mapping

from effects.errors import InvalidParameter

logger = logging.getLogger(__name__)

STRENGTH_RANGE = (0.0, 1.0)
CONTRAST_RANGE = (-100.0, 100.0)
BRIGHTNESS_RANGE = (-100.0, 100.0)
# Exponent floor; anything at or below zero makes pow() singular.
GAMMA_FLOOR = 0.01


def _finite(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidParameter(f"{name} must be a number, got bool")
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(v):
        raise InvalidParameter(f"{name} must be finite, got {v}")
    return v


def _clamp(name: str, value: float, lo: float, hi: float) -> float:
    clamped = min(hi, max(lo, value))
    if clamped != value:
        logger.debug("Clamped %s from %s to %s", name, value, clamped)
    return clamped


@dataclasses.dataclass(frozen=True)
class ToneParameters:
    """Strength/gamma/contrast/brightness for one transform call."""

    strength: float = 0.9
    gamma: float = 1.0
    contrast: float = 10.0
    brightness: float = 0.0

    def __post_init__(self) -> None:
        strength = _clamp(
            "strength", _finite("strength", self.strength), *STRENGTH_RANGE
        )
        gamma = _finite("gamma", self.gamma)
        if gamma < GAMMA_FLOOR:
            logger.debug("Clamped gamma from %s to %s", gamma, GAMMA_FLOOR)
            gamma = GAMMA_FLOOR
        contrast = _clamp(
            "contrast", _finite("contrast", self.contrast), *CONTRAST_RANGE
        )
        brightness = _clamp(
            "brightness", _finite("brightness", self.brightness), *BRIGHTNESS_RANGE
        )
        # frozen: bypass __setattr__ to store the normalised values
        object.__setattr__(self, "strength", strength)
        object.__setattr__(self, "gamma", gamma)
        object.__setattr__(self, "contrast", contrast)
        object.__setattr__(self, "brightness", brightness)

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "ToneParameters":
        """Build from a mapping; missing keys fall back to defaults."""
        fields = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in params.items() if k in fields})

    def replace(self, **changes: Any) -> "ToneParameters":
        return dataclasses.replace(self, **changes)

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)
