"""Duotone — map Rec.709 luma onto a shadow/highlight gradient.

Pipeline per pixel: luma -> contrast -> brightness -> gamma -> lerp between
the two colors -> blend with the source by ``strength``. Alpha is copied
through untouched, including fully transparent pixels.
"""

import math

import numpy as np

from effects.color import Color, coerce_color
from effects.frames import check_frame
from effects.tone import GAMMA_FLOOR, ToneParameters

EFFECT_ID = "fx.duotone"
EFFECT_NAME = "Duotone"
EFFECT_CATEGORY = "enhance"

REC709 = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)

DEFAULT_SHADOW = "#ff3ea5"
DEFAULT_HIGHLIGHT = "#32ff84"

PARAMS: dict = {
    "shadow": {
        "type": "color",
        "default": DEFAULT_SHADOW,
        "label": "Shadow",
        "description": "Color for the darkest tones",
    },
    "highlight": {
        "type": "color",
        "default": DEFAULT_HIGHLIGHT,
        "label": "Highlight",
        "description": "Color for the lightest tones",
    },
    "strength": {
        "type": "float",
        "min": 0.0,
        "max": 1.0,
        "default": 0.9,
        "label": "Strength",
        "curve": "linear",
        "unit": "%",
        "description": "Blend between original and duotone",
    },
    "gamma": {
        "type": "float",
        "min": 0.2,
        "max": 3.0,
        "default": 1.0,
        "label": "Gamma",
        "curve": "logarithmic",
        "unit": "",
        "description": "Shifts midtones toward shadow (>1) or highlight (<1)",
    },
    "contrast": {
        "type": "int",
        "min": -100,
        "max": 100,
        "default": 10,
        "label": "Contrast",
        "curve": "linear",
        "unit": "",
    },
    "brightness": {
        "type": "int",
        "min": -100,
        "max": 100,
        "default": 0,
        "label": "Brightness",
        "curve": "linear",
        "unit": "",
    },
}


def contrast_factor(contrast: float) -> float:
    """Classic 259/255 contrast factor. Undefined at contrast == 259."""
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def luma(frame: np.ndarray) -> np.ndarray:
    """Rec.709 luma in [0, 1], shape (H, W)."""
    rgb = frame[:, :, :3].astype(np.float64) / 255.0
    return rgb @ REC709


def tone_curve(t: np.ndarray, params: ToneParameters) -> np.ndarray:
    """Contrast, brightness and gamma applied to normalised luma."""
    cf = contrast_factor(params.contrast)
    t = np.clip(cf * (t - 0.5) + 0.5 + params.brightness / 100.0, 0.0, 1.0)
    return np.clip(np.power(t, max(params.gamma, GAMMA_FLOOR)), 0.0, 1.0)


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def transform(
    src: np.ndarray,
    shadow: Color,
    highlight: Color,
    params: ToneParameters,
) -> np.ndarray:
    """Recolor ``src`` onto the shadow/highlight gradient.

    Args:
        src:       Input RGBA frame (H, W, 4) uint8. Never modified.
        shadow:    Color for corrected luma 0.
        highlight: Color for corrected luma 1.
        params:    Tone parameters (already clamped to valid ranges).

    Returns:
        New (H, W, 4) uint8 frame.

    Raises:
        InvalidDimensions: zero-sized or non-RGBA frame.
        TypeError: frame is not a uint8 ndarray.
    """
    check_frame(src)
    shadow = coerce_color(shadow)
    highlight = coerce_color(highlight)

    tg = tone_curve(luma(src), params)[:, :, np.newaxis]

    lo = np.array(shadow, dtype=np.float64)
    hi = np.array(highlight, dtype=np.float64)
    mapped = lo + (hi - lo) * tg

    rgb = src[:, :, :3].astype(np.float64)
    blended = rgb + (mapped - rgb) * params.strength

    output = np.empty_like(src)
    output[:, :, :3] = _round_half_up(blended)
    output[:, :, 3] = src[:, :, 3]
    return output


def _num(params: dict, key: str) -> float:
    default = PARAMS[key]["default"]
    try:
        v = float(params.get(key, default))
    except (TypeError, ValueError):
        return float(default)
    return v if math.isfinite(v) else float(default)


def apply(
    frame: np.ndarray,
    params: dict,
    state_in: dict | None = None,
    *,
    frame_index: int,
    seed: int,
    resolution: tuple[int, int],
) -> tuple[np.ndarray, dict | None]:
    """Map luma to a two-color gradient — Brave Pink duotone. Stateless."""
    shadow = coerce_color(params.get("shadow", DEFAULT_SHADOW))
    highlight = coerce_color(params.get("highlight", DEFAULT_HIGHLIGHT))
    tone = ToneParameters(
        strength=_num(params, "strength"),
        gamma=_num(params, "gamma"),
        contrast=_num(params, "contrast"),
        brightness=_num(params, "brightness"),
    )
    return transform(frame, shadow, highlight, tone), None
