"""Duotone session — owns the working buffer and re-renders on demand.

The session never renders implicitly. Callers change colors or tone values
with update()/swap_colors()/apply_preset() and then call render(); any
debouncing of rapid slider changes happens above this layer.
"""

import logging
import math
import time

import numpy as np
import sentry_sdk
from PIL import Image

from effects.color import Color, coerce_color, linear_gradient
from effects.frames import check_frame
from effects.fx import duotone
from effects.tone import ToneParameters
from engine.presets import BRAVE_PINK, get_preset
from security import MAX_WORKING_DIMENSION

logger = logging.getLogger(__name__)

# Render time above which a warning is logged (milliseconds)
RENDER_WARN_MS = 250

_TONE_KEYS = ("strength", "gamma", "contrast", "brightness")


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def fit_working_size(
    width: int, height: int, max_dim: int = MAX_WORKING_DIMENSION
) -> tuple[int, int]:
    """Scale (width, height) so the longest side is at most ``max_dim``.

    Never upscales; aspect ratio is kept and each side is at least 1.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Width and height must be positive, got {width}x{height}")
    scale = min(1.0, max_dim / max(width, height))
    return (
        max(1, _round_half_up(width * scale)),
        max(1, _round_half_up(height * scale)),
    )


def _capture_with_context(e: Exception, extra: dict):
    """Capture exception to Sentry with effect-level context and fingerprint dedup."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("effect_id", duotone.EFFECT_ID)
        scope.fingerprint = ["render-failed", duotone.EFFECT_ID, type(e).__name__]
        scope.set_context("render", extra)
        sentry_sdk.capture_exception(e, scope=scope)


class DuotoneSession:
    """Single-image editing session.

    The working buffer is read-only once loaded, so a render can never race
    with a write to its input. Renders are sequential per session.
    """

    def __init__(self, max_dim: int = MAX_WORKING_DIMENSION):
        if max_dim < 1:
            raise ValueError(f"max_dim must be >= 1, got {max_dim}")
        self.max_dim = max_dim
        self._working: np.ndarray | None = None
        self._output: np.ndarray | None = None
        self._dirty = True
        self.shadow: Color = Color(0, 0, 0)
        self.highlight: Color = Color(255, 255, 255)
        self.tone = ToneParameters()
        self._apply_overrides(get_preset(BRAVE_PINK))

    @property
    def loaded(self) -> bool:
        return self._working is not None

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def working(self) -> np.ndarray | None:
        return self._working

    @property
    def output(self) -> np.ndarray | None:
        return self._output

    @property
    def size(self) -> tuple[int, int] | None:
        """(width, height) of the working buffer."""
        if self._working is None:
            return None
        return self._working.shape[1], self._working.shape[0]

    def load(self, frame: np.ndarray) -> np.ndarray:
        """Take a decoded RGBA frame as the new working buffer and render it.

        Frames above MAX_FRAME_PIXELS are accepted here; they are shrunk to
        ``max_dim`` first and the pixel cap applies to the working buffer.
        """
        check_frame(frame, size_cap=False)
        h, w = frame.shape[:2]
        target = fit_working_size(w, h, self.max_dim)
        if target != (w, h):
            logger.info("Downscaling %dx%d to %dx%d", w, h, target[0], target[1])
            img = Image.fromarray(np.ascontiguousarray(frame))
            working = np.array(img.resize(target, Image.Resampling.LANCZOS))
        else:
            working = frame.copy()
        check_frame(working)
        working.flags.writeable = False
        self._working = working
        self._output = None
        self._dirty = True
        return self.render()

    def _apply_overrides(self, overrides: dict):
        # Validate everything first so a bad value leaves the session untouched
        shadow = coerce_color(overrides.get("shadow", self.shadow))
        highlight = coerce_color(overrides.get("highlight", self.highlight))
        tone_changes = {k: overrides[k] for k in _TONE_KEYS if k in overrides}
        tone = self.tone.replace(**tone_changes) if tone_changes else self.tone
        self.shadow, self.highlight, self.tone = shadow, highlight, tone
        self._dirty = True

    def update(self, **changes) -> None:
        """Change any of shadow, highlight, strength, gamma, contrast, brightness.

        Raises:
            TypeError: unknown keyword.
            MalformedColorString / InvalidParameter: unusable value.
        """
        unknown = set(changes) - {"shadow", "highlight", *_TONE_KEYS}
        if unknown:
            raise TypeError(f"Unknown session parameters: {sorted(unknown)}")
        self._apply_overrides(changes)

    def swap_colors(self) -> None:
        self.shadow, self.highlight = self.highlight, self.shadow
        self._dirty = True

    def apply_preset(self, name: str) -> None:
        self._apply_overrides(get_preset(name))

    def reset(self) -> np.ndarray | None:
        """Restore the Brave Pink look; re-renders when an image is loaded."""
        self.apply_preset(BRAVE_PINK)
        if self._working is None:
            return None
        return self.render(force=True)

    def render(self, force: bool = False) -> np.ndarray:
        """Recompute the output if anything changed since the last render.

        Raises:
            RuntimeError: no image loaded.
        """
        if self._working is None:
            raise RuntimeError("No image loaded")
        if not (self._dirty or force) and self._output is not None:
            return self._output

        sentry_sdk.add_breadcrumb(
            category="render",
            message=f"Rendering {duotone.EFFECT_ID}",
            data={"size": list(self.size), **self.tone.as_dict()},
            level="info",
        )
        t0 = time.monotonic()
        try:
            output = duotone.transform(
                self._working, self.shadow, self.highlight, self.tone
            )
        except Exception as e:
            _capture_with_context(
                e,
                {"size": list(self.size), "params": self.snapshot()},
            )
            logger.error("Render failed: %s", type(e).__name__)
            raise
        elapsed_ms = (time.monotonic() - t0) * 1000

        if elapsed_ms > RENDER_WARN_MS:
            logger.warning(
                "Render of %dx%d took %.0fms (>%dms warn threshold)",
                self.size[0],
                self.size[1],
                elapsed_ms,
                RENDER_WARN_MS,
            )
        else:
            logger.debug("Render took %.1fms", elapsed_ms)

        self._output = output
        self._dirty = False
        return output

    def snapshot(self) -> dict:
        """Current colors (hex) and tone parameters."""
        return {
            "shadow": self.shadow.to_hex(),
            "highlight": self.highlight.to_hex(),
            **self.tone.as_dict(),
        }

    def gradient_css(self, angle: int = 90) -> str:
        """CSS background for the shadow -> highlight swatch shown next to the pickers."""
        return linear_gradient(self.shadow, self.highlight, angle)
