"""In-app self-test — quick sanity checks a user can trigger from the UI."""

import logging
from dataclasses import dataclass

import numpy as np

from effects.color import parse_hex
from effects.fx.duotone import transform
from effects.tone import ToneParameters

logger = logging.getLogger(__name__)

# Per-channel tolerance for rounding
TOLERANCE = 2


@dataclass
class TestResult:
    __test__ = False  # keep pytest from collecting this

    name: str
    passed: bool
    details: str | None = None


def _pixel(r: int, g: int, b: int, a: int = 255) -> np.ndarray:
    return np.array([[[r, g, b, a]]], dtype=np.uint8)


def _check_rgb(name: str, out: np.ndarray, expected) -> TestResult:
    got = tuple(int(c) for c in out[0, 0, :3])
    passed = all(abs(g - e) <= TOLERANCE for g, e in zip(got, expected))
    details = None if passed else f"expected {tuple(expected)}, got {got}"
    return TestResult(name, passed, details)


def _check_hex(text: str, expected: tuple[int, int, int]) -> TestResult:
    name = f"parse_hex handles {text}"
    try:
        got = parse_hex(text)
    except ValueError as e:
        return TestResult(name, False, str(e))
    if got != expected:
        return TestResult(name, False, f"expected {expected}, got {tuple(got)}")
    return TestResult(name, True)


def run_self_tests() -> list[TestResult]:
    """Run the built-in checks and return one result per check."""
    shadow, highlight = parse_hex("#ff00aa"), parse_hex("#00ff88")
    identity = ToneParameters(strength=1.0, gamma=1.0, contrast=0, brightness=0)

    results = [
        _check_rgb(
            "Black maps to shadow (duotone)",
            transform(_pixel(0, 0, 0), shadow, highlight, identity),
            shadow,
        ),
        _check_rgb(
            "White maps to highlight (duotone)",
            transform(_pixel(255, 255, 255), shadow, highlight, identity),
            highlight,
        ),
        _check_rgb(
            "Strength 0 preserves original",
            transform(
                _pixel(200, 10, 5), shadow, highlight, identity.replace(strength=0.0)
            ),
            (200, 10, 5),
        ),
        _check_hex("#abc", (170, 187, 204)),
        _check_hex("#ff3ea5", (255, 62, 165)),
    ]

    failed = [r.name for r in results if not r.passed]
    if failed:
        logger.warning("Self-test failures: %s", failed)
    else:
        logger.info("Self-test passed (%d checks)", len(results))
    return results
