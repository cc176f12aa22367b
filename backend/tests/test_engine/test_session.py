"""Tests for DuotoneSession — working buffer, explicit render, presets."""

from unittest.mock import patch

import numpy as np
import pytest

from effects.color import Color
from effects.errors import InvalidDimensions, InvalidParameter, MalformedColorString
from effects.frames import check_frame
from effects.fx.duotone import transform
from effects.tone import ToneParameters
from engine.session import DuotoneSession, fit_working_size

pytestmark = pytest.mark.smoke


def _frame(h=40, w=60):
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, (h, w, 4), dtype=np.uint8)


class TestFitWorkingSize:
    def test_small_image_untouched(self):
        assert fit_working_size(1200, 800) == (1200, 800)

    def test_exact_cap_untouched(self):
        assert fit_working_size(3500, 2000) == (3500, 2000)

    def test_landscape_downscaled(self):
        assert fit_working_size(7000, 3500) == (3500, 1750)

    def test_portrait_downscaled(self):
        assert fit_working_size(3000, 6000) == (1750, 3500)

    def test_sliver_keeps_one_pixel(self):
        assert fit_working_size(10_000, 1) == (3500, 1)

    def test_custom_cap_rounds_half_up(self):
        # 5 * 0.5 = 2.5 -> 3
        assert fit_working_size(20, 5, max_dim=10) == (10, 3)

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            fit_working_size(0, 10)


class TestLoadAndRender:
    def test_render_before_load_raises(self):
        with pytest.raises(RuntimeError, match="No image loaded"):
            DuotoneSession().render()

    def test_load_renders_immediately(self):
        session = DuotoneSession()
        frame = _frame()
        out = session.load(frame)
        assert session.loaded
        assert not session.dirty
        assert session.size == (60, 40)
        expected = transform(frame, session.shadow, session.highlight, session.tone)
        np.testing.assert_array_equal(out, expected)
        assert session.output is out

    def test_load_rejects_bad_frame(self):
        with pytest.raises(InvalidDimensions):
            DuotoneSession().load(np.zeros((0, 10, 4), dtype=np.uint8))

    def test_working_buffer_read_only_and_detached(self):
        session = DuotoneSession()
        frame = _frame()
        session.load(frame)
        assert not session.working.flags.writeable
        frame[:] = 0
        assert session.working.any()
        with pytest.raises(ValueError):
            session.working[0, 0, 0] = 1

    def test_large_frame_downscaled(self):
        session = DuotoneSession(max_dim=50)
        frame = _frame(h=200, w=100)
        out = session.load(frame)
        assert session.size == (25, 50)
        assert session.working.shape == (50, 25, 4)
        assert out.shape == (50, 25, 4)

    def test_update_does_not_render(self):
        session = DuotoneSession()
        session.load(_frame())
        before = session.output
        session.update(gamma=2.0)
        assert session.dirty
        assert session.output is before

    def test_render_reuses_clean_output(self):
        session = DuotoneSession()
        session.load(_frame())
        first = session.render()
        assert session.render() is first
        assert session.render(force=True) is not first

    def test_render_after_update_reflects_change(self):
        session = DuotoneSession()
        frame = _frame()
        session.load(frame)
        session.update(strength=0.0)
        out = session.render()
        np.testing.assert_array_equal(out, frame)


class TestParameters:
    def test_defaults_are_brave_pink(self):
        session = DuotoneSession()
        assert session.snapshot() == {
            "shadow": "#ff3ea5",
            "highlight": "#32ff84",
            "strength": 0.9,
            "gamma": 1.0,
            "contrast": 10.0,
            "brightness": 0.0,
        }

    def test_update_accepts_hex_and_tuples(self):
        session = DuotoneSession()
        session.update(shadow="#000", highlight=(255, 255, 255))
        assert session.shadow == Color(0, 0, 0)
        assert session.highlight == Color(255, 255, 255)

    def test_update_clamps_tone(self):
        session = DuotoneSession()
        session.update(contrast=500, strength=-1)
        assert session.tone.contrast == 100.0
        assert session.tone.strength == 0.0

    def test_update_unknown_key(self):
        with pytest.raises(TypeError, match="Unknown session parameters"):
            DuotoneSession().update(saturation=1)

    def test_bad_value_leaves_state_untouched(self):
        session = DuotoneSession()
        before = session.snapshot()
        with pytest.raises(MalformedColorString):
            session.update(shadow="#000", highlight="#nothex")
        with pytest.raises(InvalidParameter):
            session.update(gamma=0.5, contrast=float("nan"))
        assert session.snapshot() == before

    def test_swap_colors(self):
        session = DuotoneSession()
        shadow, highlight = session.shadow, session.highlight
        session.swap_colors()
        assert (session.shadow, session.highlight) == (highlight, shadow)
        assert session.dirty

    def test_tone_preset_keeps_colors_and_strength(self):
        session = DuotoneSession()
        session.update(shadow="#123456", strength=0.3)
        session.apply_preset("moody")
        assert session.shadow == Color(0x12, 0x34, 0x56)
        assert session.tone == ToneParameters(
            strength=0.3, gamma=0.8, contrast=15, brightness=5
        )

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            DuotoneSession().apply_preset("neon")

    def test_reset_without_image(self):
        session = DuotoneSession()
        session.update(gamma=2.5, shadow="#000")
        assert session.reset() is None
        assert session.snapshot()["gamma"] == 1.0
        assert session.snapshot()["shadow"] == "#ff3ea5"

    def test_reset_rerenders(self):
        session = DuotoneSession()
        frame = _frame()
        session.load(frame)
        session.update(strength=0.0)
        session.render()
        out = session.reset()
        assert not session.dirty
        expected = transform(frame, "#ff3ea5", "#32ff84", ToneParameters())
        np.testing.assert_array_equal(out, expected)


class TestRenderFailure:
    def test_failure_reported_and_reraised(self):
        session = DuotoneSession()
        session.load(_frame())
        session.update(gamma=2.0)
        with patch(
            "engine.session.duotone.transform", side_effect=RuntimeError("boom")
        ), patch("engine.session.sentry_sdk.capture_exception") as capture:
            with pytest.raises(RuntimeError, match="boom"):
                session.render()
        capture.assert_called_once()
        assert session.dirty

    def test_slow_render_logs_warning(self, caplog):
        session = DuotoneSession()
        session.load(_frame())
        with patch("engine.session.RENDER_WARN_MS", -1):
            with caplog.at_level("WARNING", logger="engine.session"):
                session.render(force=True)
        assert any("warn threshold" in r.getMessage() for r in caplog.records)


class TestOversizedFrames:
    def test_frame_over_pixel_cap_is_downscaled_not_rejected(self):
        # Broadcast view stands in for a photo above MAX_FRAME_PIXELS
        frame = np.broadcast_to(np.array([10, 20, 30, 255], np.uint8), (200, 300, 4))
        session = DuotoneSession(max_dim=30)
        with patch("security.MAX_FRAME_PIXELS", 1000):
            out = session.load(frame)
        assert session.size == (30, 20)
        assert out.shape == (20, 30, 4)

    def test_100mp_photo_passes_load_checks(self):
        # 10001 x 10001 exceeds MAX_FRAME_PIXELS; shape checks must still pass
        frame = np.broadcast_to(np.zeros(4, np.uint8), (10_001, 10_001, 4))
        check_frame(frame, size_cap=False)
        with pytest.raises(InvalidDimensions):
            check_frame(frame)
        assert fit_working_size(10_001, 10_001) == (3500, 3500)
        assert fit_working_size(12_000, 9_000) == (3500, 2625)

    def test_working_buffer_over_cap_still_rejected(self):
        session = DuotoneSession(max_dim=100)
        with patch("security.MAX_FRAME_PIXELS", 1000):
            with pytest.raises(InvalidDimensions, match="too large"):
                session.load(_frame(h=40, w=60))


def test_render_failure_context_carries_values():
    session = DuotoneSession()
    session.load(_frame())
    session.update(gamma=2.0)
    with patch(
        "engine.session.duotone.transform", side_effect=RuntimeError("boom")
    ), patch("engine.session._capture_with_context") as capture:
        with pytest.raises(RuntimeError):
            session.render()
    context = capture.call_args[0][1]
    assert context["params"]["gamma"] == 2.0
    assert context["params"]["shadow"] == "#ff3ea5"
    assert context["size"] == [60, 40]


def test_gradient_css_follows_colors():
    session = DuotoneSession()
    assert session.gradient_css() == "linear-gradient(90deg, #ff3ea5, #32ff84)"
    session.swap_colors()
    assert session.gradient_css(45) == "linear-gradient(45deg, #32ff84, #ff3ea5)"
