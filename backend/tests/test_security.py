"""Tests for security gates — frame shape, buffer length, PII stripping."""

import os

import numpy as np
import pytest

from security import (
    MAX_FRAME_PIXELS,
    MAX_WORKING_DIMENSION,
    strip_pii,
    validate_buffer_length,
    validate_frame_shape,
)


class TestFrameShape:
    def test_valid_frame(self):
        assert validate_frame_shape(np.zeros((2, 3, 4), np.uint8)) == []

    def test_rgb_rejected(self):
        errors = validate_frame_shape(np.zeros((2, 3, 3), np.uint8))
        assert any("RGBA" in e for e in errors)

    def test_flat_rejected(self):
        assert validate_frame_shape(np.zeros(16, np.uint8))

    def test_zero_height_rejected(self):
        errors = validate_frame_shape(np.zeros((0, 3, 4), np.uint8))
        assert any("zero dimension" in e for e in errors)

    def test_oversized_rejected(self):
        # Broadcast view: reports the huge shape without allocating it
        huge = np.broadcast_to(np.zeros(4, np.uint8), (MAX_FRAME_PIXELS // 1000 + 1, 1000, 4))
        errors = validate_frame_shape(huge)
        assert any("too large" in e for e in errors)

    def test_working_cap_value(self):
        assert MAX_WORKING_DIMENSION == 3500


class TestBufferLength:
    def test_exact_length(self):
        assert validate_buffer_length(2 * 3 * 4, 2, 3) == []

    def test_short_buffer(self):
        errors = validate_buffer_length(23, 2, 3)
        assert any("does not match" in e for e in errors)

    @pytest.mark.parametrize("w,h", [(0, 1), (1, 0)])
    def test_zero_dimension(self, w, h):
        assert validate_buffer_length(0, w, h)


class TestPIIStripping:
    def test_home_path_stripped(self):
        home = os.path.expanduser("~")
        event = {"message": f"Failed on {home}/photos/me.png"}
        result = strip_pii(event, {})
        assert home not in result["message"]

    def test_user_paths_redacted(self):
        event = {"message": "open /Users/alice/a.png and /home/bob/b.png"}
        result = strip_pii(event, {})
        assert "alice" not in result["message"]
        assert "bob" not in result["message"]

    def test_sensitive_keys_redacted(self):
        event = {
            "extra": {"api_token": "abc", "size": [10, 10]},
            "contexts": {"render": {"dsn": "https://x@y/1", "params": ["gamma"]}},
        }
        result = strip_pii(event, {})
        assert result["extra"]["api_token"] == "<REDACTED>"
        assert result["extra"]["size"] == [10, 10]
        assert result["contexts"]["render"]["dsn"] == "<REDACTED>"
        assert result["contexts"]["render"]["params"] == ["gamma"]


def test_size_cap_can_be_skipped_for_downscaling():
    huge = np.broadcast_to(np.zeros(4, np.uint8), (MAX_FRAME_PIXELS // 1000 + 1, 1000, 4))
    assert validate_frame_shape(huge, size_cap=False) == []
    assert validate_frame_shape(huge)
