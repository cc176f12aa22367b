"""Named presets — full looks and tone-only tweaks."""

import copy

BRAVE_PINK = "brave_pink"

PRESETS: dict[str, dict] = {
    BRAVE_PINK: {
        "shadow": "#ff3ea5",
        "highlight": "#32ff84",
        "gamma": 1.0,
        "contrast": 10,
        "brightness": 0,
        "strength": 0.9,
    },
    # Tone-only presets leave colors and strength as they are
    "moody": {
        "gamma": 0.8,
        "contrast": 15,
        "brightness": 5,
    },
    "soft": {
        "gamma": 1.3,
        "contrast": 5,
        "brightness": 10,
    },
}


def get_preset(name: str) -> dict:
    """Return a copy of the preset's overrides. Raises KeyError if unknown."""
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: {name!r}. Available: {sorted(PRESETS)}")
    return copy.deepcopy(PRESETS[name])


def list_presets() -> list[str]:
    return list(PRESETS)
