"""Scoring calibration parameters.

The multipliers and the threshold divisor are tuning policy, not derived
values. They can be overridden per ``Searchable`` instance::

    from searchable.params import get_scoring_params
    params = get_scoring_params({"prefix_score": 8})
    score = params["exact_score"] * column.weight
"""

from __future__ import annotations

from typing import Any

DEFAULT_SCORING_PARAMS: dict[str, float | int] = {
    # Per-column score multipliers
    "exact_score": 15,
    "prefix_score": 5,
    "substring_score": 1,
    # Default threshold = sum(column weights) / threshold_divisor
    "threshold_divisor": 4,
}


def get_scoring_params(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return scoring parameters, merging *overrides* with the defaults.

    Unknown keys in *overrides* are ignored.
    """
    merged = {**DEFAULT_SCORING_PARAMS}
    if isinstance(overrides, dict):
        for key in DEFAULT_SCORING_PARAMS:
            if key in overrides:
                merged[key] = overrides[key]
    return merged
