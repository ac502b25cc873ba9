from __future__ import annotations

import numbers


class YoloKitError(ValueError):
    """
    Base class for post-processing errors. Subclasses `ValueError` so callers
    that already catch bad shapes / bad config keep working.
    """


class InvalidTensorShape(YoloKitError):
    """Raw output length does not fit the declared per-anchor dimensions."""


class InvalidConfig(YoloKitError):
    """A configuration value is unusable (sizes, limits, unknown keys)."""


class InvalidThreshold(InvalidConfig):
    """A confidence or IoU threshold outside [0, 1]."""


def check_unit_interval(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidThreshold(f"{name} must be a number, got {value!r}")
    value = float(value)
    # NaN fails both comparisons, so test for the valid range.
    if not (0.0 <= value <= 1.0):
        raise InvalidThreshold(f"{name} must be in [0, 1], got {value}")
    return value
