"""Pause construction and build-time sampling.

Pauses are either fixed or Gaussian. A Gaussian pause is sampled exactly once
while the timeline is resolved; the sampled seconds are baked into the
resolved timeline so rendering never sees randomness.

Functions:
    pause: Build a FixedPause or GaussianPause from numbers
    normalize_pause: Accept a number or a pause model
    is_pause_spec: Type check for pause models
    sample_pause: Draw the duration of one pause
"""

from typing import Any, Optional, Union

from framecue.models import FixedPause, GaussianPause
from framecue.utils.seed_utils import RandomFn, gaussian_sample

AnyPause = Union[FixedPause, GaussianPause]


def pause(
    first: float,
    std: Optional[float] = None,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> AnyPause:
    """Create a pause spec in seconds.

    ``pause(0.4)`` is a fixed 0.4s pause. ``pause(0.4, 0.1, min=0.1, max=0.8)``
    samples N(0.4, 0.1) at build time and clamps the result.

    Examples:
        >>> pause(0.4).mode
        'fixed'
        >>> pause(0.4, 0.1, min=0.1).mode
        'gaussian'
    """
    if std is None:
        return FixedPause(seconds=first)
    return GaussianPause(mean=first, std=std, min=min, max=max)


def normalize_pause(value: Union[float, AnyPause, None]) -> Optional[AnyPause]:
    """Turn a bare number into a FixedPause; pass models and None through."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return pause(value)
    return value


def is_pause_spec(value: Any) -> bool:
    return isinstance(value, (FixedPause, GaussianPause))


def sample_pause(spec: AnyPause, rng: RandomFn) -> float:
    """Seconds for one occurrence of a pause.

    Fixed pauses never consume randomness. Gaussian samples are clamped to
    min, then to max, then floored at 0, in that order; with min > max the
    result is therefore max.

    Args:
        spec: Pause to sample
        rng: Uniform generator from framecue.utils.seed_utils.make_rng

    Returns:
        Non-negative duration in seconds
    """
    if isinstance(spec, FixedPause):
        return max(0.0, spec.seconds)
    value = gaussian_sample(rng, spec.mean, spec.std)
    if spec.min is not None:
        value = max(value, spec.min)
    if spec.max is not None:
        value = min(value, spec.max)
    return max(0.0, value)
