"""Pure functions for value mapping, unit conversion and spring physics.

Everything here is a total function of its arguments: no caches, no hidden
state, so a renderer may call them for any frame in any order (or in
parallel) and always get the same answer.
"""

import math
import numpy as np
from typing import Callable, Optional, Sequence, Tuple, Union

from framecue.config.defaults import (
    DEFAULT_SPRING_DAMPING,
    DEFAULT_SPRING_MASS,
    DEFAULT_SPRING_STIFFNESS,
    MIN_SPRING_MASS,
    MIN_SPRING_STIFFNESS,
)

EasingFn = Callable[[float], float]


def clamp(value: float, min_value: float, max_value: float) -> float:
    """Limit value to [min_value, max_value].

    Computed as ``min(max_value, max(min_value, value))``, so when the bounds
    are inverted the upper bound wins.

    Examples:
        >>> clamp(5, 0, 3)
        3
        >>> clamp(-1, 0, 3)
        0
    """
    return min(max_value, max(min_value, value))


def lerp(
    in_min: float, in_max: float, out_min: float, out_max: float, value: float
) -> float:
    """Map value linearly from [in_min, in_max] onto [out_min, out_max].

    A degenerate input range returns out_min instead of dividing by zero.

    Examples:
        >>> lerp(0, 10, 0, 100, 5)
        50.0
        >>> lerp(3, 3, 7, 9, 100)
        7
    """
    if in_max == in_min:
        return out_min
    t = (value - in_min) / (in_max - in_min)
    return out_min + (out_max - out_min) * t


def interpolate(
    value: float,
    input_range: Tuple[float, float],
    output_range: Tuple[float, float],
    clamp_output: bool = False,
    easing: Optional[EasingFn] = None,
) -> float:
    """Map value between ranges with optional clamping and easing.

    Args:
        value: Input value (usually a frame number)
        input_range: (in_min, in_max)
        output_range: (out_min, out_max); may be descending
        clamp_output: Clamp progress to [0, 1] and the result to output_range
        easing: Easing applied to progress before mapping

    Returns:
        Mapped value; output_range[0] when the input range is empty

    Examples:
        >>> interpolate(15, (0, 30), (0, 1))
        0.5
        >>> interpolate(60, (0, 30), (1, 0), clamp_output=True)
        0
    """
    in_min, in_max = input_range
    out_min, out_max = output_range
    if in_max == in_min:
        return out_min
    t = (value - in_min) / (in_max - in_min)
    if clamp_output:
        t = clamp(t, 0, 1)
    eased = easing(t) if easing is not None else t
    mapped = out_min + (out_max - out_min) * eased
    if clamp_output:
        low, high = sorted(output_range)
        return clamp(mapped, low, high)
    return mapped


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 always going up.

    Python's round() is banker's rounding; frame math needs round-half-up so
    that 2.5 -> 3 and -2.5 -> -2.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(-2.5)
        -2
    """
    return math.floor(value + 0.5)


def frame_to_time_ms(frame: float, fps: float) -> float:
    return (frame / fps) * 1000


def time_ms_to_frame(time_ms: float, fps: float) -> int:
    return round_half_up((time_ms / 1000) * fps)


def seconds_to_frames(seconds: float, fps: float) -> int:
    """Convert seconds to the nearest whole frame (round half up)."""
    return round_half_up(seconds * fps)


def frames_to_seconds(frames: float, fps: float) -> float:
    return frames / fps


def _spring_roots(mass: float, stiffness: float, damping: float) -> Tuple[float, float]:
    mass = max(MIN_SPRING_MASS, mass)
    stiffness = max(MIN_SPRING_STIFFNESS, stiffness)
    damping = max(0.0, damping)
    w0 = math.sqrt(stiffness / mass)
    zeta = damping / (2 * math.sqrt(stiffness * mass))
    return w0, zeta


def spring(
    frame: float,
    fps: float,
    from_value: float = 0.0,
    to_value: float = 1.0,
    mass: float = DEFAULT_SPRING_MASS,
    stiffness: float = DEFAULT_SPRING_STIFFNESS,
    damping: float = DEFAULT_SPRING_DAMPING,
) -> float:
    """Closed-form damped harmonic oscillator evaluated at a frame.

    The spring starts at rest at from_value and settles on to_value. No state
    is integrated between calls, so any frame can be evaluated directly.

    Args:
        frame: Frame number; negative frames are treated as 0
        fps: Frames per second (floored at 1e-6)
        from_value: Start position
        to_value: Rest position
        mass: Mass (floored at 0.0001)
        stiffness: Spring constant (floored at 0.0001)
        damping: Damping coefficient (floored at 0)

    Returns:
        Position at the given frame

    Examples:
        >>> spring(0, 30)
        0.0
        >>> round(spring(300, 30), 6)
        1.0
        >>> spring(12, 30, from_value=5, to_value=5)
        5
    """
    if from_value == to_value:
        return to_value
    w0, zeta = _spring_roots(mass, stiffness, damping)
    t = max(0.0, frame) / max(1e-6, fps)
    delta = to_value - from_value

    if zeta < 1:
        root = math.sqrt(1 - zeta * zeta)
        wd = w0 * root
        envelope = math.exp(-zeta * w0 * t)
        displacement = envelope * (math.cos(wd * t) + (zeta / root) * math.sin(wd * t))
    elif zeta == 1:
        displacement = math.exp(-w0 * t) * (1 + w0 * t)
    else:
        root = math.sqrt(zeta * zeta - 1)
        r1 = -w0 * (zeta - root)
        r2 = -w0 * (zeta + root)
        displacement = (r1 * math.exp(r2 * t) - r2 * math.exp(r1 * t)) / (r1 - r2)
    return to_value - delta * displacement


def spring_curve(
    frames: Union[Sequence[float], np.ndarray],
    fps: float,
    from_value: float = 0.0,
    to_value: float = 1.0,
    mass: float = DEFAULT_SPRING_MASS,
    stiffness: float = DEFAULT_SPRING_STIFFNESS,
    damping: float = DEFAULT_SPRING_DAMPING,
) -> np.ndarray:
    """Vectorized spring() over many frames at once.

    Args:
        frames: Frame numbers (any iterable of numbers)
        fps: Frames per second

    Returns:
        Float array with the same shape as frames, matching spring() per element

    Examples:
        >>> curve = spring_curve(range(4), 30)
        >>> curve.shape
        (4,)
    """
    frames_arr = np.asarray(frames, dtype=float)
    if from_value == to_value:
        return np.full(frames_arr.shape, float(to_value))
    w0, zeta = _spring_roots(mass, stiffness, damping)
    t = np.maximum(0.0, frames_arr) / max(1e-6, fps)
    delta = to_value - from_value

    if zeta < 1:
        root = math.sqrt(1 - zeta * zeta)
        wd = w0 * root
        displacement = np.exp(-zeta * w0 * t) * (np.cos(wd * t) + (zeta / root) * np.sin(wd * t))
    elif zeta == 1:
        displacement = np.exp(-w0 * t) * (1 + w0 * t)
    else:
        root = math.sqrt(zeta * zeta - 1)
        r1 = -w0 * (zeta - root)
        r2 = -w0 * (zeta + root)
        displacement = (r1 * np.exp(r2 * t) - r2 * np.exp(r1 * t)) / (r1 - r2)
    return to_value - delta * displacement
