"""Easing curves mapping progress in [0, 1] to eased progress.

Penner-style curves (quad through bounce) in in/out/in-out variants, a
cubic-bezier factory matching CSS ``cubic-bezier()``, and a handful of named
bezier presets. ``get_easing`` resolves an easing given by name, accepting
both camelCase (``easeOutCubic``) and snake_case (``ease_out_cubic``).
"""

import math
import re
from typing import Callable, Dict, Union

EasingFn = Callable[[float], float]

_C1 = 1.70158
_C2 = _C1 * 1.525
_C3 = _C1 + 1
_C4 = (2 * math.pi) / 3
_C5 = (2 * math.pi) / 4.5


def linear(t: float) -> float:
    return t


def ease_in_quad(t: float) -> float:
    return t * t


def ease_out_quad(t: float) -> float:
    return 1 - (1 - t) * (1 - t)


def ease_in_out_quad(t: float) -> float:
    return 2 * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 2 / 2


def ease_in_cubic(t: float) -> float:
    return t * t * t


def ease_out_cubic(t: float) -> float:
    return 1 - (1 - t) ** 3


def ease_in_out_cubic(t: float) -> float:
    return 4 * t * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


def ease_in_quart(t: float) -> float:
    return t ** 4


def ease_out_quart(t: float) -> float:
    return 1 - (1 - t) ** 4


def ease_in_out_quart(t: float) -> float:
    return 8 * t ** 4 if t < 0.5 else 1 - (-2 * t + 2) ** 4 / 2


def ease_in_quint(t: float) -> float:
    return t ** 5


def ease_out_quint(t: float) -> float:
    return 1 - (1 - t) ** 5


def ease_in_out_quint(t: float) -> float:
    return 16 * t ** 5 if t < 0.5 else 1 - (-2 * t + 2) ** 5 / 2


def ease_in_expo(t: float) -> float:
    return 0.0 if t == 0 else 2 ** (10 * t - 10)


def ease_out_expo(t: float) -> float:
    return 1.0 if t == 1 else 1 - 2 ** (-10 * t)


def ease_in_out_expo(t: float) -> float:
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    if t < 0.5:
        return 2 ** (20 * t - 10) / 2
    return (2 - 2 ** (-20 * t + 10)) / 2


def ease_in_circ(t: float) -> float:
    return 1 - math.sqrt(1 - t * t)


def ease_out_circ(t: float) -> float:
    return math.sqrt(1 - (t - 1) ** 2)


def ease_in_out_circ(t: float) -> float:
    if t < 0.5:
        return (1 - math.sqrt(1 - (2 * t) ** 2)) / 2
    return (math.sqrt(1 - (-2 * t + 2) ** 2) + 1) / 2


def ease_in_back(t: float) -> float:
    return _C3 * t ** 3 - _C1 * t * t


def ease_out_back(t: float) -> float:
    return 1 + _C3 * (t - 1) ** 3 + _C1 * (t - 1) ** 2


def ease_in_out_back(t: float) -> float:
    if t < 0.5:
        return ((2 * t) ** 2 * ((_C2 + 1) * 2 * t - _C2)) / 2
    return ((2 * t - 2) ** 2 * ((_C2 + 1) * (t * 2 - 2) + _C2) + 2) / 2


def ease_in_elastic(t: float) -> float:
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    return -(2 ** (10 * t - 10)) * math.sin((t * 10 - 10.75) * _C4)


def ease_out_elastic(t: float) -> float:
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    return 2 ** (-10 * t) * math.sin((t * 10 - 0.75) * _C4) + 1


def ease_in_out_elastic(t: float) -> float:
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    if t < 0.5:
        return -(2 ** (20 * t - 10) * math.sin((20 * t - 11.125) * _C5)) / 2
    return (2 ** (-20 * t + 10) * math.sin((20 * t - 11.125) * _C5)) / 2 + 1


def ease_out_bounce(t: float) -> float:
    n1 = 7.5625
    d1 = 2.75
    if t < 1 / d1:
        return n1 * t * t
    if t < 2 / d1:
        t -= 1.5 / d1
        return n1 * t * t + 0.75
    if t < 2.5 / d1:
        t -= 2.25 / d1
        return n1 * t * t + 0.9375
    t -= 2.625 / d1
    return n1 * t * t + 0.984375


def ease_in_bounce(t: float) -> float:
    return 1 - ease_out_bounce(1 - t)


def ease_in_out_bounce(t: float) -> float:
    if t < 0.5:
        return (1 - ease_out_bounce(1 - 2 * t)) / 2
    return (1 + ease_out_bounce(2 * t - 1)) / 2


# Solver constants for cubic_bezier
_NEWTON_ITERATIONS = 4
_NEWTON_MIN_SLOPE = 0.001
_SUBDIVISION_PRECISION = 0.0000001
_SUBDIVISION_MAX_ITERATIONS = 10
_SPLINE_TABLE_SIZE = 11
_SAMPLE_STEP = 1.0 / (_SPLINE_TABLE_SIZE - 1)


def _bezier(t: float, a1: float, a2: float) -> float:
    return (((1 - 3 * a2 + 3 * a1) * t + (3 * a2 - 6 * a1)) * t + 3 * a1) * t


def _bezier_slope(t: float, a1: float, a2: float) -> float:
    return 3 * (1 - 3 * a2 + 3 * a1) * t * t + 2 * (3 * a2 - 6 * a1) * t + 3 * a1


def cubic_bezier(x1: float, y1: float, x2: float, y2: float) -> EasingFn:
    """Build an easing function from CSS-style cubic bezier control points.

    x(t) is inverted with a precomputed sample table, refined by
    Newton-Raphson where the curve is steep enough and by bisection where it
    is flat.

    Args:
        x1: First control point x (0-1)
        y1: First control point y (may overshoot)
        x2: Second control point x (0-1)
        y2: Second control point y (may overshoot)

    Returns:
        Easing function; exact at 0 and 1

    Examples:
        >>> ease = cubic_bezier(0.4, 0, 0.2, 1)
        >>> ease(0), ease(1)
        (0, 1)
        >>> cubic_bezier(0.3, 0.3, 0.7, 0.7)(0.42)
        0.42
    """
    samples = [_bezier(i * _SAMPLE_STEP, x1, x2) for i in range(_SPLINE_TABLE_SIZE)]

    def newton(x: float, guess: float) -> float:
        for _ in range(_NEWTON_ITERATIONS):
            slope = _bezier_slope(guess, x1, x2)
            if slope == 0.0:
                return guess
            guess -= (_bezier(guess, x1, x2) - x) / slope
        return guess

    def subdivide(x: float, low: float, high: float) -> float:
        current_t = low
        for _ in range(_SUBDIVISION_MAX_ITERATIONS):
            current_t = low + (high - low) / 2
            current_x = _bezier(current_t, x1, x2) - x
            if current_x > 0:
                high = current_t
            else:
                low = current_t
            if abs(current_x) <= _SUBDIVISION_PRECISION:
                break
        return current_t

    def t_for_x(x: float) -> float:
        interval_start = 0.0
        index = 1
        last = _SPLINE_TABLE_SIZE - 1
        while index != last and samples[index] <= x:
            interval_start += _SAMPLE_STEP
            index += 1
        index -= 1
        span = samples[index + 1] - samples[index]
        dist = (x - samples[index]) / span if span else 0.0
        guess = interval_start + dist * _SAMPLE_STEP
        slope = _bezier_slope(guess, x1, x2)
        if slope >= _NEWTON_MIN_SLOPE:
            return newton(x, guess)
        if slope == 0.0:
            return guess
        return subdivide(x, interval_start, interval_start + _SAMPLE_STEP)

    def bezier_easing(t: float) -> float:
        if x1 == y1 and x2 == y2:
            return t
        if t == 0:
            return 0
        if t == 1:
            return 1
        return _bezier(t_for_x(t), y1, y2)

    return bezier_easing


EASING_PRESETS: Dict[str, EasingFn] = {
    "snappy": cubic_bezier(0.5, 0, 0.1, 1),
    "bouncy": cubic_bezier(0.68, -0.55, 0.265, 1.55),
    "smooth": cubic_bezier(0.4, 0, 0.2, 1),
    "sharp": cubic_bezier(0.4, 0, 0.6, 1),
    "dramatic": cubic_bezier(0.7, 0, 0.3, 1),
}

EASINGS: Dict[str, EasingFn] = {
    "linear": linear,
    "ease_in_quad": ease_in_quad,
    "ease_out_quad": ease_out_quad,
    "ease_in_out_quad": ease_in_out_quad,
    "ease_in_cubic": ease_in_cubic,
    "ease_out_cubic": ease_out_cubic,
    "ease_in_out_cubic": ease_in_out_cubic,
    "ease_in_quart": ease_in_quart,
    "ease_out_quart": ease_out_quart,
    "ease_in_out_quart": ease_in_out_quart,
    "ease_in_quint": ease_in_quint,
    "ease_out_quint": ease_out_quint,
    "ease_in_out_quint": ease_in_out_quint,
    "ease_in_expo": ease_in_expo,
    "ease_out_expo": ease_out_expo,
    "ease_in_out_expo": ease_in_out_expo,
    "ease_in_circ": ease_in_circ,
    "ease_out_circ": ease_out_circ,
    "ease_in_out_circ": ease_in_out_circ,
    "ease_in_back": ease_in_back,
    "ease_out_back": ease_out_back,
    "ease_in_out_back": ease_in_out_back,
    "ease_in_elastic": ease_in_elastic,
    "ease_out_elastic": ease_out_elastic,
    "ease_in_out_elastic": ease_in_out_elastic,
    "ease_in_bounce": ease_in_bounce,
    "ease_out_bounce": ease_out_bounce,
    "ease_in_out_bounce": ease_in_out_bounce,
    **EASING_PRESETS,
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def normalize_easing_name(name: str) -> str:
    """Convert an easing name to its snake_case lookup key.

    Examples:
        >>> normalize_easing_name("easeInOutCubic")
        'ease_in_out_cubic'
        >>> normalize_easing_name("ease-out-quad")
        'ease_out_quad'
    """
    name = name.strip().replace("-", "_")
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def get_easing(easing: Union[str, EasingFn, None], default: EasingFn = linear) -> EasingFn:
    """Resolve an easing given by name, as a callable, or None (default).

    Raises:
        ValueError: If a name does not match any known easing
    """
    if easing is None:
        return default
    if callable(easing):
        return easing
    key = normalize_easing_name(easing)
    if key not in EASINGS:
        raise ValueError(f"Unknown easing: {easing}")
    return EASINGS[key]
