"""Classic animation principles as pure per-frame helpers.

Each helper maps a frame (or a progress value) to a number or a Point with no
state carried between calls, so any frame can be rendered on its own. Frame
counts in anticipation and follow-through are authored against a 30 fps
base.

Functions:
    squash_stretch: Volume-preserving scale from a normalized velocity
    anticipation: Pull back, then spring onto the target
    follow_through: Lagging secondary motion with a damped overshoot
    arc_path: Point on a parabolic arc between two points
    bezier_path: Point on a cubic Bezier curve
    beats_to_frames: Beats to whole frames
    action_timing: Back-to-back frame spans for a list of beat-timed actions
    exaggerate: Scale a value's distance from a center
"""

import math
from typing import Iterable, List, NamedTuple, Sequence, Tuple

from framecue.config.defaults import (
    ANTICIPATION_SPRING_DAMPING,
    ANTICIPATION_SPRING_STIFFNESS,
    DEFAULT_ARC_HEIGHT,
    DEFAULT_BEATS_PER_SECOND,
    DEFAULT_FOLLOW_DRAG,
    DEFAULT_FOLLOW_OVERSHOOT,
    DEFAULT_SQUASH_RATIO,
    DEFAULT_STRETCH_RATIO,
    PRINCIPLES_BASE_FPS,
)
from framecue.core.keyframes import Point
from framecue.utils.math.core import clamp, round_half_up, spring
from framecue.utils.math.easing import ease_out_quad


class ActionSpan(NamedTuple):
    action: str
    start_frame: int
    end_frame: int


def _mix(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def _mix_points(a: Point, b: Point, t: float) -> Point:
    return Point(_mix(a.x, b.x, t), _mix(a.y, b.y, t))


# =============================================================================
# SQUASH, STRETCH AND EXAGGERATION
# =============================================================================

def squash_stretch(
    velocity: float,
    squash_ratio: float = DEFAULT_SQUASH_RATIO,
    stretch_ratio: float = DEFAULT_STRETCH_RATIO,
    preserve_volume: bool = True,
) -> Tuple[float, float]:
    """Deform an object from its normalized velocity.

    Args:
        velocity: Clamped to [-1, 1]; positive stretches, negative squashes
        squash_ratio: scale_y at velocity -1
        stretch_ratio: scale_y at velocity 1
        preserve_volume: Keep scale_x * scale_y == 1 (otherwise scale_x is 1)

    Returns:
        (scale_x, scale_y)

    Examples:
        >>> squash_stretch(0)
        (1.0, 1.0)
        >>> [round(s, 4) for s in squash_stretch(-1)]
        [1.6667, 0.6]
    """
    t = clamp(velocity, -1, 1)
    if t >= 0:
        scale_y = _mix(1, stretch_ratio, t)
    else:
        scale_y = _mix(1, squash_ratio, -t)
    scale_x = 1 / scale_y if preserve_volume else 1.0
    return scale_x, scale_y


def exaggerate(value: float, factor: float, center: float = 0.0) -> float:
    """Multiply value's offset from center by factor."""
    return center + (value - center) * factor


# =============================================================================
# ANTICIPATION AND FOLLOW-THROUGH
# =============================================================================

def anticipation(
    frame: float,
    anticipation_frames: float,
    action_frames: float,
    pullback: float,
    target: float,
    from_value: float = 0.0,
) -> float:
    """Move from from_value to target with a wind-up in the opposite direction.

    During the first anticipation_frames the value eases out to
    ``from_value + pullback``; the action phase then springs from there onto
    target (stiffness 300, damping 15, at the 30 fps base). Before frame 0
    the value is from_value and from the end of both phases it is target.

    Examples:
        >>> anticipation(-1, 10, 20, -5, 100)
        0.0
        >>> anticipation(5, 10, 20, -5, 100)
        -3.75
        >>> anticipation(30, 10, 20, -5, 100)
        100
    """
    if frame < 0:
        return from_value
    if frame >= anticipation_frames + action_frames:
        return target
    if frame < anticipation_frames:
        return from_value + pullback * ease_out_quad(frame / anticipation_frames)
    return spring(
        frame - anticipation_frames,
        PRINCIPLES_BASE_FPS,
        from_value=from_value + pullback,
        to_value=target,
        stiffness=ANTICIPATION_SPRING_STIFFNESS,
        damping=ANTICIPATION_SPRING_DAMPING,
    )


def follow_through(
    primary_progress: float,
    lag_frames: float,
    drag: float = DEFAULT_FOLLOW_DRAG,
    overshoot: float = DEFAULT_FOLLOW_OVERSHOOT,
) -> float:
    """Progress of a secondary element trailing a primary one.

    The secondary lags by ``lag_frames / 30`` of progress, blended back
    towards the primary by drag. Past 1 it wobbles around 1 with a damped sine
    of amplitude overshoot.

    Examples:
        >>> follow_through(0.0, 6)
        0.0
        >>> round(follow_through(0.5, 6), 6)
        0.36
    """
    lag_progress = lag_frames / PRINCIPLES_BASE_FPS
    delayed = max(0.0, primary_progress - lag_progress)
    dragged = delayed * (1 - drag) + primary_progress * drag
    if dragged >= 1:
        excess = dragged - 1
        return 1 + overshoot * math.sin(excess * math.pi * 4) * math.exp(-excess * 5)
    return dragged


# =============================================================================
# ARCS
# =============================================================================

def arc_path(
    start: Point, end: Point, progress: float, arc_height: float = DEFAULT_ARC_HEIGHT
) -> Point:
    """Point on a parabola from start to end peaking arc_height above the chord.

    Screen y grows downwards, so the peak is ``arc_height`` pixels *up* at
    progress 0.5. Progress is not clamped.

    Examples:
        >>> arc_path(Point(0, 0), Point(100, 0), 0.5)
        Point(x=50.0, y=-100.0)
    """
    x = _mix(start.x, end.x, progress)
    lift = -4 * arc_height * progress * (progress - 1)
    return Point(x, _mix(start.y, end.y, progress) - lift)


def bezier_path(points: Sequence[Point], progress: float) -> Point:
    """Point on the cubic Bezier curve through four control points.

    Progress is clamped to [0, 1] and the curve is evaluated by repeated
    linear interpolation (de Casteljau).

    Raises:
        ValueError: If points does not hold exactly four control points
    """
    if len(points) != 4:
        raise ValueError(f"bezier_path needs 4 control points, got {len(points)}")
    t = clamp(progress, 0.0, 1.0)
    level = [Point(*p) for p in points]
    while len(level) > 1:
        level = [_mix_points(a, b, t) for a, b in zip(level, level[1:])]
    return level[0]


# =============================================================================
# TIMING
# =============================================================================

def beats_to_frames(
    beats: float, fps: float, beats_per_second: float = DEFAULT_BEATS_PER_SECOND
) -> int:
    """Whole frames for a number of beats (4 beats per second by default).

    Examples:
        >>> beats_to_frames(2, 30)
        15
        >>> beats_to_frames(1, 30)
        8
    """
    return round_half_up(beats / beats_per_second * fps)


def action_timing(actions: Iterable[Tuple[str, float]], fps: float) -> List[ActionSpan]:
    """Lay out (action, beats) pairs back to back from frame 0.

    Examples:
        >>> action_timing([("wind-up", 2), ("throw", 1)], 30)
        [ActionSpan(action='wind-up', start_frame=0, end_frame=15), ActionSpan(action='throw', start_frame=15, end_frame=23)]
    """
    spans: List[ActionSpan] = []
    current = 0
    for action, beats in actions:
        frames = beats_to_frames(beats, fps)
        spans.append(ActionSpan(action, current, current + frames))
        current += frames
    return spans
