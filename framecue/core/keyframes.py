"""Keyframe timelines and their per-frame evaluation.

A PropertyTimeline is an ordered list of keyframes for one named property.
Evaluating it at a frame finds the bracketing keyframe pair and interpolates
with the easing of the *later* keyframe:

- numbers interpolate linearly
- 2D points interpolate componentwise
- strings do not blend; they switch to the target at 50% progress
- mismatched value types return the target value

Outside the keyframe range the boundary value is held (no extrapolation).
Evaluation is a pure function of (timeline, frame), so frames can be rendered
in any order or in parallel.

Classes:
    Point: 2D value
    Keyframe: One authored (frame, value, easing) sample
    PropertyTimeline: Keyframes of one property, sorted by frame
    AnimationTimeline: Several property timelines evaluated together
    TimelineBuilder: Fluent construction of an AnimationTimeline

Functions:
    evaluate_property, evaluate_timeline, timeline_duration,
    sample_property, sample_timeline, property_from_schedule, create_timeline
"""

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

import numpy as np
import pandas as pd

from framecue.utils.math.core import clamp
from framecue.utils.math.easing import EasingFn, get_easing, linear
from framecue.utils.parsing.schedules import parse_keyframe_schedule


class Point(NamedTuple):
    x: float
    y: float


KeyframeValue = Union[float, Point, str]


@dataclass(frozen=True)
class Keyframe:
    """A value at a frame; easing shapes the approach *into* this keyframe."""
    frame: float
    value: Any
    easing: Optional[Union[str, EasingFn]] = None

    def __post_init__(self) -> None:
        # Unknown easing names fail here rather than mid-render
        get_easing(self.easing)


@dataclass(frozen=True)
class PropertyTimeline:
    """Keyframes of one property, stably sorted by frame on construction."""
    property: str
    keyframes: Tuple[Keyframe, ...] = ()

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.keyframes, key=lambda kf: kf.frame))
        object.__setattr__(self, "keyframes", ordered)
        object.__setattr__(self, "_frames", [kf.frame for kf in ordered])


@dataclass(frozen=True)
class AnimationTimeline:
    properties: Tuple[PropertyTimeline, ...] = field(default_factory=tuple)


def _as_point(value: Any) -> Optional[Point]:
    if isinstance(value, Point):
        return value
    if isinstance(value, Mapping) and "x" in value and "y" in value:
        return Point(value["x"], value["y"])
    return None


def interpolate_value(start: Any, end: Any, progress: float) -> Any:
    """Blend two keyframe values at progress (already eased).

    Examples:
        >>> interpolate_value(0, 100, 0.25)
        25.0
        >>> interpolate_value(Point(0, 10), Point(10, 20), 0.5)
        Point(x=5.0, y=15.0)
        >>> interpolate_value("a", "b", 0.49), interpolate_value("a", "b", 0.5)
        ('a', 'b')
        >>> interpolate_value(1, "b", 0.1)
        'b'
    """
    numeric = (int, float)
    if isinstance(start, numeric) and isinstance(end, numeric) \
            and not isinstance(start, bool) and not isinstance(end, bool):
        return start + (end - start) * float(progress)
    if isinstance(start, str) and isinstance(end, str):
        return start if progress < 0.5 else end
    start_point, end_point = _as_point(start), _as_point(end)
    if start_point is not None and end_point is not None:
        return Point(
            start_point.x + (end_point.x - start_point.x) * float(progress),
            start_point.y + (end_point.y - start_point.y) * float(progress),
        )
    return end


def evaluate_property(timeline: PropertyTimeline, frame: float, default: Any = None) -> Any:
    """Value of a property at a frame.

    Args:
        timeline: Property keyframes
        frame: Frame to evaluate (may be fractional or outside the keyframe range)
        default: Returned when the timeline has no keyframes

    Returns:
        Interpolated value

    Examples:
        >>> tl = PropertyTimeline("x", (Keyframe(0, 0), Keyframe(30, 100)))
        >>> evaluate_property(tl, 15), evaluate_property(tl, -10), evaluate_property(tl, 1000)
        (50.0, 0, 100)
    """
    keyframes = timeline.keyframes
    if not keyframes:
        return default
    if frame <= keyframes[0].frame:
        return keyframes[0].value
    if frame >= keyframes[-1].frame:
        return keyframes[-1].value

    # First keyframe at or after frame; its predecessor is strictly before it
    index = bisect_left(timeline._frames, frame)
    prev_kf = keyframes[index - 1]
    next_kf = keyframes[index]

    span = next_kf.frame - prev_kf.frame
    if span == 0:
        return next_kf.value

    progress = clamp((frame - prev_kf.frame) / span, 0.0, 1.0)
    easing = get_easing(next_kf.easing, default=linear)
    return interpolate_value(prev_kf.value, next_kf.value, easing(progress))


def evaluate_timeline(timeline: AnimationTimeline, frame: float) -> Dict[str, Any]:
    """Evaluate every property at one frame; later duplicates of a name win."""
    return {prop.property: evaluate_property(prop, frame) for prop in timeline.properties}


def timeline_duration(timeline: AnimationTimeline) -> float:
    """Frame of the last keyframe across all properties (0 if none)."""
    return max(
        (kf.frame for prop in timeline.properties for kf in prop.keyframes if kf.frame > 0),
        default=0,
    )


def _frame_index(timeline: PropertyTimeline, frames: Optional[Iterable[float]]) -> np.ndarray:
    if frames is not None:
        return np.asarray(list(frames))
    if not timeline.keyframes:
        return np.arange(0)
    first = int(np.floor(timeline.keyframes[0].frame))
    last = int(np.ceil(timeline.keyframes[-1].frame))
    return np.arange(first, last + 1)


def sample_property(
    timeline: PropertyTimeline, frames: Optional[Iterable[float]] = None
) -> pd.Series:
    """Evaluate a property over many frames for inspection or export.

    Args:
        timeline: Property keyframes
        frames: Frames to sample; defaults to every whole frame across the keyframes

    Returns:
        pd.Series indexed by frame and named after the property

    Examples:
        >>> tl = PropertyTimeline("x", (Keyframe(0, 0), Keyframe(4, 8)))
        >>> sample_property(tl).tolist()
        [0.0, 2.0, 4.0, 6.0, 8.0]
    """
    index = _frame_index(timeline, frames)
    values = [evaluate_property(timeline, frame) for frame in index.tolist()]
    return pd.Series(values, index=index, name=timeline.property)


def sample_timeline(timeline: AnimationTimeline, frames: Iterable[float]) -> pd.DataFrame:
    """Evaluate every property over the given frames, one column per property."""
    index = np.asarray(list(frames))
    return pd.DataFrame(
        {prop.property: sample_property(prop, index) for prop in timeline.properties},
        index=index,
    )


def property_from_schedule(
    name: str, schedule: str, easing: Optional[Union[str, EasingFn]] = None
) -> PropertyTimeline:
    """Build a PropertyTimeline from a schedule string like ``"0:(0), 30:(100)"``.

    The easing applies to every keyframe.
    """
    return PropertyTimeline(
        name,
        tuple(Keyframe(frame, value, easing) for frame, value in parse_keyframe_schedule(schedule)),
    )


class TimelineBuilder:
    """Fluent builder for AnimationTimeline.

    Examples:
        >>> timeline = (create_timeline()
        ...     .property("x").keyframe(0, 0).keyframe(30, 100, "easeOutCubic")
        ...     .property("y").keyframe(0, 200).keyframe(30, 50)
        ...     .build())
        >>> evaluate_timeline(timeline, 30)
        {'x': 100, 'y': 50}
    """

    def __init__(self) -> None:
        self._properties: List[Tuple[str, List[Keyframe]]] = []

    def property(self, name: str) -> "TimelineBuilder":
        self._properties.append((name, []))
        return self

    def keyframe(
        self, frame: float, value: Any, easing: Optional[Union[str, EasingFn]] = None
    ) -> "TimelineBuilder":
        if not self._properties:
            raise ValueError("Must call property() before keyframe()")
        if isinstance(easing, str):
            get_easing(easing)
        self._properties[-1][1].append(Keyframe(frame, value, easing))
        return self

    def build(self) -> AnimationTimeline:
        return AnimationTimeline(tuple(
            PropertyTimeline(name, tuple(keyframes)) for name, keyframes in self._properties
        ))


def create_timeline() -> TimelineBuilder:
    return TimelineBuilder()
