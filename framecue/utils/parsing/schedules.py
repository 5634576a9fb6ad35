"""Pure functions for parsing keyframe schedule strings.

A schedule string is a compact way to write a property's keyframes:

    "0:(0), 30:(100), 45:(80)"        numeric keyframes
    '0:("Intro"), 60:("Chapter 1")'   string keyframes (snap at 50%)

Parsed schedules feed framecue.core.keyframes.property_from_schedule.
"""

import re
from typing import List, Tuple, Union

ScheduleValue = Union[float, str]

# frame:(value) pairs with optional whitespace; frames may be fractional
_PAIR_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*:\s*\(([^)]*)\)")


def _parse_frame(frame_str: str) -> Union[int, float]:
    frame = float(frame_str)
    return int(frame) if frame.is_integer() else frame


def parse_schedule_value(value_str: str) -> ScheduleValue:
    """Parse one keyframe value: a number, or a (quoted) string.

    Examples:
        >>> parse_schedule_value(" 2.5 ")
        2.5
        >>> parse_schedule_value('"Hello"')
        'Hello'
        >>> parse_schedule_value("left")
        'left'
    """
    value_str = value_str.strip()
    try:
        return float(value_str)
    except ValueError:
        pass
    if len(value_str) >= 2 and value_str[0] == value_str[-1] and value_str[0] in "\"'":
        return value_str[1:-1]
    return value_str


def parse_keyframe_schedule(schedule_str: str) -> List[Tuple[Union[int, float], ScheduleValue]]:
    """Parse a schedule string into (frame, value) keyframe pairs.

    Handles empty strings, single values, and malformed input gracefully.

    Format: "0:(1.0), 30:(2.0), 60:(1.5)"
    Returns: [(0, 1.0), (30, 2.0), (60, 1.5)]

    Args:
        schedule_str: Schedule string

    Returns:
        List of (frame, value) tuples sorted by frame (stable for equal frames).
        Returns [(0, 0.0)] for empty/invalid input.

    Examples:
        >>> parse_keyframe_schedule("0:(1.0), 30:(2.0), 60:(1.5)")
        [(0, 1.0), (30, 2.0), (60, 1.5)]
        >>> parse_keyframe_schedule("10")  # Single value
        [(0, 10.0)]
        >>> parse_keyframe_schedule("")
        [(0, 0.0)]
        >>> parse_keyframe_schedule('30:("b"), 0:("a")')
        [(0, 'a'), (30, 'b')]
    """
    if not schedule_str or schedule_str.strip() == "":
        return [(0, 0.0)]

    schedule_str = schedule_str.strip()
    matches = _PAIR_PATTERN.findall(schedule_str)

    if not matches:
        # Try to parse as single value
        try:
            return [(0, float(schedule_str))]
        except ValueError:
            return [(0, 0.0)]

    keyframes = [
        (_parse_frame(frame_str), parse_schedule_value(value_str))
        for frame_str, value_str in matches
        if value_str.strip()
    ]
    keyframes.sort(key=lambda pair: pair[0])

    return keyframes if keyframes else [(0, 0.0)]
