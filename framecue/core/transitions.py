"""Declarative entrance/exit transitions evaluated per frame.

A transition config is a tagged union on ``type``:

    fade        opacity from -> to
    slide       translate by ``distance`` px from one side
    push        slide by the full viewport width/height
    scale       scale(from -> to) around an origin
    wipe        clip-path inset revealing from one side
    typewriter  reveal context.text a few characters per frame
    spring      damped spring on opacity and a 40px rise

``apply_transition(config, frame, context)`` takes a frame relative to the
transition's start. Before ``delay_frames`` the initial state is returned,
from ``delay_frames + duration_frames`` on the final state, and in between
the state at eased progress (ease-out-cubic unless ``easing`` is set). Spring
transitions ignore easing and use the closed-form spring at the delayed
frame, so no frame depends on any other.
"""

import math
from dataclasses import asdict, dataclass
from typing import Annotated, Any, Callable, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from framecue.config.defaults import (
    CURSOR_BLINK_FRAMES,
    DEFAULT_CHARS_PER_FRAME,
    DEFAULT_FPS,
    DEFAULT_HEIGHT,
    DEFAULT_SLIDE_DISTANCE,
    DEFAULT_SPRING_DAMPING,
    DEFAULT_SPRING_MASS,
    DEFAULT_SPRING_STIFFNESS,
    DEFAULT_WIDTH,
    SPRING_SLIDE_DISTANCE,
)
from framecue.models import EntryKind, TimelineEntry
from framecue.utils.math.core import round_half_up, spring
from framecue.utils.math.easing import EasingFn, ease_out_cubic, get_easing

Direction = Literal["left", "right", "up", "down"]
Origin = Literal[
    "center", "top-left", "top-right", "bottom-left", "bottom-right",
    "top", "bottom", "left", "right",
]

_TRANSFORM_ORIGINS = {
    "center": "center center",
    "top-left": "top left",
    "top-right": "top right",
    "bottom-left": "bottom left",
    "bottom-right": "bottom right",
    "top": "top center",
    "bottom": "bottom center",
    "left": "center left",
    "right": "center right",
}


class _TransitionBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    duration_frames: float = Field(ge=0)
    delay_frames: float = 0.0
    easing: Optional[Union[str, Callable[[float], float]]] = None


class FadeTransition(_TransitionBase):
    type: Literal["fade"] = "fade"
    from_value: float = Field(default=0.0, alias="from")
    to_value: float = Field(default=1.0, alias="to")


class SlideTransition(_TransitionBase):
    type: Literal["slide"] = "slide"
    direction: Direction = "up"
    distance: float = DEFAULT_SLIDE_DISTANCE


class PushTransition(_TransitionBase):
    type: Literal["push"] = "push"
    direction: Direction = "left"


class ScaleTransition(_TransitionBase):
    type: Literal["scale"] = "scale"
    from_value: float = Field(default=0.0, alias="from")
    to_value: float = Field(default=1.0, alias="to")
    origin: Origin = "center"


class WipeTransition(_TransitionBase):
    type: Literal["wipe"] = "wipe"
    direction: Direction = "left"


class TypewriterTransition(_TransitionBase):
    type: Literal["typewriter"] = "typewriter"
    cursor: bool = True
    cursor_blink_frames: int = Field(default=CURSOR_BLINK_FRAMES, gt=0)
    chars_per_frame: float = Field(default=DEFAULT_CHARS_PER_FRAME, ge=0)


class SpringTransition(_TransitionBase):
    type: Literal["spring"] = "spring"
    mass: float = DEFAULT_SPRING_MASS
    stiffness: float = DEFAULT_SPRING_STIFFNESS
    damping: float = DEFAULT_SPRING_DAMPING


TransitionConfig = Annotated[
    Union[
        FadeTransition, SlideTransition, PushTransition, ScaleTransition,
        WipeTransition, TypewriterTransition, SpringTransition,
    ],
    Field(discriminator="type"),
]

_CONFIG_ADAPTER: TypeAdapter = TypeAdapter(TransitionConfig)


def parse_transition_config(data: Mapping[str, Any]) -> TransitionConfig:
    """Validate a plain dict (e.g. ``{"type": "fade", "duration_frames": 12}``) into a config.

    Raises:
        pydantic.ValidationError: Unknown type or invalid fields
    """
    return _CONFIG_ADAPTER.validate_python(dict(data))


@dataclass(frozen=True)
class TransitionContext:
    """Viewport and content the transition is applied to."""
    fps: float = DEFAULT_FPS
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    text: str = ""


@dataclass(frozen=True)
class TransitionResult:
    """Style values for one frame; None means "leave unchanged"."""
    opacity: Optional[float] = None
    transform: Optional[str] = None
    transform_origin: Optional[str] = None
    clip_path: Optional[str] = None
    visible_text: Optional[str] = None
    show_cursor: Optional[bool] = None

    def as_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def css_number(value: float) -> str:
    """Format a number for CSS the way browsers print it (no trailing ``.0``).

    Examples:
        >>> css_number(40.0), css_number(0.5), css_number(-0.0)
        ('40', '0.5', '0')
    """
    if value == 0:
        return "0"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _translate(direction: str, distance: float) -> str:
    axis = "X" if direction in ("left", "right") else "Y"
    sign = "-" if direction in ("left", "up") and distance != 0 else ""
    return f"translate{axis}({sign}{css_number(distance)}px)"


def _inset(direction: str, percentage: float) -> str:
    pct = "0" if percentage == 0 else f"{css_number(percentage)}%"
    if direction == "left":
        return f"inset(0 {pct} 0 0)"
    if direction == "right":
        return f"inset(0 0 0 {pct})"
    if direction == "up":
        return f"inset({pct} 0 0 0)"
    return f"inset(0 0 {pct} 0)"


def _typewriter_state(config: TypewriterTransition, frame: float, text: str) -> TransitionResult:
    visible = min(math.floor(frame * config.chars_per_frame), len(text))
    blink_on = config.cursor and math.floor(frame / config.cursor_blink_frames) % 2 == 0
    return TransitionResult(visible_text=text[:visible], show_cursor=blink_on and visible < len(text))


def _spring_state(value: float) -> TransitionResult:
    return TransitionResult(
        opacity=value,
        transform=f"translateY({css_number((1 - value) * SPRING_SLIDE_DISTANCE)}px)",
    )


def _state_at(config: TransitionConfig, progress: float, context: TransitionContext) -> TransitionResult:
    """State at eased progress for the progress-driven transition types."""
    if isinstance(config, FadeTransition):
        return TransitionResult(
            opacity=config.from_value + (config.to_value - config.from_value) * progress
        )
    if isinstance(config, SlideTransition):
        return TransitionResult(transform=_translate(config.direction, config.distance * (1 - progress)))
    if isinstance(config, PushTransition):
        distance = context.width if config.direction in ("left", "right") else context.height
        return TransitionResult(transform=_translate(config.direction, distance * (1 - progress)))
    if isinstance(config, ScaleTransition):
        scale = config.from_value + (config.to_value - config.from_value) * progress
        return TransitionResult(
            transform=f"scale({css_number(scale)})",
            transform_origin=_TRANSFORM_ORIGINS[config.origin],
        )
    if isinstance(config, WipeTransition):
        return TransitionResult(clip_path=_inset(config.direction, (1 - progress) * 100))
    raise TypeError(f"Unsupported transition config: {type(config).__name__}")


def initial_state(config: TransitionConfig, context: TransitionContext = TransitionContext()) -> TransitionResult:
    """State before the transition starts."""
    if isinstance(config, TypewriterTransition):
        return TransitionResult(visible_text="", show_cursor=config.cursor)
    if isinstance(config, SpringTransition):
        return _spring_state(0.0)
    return _state_at(config, 0.0, context)


def final_state(config: TransitionConfig, context: TransitionContext = TransitionContext()) -> TransitionResult:
    """State once the transition has finished."""
    if isinstance(config, TypewriterTransition):
        return TransitionResult(visible_text=context.text, show_cursor=False)
    if isinstance(config, SpringTransition):
        return _spring_state(1.0)
    return _state_at(config, 1.0, context)


def apply_transition(
    config: TransitionConfig,
    frame: float,
    context: TransitionContext = TransitionContext(),
) -> TransitionResult:
    """Evaluate a transition at a frame relative to its start.

    Args:
        config: Transition config (see parse_transition_config for dicts)
        frame: Frames since the transition's start (before any delay)
        context: fps, viewport size and text for typewriter

    Returns:
        TransitionResult for this frame

    Examples:
        >>> fade = FadeTransition(duration_frames=10, easing="linear")
        >>> apply_transition(fade, 5).opacity
        0.5
        >>> apply_transition(fade, -1).opacity, apply_transition(fade, 10).opacity
        (0.0, 1.0)
    """
    adjusted = frame - config.delay_frames
    if adjusted < 0:
        return initial_state(config, context)
    if adjusted >= config.duration_frames:
        return final_state(config, context)

    if isinstance(config, TypewriterTransition):
        return _typewriter_state(config, adjusted, context.text)
    if isinstance(config, SpringTransition):
        return _spring_state(spring(
            adjusted,
            context.fps,
            mass=config.mass,
            stiffness=config.stiffness,
            damping=config.damping,
        ))

    easing: EasingFn = get_easing(config.easing, default=ease_out_cubic)
    return _state_at(config, easing(adjusted / config.duration_frames), context)


def entrance_transition(config: TransitionConfig) -> TransitionConfig:
    """Same transition, forced to animate in (0 -> 1) for fade and scale."""
    if isinstance(config, (FadeTransition, ScaleTransition)):
        return config.model_copy(update={"from_value": 0.0, "to_value": 1.0})
    return config


def exit_transition(config: TransitionConfig) -> TransitionConfig:
    """Same transition, forced to animate out (1 -> 0) for fade and scale."""
    if isinstance(config, (FadeTransition, ScaleTransition)):
        return config.model_copy(update={"from_value": 1.0, "to_value": 0.0})
    return config


def transition_config_for_entry(entry: TimelineEntry, fps: float) -> TransitionConfig:
    """Build the config for a resolved transition entry.

    The entry's effect becomes ``type``, its length becomes
    ``duration_frames`` (rounded half up) and its props are passed through.
    """
    if entry.kind is not EntryKind.TRANSITION:
        raise ValueError(f'Timeline entry "{entry.id}" is a {entry.kind.value}, not a transition')
    data: Dict[str, Any] = {
        **entry.props,
        "type": entry.effect,
        "duration_frames": round_half_up(entry.duration_sec * fps),
    }
    if entry.ease is not None:
        data["easing"] = entry.ease
    return parse_transition_config(data)
