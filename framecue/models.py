"""Validated composition schema and resolved timeline output.

Input models describe what an author writes: scenes holding cues and pauses,
transitions between scenes, and marks. Any start/end/duration may be given as
seconds (a number) or as a time expression string such as
``"scene(intro).end + 0.5"``; expressions are evaluated by the resolver.

Output models (``Resolved*``, ``TimelineEntry``) are frozen once built and are
what renderers read.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from framecue.config.defaults import (
    DEFAULT_FPS,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    DEFAULT_WORDS_PER_MINUTE,
)
from framecue.utils.math.core import seconds_to_frames

TimeValue = Union[float, str]


class _SpecModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ============================================================================
# PAUSES
# ============================================================================


class FixedPause(_SpecModel):
    """A pause of a fixed number of seconds (negative values count as 0)."""
    kind: Literal["pause"] = "pause"
    mode: Literal["fixed"] = "fixed"
    seconds: float


class GaussianPause(_SpecModel):
    """A pause sampled once at build time from N(mean, std), optionally clamped."""
    kind: Literal["pause"] = "pause"
    mode: Literal["gaussian"] = "gaussian"
    mean: float
    std: float = Field(ge=0)
    min: Optional[float] = None
    max: Optional[float] = None


PauseSpec = Annotated[Union[FixedPause, GaussianPause], Field(discriminator="mode")]


# ============================================================================
# TIMING
# ============================================================================


class TimeRange(_SpecModel):
    """Authored timing of a scene, cue or transition.

    ``start`` alone pins the start; ``start`` plus ``end`` or ``duration``
    pins both; ``duration`` alone starts at the sequential cursor. Relative
    flags turn the value into an offset from the previous resolved end.
    """
    start: Optional[TimeValue] = None
    end: Optional[TimeValue] = None
    duration: Optional[TimeValue] = None
    start_is_relative: bool = False
    end_is_relative: bool = False

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None and self.duration is None


# ============================================================================
# COMPOSITION INPUT
# ============================================================================


class TextSegment(_SpecModel):
    """Spoken text inside a cue.

    duration_sec overrides the estimate (e.g. the measured length of
    synthesized audio); trim_end_sec cuts trailing silence.
    """
    kind: Literal["text"] = "text"
    text: str
    duration_sec: Optional[float] = Field(default=None, ge=0)
    trim_end_sec: float = Field(default=0.0, ge=0)


CueSegment = Annotated[Union[TextSegment, PauseSpec], Field(discriminator="kind")]


class CueSpec(_SpecModel):
    """A spoken/visual beat inside a scene."""
    kind: Literal["cue"] = "cue"
    id: str
    text: Optional[str] = None
    duration: Optional[TimeValue] = None
    time: Optional[TimeRange] = None
    segments: List[CueSegment] = Field(default_factory=list)
    bullets: List[str] = Field(default_factory=list)
    markup: Dict[str, Any] = Field(default_factory=dict)

    @property
    def has_explicit_start(self) -> bool:
        return self.time is not None and self.time.start is not None


SceneItem = Annotated[Union[CueSpec, PauseSpec], Field(discriminator="kind")]


class TransitionRef(_SpecModel):
    """Shorthand on a scene for "transition into whatever comes next"."""
    effect: str = "fade"
    duration: Optional[TimeValue] = None
    ease: Optional[str] = None
    props: Dict[str, Any] = Field(default_factory=dict)


class SceneSpec(_SpecModel):
    kind: Literal["scene"] = "scene"
    id: str
    title: Optional[str] = None
    time: Optional[TimeRange] = None
    items: List[SceneItem] = Field(default_factory=list)
    transition_to_next: Optional[TransitionRef] = None
    markup: Dict[str, Any] = Field(default_factory=dict)

    @property
    def cues(self) -> List[CueSpec]:
        return [item for item in self.items if isinstance(item, CueSpec)]


class TransitionMode(str, Enum):
    """How a transition claims time between two scenes."""
    OVERLAP = "overlap"    # Crossfade over the end of the previous scene
    INSERT = "insert"      # Push following items later by its duration


class TransitionSpec(_SpecModel):
    kind: Literal["transition"] = "transition"
    id: str
    effect: str = "fade"
    time: Optional[TimeRange] = None
    duration: Optional[TimeValue] = None
    ease: Optional[str] = None
    props: Dict[str, Any] = Field(default_factory=dict)
    mode: Optional[TransitionMode] = None


class MarkSpec(_SpecModel):
    """A zero-duration named point, referenced as ``mark(id)``."""
    kind: Literal["mark"] = "mark"
    id: str
    at: TimeValue


TimelineItem = Annotated[Union[SceneSpec, TransitionSpec, MarkSpec], Field(discriminator="kind")]


class VoiceoverConfig(_SpecModel):
    """Narration timing knobs.

    seed makes Gaussian pause sampling reproducible; without it every build
    samples new values.
    """
    seed: Optional[int] = None
    lead_in_seconds: float = Field(default=0.0, ge=0)
    pause_between_items: Optional[Union[float, PauseSpec]] = None
    words_per_minute: float = Field(default=DEFAULT_WORDS_PER_MINUTE, gt=0)


class CompositionSpec(_SpecModel):
    """Top-level authoring input for one video."""
    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "id": "demo",
                "fps": 30,
                "timeline": [
                    {"kind": "scene", "id": "intro", "items": [{"kind": "cue", "id": "hook", "duration": 5}]},
                    {"kind": "transition", "id": "fade-1", "duration": "12f"},
                    {"kind": "scene", "id": "body", "items": [{"kind": "cue", "id": "point", "duration": 3}]},
                    {"kind": "mark", "id": "beat", "at": "scene(body).start + 1"},
                ],
            }
        },
    )

    id: str = "composition"
    title: Optional[str] = None
    fps: float = Field(default=DEFAULT_FPS, gt=0)
    width: int = Field(default=DEFAULT_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_HEIGHT, gt=0)
    duration: Optional[TimeValue] = None
    poster: Optional[TimeValue] = None
    voiceover: VoiceoverConfig = Field(default_factory=VoiceoverConfig)
    timeline: List[TimelineItem] = Field(default_factory=list)


# ============================================================================
# RESOLVED OUTPUT
# ============================================================================


class _ResolvedModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class EntryKind(str, Enum):
    SCENE = "scene"
    TRANSITION = "transition"
    MARK = "mark"


class ResolvedSegment(_ResolvedModel):
    kind: Literal["text", "pause"]
    start_sec: float
    end_sec: float
    text: Optional[str] = None


class ResolvedCue(_ResolvedModel):
    id: str
    scene_id: str
    start_sec: float
    end_sec: float
    text: Optional[str] = None
    segments: Tuple[ResolvedSegment, ...] = ()
    bullets: Tuple[str, ...] = ()


class ResolvedScene(_ResolvedModel):
    id: str
    title: Optional[str] = None
    start_sec: float
    end_sec: float
    cues: Tuple[ResolvedCue, ...] = ()


class ResolvedPause(_ResolvedModel):
    kind: Literal["lead_in", "pause"] = "pause"
    scene_id: Optional[str] = None
    start_sec: float
    end_sec: float
    seconds: float


class TimelineEntry(_ResolvedModel):
    """One row of the flat timeline a renderer walks."""
    kind: EntryKind
    id: str
    start_sec: float
    end_sec: float
    from_scene_id: Optional[str] = None
    to_scene_id: Optional[str] = None
    effect: Optional[str] = None
    ease: Optional[str] = None
    mode: Optional[TransitionMode] = None
    props: Dict[str, Any] = Field(default_factory=dict)

    @property
    def duration_sec(self) -> float:
        return self.end_sec - self.start_sec


class ResolvedTimeline(_ResolvedModel):
    """Absolute schedule of every entity in a composition.

    entries are sorted by start_sec with ties kept in declaration order.
    """
    composition_id: str
    fps: float
    width: int
    height: int
    duration_sec: float
    poster_time_sec: Optional[float] = None
    entries: Tuple[TimelineEntry, ...] = ()
    scenes: Tuple[ResolvedScene, ...] = ()
    pauses: Tuple[ResolvedPause, ...] = ()

    def entry(self, entry_id: str) -> TimelineEntry:
        for item in self.entries:
            if item.id == entry_id:
                return item
        raise KeyError(entry_id)

    def scene(self, scene_id: str) -> ResolvedScene:
        for item in self.scenes:
            if item.id == scene_id:
                return item
        raise KeyError(scene_id)

    def cue(self, cue_id: str) -> ResolvedCue:
        for scene in self.scenes:
            for item in scene.cues:
                if item.id == cue_id:
                    return item
        raise KeyError(cue_id)

    def active_at(self, time_sec: float) -> List[TimelineEntry]:
        """Entries covering time_sec (start inclusive, end exclusive).

        Marks have no extent and count as active only at exactly their time.
        """
        return [
            item for item in self.entries
            if item.start_sec <= time_sec < item.end_sec
            or item.start_sec == item.end_sec == time_sec
        ]

    def frame_range(self, entity_id: str) -> Tuple[int, int]:
        """(start_frame, end_frame) of an entry or cue, rounded half up."""
        try:
            item = self.entry(entity_id)
        except KeyError:
            item = self.cue(entity_id)
        return (
            seconds_to_frames(item.start_sec, self.fps),
            seconds_to_frames(item.end_sec, self.fps),
        )

    @property
    def duration_frames(self) -> int:
        return seconds_to_frames(self.duration_sec, self.fps)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(indent=indent)
