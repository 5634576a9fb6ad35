"""Resolve a composition into absolute start/end seconds for every entity.

Placement is sequential by default: each scene (and each insert-mode
transition) starts where the previous one ended, and cues inside a scene are
laid out one after another with optional pauses between them. Any start/end
may instead be pinned with a number or a time expression, including forward
references such as ``next.start`` or ``scene(outro).start - 2``.

Forward references are handled by a fixed-point iteration: every pass tries
each pending item in declaration order; an item whose expressions read an
anchor that is not resolved yet raises MissingTimeReferenceError and is
retried on the next pass. A pass that places nothing ends the iteration and
the pending items are reported, either as a reference cycle or as a
reference to something that never resolves.

All randomness (Gaussian pauses) is drawn up front, in declaration order,
from a PRNG built fresh from the seed, so the number of passes never changes
the sampled values.

Classes:
    TimelineResolver: Multi-pass resolver for one composition

Functions:
    resolve_timeline: Convenience wrapper returning a ResolvedTimeline
    expand_timeline_items: Expand scene ``transition_to_next`` shorthands
    estimate_duration_sec: Speaking time estimate for text without audio
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from framecue.config.defaults import (
    DEFAULT_TRANSITION_SECONDS,
    DEFAULT_WORDS_PER_MINUTE,
    MIN_SPOKEN_SECONDS,
    TO_NEXT_SUFFIX,
)
from framecue.core.pauses import normalize_pause, sample_pause
from framecue.core.time_expressions import (
    AnchorKind,
    TimeAnchor,
    TimeEvalContext,
    TimeValue,
    resolve_time_value,
)
from framecue.errors import (
    CircularTimeReferenceError,
    CompileError,
    FramecueError,
    MissingTimeReferenceError,
    ParseError,
    UnresolvedTimeReferenceError,
)
from framecue.models import (
    CompositionSpec,
    CueSpec,
    EntryKind,
    MarkSpec,
    ResolvedCue,
    ResolvedPause,
    ResolvedScene,
    ResolvedSegment,
    ResolvedTimeline,
    SceneSpec,
    TextSegment,
    TimelineEntry,
    TimelineItem,
    TimeRange,
    TransitionMode,
    TransitionSpec,
)
from framecue.utils.logging import log
from framecue.utils.seed_utils import make_rng

DurationEstimator = Callable[[str], float]

# Tolerance for "starts before the cursor" checks on accumulated floats
_EPSILON = 1e-9


def estimate_duration_sec(text: str, words_per_minute: float = DEFAULT_WORDS_PER_MINUTE) -> float:
    """Estimate how long text takes to speak.

    Args:
        text: Text to be spoken
        words_per_minute: Speaking rate

    Returns:
        0 for blank text, otherwise at least 0.25 seconds

    Examples:
        >>> estimate_duration_sec("")
        0.0
        >>> round(estimate_duration_sec("one two three", 180), 3)
        1.0
        >>> estimate_duration_sec("hi")
        0.3636363636363636
    """
    words = text.split()
    if not words:
        return 0.0
    return max(MIN_SPOKEN_SECONDS, len(words) / words_per_minute * 60)


def expand_timeline_items(items: List[TimelineItem]) -> List[TimelineItem]:
    """Insert the synthetic ``<scene>__to_next`` transitions.

    A scene's transition_to_next becomes a real transition placed right after
    it, unless the author already put a transition there.
    """
    expanded: List[TimelineItem] = []
    for index, item in enumerate(items):
        expanded.append(item)
        if not isinstance(item, SceneSpec) or item.transition_to_next is None:
            continue
        next_item = items[index + 1] if index + 1 < len(items) else None
        if isinstance(next_item, TransitionSpec):
            continue
        ref = item.transition_to_next
        expanded.append(TransitionSpec(
            id=f"{item.id}{TO_NEXT_SUFFIX}",
            effect=ref.effect,
            duration=ref.duration,
            ease=ref.ease,
            props=dict(ref.props),
        ))
    return expanded


@dataclass
class _PausePlan:
    """Pre-sampled pause durations keyed by position in the composition."""
    between: Dict[Tuple[str, int], float] = field(default_factory=dict)
    items: Dict[Tuple[str, int], float] = field(default_factory=dict)
    segments: Dict[Tuple[str, int, int], float] = field(default_factory=dict)


class TimelineResolver:
    """Resolve one composition into a ResolvedTimeline.

    Attributes:
        composition: Validated input
        items: Timeline items after transition_to_next expansion
        seed: Seed for pause sampling (None samples non-deterministically)

    Examples:
        >>> spec = CompositionSpec.model_validate({"timeline": [
        ...     {"kind": "scene", "id": "a", "items": [{"kind": "cue", "id": "a1", "duration": 5}]},
        ...     {"kind": "scene", "id": "b", "items": [{"kind": "cue", "id": "b1", "duration": 3}]},
        ... ]})
        >>> timeline = TimelineResolver(spec).resolve()
        >>> [(e.id, e.start_sec, e.end_sec) for e in timeline.entries]
        [('a', 0.0, 5.0), ('b', 5.0, 8.0)]
    """

    def __init__(
        self,
        composition: CompositionSpec,
        seed: Optional[int] = None,
        duration_estimator: Optional[DurationEstimator] = None,
    ) -> None:
        self.composition = composition
        self.fps = composition.fps
        self.items = expand_timeline_items(composition.timeline)
        self.seed = seed if seed is not None else composition.voiceover.seed
        self.lead_in = composition.voiceover.lead_in_seconds
        words_per_minute = composition.voiceover.words_per_minute
        self.estimate = duration_estimator or (
            lambda text: estimate_duration_sec(text, words_per_minute)
        )

        self._scene_index: Dict[str, int] = {}
        self._transition_index: Dict[str, int] = {}
        self._mark_index: Dict[str, int] = {}
        self._cue_scene_index: Dict[str, int] = {}
        self._index_ids()
        self._check_lead_in()
        self._modes = {
            index: self._transition_mode(index, item)
            for index, item in enumerate(self.items)
            if isinstance(item, TransitionSpec)
        }
        self._reset()

    # ------------------------------------------------------------------
    # Static checks and structure
    # ------------------------------------------------------------------

    def _index_ids(self) -> None:
        seen: Dict[str, str] = {}

        def claim(entity_id: str, what: str) -> None:
            if entity_id in seen:
                raise CompileError(
                    f'Duplicate id "{entity_id}": used by a {seen[entity_id]} and a {what}'
                )
            seen[entity_id] = what

        for index, item in enumerate(self.items):
            claim(item.id, item.kind)
            if isinstance(item, SceneSpec):
                self._scene_index[item.id] = index
                for cue in item.cues:
                    claim(cue.id, "cue")
                    self._cue_scene_index[cue.id] = index
            elif isinstance(item, TransitionSpec):
                self._transition_index[item.id] = index
            else:
                self._mark_index[item.id] = index

    def _check_lead_in(self) -> None:
        if self.lead_in <= 0:
            return
        if any(isinstance(item, SceneSpec) and item.time is not None and not item.time.is_empty
               for item in self.items):
            raise CompileError(
                "voiceover.lead_in_seconds is only supported when scene times are omitted"
            )

    def _prev_scene(self, index: int) -> Optional[int]:
        for j in range(index - 1, -1, -1):
            if isinstance(self.items[j], SceneSpec):
                return j
        return None

    def _next_scene(self, index: int) -> Optional[int]:
        for j in range(index + 1, len(self.items)):
            if isinstance(self.items[j], SceneSpec):
                return j
        return None

    def _transition_mode(self, index: int, item: TransitionSpec) -> TransitionMode:
        if item.mode is not None:
            return item.mode
        if self._prev_scene(index) is not None and self._next_scene(index) is not None:
            return TransitionMode.OVERLAP
        return TransitionMode.INSERT

    def _reset(self) -> None:
        self._starts: Dict[int, float] = {}
        self._ends: Dict[int, float] = {}
        self._scene_starts: Dict[str, float] = {}
        self._scene_ends: Dict[str, float] = {}
        self._cue_starts: Dict[str, float] = {}
        self._mark_starts: Dict[str, float] = {}
        self._entries: Dict[int, TimelineEntry] = {}
        self._scenes: Dict[int, ResolvedScene] = {}
        self._scene_pauses: Dict[int, List[ResolvedPause]] = {}
        self._explicit_starts: Dict[int, float] = {}
        self._pause_plan = _PausePlan()

    # ------------------------------------------------------------------
    # Pauses
    # ------------------------------------------------------------------

    def _sample_pauses(self) -> _PausePlan:
        rng = make_rng(self.seed)
        between = normalize_pause(self.composition.voiceover.pause_between_items)
        plan = _PausePlan()
        for item in self.items:
            if not isinstance(item, SceneSpec):
                continue
            for idx, scene_item in enumerate(item.items):
                explicit = isinstance(scene_item, CueSpec) and scene_item.has_explicit_start
                if idx > 0 and between is not None and not explicit:
                    plan.between[(item.id, idx)] = sample_pause(between, rng)
                if isinstance(scene_item, CueSpec):
                    for seg_idx, segment in enumerate(scene_item.segments):
                        if not isinstance(segment, TextSegment):
                            plan.segments[(item.id, idx, seg_idx)] = sample_pause(segment, rng)
                else:
                    plan.items[(item.id, idx)] = sample_pause(scene_item, rng)
        return plan

    # ------------------------------------------------------------------
    # Evaluation helpers
    # ------------------------------------------------------------------

    def _context(self, index: int) -> TimeEvalContext:
        if index == 0:
            prev_start: Optional[float] = 0.0
            prev_end: Optional[float] = 0.0
        else:
            prev_start = self._starts.get(index - 1)
            prev_end = self._ends.get(index - 1)
        return TimeEvalContext(
            fps=self.fps,
            scene_starts=dict(self._scene_starts),
            scene_ends=dict(self._scene_ends),
            cue_starts=dict(self._cue_starts),
            mark_starts=dict(self._mark_starts),
            prev_start=prev_start,
            prev_end=prev_end,
            next_start=self._starts.get(index + 1),
        )

    def _cursor_before(self, index: int) -> float:
        """End of the nearest earlier scene or insert transition (lead-in if none)."""
        for j in range(index - 1, -1, -1):
            item = self.items[j]
            if isinstance(item, SceneSpec):
                anchor = TimeAnchor(AnchorKind.SCENE_END, item.id)
            elif isinstance(item, TransitionSpec) and self._modes[j] is TransitionMode.INSERT:
                anchor = TimeAnchor(AnchorKind.TRANSITION, item.id)
            else:
                continue
            if j not in self._ends:
                raise MissingTimeReferenceError(anchor)
            return self._ends[j]
        return self.lead_in

    @staticmethod
    def _needs_cursor(time: Optional[TimeRange]) -> bool:
        """Whether placing an item with this timing reads the sequential cursor."""
        if time is None or time.start is None:
            return True
        return time.start_is_relative or time.end_is_relative

    def _time_range(
        self, time: Optional[TimeRange], ctx: TimeEvalContext, cursor: Optional[float], label: str
    ) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        """Evaluate a TimeRange to (start, end, duration); absent parts are None."""
        if time is None or time.is_empty:
            return None, None, None
        if time.start is None and time.end is not None:
            raise ParseError(f"{label} timing requires start when end is provided")
        start = end = duration = None
        if time.start is not None:
            start = resolve_time_value(time.start, ctx)
            if time.start_is_relative:
                start += cursor
        if time.end is not None:
            end = resolve_time_value(time.end, ctx)
            if time.end_is_relative:
                end += cursor
        if time.duration is not None:
            duration = resolve_time_value(time.duration, ctx)
        return start, end, duration

    # ------------------------------------------------------------------
    # Item resolution
    # ------------------------------------------------------------------

    def _resolve_item(self, index: int) -> None:
        item = self.items[index]
        if isinstance(item, SceneSpec):
            self._resolve_scene(index, item)
        elif isinstance(item, TransitionSpec):
            self._resolve_transition(index, item)
        else:
            self._resolve_mark(index, item)

    def _overlap_pull(self, index: int) -> Optional[float]:
        """Earliest start of overlap transitions leading into the scene at index."""
        pull = None
        for j in range(index - 1, -1, -1):
            item = self.items[j]
            if isinstance(item, SceneSpec):
                break
            if isinstance(item, TransitionSpec) and self._modes[j] is TransitionMode.OVERLAP:
                if j not in self._starts:
                    raise MissingTimeReferenceError(TimeAnchor(AnchorKind.TRANSITION, item.id))
                start = self._starts[j]
                pull = start if pull is None else min(pull, start)
        return pull

    def _resolve_scene(self, index: int, scene: SceneSpec) -> None:
        label = f'Scene "{scene.id}"'
        cursor = self._cursor_before(index) if self._needs_cursor(scene.time) else None
        ctx = self._context(index)
        start, end_hint, duration = self._time_range(scene.time, ctx, cursor, label)
        if start is None:
            start = cursor
        else:
            self._explicit_starts[index] = start
        if end_hint is None and duration is not None:
            end_hint = start + duration
        pull = self._overlap_pull(index)

        cues, pauses, content_end = self._layout_scene(scene, start, ctx)
        if not cues and end_hint is None:
            raise CompileError(f"{label} has no cues; give it an end or a duration")
        end = content_end if end_hint is None else max(content_end, end_hint)
        published_start = start if pull is None else min(start, pull)

        self._starts[index] = published_start
        self._ends[index] = end
        self._scene_starts[scene.id] = published_start
        self._scene_ends[scene.id] = end
        for cue in cues:
            self._cue_starts[cue.id] = cue.start_sec
        self._scene_pauses[index] = pauses
        self._scenes[index] = ResolvedScene(
            id=scene.id,
            title=scene.title,
            start_sec=published_start,
            end_sec=end,
            cues=tuple(cues),
        )
        self._entries[index] = TimelineEntry(
            kind=EntryKind.SCENE, id=scene.id, start_sec=published_start, end_sec=end,
        )

    def _layout_scene(
        self, scene: SceneSpec, start: float, ctx: TimeEvalContext
    ) -> Tuple[List[ResolvedCue], List[ResolvedPause], float]:
        now = start
        cue_starts = dict(ctx.cue_starts)
        cues: List[ResolvedCue] = []
        pauses: List[ResolvedPause] = []
        for idx, item in enumerate(scene.items):
            gap = self._pause_plan.between.get((scene.id, idx), 0.0)
            if gap > 0:
                pauses.append(ResolvedPause(
                    scene_id=scene.id, start_sec=now, end_sec=now + gap, seconds=gap,
                ))
                now += gap
            if isinstance(item, CueSpec):
                cue = self._resolve_cue(scene, idx, item, now, replace(ctx, cue_starts=cue_starts))
                cue_starts[cue.id] = cue.start_sec
                cues.append(cue)
                now = max(now, cue.end_sec)
            else:
                seconds = self._pause_plan.items[(scene.id, idx)]
                pauses.append(ResolvedPause(
                    scene_id=scene.id, start_sec=now, end_sec=now + seconds, seconds=seconds,
                ))
                now += seconds
        return cues, pauses, now

    def _resolve_cue(
        self, scene: SceneSpec, idx: int, cue: CueSpec, now: float, ctx: TimeEvalContext
    ) -> ResolvedCue:
        label = f'Cue "{cue.id}"'
        start, end, duration = self._time_range(cue.time, ctx, now, label)
        if start is None:
            start = now

        segments: List[ResolvedSegment] = []
        segment_now = start
        for seg_idx, segment in enumerate(cue.segments):
            if isinstance(segment, TextSegment):
                seconds = segment.duration_sec
                if seconds is None:
                    seconds = self.estimate(segment.text)
                seconds = max(0.0, seconds - segment.trim_end_sec)
                segments.append(ResolvedSegment(
                    kind="text", start_sec=segment_now, end_sec=segment_now + seconds,
                    text=segment.text,
                ))
            else:
                seconds = self._pause_plan.segments[(scene.id, idx, seg_idx)]
                segments.append(ResolvedSegment(
                    kind="pause", start_sec=segment_now, end_sec=segment_now + seconds,
                ))
            segment_now += seconds

        if end is None:
            if duration is not None:
                end = start + duration
            elif cue.duration is not None:
                end = start + resolve_time_value(cue.duration, ctx)
            elif cue.segments:
                end = segment_now
            elif cue.text:
                end = start + self.estimate(cue.text)
            else:
                end = start
        if end < start:
            raise CompileError(f"{label} ends at {end:g}s, before it starts at {start:g}s")
        return ResolvedCue(
            id=cue.id,
            scene_id=scene.id,
            start_sec=start,
            end_sec=end,
            text=cue.text,
            segments=tuple(segments),
            bullets=tuple(cue.bullets),
        )

    def _resolve_transition(self, index: int, transition: TransitionSpec) -> None:
        label = f'Transition "{transition.id}"'
        cursor = self._cursor_before(index) if self._needs_cursor(transition.time) else None
        ctx = self._context(index)
        mode = self._modes[index]
        prev_index = self._prev_scene(index)
        next_index = self._next_scene(index)
        start, end, range_duration = self._time_range(transition.time, ctx, cursor, label)

        if start is not None and end is not None:
            duration = max(0.0, end - start)
        elif range_duration is not None:
            duration = range_duration
        elif transition.duration is not None:
            duration = resolve_time_value(transition.duration, ctx)
        else:
            duration = DEFAULT_TRANSITION_SECONDS

        if start is None:
            if mode is TransitionMode.OVERLAP and prev_index is not None:
                prev_scene = self.items[prev_index]
                if prev_index not in self._ends:
                    raise MissingTimeReferenceError(TimeAnchor(AnchorKind.SCENE_END, prev_scene.id))
                start = max(0.0, self._ends[prev_index] - duration)
            else:
                start = cursor
        if end is None:
            end = start + duration
        if end < start:
            raise CompileError(f"{label} ends at {end:g}s, before it starts at {start:g}s")

        self._starts[index] = start
        self._ends[index] = end
        self._entries[index] = TimelineEntry(
            kind=EntryKind.TRANSITION,
            id=transition.id,
            start_sec=start,
            end_sec=end,
            from_scene_id=self.items[prev_index].id if prev_index is not None else None,
            to_scene_id=self.items[next_index].id if next_index is not None else None,
            effect=transition.effect,
            ease=transition.ease,
            mode=mode,
            props=dict(transition.props),
        )

    def _resolve_mark(self, index: int, mark: MarkSpec) -> None:
        at = resolve_time_value(mark.at, self._context(index))
        self._starts[index] = at
        self._ends[index] = at
        self._mark_starts[mark.id] = at
        self._entries[index] = TimelineEntry(
            kind=EntryKind.MARK, id=mark.id, start_sec=at, end_sec=at,
        )

    # ------------------------------------------------------------------
    # Fixed-point iteration
    # ------------------------------------------------------------------

    def _run_passes(self) -> None:
        pending = list(range(len(self.items)))
        max_passes = len(self.items) + 2
        passes = 0
        while pending:
            passes += 1
            if passes > max_passes:
                raise CompileError("Time resolution did not converge")
            waiting: Dict[int, TimeAnchor] = {}
            for index in pending:
                try:
                    self._resolve_item(index)
                except MissingTimeReferenceError as exc:
                    waiting[index] = exc.anchor
            log.debug(
                f"Resolution pass {passes}: placed {len(pending) - len(waiting)}, "
                f"deferred {len(waiting)}"
            )
            if len(waiting) == len(pending):
                raise self._reference_error(waiting)
            pending = list(waiting)

    def _check_scene_order(self) -> None:
        """Reject explicitly timed scenes that start before the previous item ends.

        Runs after every item is placed, so explicit starts never wait on the
        cursor during the passes.
        """
        for index in sorted(self._explicit_starts):
            start = self._explicit_starts[index]
            cursor = self._cursor_before(index)
            if start < cursor - _EPSILON:
                raise CompileError(
                    f'Scene "{self.items[index].id}" starts at {start:g}s, '
                    f"before the previous item ends at {cursor:g}s"
                )

    def _owner(self, anchor: TimeAnchor, index: int) -> Optional[int]:
        """Index of the timeline item that resolves anchor, if any."""
        kind = anchor.kind
        if kind in (AnchorKind.SCENE_START, AnchorKind.SCENE_END):
            return self._scene_index.get(anchor.ref)
        if kind is AnchorKind.CUE_START:
            return self._cue_scene_index.get(anchor.ref)
        if kind is AnchorKind.MARK_START:
            return self._mark_index.get(anchor.ref)
        if kind is AnchorKind.TRANSITION:
            return self._transition_index.get(anchor.ref)
        if kind in (AnchorKind.PREV_START, AnchorKind.PREV_END):
            return index - 1 if index > 0 else None
        if kind is AnchorKind.NEXT_START:
            return index + 1 if index + 1 < len(self.items) else None
        return None

    def _reference_error(self, waiting: Dict[int, TimeAnchor]) -> FramecueError:
        """Explain why no pending item could be placed.

        Each pending item waits on exactly one other item, so following those
        edges from every start either closes a loop or leaves the pending set.
        """
        edges = {index: self._owner(anchor, index) for index, anchor in waiting.items()}
        for origin in waiting:
            path: List[int] = []
            on_path: Dict[int, int] = {}
            node = origin
            while node in waiting and node not in on_path:
                on_path[node] = len(path)
                path.append(node)
                node = edges[node]
            if node in on_path:
                cycle = path[on_path[node]:] + [node]
                return CircularTimeReferenceError([self.items[k].id for k in cycle])
        for index, anchor in waiting.items():
            if edges[index] not in waiting:
                return UnresolvedTimeReferenceError(self.items[index].id, anchor)
        index, anchor = next(iter(waiting.items()))
        return UnresolvedTimeReferenceError(self.items[index].id, anchor)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _document_value(self, value: TimeValue) -> float:
        ctx = TimeEvalContext(
            fps=self.fps,
            scene_starts=dict(self._scene_starts),
            scene_ends=dict(self._scene_ends),
            cue_starts=dict(self._cue_starts),
            mark_starts=dict(self._mark_starts),
        )
        try:
            return resolve_time_value(value, ctx)
        except MissingTimeReferenceError as exc:
            raise UnresolvedTimeReferenceError(self.composition.id, exc.anchor) from exc

    def _build_output(self) -> ResolvedTimeline:
        entries = sorted(
            (self._entries[index] for index in range(len(self.items))),
            key=lambda entry: entry.start_sec,
        )
        pauses: List[ResolvedPause] = []
        if self.lead_in > 0:
            pauses.append(ResolvedPause(
                kind="lead_in", start_sec=0.0, end_sec=self.lead_in, seconds=self.lead_in,
            ))
        for index in sorted(self._scene_pauses):
            pauses.extend(self._scene_pauses[index])

        if self.composition.duration is not None:
            duration = self._document_value(self.composition.duration)
        else:
            duration = max([self.lead_in] + [entry.end_sec for entry in entries])
        poster = None
        if self.composition.poster is not None:
            poster = self._document_value(self.composition.poster)

        return ResolvedTimeline(
            composition_id=self.composition.id,
            fps=self.fps,
            width=self.composition.width,
            height=self.composition.height,
            duration_sec=duration,
            poster_time_sec=poster,
            entries=tuple(entries),
            scenes=tuple(self._scenes[index] for index in sorted(self._scenes)),
            pauses=tuple(pauses),
        )

    def resolve(self) -> ResolvedTimeline:
        """Run pause sampling and the fixed-point passes; safe to call repeatedly."""
        self._reset()
        self._pause_plan = self._sample_pauses()
        self._run_passes()
        self._check_scene_order()
        timeline = self._build_output()
        log.info(
            f"Resolved timeline {timeline.composition_id}: {len(timeline.entries)} entries, "
            f"{timeline.duration_sec:g}s"
        )
        return timeline


def resolve_timeline(
    composition: Union[CompositionSpec, Mapping[str, Any]],
    seed: Optional[int] = None,
    duration_estimator: Optional[DurationEstimator] = None,
) -> ResolvedTimeline:
    """Resolve a composition (model or plain dict) into a ResolvedTimeline.

    Args:
        composition: CompositionSpec, or a dict validated into one
        seed: Overrides voiceover.seed for pause sampling
        duration_estimator: Seconds for a text segment without a measured duration

    Returns:
        Frozen resolved timeline

    Raises:
        pydantic.ValidationError: If a dict does not match the schema
        ParseError: Malformed time expressions or time ranges
        CompileError: Duplicate ids, overlapping scenes, unresolved or circular references
    """
    if not isinstance(composition, CompositionSpec):
        composition = CompositionSpec.model_validate(composition)
    return TimelineResolver(composition, seed=seed, duration_estimator=duration_estimator).resolve()
