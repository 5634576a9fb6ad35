"""Unit tests for timeline resolution."""

import pytest
from pydantic import ValidationError

from framecue.core.time_expressions import AnchorKind
from framecue.core.timeline import (
    TimelineResolver,
    estimate_duration_sec,
    expand_timeline_items,
    resolve_timeline,
)
from framecue.errors import (
    CircularTimeReferenceError,
    CompileError,
    ParseError,
    UnresolvedTimeReferenceError,
)
from framecue.models import CompositionSpec, EntryKind, TransitionMode


def scene(scene_id, *cue_durations, **extra):
    items = [
        {"kind": "cue", "id": f"{scene_id}-{i}", "duration": duration}
        for i, duration in enumerate(cue_durations)
    ]
    return {"kind": "scene", "id": scene_id, "items": items, **extra}


def spans(timeline):
    return {entry.id: (entry.start_sec, entry.end_sec) for entry in timeline.entries}


class TestEstimateDuration:
    """Test estimate_duration_sec function."""

    def test_empty_text(self):
        assert estimate_duration_sec("") == 0.0
        assert estimate_duration_sec("   ") == 0.0

    def test_words_per_minute(self):
        assert estimate_duration_sec("one two three", 180) == pytest.approx(1.0)

    def test_minimum_duration(self):
        assert estimate_duration_sec("hi", 6000) == 0.25


class TestSequentialPlacement:
    """Default placement lays scenes and cues end to end."""

    def test_two_scenes(self):
        timeline = resolve_timeline({"timeline": [scene("a", 5), scene("b", 3)]})
        assert spans(timeline) == {"a": (0.0, 5.0), "b": (5.0, 8.0)}
        assert timeline.duration_sec == 8.0

    def test_cues_within_scene(self):
        timeline = resolve_timeline({"timeline": [scene("a", 1, 2, 0.5)]})
        cues = timeline.scene("a").cues
        assert [(c.start_sec, c.end_sec) for c in cues] == [(0.0, 1.0), (1.0, 3.0), (3.0, 3.5)]
        assert all(c.scene_id == "a" for c in cues)

    def test_cue_duration_from_text_estimate(self):
        spec = {
            "voiceover": {"words_per_minute": 120},
            "timeline": [{"kind": "scene", "id": "a", "items": [
                {"kind": "cue", "id": "c", "text": "one two three four"},
            ]}],
        }
        assert resolve_timeline(spec).cue("c").end_sec == pytest.approx(2.0)

    def test_custom_duration_estimator(self):
        spec = {"timeline": [{"kind": "scene", "id": "a", "items": [
            {"kind": "cue", "id": "c", "text": "anything at all"},
        ]}]}
        timeline = resolve_timeline(spec, duration_estimator=lambda text: 4.0)
        assert timeline.cue("c").end_sec == 4.0

    def test_cue_segments(self):
        spec = {"timeline": [{"kind": "scene", "id": "a", "items": [
            {"kind": "cue", "id": "c", "segments": [
                {"kind": "text", "text": "first", "duration_sec": 1.5, "trim_end_sec": 0.25},
                {"kind": "pause", "mode": "fixed", "seconds": 0.5},
                {"kind": "text", "text": "second", "duration_sec": 1.0},
            ]},
        ]}]}
        cue = resolve_timeline(spec).cue("c")
        assert [(s.kind, s.start_sec, s.end_sec) for s in cue.segments] == [
            ("text", 0.0, 1.25),
            ("pause", 1.25, 1.75),
            ("text", 1.75, 2.75),
        ]
        assert cue.end_sec == 2.75

    def test_embedded_pause_item(self):
        spec = {"timeline": [{"kind": "scene", "id": "a", "items": [
            {"kind": "cue", "id": "c1", "duration": 1},
            {"kind": "pause", "mode": "fixed", "seconds": 2},
            {"kind": "cue", "id": "c2", "duration": 1},
        ]}]}
        timeline = resolve_timeline(spec)
        assert timeline.cue("c2").start_sec == 3.0
        assert [(p.start_sec, p.end_sec) for p in timeline.pauses] == [(1.0, 3.0)]

    def test_pause_between_items(self):
        spec = {"voiceover": {"pause_between_items": 0.5}, "timeline": [scene("a", 1, 1, 1)]}
        cues = resolve_timeline(spec).scene("a").cues
        assert [c.start_sec for c in cues] == [0.0, 1.5, 3.0]

    def test_pause_between_items_skipped_for_explicit_start(self):
        spec = {"voiceover": {"pause_between_items": 0.5}, "timeline": [{"kind": "scene", "id": "a", "items": [
            {"kind": "cue", "id": "c1", "duration": 1},
            {"kind": "cue", "id": "c2", "duration": 1, "time": {"start": 1}},
        ]}]}
        assert resolve_timeline(spec).cue("c2").start_sec == 1.0

    def test_lead_in(self):
        spec = {"voiceover": {"lead_in_seconds": 1.5}, "timeline": [scene("a", 2)]}
        timeline = resolve_timeline(spec)
        assert spans(timeline) == {"a": (1.5, 3.5)}
        assert timeline.pauses[0].kind == "lead_in"

    def test_lead_in_rejected_with_scene_times(self):
        spec = {"voiceover": {"lead_in_seconds": 1}, "timeline": [scene("a", 2, time={"start": 0})]}
        with pytest.raises(CompileError, match="lead_in_seconds"):
            resolve_timeline(spec)


class TestExplicitTiming:
    """TimeRange and expression overrides."""

    def test_scene_with_duration_and_no_cues(self):
        timeline = resolve_timeline({"timeline": [
            {"kind": "scene", "id": "title", "time": {"duration": "60f"}},
            scene("b", 1),
        ]})
        assert spans(timeline) == {"title": (0.0, 2.0), "b": (2.0, 3.0)}

    def test_scene_without_cues_or_duration(self):
        with pytest.raises(CompileError, match="has no cues"):
            resolve_timeline({"timeline": [{"kind": "scene", "id": "empty"}]})

    def test_explicit_end_extends_scene(self):
        timeline = resolve_timeline({"timeline": [scene("a", 1, time={"start": 0, "end": 4})]})
        assert spans(timeline) == {"a": (0.0, 4.0)}

    def test_content_longer_than_end(self):
        timeline = resolve_timeline({"timeline": [scene("a", 5, time={"start": 0, "end": 4})]})
        assert spans(timeline)["a"] == (0.0, 5.0)

    def test_relative_start(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 2),
            scene("b", 1, time={"start": 0.5, "start_is_relative": True}),
        ]})
        assert spans(timeline)["b"] == (2.5, 3.5)

    def test_relative_end(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 2),
            scene("b", 1, time={"start": "prev.end", "end": 3, "end_is_relative": True}),
        ]})
        assert spans(timeline)["b"] == (2.0, 5.0)

    def test_end_without_start(self):
        with pytest.raises(ParseError, match="requires start when end is provided"):
            resolve_timeline({"timeline": [scene("a", 1, time={"end": 3})]})

    def test_scene_starting_before_previous_end(self):
        with pytest.raises(CompileError, match="before the previous item ends"):
            resolve_timeline({"timeline": [scene("a", 5), scene("b", 1, time={"start": 2})]})

    def test_cue_expression_references_earlier_cue(self):
        spec = {"timeline": [{"kind": "scene", "id": "a", "items": [
            {"kind": "cue", "id": "c1", "duration": 2},
            {"kind": "cue", "id": "c2", "duration": 1, "time": {"start": "cue(c1) + 0.5"}},
        ]}]}
        assert resolve_timeline(spec).cue("c2").start_sec == 0.5

    def test_cue_ending_before_start(self):
        spec = {"timeline": [{"kind": "scene", "id": "a", "items": [
            {"kind": "cue", "id": "c", "time": {"start": 2, "end": 1}},
        ]}]}
        with pytest.raises(CompileError, match="before it starts"):
            resolve_timeline(spec)

    def test_malformed_expression_is_fatal(self):
        with pytest.raises(ParseError):
            resolve_timeline({"timeline": [scene("a", "2 +")]})


class TestForwardReferences:
    """Multi-pass resolution of forward and backward references."""

    def test_mark_before_its_scene(self):
        timeline = resolve_timeline({"timeline": [
            {"kind": "mark", "id": "m", "at": "scene(b).start + 0.5"},
            scene("a", 2),
            scene("b", 3),
        ]})
        assert spans(timeline)["m"] == (2.5, 2.5)

    def test_next_start(self):
        timeline = resolve_timeline({"timeline": [
            {"kind": "mark", "id": "m", "at": "next.start"},
            scene("a", 2, time={"start": 1}),
        ]})
        assert spans(timeline)["m"] == (1.0, 1.0)

    def test_scene_start_from_later_mark(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 1, time={"start": "mark(go)"}),
            {"kind": "mark", "id": "go", "at": 3},
        ]})
        assert spans(timeline)["a"] == (3.0, 4.0)

    def test_scene_end_at_next_start(self):
        """An explicitly timed scene does not wait on the scene before it."""
        timeline = resolve_timeline({"timeline": [
            {"kind": "scene", "id": "a", "time": {"start": 0, "end": "next.start"}},
            {"kind": "scene", "id": "b", "time": {"start": 10, "end": 15}},
        ]})
        assert spans(timeline) == {"a": (0.0, 10.0), "b": (10.0, 15.0)}

    def test_scene_end_at_later_scene_start(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 2, time={"start": 0, "end": "scene(b).start"}),
            scene("b", 1, time={"start": 6}),
        ]})
        assert spans(timeline) == {"a": (0.0, 6.0), "b": (6.0, 7.0)}

    def test_transition_start_from_later_scene(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 2),
            {"kind": "transition", "id": "t", "mode": "insert",
             "time": {"start": "scene(b).start - 1"}},
            scene("b", 1, time={"start": 5}),
        ]})
        assert spans(timeline) == {"a": (0.0, 2.0), "t": (4.0, 5.0), "b": (5.0, 6.0)}

    def test_forward_reference_still_checks_overlap(self):
        """Scene order is validated once every item is placed."""
        with pytest.raises(CompileError, match="before the previous item ends"):
            resolve_timeline({"timeline": [
                scene("a", 2, time={"start": 0, "end": "scene(b).start + 1"}),
                scene("b", 1, time={"start": 4}),
            ]})

    def test_two_item_cycle(self):
        with pytest.raises(CircularTimeReferenceError) as exc_info:
            resolve_timeline({"timeline": [
                scene("a", 1, time={"start": "scene(b).start"}),
                scene("b", 1),
            ]})
        assert exc_info.value.cycle == ["a", "b", "a"]

    def test_mark_cycle(self):
        with pytest.raises(CircularTimeReferenceError) as exc_info:
            resolve_timeline({"timeline": [
                {"kind": "mark", "id": "x", "at": "mark(y)"},
                {"kind": "mark", "id": "y", "at": "mark(x) + 1"},
            ]})
        assert exc_info.value.cycle == ["x", "y", "x"]

    def test_self_reference(self):
        with pytest.raises(CircularTimeReferenceError):
            resolve_timeline({"timeline": [{"kind": "mark", "id": "x", "at": "mark(x)"}]})

    def test_unknown_reference(self):
        with pytest.raises(UnresolvedTimeReferenceError) as exc_info:
            resolve_timeline({"timeline": [scene("a", 1), {"kind": "mark", "id": "m", "at": "mark(nope)"}]})
        assert exc_info.value.entity_id == "m"
        assert exc_info.value.anchor.kind is AnchorKind.MARK_START
        assert "mark(nope)" in str(exc_info.value)


class TestTransitions:
    """Transition placement between scenes."""

    def test_overlap_between_scenes(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 5),
            {"kind": "transition", "id": "t", "duration": "15f"},
            scene("b", 3),
        ]})
        entry = timeline.entry("t")
        assert entry.mode is TransitionMode.OVERLAP
        assert (entry.start_sec, entry.end_sec) == (4.5, 5.0)
        assert (entry.from_scene_id, entry.to_scene_id) == ("a", "b")
        assert spans(timeline)["b"] == (4.5, 8.0)
        assert timeline.cue("b-0").start_sec == 5.0

    def test_default_duration(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 5), {"kind": "transition", "id": "t"}, scene("b", 3),
        ]})
        assert timeline.entry("t").duration_sec == 1.0

    def test_insert_mode_advances_cursor(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 5),
            {"kind": "transition", "id": "t", "duration": 1, "mode": "insert"},
            scene("b", 3),
        ]})
        assert spans(timeline) == {"a": (0.0, 5.0), "t": (5.0, 6.0), "b": (6.0, 9.0)}

    def test_trailing_transition_inserts(self):
        timeline = resolve_timeline({"timeline": [scene("a", 2), {"kind": "transition", "id": "out"}]})
        entry = timeline.entry("out")
        assert entry.mode is TransitionMode.INSERT
        assert (entry.start_sec, entry.end_sec) == (2.0, 3.0)
        assert timeline.duration_sec == 3.0

    def test_transition_to_next_shorthand(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 4, transition_to_next={"effect": "wipe", "duration": 0.5, "props": {"direction": "up"}}),
            scene("b", 2),
        ]})
        entry = timeline.entry("a__to_next")
        assert entry.kind is EntryKind.TRANSITION
        assert entry.effect == "wipe"
        assert entry.props == {"direction": "up"}
        assert (entry.start_sec, entry.end_sec) == (3.5, 4.0)

    def test_explicit_transition_wins_over_shorthand(self):
        spec = CompositionSpec.model_validate({"timeline": [
            scene("a", 4, transition_to_next={}),
            {"kind": "transition", "id": "t"},
            scene("b", 2),
        ]})
        assert [item.id for item in expand_timeline_items(spec.timeline)] == ["a", "t", "b"]

    def test_overlap_never_starts_before_zero(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 0.5), {"kind": "transition", "id": "t", "duration": 2}, scene("b", 1),
        ]})
        assert timeline.entry("t").start_sec == 0.0


class TestResolvedTimeline:
    """Ordering, lookups and determinism of the output."""

    def test_entries_sorted_by_start_with_stable_ties(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 2),
            {"kind": "mark", "id": "early", "at": 0},
            scene("b", 1),
            {"kind": "mark", "id": "tie", "at": 2},
        ]})
        assert [e.id for e in timeline.entries] == ["a", "early", "b", "tie"]
        starts = [e.start_sec for e in timeline.entries]
        assert starts == sorted(starts)

    def test_active_at(self):
        timeline = resolve_timeline({"timeline": [
            scene("a", 2), {"kind": "mark", "id": "m", "at": 2}, scene("b", 1),
        ]})
        assert [e.id for e in timeline.active_at(1.0)] == ["a"]
        assert [e.id for e in timeline.active_at(2.0)] == ["m", "b"]

    def test_frame_range(self):
        timeline = resolve_timeline({"fps": 30, "timeline": [scene("a", 1.25, 0.5)]})
        assert timeline.frame_range("a") == (0, 53)
        assert timeline.frame_range("a-1") == (38, 53)
        assert timeline.duration_frames == 53

    def test_lookup_of_unknown_id(self):
        timeline = resolve_timeline({"timeline": [scene("a", 1)]})
        with pytest.raises(KeyError):
            timeline.entry("nope")
        with pytest.raises(KeyError):
            timeline.frame_range("nope")

    def test_explicit_duration_and_poster(self):
        timeline = resolve_timeline({
            "duration": "scene(a).end + 1",
            "poster": "cue(a-1)",
            "timeline": [scene("a", 2, 1)],
        })
        assert timeline.duration_sec == 4.0
        assert timeline.poster_time_sec == 2.0

    def test_poster_with_unknown_reference(self):
        with pytest.raises(UnresolvedTimeReferenceError) as exc_info:
            resolve_timeline({"id": "demo", "poster": "mark(nope)", "timeline": [scene("a", 1)]})
        assert exc_info.value.entity_id == "demo"

    def test_empty_composition(self):
        timeline = resolve_timeline({})
        assert timeline.entries == ()
        assert timeline.duration_sec == 0.0

    def test_resolution_is_idempotent(self):
        spec = {
            "voiceover": {"seed": 7, "pause_between_items": {"mode": "gaussian", "mean": 0.4, "std": 0.2}},
            "timeline": [
                scene("a", 1, 2, 3),
                {"kind": "transition", "id": "t", "duration": "12f"},
                scene("b", 1, 1),
                {"kind": "mark", "id": "m", "at": "scene(b).end - 0.25"},
            ],
        }
        assert resolve_timeline(spec).to_json() == resolve_timeline(spec).to_json()

    def test_resolver_can_be_reused(self):
        resolver = TimelineResolver(CompositionSpec.model_validate({
            "voiceover": {"seed": 3, "pause_between_items": {"mode": "gaussian", "mean": 1, "std": 0.5}},
            "timeline": [scene("a", 1, 1, 1)],
        }))
        assert resolver.resolve() == resolver.resolve()

    def test_seed_argument_overrides_voiceover_seed(self):
        spec = {
            "voiceover": {"seed": 1, "pause_between_items": {"mode": "gaussian", "mean": 1, "std": 0.5}},
            "timeline": [scene("a", 1, 1)],
        }
        assert resolve_timeline(spec, seed=99) == resolve_timeline({**spec, "voiceover": {**spec["voiceover"], "seed": 99}})


class TestValidation:
    """Schema and id checks before resolution."""

    def test_duplicate_ids(self):
        with pytest.raises(CompileError, match='Duplicate id "a"'):
            resolve_timeline({"timeline": [scene("a", 1), {"kind": "mark", "id": "a", "at": 0}]})

    def test_cue_id_clashing_with_scene(self):
        with pytest.raises(CompileError, match='Duplicate id "b-0"'):
            resolve_timeline({"timeline": [scene("b", 1), {"kind": "mark", "id": "b-0", "at": 0}]})

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            resolve_timeline({"timeline": [{"kind": "scene", "id": "a", "colour": "red"}]})

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            resolve_timeline({"timeline": [{"kind": "chapter", "id": "a"}]})
