"""Unit tests for composition and timeline file helpers."""

import json

import pytest
from pydantic import ValidationError

from framecue.config.settings import load_composition_file, resolve_composition_file, write_timeline_file
from framecue.core.timeline import resolve_timeline
from framecue.models import CompositionSpec

COMPOSITION = {
    "id": "demo",
    "fps": 30,
    "timeline": [
        {"kind": "scene", "id": "intro", "items": [{"kind": "cue", "id": "hook", "duration": 2}]},
        {"kind": "transition", "id": "fade-1", "duration": "12f"},
        {"kind": "scene", "id": "body", "items": [{"kind": "cue", "id": "point", "duration": 3}]},
    ],
}


@pytest.fixture
def composition_file(tmp_path):
    path = tmp_path / "demo.json"
    path.write_text(json.dumps(COMPOSITION), encoding="utf-8")
    return path


class TestLoadCompositionFile:
    """Test load_composition_file function."""

    def test_loads_model(self, composition_file):
        composition = load_composition_file(composition_file)
        assert isinstance(composition, CompositionSpec)
        assert composition.id == "demo"
        assert [item.id for item in composition.timeline] == ["intro", "fade-1", "body"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_composition_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_composition_file(path)

    def test_schema_error(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"fps": -1}), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_composition_file(path)


class TestWriteTimelineFile:
    """Test write_timeline_file function."""

    def test_creates_directories(self, tmp_path):
        timeline = resolve_timeline(COMPOSITION)
        path = tmp_path / "out" / "nested" / "timeline.json"
        assert write_timeline_file(timeline, str(path)) == str(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["composition_id"] == "demo"
        assert [entry["id"] for entry in data["entries"]] == ["intro", "fade-1", "body"]

    def test_resolve_composition_file(self, composition_file, tmp_path):
        output = tmp_path / "timeline.json"
        timeline = resolve_composition_file(composition_file, output_path=str(output))
        assert timeline.entry("body").end_sec == 5.0
        assert json.loads(output.read_text(encoding="utf-8"))["duration_sec"] == 5.0
