import json
import os
from typing import Optional

from framecue.core.timeline import resolve_timeline
from framecue.models import CompositionSpec, ResolvedTimeline
from framecue.utils.logging import log


def load_composition_file(path) -> CompositionSpec:
    """
    Load a composition JSON file into the validated model.

    Args:
        path: Path to a UTF-8 JSON file holding one composition object

    Returns:
        CompositionSpec

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        pydantic.ValidationError: If the JSON does not match the schema
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    composition = CompositionSpec.model_validate(data)
    log.debug(f"Loaded composition {composition.id} from {path}")
    return composition


def write_timeline_file(timeline: ResolvedTimeline, path, indent: int = 2) -> str:
    """Write a resolved timeline as JSON, creating parent directories. Returns the path."""
    timeline_dir = os.path.dirname(path)
    if timeline_dir and not os.path.exists(timeline_dir):
        os.makedirs(timeline_dir, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(timeline.to_json(indent=indent))

    log.info(f"Saved timeline {timeline.composition_id} to {path}")
    return path


def resolve_composition_file(path, output_path=None, seed: Optional[int] = None) -> ResolvedTimeline:
    """Load, resolve and optionally save a composition in one call."""
    timeline = resolve_timeline(load_composition_file(path), seed=seed)
    if output_path is not None:
        write_timeline_file(timeline, output_path)
    return timeline
