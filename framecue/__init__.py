"""
framecue - time expressions, timeline resolution and per-frame animation.

A composition (scenes, cues, transitions and marks, with start/end written as
plain seconds or as time expressions such as ``scene(intro).end + 0.5``) is
resolved once into a frame-accurate timeline. Renderers then query the
deterministic per-frame evaluators (keyframes, springs, easing, staggering and
transitions) using the resolved start frames as their zero point.

Package structure:
    framecue/
        utils/      - Pure helpers (math, easing, parsing, seeds, logging)
        core/       - Time expressions, timeline resolver, animation evaluators
        config/     - Defaults and composition/timeline files
        models.py   - Validated composition schema and resolved output
        errors.py   - Error taxonomy
"""

__version__ = "0.3.0"
__all__ = ["core", "utils", "config", "models", "errors"]
