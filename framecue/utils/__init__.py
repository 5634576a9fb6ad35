"""Pure helper functions for framecue (no side effects).

Subpackages:
    math/     - clamp, lerp, interpolation, springs and easing curves
    parsing/  - time-expression tokenizer/parser and keyframe schedule strings
    logging/  - console logging helpers
"""
