"""Parsers for time expressions and keyframe schedule strings."""
