"""Scalar math helpers, springs and easing curves."""
