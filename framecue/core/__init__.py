"""Core domain logic for framecue.

Time-expression evaluation, timeline resolution and the per-frame animation
evaluators (keyframes, transitions, staggering, animation principles).
Everything that runs per frame is a pure function of its inputs; the only
stateful step is the one-time timeline resolution, which completes before any
frame is evaluated.
"""
