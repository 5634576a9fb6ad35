"""Evaluate parsed time expressions against resolved timeline anchors.

Anchors are looked up lazily: when an expression reads an anchor that the
resolver has not computed yet, evaluation raises MissingTimeReferenceError
carrying that anchor instead of defaulting to zero. The resolver catches it,
defers the item and retries on a later pass.

Classes:
    AnchorKind: Kinds of named reference points
    TimeAnchor: One reference point (kind plus optional entity id)
    TimeEvalContext: Immutable lookup tables used during evaluation
    TimeExpression: Parse-once, evaluate-many wrapper

Functions:
    evaluate_time_ast: Evaluate an AST node in a context
    parse_time_value: Parse and evaluate in one call
    resolve_time_value: Accept either a number (seconds) or an expression
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Mapping, Optional, Tuple, Union

from framecue.errors import MissingTimeReferenceError, ParseError
from framecue.utils.parsing.time_expressions import (
    BinaryNode,
    CallNode,
    IdentifierNode,
    NumberNode,
    PropertyNode,
    TimeNode,
    UnaryNode,
    parse_time_expression,
)

TimeValue = Union[int, float, str]


class AnchorKind(str, Enum):
    SCENE_START = "scene_start"
    SCENE_END = "scene_end"
    CUE_START = "cue_start"
    MARK_START = "mark_start"
    PREV_START = "prev_start"
    PREV_END = "prev_end"
    NEXT_START = "next_start"
    TIMELINE_START = "timeline_start"
    # Internal: a transition window the resolver is waiting on
    TRANSITION = "transition"


_ANCHOR_FORMATS = {
    AnchorKind.SCENE_START: "scene({ref}).start",
    AnchorKind.SCENE_END: "scene({ref}).end",
    AnchorKind.CUE_START: "cue({ref})",
    AnchorKind.MARK_START: "mark({ref})",
    AnchorKind.PREV_START: "prev.start",
    AnchorKind.PREV_END: "prev.end",
    AnchorKind.NEXT_START: "next.start",
    AnchorKind.TIMELINE_START: "timeline.start",
    AnchorKind.TRANSITION: "transition({ref})",
}


@dataclass(frozen=True)
class TimeAnchor:
    """A named point in the timeline, e.g. ``TimeAnchor(AnchorKind.SCENE_END, "intro")``."""

    kind: AnchorKind
    ref: Optional[str] = None

    def describe(self) -> str:
        """Author-facing spelling of the anchor, e.g. ``scene(intro).end``."""
        return _ANCHOR_FORMATS[self.kind].format(ref=self.ref)

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class TimeEvalContext:
    """Everything an expression may read while it is evaluated.

    Lookups return None for anchors that are not resolved yet; evaluation
    turns that into MissingTimeReferenceError.

    Attributes:
        fps: Frames per second used by the ``f`` unit
        scene_starts: Resolved scene starts by scene id
        scene_ends: Resolved scene ends by scene id
        cue_starts: Resolved cue starts by cue id
        mark_starts: Resolved mark positions by mark id
        prev_start: Start of the previous timeline item
        prev_end: End of the previous timeline item
        next_start: Start of the next timeline item
    """

    fps: float
    scene_starts: Mapping[str, float] = field(default_factory=dict)
    scene_ends: Mapping[str, float] = field(default_factory=dict)
    cue_starts: Mapping[str, float] = field(default_factory=dict)
    mark_starts: Mapping[str, float] = field(default_factory=dict)
    prev_start: Optional[float] = None
    prev_end: Optional[float] = None
    next_start: Optional[float] = None

    @classmethod
    def base(cls, fps: float) -> "TimeEvalContext":
        """Context with no resolved anchors, for document-level values."""
        return cls(fps=fps)

    def lookup(self, anchor: TimeAnchor) -> float:
        """Return the time of anchor in seconds.

        Raises:
            MissingTimeReferenceError: If the anchor is not resolved in this context
        """
        kind = anchor.kind
        if kind is AnchorKind.TIMELINE_START:
            return 0.0
        if kind is AnchorKind.SCENE_START:
            value = self.scene_starts.get(anchor.ref)
        elif kind is AnchorKind.SCENE_END:
            value = self.scene_ends.get(anchor.ref)
        elif kind is AnchorKind.CUE_START:
            value = self.cue_starts.get(anchor.ref)
        elif kind is AnchorKind.MARK_START:
            value = self.mark_starts.get(anchor.ref)
        elif kind is AnchorKind.PREV_START:
            value = self.prev_start
        elif kind is AnchorKind.PREV_END:
            value = self.prev_end
        elif kind is AnchorKind.NEXT_START:
            value = self.next_start
        else:
            value = None
        if value is None:
            raise MissingTimeReferenceError(anchor)
        return value


# ============================================================================
# EVALUATION
# ============================================================================

_ID_FUNCTIONS = {
    "scene": AnchorKind.SCENE_START,
    "cue": AnchorKind.CUE_START,
    "mark": AnchorKind.MARK_START,
}

_PROPERTY_ANCHORS = {
    ("prev", "start"): AnchorKind.PREV_START,
    ("prev", "end"): AnchorKind.PREV_END,
    ("next", "start"): AnchorKind.NEXT_START,
    ("timeline", "start"): AnchorKind.TIMELINE_START,
}


def _id_argument(node: CallNode, text: Optional[str]) -> str:
    if len(node.args) != 1 or not isinstance(node.args[0], IdentifierNode):
        raise ParseError(f"{node.name}() requires a single identifier argument", text)
    return node.args[0].name


def _anchor_for(node: TimeNode, text: Optional[str]) -> Optional[TimeAnchor]:
    """Return the anchor a call/property node reads, or None for other nodes."""
    if isinstance(node, CallNode) and node.name in _ID_FUNCTIONS:
        return TimeAnchor(_ID_FUNCTIONS[node.name], _id_argument(node, text))
    if not isinstance(node, PropertyNode):
        return None
    target = node.target
    if isinstance(target, IdentifierNode):
        kind = _PROPERTY_ANCHORS.get((target.name, node.prop))
        if kind is not None:
            return TimeAnchor(kind)
    elif isinstance(target, CallNode) and target.name == "scene":
        scene_id = _id_argument(target, text)
        if node.prop == "start":
            return TimeAnchor(AnchorKind.SCENE_START, scene_id)
        if node.prop == "end":
            return TimeAnchor(AnchorKind.SCENE_END, scene_id)
    raise ParseError(f'Unsupported property access ".{node.prop}"', text)


def _evaluate_call(node: CallNode, ctx: TimeEvalContext, text: Optional[str]) -> float:
    name = node.name
    if name in ("min", "max"):
        if len(node.args) < 2:
            raise ParseError(f"{name} requires at least 2 arguments", text)
        values = [evaluate_time_ast(arg, ctx, text) for arg in node.args]
        return min(values) if name == "min" else max(values)
    if name == "clamp":
        if len(node.args) != 3:
            raise ParseError("clamp requires 3 arguments", text)
        value, low, high = (evaluate_time_ast(arg, ctx, text) for arg in node.args)
        return min(high, max(low, value))
    if name == "snap":
        if len(node.args) != 2:
            raise ParseError("snap requires 2 arguments", text)
        value, grid = (evaluate_time_ast(arg, ctx, text) for arg in node.args)
        if grid == 0:
            return value
        return math.floor(value / grid + 0.5) * grid
    if name in _ID_FUNCTIONS:
        return ctx.lookup(_anchor_for(node, text))
    raise ParseError(f'Unknown function "{name}"', text)


def evaluate_time_ast(node: TimeNode, ctx: TimeEvalContext, text: Optional[str] = None) -> float:
    """Evaluate an AST node to seconds.

    Args:
        node: Parsed expression
        ctx: Anchor lookups and fps
        text: Original source, used only in error messages

    Returns:
        Time in seconds

    Raises:
        ParseError: Unknown identifiers/functions, bad arity, division by zero
        MissingTimeReferenceError: An anchor is not resolved in ctx
    """
    if isinstance(node, NumberNode):
        if node.unit == "f":
            return node.value / ctx.fps
        if node.unit == "ms":
            return node.value / 1000
        return node.value
    if isinstance(node, IdentifierNode):
        if node.name == "timeline":
            raise ParseError("timeline requires a property (e.g. timeline.start)", text)
        raise ParseError(f'Unknown identifier "{node.name}"', text)
    if isinstance(node, UnaryNode):
        value = evaluate_time_ast(node.operand, ctx, text)
        return -value if node.op == "-" else value
    if isinstance(node, BinaryNode):
        left = evaluate_time_ast(node.left, ctx, text)
        right = evaluate_time_ast(node.right, ctx, text)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise ParseError("Division by zero", text)
        return left / right
    if isinstance(node, CallNode):
        return _evaluate_call(node, ctx, text)
    return ctx.lookup(_anchor_for(node, text))


def iter_anchors(node: TimeNode) -> Iterator[TimeAnchor]:
    """Yield every anchor an AST reads, in evaluation order."""
    if isinstance(node, UnaryNode):
        yield from iter_anchors(node.operand)
    elif isinstance(node, BinaryNode):
        yield from iter_anchors(node.left)
        yield from iter_anchors(node.right)
    elif isinstance(node, (CallNode, PropertyNode)):
        anchor = _anchor_for(node, None)
        if anchor is not None:
            yield anchor
        elif isinstance(node, CallNode):
            for arg in node.args:
                yield from iter_anchors(arg)


class TimeExpression:
    """A parsed time expression that can be evaluated many times.

    Examples:
        >>> expr = TimeExpression.parse("scene(intro).end + 15f")
        >>> expr.evaluate(TimeEvalContext(fps=30, scene_ends={"intro": 4.0}))
        4.5
        >>> [a.describe() for a in expr.references()]
        ['scene(intro).end']
    """

    __slots__ = ("text", "ast")

    def __init__(self, text: str, ast: TimeNode) -> None:
        self.text = text
        self.ast = ast

    @classmethod
    def parse(cls, text: str) -> "TimeExpression":
        text = text.strip()
        return cls(text, parse_time_expression(text))

    def evaluate(self, ctx: TimeEvalContext) -> float:
        return evaluate_time_ast(self.ast, ctx, self.text)

    def references(self) -> Tuple[TimeAnchor, ...]:
        return tuple(dict.fromkeys(iter_anchors(self.ast)))

    def __repr__(self) -> str:
        return f"TimeExpression({self.text!r})"


def parse_time_value(text: str, ctx: TimeEvalContext) -> float:
    """Parse and evaluate a time expression, returning seconds.

    Examples:
        >>> ctx = TimeEvalContext.base(fps=30)
        >>> parse_time_value("30f", ctx)
        1.0
        >>> parse_time_value("500ms", ctx)
        0.5
        >>> parse_time_value("snap(0.47, 0.25)", ctx)
        0.5
        >>> parse_time_value("clamp(5, 0, 3)", ctx)
        3.0
    """
    return TimeExpression.parse(text).evaluate(ctx)


def resolve_time_value(value: TimeValue, ctx: TimeEvalContext) -> float:
    """Seconds for a value that is either a number or an expression string."""
    if isinstance(value, str):
        return parse_time_value(value, ctx)
    return float(value)
