"""Exceptions raised while parsing time expressions and resolving timelines.

Hierarchy:
    FramecueError
        ParseError                    - malformed expression or time range (fatal)
        MissingTimeReferenceError     - anchor not computed yet (resolver retries)
        CompileError                  - authoring defect found while resolving
            UnresolvedTimeReferenceError
            CircularTimeReferenceError
"""

from typing import Any, List, Optional


class FramecueError(Exception):
    """Base class for all framecue errors."""


class ParseError(FramecueError):
    """A time expression or time range could not be parsed or evaluated.

    Attributes:
        expression: The offending expression text, when known
    """

    def __init__(self, message: str, expression: Optional[str] = None) -> None:
        if expression is not None:
            message = f'{message} in time expression "{expression}"'
        super().__init__(message)
        self.expression = expression


class MissingTimeReferenceError(FramecueError):
    """An expression referenced an anchor that has not been resolved.

    The resolver treats this as "not yet" and retries the item on a later pass.

    Attributes:
        anchor: The TimeAnchor that could not be looked up
    """

    def __init__(self, anchor: Any, message: Optional[str] = None) -> None:
        super().__init__(message or f"Unknown time reference: {anchor.describe()}")
        self.anchor = anchor


class CompileError(FramecueError):
    """The composition is well-formed but cannot be laid out."""


class UnresolvedTimeReferenceError(CompileError):
    """A reference was still missing after the resolver stopped making progress.

    Attributes:
        entity_id: Id of the timeline item that could not be placed
        anchor: The anchor it was waiting on
    """

    def __init__(self, entity_id: str, anchor: Any) -> None:
        super().__init__(
            f'Unresolved time reference {anchor.describe()} in timeline item "{entity_id}"'
        )
        self.entity_id = entity_id
        self.anchor = anchor


class CircularTimeReferenceError(CompileError):
    """Timeline items reference each other in a loop.

    Attributes:
        cycle: Item ids forming the loop, first id repeated at the end
    """

    def __init__(self, cycle: List[str]) -> None:
        super().__init__(f"Circular time reference: {' -> '.join(cycle)}")
        self.cycle = list(cycle)
