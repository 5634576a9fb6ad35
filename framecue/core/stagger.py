"""Per-item delays for animating a collection in a pattern.

``stagger(config)`` fans one start frame out into ``count`` delays. Linear
patterns work on the item index; grid patterns place item ``i`` at
``(i // columns, i % columns)`` and derive the delay from that cell.

    linear       i * d
    reverse      (count - 1 - i) * d
    from-center  |i - c| * d              c = (count - 1) / 2
    from-edges   (c - |i - c|) * d
    random       shuffled rank * d       mulberry32 Fisher-Yates, seed 42 by default
    row          row * d
    column       col * d
    diagonal     (row + col) * d
    spiral       rank by (distance to nearest edge, row + col) * d

Everything here is a pure function of the config, so delays and progress can
be recomputed for any frame independently.
"""

import math
from dataclasses import dataclass
from typing import List, Literal, NamedTuple, Optional

from framecue.config.defaults import DEFAULT_STAGGER_SEED, get_stagger_patterns
from framecue.utils.seed_utils import shuffled_indices

StaggerPattern = Literal[
    "linear", "reverse", "from-center", "from-edges", "random",
    "row", "column", "diagonal", "spiral",
]
ItemPhase = Literal["waiting", "animating", "complete"]

_GRID_PATTERNS = ("row", "column", "diagonal", "spiral")


@dataclass(frozen=True)
class StaggerConfig:
    """How a group of ``count`` items is staggered.

    Attributes:
        count: Number of items
        delay_frames: Delay unit between neighbouring ranks
        pattern: One of get_stagger_patterns()
        seed: Shuffle seed for the random pattern (42 when omitted)
        columns: Grid width for row/column/diagonal/spiral
            (ceil(sqrt(count)) when omitted)
    """
    count: int
    delay_frames: float
    pattern: StaggerPattern = "linear"
    seed: Optional[int] = None
    columns: Optional[int] = None

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Stagger count must be >= 0, got {self.count}")
        if self.pattern not in get_stagger_patterns():
            raise ValueError(f"Unknown stagger pattern: {self.pattern}")
        if self.columns is not None and self.columns < 1:
            raise ValueError(f"Stagger columns must be >= 1, got {self.columns}")

    @property
    def grid_columns(self) -> int:
        if self.columns is not None:
            return self.columns
        return max(1, math.ceil(math.sqrt(self.count)))


class StaggerItemState(NamedTuple):
    index: int
    progress: float
    state: ItemPhase


def _grid_delays(config: StaggerConfig) -> List[float]:
    columns = config.grid_columns
    rows = math.ceil(config.count / columns) if config.count else 0
    cells = [(i // columns, i % columns) for i in range(config.count)]
    d = config.delay_frames

    if config.pattern == "row":
        return [row * d for row, _ in cells]
    if config.pattern == "column":
        return [col * d for _, col in cells]
    if config.pattern == "diagonal":
        return [(row + col) * d for row, col in cells]

    # spiral: outer ring first, each ring walked from its top-left corner
    def ring_key(i: int):
        row, col = cells[i]
        edge_distance = min(row, col, rows - 1 - row, columns - 1 - col)
        return edge_distance, row + col

    order = sorted(range(config.count), key=ring_key)
    delays = [0.0] * config.count
    for rank, i in enumerate(order):
        delays[i] = rank * d
    return delays


def stagger(config: StaggerConfig) -> List[float]:
    """Delay in frames for each item of the group.

    Args:
        config: Stagger configuration

    Returns:
        List of ``count`` delays, item order

    Examples:
        >>> stagger(StaggerConfig(4, 10))
        [0, 10, 20, 30]
        >>> stagger(StaggerConfig(4, 10, "reverse"))
        [30, 20, 10, 0]
        >>> stagger(StaggerConfig(5, 10, "from-center"))
        [20.0, 10.0, 0.0, 10.0, 20.0]
    """
    count, d = config.count, config.delay_frames

    if config.pattern == "linear":
        return [i * d for i in range(count)]
    if config.pattern == "reverse":
        return [(count - 1 - i) * d for i in range(count)]
    if config.pattern in ("from-center", "from-edges"):
        center = (count - 1) / 2
        if config.pattern == "from-center":
            return [abs(i - center) * d for i in range(count)]
        return [(center - abs(i - center)) * d for i in range(count)]
    if config.pattern == "random":
        seed = DEFAULT_STAGGER_SEED if config.seed is None else config.seed
        order = shuffled_indices(count, seed)
        rank = {index: position for position, index in enumerate(order)}
        return [rank[i] * d for i in range(count)]
    if config.pattern in _GRID_PATTERNS:
        return _grid_delays(config)
    raise ValueError(f"Unknown stagger pattern: {config.pattern}")


def _progress(frame: float, start: float, duration_frames: float) -> float:
    item_frame = frame - start
    if item_frame < 0:
        return 0.0
    if item_frame >= duration_frames:
        return 1.0
    return item_frame / duration_frames


def staggered_progress(index: int, frame: float, config: StaggerConfig, duration_frames: float) -> float:
    """Linear 0..1 progress of one item; 0 before its delay, 1 once finished.

    Examples:
        >>> config = StaggerConfig(3, 10)
        >>> [staggered_progress(1, f, config, 20) for f in (5, 20, 30)]
        [0.0, 0.5, 1.0]
    """
    if not 0 <= index < config.count:
        raise IndexError(f"Stagger item {index} out of range for count {config.count}")
    return _progress(frame, stagger(config)[index], duration_frames)


def stagger_state(frame: float, config: StaggerConfig, duration_frames: float) -> List[StaggerItemState]:
    """Progress and phase of every item at one frame."""
    states = []
    for index, start in enumerate(stagger(config)):
        if frame < start:
            phase = "waiting"
        elif frame >= start + duration_frames:
            phase = "complete"
        else:
            phase = "animating"
        states.append(StaggerItemState(index, _progress(frame, start, duration_frames), phase))
    return states
