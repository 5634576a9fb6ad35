"""Seeded random number helpers used at build time.

This module contains the deterministic PRNG used for random stagger orders
and Gaussian pause sampling. Everything except the unseeded fallback of
make_rng (which uses random.random) is reproducible from the seed alone.
"""

import math
import random
from typing import Callable, Optional

RandomFn = Callable[[], float]

# ============================================================================
# CONSTANTS
# ============================================================================

MAX_SEED = 2**32 - 1
_MASK = 0xFFFFFFFF
_MULBERRY_INCREMENT = 0x6D2B79F5

# ============================================================================
# PURE FUNCTIONS
# ============================================================================


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


def mulberry32(seed: int) -> RandomFn:
    """Create a mulberry32 generator yielding floats in [0, 1).

    Each call of the returned function advances a private 32-bit state, so two
    generators built from the same seed produce identical sequences.

    Args:
        seed: Any integer; only the low 32 bits are used

    Returns:
        Zero-argument function returning the next float

    Examples:
        >>> a, b = mulberry32(7), mulberry32(7)
        >>> [a() for _ in range(3)] == [b() for _ in range(3)]
        True
    """
    state = seed & _MASK

    def next_random() -> float:
        nonlocal state
        state = (state + _MULBERRY_INCREMENT) & _MASK
        t = _imul(state ^ (state >> 15), state | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / 4294967296

    return next_random


def make_rng(seed: Optional[int]) -> RandomFn:
    """Return a seeded mulberry32 generator, or random.random when seed is None."""
    if seed is None:
        return random.random
    return mulberry32(seed)


def gaussian_sample(rng: RandomFn, mean: float, std: float) -> float:
    """Draw one normal sample with the Box-Muller transform.

    Zero draws are rejected so log(u) stays finite.

    Args:
        rng: Uniform generator in [0, 1)
        mean: Distribution mean
        std: Standard deviation

    Returns:
        mean + z * std
    """
    u = 0.0
    v = 0.0
    while u == 0:
        u = rng()
    while v == 0:
        v = rng()
    z = math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
    return mean + z * std


def shuffled_indices(count: int, seed: int) -> list:
    """Fisher-Yates shuffle of range(count) driven by mulberry32(seed).

    Examples:
        >>> sorted(shuffled_indices(5, 42)) == list(range(5))
        True
    """
    rng = mulberry32(seed)
    indices = list(range(count))
    for i in range(count - 1, 0, -1):
        j = math.floor(rng() * (i + 1))
        indices[i], indices[j] = indices[j], indices[i]
    return indices
