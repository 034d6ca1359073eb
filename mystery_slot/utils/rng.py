"""
Deterministic random stream and weighted picks used by every game component.

The generator is mulberry32: a 32-bit state advanced by the constant
0x6D2B79F5 and mixed with two wrapping multiplies and xor-shifts. A seed
reproduces the exact same sequence of floats, which is what makes a spin
auditable. It is NOT cryptographically secure.
"""

from mystery_slot.utils.reel_config import PAYING_SYMBOLS

MASK_32 = 0xFFFFFFFF
GOLDEN_INCREMENT = 0x6D2B79F5
TWO_POW_32 = 4294967296.0


def _imul(a, b):
    """32-bit wrapping multiply (same bits as JavaScript's Math.imul)."""
    return (a * b) & MASK_32


class SeededRng:
    """Sequential float stream in [0, 1) from a 32-bit unsigned seed."""

    def __init__(self, seed: int):
        self.seed = int(seed) & MASK_32
        self._state = self.seed
        self.draws = 0

    def next_float(self) -> float:
        self._state = (self._state + GOLDEN_INCREMENT) & MASK_32
        t = self._state
        r = _imul(t ^ (t >> 15), 1 | t)
        r = (r ^ ((r + _imul(r ^ (r >> 7), 61 | t)) & MASK_32)) & MASK_32
        self.draws += 1
        return ((r ^ (r >> 14)) & MASK_32) / TWO_POW_32

    __call__ = next_float

    def randint_below(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        return int(self.next_float() * n)

    def __repr__(self):
        return f"<SeededRng seed={self.seed} draws={self.draws}>"


def pick_weighted(rng, items):
    """
    Draws one item from a list of (item, weight) pairs.

    Walks the list accumulating weight and returns the first item whose
    cumulative weight exceeds ``rng() * total``. If floating point error leaves
    the draw unconsumed the last item is returned, so this never raises for a
    non-empty list with a positive total.

    Args:
        rng: Callable returning floats in [0, 1).
        items (Sequence[tuple]): (item, weight) pairs, weights >= 0.

    Returns:
        The selected item.
    """
    total = 0.0
    for _, weight in items:
        total += weight
    r = rng() * total
    acc = 0.0
    for item, weight in items:
        acc += weight
        if r < acc:
            return item
    return items[-1][0]


def pick_symbol(rng, weights):
    """
    Weighted pick over a ``Symbol -> weight`` mapping.

    Entries are walked in paytable order whatever the mapping's insertion
    order, so a table loaded from JSON draws exactly like the built-in one.
    """
    return pick_weighted(rng, [(sym, weights[sym]) for sym in PAYING_SYMBOLS if sym in weights])
