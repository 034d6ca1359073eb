"""
Ways-pay evaluation for the 4x6 grid.

A symbol pays when it appears in any row of column 0 and keeps appearing,
in any row, in every following column of an unbroken run. There are no
wilds: only exact matches count.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Tuple

from mystery_slot.utils.reel_config import DEFAULT_PAYTABLE, PAYING_SYMBOLS, ROWS, Symbol, pool_total, symbol_weight

MIN_WAYS_LENGTH = 3


@dataclass(frozen=True)
class WinPart:
    symbol: Symbol
    length: int
    ways: int
    pay: float
    amount: float
    positions: FrozenSet[Tuple[int, int]] = field(default_factory=frozenset)

    @property
    def label(self) -> str:
        return (
            f"{self.symbol.glyph} {self.length} in a row: "
            f"{self.ways} ways × {self.pay} × bet = {self.amount:.2f}"
        )


@dataclass(frozen=True)
class EvalResult:
    total: float
    parts: Tuple[WinPart, ...] = ()

    @property
    def breakdown(self) -> List[str]:
        return [part.label for part in self.parts]

    @property
    def positions(self) -> FrozenSet[Tuple[int, int]]:
        """Union of every winning position, for highlighting."""
        cells = set()
        for part in self.parts:
            cells.update(part.positions)
        return frozenset(cells)

    @property
    def is_win(self) -> bool:
        return self.total > 0


def best_paying_length(lengths: Dict[int, float], max_length: int) -> int:
    """
    Longest defined paytable length not above ``max_length``.

    Paytables may be sparse: a run of 5 for a symbol that only defines a pay
    for 3 and 4 pays as a run of 4.

    Returns:
        The chosen length, or 0 when no length from ``max_length`` down to 3 pays.
    """
    for length in range(max_length, MIN_WAYS_LENGTH - 1, -1):
        if lengths.get(length, 0) > 0:
            return length
    return 0


def evaluate_ways(grid, bet, paytable=None):
    """
    Evaluates every paying symbol on a grid with ways pay.

    For each symbol the matching rows are collected column by column from
    column 0 until the first column without a match. The longest paying length
    of that run is kept, ways are the product of the match counts over that
    length and the amount is ``ways * pay * bet``. Only the best part of each
    symbol is kept.

    Args:
        grid (list[list[Symbol]]): ``grid[row][col]``.
        bet (float): Bet per spin.
        paytable (dict, optional): ``Symbol -> {length: multiplier}``. Defaults
            to the game's paytable.

    Returns:
        EvalResult: Total and parts sorted by descending amount.
    """
    if paytable is None:
        paytable = DEFAULT_PAYTABLE
    if not grid or not grid[0]:
        return EvalResult(total=0.0)

    rows = len(grid)
    cols = len(grid[0])
    best_by_symbol = {}

    for sym in PAYING_SYMBOLS:
        lengths = paytable.get(sym)
        if not lengths:
            continue

        hit_rows_per_col = []
        for col in range(cols):
            hits = [row for row in range(rows) if grid[row][col] == sym]
            if not hits:
                break
            hit_rows_per_col.append(hits)

        if len(hit_rows_per_col) < MIN_WAYS_LENGTH:
            continue

        length = best_paying_length(lengths, len(hit_rows_per_col))
        if length == 0:
            continue

        ways = 1
        for hits in hit_rows_per_col[:length]:
            ways *= len(hits)
        pay = lengths[length]
        amount = ways * pay * bet
        positions = frozenset(
            (row, col) for col, hits in enumerate(hit_rows_per_col[:length]) for row in hits
        )

        part = WinPart(symbol=sym, length=length, ways=ways, pay=pay, amount=amount, positions=positions)
        previous = best_by_symbol.get(sym)
        if previous is None or part.amount > previous.amount:
            best_by_symbol[sym] = part

    parts = tuple(sorted(best_by_symbol.values(), key=lambda p: p.amount, reverse=True))
    total = sum(p.amount for p in parts)
    return EvalResult(total=total, parts=parts)


def expected_ways_return(pools, paytable=None, rows=ROWS):
    """
    Exact expected win per unit bet of a grid drawn cell by cell from ``pools``.

    Column counts of a symbol are independent binomials, so the expectation of
    each run-length outcome factorises over columns. Bursts and the scatter
    repair are not modelled; the figure is the return of the raw reels.

    Args:
        pools (Sequence[ColumnPool]): One pool per column.
        paytable (dict, optional): Defaults to the game's paytable.
        rows (int): Rows per column.

    Returns:
        float: Expected return as a fraction of the bet (0.5 means 50%).
    """
    if paytable is None:
        paytable = DEFAULT_PAYTABLE
    cols = len(pools)
    expected = 0.0

    for sym in PAYING_SYMBOLS:
        lengths = paytable.get(sym)
        if not lengths:
            continue
        probs = [symbol_weight(pool, sym) / pool_total(pool) for pool in pools]
        mean_count = [rows * p for p in probs]
        p_present = [1.0 - (1.0 - p) ** rows for p in probs]
        p_absent = [(1.0 - p) ** rows for p in probs]

        # Run stops after exactly ``run`` columns (or covers the whole grid).
        for run in range(MIN_WAYS_LENGTH, cols + 1):
            length = best_paying_length(lengths, run)
            if length == 0:
                continue
            term = lengths[length]
            for col in range(length):
                term *= mean_count[col]
            for col in range(length, run):
                term *= p_present[col]
            if run < cols:
                term *= p_absent[run]
            expected += term

    return expected
