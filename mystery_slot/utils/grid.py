"""
Grid generation for the 4x6 reel window.

A grid is a list of rows, ``grid[row][col]``. Cells are drawn row by row
(row outer, column inner) from the pool of their column, which fixes the
order in which the rng is consumed.
"""
import logging

from mystery_slot.utils.reel_config import ROWS, Symbol, pool_items, without_symbols
from mystery_slot.utils.rng import pick_weighted

logger = logging.getLogger(__name__)


def generate_grid(rng, pools, rows=ROWS):
    """
    Draws a full grid and applies the one-scatter-per-column repair.

    Args:
        rng: Callable returning floats in [0, 1).
        pools (Sequence[ColumnPool]): One pool per column.
        rows (int): Number of rows.

    Returns:
        list[list[Symbol]]: The generated grid.
    """
    items_by_col = [pool_items(pool) for pool in pools]
    grid = [
        [pick_weighted(rng, items_by_col[col]) for col in range(len(pools))]
        for _ in range(rows)
    ]
    return repair_scatters(rng, grid, pools)


def repair_scatters(rng, grid, pools):
    """
    Caps every column at one Scatter.

    The topmost Scatter of a column is kept; each further Scatter in that
    column is redrawn from the column's pool with Scatter removed. Columns are
    processed left to right and cells top to bottom. The grid is modified in
    place and returned.
    """
    for col, pool in enumerate(pools):
        scatter_rows = [row for row in range(len(grid)) if grid[row][col] == Symbol.SCATTER]
        if len(scatter_rows) <= 1:
            continue
        scatter_free = pool_items(without_symbols(pool, Symbol.SCATTER))
        for row in scatter_rows[1:]:
            grid[row][col] = pick_weighted(rng, scatter_free)
        logger.debug("Repaired %d extra scatter(s) in column %d", len(scatter_rows) - 1, col)
    return grid


def count_scatters(grid) -> int:
    return sum(1 for row in grid for sym in row if sym == Symbol.SCATTER)


def copy_grid(grid):
    return [list(row) for row in grid]


def format_grid(grid) -> str:
    """Grid rendered with one glyph per cell, one line per row (for logs and the CLI)."""
    return "\n".join(" ".join(sym.glyph for sym in row) for row in grid)
