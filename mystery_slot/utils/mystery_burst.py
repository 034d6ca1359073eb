"""
Base-game mystery burst.

With a small probability a spin gets one connected cluster of cells turned
into Mystery. The cluster is traced by a bounded random walk, pulled towards
the first two columns, and then revealed into paying symbols with weights
biased by what is already visible on the grid.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mystery_slot.utils.grid import copy_grid
from mystery_slot.utils.reel_config import PAYING_SYMBOLS, Symbol
from mystery_slot.utils.rng import pick_symbol

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# Orthogonal walk steps, indexed by floor(rng() * 4).
WALK_STEPS = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass
class BurstOutcome:
    cluster: List[Position]
    mystery_grid: list
    grid: list
    single_reveal: Optional[Symbol] = None

    @property
    def triggered(self) -> bool:
        return bool(self.cluster)


def random_walk_cluster(rng, size, rows, cols) -> List[Position]:
    """
    Traces ``size`` steps of a random walk clamped to the grid.

    Each step records the current cell if it has not been visited yet and
    then moves to one of the four orthogonal neighbours. The cluster keeps the
    order in which cells were first visited, so it may be shorter than
    ``size`` when the walk revisits cells.
    """
    seen = set()
    cells = []
    row = int(rng() * rows)
    col = int(rng() * cols)
    for _ in range(size):
        if (row, col) not in seen:
            seen.add((row, col))
            cells.append((row, col))
        d_row, d_col = WALK_STEPS[int(rng() * 4)]
        row = max(0, min(rows - 1, row + d_row))
        col = max(0, min(cols - 1, col + d_col))
    return cells


def paying_counts(grid, col):
    """Count of each paying symbol in one column; Mystery and Scatter are ignored."""
    counts = {sym: 0 for sym in PAYING_SYMBOLS}
    for row in grid:
        sym = row[col]
        if sym.is_paying:
            counts[sym] += 1
    return counts


class MysteryBurstEngine:
    def __init__(self, config):
        self.config = config

    def plan_burst(self, rng) -> Optional[List[Position]]:
        """
        Decides whether this spin bursts and, if so, which cells.

        Returns:
            The ordered cluster, or None when no burst happens.
        """
        cfg = self.config
        if rng() >= cfg.burst_chance:
            return None

        size = int(cfg.burst_size_min + rng() * (cfg.burst_size_max - cfg.burst_size_min + 1))
        cells = random_walk_cluster(rng, size, cfg.rows, cfg.cols)

        if rng() < cfg.col0_force_prob and not any(c == 0 for _, c in cells):
            cells.append((int(rng() * cfg.rows), 0))
        if rng() < cfg.col1_force_prob and not any(c == 1 for _, c in cells):
            cells.append((int(rng() * cfg.rows), 1))
        return cells

    def reveal_weights_for_cell(self, grid, row, col, early_counts):
        """
        Reveal weights of one Mystery cell.

        Base weights are scaled by how often each symbol shows in columns 0
        and 1, then boosted for the paying symbols one and two columns to the
        left on the same row. The neighbours are read from the live grid, so
        cells revealed earlier in the cluster count.

        Args:
            grid: The grid being revealed.
            row (int), col (int): The cell.
            early_counts (tuple[dict, dict]): Paying symbol counts of columns
                0 and 1 taken once, after marking and before any reveal.

        Returns:
            dict: ``Symbol -> weight`` in paytable order.
        """
        cfg = self.config
        align0, align1 = cfg.early_column_alignment
        counts0, counts1 = early_counts
        weights = {}
        for sym in PAYING_SYMBOLS:
            w = cfg.base_reveal_weights[sym]
            w *= 1 + align0 * counts0[sym]
            w *= 1 + align1 * counts1[sym]
            weights[sym] = w

        boost_left, boost_left2 = cfg.same_row_boosts
        if col > 0:
            left = grid[row][col - 1]
            if left.is_paying:
                weights[left] *= boost_left
        if col > 1:
            left2 = grid[row][col - 2]
            if left2.is_paying:
                weights[left2] *= boost_left2
        return weights

    def reveal(self, rng, grid, cluster) -> Optional[Symbol]:
        """
        Replaces every Mystery cell of ``cluster`` with a paying symbol, in place.

        Returns:
            The shared symbol when the whole cluster revealed as one, else None.
        """
        if not cluster:
            return None
        early_counts = (paying_counts(grid, 0), paying_counts(grid, 1))

        if rng() < self.config.cluster_single_reveal_prob:
            mid_row, mid_col = cluster[len(cluster) // 2]
            sym = pick_symbol(rng, self.reveal_weights_for_cell(grid, mid_row, mid_col, early_counts))
            for row, col in cluster:
                grid[row][col] = sym
            return sym

        for row, col in cluster:
            grid[row][col] = pick_symbol(rng, self.reveal_weights_for_cell(grid, row, col, early_counts))
        return None

    def apply(self, rng, grid) -> BurstOutcome:
        """
        Runs a burst on a freshly generated base grid.

        The input grid is left untouched.

        Returns:
            BurstOutcome: cluster (empty when nothing burst), the grid with
            Mystery marks and the fully revealed grid.
        """
        cluster = self.plan_burst(rng)
        if not cluster:
            return BurstOutcome(cluster=[], mystery_grid=copy_grid(grid), grid=copy_grid(grid))

        working = copy_grid(grid)
        for row, col in cluster:
            working[row][col] = Symbol.MYSTERY
        mystery_grid = copy_grid(working)

        single = self.reveal(rng, working, cluster)
        logger.debug(
            "Mystery burst of %d cell(s)%s",
            len(cluster),
            f" revealed as {single.name}" if single else "",
        )
        return BurstOutcome(cluster=cluster, mystery_grid=mystery_grid, grid=working, single_reveal=single)
