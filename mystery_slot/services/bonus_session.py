"""
Mystery sticky bonus session.

A session is created with a target symbol and plays a fixed number of free
spins on a private copy of the bonus reels. Every target symbol landing in
columns 1..5 becomes sticky for the rest of the session, and each spin one
reveal symbol is drawn and shown on every sticky cell before the grid is
evaluated. To keep the feature from running away the target's weight in a
column is tapered whenever that column gains stickies, more strongly the
more stickies it already holds.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from mystery_slot.exceptions import InvalidSessionError
from mystery_slot.utils.bet_ladder import validate_bet
from mystery_slot.utils.grid import copy_grid, generate_grid
from mystery_slot.utils.reel_config import PAYING_SYMBOLS, WeightedEntry, symbol_weight
from mystery_slot.utils.rng import pick_symbol
from mystery_slot.utils.ways_evaluator import EvalResult, evaluate_ways

logger = logging.getLogger(__name__)

# Column 0 never holds stickies; it anchors every ways win.
FIRST_STICKY_COLUMN = 1


class SessionState(str, Enum):
    TARGET_SELECTED = "target_selected"
    SPINNING = "spinning"
    ENDED = "ended"


@dataclass
class BonusSpinResult:
    spin_number: int
    raw_grid: list
    new_stickies: List[Tuple[int, int]]
    sticky: FrozenSet[Tuple[int, int]]
    reveal_symbol: object
    grid: list
    evaluation: EvalResult
    running_total: float
    spins_remaining: int
    ended: bool = False
    credited: Optional[float] = None

    @property
    def win(self) -> float:
        return self.evaluation.total


def target_pick_weights(config) -> Dict:
    """
    Target selection weights: each paying symbol's weight summed over every
    bonus column, times its configured multiplier.
    """
    weights = {}
    for sym in PAYING_SYMBOLS:
        reel_weight = sum(symbol_weight(pool, sym) for pool in config.bonus_pool)
        weights[sym] = reel_weight * config.target_pick_multipliers[sym]
    return weights


def select_target(rng, config):
    return pick_symbol(rng, target_pick_weights(config))


def taper_column(pools, col, symbol, factor):
    """
    Returns a copy of ``pools`` with ``symbol``'s weight in column ``col`` multiplied by ``factor``.

    The input tuple and its entries are never modified.
    """
    tapered = tuple(
        WeightedEntry(e.symbol, e.weight * factor) if e.symbol == symbol else e
        for e in pools[col]
    )
    return pools[:col] + (tapered,) + pools[col + 1:]


class BonusSession:
    """
    One bonus round, from target selection to its last free spin.

    Args:
        config (ReelConfig): Validated configuration.
        target (Symbol): Paying symbol that becomes sticky.
        bet (float): Bet the round is played at.
        from_buy (bool): Whether the round was bought rather than triggered.
    """

    def __init__(self, config, target, bet, from_buy=False):
        if target not in PAYING_SYMBOLS:
            raise InvalidSessionError(
                f"Bonus target must be a paying symbol (got {target!r})",
                details={'target': str(target)},
            )
        self.config = config
        self.target = target
        self.bet = validate_bet(bet)
        self.from_buy = from_buy

        self.state = SessionState.TARGET_SELECTED
        self.sticky = set()
        self.sticky_count_by_col = [0] * config.cols
        self.spins_remaining = config.free_spin_count
        self.spins_played = 0
        self.running_total = 0.0
        self.cancelled = False
        self.history: List[BonusSpinResult] = []

        pools = tuple(config.bonus_pool)
        for col in range(FIRST_STICKY_COLUMN, config.cols):
            pools = taper_column(pools, col, target, config.bonus_column_scales[col])
        self.pools = pools

        logger.debug(
            "Bonus session started: target=%s bet=%s spins=%d source=%s",
            target.name, self.bet, self.spins_remaining, 'buy' if from_buy else 'trigger',
        )

    @property
    def active(self) -> bool:
        return self.state != SessionState.ENDED

    def target_column_weight(self, col) -> float:
        """Current (tapered) weight of the target in one column."""
        return symbol_weight(self.pools[col], self.target)

    def play_spin(self, rng) -> BonusSpinResult:
        """
        Plays the next free spin.

        Order of operations: draw the raw grid from the tapered reels, lock
        new target hits in columns 1..5, taper the columns that gained
        stickies, draw one reveal symbol, paint it on every sticky cell,
        evaluate and add the win to the running total.

        Raises:
            InvalidSessionError: When the session has ended or has no spins left.
        """
        if self.state == SessionState.ENDED or self.spins_remaining <= 0:
            raise InvalidSessionError(
                "No free spins remaining in this bonus session",
                details={'state': self.state.value, 'spins_remaining': self.spins_remaining},
            )
        cfg = self.config
        self.state = SessionState.SPINNING

        raw = generate_grid(rng, self.pools, cfg.rows)

        new_stickies = []
        new_by_col = {}
        for row in range(cfg.rows):
            for col in range(FIRST_STICKY_COLUMN, cfg.cols):
                if raw[row][col] == self.target and (row, col) not in self.sticky:
                    self.sticky.add((row, col))
                    new_stickies.append((row, col))
                    new_by_col[col] = new_by_col.get(col, 0) + 1

        for col, newly in new_by_col.items():
            self.pools = taper_column(self.pools, col, self.target, cfg.on_stick_taper)
            # Soft cap: one extra decay per sticky the column already held.
            for _ in range(self.sticky_count_by_col[col]):
                self.pools = taper_column(self.pools, col, self.target, cfg.per_extra_sticky_decay)
            self.sticky_count_by_col[col] += newly

        reveal = pick_symbol(rng, cfg.bonus_reveal_weights)
        composite = copy_grid(raw)
        for row, col in self.sticky:
            composite[row][col] = reveal

        evaluation = evaluate_ways(composite, self.bet, cfg.paytable)
        self.running_total += evaluation.total
        self.spins_remaining -= 1
        self.spins_played += 1

        result = BonusSpinResult(
            spin_number=self.spins_played,
            raw_grid=raw,
            new_stickies=new_stickies,
            sticky=frozenset(self.sticky),
            reveal_symbol=reveal,
            grid=composite,
            evaluation=evaluation,
            running_total=self.running_total,
            spins_remaining=self.spins_remaining,
        )
        logger.debug(
            "Bonus spin %d/%d: new_stickies=%d reveal=%s win=%.2f total=%.2f",
            self.spins_played, cfg.free_spin_count, len(new_stickies), reveal.name,
            evaluation.total, self.running_total,
        )

        if self.spins_remaining == 0:
            self.state = SessionState.ENDED
            result.ended = True
            result.credited = self.running_total
            logger.debug(
                "Bonus session ended: target=%s stickies=%d total=%.2f (%.2fx bet)",
                self.target.name, len(self.sticky), self.running_total, self.running_total / self.bet,
            )
        self.history.append(result)
        return result

    def play_all(self, rng) -> float:
        """Plays every remaining spin and returns the final total."""
        while self.spins_remaining > 0:
            self.play_spin(rng)
        return self.running_total

    def cancel(self):
        """
        Abandons the session between spins. Stickies, tapered reels and the
        running total are dropped together; nothing is credited.
        """
        if self.state == SessionState.ENDED:
            raise InvalidSessionError("Bonus session has already ended", details={'state': self.state.value})
        logger.warning(
            "Bonus session cancelled after %d spin(s); discarding %.2f", self.spins_played, self.running_total
        )
        self.sticky = set()
        self.sticky_count_by_col = [0] * self.config.cols
        self.pools = tuple(self.config.bonus_pool)
        self.running_total = 0.0
        self.spins_remaining = 0
        self.history = []
        self.cancelled = True
        self.state = SessionState.ENDED
