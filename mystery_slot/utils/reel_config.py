"""
Static value objects for the 4x6 mystery slot: symbols, reel pools, paytable
and every tuning constant of the base game and the bonus feature.

Per-symbol tables are plain dicts keyed by the closed ``Symbol`` enumeration
and built in ``PAYING_SYMBOLS`` order; ``config_validator`` checks that every
table covers every paying symbol before a config is accepted.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Tuple

ROWS = 4
COLS = 6


class Symbol(str, Enum):
    CHERRY = "cherry"
    LEMON = "lemon"
    GRAPE = "grape"
    ORANGE = "orange"
    KIWI = "kiwi"
    COCONUT = "coconut"
    BELL = "bell"
    STAR = "star"
    DIAMOND = "diamond"
    CLOVER = "clover"
    SCATTER = "scatter"
    MYSTERY = "mystery"

    @property
    def is_paying(self) -> bool:
        return self not in (Symbol.SCATTER, Symbol.MYSTERY)

    @property
    def glyph(self) -> str:
        return GLYPHS[self]


PAYING_SYMBOLS: Tuple[Symbol, ...] = tuple(s for s in Symbol if s.is_paying)

GLYPHS = {
    Symbol.CHERRY: "🍒", Symbol.LEMON: "🍋", Symbol.GRAPE: "🍇", Symbol.ORANGE: "🍊",
    Symbol.KIWI: "🥝", Symbol.COCONUT: "🥥", Symbol.BELL: "🔔", Symbol.STAR: "⭐",
    Symbol.DIAMOND: "💎", Symbol.CLOVER: "🍀", Symbol.SCATTER: "🎟️", Symbol.MYSTERY: "❓",
}


@dataclass(frozen=True)
class WeightedEntry:
    symbol: Symbol
    weight: float


# A column pool is an ordered tuple of entries; a reel set is one pool per column.
ColumnPool = Tuple[WeightedEntry, ...]
ReelPools = Tuple[ColumnPool, ...]
Paytable = Dict[Symbol, Dict[int, float]]


def make_pool(weights) -> ColumnPool:
    """Builds a column pool from ``(symbol, weight)`` pairs, keeping their order."""
    return tuple(WeightedEntry(sym, float(w)) for sym, w in weights)


def pool_items(pool: ColumnPool):
    """(symbol, weight) pairs for ``pick_weighted``."""
    return [(entry.symbol, entry.weight) for entry in pool]


def pool_total(pool: ColumnPool) -> float:
    return sum(entry.weight for entry in pool)


def without_symbols(pool: ColumnPool, *symbols: Symbol) -> ColumnPool:
    return tuple(entry for entry in pool if entry.symbol not in symbols)


def with_weight(pool: ColumnPool, symbol: Symbol, weight: float) -> ColumnPool:
    return tuple(WeightedEntry(e.symbol, weight) if e.symbol == symbol else e for e in pool)


def symbol_weight(pool: ColumnPool, symbol: Symbol) -> float:
    return sum(entry.weight for entry in pool if entry.symbol == symbol)


# --- Default tuning ---

REEL_WEIGHTS = (
    (Symbol.CHERRY, 18), (Symbol.LEMON, 18), (Symbol.GRAPE, 16), (Symbol.ORANGE, 16),
    (Symbol.KIWI, 14), (Symbol.COCONUT, 14), (Symbol.BELL, 10), (Symbol.STAR, 8),
    (Symbol.DIAMOND, 6), (Symbol.CLOVER, 6), (Symbol.SCATTER, 1), (Symbol.MYSTERY, 2),
)

REEL_WEIGHTS_BY_COLUMN: ReelPools = tuple(make_pool(REEL_WEIGHTS) for _ in range(COLS))

# Mystery stays in the base table with weight 0: only the burst mechanic places it.
BASE_POOL: ReelPools = tuple(with_weight(col, Symbol.MYSTERY, 0.0) for col in REEL_WEIGHTS_BY_COLUMN)

# Bonus reels never show Mystery or Scatter.
BONUS_POOL: ReelPools = tuple(
    without_symbols(col, Symbol.MYSTERY, Symbol.SCATTER) for col in REEL_WEIGHTS_BY_COLUMN
)

DEFAULT_PAYTABLE: Paytable = {
    Symbol.CHERRY: {3: 0.20, 4: 0.35, 5: 0.70, 6: 1.40},
    Symbol.LEMON: {3: 0.20, 4: 0.35, 5: 0.70, 6: 1.40},
    Symbol.GRAPE: {3: 0.22, 4: 0.40, 5: 0.80, 6: 1.60},
    Symbol.ORANGE: {3: 0.22, 4: 0.40, 5: 0.80, 6: 1.60},
    Symbol.KIWI: {3: 0.24, 4: 0.45, 5: 0.90, 6: 1.80},
    Symbol.COCONUT: {3: 0.24, 4: 0.45, 5: 0.90, 6: 1.80},
    Symbol.BELL: {3: 0.35, 4: 0.80, 5: 1.80, 6: 3.60},
    Symbol.STAR: {3: 0.45, 4: 1.10, 5: 2.30, 6: 4.80},
    Symbol.DIAMOND: {3: 0.70, 4: 1.60, 5: 3.50, 6: 7.50},
    Symbol.CLOVER: {3: 0.90, 4: 2.20, 5: 5.00, 6: 10.00},
}

BONUS_COLUMN_SCALES = (1.00, 0.90, 0.85, 0.80, 0.76, 0.72)

TARGET_PICK_MULTIPLIERS = {
    Symbol.CHERRY: 0.60, Symbol.LEMON: 0.60, Symbol.GRAPE: 0.75, Symbol.ORANGE: 0.75,
    Symbol.KIWI: 0.90, Symbol.COCONUT: 0.90, Symbol.BELL: 1.05, Symbol.STAR: 1.10,
    Symbol.DIAMOND: 1.10, Symbol.CLOVER: 1.10,
}

BONUS_REVEAL_WEIGHTS = {
    Symbol.CHERRY: 1.30, Symbol.LEMON: 1.30, Symbol.GRAPE: 1.15, Symbol.ORANGE: 1.15,
    Symbol.KIWI: 1.05, Symbol.COCONUT: 1.05, Symbol.BELL: 0.95, Symbol.STAR: 0.85,
    Symbol.DIAMOND: 0.80, Symbol.CLOVER: 0.75,
}

BASE_REVEAL_WEIGHTS = {
    Symbol.CHERRY: 1.08, Symbol.LEMON: 1.08, Symbol.GRAPE: 1.18, Symbol.ORANGE: 1.18,
    Symbol.KIWI: 1.15, Symbol.COCONUT: 1.15, Symbol.BELL: 1.02, Symbol.STAR: 0.98,
    Symbol.DIAMOND: 0.92, Symbol.CLOVER: 0.90,
}


@dataclass(frozen=True)
class ReelConfig:
    """Every static input of the engine. Instances are immutable; use ``evolve`` to tweak."""
    base_pool: ReelPools = BASE_POOL
    bonus_pool: ReelPools = BONUS_POOL
    paytable: Paytable = field(default_factory=lambda: {sym: dict(pays) for sym, pays in DEFAULT_PAYTABLE.items()})
    rows: int = ROWS
    cols: int = COLS

    # Bonus feature
    free_spin_count: int = 7
    bonus_column_scales: Tuple[float, ...] = BONUS_COLUMN_SCALES
    on_stick_taper: float = 0.88
    per_extra_sticky_decay: float = 0.55
    target_pick_multipliers: Dict[Symbol, float] = field(default_factory=lambda: dict(TARGET_PICK_MULTIPLIERS))
    bonus_reveal_weights: Dict[Symbol, float] = field(default_factory=lambda: dict(BONUS_REVEAL_WEIGHTS))
    min_scatters_to_trigger: int = 3
    bonus_buy_cost_multiplier: float = 100.0

    # Base-game mystery burst
    burst_chance: float = 0.16
    burst_size_min: int = 6
    burst_size_max: int = 14
    col0_force_prob: float = 0.60
    col1_force_prob: float = 0.35
    base_reveal_weights: Dict[Symbol, float] = field(default_factory=lambda: dict(BASE_REVEAL_WEIGHTS))
    early_column_alignment: Tuple[float, float] = (0.15, 0.15)
    same_row_boosts: Tuple[float, float] = (1.1, 1.4)
    cluster_single_reveal_prob: float = 0.19

    def evolve(self, **changes) -> "ReelConfig":
        return replace(self, **changes)


DEFAULT_CONFIG = ReelConfig()
