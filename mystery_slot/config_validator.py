"""
Reel configuration validation.

Implements fail-fast validation of the static game configuration: every
problem is collected first and reported together in a single
ConfigurationError, before an engine or simulation harness accepts a spin.
"""

import logging
import math
from typing import List

from mystery_slot.exceptions import ConfigurationError
from mystery_slot.services.bonus_session import target_pick_weights
from mystery_slot.utils.reel_config import PAYING_SYMBOLS, ReelConfig, Symbol, pool_total, without_symbols

logger = logging.getLogger(__name__)

PAYTABLE_LENGTHS = (3, 4, 5, 6)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class ReelConfigValidator:
    """Validates a ReelConfig and collects every error and warning found."""

    def __init__(self, config: ReelConfig):
        self.config = config
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_layout(self):
        cfg = self.config
        if not (isinstance(cfg.rows, int) and cfg.rows > 0):
            self.errors.append(f"rows must be a positive integer (got {cfg.rows!r})")
        if not (isinstance(cfg.cols, int) and cfg.cols >= 3):
            self.errors.append(f"cols must be an integer >= 3 (got {cfg.cols!r})")

    def validate_pools(self, name: str, pools, allow_specials: bool):
        """
        Validate a reel set: one non-empty pool per column, non-negative finite
        weights, positive total per column.

        Args:
            name: Label used in error messages ('base_pool' / 'bonus_pool').
            pools: Tuple of column pools.
            allow_specials: Whether Scatter and Mystery may appear in the pools.
        """
        if len(pools) != self.config.cols:
            self.errors.append(f"{name} must define exactly {self.config.cols} columns (got {len(pools)})")
        for col, pool in enumerate(pools):
            if not pool:
                self.errors.append(f"{name}[{col}] is empty")
                continue
            for entry in pool:
                if not isinstance(entry.symbol, Symbol):
                    self.errors.append(f"{name}[{col}] has unknown symbol {entry.symbol!r}")
                elif not allow_specials and not entry.symbol.is_paying:
                    self.errors.append(f"{name}[{col}] must not contain {entry.symbol.name}")
                if not _is_number(entry.weight) or entry.weight < 0:
                    self.errors.append(f"{name}[{col}] weight for {getattr(entry.symbol, 'name', entry.symbol)} must be a non-negative number (got {entry.weight!r})")
            if not all(_is_number(e.weight) for e in pool):
                continue
            if pool_total(pool) <= 0:
                self.errors.append(f"{name}[{col}] total weight must be positive")
            elif allow_specials and pool_total(without_symbols(pool, Symbol.SCATTER)) <= 0:
                # Extra scatters are redrawn from this part of the column.
                self.errors.append(f"{name}[{col}] total weight without SCATTER must be positive")

        if allow_specials:
            for col, pool in enumerate(pools):
                mystery = [e for e in pool if e.symbol == Symbol.MYSTERY and _is_number(e.weight) and e.weight > 0]
                if mystery:
                    self.warnings.append(f"{name}[{col}] draws Mystery naturally; base Mystery should only come from bursts")

    def validate_paytable(self):
        paytable = self.config.paytable
        for sym in PAYING_SYMBOLS:
            lengths = paytable.get(sym)
            if lengths is None:
                self.warnings.append(f"paytable has no entry for {sym.name}; it never pays")
                continue
            for length, multiplier in lengths.items():
                if length not in PAYTABLE_LENGTHS:
                    self.errors.append(f"paytable[{sym.name}] length {length!r} must be one of {PAYTABLE_LENGTHS}")
                if not _is_number(multiplier) or multiplier <= 0:
                    self.errors.append(f"paytable[{sym.name}][{length}] must be a positive number (got {multiplier!r})")
        for sym in paytable:
            if not isinstance(sym, Symbol) or not sym.is_paying:
                self.errors.append(f"paytable contains non-paying symbol {sym!r}")

    def validate_symbol_table(self, name: str, table, allow_zero: bool = False):
        """Per-symbol tables must cover every paying symbol with finite non-negative values."""
        missing = [sym.name for sym in PAYING_SYMBOLS if sym not in table]
        if missing:
            self.errors.append(f"{name} is missing paying symbols: {', '.join(missing)}")
        for sym, value in table.items():
            if not _is_number(value) or value < 0 or (value == 0 and not allow_zero):
                self.errors.append(f"{name}[{getattr(sym, 'name', sym)}] must be a {'non-negative' if allow_zero else 'positive'} number (got {value!r})")
        if table and all(_is_number(v) for v in table.values()) and sum(table.values()) <= 0:
            self.errors.append(f"{name} total weight must be positive")

    def validate_probability(self, name: str, value):
        if not _is_number(value) or not (0.0 <= value <= 1.0):
            self.errors.append(f"{name} must be a probability in [0, 1] (got {value!r})")

    def validate_positive_factor(self, name: str, value):
        if not _is_number(value) or value <= 0:
            self.errors.append(f"{name} must be a positive number (got {value!r})")

    def validate_bonus(self):
        cfg = self.config
        if not (isinstance(cfg.free_spin_count, int) and cfg.free_spin_count > 0):
            self.errors.append(f"free_spin_count must be a positive integer (got {cfg.free_spin_count!r})")
        if len(cfg.bonus_column_scales) != cfg.cols:
            self.errors.append(f"bonus_column_scales must have {cfg.cols} values (got {len(cfg.bonus_column_scales)})")
        for col, scale in enumerate(cfg.bonus_column_scales):
            self.validate_positive_factor(f"bonus_column_scales[{col}]", scale)
        self.validate_positive_factor("on_stick_taper", cfg.on_stick_taper)
        self.validate_positive_factor("per_extra_sticky_decay", cfg.per_extra_sticky_decay)
        self.validate_positive_factor("bonus_buy_cost_multiplier", cfg.bonus_buy_cost_multiplier)
        if not (isinstance(cfg.min_scatters_to_trigger, int) and cfg.min_scatters_to_trigger > 0):
            self.errors.append(f"min_scatters_to_trigger must be a positive integer (got {cfg.min_scatters_to_trigger!r})")
        self.validate_symbol_table("target_pick_multipliers", cfg.target_pick_multipliers, allow_zero=True)
        self.validate_symbol_table("bonus_reveal_weights", cfg.bonus_reveal_weights, allow_zero=True)
        computable = (
            all(_is_number(cfg.target_pick_multipliers.get(sym)) for sym in PAYING_SYMBOLS)
            and all(_is_number(e.weight) for pool in cfg.bonus_pool for e in pool)
        )
        if computable and sum(target_pick_weights(cfg).values()) <= 0:
            self.errors.append("no paying symbol can be picked as bonus target (bonus reel weight x target_pick_multipliers is zero for all)")

    def validate_burst(self):
        cfg = self.config
        self.validate_probability("burst_chance", cfg.burst_chance)
        self.validate_probability("col0_force_prob", cfg.col0_force_prob)
        self.validate_probability("col1_force_prob", cfg.col1_force_prob)
        self.validate_probability("cluster_single_reveal_prob", cfg.cluster_single_reveal_prob)
        if not (isinstance(cfg.burst_size_min, int) and isinstance(cfg.burst_size_max, int)
                and 1 <= cfg.burst_size_min <= cfg.burst_size_max):
            self.errors.append(
                f"burst size range must satisfy 1 <= min <= max (got {cfg.burst_size_min!r}..{cfg.burst_size_max!r})"
            )
        self.validate_symbol_table("base_reveal_weights", cfg.base_reveal_weights, allow_zero=True)
        if len(cfg.early_column_alignment) != 2:
            self.errors.append("early_column_alignment must have exactly two values")
        for i, coeff in enumerate(cfg.early_column_alignment):
            if not _is_number(coeff) or coeff < 0:
                self.errors.append(f"early_column_alignment[{i}] must be a non-negative number (got {coeff!r})")
        if len(cfg.same_row_boosts) != 2:
            self.errors.append("same_row_boosts must have exactly two values")
        for i, boost in enumerate(cfg.same_row_boosts):
            self.validate_positive_factor(f"same_row_boosts[{i}]", boost)

    def validate_all(self) -> ReelConfig:
        self.validate_layout()
        self.validate_pools("base_pool", self.config.base_pool, allow_specials=True)
        self.validate_pools("bonus_pool", self.config.bonus_pool, allow_specials=False)
        self.validate_paytable()
        self.validate_bonus()
        self.validate_burst()

        for warning in self.warnings:
            logger.warning(warning)

        if self.errors:
            logger.error("Reel configuration rejected with %d error(s)", len(self.errors))
            raise ConfigurationError(
                "Reel configuration validation failed:\n" + "\n".join(f"  - {e}" for e in self.errors),
                details={"errors": list(self.errors)},
            )
        return self.config


def validate_reel_config(config: ReelConfig) -> ReelConfig:
    """
    Validate a reel configuration, raising ConfigurationError on any problem.

    Returns:
        The same config, for chaining.
    """
    return ReelConfigValidator(config).validate_all()
