"""
Interactive slot engine.

``SlotEngine`` owns one seeded rng stream and at most one bonus session. It
performs no I/O, never waits and holds no balance: the host debits bets and
bonus buys and credits wins using the amounts reported here.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from mystery_slot.config_validator import validate_reel_config
from mystery_slot.exceptions import InvalidSessionError
from mystery_slot.services.bonus_session import BonusSession, BonusSpinResult, select_target
from mystery_slot.utils.bet_ladder import validate_bet
from mystery_slot.utils.grid import count_scatters, format_grid, generate_grid
from mystery_slot.utils.mystery_burst import BurstOutcome, MysteryBurstEngine
from mystery_slot.utils.reel_config import DEFAULT_CONFIG, Symbol
from mystery_slot.utils.rng import SeededRng
from mystery_slot.utils.ways_evaluator import EvalResult, evaluate_ways

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_SEED = 20250828


@dataclass
class BaseSpinResult:
    bet: float
    raw_grid: list
    burst: BurstOutcome
    grid: list
    evaluation: EvalResult
    scatter_count: int
    bonus_trigger: Optional[Symbol] = None

    @property
    def win(self) -> float:
        return self.evaluation.total

    @property
    def bonus_triggered(self) -> bool:
        return self.bonus_trigger is not None


@dataclass
class BonusBuyResult:
    bet: float
    cost: float
    target: Symbol


def check_bonus_trigger(grid, config) -> bool:
    return count_scatters(grid) >= config.min_scatters_to_trigger


def play_base_spin(rng, config, bet, burst_engine=None) -> BaseSpinResult:
    """
    Runs the base game pipeline once: draw, repair, burst, evaluate and
    check the scatter trigger. When the spin triggers, the bonus target is
    drawn from the same stream right away.

    Args:
        rng: Callable returning floats in [0, 1).
        config (ReelConfig): Validated configuration.
        bet (float): Validated bet.
        burst_engine (MysteryBurstEngine, optional): Reused across spins by callers that loop.

    Returns:
        BaseSpinResult
    """
    if burst_engine is None:
        burst_engine = MysteryBurstEngine(config)

    raw = generate_grid(rng, config.base_pool, config.rows)
    burst = burst_engine.apply(rng, raw)
    evaluation = evaluate_ways(burst.grid, bet, config.paytable)
    scatters = count_scatters(burst.grid)

    target = None
    if check_bonus_trigger(burst.grid, config):
        target = select_target(rng, config)

    return BaseSpinResult(
        bet=bet,
        raw_grid=raw,
        burst=burst,
        grid=burst.grid,
        evaluation=evaluation,
        scatter_count=scatters,
        bonus_trigger=target,
    )


class SlotEngine:
    """
    Interactive facade over the base game and the bonus feature.

    Args:
        config (ReelConfig, optional): Defaults to the built-in tuning. Validated on construction.
        seed (int): Seed of the engine's rng stream.
    """

    def __init__(self, config=None, seed=DEFAULT_ENGINE_SEED):
        self.config = validate_reel_config(config if config is not None else DEFAULT_CONFIG)
        self.rng = SeededRng(seed)
        self.burst_engine = MysteryBurstEngine(self.config)
        self._session: Optional[BonusSession] = None

    @property
    def active_session(self) -> Optional[BonusSession]:
        return self._session

    @property
    def bonus_active(self) -> bool:
        return self._session is not None

    def _reject_if_session_active(self, operation):
        if self._session is not None:
            logger.warning("Rejected %s: bonus session in progress (target=%s)", operation, self._session.target.name)
            raise InvalidSessionError(
                f"Cannot {operation} while a bonus session is active",
                details={'spins_remaining': self._session.spins_remaining},
            )

    def spin(self, bet) -> BaseSpinResult:
        """
        Plays one paid base spin. Three or more Scatters start a bonus session
        whose target is reported in ``bonus_trigger``.

        Raises:
            InvalidBetError: Bet is not a positive finite number.
            InvalidSessionError: A bonus session is in progress.
        """
        bet = validate_bet(bet)
        self._reject_if_session_active("spin")

        result = play_base_spin(self.rng, self.config, bet, self.burst_engine)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Base spin bet=%s win=%.2f scatters=%d\n%s", bet, result.win, result.scatter_count, format_grid(result.grid))

        if result.bonus_trigger is not None:
            logger.info("Bonus triggered by %d scatters, target=%s", result.scatter_count, result.bonus_trigger.name)
            self.start_bonus(result.bonus_trigger, bet, from_buy=False)
        return result

    def buy_bonus(self, bet) -> BonusBuyResult:
        """
        Starts a bonus session directly. The host debits ``cost``.

        Raises:
            InvalidBetError: Bet is not a positive finite number.
            InvalidSessionError: A bonus session is in progress.
        """
        bet = validate_bet(bet)
        self._reject_if_session_active("buy a bonus")

        target = select_target(self.rng, self.config)
        cost = self.config.bonus_buy_cost_multiplier * bet
        logger.info("Bonus bought: bet=%s cost=%.2f target=%s", bet, cost, target.name)
        self.start_bonus(target, bet, from_buy=True)
        return BonusBuyResult(bet=bet, cost=cost, target=target)

    def start_bonus(self, target, bet, from_buy=False) -> BonusSession:
        self._reject_if_session_active("start a bonus")
        self._session = BonusSession(self.config, target, bet, from_buy=from_buy)
        return self._session

    def bonus_spin(self) -> BonusSpinResult:
        """
        Plays the next free spin of the active session. After the last spin
        the session closes and ``credited`` carries the amount to pay out.

        Raises:
            InvalidSessionError: No session is active.
        """
        if self._session is None:
            logger.warning("Rejected bonus spin: no bonus session active")
            raise InvalidSessionError("No bonus session is active")
        result = self._session.play_spin(self.rng)
        if result.ended:
            logger.info(
                "Bonus session ended: target=%s credited=%.2f (%.2fx bet)",
                self._session.target.name, result.credited, result.credited / self._session.bet,
            )
            self._session = None
        return result

    def cancel_bonus(self) -> BonusSession:
        """Discards the active session without credit and returns it."""
        if self._session is None:
            logger.warning("Rejected bonus cancel: no bonus session active")
            raise InvalidSessionError("No bonus session is active")
        session = self._session
        session.cancel()
        self._session = None
        return session
