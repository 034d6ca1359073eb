"""
Batch simulation of the mystery slot for RTP and volatility estimates.

Runs the base game, bought bonus rounds, or the full game (base spins with
naturally triggered bonus rounds played inline) on its own seeded rng
stream, then reports totals, hit rate, RTP, volatility and a win
distribution. Can be used as a library (``SimulationHarness``) or from the
command line (``mystery-slot-sim``).
"""
import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend, graphs are only saved to files
import matplotlib.pyplot as plt
import numpy as np

from mystery_slot.config_validator import validate_reel_config
from mystery_slot.services.bonus_session import BonusSession, select_target
from mystery_slot.utils.bet_ladder import validate_bet
from mystery_slot.utils.mystery_burst import MysteryBurstEngine
from mystery_slot.utils.reel_config import DEFAULT_CONFIG, PAYING_SYMBOLS, Symbol
from mystery_slot.utils.rng import SeededRng
from mystery_slot.utils.spin_handler import play_base_spin
from mystery_slot.utils.ways_evaluator import expected_ways_return

logger = logging.getLogger(__name__)

BASE_SEED = 123456
BONUS_SEED = 654321
OVERALL_SEED = 777777

DEFAULT_SEEDS = {'base': BASE_SEED, 'bonus': BONUS_SEED, 'overall': OVERALL_SEED}

# Number of points kept for the RTP convergence curve.
RTP_CURVE_POINTS = 20


@dataclass
class TargetStats:
    rounds: int = 0
    total_win: float = 0.0
    avg_win: float = 0.0
    rtp_percent: float = 0.0


@dataclass
class SimulationResult:
    mode: str
    seed: int
    bet: float
    spins: int
    total_wagered: float
    total_won: float
    hit_count: int
    max_win: float
    volatility_index: float
    theoretical_rtp_percent: float
    wins_by_multiplier: Dict[int, int] = field(default_factory=dict)
    rtp_over_time: List[Tuple[int, float]] = field(default_factory=list)

    @property
    def hit_rate(self) -> float:
        return self.hit_count / self.spins if self.spins else 0.0

    @property
    def rtp_percent(self) -> float:
        return self.total_won / self.total_wagered * 100 if self.total_wagered else 0.0


@dataclass
class BonusSimulationResult(SimulationResult):
    cost_per_round: float = 0.0
    per_target: Dict[Symbol, TargetStats] = field(default_factory=dict)

    @property
    def rounds(self) -> int:
        return self.spins

    @property
    def avg_win(self) -> float:
        return self.total_won / self.spins if self.spins else 0.0


@dataclass
class OverallSimulationResult(SimulationResult):
    base_win: float = 0.0
    bonus_win: float = 0.0
    bonus_triggers: int = 0
    bonus_round_wins: List[float] = field(default_factory=list)

    @property
    def trigger_rate(self) -> float:
        return self.bonus_triggers / self.spins if self.spins else 0.0

    @property
    def base_rtp_percent(self) -> float:
        return self.base_win / self.total_wagered * 100 if self.total_wagered else 0.0

    @property
    def bonus_rtp_percent(self) -> float:
        return self.bonus_win / self.total_wagered * 100 if self.total_wagered else 0.0

    @property
    def avg_bonus_win(self) -> float:
        return self.bonus_win / self.bonus_triggers if self.bonus_triggers else 0.0


class _Accumulator:
    """Running statistics shared by every simulation mode."""

    def __init__(self, iterations, bet, stake):
        self.iterations = iterations
        self.bet = bet
        self.stake = stake
        self.total_wagered = 0.0
        self.total_won = 0.0
        self.hit_count = 0
        self.max_win = 0.0
        self.wins = np.zeros(iterations, dtype=float)
        self.wins_by_multiplier = {}
        self.rtp_over_time = []
        self._interval = iterations // RTP_CURVE_POINTS or 1
        self._done = 0

    def record(self, win):
        self.total_wagered += self.stake
        self.total_won += win
        if win > 0:
            self.hit_count += 1
        if win > self.max_win:
            self.max_win = win
        self.wins[self._done] = win
        multiplier = int(round(win / self.bet))
        self.wins_by_multiplier[multiplier] = self.wins_by_multiplier.get(multiplier, 0) + 1
        self._done += 1
        if self._done % self._interval == 0 or self._done == self.iterations:
            self.rtp_over_time.append((self._done, self.total_won / self.total_wagered * 100))

    def volatility_index(self):
        # Standard deviation of the win per iteration, in units of the bet.
        return float(np.std(self.wins / self.bet)) if self.iterations else 0.0

    def common_fields(self):
        return dict(
            bet=self.bet,
            spins=self.iterations,
            total_wagered=self.total_wagered,
            total_won=self.total_won,
            hit_count=self.hit_count,
            max_win=self.max_win,
            volatility_index=self.volatility_index(),
            wins_by_multiplier=dict(sorted(self.wins_by_multiplier.items())),
            rtp_over_time=list(self.rtp_over_time),
        )


def _validate_iterations(count, what):
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValueError(f"Number of {what} must be a positive integer (got {count!r})")
    return count


class SimulationHarness:
    """
    Batch runner on a private rng stream.

    Args:
        config (ReelConfig, optional): Defaults to the built-in tuning. Validated on construction.
        seed (int, optional): Seed of the harness stream. Defaults to the
            per-mode default seed of the first run.
    """

    def __init__(self, config=None, seed=None):
        self.config = validate_reel_config(config if config is not None else DEFAULT_CONFIG)
        self.seed = seed
        self.rng = SeededRng(seed) if seed is not None else None
        self.burst_engine = MysteryBurstEngine(self.config)

    def _stream(self, mode):
        if self.rng is None:
            self.seed = DEFAULT_SEEDS[mode]
            self.rng = SeededRng(self.seed)
        return self.rng

    def theoretical_rtp_percent(self):
        cfg = self.config
        return expected_ways_return(cfg.base_pool, cfg.paytable, cfg.rows) * 100

    def run_base(self, spins, bet=1.0) -> SimulationResult:
        """Base game only: draw, repair, burst and evaluate. Triggers are not played."""
        spins = _validate_iterations(spins, "spins")
        bet = validate_bet(bet)
        rng = self._stream('base')
        logger.info("Base simulation: %d spins at bet %s (seed %s)", spins, bet, self.seed)

        acc = _Accumulator(spins, bet, stake=bet)
        for _ in range(spins):
            result = play_base_spin(rng, self.config, bet, self.burst_engine)
            acc.record(result.win)

        sim = SimulationResult(
            mode='base', seed=self.seed, theoretical_rtp_percent=self.theoretical_rtp_percent(),
            **acc.common_fields(),
        )
        logger.info("Base simulation done: RTP %.2f%% hit rate %.2f%%", sim.rtp_percent, sim.hit_rate * 100)
        return sim

    def run_bonus(self, rounds, bet=1.0) -> BonusSimulationResult:
        """Bought bonus rounds; each round is wagered at the bonus buy cost."""
        rounds = _validate_iterations(rounds, "rounds")
        bet = validate_bet(bet)
        rng = self._stream('bonus')
        cost = self.config.bonus_buy_cost_multiplier * bet
        logger.info("Bonus simulation: %d rounds at bet %s, cost %.2f (seed %s)", rounds, bet, cost, self.seed)

        acc = _Accumulator(rounds, bet, stake=cost)
        per_target = {sym: TargetStats() for sym in PAYING_SYMBOLS}
        for _ in range(rounds):
            target = select_target(rng, self.config)
            win = BonusSession(self.config, target, bet, from_buy=True).play_all(rng)
            acc.record(win)
            stats = per_target[target]
            stats.rounds += 1
            stats.total_win += win

        for stats in per_target.values():
            if stats.rounds:
                stats.avg_win = stats.total_win / stats.rounds
                stats.rtp_percent = stats.avg_win / cost * 100

        sim = BonusSimulationResult(
            mode='bonus', seed=self.seed, theoretical_rtp_percent=self.theoretical_rtp_percent(),
            cost_per_round=cost,
            per_target={sym: stats for sym, stats in per_target.items() if stats.rounds},
            **acc.common_fields(),
        )
        logger.info("Bonus simulation done: avg win %.2f RTP %.2f%%", sim.avg_win, sim.rtp_percent)
        return sim

    def run_overall(self, spins, bet=1.0) -> OverallSimulationResult:
        """Full game: base spins, with every triggered bonus round played to the end inline."""
        spins = _validate_iterations(spins, "spins")
        bet = validate_bet(bet)
        rng = self._stream('overall')
        logger.info("Overall simulation: %d spins at bet %s (seed %s)", spins, bet, self.seed)

        acc = _Accumulator(spins, bet, stake=bet)
        base_win = 0.0
        bonus_win = 0.0
        bonus_round_wins = []
        for _ in range(spins):
            result = play_base_spin(rng, self.config, bet, self.burst_engine)
            spin_win = result.win
            base_win += result.win
            if result.bonus_trigger is not None:
                round_win = BonusSession(self.config, result.bonus_trigger, bet).play_all(rng)
                bonus_round_wins.append(round_win)
                bonus_win += round_win
                spin_win += round_win
            acc.record(spin_win)

        sim = OverallSimulationResult(
            mode='overall', seed=self.seed, theoretical_rtp_percent=self.theoretical_rtp_percent(),
            base_win=base_win, bonus_win=bonus_win, bonus_triggers=len(bonus_round_wins),
            bonus_round_wins=bonus_round_wins,
            **acc.common_fields(),
        )
        logger.info(
            "Overall simulation done: RTP %.2f%% (base %.2f%%, bonus %.2f%%), %d bonus triggers",
            sim.rtp_percent, sim.base_rtp_percent, sim.bonus_rtp_percent, sim.bonus_triggers,
        )
        return sim

    def run(self, mode, spins, bet=1.0) -> SimulationResult:
        runners = {'base': self.run_base, 'bonus': self.run_bonus, 'overall': self.run_overall}
        if mode not in runners:
            raise ValueError(f"Unknown simulation mode {mode!r}; expected one of {sorted(runners)}")
        return runners[mode](spins, bet)


def print_summary_statistics(result, out=None):
    out = out or sys.stdout

    def emit(line=""):
        print(line, file=out)

    emit("\n--- Simulation Summary ---")
    emit(f"Mode: {result.mode} (seed {result.seed})")
    label = "Bonus Rounds Simulated" if result.mode == 'bonus' else "Total Spins Simulated"
    emit(f"{label}: {result.spins}")
    emit(f"Bet Amount: {result.bet}")
    emit(f"Total Wagered: {result.total_wagered:.2f}")
    emit(f"Total Won: {result.total_won:.2f}")

    emit("\n--- Detailed Metrics ---")
    emit(f"RTP: {result.rtp_percent:.2f}% (raw reels, no bursts: {result.theoretical_rtp_percent:.2f}%)")
    emit(f"Hit Frequency: {result.hit_rate * 100:.2f}% ({result.hit_count} wins out of {result.spins})")
    emit(f"Max Win: {result.max_win:.2f} ({result.max_win / result.bet:.1f}x bet)")
    emit(f"Volatility Index (Win StdDev / Bet): {result.volatility_index:.2f}")

    if isinstance(result, BonusSimulationResult):
        emit(f"Cost Per Round: {result.cost_per_round:.2f}")
        emit(f"Average Round Win: {result.avg_win:.2f}")
        emit("\nPer Target Symbol:")
        for sym, stats in result.per_target.items():
            emit(f"  {sym.glyph} {sym.name:<8} rounds={stats.rounds:<7} avg_win={stats.avg_win:.2f} RTP={stats.rtp_percent:.2f}%")

    if isinstance(result, OverallSimulationResult):
        emit(f"Bonus Trigger Frequency: {result.trigger_rate * 100:.4f}% ({result.bonus_triggers} triggers)")
        emit(f"Average Bonus Win: {result.avg_bonus_win:.2f}")
        emit(f"Base Game RTP Contribution: {result.base_rtp_percent:.2f}%")
        emit(f"Bonus Game RTP Contribution: {result.bonus_rtp_percent:.2f}%")

    emit("\nWin Distribution (by Bet Multiplier):")
    for mult, count in result.wins_by_multiplier.items():
        emit(f"  {mult}x Bet: {count} times ({count / result.spins * 100:.2f}%)")


def generate_graphs(result, graph_dir="slot_tester_graphs"):
    """
    Saves PNG graphs of a simulation: win multiplier distribution, RTP
    convergence and, for full-game runs, base versus bonus contribution.

    Returns:
        list[str]: Paths of the files written.
    """
    os.makedirs(graph_dir, exist_ok=True)
    written = []
    prefix = os.path.join(graph_dir, f"mystery_slot_{result.mode}")

    if result.wins_by_multiplier:
        multipliers = list(result.wins_by_multiplier)
        plt.figure(figsize=(12, 7))
        plt.bar([f"{m}x" for m in multipliers], [result.wins_by_multiplier[m] for m in multipliers], color='skyblue')
        plt.title(f"Win Multiplier Distribution ({result.mode})")
        plt.xlabel("Bet Multiplier")
        plt.ylabel("Frequency")
        plt.xticks(rotation=45, ha="right")
        plt.grid(axis='y', linestyle='--', alpha=0.7)
        plt.tight_layout()
        path = f"{prefix}_win_multipliers.png"
        plt.savefig(path)
        written.append(path)
        plt.clf()

    if result.rtp_over_time:
        plt.figure(figsize=(10, 6))
        plt.plot([p[0] for p in result.rtp_over_time], [p[1] for p in result.rtp_over_time],
                 label="Simulated RTP", marker='.', linestyle='-')
        if result.mode == 'base':
            plt.axhline(y=result.theoretical_rtp_percent, color='r', linestyle='--',
                        label=f"Raw reels ({result.theoretical_rtp_percent:.2f}%)")
        plt.title(f"RTP Convergence ({result.mode})")
        plt.xlabel("Iterations")
        plt.ylabel("RTP (%)")
        plt.legend()
        plt.grid(True, linestyle='--', alpha=0.7)
        plt.tight_layout()
        path = f"{prefix}_rtp_convergence.png"
        plt.savefig(path)
        written.append(path)
        plt.clf()

    if isinstance(result, OverallSimulationResult) and result.total_won > 0:
        plt.figure(figsize=(8, 8))
        plt.pie([result.base_win, result.bonus_win], labels=('Base Game Wins', 'Bonus Game Wins'),
                colors=['lightcoral', 'lightskyblue'], autopct='%1.1f%%', startangle=90)
        plt.title("Win Contribution (Base vs Bonus)")
        plt.axis('equal')
        plt.tight_layout()
        path = f"{prefix}_win_contributions.png"
        plt.savefig(path)
        written.append(path)
        plt.clf()

    plt.close('all')
    for path in written:
        logger.info("Saved graph to %s", path)
    return written


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="mystery-slot-sim",
        description="Mystery Slot Tester - simulates play to estimate RTP, hit rate and volatility.",
    )
    parser.add_argument("mode", choices=sorted(DEFAULT_SEEDS), help="What to simulate.")
    parser.add_argument("--spins", type=int, default=None,
                        help="Spins (base/overall) or bonus rounds. Defaults: base 200000, bonus 10000, overall 20000.")
    parser.add_argument("--bet", type=float, default=1.0, help="Bet per spin.")
    parser.add_argument("--seed", type=int, default=None, help="Seed of the simulation stream.")
    parser.add_argument("--config", type=str, default=None, help="Optional JSON tuning file.")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON instead of a summary.")
    parser.add_argument("--graphs-dir", type=str, default=None, help="Also save graphs into this directory.")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                        format='%(asctime)s %(levelname)s %(name)s %(message)s')

    # Lazy imports: both modules import this one.
    from mystery_slot.schemas import simulation_schema_for
    from mystery_slot.utils.game_config_manager import load_reel_config

    config = load_reel_config(args.config) if args.config else None
    spins = args.spins if args.spins is not None else {'base': 200000, 'bonus': 10000, 'overall': 20000}[args.mode]
    seed = args.seed if args.seed is not None else DEFAULT_SEEDS[args.mode]

    harness = SimulationHarness(config=config, seed=seed)
    result = harness.run(args.mode, spins, args.bet)

    if args.json:
        print(json.dumps(simulation_schema_for(result).dump(result), indent=2))
    else:
        print_summary_statistics(result)
    if args.graphs_dir:
        generate_graphs(result, args.graphs_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
