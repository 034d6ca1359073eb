import math
import unittest

from mystery_slot.exceptions import ConfigurationError, InvalidBetError, InvalidSessionError
from mystery_slot.utils.reel_config import COLS, DEFAULT_CONFIG, PAYING_SYMBOLS, REEL_WEIGHTS, ROWS, Symbol, make_pool
from mystery_slot.utils.rng import SeededRng
from mystery_slot.utils.spin_handler import SlotEngine, check_bonus_trigger, play_base_spin

S = Symbol

# Scatter lands in almost every column (the repair caps it at one per column); no burst can cover it.
SCATTER_HEAVY_CONFIG = DEFAULT_CONFIG.evolve(
    burst_chance=0.0,
    base_pool=tuple(
        make_pool([(sym, 1000 if sym == S.SCATTER else 0 if sym == S.MYSTERY else w) for sym, w in REEL_WEIGHTS])
        for _ in range(COLS)
    )
)
NO_SCATTER_CONFIG = DEFAULT_CONFIG.evolve(
    base_pool=tuple(
        make_pool([(sym, 0 if not sym.is_paying else w) for sym, w in REEL_WEIGHTS]) for _ in range(COLS)
    )
)


def grid_with_scatters(count):
    grid = [[S.KIWI] * COLS for _ in range(ROWS)]
    for col in range(count):
        grid[col % ROWS][col] = S.SCATTER
    return grid


class TestTriggerCondition(unittest.TestCase):

    def test_three_or_more_scatters_trigger(self):
        for count in range(3, COLS + 1):
            self.assertTrue(check_bonus_trigger(grid_with_scatters(count), DEFAULT_CONFIG))

    def test_two_or_fewer_never_trigger(self):
        for count in range(0, 3):
            self.assertFalse(check_bonus_trigger(grid_with_scatters(count), DEFAULT_CONFIG))

    def test_triggered_spin_draws_a_target(self):
        result = play_base_spin(SeededRng(10), SCATTER_HEAVY_CONFIG, 1.0)
        self.assertGreaterEqual(result.scatter_count, 3)
        self.assertTrue(result.bonus_triggered)
        self.assertIn(result.bonus_trigger, PAYING_SYMBOLS)

    def test_no_scatters_no_trigger(self):
        rng = SeededRng(10)
        for _ in range(50):
            result = play_base_spin(rng, NO_SCATTER_CONFIG, 1.0)
            self.assertFalse(result.bonus_triggered)
            self.assertIsNone(result.bonus_trigger)


class TestSlotEngine(unittest.TestCase):

    def test_same_seed_same_spins(self):
        a = SlotEngine(seed=1234)
        b = SlotEngine(seed=1234)
        for _ in range(50):
            if a.bonus_active:
                break
            ra = a.spin(1.0)
            rb = b.spin(1.0)
            self.assertEqual(ra.grid, rb.grid)
            self.assertEqual(ra.win, rb.win)
            self.assertEqual(ra.burst.cluster, rb.burst.cluster)

    def test_spin_result_shape(self):
        engine = SlotEngine(config=NO_SCATTER_CONFIG, seed=5)
        result = engine.spin(2.0)
        self.assertEqual(result.bet, 2.0)
        self.assertEqual(len(result.grid), ROWS)
        self.assertTrue(all(len(row) == COLS for row in result.grid))
        self.assertFalse(any(sym == S.MYSTERY for row in result.grid for sym in row))
        self.assertAlmostEqual(result.win, result.evaluation.total)
        self.assertFalse(engine.bonus_active)

    def test_invalid_bets(self):
        engine = SlotEngine(seed=5)
        for bad in (0, -2, math.nan, math.inf):
            with self.assertRaises(InvalidBetError):
                engine.spin(bad)
            with self.assertRaises(InvalidBetError):
                engine.buy_bonus(bad)
        # Rejected bets consume no draws.
        self.assertEqual(engine.rng.draws, 0)

    def test_invalid_config_rejected_on_construction(self):
        with self.assertRaises(ConfigurationError):
            SlotEngine(config=DEFAULT_CONFIG.evolve(burst_chance=1.5))

    def test_scatter_only_column_rejected_on_construction(self):
        # Its extra scatters could only be redrawn as weightless Mystery cells.
        scatter_only = make_pool([(sym, 1 if sym == S.SCATTER else 0) for sym, _ in REEL_WEIGHTS])
        config = DEFAULT_CONFIG.evolve(base_pool=DEFAULT_CONFIG.base_pool[:5] + (scatter_only,))
        with self.assertRaises(ConfigurationError):
            SlotEngine(config=config, seed=1)

    def test_trigger_starts_session_and_blocks_base_play(self):
        engine = SlotEngine(config=SCATTER_HEAVY_CONFIG, seed=3)
        result = engine.spin(1.0)
        self.assertTrue(result.bonus_triggered)
        self.assertTrue(engine.bonus_active)
        session = engine.active_session
        self.assertEqual(session.target, result.bonus_trigger)
        self.assertFalse(session.from_buy)

        draws = engine.rng.draws
        with self.assertRaises(InvalidSessionError):
            engine.spin(1.0)
        with self.assertRaises(InvalidSessionError):
            engine.buy_bonus(1.0)
        with self.assertRaises(InvalidSessionError):
            engine.start_bonus(S.CHERRY, 1.0)
        self.assertEqual(engine.rng.draws, draws)
        self.assertIs(engine.active_session, session)

    def test_bonus_round_to_completion(self):
        engine = SlotEngine(seed=77)
        buy = engine.buy_bonus(0.5)
        self.assertAlmostEqual(buy.cost, DEFAULT_CONFIG.bonus_buy_cost_multiplier * 0.5)
        self.assertIn(buy.target, PAYING_SYMBOLS)
        self.assertTrue(engine.active_session.from_buy)

        results = [engine.bonus_spin() for _ in range(DEFAULT_CONFIG.free_spin_count)]
        self.assertTrue(results[-1].ended)
        self.assertAlmostEqual(results[-1].credited, sum(r.win for r in results))
        self.assertFalse(engine.bonus_active)
        self.assertIsNone(engine.active_session)

        with self.assertRaises(InvalidSessionError):
            engine.bonus_spin()
        # Back to base play.
        engine.spin(0.5)

    def test_cancel_bonus(self):
        engine = SlotEngine(seed=8)
        engine.buy_bonus(1.0)
        engine.bonus_spin()
        session = engine.cancel_bonus()
        self.assertTrue(session.cancelled)
        self.assertEqual(session.running_total, 0.0)
        self.assertFalse(engine.bonus_active)
        with self.assertRaises(InvalidSessionError):
            engine.cancel_bonus()

    def test_bonus_spin_without_session(self):
        with self.assertRaises(InvalidSessionError):
            SlotEngine(seed=1).bonus_spin()


if __name__ == '__main__':
    unittest.main()
