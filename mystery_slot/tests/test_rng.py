import unittest

from mystery_slot.utils.reel_config import PAYING_SYMBOLS, Symbol
from mystery_slot.utils.rng import MASK_32, SeededRng, pick_symbol, pick_weighted


class TestSeededRng(unittest.TestCase):

    def test_same_seed_same_sequence(self):
        a = SeededRng(12345)
        b = SeededRng(12345)
        self.assertEqual([a() for _ in range(1000)], [b() for _ in range(1000)])

    def test_different_seeds_diverge(self):
        a = SeededRng(1)
        b = SeededRng(2)
        self.assertNotEqual([a() for _ in range(10)], [b() for _ in range(10)])

    def test_values_in_unit_interval(self):
        rng = SeededRng(0)
        for _ in range(10000):
            value = rng.next_float()
            self.assertGreaterEqual(value, 0.0)
            self.assertLess(value, 1.0)

    def test_seed_is_masked_to_32_bits(self):
        a = SeededRng(MASK_32 + 1 + 77)
        b = SeededRng(77)
        self.assertEqual(a.seed, 77)
        self.assertEqual(a(), b())

    def test_draw_counter(self):
        rng = SeededRng(9)
        for _ in range(5):
            rng()
        rng.randint_below(10)
        self.assertEqual(rng.draws, 6)

    def test_roughly_uniform(self):
        rng = SeededRng(2024)
        buckets = [0] * 10
        n = 50000
        for _ in range(n):
            buckets[int(rng() * 10)] += 1
        for count in buckets:
            self.assertAlmostEqual(count / n, 0.1, delta=0.01)

    def test_randint_below_range(self):
        rng = SeededRng(3)
        seen = {rng.randint_below(4) for _ in range(500)}
        self.assertEqual(seen, {0, 1, 2, 3})


class TestPickWeighted(unittest.TestCase):

    def test_boundaries(self):
        items = [('a', 1.0), ('b', 1.0), ('c', 2.0)]
        self.assertEqual(pick_weighted(lambda: 0.0, items), 'a')
        self.assertEqual(pick_weighted(lambda: 0.26, items), 'b')
        self.assertEqual(pick_weighted(lambda: 0.5, items), 'c')
        self.assertEqual(pick_weighted(lambda: 0.9999, items), 'c')

    def test_zero_weight_items_are_never_picked(self):
        rng = SeededRng(5)
        items = [('a', 0.0), ('b', 3.0), ('c', 0.0)]
        self.assertEqual({pick_weighted(rng, items) for _ in range(200)}, {'b'})

    def test_unconsumed_draw_falls_back_to_last_item(self):
        # A draw of exactly 1.0 is outside the contract but must not raise.
        self.assertEqual(pick_weighted(lambda: 1.0, [('a', 1.0), ('b', 1.0)]), 'b')

    def test_frequencies_follow_weights(self):
        rng = SeededRng(42)
        items = [('x', 1.0), ('y', 3.0)]
        n = 40000
        ys = sum(1 for _ in range(n) if pick_weighted(rng, items) == 'y')
        self.assertAlmostEqual(ys / n, 0.75, delta=0.01)


class TestPickSymbol(unittest.TestCase):

    def test_order_independent_of_mapping_insertion(self):
        forward = {sym: float(i + 1) for i, sym in enumerate(PAYING_SYMBOLS)}
        backward = dict(reversed(list(forward.items())))
        a = SeededRng(99)
        b = SeededRng(99)
        self.assertEqual(
            [pick_symbol(a, forward) for _ in range(200)],
            [pick_symbol(b, backward) for _ in range(200)],
        )

    def test_first_paying_symbol_on_zero_draw(self):
        weights = {Symbol.CLOVER: 1.0, Symbol.CHERRY: 1.0}
        self.assertEqual(pick_symbol(lambda: 0.0, weights), Symbol.CHERRY)


if __name__ == '__main__':
    unittest.main()
