import unittest

import numpy as np

from shapes import SENTINEL, ShapeType, generate_shape_positions


class TestShapes(unittest.TestCase):
    def setUp(self):
        self.capacity = 3000
        self.rng = np.random.default_rng(7)

    def _gen(self, shape, count):
        return generate_shape_positions(shape, count, self.capacity, self.rng)

    def test_buffer_is_full_capacity(self):
        out = self._gen(ShapeType.SPHERE, 100)
        self.assertEqual(out.shape, (self.capacity, 3))
        self.assertEqual(out.dtype, np.float32)

    def test_sentinel_fills_unused_slots(self):
        """Exactly `count` real points, every other slot is SENTINEL on all axes."""
        for shape in ShapeType:
            for count in (0, 1, 750, self.capacity):
                out = self._gen(shape, count)
                is_sentinel = np.all(out == SENTINEL, axis=1)
                self.assertEqual(int(np.count_nonzero(~is_sentinel)), count, f"{shape} @ {count}")
                self.assertTrue(np.all(is_sentinel[count:]))
                self.assertFalse(np.any(is_sentinel[:count]))

    def test_sphere_is_hollow_radius_25(self):
        out = self._gen(ShapeType.SPHERE, 2000)[:2000].astype(np.float64)
        d2 = np.sum(out * out, axis=1)
        np.testing.assert_allclose(d2, 25.0 ** 2, rtol=1e-4)

    def test_sphere_covers_both_hemispheres(self):
        out = self._gen(ShapeType.SPHERE, 2000)[:2000]
        for axis in range(3):
            self.assertLess(out[:, axis].min(), -20.0)
            self.assertGreater(out[:, axis].max(), 20.0)

    def test_cube_within_bounds(self):
        out = self._gen(ShapeType.CUBE, 2500)[:2500]
        self.assertTrue(np.all(out >= -17.5))
        self.assertTrue(np.all(out <= 17.5))
        # Solid, not just the faces
        inner = np.all(np.abs(out) < 10.0, axis=1)
        self.assertGreater(int(np.count_nonzero(inner)), 0)

    def test_heart_extent(self):
        out = self._gen(ShapeType.HEART, 2500)[:2500]
        self.assertTrue(np.all(np.abs(out[:, 0]) <= 16.0 * 1.2 + 1e-3))
        self.assertTrue(np.all(np.abs(out[:, 2]) <= 5.0 + 1e-3))
        # Raw curve spans y in about [-17, 12] before the 1.2 scale; +5 shift after
        self.assertTrue(np.all(out[:, 1] <= 13.0 * 1.2 + 5.0))
        self.assertTrue(np.all(out[:, 1] >= -17.0 * 1.2 + 5.0 - 1e-3))

    def test_heart_centered_by_y_shift(self):
        """The raw curve averages to zero over t, so the +5 shift sets the mean."""
        n = self.capacity
        out = self._gen(ShapeType.HEART, n).astype(np.float64)
        self.assertAlmostEqual(out[:, 1].mean(), 5.0, delta=0.5)
        self.assertAlmostEqual(out[:, 0].mean(), 0.0, delta=0.5)
        self.assertAlmostEqual(out[:, 2].mean(), 0.0, delta=0.2)

    def test_heart_volume_fill_and_depth(self):
        """Same seed replays t, sqrt(r) and the z jitter draw by draw."""
        n = 2000
        out = generate_shape_positions(ShapeType.HEART, n, self.capacity,
                                       np.random.default_rng(21))[:n].astype(np.float64)

        rng = np.random.default_rng(21)
        t = rng.random(n) * 2.0 * np.pi
        vol = np.sqrt(rng.random(n))
        jitter = rng.random(n) - 0.5

        raw_x = 16.0 * np.sin(t) ** 3
        raw_y = 13.0 * np.cos(t) - 5.0 * np.cos(2 * t) - 2.0 * np.cos(3 * t) - np.cos(4 * t)
        np.testing.assert_allclose(out[:, 0], 1.2 * raw_x * vol, atol=1e-4)
        np.testing.assert_allclose(out[:, 1], 1.2 * raw_y * vol + 5.0, atol=1e-4)
        np.testing.assert_allclose(out[:, 2], 10.0 * jitter * vol, atol=1e-4)

        # Depth jitter shrinks with the same volume factor
        self.assertTrue(np.all(np.abs(out[:, 2]) <= 5.0 * vol + 1e-4))

        # Bottom tip (t near pi) sits at -17 * 1.2 * vol, shifted up by 5
        tip = np.abs(t - np.pi) < 0.03
        self.assertTrue(np.any(tip))
        np.testing.assert_allclose(out[tip, 1], -17.0 * 1.2 * vol[tip] + 5.0, atol=0.05)

        # Filled, not just the outline: plenty of points well inside
        self.assertGreater(int(np.count_nonzero(vol < 0.5)), n // 10)

    def test_spiral_is_index_driven_helix(self):
        count = 1200
        a = generate_shape_positions(ShapeType.SPIRAL, count, self.capacity, np.random.default_rng(1))
        b = generate_shape_positions(ShapeType.SPIRAL, count, self.capacity, np.random.default_rng(2))
        np.testing.assert_array_equal(a, b)

        pts = a[:count].astype(np.float64)
        np.testing.assert_allclose(np.hypot(pts[:, 0], pts[:, 2]), 20.0, rtol=1e-5)
        self.assertAlmostEqual(pts[0, 1], -30.0, places=4)
        self.assertTrue(np.all(np.diff(pts[:, 1]) > 0))
        self.assertLess(pts[-1, 1], 30.0)

        i = 10
        self.assertAlmostEqual(pts[i, 0], 20.0 * np.cos(i * 0.05), places=4)
        self.assertAlmostEqual(pts[i, 2], 20.0 * np.sin(i * 0.05), places=4)

    def test_count_outside_capacity_rejected(self):
        with self.assertRaises(ValueError):
            self._gen(ShapeType.CUBE, self.capacity + 1)
        with self.assertRaises(ValueError):
            self._gen(ShapeType.CUBE, -1)

    def test_unknown_shape_rejected(self):
        with self.assertRaises(ValueError):
            generate_shape_positions("Torus", 10, self.capacity, self.rng)

    def test_parse_shape_name(self):
        self.assertEqual(ShapeType.parse("heart"), ShapeType.HEART)
        self.assertEqual(ShapeType.parse(" Spiral "), ShapeType.SPIRAL)
        with self.assertRaises(ValueError):
            ShapeType.parse("donut")


if __name__ == '__main__':
    unittest.main()
