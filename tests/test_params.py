import dataclasses
import unittest

from params import Params, Settings
from shapes import MAX_PARTICLES, ShapeType


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        s = Settings()
        self.assertEqual(s.particle_count, 20000)
        self.assertAlmostEqual(s.force_strength, 2.5)
        self.assertAlmostEqual(s.interaction_radius, 25.0)
        self.assertAlmostEqual(s.damping, 0.96)
        self.assertAlmostEqual(s.return_speed, 0.04)
        self.assertEqual(s.clamped(), s)

    def test_is_immutable(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            Settings().damping = 0.5

    def test_particle_count_bounds_and_step(self):
        self.assertEqual(Settings(particle_count=100).clamped().particle_count, 5000)
        self.assertEqual(Settings(particle_count=99999).clamped().particle_count, 40000)
        self.assertEqual(Settings(particle_count=12345).clamped().particle_count, 12000)

    def test_particle_count_capped_by_capacity(self):
        self.assertEqual(Settings(particle_count=20000).clamped(capacity=8000).particle_count, 8000)

    def test_float_bounds(self):
        s = Settings(force_strength=50.0, interaction_radius=1.0, damping=1.5, return_speed=-1.0).clamped()
        self.assertEqual(s.force_strength, 10.0)
        self.assertEqual(s.interaction_radius, 10.0)
        self.assertEqual(s.damping, 0.999)
        self.assertEqual(s.return_speed, 0.001)

    def test_non_finite_falls_back_to_default(self):
        s = Settings(force_strength=float("nan"), damping=float("inf")).clamped()
        self.assertAlmostEqual(s.force_strength, 2.5)
        self.assertAlmostEqual(s.damping, 0.96)

    def test_with_changes_publishes_new_value(self):
        a = Settings()
        b = a.with_changes(particle_count=41000, force_strength=4.0)
        self.assertIsNot(a, b)
        self.assertEqual(a.particle_count, 20000)
        self.assertEqual(b.particle_count, 40000)
        self.assertAlmostEqual(b.force_strength, 4.0)


class TestParams(unittest.TestCase):
    def test_defaults(self):
        p = Params()
        self.assertEqual(p.capacity, MAX_PARTICLES)
        self.assertEqual(p.initial_shape, ShapeType.SPHERE)
        self.assertEqual(p.backend, "numpy")
        self.assertAlmostEqual(p.fov_deg, 75.0)
        self.assertAlmostEqual(p.camera_distance, 60.0)


if __name__ == '__main__':
    unittest.main()
