"""
Tests for the constants module.
"""

import unittest

from reactor_sim.constants import (
    EXPORT_COLUMNS,
    SAFETY_DEFAULTS,
    PlantDefaults,
)


class TestPlantDefaults(unittest.TestCase):
    """Test reference plant parameters."""

    def setUp(self):
        self.defaults = PlantDefaults()

    def test_nominal_power(self):
        """Test nominal power is 10 MW."""
        self.assertEqual(self.defaults.NOMINAL_POWER, 1.0e7)

    def test_heat_capacities(self):
        """Test core and coolant heat capacities."""
        self.assertEqual(self.defaults.CORE_MASS * self.defaults.CORE_SPECIFIC_HEAT, 2.5e7)
        self.assertEqual(self.defaults.COOLANT_MASS * self.defaults.COOLANT_SPECIFIC_HEAT, 4.184e7)

    def test_initial_operating_point(self):
        """Test rods start inserted with nominal flow."""
        self.assertEqual(self.defaults.INITIAL_ROD_POSITION, 1.0)
        self.assertEqual(self.defaults.INITIAL_FLOW_RATE, 200.0)

    def test_frozen(self):
        """Test defaults are immutable."""
        with self.assertRaises(Exception):
            self.defaults.NOMINAL_POWER = 0.0


class TestSafetyDefaults(unittest.TestCase):
    """Test safety system defaults."""

    def test_thresholds_ordered(self):
        self.assertTrue(SAFETY_DEFAULTS["caution_temp"] < SAFETY_DEFAULTS["critical_temp"])

    def test_emergency_parameters(self):
        self.assertEqual(SAFETY_DEFAULTS["emergency_flow"], 1000.0)
        self.assertEqual(SAFETY_DEFAULTS["emergency_duration"], 10.0)


class TestExportLayout(unittest.TestCase):

    def test_columns(self):
        self.assertEqual(EXPORT_COLUMNS, ("time_s", "core_temp_c", "coolant_temp_c"))


if __name__ == "__main__":
    unittest.main()
