#!/usr/bin/env python3
"""
Configuration Unit Tests
"""

import os
import tempfile
import unittest
from decimal import Decimal

from parking_engine.domain.exceptions import ValidationError
from parking_engine.domain.models import VehicleClass, SubscriptionTier
from parking_engine.infrastructure.config import ParkingConfig, config_from_dict, load_config


class TestParkingConfig(unittest.TestCase):
    """Unit tests for ParkingConfig defaults and validation"""

    def test_defaults(self):
        config = ParkingConfig()
        self.assertEqual(config.regular_spot_count, 100)
        self.assertEqual(config.accessible_spot_count, 20)
        self.assertEqual(config.total_spots, 120)
        self.assertEqual(config.free_hours, Decimal('2.0'))
        self.assertEqual(config.currency, "ILS")

    def test_rate_table(self):
        config = ParkingConfig()
        self.assertEqual(config.hourly_rate(VehicleClass.CAR, False), Decimal('18'))
        self.assertEqual(config.hourly_rate(VehicleClass.CAR, True), Decimal('8'))
        self.assertEqual(config.hourly_rate(VehicleClass.MOTORCYCLE, False), Decimal('12'))
        self.assertEqual(config.hourly_rate(VehicleClass.MOTORCYCLE, True), Decimal('8'))

    def test_default_discount_multipliers(self):
        config = ParkingConfig()
        self.assertEqual(config.discount_multiplier(SubscriptionTier.STANDARD), Decimal('0.8'))
        self.assertEqual(config.discount_multiplier(SubscriptionTier.PREMIUM), Decimal('0.7'))
        self.assertEqual(config.discount_multiplier(SubscriptionTier.VIP), Decimal('0.6'))

    def test_partial_discount_override(self):
        config = config_from_dict({"subscription_discounts": {"vip": "0.5"}})
        self.assertEqual(config.discount_multiplier(SubscriptionTier.VIP), Decimal('0.5'))
        self.assertEqual(config.discount_multiplier(SubscriptionTier.STANDARD), Decimal('0.8'))

    def test_invalid_values_rejected(self):
        cases = [
            {"regular_spot_count": -1},
            {"regular_spot_count": 0, "accessible_spot_count": 0},
            {"hourly_rates": {"car": -5}},
            {"free_hours": -1},
            {"subscription_discounts": {"standard": 1.5}},
            {"subscription_discounts": {"gold": 0.1}},
            {"currency": "SHEKEL"},
        ]
        for data in cases:
            with self.subTest(data=data):
                with self.assertRaises(ValidationError):
                    config_from_dict(data)

    def test_config_is_frozen(self):
        config = ParkingConfig()
        with self.assertRaises(Exception):
            config.regular_spot_count = 5


class TestLoadConfig(unittest.TestCase):
    """Unit tests for YAML loading"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write(self, text):
        path = os.path.join(self.tmpdir.name, "parking.yaml")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(text)
        return path

    def test_no_path_uses_defaults(self):
        self.assertEqual(load_config(None).total_spots, 120)

    def test_missing_file_uses_defaults_with_warning(self):
        with self.assertLogs("parking_engine.infrastructure.config", level="WARNING"):
            config = load_config(os.path.join(self.tmpdir.name, "missing.yaml"))
        self.assertEqual(config.total_spots, 120)

    def test_loads_yaml(self):
        path = self.write(
            "regular_spot_count: 10\n"
            "accessible_spot_count: 2\n"
            "free_hours: 1\n"
            "hourly_rates:\n"
            "  car: 20\n"
        )
        config = load_config(path)
        self.assertEqual(config.total_spots, 12)
        self.assertEqual(config.free_hours, Decimal('1'))
        self.assertEqual(config.hourly_rate(VehicleClass.CAR, False), Decimal('20'))
        self.assertEqual(config.hourly_rate(VehicleClass.MOTORCYCLE, False), Decimal('12'))

    def test_empty_file_uses_defaults(self):
        self.assertEqual(load_config(self.write("")).total_spots, 120)

    def test_malformed_yaml_rejected(self):
        with self.assertRaises(ValidationError):
            load_config(self.write("regular_spot_count: [1, 2\n"))

    def test_non_mapping_rejected(self):
        with self.assertRaises(ValidationError):
            load_config(self.write("- 1\n- 2\n"))

    def test_invalid_values_rejected(self):
        with self.assertRaises(ValidationError):
            load_config(self.write("regular_spot_count: lots\n"))


if __name__ == '__main__':
    unittest.main()
