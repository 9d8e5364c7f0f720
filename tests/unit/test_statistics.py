#!/usr/bin/env python3
"""
Statistics Aggregator Unit Tests
"""

import unittest
from datetime import datetime, date
from decimal import Decimal

from parking_engine.application.statistics import StatisticsAggregator
from parking_engine.domain.models import (
    Vehicle, VehicleClass, EntryEvent, ExitEvent, OccupancyEvent
)
from parking_engine.infrastructure.messaging import EventBus


class TestStatisticsAggregator(unittest.TestCase):
    """Unit tests for StatisticsAggregator"""

    def setUp(self):
        self.now = datetime(2026, 5, 20, 12, 0)
        self.stats = StatisticsAggregator(clock=lambda: self.now)

    def enter(self, vehicle, when=None):
        self.stats.record_vehicle_type(vehicle)
        self.stats.handle(EntryEvent(vehicle.license_plate, 1, timestamp=when or self.now))

    def leave(self, plate, hours, payment, when=None):
        self.stats.handle(ExitEvent(plate, 1, hours, payment=Decimal(payment), timestamp=when or self.now))

    def test_empty(self):
        self.assertEqual(self.stats.daily_entries(), 0)
        self.assertEqual(self.stats.daily_revenue(), Decimal('0'))
        self.assertEqual(self.stats.average_duration(), 0.0)
        self.assertEqual(self.stats.accessible_percentage(), 0.0)
        self.assertEqual(self.stats.most_popular_color(), "Unknown")
        self.assertIsNone(self.stats.occupancy)

    def test_entries_and_revenue(self):
        car = Vehicle("C-1", "O", VehicleClass.CAR, color="Red")
        bike = Vehicle("M-1", "O", VehicleClass.MOTORCYCLE, is_accessible=True, color="Red")
        self.enter(car)
        self.enter(bike)
        self.assertEqual(self.stats.vehicles_inside, 2)

        self.leave("C-1", 3.0, "18")
        self.leave("M-1", 1.0, "0")

        self.assertEqual(self.stats.daily_entries(), 2)
        self.assertEqual(self.stats.daily_revenue(), Decimal('18'))
        self.assertEqual(self.stats.daily_vehicle_count(VehicleClass.CAR), 1)
        self.assertEqual(self.stats.daily_vehicle_count(VehicleClass.MOTORCYCLE), 1)
        self.assertEqual(self.stats.daily_class_revenue(VehicleClass.CAR), Decimal('18'))
        self.assertEqual(self.stats.daily_class_revenue(VehicleClass.MOTORCYCLE), Decimal('0'))
        self.assertEqual(self.stats.average_duration(), 2.0)
        self.assertEqual(self.stats.average_duration(VehicleClass.CAR), 3.0)
        self.assertEqual(self.stats.vehicles_inside, 0)

    def test_exit_without_recorded_class_counts_overall_only(self):
        self.stats.handle(EntryEvent("X-1", 1, timestamp=self.now))
        self.leave("X-1", 4.0, "36")
        self.assertEqual(self.stats.daily_revenue(), Decimal('36'))
        self.assertEqual(self.stats.daily_class_revenue(VehicleClass.CAR), Decimal('0'))
        self.assertEqual(self.stats.average_duration(VehicleClass.CAR), 0.0)

    def test_monthly_figures_filter_by_month(self):
        car = Vehicle("C-1", "O")
        self.enter(car, when=datetime(2026, 5, 2, 9, 0))
        self.leave("C-1", 3.0, "18", when=datetime(2026, 5, 2, 12, 0))
        self.enter(Vehicle("C-2", "O"), when=datetime(2026, 4, 30, 9, 0))
        self.leave("C-2", 3.0, "18", when=datetime(2026, 4, 30, 12, 0))
        self.enter(Vehicle("C-3", "O"), when=datetime(2025, 5, 20, 9, 0))

        self.assertEqual(self.stats.daily_entries(), 0)
        self.assertEqual(self.stats.monthly_entries(), 1)
        self.assertEqual(self.stats.monthly_revenue(), Decimal('18'))
        self.assertEqual(self.stats.monthly_revenue(date(2026, 4, 1)), Decimal('18'))
        self.assertEqual(self.stats.daily_entries(date(2026, 4, 30)), 1)

    def test_monthly_class_figures(self):
        self.enter(Vehicle("C-1", "O"))
        self.leave("C-1", 5.5, "72")
        self.now = datetime(2026, 5, 28, 12, 0)
        self.enter(Vehicle("C-2", "O"))
        self.leave("C-2", 3.0, "18")

        self.assertEqual(self.stats.daily_vehicle_count(VehicleClass.CAR), 1)
        self.assertEqual(self.stats.monthly_vehicle_count(VehicleClass.CAR), 2)
        self.assertEqual(self.stats.monthly_class_revenue(VehicleClass.CAR), Decimal('90'))
        self.assertEqual(self.stats.monthly_vehicle_count(VehicleClass.MOTORCYCLE), 0)

    def test_accessible_percentage(self):
        self.enter(Vehicle("C-1", "O", VehicleClass.CAR, is_accessible=True))
        self.enter(Vehicle("C-2", "O", VehicleClass.CAR))
        self.enter(Vehicle("C-3", "O", VehicleClass.CAR))
        self.enter(Vehicle("M-1", "O", VehicleClass.MOTORCYCLE, is_accessible=True))
        self.assertEqual(self.stats.accessible_percentage(), 50.0)
        self.assertAlmostEqual(self.stats.accessible_percentage(VehicleClass.CAR), 100.0 / 3)
        self.assertEqual(self.stats.accessible_percentage(VehicleClass.MOTORCYCLE), 100.0)

    def test_colors(self):
        for plate, color in [("A", "Red"), ("B", "Blue"), ("C", "Red"), ("D", "")]:
            self.stats.record_vehicle_type(Vehicle(plate, "O", color=color))
        self.assertEqual(self.stats.most_popular_color(), "Red")
        self.assertEqual(self.stats.color_count("Red"), 2)
        self.assertEqual(self.stats.color_count("Green"), 0)
        self.assertEqual(self.stats.all_colors(), {"Red": 2, "Blue": 1, "Unknown": 1})

    def test_occupancy_snapshot(self):
        event = OccupancyEvent(total=120, occupied=3, available=117)
        self.stats.handle(event)
        self.assertIs(self.stats.occupancy, event)

    def test_n_entries_through_bus(self):
        bus = EventBus()
        bus.subscribe(self.stats)
        for i in range(25):
            bus.publish(EntryEvent(f"P-{i}", i + 1, timestamp=self.now))
        self.assertEqual(self.stats.daily_entries(), 25)

    def test_replay(self):
        events = [
            EntryEvent("C-1", 1, timestamp=self.now),
            ExitEvent("C-1", 1, 3.0, payment=Decimal('18'), timestamp=self.now),
            OccupancyEvent(total=10, occupied=0, available=10, timestamp=self.now),
        ]
        self.stats.replay(events)
        self.assertEqual(self.stats.daily_entries(), 1)
        self.assertEqual(self.stats.daily_revenue(), Decimal('18'))
        self.assertEqual(self.stats.occupancy.total, 10)


if __name__ == '__main__':
    unittest.main()
