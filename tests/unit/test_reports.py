#!/usr/bin/env python3
"""
Report Builder and DTO Unit Tests
"""

import json
import unittest
from datetime import datetime
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from parking_engine.application.dtos import ParkingLotStatusDTO, ParkingReportDTO
from parking_engine.application.reports import ReportBuilder
from parking_engine.domain.exceptions import ValidationError
from parking_engine.domain.models import VehicleClass


class TestReportBuilder(unittest.TestCase):
    """Unit tests for ReportBuilder"""

    def setUp(self):
        self.generated_at = datetime(2026, 7, 1, 18, 0)

    def test_build_full_report(self):
        report = (
            ReportBuilder()
            .set_title("Daily Parking Report")
            .set_generated_at(self.generated_at)
            .set_time_period("2026-07-01")
            .set_total_entries(12)
            .set_total_revenue(Decimal('216'))
            .set_current_occupancy(25.0)
            .set_average_duration(3.5)
            .add_vehicle_statistic(VehicleClass.CAR, 10, Decimal('180'), 3.0, 10.0)
            .add_vehicle_statistic(VehicleClass.MOTORCYCLE, 2, 36, 4.0, 0.0)
            .set_additional_info("Most popular color: Red")
            .build()
        )

        self.assertIsInstance(report, ParkingReportDTO)
        self.assertEqual(report.title, "Daily Parking Report")
        self.assertEqual(report.generated_at, self.generated_at)
        self.assertEqual(report.total_entries, 12)
        self.assertEqual(report.total_revenue, Decimal('216'))
        self.assertEqual(len(report.vehicle_statistics), 2)

        car = report.get_vehicle_statistic("car")
        self.assertEqual(car.vehicle_class, "Car")
        self.assertEqual(car.count, 10)
        self.assertEqual(report.get_vehicle_statistic("Motorcycle").revenue, Decimal('36'))
        self.assertIsNone(report.get_vehicle_statistic("truck"))

    def test_defaults(self):
        report = ReportBuilder().build()
        self.assertEqual(report.title, "Parking Report")
        self.assertEqual(report.total_entries, 0)
        self.assertEqual(report.vehicle_statistics, [])
        self.assertIsInstance(report.generated_at, datetime)

    def test_invalid_values_rejected(self):
        with self.assertRaises(ValidationError):
            ReportBuilder().set_total_entries(-1).build()
        with self.assertRaises(ValidationError):
            ReportBuilder().set_current_occupancy(120.0).build()
        with self.assertRaises(ValidationError):
            ReportBuilder().add_vehicle_statistic("Car", 1, 0, 1.0, 150.0)

    def test_report_serializes(self):
        report = ReportBuilder().set_generated_at(self.generated_at).set_total_revenue(18).build()
        data = json.loads(report.to_json())
        self.assertEqual(data["title"], "Parking Report")
        self.assertEqual(Decimal(data["total_revenue"]), Decimal('18'))
        self.assertEqual(report.to_dict()["total_entries"], 0)

    def test_report_is_immutable(self):
        report = ReportBuilder().build()
        with self.assertRaises(PydanticValidationError):
            report.title = "Changed"


class TestParkingLotStatusDTO(unittest.TestCase):
    """Unit tests for ParkingLotStatusDTO"""

    def test_counts_must_add_up(self):
        with self.assertRaises(PydanticValidationError):
            ParkingLotStatusDTO(
                total_spots=10, occupied_spots=3, available_spots=3,
                occupancy_percentage=30.0, timestamp=datetime(2026, 7, 1),
            )

    def test_valid_status(self):
        status = ParkingLotStatusDTO(
            total_spots=10, occupied_spots=3, available_spots=7,
            occupancy_percentage=30.0, timestamp=datetime(2026, 7, 1),
        )
        self.assertEqual(status.to_dict(exclude_none=True)["available_spots"], 7)


if __name__ == '__main__':
    unittest.main()
