# File: src/parking_engine/application/reports.py
"""
Report assembly

ReportBuilder collects report fields step by step and produces an
immutable ParkingReportDTO. It holds numbers only; rendering them is
left to whoever consumes the DTO.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .dtos import ParkingReportDTO, VehicleStatisticDTO
from ..domain.exceptions import ValidationError
from ..domain.models import VehicleClass


class ReportBuilder:
    """Fluent builder for ParkingReportDTO"""

    def __init__(self):
        self._title = "Parking Report"
        self._generated_at: Optional[datetime] = None
        self._time_period = ""
        self._total_entries = 0
        self._total_revenue = Decimal('0')
        self._current_occupancy = 0.0
        self._average_duration = 0.0
        self._vehicle_statistics: List[VehicleStatisticDTO] = []
        self._additional_info = ""

    def set_title(self, title: str) -> 'ReportBuilder':
        self._title = title
        return self

    def set_generated_at(self, generated_at: datetime) -> 'ReportBuilder':
        self._generated_at = generated_at
        return self

    def set_time_period(self, time_period: str) -> 'ReportBuilder':
        self._time_period = time_period
        return self

    def set_total_entries(self, total_entries: int) -> 'ReportBuilder':
        self._total_entries = total_entries
        return self

    def set_total_revenue(self, total_revenue: Union[Decimal, int, float]) -> 'ReportBuilder':
        self._total_revenue = Decimal(str(total_revenue))
        return self

    def set_current_occupancy(self, current_occupancy: float) -> 'ReportBuilder':
        self._current_occupancy = current_occupancy
        return self

    def set_average_duration(self, average_duration: float) -> 'ReportBuilder':
        self._average_duration = average_duration
        return self

    def add_vehicle_statistic(
        self,
        vehicle_class: Union[VehicleClass, str],
        count: int,
        revenue: Union[Decimal, int, float],
        average_duration: float,
        accessible_percentage: float
    ) -> 'ReportBuilder':
        try:
            stat = VehicleStatisticDTO(
                vehicle_class=str(vehicle_class),
                count=count,
                revenue=Decimal(str(revenue)),
                average_duration=average_duration,
                accessible_percentage=accessible_percentage,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid vehicle statistic for {vehicle_class}: {e}", cause=e)
        self._vehicle_statistics.append(stat)
        return self

    def set_additional_info(self, additional_info: str) -> 'ReportBuilder':
        self._additional_info = additional_info
        return self

    def build(self) -> ParkingReportDTO:
        """
        Produce the report
        Raises: ValidationError when a field is out of range
        """
        try:
            return ParkingReportDTO(
                title=self._title,
                generated_at=self._generated_at or datetime.now(),
                time_period=self._time_period,
                total_entries=self._total_entries,
                total_revenue=self._total_revenue,
                current_occupancy=self._current_occupancy,
                average_duration=self._average_duration,
                vehicle_statistics=list(self._vehicle_statistics),
                additional_info=self._additional_info,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid report data: {e}", cause=e)
