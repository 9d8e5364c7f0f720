# File: src/parking_engine/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Engine

DTOs carry report and status data out of the application layer:
1. Report DTOs - daily / monthly report data and per-class breakdowns
2. Status DTOs - point-in-time lot occupancy

DTO Principles:
- Immutable (frozen pydantic models)
- Validation at creation
- No business logic, only data
- No display formatting; callers render the numbers themselves
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import json

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        frozen=True,
        from_attributes=True,
        populate_by_name=True,
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        data = self.model_dump(**kwargs)
        if exclude_none:
            data = {k: v for k, v in data.items() if v is not None}
        return data

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseDTO':
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        return cls(**json.loads(json_str))


# ============================================================================
# REPORT DTOs
# ============================================================================

class VehicleStatisticDTO(BaseDTO):
    """Per-vehicle-class figures for one report period"""
    vehicle_class: str = Field(description="Vehicle class display name")
    count: int = Field(ge=0, description="Vehicles of this class that entered")
    revenue: Decimal = Field(ge=0, description="Revenue from this class")
    average_duration: float = Field(ge=0, description="Average stay in hours")
    accessible_percentage: float = Field(
        ge=0, le=100, description="Share of accessibility-flagged vehicles (%)"
    )


class ParkingReportDTO(BaseDTO):
    """Report data for a period; assembled by ReportBuilder"""
    title: str = Field(min_length=1, description="Report title")
    generated_at: datetime = Field(description="When the report was built")
    time_period: str = Field(default="", description="Period the report covers")
    total_entries: int = Field(default=0, ge=0, description="Entries in the period")
    total_revenue: Decimal = Field(default=Decimal('0'), ge=0, description="Revenue in the period")
    current_occupancy: float = Field(default=0.0, ge=0, le=100, description="Occupancy (%) at build time")
    average_duration: float = Field(default=0.0, ge=0, description="Average stay in hours")
    vehicle_statistics: List[VehicleStatisticDTO] = Field(default_factory=list)
    additional_info: str = Field(default="", description="Free-form notes")

    def get_vehicle_statistic(self, vehicle_class: str) -> Optional[VehicleStatisticDTO]:
        """Look up a class breakdown by display name (case-insensitive)"""
        key = vehicle_class.lower()
        for stat in self.vehicle_statistics:
            if stat.vehicle_class.lower() == key:
                return stat
        return None


# ============================================================================
# STATUS DTOs
# ============================================================================

class ParkingLotStatusDTO(BaseDTO):
    """Parking lot status DTO"""
    total_spots: int = Field(ge=0, description="Total number of spots")
    occupied_spots: int = Field(ge=0, description="Number of occupied spots")
    available_spots: int = Field(ge=0, description="Number of available spots")
    occupancy_percentage: float = Field(ge=0, le=100, description="Occupancy (%)")
    standard_available: int = Field(default=0, ge=0, description="Free standard spots")
    accessible_available: int = Field(default=0, ge=0, description="Free accessible spots")
    active_sessions: int = Field(default=0, ge=0, description="Vehicles currently parked")
    completed_sessions: int = Field(default=0, ge=0, description="Sessions closed so far")
    active_subscriptions: int = Field(default=0, ge=0, description="Valid subscriptions")
    timestamp: datetime = Field(description="Status timestamp")

    @model_validator(mode='after')
    def validate_spot_counts(self) -> 'ParkingLotStatusDTO':
        if self.occupied_spots + self.available_spots != self.total_spots:
            raise ValueError(
                f"occupied ({self.occupied_spots}) + available ({self.available_spots}) "
                f"must equal total ({self.total_spots})"
            )
        return self
