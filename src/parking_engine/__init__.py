"""
Parking allocation and session lifecycle engine

Layers:
- domain: spots, vehicles, sessions, subscriptions, pricing, the lot aggregate
- application: statistics, reports, the ParkingService facade
- infrastructure: configuration and the event bus
"""

from .application.parking_service import ParkingService, ParkingServiceFactory
from .application.statistics import StatisticsAggregator
from .domain.aggregates import ParkingLot
from .domain.exceptions import (
    ParkingError, ValidationError, InvariantViolationError,
    DuplicateVehicleError, ParkingFullError, VehicleNotFoundError, InvalidSubscriptionError
)
from .domain.models import (
    Money, Vehicle, VehicleClass, VehicleFactory, SubscriptionTier, ParkOutcome
)
from .domain.subscriptions import SubscriptionRegistry
from .infrastructure.config import ParkingConfig, load_config
from .infrastructure.messaging import EventBus, EventHandler

__version__ = "1.0.0"

__all__ = [
    "ParkingService", "ParkingServiceFactory", "StatisticsAggregator", "ParkingLot",
    "ParkingError", "ValidationError", "InvariantViolationError",
    "DuplicateVehicleError", "ParkingFullError", "VehicleNotFoundError",
    "InvalidSubscriptionError", "Money", "Vehicle", "VehicleClass", "VehicleFactory",
    "SubscriptionTier", "ParkOutcome", "SubscriptionRegistry", "ParkingConfig",
    "load_config", "EventBus", "EventHandler",
]
