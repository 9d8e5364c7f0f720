# File: src/parking_engine/application/parking_service.py
"""
Parking Application Service

This module implements the facade in front of the parking engine.
It coordinates the parking lot, the subscription registry and the
statistics aggregator, and handles the use cases of the system.

Responsibilities:
1. Vehicle creation from loose input (class names, defaults)
2. Entry and exit, with or without a subscription
3. Subscription management
4. Status and report data for front ends

Two flavours of entry/exit are offered. park_vehicle / remove_vehicle
report failures as False / None, like the lot itself. check_in /
check_out raise the business exceptions instead.
"""

from datetime import datetime
from typing import Callable, Optional, Union
import logging

from .dtos import ParkingLotStatusDTO, ParkingReportDTO
from .reports import ReportBuilder
from .statistics import StatisticsAggregator
from ..domain.aggregates import ParkingLot
from ..domain.exceptions import (
    DuplicateVehicleError, InvalidSubscriptionError, ParkingFullError,
    ValidationError, VehicleNotFoundError
)
from ..domain.models import (
    Money, ParkOutcome, ParkingSession, SubscriptionTier, Vehicle, VehicleClass, VehicleFactory
)
from ..domain.strategies import StandardPricingStrategy, SubscriptionPricingStrategy
from ..domain.subscriptions import SubscriptionRegistry
from ..infrastructure.config import ParkingConfig
from ..infrastructure.messaging import EventBus, EventHandler


class ParkingService:
    """
    Facade over the parking engine

    The service subscribes its statistics aggregator to the lot's event
    bus and registers it as the lot's statistics collaborator.
    """

    def __init__(
        self,
        parking_lot: ParkingLot,
        subscriptions: SubscriptionRegistry,
        statistics: Optional[StatisticsAggregator] = None,
        subscription_pricing: Optional[SubscriptionPricingStrategy] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.parking_lot = parking_lot
        self.subscriptions = subscriptions
        self.statistics = statistics or StatisticsAggregator(clock=clock)
        self._clock = clock

        if self.parking_lot.statistics is None:
            self.parking_lot.statistics = self.statistics
        self.parking_lot.subscribe(self.statistics)

        if subscription_pricing is None:
            config = self.parking_lot.config
            base = StandardPricingStrategy.from_config(config)
            subscription_pricing = SubscriptionPricingStrategy(
                base,
                multiplier_lookup=config.discount_multiplier,
                today=lambda: self._clock().date(),
            )
        self.subscription_pricing = subscription_pricing

        self.logger.info("ParkingService initialized")

    # ========================================================================
    # VEHICLES
    # ========================================================================

    def create_vehicle(
        self,
        vehicle_class: Union[VehicleClass, str],
        license_plate: str,
        owner_name: str,
        is_accessible: bool = False,
        color: str = "Unknown"
    ) -> Vehicle:
        """
        Build a validated vehicle
        Raises: ValidationError for a blank plate or unknown class
        """
        return VehicleFactory.create_vehicle(
            vehicle_class, license_plate, owner_name, is_accessible, color
        )

    # ========================================================================
    # ENTRY / EXIT (boolean flavour)
    # ========================================================================

    def park_vehicle(self, vehicle: Optional[Vehicle]) -> bool:
        return self.parking_lot.park(vehicle)

    def park_subscriber_vehicle(self, vehicle: Optional[Vehicle], subscription_id: str) -> bool:
        """Park without metering; False when the subscription is not valid"""
        if not self.subscriptions.is_valid(subscription_id):
            self.logger.warning(f"Rejected subscriber entry with subscription {subscription_id}")
            return False
        return self.parking_lot.park(vehicle, is_subscription=True)

    def remove_vehicle(self, license_plate: str) -> Optional[Money]:
        """
        Let a vehicle out
        Returns: the fee charged, or None when the plate is not parked
        """
        session = self.parking_lot.remove(license_plate)
        if session is None:
            return None
        return session.amount_paid

    def remove_subscriber_vehicle(self, license_plate: str, subscription_id: str) -> Optional[Money]:
        """
        Let a vehicle out, pricing it against a subscription
        A valid subscription costs nothing; a lapsed one earns the tier discount
        """
        session = self._remove_with_subscription(license_plate, subscription_id)
        if session is None:
            return None
        return session.amount_paid

    # ========================================================================
    # ENTRY / EXIT (exception flavour)
    # ========================================================================

    def check_in(self, vehicle: Vehicle, subscription_id: Optional[str] = None) -> ParkingSession:
        """
        Park a vehicle, raising on failure
        Raises: InvalidSubscriptionError, DuplicateVehicleError,
                ParkingFullError, ValidationError
        """
        is_subscription = subscription_id is not None
        if is_subscription and not self.subscriptions.is_valid(subscription_id):
            raise InvalidSubscriptionError(subscription_id)

        outcome = self.parking_lot.try_park(vehicle, is_subscription=is_subscription)
        if outcome is ParkOutcome.DUPLICATE_PLATE:
            raise DuplicateVehicleError(vehicle.license_plate)
        if outcome is ParkOutcome.LOT_FULL:
            raise ParkingFullError()
        if outcome is ParkOutcome.INVALID_VEHICLE:
            raise ValidationError("A vehicle is required to park")

        return self.parking_lot.find_session(vehicle.license_plate)

    def check_out(self, license_plate: str, subscription_id: Optional[str] = None) -> ParkingSession:
        """
        Let a vehicle out, raising when it is not parked
        Raises: VehicleNotFoundError
        """
        if subscription_id is None:
            session = self.parking_lot.remove(license_plate)
        else:
            session = self._remove_with_subscription(license_plate, subscription_id)

        if session is None:
            raise VehicleNotFoundError(license_plate)
        return session

    # ========================================================================
    # SUBSCRIPTIONS
    # ========================================================================

    def create_subscription(
        self,
        license_plate: str,
        owner_name: str,
        months: int,
        tier: Union[SubscriptionTier, str] = SubscriptionTier.STANDARD
    ) -> str:
        return self.subscriptions.create(license_plate, owner_name, months, tier)

    def is_valid_subscription(self, subscription_id: str) -> bool:
        return self.subscriptions.is_valid(subscription_id)

    def get_annual_subscription_fee(
        self,
        vehicle_class: Union[VehicleClass, str],
        is_accessible: bool = False
    ) -> Money:
        """Quote a yearly subscription for a class of vehicle"""
        base = self.subscription_pricing.base_strategy
        rate = self.parking_lot.config.hourly_rate(VehicleClass.parse(vehicle_class), is_accessible)
        return base.calculate_annual_subscription_fee(rate)

    # ========================================================================
    # STATUS
    # ========================================================================

    def get_occupancy_percentage(self) -> float:
        return self.parking_lot.occupancy_percentage()

    def get_available_spots(self) -> int:
        return self.parking_lot.available_spots()

    def get_status(self) -> ParkingLotStatusDTO:
        report = self.parking_lot.get_status_report()
        return ParkingLotStatusDTO(
            **report,
            active_subscriptions=self.subscriptions.active_count(),
            timestamp=self._clock(),
        )

    def subscribe(self, handler: EventHandler) -> None:
        self.parking_lot.subscribe(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        self.parking_lot.unsubscribe(handler)

    # ========================================================================
    # REPORTS
    # ========================================================================

    def generate_daily_report(self) -> ParkingReportDTO:
        now = self._clock()
        today = now.date()
        stats = self.statistics

        builder = (
            ReportBuilder()
            .set_title("Daily Parking Report")
            .set_generated_at(now)
            .set_time_period(today.isoformat())
            .set_total_entries(stats.daily_entries(today))
            .set_total_revenue(stats.daily_revenue(today))
            .set_current_occupancy(self.get_occupancy_percentage())
            .set_average_duration(stats.average_duration())
            .set_additional_info(f"Most popular color: {stats.most_popular_color()}")
        )
        for vehicle_class in VehicleClass:
            builder.add_vehicle_statistic(
                vehicle_class,
                stats.daily_vehicle_count(vehicle_class, today),
                stats.daily_class_revenue(vehicle_class, today),
                stats.average_duration(vehicle_class),
                stats.accessible_percentage(vehicle_class),
            )
        return builder.build()

    def generate_monthly_report(self) -> ParkingReportDTO:
        now = self._clock()
        today = now.date()
        stats = self.statistics

        builder = (
            ReportBuilder()
            .set_title("Monthly Parking Report")
            .set_generated_at(now)
            .set_time_period(today.strftime("%B %Y"))
            .set_total_entries(stats.monthly_entries(today))
            .set_total_revenue(stats.monthly_revenue(today))
            .set_current_occupancy(self.get_occupancy_percentage())
            .set_average_duration(stats.average_duration())
            .set_additional_info(f"Most popular color: {stats.most_popular_color()}")
        )
        for vehicle_class in VehicleClass:
            builder.add_vehicle_statistic(
                vehicle_class,
                stats.monthly_vehicle_count(vehicle_class, today),
                stats.monthly_class_revenue(vehicle_class, today),
                stats.average_duration(vehicle_class),
                stats.accessible_percentage(vehicle_class),
            )
        return builder.build()

    # ========================================================================
    # INTERNAL HELPER METHODS
    # ========================================================================

    def _remove_with_subscription(
        self,
        license_plate: str,
        subscription_id: str
    ) -> Optional[ParkingSession]:
        # is_valid enforces expiry before the fee is computed
        self.subscriptions.is_valid(subscription_id)
        subscription = self.subscriptions.get(subscription_id)
        if subscription is None:
            self.logger.warning(f"Unknown subscription {subscription_id}, charging full fee")

        def fee_calculator(session: ParkingSession) -> Money:
            return self.subscription_pricing.calculate_fee_with_subscription(session, subscription)

        return self.parking_lot.remove(license_plate, fee_calculator=fee_calculator)


# ============================================================================
# SERVICE FACTORY
# ============================================================================

class ParkingServiceFactory:
    """Factory for creating parking service instances"""

    @staticmethod
    def create_service(
        config: Optional[ParkingConfig] = None,
        clock: Callable[[], datetime] = datetime.now
    ) -> ParkingService:
        """Wire a lot, registry, statistics and bus into one service"""
        config = config or ParkingConfig()
        event_bus = EventBus()
        statistics = StatisticsAggregator(clock=clock)
        parking_lot = ParkingLot(
            config,
            event_bus=event_bus,
            statistics=statistics,
            clock=clock,
        )
        subscriptions = SubscriptionRegistry(today=lambda: clock().date())
        return ParkingService(parking_lot, subscriptions, statistics, clock=clock)
