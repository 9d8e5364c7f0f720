# File: src/parking_engine/domain/strategies.py
"""
Strategy Pattern Implementation for the Parking Engine

Key Strategies:
1. Parking Allocation Strategies - choose a spot for an arriving vehicle
2. Pricing Strategies - turn a finished session into a fee

Strategies are stateless apart from the configuration they are built with,
so one instance can be shared by every caller of the lot.
"""

from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_CEILING
from typing import Optional, Sequence, Callable
from datetime import date
import logging

from .models import (
    ParkingSpot, ParkingSession, Vehicle, VehicleClass, Money,
    Subscription, SubscriptionTier
)


# ============================================================================
# STRATEGY INTERFACES
# ============================================================================

class ParkingStrategy(ABC):
    """
    Abstract base class for spot allocation strategies
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def allocate_spot(
        self,
        spots: Sequence[ParkingSpot],
        vehicle: Vehicle
    ) -> Optional[ParkingSpot]:
        """
        Pick a free spot for the vehicle, or None when nothing fits.
        Must not mutate the spots.
        """
        pass

    def get_strategy_name(self) -> str:
        return self.__class__.__name__

    def __str__(self) -> str:
        return self.get_strategy_name()


class PricingStrategy(ABC):
    """
    Abstract base class for pricing strategies
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def calculate_parking_fee(self, session: ParkingSession) -> Money:
        """Calculate the fee owed for a session"""
        pass


# ============================================================================
# PARKING ALLOCATION STRATEGIES
# ============================================================================

class AccessibleFirstFitStrategy(ParkingStrategy):
    """
    Deterministic first-fit by ascending spot id
    - Vehicles get the first free spot of their own accessibility class
    - Accessibility-flagged vehicles overflow into standard spots
    - Vehicles without the flag never get an accessible spot
    """

    def allocate_spot(
        self,
        spots: Sequence[ParkingSpot],
        vehicle: Vehicle
    ) -> Optional[ParkingSpot]:
        ordered = sorted(spots, key=lambda s: s.spot_id)

        for spot in ordered:
            if not spot.is_occupied and spot.accessible == vehicle.is_accessible:
                return spot

        if vehicle.is_accessible:
            for spot in ordered:
                if not spot.is_occupied and not spot.accessible:
                    self.logger.debug(
                        f"No accessible spot free, {vehicle.license_plate} "
                        f"overflows to standard spot {spot.spot_id}"
                    )
                    return spot

        return None


# ============================================================================
# PRICING STRATEGIES
# ============================================================================

class StandardPricingStrategy(PricingStrategy):
    """
    Standard pricing strategy
    - Subscription sessions are never metered
    - A free grace period at the start of every session
    - Partial hours past the grace period round up to a full hour
    - Hourly rate by vehicle class and accessibility
    """

    def __init__(
        self,
        rate_lookup: Callable[[VehicleClass, bool], Decimal],
        free_hours: Decimal = Decimal('2.0'),
        currency: str = "ILS"
    ):
        super().__init__()
        self._rate_lookup = rate_lookup
        self.free_hours = Decimal(str(free_hours))
        self.currency = currency

    @classmethod
    def from_config(cls, config) -> 'StandardPricingStrategy':
        return cls(
            rate_lookup=config.hourly_rate,
            free_hours=config.free_hours,
            currency=config.currency,
        )

    def hourly_rate(self, vehicle: Vehicle) -> Decimal:
        return self._rate_lookup(vehicle.vehicle_class, vehicle.is_accessible)

    def calculate_parking_fee(self, session: ParkingSession) -> Money:
        if session is None or session.is_subscription:
            return Money.zero(self.currency)
        return self.metered_fee(session)

    def metered_fee(self, session: ParkingSession) -> Money:
        """Fee for the time parked, regardless of the subscription flag"""
        duration_hours = Decimal(session.duration_minutes()) / Decimal(60)
        billable_hours = duration_hours - self.free_hours
        if billable_hours <= 0:
            return Money.zero(self.currency)

        chargeable_hours = billable_hours.to_integral_value(rounding=ROUND_CEILING)
        rate = self.hourly_rate(session.vehicle)
        fee = Money(rate * chargeable_hours, self.currency)

        self.logger.debug(
            f"Fee for {session.license_plate}: {chargeable_hours}h x {rate} = {fee.format()}"
        )
        return fee

    def calculate_annual_subscription_fee(self, hourly_rate: Decimal) -> Money:
        """
        Yearly subscription price: 4 hours a day, 20 days a month,
        12 months, with a 40% discount
        """
        typical_monthly_usage = Decimal(str(hourly_rate)) * 4 * 20
        return Money(typical_monthly_usage * 12 * Decimal('0.6'), self.currency)


class SubscriptionPricingStrategy(PricingStrategy):
    """
    Discount-aware pricing, used only when a caller asks for it
    - Valid subscription: no fee
    - Lapsed subscription: base fee reduced by the tier multiplier
    - No subscription: base fee
    """

    def __init__(
        self,
        base_strategy: StandardPricingStrategy,
        multiplier_lookup: Optional[Callable[[SubscriptionTier], Decimal]] = None,
        today: Callable[[], date] = date.today
    ):
        super().__init__()
        self.base_strategy = base_strategy
        self._multiplier_lookup = multiplier_lookup
        self._today = today

    def calculate_parking_fee(self, session: ParkingSession) -> Money:
        return self.base_strategy.calculate_parking_fee(session)

    def calculate_fee_with_subscription(
        self,
        session: ParkingSession,
        subscription: Optional[Subscription]
    ) -> Money:
        currency = self.base_strategy.currency
        if session is None:
            return Money.zero(currency)

        if subscription is not None and subscription.is_valid_on(self._today()):
            return Money.zero(currency)

        if subscription is None:
            return self.base_strategy.calculate_parking_fee(session)

        base_fee = self.base_strategy.metered_fee(session)

        multiplier = (
            self._multiplier_lookup(subscription.tier)
            if self._multiplier_lookup else subscription.discount_multiplier
        )
        discounted = base_fee * multiplier
        self.logger.info(
            f"Lapsed {subscription.tier} subscription for {session.license_plate}: "
            f"{base_fee.format()} -> {discounted.format()}"
        )
        return discounted
