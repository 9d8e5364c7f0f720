# File: src/parking_engine/domain/models.py
"""
Domain Models for the Parking Engine

This module contains:
1. Value Objects: Money
2. Enums: VehicleClass, SubscriptionTier, ParkOutcome
3. Entities: Vehicle, ParkingSpot, ParkingSession, Subscription
4. Domain Events: EntryEvent, ExitEvent, OccupancyEvent
5. VehicleFactory for building validated vehicles

Entities validate themselves on creation. State changes that would break
lot invariants raise InvariantViolationError subclasses.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any, Union
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
import logging

from .exceptions import (
    ValidationError, SpotOccupiedError, SpotClassMismatchError, SessionStateError
)


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount with currency
    Provides arithmetic operations with validation
    """
    amount: Decimal
    currency: str = "ILS"

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount < Decimal('0'):
            raise ValidationError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValidationError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def zero(cls, currency: str = "ILS") -> 'Money':
        return cls(Decimal('0.00'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValidationError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: Union[Decimal, int]) -> 'Money':
        """Multiply by a scalar"""
        return Money(self.amount * Decimal(str(multiplier)), self.currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def format(self) -> str:
        """Format with currency symbol"""
        symbols = {"ILS": "₪", "USD": "$", "EUR": "€"}
        symbol = symbols.get(self.currency, f"{self.currency} ")
        return f"{symbol}{self.amount:.2f}"

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": str(self.amount), "currency": self.currency}


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class VehicleClass(Enum):
    """
    Closed set of vehicle classes accepted by the lot
    Hourly rates are looked up by (class, accessibility) in the rate table
    """
    CAR = "car"
    MOTORCYCLE = "motorcycle"

    @classmethod
    def parse(cls, value: Union['VehicleClass', str]) -> 'VehicleClass':
        """Accept an enum member, its value or its name (case-insensitive)"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key or member.name.lower() == key:
                    return member
        raise ValidationError(f"Unsupported vehicle class: {value!r}")

    def __str__(self) -> str:
        return self.value.title()


class SubscriptionTier(Enum):
    """
    Subscription tiers and their default discount multipliers
    The multiplier is applied to the base fee once a subscription has lapsed
    """
    STANDARD = "standard"
    PREMIUM = "premium"
    VIP = "vip"

    @property
    def discount_multiplier(self) -> Decimal:
        multipliers = {
            SubscriptionTier.STANDARD: Decimal('0.8'),  # 20% discount
            SubscriptionTier.PREMIUM: Decimal('0.7'),   # 30% discount
            SubscriptionTier.VIP: Decimal('0.6'),       # 40% discount
        }
        return multipliers[self]

    @property
    def display_name(self) -> str:
        names = {
            SubscriptionTier.STANDARD: "Standard",
            SubscriptionTier.PREMIUM: "Premium",
            SubscriptionTier.VIP: "VIP",
        }
        return names[self]

    def discount_percentage(self) -> str:
        """Human-readable discount, e.g. '20%'"""
        percent = int((Decimal('1') - self.discount_multiplier) * 100)
        return f"{percent}%"

    @classmethod
    def parse(cls, value: Union['SubscriptionTier', str]) -> 'SubscriptionTier':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key or member.name.lower() == key:
                    return member
        raise ValidationError(f"Unsupported subscription tier: {value!r}")

    def __str__(self) -> str:
        return self.display_name


class ParkOutcome(Enum):
    """Result of an allocation attempt"""
    PARKED = "parked"
    DUPLICATE_PLATE = "duplicate_plate"
    LOT_FULL = "lot_full"
    INVALID_VEHICLE = "invalid_vehicle"


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

@dataclass
class Vehicle:
    """
    Entity: a vehicle identified by its license plate within the lot
    Fields are flat, so copy() yields a fully independent record
    """
    license_plate: str
    owner_name: str
    vehicle_class: VehicleClass = VehicleClass.CAR
    is_accessible: bool = False
    color: str = "Unknown"
    entry_time: Optional[datetime] = None

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        if not isinstance(self.license_plate, str) or not self.license_plate.strip():
            raise ValidationError("License plate cannot be empty")
        self.license_plate = self.license_plate.strip()

        if not isinstance(self.vehicle_class, VehicleClass):
            raise ValidationError(f"Unsupported vehicle class: {self.vehicle_class!r}")

        if self.owner_name is None:
            self.owner_name = ""
        if not self.color or not str(self.color).strip():
            self.color = "Unknown"

    def copy(self) -> 'Vehicle':
        """Structural copy of this vehicle"""
        return replace(self)

    @property
    def display_name(self) -> str:
        return f"{self.vehicle_class} {self.license_plate}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "license_plate": self.license_plate,
            "owner_name": self.owner_name,
            "vehicle_class": self.vehicle_class.value,
            "is_accessible": self.is_accessible,
            "color": self.color,
            "entry_time": self.entry_time.isoformat() if self.entry_time else None,
        }

    def __str__(self) -> str:
        flag = " (accessible)" if self.is_accessible else ""
        return f"{self.display_name}{flag}"


class ParkingSpot:
    """
    Entity: a single physical parking location
    The id and accessibility class are fixed at construction
    """

    def __init__(self, spot_id: int, accessible: bool = False):
        if spot_id <= 0:
            raise ValidationError("Spot id must be positive")
        self._spot_id = spot_id
        self._accessible = accessible
        self.occupant: Optional[Vehicle] = None

    @property
    def spot_id(self) -> int:
        return self._spot_id

    @property
    def accessible(self) -> bool:
        return self._accessible

    @property
    def is_occupied(self) -> bool:
        return self.occupant is not None

    def can_accommodate(self, vehicle: Vehicle) -> bool:
        """Standard spots take anyone, accessible spots only flagged vehicles"""
        return not self._accessible or vehicle.is_accessible

    def occupy(self, vehicle: Vehicle) -> None:
        """
        Put a vehicle in this spot
        Raises: SpotOccupiedError / SpotClassMismatchError on misuse
        """
        if self.is_occupied:
            raise SpotOccupiedError(self._spot_id)
        if not self.can_accommodate(vehicle):
            raise SpotClassMismatchError(self._spot_id, vehicle.license_plate)
        self.occupant = vehicle

    def copy(self) -> 'ParkingSpot':
        """Detached copy; changes to it never reach the lot"""
        spot = ParkingSpot(self._spot_id, self._accessible)
        spot.occupant = self.occupant.copy() if self.occupant else None
        return spot

    def vacate(self) -> Optional[Vehicle]:
        """Empty the spot, returning whoever was in it"""
        vehicle = self.occupant
        self.occupant = None
        return vehicle

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spot_id": self._spot_id,
            "accessible": self._accessible,
            "is_occupied": self.is_occupied,
            "occupant": self.occupant.license_plate if self.occupant else None,
        }

    def __repr__(self) -> str:
        return f"ParkingSpot(id={self._spot_id}, accessible={self._accessible})"

    def __str__(self) -> str:
        kind = "Accessible" if self._accessible else "Standard"
        status = "Occupied" if self.is_occupied else "Available"
        return f"Spot {self._spot_id} ({kind}) - {status}"


class ParkingSession:
    """
    Entity: one vehicle's continuous stay in one spot

    exit_time is None while the session is active. Once set it never
    changes and is never earlier than entry_time.
    """

    def __init__(
        self,
        vehicle: Vehicle,
        spot: ParkingSpot,
        is_subscription: bool = False,
        entry_time: Optional[datetime] = None,
        currency: str = "ILS"
    ):
        self.vehicle = vehicle
        self.spot = spot
        self._entry_time = entry_time or datetime.now()
        self._exit_time: Optional[datetime] = None
        self._is_subscription = is_subscription
        self.amount_paid: Money = Money.zero(currency)
        self.vehicle.entry_time = self._entry_time
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def entry_time(self) -> datetime:
        return self._entry_time

    @property
    def exit_time(self) -> Optional[datetime]:
        return self._exit_time

    @property
    def is_subscription(self) -> bool:
        return self._is_subscription

    @property
    def is_active(self) -> bool:
        return self._exit_time is None

    @property
    def license_plate(self) -> str:
        return self.vehicle.license_plate

    def end_session(self, exit_time: Optional[datetime] = None) -> None:
        """
        Close the session. Calling it again keeps the first exit time.
        Raises: SessionStateError if exit_time precedes entry_time
        """
        if self._exit_time is not None:
            self._logger.debug(f"Session for {self.license_plate} already ended")
            return

        exit_time = exit_time or datetime.now()
        if exit_time < self._entry_time:
            raise SessionStateError(
                f"Exit time {exit_time.isoformat()} precedes entry time "
                f"{self._entry_time.isoformat()} for {self.license_plate}"
            )
        self._exit_time = exit_time

    def duration_minutes(self, now: Optional[datetime] = None) -> int:
        """Whole minutes between entry and exit (or now for active sessions)"""
        end = self._exit_time or now or datetime.now()
        seconds = (end - self._entry_time).total_seconds()
        return max(0, int(seconds // 60))

    def duration_hours(self, now: Optional[datetime] = None) -> float:
        return self.duration_minutes(now) / 60.0

    def closed_copy(self, exit_time: datetime) -> 'ParkingSession':
        """Ended copy of this session, used to price an exit before it is committed"""
        closed = ParkingSession(
            self.vehicle,
            self.spot,
            is_subscription=self._is_subscription,
            entry_time=self._entry_time,
            currency=self.amount_paid.currency,
        )
        closed.end_session(exit_time)
        return closed

    def record_payment(self, amount: Money) -> None:
        self.amount_paid = amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "license_plate": self.license_plate,
            "vehicle_class": self.vehicle.vehicle_class.value,
            "spot_id": self.spot.spot_id,
            "entry_time": self._entry_time.isoformat(),
            "exit_time": self._exit_time.isoformat() if self._exit_time else None,
            "duration_hours": self.duration_hours(),
            "is_subscription": self._is_subscription,
            "is_active": self.is_active,
            "amount_paid": self.amount_paid.to_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"ParkingSession(plate={self.license_plate}, spot={self.spot.spot_id}, "
            f"active={self.is_active})"
        )


@dataclass
class Subscription:
    """
    Entity: time-bounded fee waiver for one plate

    Validity is a pure predicate over a given day. Deactivation is an
    explicit state change performed by the registry.
    """
    subscription_id: str
    license_plate: str
    subscriber_name: str
    start_date: date
    end_date: date
    tier: SubscriptionTier = SubscriptionTier.STANDARD
    active: bool = True

    def is_valid_on(self, day: date) -> bool:
        return self.active and day <= self.end_date

    def is_lapsed_on(self, day: date) -> bool:
        """Still flagged active although the end date has passed"""
        return self.active and day > self.end_date

    def deactivate(self) -> None:
        self.active = False

    @property
    def discount_multiplier(self) -> Decimal:
        return self.tier.discount_multiplier

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subscription_id": self.subscription_id,
            "license_plate": self.license_plate,
            "subscriber_name": self.subscriber_name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "tier": self.tier.value,
            "active": self.active,
        }


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

@dataclass(frozen=True)
class ParkingEvent:
    """Base class for lot notifications; ephemeral, never stored"""

    def to_dict(self) -> Dict[str, Any]:
        data = {"event_type": type(self).__name__}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Decimal):
                value = str(value)
            data[name] = value
        return data


@dataclass(frozen=True)
class EntryEvent(ParkingEvent):
    license_plate: str
    spot_id: int
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ExitEvent(ParkingEvent):
    license_plate: str
    spot_id: int
    duration_hours: float
    payment: Decimal = Decimal('0.00')
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class OccupancyEvent(ParkingEvent):
    total: int
    occupied: int
    available: int
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def occupancy_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.occupied / self.total * 100.0


# ============================================================================
# FACTORY
# ============================================================================

class VehicleFactory:
    """
    Factory for creating validated vehicles
    Centralizes vehicle class parsing so callers can pass strings
    """

    @staticmethod
    def create_vehicle(
        vehicle_class: Union[VehicleClass, str],
        license_plate: str,
        owner_name: str,
        is_accessible: bool = False,
        color: str = "Unknown"
    ) -> Vehicle:
        return Vehicle(
            license_plate=license_plate,
            owner_name=owner_name,
            vehicle_class=VehicleClass.parse(vehicle_class),
            is_accessible=is_accessible,
            color=color,
        )

    @staticmethod
    def create_vehicle_from_dict(data: Dict[str, Any]) -> Vehicle:
        """Create vehicle from a plain dictionary"""
        return VehicleFactory.create_vehicle(
            vehicle_class=data.get("vehicle_class", VehicleClass.CAR),
            license_plate=data.get("license_plate", ""),
            owner_name=data.get("owner_name", ""),
            is_accessible=bool(data.get("is_accessible", False)),
            color=data.get("color", "Unknown"),
        )
