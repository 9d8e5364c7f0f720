# File: src/parking_engine/domain/exceptions.py
"""
Exception hierarchy for the parking engine

Three families of errors:
1. Validation errors - input rejected before any state is touched
2. Invariant violations - programming errors, fatal for the offending operation
3. Business outcomes - lot full, unknown vehicle, duplicate plate, bad subscription

The engine reports business outcomes as return values (False / None).
The business exceptions below are raised only by the service facade's
exception-flavoured entry points (check_in / check_out).
"""

from typing import Optional


class ParkingError(Exception):
    """Base exception for the parking engine"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message


class ValidationError(ParkingError):
    """Raised when inputs fail validation"""


# ============================================================================
# INVARIANT VIOLATIONS
# ============================================================================

class InvariantViolationError(ParkingError):
    """Raised when internal lot state would become inconsistent"""


class SpotOccupiedError(InvariantViolationError):
    """Raised when an occupied spot is occupied again"""

    def __init__(self, spot_id: int):
        super().__init__(f"Parking spot {spot_id} is already occupied")
        self.spot_id = spot_id


class SpotClassMismatchError(InvariantViolationError):
    """Raised when a vehicle without accessibility flag is put in an accessible spot"""

    def __init__(self, spot_id: int, license_plate: str):
        super().__init__(
            f"Vehicle {license_plate} is not allowed in accessible spot {spot_id}"
        )
        self.spot_id = spot_id
        self.license_plate = license_plate


class SessionStateError(InvariantViolationError):
    """Raised when a session timestamp would break entry <= exit ordering"""


# ============================================================================
# BUSINESS OUTCOMES
# ============================================================================

class DuplicateVehicleError(ParkingError):

    def __init__(self, license_plate: str):
        super().__init__(f"Vehicle is already parked: {license_plate}")
        self.license_plate = license_plate


class ParkingFullError(ParkingError):

    def __init__(self, message: str = "Parking lot is full. No available spots."):
        super().__init__(message)


class VehicleNotFoundError(ParkingError):

    def __init__(self, license_plate: str):
        super().__init__(f"Vehicle not found: {license_plate}")
        self.license_plate = license_plate


class InvalidSubscriptionError(ParkingError):

    def __init__(self, subscription_id: str):
        super().__init__(f"Invalid or expired subscription: {subscription_id}")
        self.subscription_id = subscription_id
