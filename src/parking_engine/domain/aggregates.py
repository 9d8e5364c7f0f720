# File: src/parking_engine/domain/aggregates.py
"""
Aggregate Root for the Parking Engine

ParkingLot owns the spots and the sessions. Every state change goes
through it:
1. park / try_park - allocate a spot and open a session
2. remove - price the session, then close it and free the spot
3. reset - empty the lot, keeping history

Key Concepts:
- One lock serializes every mutation and the counting reads
- Events are published after the mutation, inside the critical section,
  so listeners see them in the order the state changed
- Business failures (lot full, duplicate plate, unknown plate) are
  return values and leave state untouched
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging
import threading

from .exceptions import InvariantViolationError
from .models import (
    ParkingSpot, ParkingSession, Vehicle, Money, ParkOutcome,
    ParkingEvent, EntryEvent, ExitEvent, OccupancyEvent
)
from .strategies import (
    ParkingStrategy, PricingStrategy, AccessibleFirstFitStrategy, StandardPricingStrategy
)
from ..infrastructure.config import ParkingConfig
from ..infrastructure.messaging import EventBus, EventHandler


FeeCalculator = Callable[[ParkingSession], Money]


def _normalize_plate(license_plate: str) -> str:
    """Plates are stored stripped, so lookups strip too"""
    return license_plate.strip() if isinstance(license_plate, str) else license_plate


class ParkingLot:
    """
    Aggregate Root: a parking lot with standard and accessible spots

    Spot ids run 1..R for standard spots, then R+1..R+A for accessible
    spots. Event handlers run while the lot lock is held and must not
    call back into the lot.
    """

    def __init__(
        self,
        config: Optional[ParkingConfig] = None,
        event_bus: Optional[EventBus] = None,
        pricing_strategy: Optional[PricingStrategy] = None,
        allocation_strategy: Optional[ParkingStrategy] = None,
        statistics: Optional[Any] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config or ParkingConfig()
        self.event_bus = event_bus or EventBus()
        self.pricing_strategy = pricing_strategy or StandardPricingStrategy.from_config(self.config)
        self.allocation_strategy = allocation_strategy or AccessibleFirstFitStrategy()
        self.statistics = statistics
        self._clock = clock

        # Internal state
        self._spots: List[ParkingSpot] = []
        self._current_sessions: Dict[str, ParkingSession] = {}  # plate -> session
        self._session_history: List[ParkingSession] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

        self._initialize_spots()
        self._validate_invariants()

        self._logger.info(
            f"Created ParkingLot with {self.config.regular_spot_count} standard and "
            f"{self.config.accessible_spot_count} accessible spots"
        )

    def _initialize_spots(self) -> None:
        spot_id = 1
        for _ in range(self.config.regular_spot_count):
            self._spots.append(ParkingSpot(spot_id, accessible=False))
            spot_id += 1
        for _ in range(self.config.accessible_spot_count):
            self._spots.append(ParkingSpot(spot_id, accessible=True))
            spot_id += 1
        self._logger.debug(f"Initialized {len(self._spots)} spots")

    def _validate_invariants(self) -> None:
        """Validate aggregate invariants"""
        # Invariant 1: spot count matches configuration
        if len(self._spots) != self.config.total_spots:
            raise InvariantViolationError(
                f"Spot count mismatch: {len(self._spots)} spots, "
                f"expected {self.config.total_spots}"
            )

        # Invariant 2: every active session holds exactly its own spot
        seen_spots = set()
        for plate, session in self._current_sessions.items():
            spot = session.spot
            if spot.spot_id in seen_spots:
                raise InvariantViolationError(f"Spot {spot.spot_id} held by two sessions")
            seen_spots.add(spot.spot_id)
            if spot.occupant is None or spot.occupant.license_plate != plate:
                raise InvariantViolationError(
                    f"Session for {plate} points at spot {spot.spot_id} "
                    f"which does not hold that vehicle"
                )

        # Invariant 3: no occupied spot without a session
        occupied = sum(1 for spot in self._spots if spot.is_occupied)
        if occupied != len(self._current_sessions):
            raise InvariantViolationError(
                f"{occupied} occupied spots but {len(self._current_sessions)} active sessions"
            )

    # ========================================================================
    # PUBLIC BUSINESS METHODS
    # ========================================================================

    def park(self, vehicle: Optional[Vehicle], is_subscription: bool = False) -> bool:
        """Park a vehicle; False when the plate is already parked or nothing fits"""
        return self.try_park(vehicle, is_subscription) is ParkOutcome.PARKED

    def try_park(self, vehicle: Optional[Vehicle], is_subscription: bool = False) -> ParkOutcome:
        """
        Park a vehicle and report why it failed, if it did
        Returns: ParkOutcome
        """
        if vehicle is None:
            self._logger.warning("Rejected park request without a vehicle")
            return ParkOutcome.INVALID_VEHICLE

        plate = vehicle.license_plate
        with self._lock:
            if plate in self._current_sessions:
                self._logger.warning(f"Vehicle {plate} is already parked")
                return ParkOutcome.DUPLICATE_PLATE

            spot = self.allocation_strategy.allocate_spot(self._spots, vehicle)
            if spot is None:
                self._logger.warning(f"No spot available for {vehicle}")
                return ParkOutcome.LOT_FULL

            now = self._clock()
            spot.occupy(vehicle)
            session = ParkingSession(
                vehicle,
                spot,
                is_subscription=is_subscription,
                entry_time=now,
                currency=self.config.currency,
            )
            self._current_sessions[plate] = session
            self._validate_invariants()

            self._logger.info(
                f"Vehicle {plate} parked in spot {spot.spot_id}"
                f"{' (subscription)' if is_subscription else ''}"
            )

            self._publish(EntryEvent(plate, spot.spot_id, timestamp=now))
            self._publish(self._occupancy_event(now))
            self._record_vehicle_type(vehicle)

        return ParkOutcome.PARKED

    def remove(
        self,
        license_plate: str,
        fee_calculator: Optional[FeeCalculator] = None
    ) -> Optional[ParkingSession]:
        """
        Remove a parked vehicle, price its session and free the spot
        Returns: the closed session, or None when the plate is not parked
        """
        license_plate = _normalize_plate(license_plate)
        with self._lock:
            session = self._current_sessions.get(license_plate)
            if session is None:
                self._logger.warning(f"Vehicle {license_plate} is not parked")
                return None

            # Price first so a failing calculator leaves the lot untouched
            now = self._clock()
            calculate = fee_calculator or self.pricing_strategy.calculate_parking_fee
            fee = calculate(session.closed_copy(now))

            session.end_session(now)
            del self._current_sessions[license_plate]
            session.spot.vacate()
            session.record_payment(fee)
            self._session_history.append(session)
            self._validate_invariants()

            duration_hours = session.duration_hours()
            self._logger.info(
                f"Vehicle {license_plate} left spot {session.spot.spot_id} after "
                f"{duration_hours:.2f}h. Fee: {fee.format()}"
            )

            self._publish(ExitEvent(
                license_plate,
                session.spot.spot_id,
                duration_hours,
                payment=fee.amount,
                timestamp=now,
            ))
            self._publish(self._occupancy_event(now))

        return session

    def reset(self) -> None:
        """Empty every spot and drop active sessions; history is kept"""
        with self._lock:
            for spot in self._spots:
                spot.vacate()
            dropped = len(self._current_sessions)
            self._current_sessions.clear()
            self._validate_invariants()
            self._logger.info(f"Parking lot reset, {dropped} active session(s) dropped")
            self._publish(self._occupancy_event(self._clock()))

    def publish_status(self) -> None:
        """Broadcast the current occupancy to every listener"""
        with self._lock:
            self._publish(self._occupancy_event(self._clock()))

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def total_spots(self) -> int:
        with self._lock:
            return len(self._spots)

    def occupied_spots(self) -> int:
        with self._lock:
            return self._count_occupied()

    def available_spots(self) -> int:
        with self._lock:
            return len(self._spots) - self._count_occupied()

    def occupancy_percentage(self) -> float:
        with self._lock:
            return self._occupancy_percentage()

    def find_session(self, license_plate: str) -> Optional[ParkingSession]:
        with self._lock:
            return self._current_sessions.get(_normalize_plate(license_plate))

    def is_parked(self, license_plate: str) -> bool:
        with self._lock:
            return _normalize_plate(license_plate) in self._current_sessions

    def get_current_sessions(self) -> List[ParkingSession]:
        with self._lock:
            return list(self._current_sessions.values())

    def get_session_history(self) -> List[ParkingSession]:
        with self._lock:
            return list(self._session_history)

    def get_spot(self, spot_id: int) -> Optional[ParkingSpot]:
        """Detached copy of a spot; the live spot is only changed through the lot"""
        with self._lock:
            for spot in self._spots:
                if spot.spot_id == spot_id:
                    return spot.copy()
        return None

    def get_status_report(self) -> Dict[str, Any]:
        """Snapshot of lot occupancy, split by spot class"""
        with self._lock:
            standard = [s for s in self._spots if not s.accessible]
            accessible = [s for s in self._spots if s.accessible]
            occupied = self._count_occupied()
            return {
                "total_spots": len(self._spots),
                "occupied_spots": occupied,
                "available_spots": len(self._spots) - occupied,
                "occupancy_percentage": self._occupancy_percentage(),
                "standard_available": sum(1 for s in standard if not s.is_occupied),
                "accessible_available": sum(1 for s in accessible if not s.is_occupied),
                "active_sessions": len(self._current_sessions),
                "completed_sessions": len(self._session_history),
            }

    # ========================================================================
    # LISTENERS
    # ========================================================================

    def subscribe(self, handler: EventHandler) -> None:
        self.event_bus.subscribe(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        self.event_bus.unsubscribe(handler)

    # ========================================================================
    # INTERNAL HELPER METHODS
    # ========================================================================

    def _count_occupied(self) -> int:
        return sum(1 for spot in self._spots if spot.is_occupied)

    def _occupancy_percentage(self) -> float:
        if not self._spots:
            return 0.0
        return self._count_occupied() / len(self._spots) * 100.0

    def _occupancy_event(self, timestamp: datetime) -> OccupancyEvent:
        occupied = self._count_occupied()
        return OccupancyEvent(
            total=len(self._spots),
            occupied=occupied,
            available=len(self._spots) - occupied,
            timestamp=timestamp,
        )

    def _publish(self, event: ParkingEvent) -> None:
        self.event_bus.publish(event)

    def _record_vehicle_type(self, vehicle: Vehicle) -> None:
        if self.statistics is None:
            return
        try:
            self.statistics.record_vehicle_type(vehicle)
        except Exception:
            self._logger.exception(f"Statistics failed to record {vehicle.license_plate}")

    def __str__(self) -> str:
        return (
            f"ParkingLot({self.config.total_spots} spots, "
            f"{len(self._current_sessions)} active sessions)"
        )
