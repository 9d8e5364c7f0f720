# File: src/parking_engine/application/statistics.py
"""
Statistics Aggregator

Listens to lot events and keeps day-keyed counters:
1. Entries and revenue per day
2. Vehicle counts and revenue per day and vehicle class
3. Parking durations, overall and per class
4. Accessibility and colour breakdowns
5. The latest occupancy snapshot

Monthly figures are computed on demand by filtering the daily maps.
Day buckets come from event timestamps; "today" comes from the clock.
"""

from collections import Counter, defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging
import threading

from ..domain.models import (
    Vehicle, VehicleClass, ParkingEvent, EntryEvent, ExitEvent, OccupancyEvent
)
from ..infrastructure.messaging import EventHandler


class StatisticsAggregator(EventHandler):
    """Event-driven statistics; thread-safe with its own lock"""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

        self._daily_entries: Counter = Counter()
        self._daily_revenue: Dict[date, Decimal] = defaultdict(Decimal)
        self._daily_class_counts: Dict[Tuple[date, VehicleClass], int] = defaultdict(int)
        self._daily_class_revenue: Dict[Tuple[date, VehicleClass], Decimal] = defaultdict(Decimal)

        self._entry_times: Dict[str, datetime] = {}
        self._vehicle_classes: Dict[str, VehicleClass] = {}

        self._durations: List[float] = []
        self._class_durations: Dict[VehicleClass, List[float]] = defaultdict(list)

        self._class_totals: Counter = Counter()
        self._accessible_totals: Counter = Counter()
        self._color_counts: Counter = Counter()

        self._occupancy: Optional[OccupancyEvent] = None

    # ========================================================================
    # EVENT HANDLING
    # ========================================================================

    def handle(self, event: ParkingEvent) -> None:
        if isinstance(event, EntryEvent):
            self._on_entry(event)
        elif isinstance(event, ExitEvent):
            self._on_exit(event)
        elif isinstance(event, OccupancyEvent):
            self._on_occupancy(event)

    def can_handle(self, event: ParkingEvent) -> bool:
        return isinstance(event, (EntryEvent, ExitEvent, OccupancyEvent))

    def replay(self, events: Iterable[ParkingEvent]) -> None:
        """Feed a sequence of past events through the handlers"""
        for event in events:
            if self.can_handle(event):
                self.handle(event)

    def record_vehicle_type(self, vehicle: Vehicle) -> None:
        """Record class, accessibility and colour of an arriving vehicle"""
        today = self._clock().date()
        with self._lock:
            cls = vehicle.vehicle_class
            self._vehicle_classes[vehicle.license_plate] = cls
            self._daily_class_counts[(today, cls)] += 1
            self._class_totals[cls] += 1
            if vehicle.is_accessible:
                self._accessible_totals[cls] += 1
            if vehicle.color and vehicle.color.strip():
                self._color_counts[vehicle.color] += 1

    def _on_entry(self, event: EntryEvent) -> None:
        with self._lock:
            self._entry_times[event.license_plate] = event.timestamp
            self._daily_entries[event.timestamp.date()] += 1

    def _on_exit(self, event: ExitEvent) -> None:
        day = event.timestamp.date()
        payment = Decimal(str(event.payment))
        with self._lock:
            self._daily_revenue[day] += payment
            self._durations.append(event.duration_hours)

            cls = self._vehicle_classes.get(event.license_plate)
            if cls is not None:
                self._class_durations[cls].append(event.duration_hours)
                self._daily_class_revenue[(day, cls)] += payment

            self._entry_times.pop(event.license_plate, None)

        self._logger.debug(f"Recorded exit of {event.license_plate}, payment {payment}")

    def _on_occupancy(self, event: OccupancyEvent) -> None:
        with self._lock:
            self._occupancy = event

    # ========================================================================
    # DAILY / MONTHLY FIGURES
    # ========================================================================

    def daily_entries(self, day: Optional[date] = None) -> int:
        day = day or self._today()
        with self._lock:
            return self._daily_entries.get(day, 0)

    def daily_revenue(self, day: Optional[date] = None) -> Decimal:
        day = day or self._today()
        with self._lock:
            return self._daily_revenue.get(day, Decimal('0'))

    def monthly_entries(self, day: Optional[date] = None) -> int:
        day = day or self._today()
        with self._lock:
            return sum(
                count for d, count in self._daily_entries.items()
                if self._same_month(d, day)
            )

    def monthly_revenue(self, day: Optional[date] = None) -> Decimal:
        day = day or self._today()
        with self._lock:
            return sum(
                (amount for d, amount in self._daily_revenue.items() if self._same_month(d, day)),
                Decimal('0')
            )

    def daily_vehicle_count(self, vehicle_class: VehicleClass, day: Optional[date] = None) -> int:
        day = day or self._today()
        with self._lock:
            return self._daily_class_counts.get((day, vehicle_class), 0)

    def monthly_vehicle_count(self, vehicle_class: VehicleClass, day: Optional[date] = None) -> int:
        day = day or self._today()
        with self._lock:
            return sum(
                count for (d, cls), count in self._daily_class_counts.items()
                if cls is vehicle_class and self._same_month(d, day)
            )

    def daily_class_revenue(self, vehicle_class: VehicleClass, day: Optional[date] = None) -> Decimal:
        day = day or self._today()
        with self._lock:
            return self._daily_class_revenue.get((day, vehicle_class), Decimal('0'))

    def monthly_class_revenue(self, vehicle_class: VehicleClass, day: Optional[date] = None) -> Decimal:
        day = day or self._today()
        with self._lock:
            return sum(
                (
                    amount for (d, cls), amount in self._daily_class_revenue.items()
                    if cls is vehicle_class and self._same_month(d, day)
                ),
                Decimal('0')
            )

    # ========================================================================
    # LIFETIME FIGURES
    # ========================================================================

    def average_duration(self, vehicle_class: Optional[VehicleClass] = None) -> float:
        """Mean parking duration in hours; 0.0 when nothing has left yet"""
        with self._lock:
            if vehicle_class is None:
                durations = self._durations
            else:
                durations = self._class_durations.get(vehicle_class, [])
            if not durations:
                return 0.0
            return sum(durations) / len(durations)

    def accessible_percentage(self, vehicle_class: Optional[VehicleClass] = None) -> float:
        with self._lock:
            if vehicle_class is None:
                total = sum(self._class_totals.values())
                accessible = sum(self._accessible_totals.values())
            else:
                total = self._class_totals.get(vehicle_class, 0)
                accessible = self._accessible_totals.get(vehicle_class, 0)
            if total == 0:
                return 0.0
            return accessible / total * 100.0

    def most_popular_color(self) -> str:
        with self._lock:
            if not self._color_counts:
                return "Unknown"
            return self._color_counts.most_common(1)[0][0]

    def color_count(self, color: str) -> int:
        with self._lock:
            return self._color_counts.get(color, 0)

    def all_colors(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._color_counts)

    @property
    def occupancy(self) -> Optional[OccupancyEvent]:
        """Latest occupancy snapshot seen on the bus"""
        with self._lock:
            return self._occupancy

    @property
    def vehicles_inside(self) -> int:
        """Plates with an entry but no exit yet"""
        with self._lock:
            return len(self._entry_times)

    # ========================================================================
    # INTERNAL HELPER METHODS
    # ========================================================================

    def _today(self) -> date:
        return self._clock().date()

    @staticmethod
    def _same_month(d: date, reference: date) -> bool:
        return d.year == reference.year and d.month == reference.month
