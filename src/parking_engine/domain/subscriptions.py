# File: src/parking_engine/domain/subscriptions.py
"""
Subscription Registry

Keeps every subscription ever created for the lifetime of the process.
Subscriptions are never deleted; they are deactivated when replaced,
cancelled or found lapsed.

Validity is computed by Subscription.is_valid_on (pure). Expiry is an
explicit state change made here, so a lapsed subscription stops
validating permanently once it has been looked at.
"""

from datetime import date
from typing import Callable, Dict, List, Optional, Union
import calendar
import logging
import threading
import uuid

from .exceptions import ValidationError
from .models import Subscription, SubscriptionTier


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's end"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class SubscriptionRegistry:
    """
    Registry of subscriptions keyed by subscription id
    Thread-safe; holds its own lock, independent of the parking lot
    """

    def __init__(self, today: Callable[[], date] = date.today):
        self._subscriptions: Dict[str, Subscription] = {}
        self._today = today
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def create(
        self,
        license_plate: str,
        subscriber_name: str,
        months: int,
        tier: Union[SubscriptionTier, str] = SubscriptionTier.STANDARD
    ) -> str:
        """
        Create a subscription starting today and return its id
        Any active subscription for the same plate is deactivated first
        Raises: ValidationError for a blank plate, an unknown tier, or a length
        below 1 month or past the last representable date
        """
        if not isinstance(license_plate, str) or not license_plate.strip():
            raise ValidationError("License plate cannot be empty")
        if not isinstance(months, int) or isinstance(months, bool) or months < 1:
            raise ValidationError(f"Subscription length must be at least 1 month, got {months!r}")
        tier = SubscriptionTier.parse(tier)
        plate = license_plate.strip()
        start = self._today()
        try:
            end_date = add_months(start, months)
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Subscription length out of range: {months} months", cause=e)

        with self._lock:
            for existing in self._subscriptions.values():
                if existing.license_plate == plate and existing.active:
                    existing.deactivate()
                    self._logger.info(
                        f"Replaced subscription {existing.subscription_id} for {plate}"
                    )

            subscription_id = self._generate_id(plate)
            subscription = Subscription(
                subscription_id=subscription_id,
                license_plate=plate,
                subscriber_name=subscriber_name or "",
                start_date=start,
                end_date=end_date,
                tier=tier,
            )
            self._subscriptions[subscription_id] = subscription

        self._logger.info(
            f"Created {tier} subscription {subscription_id} for {plate} "
            f"until {subscription.end_date.isoformat()}"
        )
        return subscription_id

    def deactivate(self, subscription_id: str) -> bool:
        """Cancel a subscription; returns False when the id is unknown"""
        with self._lock:
            subscription = self._subscriptions.get(subscription_id)
            if subscription is None:
                return False
            subscription.deactivate()
        self._logger.info(f"Deactivated subscription {subscription_id}")
        return True

    def expire_lapsed(self) -> int:
        """Deactivate every subscription whose end date has passed"""
        today = self._today()
        with self._lock:
            lapsed = [s for s in self._subscriptions.values() if s.is_lapsed_on(today)]
            for subscription in lapsed:
                self._expire(subscription)
        return len(lapsed)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def is_valid(self, subscription_id: str) -> bool:
        """
        True when the subscription exists, is active and has not passed
        its end date. A lapsed subscription is expired on the spot.
        """
        today = self._today()
        with self._lock:
            subscription = self._subscriptions.get(subscription_id)
            if subscription is None:
                return False
            if subscription.is_lapsed_on(today):
                self._expire(subscription)
                return False
            return subscription.is_valid_on(today)

    def get(self, subscription_id: str) -> Optional[Subscription]:
        with self._lock:
            return self._subscriptions.get(subscription_id)

    def find_active(self, license_plate: str) -> Optional[Subscription]:
        """Active, unexpired subscription for a plate, if any"""
        today = self._today()
        with self._lock:
            for subscription in self._subscriptions.values():
                if subscription.license_plate == license_plate and subscription.is_valid_on(today):
                    return subscription
        return None

    def history_for_plate(self, license_plate: str) -> List[Subscription]:
        with self._lock:
            return [
                s for s in self._subscriptions.values()
                if s.license_plate == license_plate
            ]

    def active_count(self) -> int:
        today = self._today()
        with self._lock:
            return sum(1 for s in self._subscriptions.values() if s.is_valid_on(today))

    def all(self) -> List[Subscription]:
        with self._lock:
            return list(self._subscriptions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    # ========================================================================
    # INTERNAL HELPER METHODS
    # ========================================================================

    def _expire(self, subscription: Subscription) -> None:
        # caller holds the lock
        subscription.deactivate()
        self._logger.warning(
            f"Subscription {subscription.subscription_id} for "
            f"{subscription.license_plate} expired on {subscription.end_date.isoformat()}"
        )

    def _generate_id(self, license_plate: str) -> str:
        # caller holds the lock
        while True:
            candidate = f"SUB-{license_plate}-{uuid.uuid4().hex[:12]}"
            if candidate not in self._subscriptions:
                return candidate
