# File: src/parking_engine/infrastructure/config.py
"""
Configuration for the Parking Engine

The engine consumes a static parameter bundle at construction time:
spot counts, hourly rates, free hours and subscription discounts.
Values are validated by pydantic and may be loaded from a YAML file.

Example YAML:

    regular_spot_count: 100
    accessible_spot_count: 20
    free_hours: 2.0
    hourly_rates:
      car: 18.0
      car_accessible: 8.0
      motorcycle: 12.0
      motorcycle_accessible: 8.0
    subscription_discounts:
      standard: 0.2
      premium: 0.3
      vip: 0.4
"""

from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional, Union, Any
import logging

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..domain.exceptions import ValidationError
from ..domain.models import VehicleClass, SubscriptionTier


logger = logging.getLogger(__name__)


class HourlyRates(BaseModel):
    """Hourly rate table keyed by vehicle class and accessibility"""

    model_config = ConfigDict(frozen=True)

    car: Decimal = Field(default=Decimal('18.0'), ge=0)
    car_accessible: Decimal = Field(default=Decimal('8.0'), ge=0)
    motorcycle: Decimal = Field(default=Decimal('12.0'), ge=0)
    motorcycle_accessible: Decimal = Field(default=Decimal('8.0'), ge=0)

    def rate_for(self, vehicle_class: VehicleClass, is_accessible: bool) -> Decimal:
        rates = {
            (VehicleClass.CAR, False): self.car,
            (VehicleClass.CAR, True): self.car_accessible,
            (VehicleClass.MOTORCYCLE, False): self.motorcycle,
            (VehicleClass.MOTORCYCLE, True): self.motorcycle_accessible,
        }
        return rates[(vehicle_class, bool(is_accessible))]


def _default_discounts() -> Dict[SubscriptionTier, Decimal]:
    return {
        tier: Decimal('1') - tier.discount_multiplier
        for tier in SubscriptionTier
    }


class ParkingConfig(BaseModel):
    """Static configuration bundle, read once when the lot is built"""

    model_config = ConfigDict(frozen=True)

    regular_spot_count: int = Field(default=100, ge=0)
    accessible_spot_count: int = Field(default=20, ge=0)
    hourly_rates: HourlyRates = Field(default_factory=HourlyRates)
    free_hours: Decimal = Field(default=Decimal('2.0'), ge=0)
    subscription_discounts: Dict[SubscriptionTier, Decimal] = Field(
        default_factory=_default_discounts
    )
    currency: str = Field(default="ILS", min_length=3, max_length=3)

    @field_validator('subscription_discounts', mode='before')
    @classmethod
    def parse_discount_keys(cls, v: Any) -> Any:
        """Allow tier names such as 'standard' or 'VIP' as keys"""
        if isinstance(v, dict):
            try:
                return {SubscriptionTier.parse(k): value for k, value in v.items()}
            except ValidationError as e:
                raise ValueError(str(e))
        return v

    @field_validator('subscription_discounts')
    @classmethod
    def validate_discounts(cls, v: Dict[SubscriptionTier, Decimal]) -> Dict[SubscriptionTier, Decimal]:
        for tier, discount in v.items():
            if not Decimal('0') <= discount <= Decimal('1'):
                raise ValueError(f"Discount for {tier} must be between 0 and 1, got {discount}")
        merged = _default_discounts()
        merged.update(v)
        return merged

    @model_validator(mode='after')
    def validate_capacity(self) -> 'ParkingConfig':
        if self.total_spots == 0:
            raise ValueError("Total spot count must be greater than 0")
        return self

    @property
    def total_spots(self) -> int:
        return self.regular_spot_count + self.accessible_spot_count

    def hourly_rate(self, vehicle_class: VehicleClass, is_accessible: bool) -> Decimal:
        return self.hourly_rates.rate_for(vehicle_class, is_accessible)

    def discount_multiplier(self, tier: SubscriptionTier) -> Decimal:
        return Decimal('1') - self.subscription_discounts[tier]

    def __str__(self) -> str:
        return (
            f"ParkingConfig(regular_spot_count={self.regular_spot_count}, "
            f"accessible_spot_count={self.accessible_spot_count}, "
            f"car_rate={self.hourly_rates.car}, "
            f"motorcycle_rate={self.hourly_rates.motorcycle}, "
            f"free_hours={self.free_hours})"
        )


def config_from_dict(data: Optional[Dict[str, Any]]) -> ParkingConfig:
    """Build a validated config, translating pydantic errors"""
    try:
        return ParkingConfig.model_validate(data or {})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid parking configuration: {e}", cause=e)


def load_config(path: Optional[Union[str, Path]] = None) -> ParkingConfig:
    """
    Load configuration from a YAML file
    Missing file or no path: defaults are used
    """
    if path is None:
        logger.info("No configuration file given, using defaults")
        return ParkingConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"Configuration file {config_path} not found, using defaults")
        return ParkingConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ValidationError(f"Malformed configuration file {config_path}: {e}", cause=e)

    if data is not None and not isinstance(data, dict):
        raise ValidationError(f"Configuration file {config_path} must contain a mapping")

    config = config_from_dict(data)
    logger.info(f"Loaded configuration from {config_path}: {config}")
    return config
