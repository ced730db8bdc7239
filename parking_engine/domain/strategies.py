# File: parking_engine/domain/strategies.py
"""
Strategy Pattern Implementation for Parking Fees

Each vehicle type is billed by one pricing strategy. All strategies share a
single contract: given the whole number of billed hours and a tariff, return
the fee. Adding a vehicle type means registering one more strategy, not
growing a conditional.

Strategies:
1. FlatHourlyPricingStrategy - hours x hourly rate
2. BaseWindowPricingStrategy - base rate for a window, hourly after it
3. DailyRatePricingStrategy  - hourly up to a threshold, per-day after it
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
from datetime import datetime
import logging

from .models import Money, Tariff, VehicleType, ClosedStay, billable_hours


# ============================================================================
# STRATEGY INTERFACE
# ============================================================================

class PricingStrategy(ABC):
    """
    Abstract base class for pricing strategies
    Defines the interface for fee calculation algorithms
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def calculate_fee(self, hours: int, tariff: Tariff, currency: str = "USD") -> Money:
        """
        Calculate the unrounded fee for a number of billed hours
        Returns: Calculated fee
        """
        pass

    def get_strategy_name(self) -> str:
        return self.__class__.__name__.replace("PricingStrategy", "")

    def __str__(self) -> str:
        return f"{self.get_strategy_name()} Strategy"


# ============================================================================
# PRICING STRATEGIES
# ============================================================================

class FlatHourlyPricingStrategy(PricingStrategy):
    """
    Strategy: every billed hour costs the hourly rate
    Used for two-wheelers and as the fallback of the tiered strategies
    """

    def calculate_fee(self, hours: int, tariff: Tariff, currency: str = "USD") -> Money:
        return Money(tariff.hourly_rate, currency) * hours


class BaseWindowPricingStrategy(PricingStrategy):
    """
    Strategy: car/SUV billing
    - base_rate covers everything up to base_hours
    - each hour beyond the window adds hourly_rate
    - tariffs without a base window are billed flat hourly
    """

    def __init__(self):
        super().__init__()
        self._fallback = FlatHourlyPricingStrategy()

    def calculate_fee(self, hours: int, tariff: Tariff, currency: str = "USD") -> Money:
        if not tariff.has_base_window:
            return self._fallback.calculate_fee(hours, tariff, currency)

        base = Money(tariff.base_rate, currency)
        if hours <= tariff.base_hours:
            return base

        overage = Money(tariff.hourly_rate, currency) * (hours - tariff.base_hours)
        return base + overage


class DailyRatePricingStrategy(PricingStrategy):
    """
    Strategy: bus/truck billing
    - hourly_rate for every hour up to daily_rate_hours
    - past the threshold: daily_rate_hours x hourly_rate, plus daily_rate
      for each started day after the first
    - tariffs without a daily window are billed flat hourly
    """

    def __init__(self):
        super().__init__()
        self._fallback = FlatHourlyPricingStrategy()

    def calculate_fee(self, hours: int, tariff: Tariff, currency: str = "USD") -> Money:
        if not tariff.has_daily_window:
            return self._fallback.calculate_fee(hours, tariff, currency)

        hourly = Money(tariff.hourly_rate, currency)
        if hours <= tariff.daily_rate_hours:
            return hourly * hours

        days = -(-hours // 24)
        return hourly * tariff.daily_rate_hours + Money(tariff.daily_rate, currency) * (days - 1)


# ============================================================================
# STRATEGY FACTORY
# ============================================================================

class PricingStrategyFactory:
    """Factory resolving the pricing strategy for a vehicle type"""

    def __init__(self, overrides: Optional[Dict[VehicleType, PricingStrategy]] = None):
        self._strategies: Dict[VehicleType, PricingStrategy] = {
            VehicleType.MOTORCYCLE_SCOOTER: FlatHourlyPricingStrategy(),
            VehicleType.CAR_SUV: BaseWindowPricingStrategy(),
            VehicleType.BUS_TRUCK: DailyRatePricingStrategy(),
        }
        if overrides:
            self._strategies.update(overrides)

    def for_vehicle_type(self, vehicle_type: VehicleType) -> PricingStrategy:
        strategy = self._strategies.get(vehicle_type)
        if strategy is None:
            raise ValueError(f"No pricing strategy for vehicle type: {vehicle_type}")
        return strategy


# ============================================================================
# FEE CALCULATION
# ============================================================================

class ParkingFeeCalculator:
    """
    Domain Service: converts a stay's duration and tariff into a fee
    Duration is billed in whole hours, rounded up; the fee is rounded
    half-up to cents.
    """

    def __init__(
        self,
        strategy_factory: Optional[PricingStrategyFactory] = None,
        currency: str = "USD"
    ):
        self.strategy_factory = strategy_factory or PricingStrategyFactory()
        self.currency = currency
        self.logger = logging.getLogger(self.__class__.__name__)

    def calculate_fee(
        self,
        entry_time: datetime,
        exit_time: datetime,
        vehicle_type: VehicleType,
        tariff: Tariff
    ) -> Money:
        hours = billable_hours(exit_time - entry_time)
        strategy = self.strategy_factory.for_vehicle_type(vehicle_type)
        fee = strategy.calculate_fee(hours, tariff, self.currency).rounded()
        self.logger.debug(f"{strategy} billed {hours}h for {vehicle_type.value}: {fee.format()}")
        return fee

    def calculate_for_stay(self, stay: ClosedStay, tariff: Tariff) -> Money:
        return self.calculate_fee(stay.entry_time, stay.exit_time, stay.vehicle_type, tariff)
