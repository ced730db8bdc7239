# File: parking_engine/domain/models.py
"""
Domain Models for the Parking Allocation and Billing Engine

This module contains:
1. Value Objects: Money and the immutable Tariff rule
2. Entities: Facility, the two-state Stay lifecycle, Receipt
3. Enums: Vehicle types known to the engine
4. Domain Services: duration rounding and availability arithmetic

Stays are modelled as two distinct types (ActiveStay / ClosedStay) so that a
closed stay without an exit time cannot be constructed.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Union, Mapping
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
import uuid
from enum import Enum


CENT = Decimal('0.01')
ONE_HOUR = timedelta(hours=1)
MAX_LICENSE_PLATE_LENGTH = 20


def new_id() -> str:
    return str(uuid.uuid4())


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce ints, strings and floats to Decimal without binary float noise"""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValueError(f"{field_name} must be numeric, got: {value!r}")
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite, got: {value!r}")
    return result


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class VehicleType(Enum):
    """
    Enumeration of vehicle types
    Each type selects which pricing tiers of a tariff are active
    """
    MOTORCYCLE_SCOOTER = "MotorcycleScooter"  # Two-wheeled / light vehicles
    CAR_SUV = "CarSUV"                        # Cars and SUVs
    BUS_TRUCK = "BusTruck"                    # Buses, trucks and other heavy vehicles

    @classmethod
    def parse(cls, value: Union[str, 'VehicleType']) -> 'VehicleType':
        """Resolve a vehicle type from its value or member name"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        if isinstance(value, str) and value.upper() in cls.__members__:
            return cls[value.upper()]
        raise ValueError(f"Invalid vehicle type: {value}")

    def __str__(self) -> str:
        names = {
            VehicleType.MOTORCYCLE_SCOOTER: "Motorcycle/Scooter",
            VehicleType.CAR_SUV: "Car/SUV",
            VehicleType.BUS_TRUCK: "Bus/Truck",
        }
        return names[self]


class StayStatus(Enum):
    ACTIVE = "active"
    CLOSED = "closed"


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount in the facility currency
    Amounts are never negative; rounding to the minor unit is explicit
    """
    amount: Decimal
    currency: str = "USD"

    def __post_init__(self):
        object.__setattr__(self, 'amount', to_decimal(self.amount, "amount"))

        if self.amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: Union[int, Decimal]) -> 'Money':
        multiplier = to_decimal(multiplier, "multiplier")
        if multiplier < Decimal('0'):
            raise ValueError("Multiplier cannot be negative")
        return Money(self.amount * multiplier, self.currency)

    def rounded(self) -> 'Money':
        """Round half-up to the minor unit (cents)"""
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    def format(self) -> str:
        return f"{self.amount.quantize(CENT, rounding=ROUND_HALF_UP)} {self.currency}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "currency": self.currency
        }


@dataclass(frozen=True)
class Tariff:
    """
    Value Object: Pricing rule for one (facility, vehicle type) pair

    base_rate covers the first base_hours; hourly_rate applies per hour
    outside that window; daily_rate applies per started day once a stay
    runs past daily_rate_hours. Which tiers are used depends on the
    vehicle type (see domain.strategies).
    """
    facility_id: str
    vehicle_type: VehicleType
    hourly_rate: Decimal = Decimal('0')
    base_rate: Decimal = Decimal('0')
    base_hours: int = 0
    daily_rate: Decimal = Decimal('0')
    daily_rate_hours: int = 0
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, 'vehicle_type', VehicleType.parse(self.vehicle_type))
        for name in ('hourly_rate', 'base_rate', 'daily_rate'):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))

        if not self.facility_id:
            raise ValueError("Tariff must reference a facility")

        for name in ('hourly_rate', 'base_rate', 'daily_rate', 'base_hours', 'daily_rate_hours'):
            if getattr(self, name) < 0:
                raise ValueError(f"Tariff {name} cannot be negative")

        # Stored as DECIMAL(10, 2); finer rates would not survive a round trip
        for name in ('hourly_rate', 'base_rate', 'daily_rate'):
            rate = getattr(self, name)
            try:
                exact = rate == rate.quantize(CENT)
            except InvalidOperation:
                raise ValueError(f"Tariff {name} is out of range: {rate}")
            if not exact:
                raise ValueError(f"Tariff {name} cannot have more than two decimal places")

    @property
    def has_base_window(self) -> bool:
        return self.base_rate > 0 and self.base_hours > 0

    @property
    def has_daily_window(self) -> bool:
        return self.daily_rate > 0 and self.daily_rate_hours > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "facility_id": self.facility_id,
            "vehicle_type": self.vehicle_type.value,
            "base_rate": str(self.base_rate),
            "base_hours": self.base_hours,
            "hourly_rate": str(self.hourly_rate),
            "daily_rate": str(self.daily_rate),
            "daily_rate_hours": self.daily_rate_hours,
            "created_at": self.created_at.isoformat()
        }


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

class Entity:
    """
    Base class for all domain entities
    Provides common functionality for entities with identity
    """

    def __init__(self, id: Optional[str] = None):
        self._id = id or new_id()

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return False
        return self.id == other.id and type(self) == type(other)

    def __hash__(self) -> int:
        return hash((self.id, type(self).__name__))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id})"


class Facility(Entity):
    """
    Entity: A parking location with a fixed capacity per vehicle type
    Capacity is set at creation and never resized
    """

    def __init__(
        self,
        name: str,
        capacity: Mapping[Union[str, VehicleType], int],
        id: Optional[str] = None
    ):
        super().__init__(id)
        self.name = name
        self._capacity = {
            VehicleType.parse(vehicle_type): count
            for vehicle_type, count in capacity.items()
        }
        self._validate()

    def _validate(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Facility name cannot be empty")

        if not self._capacity:
            raise ValueError("Facility capacity cannot be empty")

        for vehicle_type, count in self._capacity.items():
            if isinstance(count, bool) or not isinstance(count, int):
                raise ValueError(f"Capacity for {vehicle_type.value} must be an integer")
            if count < 0:
                raise ValueError(f"Capacity for {vehicle_type.value} cannot be negative")

    @property
    def capacity(self) -> Dict[VehicleType, int]:
        return dict(self._capacity)

    def capacity_for(self, vehicle_type: VehicleType) -> int:
        """Declared capacity for a type; undeclared types have none"""
        return self._capacity.get(vehicle_type, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "capacity": {vt.value: count for vt, count in self._capacity.items()}
        }

    def __str__(self) -> str:
        parts = [f"{count} {vt.value}" for vt, count in self._capacity.items()]
        return f"{self.name} ({', '.join(parts)})"


@dataclass(frozen=True)
class ActiveStay:
    """
    Entity: A vehicle currently occupying a facility
    Becomes a ClosedStay exactly once, through close()
    """
    facility_id: str
    vehicle_type: VehicleType
    license_plate: str
    entry_time: datetime
    id: str = field(default_factory=new_id)

    status = StayStatus.ACTIVE

    def __post_init__(self):
        object.__setattr__(self, 'vehicle_type', VehicleType.parse(self.vehicle_type))
        if not self.license_plate or not self.license_plate.strip():
            raise ValueError("License plate cannot be empty")
        if len(self.license_plate) > MAX_LICENSE_PLATE_LENGTH:
            raise ValueError(f"License plate cannot exceed {MAX_LICENSE_PLATE_LENGTH} characters")

    def close(self, exit_time: datetime) -> 'ClosedStay':
        return ClosedStay(
            facility_id=self.facility_id,
            vehicle_type=self.vehicle_type,
            license_plate=self.license_plate,
            entry_time=self.entry_time,
            exit_time=exit_time,
            id=self.id
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "facility_id": self.facility_id,
            "vehicle_type": self.vehicle_type.value,
            "license_plate": self.license_plate,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": None,
            "status": self.status.value
        }


@dataclass(frozen=True)
class ClosedStay:
    """Entity: A finished stay; exit_time is always present and never before entry"""
    facility_id: str
    vehicle_type: VehicleType
    license_plate: str
    entry_time: datetime
    exit_time: datetime
    id: str = field(default_factory=new_id)

    status = StayStatus.CLOSED

    def __post_init__(self):
        object.__setattr__(self, 'vehicle_type', VehicleType.parse(self.vehicle_type))
        if self.exit_time < self.entry_time:
            raise ValueError("Exit time cannot be before entry time")

    @property
    def duration(self) -> timedelta:
        return self.exit_time - self.entry_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "facility_id": self.facility_id,
            "vehicle_type": self.vehicle_type.value,
            "license_plate": self.license_plate,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "status": self.status.value
        }


Stay = Union[ActiveStay, ClosedStay]


@dataclass(frozen=True)
class Receipt:
    """Entity: Immutable billing record, one per closed stay"""
    stay_id: str
    entry_time: datetime
    exit_time: datetime
    duration: str
    fee: Money
    id: str = field(default_factory=new_id)

    @classmethod
    def issue(cls, stay: ClosedStay, fee: Money) -> 'Receipt':
        return cls(
            stay_id=stay.id,
            entry_time=stay.entry_time,
            exit_time=stay.exit_time,
            duration=format_duration(stay.duration),
            fee=fee.rounded()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "stay_id": self.stay_id,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "duration": self.duration,
            "fee": self.fee.to_dict()
        }


# ============================================================================
# DOMAIN SERVICES
# ============================================================================

def billable_hours(duration: timedelta) -> int:
    """Whole hours, rounded up: any started hour is billed in full"""
    if duration < timedelta(0):
        raise ValueError("Duration cannot be negative")
    hours, remainder = divmod(duration, ONE_HOUR)
    if remainder:
        hours += 1
    return hours


def format_duration(duration: timedelta) -> str:
    """Render a duration as e.g. 3h10m0s, 10m5s or 42s"""
    total_seconds = int(duration.total_seconds())
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


class AvailabilityCalculator:
    """
    Domain Service: free spots per vehicle type
    Only types declared in the facility capacity appear in the result
    """

    @staticmethod
    def calculate(
        facility: Facility,
        occupied: Mapping[VehicleType, int]
    ) -> Dict[VehicleType, int]:
        return {
            vehicle_type: capacity - occupied.get(vehicle_type, 0)
            for vehicle_type, capacity in facility.capacity.items()
        }

    @staticmethod
    def has_free_spot(
        facility: Facility,
        occupied: Mapping[VehicleType, int],
        vehicle_type: VehicleType
    ) -> bool:
        available = AvailabilityCalculator.calculate(facility, occupied)
        return available.get(vehicle_type, 0) > 0
