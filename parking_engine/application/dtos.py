# File: parking_engine/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Engine

Input DTOs check the shape of caller data (non-empty strings, non-negative
numbers, known vehicle types) before it reaches the engine. Output DTOs give
the command layer a JSON-ready view of domain objects.
"""

from typing import Dict, Optional, Any, Type, TypeVar
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator

from ..domain.exceptions import InvalidInput
from ..domain.models import (
    Facility, Tariff, ClosedStay, Stay, Receipt, Money, VehicleType,
    MAX_LICENSE_PLATE_LENGTH
)

DTO = TypeVar('DTO', bound='BaseDTO')


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=exclude_none, **kwargs)

    @classmethod
    def parse_input(cls: Type[DTO], data: Dict[str, Any]) -> DTO:
        """Validate caller data, converting pydantic errors to InvalidInput"""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            errors = [
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in e.errors()
            ]
            raise InvalidInput(f"Invalid {cls.__name__} input", errors=errors)


# ============================================================================
# INPUT DTOs
# ============================================================================

class FacilityCreateDTO(BaseDTO):
    """DTO for creating a facility"""
    name: str = Field(min_length=1, max_length=100, description="Display name")
    capacity: Dict[VehicleType, int] = Field(min_length=1, description="Spots per vehicle type")

    @field_validator('capacity')
    @classmethod
    def validate_capacity(cls, v):
        for vehicle_type, count in v.items():
            if count < 0:
                raise ValueError(f"Capacity for {vehicle_type} cannot be negative")
        return v


class TariffCreateDTO(BaseDTO):
    """DTO for registering a tariff"""
    facility_id: str = Field(min_length=1, description="Owning facility")
    vehicle_type: VehicleType = Field(description="Vehicle type billed by this tariff")
    base_rate: Decimal = Field(default=Decimal('0'), ge=0, decimal_places=2)
    base_hours: int = Field(default=0, ge=0)
    hourly_rate: Decimal = Field(default=Decimal('0'), ge=0, decimal_places=2)
    daily_rate: Decimal = Field(default=Decimal('0'), ge=0, decimal_places=2)
    daily_rate_hours: int = Field(default=0, ge=0)


class AdmitRequestDTO(BaseDTO):
    """DTO for admitting a vehicle"""
    facility_id: str = Field(min_length=1)
    vehicle_type: VehicleType
    license_plate: str = Field(min_length=1, max_length=MAX_LICENSE_PLATE_LENGTH)

    @field_validator('license_plate')
    @classmethod
    def validate_license_plate(cls, v):
        v = v.upper()
        if not v.replace('-', '').replace(' ', '').isalnum():
            raise ValueError("License plate must be alphanumeric")
        return v


class StayRequestDTO(BaseDTO):
    """DTO for operations addressed by stay id (exit, fee)"""
    stay_id: str = Field(min_length=1)


class FacilityRequestDTO(BaseDTO):
    """DTO for operations addressed by facility id"""
    facility_id: str = Field(min_length=1)


# ============================================================================
# OUTPUT DTOs
# ============================================================================

class MoneyDTO(BaseDTO):
    amount: Decimal
    currency: str

    @classmethod
    def from_domain(cls, money: Money) -> 'MoneyDTO':
        return cls(amount=money.amount, currency=money.currency)


class FacilityDTO(BaseDTO):
    id: str
    name: str
    capacity: Dict[VehicleType, int]

    @classmethod
    def from_domain(cls, facility: Facility) -> 'FacilityDTO':
        return cls(id=facility.id, name=facility.name, capacity=facility.capacity)


class TariffDTO(BaseDTO):
    id: str
    facility_id: str
    vehicle_type: VehicleType
    base_rate: Decimal
    base_hours: int
    hourly_rate: Decimal
    daily_rate: Decimal
    daily_rate_hours: int
    created_at: datetime

    @classmethod
    def from_domain(cls, tariff: Tariff) -> 'TariffDTO':
        return cls(
            id=tariff.id,
            facility_id=tariff.facility_id,
            vehicle_type=tariff.vehicle_type,
            base_rate=tariff.base_rate,
            base_hours=tariff.base_hours,
            hourly_rate=tariff.hourly_rate,
            daily_rate=tariff.daily_rate,
            daily_rate_hours=tariff.daily_rate_hours,
            created_at=tariff.created_at
        )


class StayDTO(BaseDTO):
    id: str
    facility_id: str
    vehicle_type: VehicleType
    license_plate: str
    entry_time: datetime
    exit_time: Optional[datetime] = None
    status: str

    @classmethod
    def from_domain(cls, stay: Stay) -> 'StayDTO':
        return cls(
            id=stay.id,
            facility_id=stay.facility_id,
            vehicle_type=stay.vehicle_type,
            license_plate=stay.license_plate,
            entry_time=stay.entry_time,
            exit_time=stay.exit_time if isinstance(stay, ClosedStay) else None,
            status=stay.status.value
        )


class ReceiptDTO(BaseDTO):
    id: str
    stay_id: str
    entry_time: datetime
    exit_time: datetime
    duration: str
    fee: MoneyDTO

    @classmethod
    def from_domain(cls, receipt: Receipt) -> 'ReceiptDTO':
        return cls(
            id=receipt.id,
            stay_id=receipt.stay_id,
            entry_time=receipt.entry_time,
            exit_time=receipt.exit_time,
            duration=receipt.duration,
            fee=MoneyDTO.from_domain(receipt.fee)
        )


class AvailabilityDTO(BaseDTO):
    facility_id: str
    available: Dict[VehicleType, int]


class ExitResultDTO(BaseDTO):
    stay: StayDTO
    receipt: ReceiptDTO
