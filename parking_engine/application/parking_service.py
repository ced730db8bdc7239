# File: parking_engine/application/parking_service.py
"""
Parking Engine Application Service

This module implements the use cases of the allocation-and-billing engine.
Every operation runs inside exactly one unit of work, which is what makes
the check-then-act sequences below safe under concurrent callers.

Use cases:
1. Facility registration and lookup
2. Tariff registration
3. Availability (capacity minus active occupancy)
4. Admission of a vehicle against availability
5. Exit: close the stay, bill it, issue the receipt
6. Fee calculation for an already closed stay
"""

from typing import Dict, Optional, Tuple, Callable, Mapping, Union
from datetime import datetime
from decimal import Decimal
import logging

from ..domain.exceptions import (
    FacilityNotFound, StayNotFound, TariffNotFound, NoAvailableSpots,
    AlreadyExited, VehicleNotExited, InvalidInput
)
from ..domain.models import (
    Facility, Tariff, ActiveStay, ClosedStay, Stay, Receipt, Money,
    VehicleType, AvailabilityCalculator
)
from ..domain.strategies import ParkingFeeCalculator, PricingStrategyFactory
from ..infrastructure.repositories import (
    UnitOfWork, UnitOfWorkFactory, RepositoryFactory
)
from ..config import EngineConfig


Clock = Callable[[], datetime]


def _parse_vehicle_type(value: Union[str, VehicleType]) -> VehicleType:
    try:
        return VehicleType.parse(value)
    except ValueError as e:
        raise InvalidInput(str(e))


class ParkingService:
    """
    Main application service for the parking engine

    Args:
        uow_factory: creates a fresh unit of work per operation
        fee_calculator: fee calculation domain service
        clock: source of entry/exit timestamps
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        fee_calculator: Optional[ParkingFeeCalculator] = None,
        clock: Optional[Clock] = None
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.uow_factory = uow_factory
        self.fee_calculator = fee_calculator or ParkingFeeCalculator()
        self.clock = clock or datetime.now

    # ------------------------------------------------------------------
    # Facilities and tariffs
    # ------------------------------------------------------------------

    def create_facility(self, name: str, capacity: Mapping[Union[str, VehicleType], int]) -> Facility:
        try:
            facility = Facility(name=name, capacity=capacity)
        except ValueError as e:
            raise InvalidInput(str(e))

        with self.uow_factory() as uow:
            uow.facilities.add(facility)

        self.logger.info(f"Created facility {facility.id}: {facility}")
        return facility

    def get_facility(self, facility_id: str) -> Facility:
        with self.uow_factory() as uow:
            return self._load_facility(uow, facility_id)

    def create_tariff(
        self,
        facility_id: str,
        vehicle_type: Union[str, VehicleType],
        hourly_rate: Decimal = Decimal('0'),
        base_rate: Decimal = Decimal('0'),
        base_hours: int = 0,
        daily_rate: Decimal = Decimal('0'),
        daily_rate_hours: int = 0
    ) -> Tariff:
        """
        Register a tariff for a (facility, vehicle type) pair

        Several tariffs may exist for the same pair; lookups pick the most
        recently created one.
        """
        vehicle_type = _parse_vehicle_type(vehicle_type)
        try:
            tariff = Tariff(
                facility_id=facility_id,
                vehicle_type=vehicle_type,
                hourly_rate=hourly_rate,
                base_rate=base_rate,
                base_hours=base_hours,
                daily_rate=daily_rate,
                daily_rate_hours=daily_rate_hours,
                created_at=self.clock()
            )
        except ValueError as e:
            raise InvalidInput(str(e))

        with self.uow_factory() as uow:
            self._load_facility(uow, facility_id)
            uow.tariffs.add(tariff)

        self.logger.info(f"Created tariff {tariff.id} for {vehicle_type.value} in facility {facility_id}")
        return tariff

    def get_tariff(self, facility_id: str, vehicle_type: Union[str, VehicleType]) -> Tariff:
        vehicle_type = _parse_vehicle_type(vehicle_type)
        with self.uow_factory() as uow:
            return self._resolve_tariff(uow, facility_id, vehicle_type)

    # ------------------------------------------------------------------
    # Occupancy and admission
    # ------------------------------------------------------------------

    def get_occupancy(self, facility_id: str) -> Dict[VehicleType, int]:
        with self.uow_factory() as uow:
            self._load_facility(uow, facility_id)
            return uow.stays.count_active_by_vehicle_type(facility_id)

    def get_available_spots(self, facility_id: str) -> Dict[VehicleType, int]:
        with self.uow_factory() as uow:
            facility = self._load_facility(uow, facility_id)
            occupied = uow.stays.count_active_by_vehicle_type(facility_id)
            return AvailabilityCalculator.calculate(facility, occupied)

    def admit(
        self,
        facility_id: str,
        vehicle_type: Union[str, VehicleType],
        license_plate: str
    ) -> ActiveStay:
        """
        Admit a vehicle if a spot of its type is free

        The facility is locked before availability is read and the lock is
        held until the new stay is committed.
        """
        vehicle_type = _parse_vehicle_type(vehicle_type)
        self.logger.info(f"Processing admission of {license_plate} ({vehicle_type.value}) to {facility_id}")

        with self.uow_factory() as uow:
            facility = uow.facilities.get_for_update(facility_id)
            if facility is None:
                raise FacilityNotFound(facility_id)

            occupied = uow.stays.count_active_by_vehicle_type(facility_id)
            if not AvailabilityCalculator.has_free_spot(facility, occupied, vehicle_type):
                self.logger.warning(f"No {vehicle_type.value} spots left in facility {facility_id}")
                raise NoAvailableSpots(facility_id, vehicle_type.value)

            try:
                stay = ActiveStay(
                    facility_id=facility_id,
                    vehicle_type=vehicle_type,
                    license_plate=license_plate,
                    entry_time=self.clock()
                )
            except ValueError as e:
                raise InvalidInput(str(e))
            uow.stays.add(stay)

        self.logger.info(f"Admitted {license_plate} as stay {stay.id}")
        return stay

    # ------------------------------------------------------------------
    # Exit and billing
    # ------------------------------------------------------------------

    def exit(self, stay_id: str) -> Tuple[ClosedStay, Receipt]:
        """
        Close an active stay and issue its receipt

        All steps share one unit of work: if the fee cannot be computed
        (no tariff), the stay stays active and no receipt is written.
        """
        self.logger.info(f"Processing exit for stay {stay_id}")

        with self.uow_factory() as uow:
            stay = self._load_stay(uow, stay_id)
            if isinstance(stay, ClosedStay):
                raise AlreadyExited(stay_id)

            exit_time = self.clock()
            try:
                closed = stay.close(exit_time)
            except ValueError as e:
                raise InvalidInput(str(e))

            if not uow.stays.mark_exited(stay_id, exit_time):
                raise AlreadyExited(stay_id)

            tariff = self._resolve_tariff(uow, closed.facility_id, closed.vehicle_type)
            fee = self.fee_calculator.calculate_for_stay(closed, tariff)
            receipt = Receipt.issue(closed, fee)
            uow.receipts.add(receipt)

        self.logger.info(f"Stay {stay_id} closed after {receipt.duration}, fee {receipt.fee.format()}")
        return closed, receipt

    def calculate_fee(self, stay_id: str) -> Money:
        """Fee of a closed stay under the currently applicable tariff"""
        with self.uow_factory() as uow:
            stay = self._load_stay(uow, stay_id)
            if not isinstance(stay, ClosedStay):
                raise VehicleNotExited(stay_id)
            tariff = self._resolve_tariff(uow, stay.facility_id, stay.vehicle_type)
            return self.fee_calculator.calculate_for_stay(stay, tariff)

    def get_stay(self, stay_id: str) -> Stay:
        with self.uow_factory() as uow:
            return self._load_stay(uow, stay_id)

    def get_receipt(self, stay_id: str) -> Receipt:
        with self.uow_factory() as uow:
            stay = self._load_stay(uow, stay_id)
            receipt = uow.receipts.get_by_stay(stay_id)
            if receipt is None:
                raise VehicleNotExited(stay.id)
            return receipt

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_facility(self, uow: UnitOfWork, facility_id: str) -> Facility:
        facility = uow.facilities.get(facility_id)
        if facility is None:
            raise FacilityNotFound(facility_id)
        return facility

    def _load_stay(self, uow: UnitOfWork, stay_id: str) -> Stay:
        stay = uow.stays.get(stay_id)
        if stay is None:
            raise StayNotFound(stay_id)
        return stay

    def _resolve_tariff(self, uow: UnitOfWork, facility_id: str, vehicle_type: VehicleType) -> Tariff:
        tariff = uow.tariffs.find_applicable(facility_id, vehicle_type)
        if tariff is None:
            raise TariffNotFound(facility_id, vehicle_type.value)
        return tariff


# ============================================================================
# SERVICE FACTORY
# ============================================================================

class ParkingServiceFactory:
    """Factory for creating parking services"""

    @staticmethod
    def create_in_memory_service(clock: Optional[Clock] = None, currency: str = "USD") -> ParkingService:
        return ParkingService(
            RepositoryFactory.create_in_memory_uow_factory(),
            fee_calculator=ParkingFeeCalculator(PricingStrategyFactory(), currency),
            clock=clock
        )

    @staticmethod
    def create_service_with_config(config: EngineConfig, clock: Optional[Clock] = None) -> ParkingService:
        cache_client = None
        if config.redis_url:
            cache_client = RepositoryFactory.create_cache_client(config.redis_url)

        uow_factory = RepositoryFactory.create_sqlalchemy_uow_factory(
            config.database_url,
            cache_client=cache_client,
            cache_ttl_seconds=config.facility_cache_ttl,
            sqlite_busy_timeout=config.sqlite_busy_timeout
        )
        return ParkingService(
            uow_factory,
            fee_calculator=ParkingFeeCalculator(PricingStrategyFactory(), config.currency),
            clock=clock
        )
