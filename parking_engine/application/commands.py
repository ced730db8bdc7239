# File: parking_engine/application/commands.py
"""
Command Pattern Implementation for the Parking Engine

Each command wraps one engine operation: it validates a raw payload through
the DTO layer, executes against ParkingService and returns a plain dict.
CommandProcessor turns engine errors into result dicts carrying a status
code, so a transport layer only has to forward them.

Status mapping:
- 400 invalid input, vehicle not exited
- 404 facility / stay / tariff not found
- 409 no available spots, already exited
- 500 storage failure
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Any, Type
import logging

from ..domain.exceptions import (
    ParkingEngineError, FacilityNotFound, StayNotFound, TariffNotFound,
    NoAvailableSpots, AlreadyExited, VehicleNotExited, InvalidInput, StorageError
)
from .dtos import (
    FacilityCreateDTO, TariffCreateDTO, AdmitRequestDTO, StayRequestDTO,
    FacilityRequestDTO, FacilityDTO, TariffDTO, StayDTO, ReceiptDTO,
    AvailabilityDTO, ExitResultDTO, MoneyDTO
)
from .parking_service import ParkingService


STATUS_BY_ERROR: Dict[Type[ParkingEngineError], int] = {
    InvalidInput: 400,
    VehicleNotExited: 400,
    FacilityNotFound: 404,
    StayNotFound: 404,
    TariffNotFound: 404,
    NoAvailableSpots: 409,
    AlreadyExited: 409,
}


# ============================================================================
# COMMAND BASE CLASS
# ============================================================================

class Command(ABC):
    """
    Abstract base class for all commands

    Commands are named in the imperative (e.g., AdmitVehicleCommand).
    """

    success_status = 200

    def __init__(self, payload: Optional[Dict[str, Any]] = None):
        self.payload = payload or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def execute(self, service: ParkingService) -> Dict[str, Any]:
        """
        Execute the command using the provided service
        Returns: JSON-ready result data
        """
        pass

    def get_description(self) -> str:
        return self.__class__.__name__.replace("Command", "")


# ============================================================================
# CONCRETE COMMANDS
# ============================================================================

class CreateFacilityCommand(Command):
    success_status = 201

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = FacilityCreateDTO.parse_input(self.payload)
        facility = service.create_facility(request.name, request.capacity)
        return FacilityDTO.from_domain(facility).to_dict()


class GetFacilityCommand(Command):

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = FacilityRequestDTO.parse_input(self.payload)
        return FacilityDTO.from_domain(service.get_facility(request.facility_id)).to_dict()


class GetAvailableSpotsCommand(Command):

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = FacilityRequestDTO.parse_input(self.payload)
        available = service.get_available_spots(request.facility_id)
        return AvailabilityDTO(facility_id=request.facility_id, available=available).to_dict()


class CreateTariffCommand(Command):
    success_status = 201

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = TariffCreateDTO.parse_input(self.payload)
        tariff = service.create_tariff(
            facility_id=request.facility_id,
            vehicle_type=request.vehicle_type,
            hourly_rate=request.hourly_rate,
            base_rate=request.base_rate,
            base_hours=request.base_hours,
            daily_rate=request.daily_rate,
            daily_rate_hours=request.daily_rate_hours
        )
        return TariffDTO.from_domain(tariff).to_dict()


class AdmitVehicleCommand(Command):
    success_status = 201

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = AdmitRequestDTO.parse_input(self.payload)
        stay = service.admit(request.facility_id, request.vehicle_type, request.license_plate)
        return StayDTO.from_domain(stay).to_dict()


class ExitVehicleCommand(Command):

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = StayRequestDTO.parse_input(self.payload)
        stay, receipt = service.exit(request.stay_id)
        return ExitResultDTO(
            stay=StayDTO.from_domain(stay),
            receipt=ReceiptDTO.from_domain(receipt)
        ).to_dict()


class CalculateFeeCommand(Command):

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = StayRequestDTO.parse_input(self.payload)
        return MoneyDTO.from_domain(service.calculate_fee(request.stay_id)).to_dict()


# ============================================================================
# COMMAND PROCESSOR
# ============================================================================

class CommandProcessor:
    """Dispatches command dicts to commands and maps outcomes to status codes"""

    commands: Dict[str, Type[Command]] = {
        "create_facility": CreateFacilityCommand,
        "get_facility": GetFacilityCommand,
        "get_available_spots": GetAvailableSpotsCommand,
        "create_tariff": CreateTariffCommand,
        "admit": AdmitVehicleCommand,
        "exit": ExitVehicleCommand,
        "calculate_fee": CalculateFeeCommand,
    }

    def __init__(self, service: ParkingService):
        self.service = service
        self.logger = logging.getLogger(self.__class__.__name__)

    def create_command(self, command: Dict[str, Any]) -> Command:
        command_type = command.get("type")
        command_class = self.commands.get(command_type)
        if command_class is None:
            raise InvalidInput(f"Unknown command type: {command_type}")
        payload = {key: value for key, value in command.items() if key != "type"}
        return command_class(payload)

    def execute(self, command: Command) -> Dict[str, Any]:
        try:
            data = command.execute(self.service)
            return {"success": True, "status": command.success_status, "data": data}
        except ParkingEngineError as e:
            status = STATUS_BY_ERROR.get(type(e), 400)
            self.logger.info(f"{command.get_description()} rejected ({status}): {e.message}")
            return {"success": False, "status": status, "error": e.to_dict()}
        except StorageError as e:
            self.logger.error(f"{command.get_description()} failed: {e}", exc_info=True)
            return {
                "success": False,
                "status": 500,
                "error": {"code": "storage_error", "message": str(e)}
            }

    def process(self, command: Dict[str, Any]) -> Dict[str, Any]:
        try:
            command_object = self.create_command(command)
        except InvalidInput as e:
            return {"success": False, "status": 400, "error": e.to_dict()}
        return self.execute(command_object)
