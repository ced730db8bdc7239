# File: parking_engine/domain/exceptions.py
"""
Error taxonomy for the parking engine

Every expected outcome a caller must branch on derives from ParkingEngineError.
StorageError sits outside that hierarchy: it wraps failures of the
underlying store and is never raised for a domain condition.
"""

from typing import Optional


class ParkingEngineError(Exception):
    """Base exception for domain outcomes"""

    code = "parking_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        return {"code": self.code, "message": self.message, **self.details}


class FacilityNotFound(ParkingEngineError):
    """Raised when a facility id does not resolve"""

    code = "facility_not_found"

    def __init__(self, facility_id: str):
        super().__init__(f"Facility not found: {facility_id}", facility_id=facility_id)


class StayNotFound(ParkingEngineError):
    """Raised when a stay id does not resolve"""

    code = "stay_not_found"

    def __init__(self, stay_id: str):
        super().__init__(f"Stay not found: {stay_id}", stay_id=stay_id)


class TariffNotFound(ParkingEngineError):
    """Raised when no tariff exists for a (facility, vehicle type) pair"""

    code = "tariff_not_found"

    def __init__(self, facility_id: str, vehicle_type: str):
        super().__init__(
            f"No tariff for vehicle type {vehicle_type} in facility {facility_id}",
            facility_id=facility_id,
            vehicle_type=vehicle_type
        )


class NoAvailableSpots(ParkingEngineError):
    """Raised when admission would exceed capacity"""

    code = "no_available_spots"

    def __init__(self, facility_id: str, vehicle_type: str):
        super().__init__(
            f"No available spots for {vehicle_type} in facility {facility_id}",
            facility_id=facility_id,
            vehicle_type=vehicle_type
        )


class AlreadyExited(ParkingEngineError):
    """Raised when exiting a stay that is already closed"""

    code = "already_exited"

    def __init__(self, stay_id: str):
        super().__init__(f"Vehicle has already exited for stay {stay_id}", stay_id=stay_id)


class VehicleNotExited(ParkingEngineError):
    """Raised when billing a stay that is still active"""

    code = "vehicle_not_exited"

    def __init__(self, stay_id: str):
        super().__init__(f"Vehicle has not exited yet for stay {stay_id}", stay_id=stay_id)


class InvalidInput(ParkingEngineError):
    """Raised for malformed or constraint-violating input"""

    code = "invalid_input"

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message, errors=errors or [])


class StorageError(Exception):
    """Raised when the underlying store fails (connectivity, unexpected constraint)"""
    pass
