#!/usr/bin/env python3
"""
Command Layer Unit Tests

Checks payload validation, result shapes and the error-to-status mapping.
"""

import unittest
import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock

sys.path.append(str(Path(__file__).resolve().parents[2]))

from parking_engine.application.commands import (
    CommandProcessor, AdmitVehicleCommand, ExitVehicleCommand, STATUS_BY_ERROR
)
from parking_engine.application.dtos import FacilityCreateDTO, TariffCreateDTO, AdmitRequestDTO
from parking_engine.application.parking_service import ParkingServiceFactory
from parking_engine.domain.exceptions import InvalidInput, StorageError, NoAvailableSpots
from parking_engine.domain.models import VehicleType
from tests import FakeClock


class TestInputDTOs(unittest.TestCase):

    def test_facility_capacity_keys_are_vehicle_types(self):
        dto = FacilityCreateDTO.parse_input({"name": " Lot ", "capacity": {"CarSUV": 3}})
        self.assertEqual(dto.name, "Lot")
        self.assertEqual(dto.capacity, {VehicleType.CAR_SUV: 3})

    def test_facility_validation_errors(self):
        for payload in (
            {"name": "", "capacity": {"CarSUV": 3}},
            {"name": "Lot", "capacity": {}},
            {"name": "Lot", "capacity": {"CarSUV": -1}},
            {"name": "Lot", "capacity": {"Boat": 1}},
            {"capacity": {"CarSUV": 1}},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(InvalidInput) as ctx:
                    FacilityCreateDTO.parse_input(payload)
                self.assertTrue(ctx.exception.details["errors"])

    def test_tariff_defaults_and_limits(self):
        dto = TariffCreateDTO.parse_input({"facility_id": "f1", "vehicle_type": "BusTruck", "hourly_rate": "3.00"})
        self.assertEqual(dto.hourly_rate, Decimal('3.00'))
        self.assertEqual(dto.daily_rate_hours, 0)
        with self.assertRaises(InvalidInput):
            TariffCreateDTO.parse_input({"facility_id": "f1", "vehicle_type": "BusTruck", "hourly_rate": "-1"})
        with self.assertRaises(InvalidInput):
            TariffCreateDTO.parse_input({"facility_id": "f1", "vehicle_type": "BusTruck", "hourly_rate": "1.005"})

    def test_license_plate_is_normalised(self):
        dto = AdmitRequestDTO.parse_input({"facility_id": "f1", "vehicle_type": "CarSUV", "license_plate": " ab-12 "})
        self.assertEqual(dto.license_plate, "AB-12")
        with self.assertRaises(InvalidInput):
            AdmitRequestDTO.parse_input({"facility_id": "f1", "vehicle_type": "CarSUV", "license_plate": "AB_12!"})


class TestCommandProcessor(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.service = ParkingServiceFactory.create_in_memory_service(clock=self.clock)
        self.processor = CommandProcessor(self.service)

    def _create_facility(self, capacity):
        result = self.processor.process({"type": "create_facility", "name": "Lot", "capacity": capacity})
        self.assertTrue(result["success"])
        return result["data"]["id"]

    def test_full_flow(self):
        facility_id = self._create_facility({"CarSUV": 1})

        tariff = self.processor.process({
            "type": "create_tariff", "facility_id": facility_id, "vehicle_type": "CarSUV",
            "hourly_rate": "5.00", "base_rate": "10.00", "base_hours": 2
        })
        self.assertEqual(tariff["status"], 201)
        self.assertEqual(tariff["data"]["vehicle_type"], "CarSUV")

        admitted = self.processor.process({
            "type": "admit", "facility_id": facility_id, "vehicle_type": "CarSUV", "license_plate": "abc123"
        })
        self.assertEqual(admitted["status"], 201)
        self.assertEqual(admitted["data"]["status"], "active")
        self.assertIsNone(admitted["data"]["exit_time"])
        stay_id = admitted["data"]["id"]

        available = self.processor.process({"type": "get_available_spots", "facility_id": facility_id})
        self.assertEqual(available["data"]["available"], {"CarSUV": 0})

        self.clock.advance(hours=3)
        exited = self.processor.process({"type": "exit", "stay_id": stay_id})
        self.assertEqual(exited["status"], 200)
        self.assertEqual(exited["data"]["stay"]["status"], "closed")
        self.assertEqual(exited["data"]["receipt"]["duration"], "3h0m0s")
        self.assertEqual(Decimal(str(exited["data"]["receipt"]["fee"]["amount"])), Decimal('15.00'))

        fee = self.processor.process({"type": "calculate_fee", "stay_id": stay_id})
        self.assertEqual(Decimal(str(fee["data"]["amount"])), Decimal('15.00'))
        self.assertEqual(fee["data"]["currency"], "USD")

        facility = self.processor.process({"type": "get_facility", "facility_id": facility_id})
        self.assertEqual(facility["data"]["capacity"], {"CarSUV": 1})

    def test_error_statuses(self):
        facility_id = self._create_facility({"CarSUV": 1})
        admit = {"type": "admit", "facility_id": facility_id, "vehicle_type": "CarSUV", "license_plate": "A1"}
        stay_id = self.processor.process(admit)["data"]["id"]

        cases = [
            ({"type": "admit", "facility_id": facility_id, "vehicle_type": "CarSUV", "license_plate": "A2"},
             409, "no_available_spots"),
            ({"type": "get_facility", "facility_id": "missing"}, 404, "facility_not_found"),
            ({"type": "exit", "stay_id": "missing"}, 404, "stay_not_found"),
            ({"type": "exit", "stay_id": stay_id}, 404, "tariff_not_found"),
            ({"type": "calculate_fee", "stay_id": stay_id}, 400, "vehicle_not_exited"),
            ({"type": "admit", "facility_id": facility_id, "vehicle_type": "Boat", "license_plate": "A3"},
             400, "invalid_input"),
            ({"type": "teleport"}, 400, "invalid_input"),
        ]
        for command, status, code in cases:
            with self.subTest(command=command):
                result = self.processor.process(command)
                self.assertFalse(result["success"])
                self.assertEqual(result["status"], status)
                self.assertEqual(result["error"]["code"], code)

    def test_already_exited_is_conflict(self):
        facility_id = self._create_facility({"MotorcycleScooter": 1})
        self.processor.process({
            "type": "create_tariff", "facility_id": facility_id,
            "vehicle_type": "MotorcycleScooter", "hourly_rate": "1.00"
        })
        stay_id = self.processor.process({
            "type": "admit", "facility_id": facility_id,
            "vehicle_type": "MotorcycleScooter", "license_plate": "M1"
        })["data"]["id"]

        self.assertTrue(self.processor.process({"type": "exit", "stay_id": stay_id})["success"])
        result = self.processor.process({"type": "exit", "stay_id": stay_id})
        self.assertEqual(result["status"], 409)
        self.assertEqual(result["error"]["code"], "already_exited")

    def test_storage_failure_is_500(self):
        service = Mock()
        service.exit.side_effect = StorageError("database is locked")
        processor = CommandProcessor(service)

        result = processor.execute(ExitVehicleCommand({"stay_id": "s1"}))

        self.assertEqual(result["status"], 500)
        self.assertEqual(result["error"]["code"], "storage_error")

    def test_domain_error_details_are_returned(self):
        service = Mock()
        service.admit.side_effect = NoAvailableSpots("f1", "CarSUV")
        processor = CommandProcessor(service)

        result = processor.execute(AdmitVehicleCommand({
            "facility_id": "f1", "vehicle_type": "CarSUV", "license_plate": "A1"
        }))

        self.assertEqual(result["status"], STATUS_BY_ERROR[NoAvailableSpots])
        self.assertEqual(result["error"]["facility_id"], "f1")
        self.assertEqual(result["error"]["vehicle_type"], "CarSUV")
        service.admit.assert_called_once_with("f1", VehicleType.CAR_SUV, "A1")


if __name__ == '__main__':
    unittest.main()
