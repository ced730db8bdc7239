#!/usr/bin/env python3
"""
Domain Layer Unit Tests

Tests for value objects, entities and the small domain services.
"""

import unittest
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

from parking_engine.domain.models import (
    Money, Tariff, Facility, ActiveStay, ClosedStay, Receipt, VehicleType,
    StayStatus, AvailabilityCalculator, MAX_LICENSE_PLATE_LENGTH, billable_hours, format_duration
)


class TestVehicleType(unittest.TestCase):
    """Unit tests for VehicleType parsing"""

    def test_parse_by_value_and_name(self):
        self.assertEqual(VehicleType.parse("CarSUV"), VehicleType.CAR_SUV)
        self.assertEqual(VehicleType.parse("bus_truck"), VehicleType.BUS_TRUCK)
        self.assertEqual(VehicleType.parse(VehicleType.MOTORCYCLE_SCOOTER), VehicleType.MOTORCYCLE_SCOOTER)

    def test_parse_unknown(self):
        with self.assertRaises(ValueError):
            VehicleType.parse("Boat")


class TestMoney(unittest.TestCase):
    """Unit tests for Money value object"""

    def test_rounds_half_up_to_cents(self):
        self.assertEqual(Money(Decimal('10.005')).rounded().amount, Decimal('10.01'))
        self.assertEqual(Money(Decimal('10.004')).rounded().amount, Decimal('10.00'))
        self.assertEqual(Money(Decimal('0.125')).rounded().amount, Decimal('0.13'))

    def test_arithmetic(self):
        total = Money(Decimal('10.00')) + Money(Decimal('2.50')) * 3
        self.assertEqual(total.amount, Decimal('17.50'))

    def test_rejects_negative_amount(self):
        with self.assertRaises(ValueError):
            Money(Decimal('-1'))

    def test_rejects_currency_mismatch(self):
        with self.assertRaises(ValueError):
            Money(Decimal('1'), "USD") + Money(Decimal('1'), "EUR")

    def test_accepts_strings_without_float_noise(self):
        self.assertEqual(Money("0.10").amount, Decimal('0.10'))
        self.assertEqual(Money(0.1).amount, Decimal('0.1'))


class TestFacility(unittest.TestCase):
    """Unit tests for Facility entity"""

    def test_capacity_keys_are_parsed(self):
        facility = Facility("Main Lot", {"CarSUV": 10, VehicleType.BUS_TRUCK: 2})
        self.assertEqual(facility.capacity, {VehicleType.CAR_SUV: 10, VehicleType.BUS_TRUCK: 2})
        self.assertEqual(facility.capacity_for(VehicleType.MOTORCYCLE_SCOOTER), 0)

    def test_capacity_cannot_be_modified_through_property(self):
        facility = Facility("Main Lot", {"CarSUV": 10})
        facility.capacity[VehicleType.CAR_SUV] = 99
        self.assertEqual(facility.capacity_for(VehicleType.CAR_SUV), 10)

    def test_invalid_facilities(self):
        cases = [
            ("", {"CarSUV": 1}),
            ("Lot", {}),
            ("Lot", {"CarSUV": -1}),
            ("Lot", {"CarSUV": 1.5}),
            ("Lot", {"Boat": 1}),
        ]
        for name, capacity in cases:
            with self.subTest(name=name, capacity=capacity):
                with self.assertRaises(ValueError):
                    Facility(name, capacity)


class TestTariff(unittest.TestCase):
    """Unit tests for Tariff value object"""

    def test_rates_become_decimals(self):
        tariff = Tariff(facility_id="f1", vehicle_type="CarSUV", hourly_rate="5.00", base_rate=10)
        self.assertEqual(tariff.hourly_rate, Decimal('5.00'))
        self.assertEqual(tariff.base_rate, Decimal('10'))
        self.assertEqual(tariff.vehicle_type, VehicleType.CAR_SUV)

    def test_tier_windows(self):
        self.assertTrue(Tariff("f1", VehicleType.CAR_SUV, base_rate=10, base_hours=2).has_base_window)
        self.assertFalse(Tariff("f1", VehicleType.CAR_SUV, base_rate=10, base_hours=0).has_base_window)
        self.assertTrue(Tariff("f1", VehicleType.BUS_TRUCK, daily_rate=50, daily_rate_hours=24).has_daily_window)
        self.assertFalse(Tariff("f1", VehicleType.BUS_TRUCK, daily_rate=0, daily_rate_hours=24).has_daily_window)

    def test_rejects_negative_fields(self):
        for field_name in ('hourly_rate', 'base_rate', 'base_hours', 'daily_rate', 'daily_rate_hours'):
            with self.subTest(field=field_name):
                with self.assertRaises(ValueError):
                    Tariff("f1", VehicleType.CAR_SUV, **{field_name: -1})

    def test_requires_facility(self):
        with self.assertRaises(ValueError):
            Tariff("", VehicleType.CAR_SUV)

    def test_rates_are_limited_to_cents(self):
        for field_name in ('hourly_rate', 'base_rate', 'daily_rate'):
            with self.subTest(field=field_name):
                with self.assertRaises(ValueError):
                    Tariff("f1", VehicleType.CAR_SUV, **{field_name: Decimal('0.125')})
                with self.assertRaises(ValueError):
                    Tariff("f1", VehicleType.CAR_SUV, **{field_name: Decimal('1e40')})
        self.assertEqual(Tariff("f1", VehicleType.CAR_SUV, hourly_rate="0.120").hourly_rate, Decimal('0.12'))

    def test_rejects_non_finite_rates(self):
        for value in ("NaN", "Infinity", Decimal("sNaN")):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    Tariff("f1", VehicleType.CAR_SUV, hourly_rate=value)


class TestStayLifecycle(unittest.TestCase):
    """Unit tests for ActiveStay / ClosedStay"""

    def setUp(self):
        self.entry = datetime(2024, 1, 1, 8, 0)
        self.stay = ActiveStay("f1", VehicleType.CAR_SUV, "ABC-123", self.entry)

    def test_close_keeps_identity(self):
        closed = self.stay.close(self.entry + timedelta(hours=2))
        self.assertIsInstance(closed, ClosedStay)
        self.assertEqual(closed.id, self.stay.id)
        self.assertEqual(closed.status, StayStatus.CLOSED)
        self.assertEqual(self.stay.status, StayStatus.ACTIVE)
        self.assertEqual(closed.duration, timedelta(hours=2))

    def test_exit_before_entry_is_rejected(self):
        with self.assertRaises(ValueError):
            self.stay.close(self.entry - timedelta(seconds=1))

    def test_closed_stay_requires_exit_time(self):
        with self.assertRaises(TypeError):
            ClosedStay("f1", VehicleType.CAR_SUV, "ABC-123", self.entry)

    def test_license_plate_required(self):
        with self.assertRaises(ValueError):
            ActiveStay("f1", VehicleType.CAR_SUV, "  ", self.entry)

    def test_license_plate_length_limit(self):
        ActiveStay("f1", VehicleType.CAR_SUV, "A" * MAX_LICENSE_PLATE_LENGTH, self.entry)
        with self.assertRaises(ValueError):
            ActiveStay("f1", VehicleType.CAR_SUV, "A" * (MAX_LICENSE_PLATE_LENGTH + 1), self.entry)

    def test_receipt_snapshot(self):
        closed = self.stay.close(self.entry + timedelta(hours=3, minutes=10))
        receipt = Receipt.issue(closed, Money(Decimal('19.999')))
        self.assertEqual(receipt.stay_id, closed.id)
        self.assertEqual(receipt.entry_time, self.entry)
        self.assertEqual(receipt.exit_time, closed.exit_time)
        self.assertEqual(receipt.duration, "3h10m0s")
        self.assertEqual(receipt.fee.amount, Decimal('20.00'))


class TestDurationRules(unittest.TestCase):
    """Unit tests for billable hours and duration formatting"""

    def test_partial_hours_round_up(self):
        cases = [
            (timedelta(0), 0),
            (timedelta(seconds=1), 1),
            (timedelta(minutes=59), 1),
            (timedelta(hours=1), 1),
            (timedelta(hours=1, minutes=1), 2),
            (timedelta(hours=3, minutes=10), 4),
            (timedelta(hours=30), 30),
        ]
        for duration, expected in cases:
            with self.subTest(duration=duration):
                self.assertEqual(billable_hours(duration), expected)

    def test_negative_duration(self):
        with self.assertRaises(ValueError):
            billable_hours(timedelta(minutes=-1))

    def test_format_duration(self):
        self.assertEqual(format_duration(timedelta(hours=3, minutes=10)), "3h10m0s")
        self.assertEqual(format_duration(timedelta(minutes=10, seconds=5)), "10m5s")
        self.assertEqual(format_duration(timedelta(seconds=42)), "42s")
        self.assertEqual(format_duration(timedelta(hours=30)), "30h0m0s")


class TestAvailabilityCalculator(unittest.TestCase):
    """Unit tests for availability arithmetic"""

    def test_only_declared_types_are_reported(self):
        facility = Facility("Lot", {"CarSUV": 3, "BusTruck": 1})
        occupied = {VehicleType.CAR_SUV: 2, VehicleType.MOTORCYCLE_SCOOTER: 4}
        self.assertEqual(
            AvailabilityCalculator.calculate(facility, occupied),
            {VehicleType.CAR_SUV: 1, VehicleType.BUS_TRUCK: 1}
        )

    def test_has_free_spot(self):
        facility = Facility("Lot", {"CarSUV": 1})
        self.assertTrue(AvailabilityCalculator.has_free_spot(facility, {}, VehicleType.CAR_SUV))
        self.assertFalse(AvailabilityCalculator.has_free_spot(
            facility, {VehicleType.CAR_SUV: 1}, VehicleType.CAR_SUV
        ))
        self.assertFalse(AvailabilityCalculator.has_free_spot(facility, {}, VehicleType.BUS_TRUCK))


if __name__ == '__main__':
    unittest.main()
