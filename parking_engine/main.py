# File: parking_engine/main.py
"""
Command-line entry point for the Parking Engine

Each subcommand builds a command dict, runs it through CommandProcessor and
prints the result as JSON. The exit code is 0 on success and 1 otherwise.
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional, Any

from .config import EngineConfig, setup_logging
from .application.commands import CommandProcessor
from .application.parking_service import ParkingServiceFactory
from .domain.exceptions import InvalidInput, StorageError
from .domain.models import VehicleType


class ParkingApplication:
    """Wires configuration, storage and the command processor together"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig.from_env()
        self.logger = setup_logging(self.config, stream=sys.stderr)
        self.logger.info(f"Starting parking engine against {self.config.database_url}")

        self.service = ParkingServiceFactory.create_service_with_config(self.config)
        self.processor = CommandProcessor(self.service)

    def run(self, command: Dict[str, Any]) -> Dict[str, Any]:
        return self.processor.process(command)


def _parse_capacity(entries: List[str]) -> Dict[str, int]:
    capacity = {}
    for entry in entries:
        vehicle_type, sep, count = entry.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Capacity must look like TYPE=COUNT, got: {entry}")
        try:
            capacity[vehicle_type] = int(count)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Capacity count must be an integer, got: {count}")
    return capacity


def build_parser() -> argparse.ArgumentParser:
    vehicle_types = ", ".join(vt.value for vt in VehicleType)
    parser = argparse.ArgumentParser(
        prog="parking-engine",
        description="Parking allocation and billing engine"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_facility = subparsers.add_parser("create-facility", help="Register a facility")
    create_facility.add_argument("--name", required=True)
    create_facility.add_argument(
        "--capacity", action="append", required=True, metavar="TYPE=COUNT",
        help=f"Spots per vehicle type ({vehicle_types}); repeatable"
    )

    facility = subparsers.add_parser("facility", help="Show a facility")
    facility.add_argument("facility_id")

    available = subparsers.add_parser("available", help="Free spots per vehicle type")
    available.add_argument("facility_id")

    admit = subparsers.add_parser("admit", help="Admit a vehicle")
    admit.add_argument("facility_id")
    admit.add_argument("vehicle_type", help=vehicle_types)
    admit.add_argument("license_plate")

    exit_parser = subparsers.add_parser("exit", help="Close a stay and print its receipt")
    exit_parser.add_argument("stay_id")

    fee = subparsers.add_parser("fee", help="Fee of a closed stay")
    fee.add_argument("stay_id")

    tariff = subparsers.add_parser("create-tariff", help="Register a tariff")
    tariff.add_argument("facility_id")
    tariff.add_argument("vehicle_type", help=vehicle_types)
    tariff.add_argument("--hourly-rate", default="0")
    tariff.add_argument("--base-rate", default="0")
    tariff.add_argument("--base-hours", type=int, default=0)
    tariff.add_argument("--daily-rate", default="0")
    tariff.add_argument("--daily-rate-hours", type=int, default=0)

    return parser


def build_command(args: argparse.Namespace) -> Dict[str, Any]:
    if args.command == "create-facility":
        return {
            "type": "create_facility",
            "name": args.name,
            "capacity": _parse_capacity(args.capacity)
        }
    if args.command == "facility":
        return {"type": "get_facility", "facility_id": args.facility_id}
    if args.command == "available":
        return {"type": "get_available_spots", "facility_id": args.facility_id}
    if args.command == "admit":
        return {
            "type": "admit",
            "facility_id": args.facility_id,
            "vehicle_type": args.vehicle_type,
            "license_plate": args.license_plate
        }
    if args.command == "exit":
        return {"type": "exit", "stay_id": args.stay_id}
    if args.command == "fee":
        return {"type": "calculate_fee", "stay_id": args.stay_id}
    if args.command == "create-tariff":
        return {
            "type": "create_tariff",
            "facility_id": args.facility_id,
            "vehicle_type": args.vehicle_type,
            "hourly_rate": args.hourly_rate,
            "base_rate": args.base_rate,
            "base_hours": args.base_hours,
            "daily_rate": args.daily_rate,
            "daily_rate_hours": args.daily_rate_hours
        }
    raise InvalidInput(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        command = build_command(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    try:
        application = ParkingApplication()
    except InvalidInput as e:
        print(json.dumps({"success": False, "status": 400, "error": e.to_dict()}, indent=2))
        return 1
    except StorageError as e:
        print(json.dumps({"success": False, "status": 500, "error": {"code": "storage_error", "message": str(e)}}, indent=2))
        return 1

    result = application.run(command)
    print(json.dumps(result, indent=2, default=str))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        logging.error(f"Fatal error in main: {str(e)}")
        sys.exit(1)
