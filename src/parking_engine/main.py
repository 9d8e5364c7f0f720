# File: src/parking_engine/main.py
"""
Main application entry point for the Parking Engine
Builds the engine from configuration and reports lot status
"""

from typing import List, Optional
import argparse
import logging
import os
import sys

from .application.parking_service import ParkingService, ParkingServiceFactory
from .domain.exceptions import ParkingError
from .infrastructure.config import load_config
from .infrastructure.messaging import DisplayEventHandler


def setup_logging(level: str = "INFO", log_dir: Optional[str] = "logs") -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(os.path.join(log_dir, 'parking_engine.log')))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )
    return logging.getLogger(__name__)


class ParkingApplication:
    """Main application controller that sets up all components"""

    def __init__(self, config_path: Optional[str] = None, log_level: str = "INFO",
                 log_dir: Optional[str] = "logs"):
        self.logger = setup_logging(log_level, log_dir)
        self.logger.info("Starting Parking Engine...")
        self.config_path = config_path
        self.setup_components()

    def setup_components(self) -> None:
        """Initialize all application components with dependency injection"""
        try:
            # 1. Configuration
            self.config = load_config(self.config_path)
            self.logger.info(f"Configuration loaded: {self.config}")

            # 2. Engine, registry, statistics
            self.parking_service: ParkingService = ParkingServiceFactory.create_service(self.config)
            self.logger.info("Parking service initialized")

            # 3. Display sink
            self.display = DisplayEventHandler()
            self.parking_service.subscribe(self.display)

        except ParkingError as e:
            self.logger.error(f"Failed to initialize components: {e}")
            raise

    def run_demo(self) -> None:
        """Park and release a few vehicles so the event flow is visible"""
        service = self.parking_service
        car = service.create_vehicle("car", "12-345-67", "Dana", color="Red")
        motorcycle = service.create_vehicle("motorcycle", "98-765", "Noa", is_accessible=True)
        service.park_vehicle(car)

        subscription_id = service.create_subscription(motorcycle.license_plate, "Noa", 1)
        service.park_subscriber_vehicle(motorcycle, subscription_id)

        service.remove_vehicle(car.license_plate)
        service.remove_subscriber_vehicle(motorcycle.license_plate, subscription_id)

    def run(self, demo: bool = False) -> None:
        if demo:
            self.run_demo()
        self.parking_service.parking_lot.publish_status()
        status = self.parking_service.get_status()
        self.logger.info(f"Lot status: {status.to_json()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parking-engine",
        description="Parking allocation and session lifecycle engine",
    )
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-dir", default="logs",
                        help="Directory for the log file (empty to disable)")
    parser.add_argument("--demo", action="store_true",
                        help="Run a short park/remove demonstration")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    try:
        app = ParkingApplication(args.config, args.log_level, args.log_dir or None)
        app.run(demo=args.demo)
    except ParkingError as e:
        logging.error(f"Fatal error in main: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
