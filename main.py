#!/usr/bin/env python3
"""
NVIDIA Validator For Kubernetes (Python Implementation)

Validates a single NVIDIA GPU Operator component on the node it runs on and
records the result as a status file under the validations directory, where
dependent operator components wait for it.

Copyright (c) 2025, NVIDIA CORPORATION. All rights reserved.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import argparse
import logging
import math
import os
import signal
import sys
from pathlib import Path
from typing import Dict, Optional

from components import Component, is_additional_driver_component, parse_component
from driver_features import FeatureProbe, ValidationContext, validate_additional_driver_components
from validation_errors import InvalidComponentError, StatusUnavailableError, ValidationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('nvidia-validator')


# Constants
OUTPUT_DIR = os.environ.get('OUTPUT_DIR', '/run/nvidia/validations')
DRIVER_STATUS_FILE = '.driver-ctr-ready'


def container_ready_file(output_dir: str, component: Component) -> Path:
    """Readiness marker written by a component's own container."""
    return Path(output_dir) / f'.{component.value}-ctr-ready'


def validation_status_file(output_dir: str, component: Component) -> Path:
    """Status file written once a component passed validation."""
    return Path(output_dir) / f'{component.value}-ready'


def create_status_file(path: Path) -> None:
    """
    Create a status file to indicate the component passed validation.
    Dependent GPU operator components wait for this file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch()
    logger.info(f"Created status file: {path}")


def remove_status_file(path: Path) -> None:
    """Remove a stale status file left by a previous run."""
    try:
        path.unlink()
        logger.info(f"Removed status file: {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove status file {path}: {e}")


class Validator:
    """Validates one GPU operator component on this node."""

    def __init__(
        self,
        component: Component,
        output_dir: str = OUTPUT_DIR,
        timeout: Optional[float] = None,
        probes: Optional[Dict[str, FeatureProbe]] = None
    ):
        """
        Initialize the Validator.

        Args:
            component: Component to validate
            output_dir: Directory holding readiness and status files
            timeout: Seconds before validation is abandoned (None for no limit)
            probes: Feature probes for the additional driver components
        """
        self.component = component
        self.output_dir = output_dir
        self.probes = probes
        self.ctx = ValidationContext(timeout=timeout)

    @property
    def driver_status_file(self) -> str:
        return os.path.join(self.output_dir, DRIVER_STATUS_FILE)

    def validate_container_ready(self) -> None:
        """
        Check the component container has signalled readiness.

        Raises:
            StatusUnavailableError: If the readiness marker is missing
        """
        ready_file = container_ready_file(self.output_dir, self.component)
        if not ready_file.exists():
            raise StatusUnavailableError(
                str(ready_file), f"{self.component.value} container is not ready"
            )
        logger.info(f"Found readiness marker {ready_file}")

    def validate(self) -> None:
        """
        Run the validation selected for the component.

        Raises:
            ValidationError: If the component failed validation
        """
        if is_additional_driver_component(self.component):
            logger.info(
                f"Validating additional driver components from {self.driver_status_file}"
            )
            validate_additional_driver_components(
                self.ctx, self.driver_status_file, self.probes
            )
        else:
            self.validate_container_ready()

    def run(self) -> bool:
        """
        Validate the component and record the outcome.

        Returns:
            True if successful, False otherwise
        """
        status_file = validation_status_file(self.output_dir, self.component)
        try:
            self.validate()
        except ValidationError as e:
            logger.error(f"Validation of {self.component.value} failed: {e}")
            remove_status_file(status_file)
            return False

        create_status_file(status_file)
        logger.info(f"Successfully validated {self.component.value}")
        return True


def parse_timeout(value: str) -> Optional[float]:
    """Timeout in seconds; 0 means no limit."""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timeout: {value!r}")
    if not math.isfinite(seconds):
        raise argparse.ArgumentTypeError(f"timeout must be a finite number: {value!r}")
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"timeout must not be negative: {value!r}")
    return seconds or None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='NVIDIA GPU Operator Validator For Kubernetes'
    )
    parser.add_argument(
        '--component', '-c',
        default=os.environ.get('COMPONENT', ''),
        help='Component to validate: ' + ', '.join(c.value for c in Component)
    )
    parser.add_argument(
        '--output-dir', '-o',
        default=OUTPUT_DIR,
        help='Directory holding readiness and validation status files'
    )
    parser.add_argument(
        '--timeout', '-t',
        type=parse_timeout,
        default=os.environ.get('VALIDATION_TIMEOUT', '0'),
        help='Seconds before validation is abandoned, 0 for no limit'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        component = parse_component(args.component)
    except InvalidComponentError as e:
        logger.error(f"{e}")
        sys.exit(1)

    validator = Validator(
        component=component,
        output_dir=args.output_dir,
        timeout=args.timeout
    )
    signal.signal(signal.SIGTERM, lambda signum, frame: validator.ctx.cancel())

    try:
        ok = validator.run()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == '__main__':
    main()
