"""
Additional Driver Component Validation

This module validates the optional driver features (GDRCOPY, GDS and
GPUDirect RDMA) that the driver container reports as enabled in its
feature status file.

The driver container writes a flat YAML record such as:

    GDRCOPY_ENABLED: true
    GDS_ENABLED: false
    GPU_DIRECT_RDMA_ENABLED: false

Only features set to true are validated. Keys this module does not know
about are kept in the parsed record but never interpreted.
"""

import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import yaml

from components import GDRCOPY, NVIDIA_FS, NVIDIA_PEERMEM
from validation_errors import (
    FeatureValidationError,
    StatusFileInvalidError,
    StatusUnavailableError,
    ValidationCancelledError,
)


logger = logging.getLogger(__name__)


PROC_MODULES = os.environ.get('PROC_MODULES', '/proc/modules')

# Feature status flags and the components validating them, in validation order
FEATURE_FLAGS = [
    ('GDRCOPY_ENABLED', GDRCOPY),
    ('GDS_ENABLED', NVIDIA_FS),
    ('GPU_DIRECT_RDMA_ENABLED', NVIDIA_PEERMEM),
]

# Kernel modules backing each additional driver component
FEATURE_KERNEL_MODULES = {
    GDRCOPY: 'gdrdrv',
    NVIDIA_FS: 'nvidia_fs',
    NVIDIA_PEERMEM: 'nvidia_peermem',
}


class ValidationContext:
    """
    Cancellation and deadline for a single validation run.

    cancel() may be called from another thread or a signal handler.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._cancelled = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout else None

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None if there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise ValidationCancelledError("validation cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise ValidationCancelledError("validation timed out")


class FeatureProbe(ABC):
    """Checks that a single driver feature is functional."""

    @abstractmethod
    def probe(self, ctx: ValidationContext) -> None:
        """
        Validate the feature.

        Raises:
            Exception: Describing why the feature is not functional
        """


class KernelModuleProbe(FeatureProbe):
    """Checks that a kernel module is loaded by looking it up in /proc/modules."""

    def __init__(self, module_name: str, modules_file: Optional[str] = None):
        self.module_name = module_name
        self.modules_file = modules_file or PROC_MODULES

    def loaded_modules(self) -> List[str]:
        with open(self.modules_file, 'r', encoding='utf-8') as f:
            return [line.split(maxsplit=1)[0] for line in f if line.strip()]

    def probe(self, ctx: ValidationContext) -> None:
        ctx.raise_if_cancelled()
        try:
            modules = self.loaded_modules()
        except OSError as e:
            raise RuntimeError(f"unable to read {self.modules_file}: {e}") from e

        if self.module_name not in modules:
            raise RuntimeError(f"kernel module {self.module_name} is not loaded")
        logger.debug(f"Kernel module {self.module_name} is loaded")

    def __repr__(self) -> str:
        return f"KernelModuleProbe({self.module_name!r})"


def default_feature_probes(modules_file: Optional[str] = None) -> Dict[str, FeatureProbe]:
    """Kernel module probes for every additional driver component."""
    return {
        feature: KernelModuleProbe(module, modules_file)
        for feature, module in FEATURE_KERNEL_MODULES.items()
    }


def load_feature_status(path: str) -> Dict[str, Any]:
    """
    Read and parse the driver feature status file.

    Args:
        path: Path to the status file

    Returns:
        Parsed record; empty if the file has no content

    Raises:
        StatusUnavailableError: If the file does not exist or cannot be read
        StatusFileInvalidError: If the content is not a YAML mapping
    """
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except FileNotFoundError as e:
        raise StatusUnavailableError(path, "file does not exist") from e
    except OSError as e:
        raise StatusUnavailableError(path, str(e)) from e

    try:
        status = yaml.safe_load(data.decode('utf-8'))
    except UnicodeDecodeError as e:
        raise StatusFileInvalidError(path, f"not valid UTF-8: {e}") from e
    except yaml.YAMLError as e:
        raise StatusFileInvalidError(path, f"unable to parse: {e}") from e

    if status is None:
        return {}
    if not isinstance(status, dict):
        raise StatusFileInvalidError(
            path, f"expected a mapping of feature flags, got {type(status).__name__}"
        )
    return status


def enabled_features(status: Dict[str, Any], path: str = '') -> List[str]:
    """
    Return the additional driver components enabled in a status record.

    Raises:
        StatusFileInvalidError: If a known flag holds a non boolean value
    """
    features = []
    for flag, feature in FEATURE_FLAGS:
        value = status.get(flag)
        if value is None:
            continue
        if not isinstance(value, bool):
            raise StatusFileInvalidError(path, f"{flag} must be a boolean, got {value!r}")
        if value:
            features.append(feature)
    return features


def validate_additional_driver_components(
    ctx: ValidationContext,
    status_file_path: str,
    probes: Optional[Dict[str, FeatureProbe]] = None
) -> None:
    """
    Validate every additional driver component enabled in the status file.

    Features run sequentially in FEATURE_FLAGS order. All enabled features
    are validated so that every failure is reported together.

    Args:
        ctx: Validation context, checked before each feature
        status_file_path: Path of the driver feature status file
        probes: Probe per component name (default: kernel module probes)

    Raises:
        StatusUnavailableError: If the status file is missing or unreadable
        StatusFileInvalidError: If the status file is malformed
        FeatureValidationError: If any enabled feature failed validation
        ValidationCancelledError: If ctx was cancelled or timed out
    """
    status = load_feature_status(status_file_path)
    features = enabled_features(status, status_file_path)
    if not features:
        logger.info("No additional driver components enabled, nothing to validate")
        return

    if probes is None:
        probes = default_feature_probes()

    failures: Dict[str, Exception] = {}
    for feature in features:
        ctx.raise_if_cancelled()
        probe = probes.get(feature)
        if probe is None:
            failures[feature] = RuntimeError(f"no probe registered for {feature}")
            continue

        logger.info(f"Validating additional driver component {feature}")
        try:
            probe.probe(ctx)
        except ValidationCancelledError:
            raise
        except Exception as e:
            logger.error(f"Validation of {feature} failed: {e}")
            failures[feature] = e
            continue
        logger.info(f"Successfully validated {feature}")

    if failures:
        raise FeatureValidationError(failures)
