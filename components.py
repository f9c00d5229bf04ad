"""
Validation components

The closed set of components the validator can be asked to check.
"""

from enum import Enum
from typing import Optional

from validation_errors import InvalidComponentError


class Component(str, Enum):
    """Components recognized as targets of a validation run."""

    DRIVER = 'driver'
    CUDA = 'cuda'
    PLUGIN = 'plugin'
    TOOLKIT = 'toolkit'
    NVIDIA_FS = 'nvidia-fs'
    GDRCOPY = 'gdrcopy'
    NVIDIA_PEERMEM = 'nvidia-peermem'
    MOFED = 'mofed'
    VGPU_MANAGER = 'vgpu-manager'
    VGPU_DEVICES = 'vgpu-devices'
    CC_MANAGER = 'cc-manager'


# Additional driver components, validated from the driver feature status file
NVIDIA_FS = Component.NVIDIA_FS.value
GDRCOPY = Component.GDRCOPY.value
NVIDIA_PEERMEM = Component.NVIDIA_PEERMEM.value

ADDITIONAL_DRIVER_COMPONENTS = frozenset({
    Component.NVIDIA_FS,
    Component.GDRCOPY,
    Component.NVIDIA_PEERMEM,
})

VALID_COMPONENTS = frozenset(component.value for component in Component)


def is_valid_component(name: Optional[str]) -> bool:
    """Return True if name is one of the recognized components."""
    return name in VALID_COMPONENTS


def parse_component(name: Optional[str]) -> Component:
    """
    Convert a component name into a Component.

    Raises:
        InvalidComponentError: If the name is not recognized
    """
    if not is_valid_component(name):
        raise InvalidComponentError(name)
    return Component(name)


def is_additional_driver_component(component: Component) -> bool:
    return component in ADDITIONAL_DRIVER_COMPONENTS
