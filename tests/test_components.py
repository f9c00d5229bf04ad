"""
Tests for the component registry
"""

import pytest

from components import (
    GDRCOPY,
    NVIDIA_FS,
    NVIDIA_PEERMEM,
    Component,
    is_additional_driver_component,
    is_valid_component,
    parse_component,
)
from validation_errors import InvalidComponentError, ValidationErrorCode


@pytest.mark.parametrize("component, want", [
    ("driver", True),
    ("cuda", True),
    ("plugin", True),
    ("toolkit", True),
    (NVIDIA_FS, True),
    (GDRCOPY, True),
    (NVIDIA_PEERMEM, True),
    ("mofed", True),
    ("vgpu-manager", True),
    ("vgpu-devices", True),
    ("cc-manager", True),
    ("", False),
    ("unknown", False),
    ("foobar", False),
    ("Driver", False),
    (" driver", False),
    (None, False),
])
def test_is_valid_component(component, want):
    assert is_valid_component(component) is want


def test_additional_component_constants():
    assert NVIDIA_FS == "nvidia-fs"
    assert GDRCOPY == "gdrcopy"
    assert NVIDIA_PEERMEM == "nvidia-peermem"


def test_every_enum_member_is_valid():
    for component in Component:
        assert is_valid_component(component.value)


def test_parse_component():
    assert parse_component("toolkit") is Component.TOOLKIT
    assert parse_component(NVIDIA_PEERMEM) is Component.NVIDIA_PEERMEM


@pytest.mark.parametrize("name", ["", "foobar", None])
def test_parse_component_rejects_unknown(name):
    with pytest.raises(InvalidComponentError) as excinfo:
        parse_component(name)
    assert excinfo.value.code is ValidationErrorCode.INVALID_COMPONENT


def test_is_additional_driver_component():
    additional = {c for c in Component if is_additional_driver_component(c)}
    assert additional == {Component.NVIDIA_FS, Component.GDRCOPY, Component.NVIDIA_PEERMEM}
