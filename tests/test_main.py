"""
Tests for the validator entry point
"""

import argparse

import pytest

import main
from components import Component, NVIDIA_FS
from driver_features import FeatureProbe


class FakeProbe(FeatureProbe):
    def __init__(self, error=None):
        self.error = error

    def probe(self, ctx):
        if self.error is not None:
            raise self.error


def write_driver_status(output_dir, content):
    (output_dir / main.DRIVER_STATUS_FILE).write_text(content)


def test_additional_component_success_writes_status_file(tmp_path):
    write_driver_status(tmp_path, "GDS_ENABLED: true")
    validator = main.Validator(
        Component.NVIDIA_FS, output_dir=str(tmp_path), probes={NVIDIA_FS: FakeProbe()}
    )

    assert validator.run() is True
    assert (tmp_path / "nvidia-fs-ready").exists()


def test_additional_component_failure_removes_stale_status_file(tmp_path):
    write_driver_status(tmp_path, "GDS_ENABLED: true")
    (tmp_path / "nvidia-fs-ready").touch()
    validator = main.Validator(
        Component.NVIDIA_FS,
        output_dir=str(tmp_path),
        probes={NVIDIA_FS: FakeProbe(RuntimeError("nvidia_fs not loaded"))},
    )

    assert validator.run() is False
    assert not (tmp_path / "nvidia-fs-ready").exists()


def test_additional_component_missing_driver_status(tmp_path):
    validator = main.Validator(Component.GDRCOPY, output_dir=str(tmp_path), probes={})

    assert validator.run() is False
    assert not (tmp_path / "gdrcopy-ready").exists()


def test_container_ready_marker(tmp_path):
    validator = main.Validator(Component.CC_MANAGER, output_dir=str(tmp_path))
    assert validator.run() is False

    (tmp_path / ".cc-manager-ctr-ready").touch()
    assert validator.run() is True
    assert (tmp_path / "cc-manager-ready").exists()


@pytest.mark.parametrize("component", ["", "foobar"])
def test_main_rejects_invalid_component(component, caplog):
    with pytest.raises(SystemExit) as excinfo:
        main.main(["--component", component])
    assert excinfo.value.code == 1
    assert "invalid component specified for validation" in caplog.text


def test_main_exit_codes(tmp_path):
    write_driver_status(tmp_path, "GDRCOPY_ENABLED: false\nGDS_ENABLED: false")

    with pytest.raises(SystemExit) as excinfo:
        main.main(["--component", "gdrcopy", "--output-dir", str(tmp_path)])
    assert excinfo.value.code == 0
    assert (tmp_path / "gdrcopy-ready").exists()

    with pytest.raises(SystemExit) as excinfo:
        main.main(["--component", "toolkit", "--output-dir", str(tmp_path)])
    assert excinfo.value.code == 1


@pytest.mark.parametrize("value, want", [("0", None), ("30", 30.0), ("1.5", 1.5)])
def test_parse_timeout(value, want):
    assert main.parse_timeout(value) == want


@pytest.mark.parametrize("value", ["-1", "soon", "nan", "inf", "-inf"])
def test_parse_timeout_rejects_invalid(value):
    with pytest.raises(argparse.ArgumentTypeError):
        main.parse_timeout(value)
