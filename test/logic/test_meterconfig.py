"""Tests for meter configuration handling."""

from configparser import ConfigParser

import pytest

from zlockin.device import MockCaptureSource
from zlockin.system import meterconfig
from zlockin.system.meterconfig import (
    build_capture_source,
    create_default_meters_file,
    list_available_meters,
    load_meter_config,
    validate_meter_config,
)
from zlockin.types import CaptureSourceProtocol, MeterConfig


@pytest.fixture
def user_file(tmp_path, monkeypatch):
    """Redirect the user meters.ini into a temporary directory."""
    path = tmp_path / ".zlockin" / "meters.ini"
    monkeypatch.setattr(meterconfig, "user_meters_file", lambda: path)
    return path


@pytest.fixture
def custom_meters_file(user_file):
    user_file.parent.mkdir(parents=True)
    config = ConfigParser()
    config["Bench"] = {
        "sample_rate": "2e6",
        "pwm_freq": "1000",
        "series_resistance": "10000",
        "reference_resistance": "1000",
        "iterations": "5e2",
        "device.capture.type": "MockCaptureSource",
        "device.capture.input_amplitude": "700",
    }
    with user_file.open("w") as f:
        config.write(f)
    return user_file


def test_load_package_meter(user_file):
    config = load_meter_config("mock")

    assert isinstance(config, MeterConfig)
    assert config.name == "Mock"
    assert config.sample_rate == 500e3
    assert config.series_resistance == 100000.0
    assert config.reference_resistance == 9500.0
    assert config.capture_type == "MockCaptureSource"
    assert config.capture_params["noise_sigma"] == "5"


def test_section_lookup_is_case_insensitive(user_file):
    assert load_meter_config("MOCK").name == "Mock"
    assert load_meter_config("mockquiet").name == "MockQuiet"


def test_load_user_meter(custom_meters_file):
    config = load_meter_config("bench")

    assert config.name == "Bench"
    assert config.sample_rate == 2e6
    assert config.excitation.pwm_freq == 1000.0
    assert config.iterations == 500
    assert config.capture_params == {"input_amplitude": "700"}


def test_user_meter_overrides_package(user_file):
    user_file.parent.mkdir(parents=True)
    config = ConfigParser()
    config["Mock"] = {
        "sample_rate": "1e6",
        "device.capture.type": "MockCaptureSource",
    }
    with user_file.open("w") as f:
        config.write(f)

    assert load_meter_config("mock").sample_rate == 1e6
    assert list_available_meters()["Mock"] == "user"


def test_unknown_meter(user_file):
    with pytest.raises(ValueError, match="not found"):
        load_meter_config("nonexistent")


def test_list_available_meters(custom_meters_file):
    meters = list_available_meters()
    assert meters["Mock"] == "package"
    assert meters["MockQuiet"] == "package"
    assert meters["Bench"] == "user"


def test_validate_meter_config(custom_meters_file):
    config = ConfigParser()
    config.read(custom_meters_file)

    is_valid, error_msg = validate_meter_config(config, "Bench")
    assert is_valid, f"Valid configuration was marked as invalid: {error_msg}"
    assert error_msg == ""

    config["Bench"]["device.capture.type"] = "NonExistentScope"
    is_valid, error_msg = validate_meter_config(config, "Bench")
    assert not is_valid
    assert "Invalid device type" in error_msg


def test_validate_meter_config_errors(custom_meters_file):
    config = ConfigParser()
    config.read(custom_meters_file)
    del config["Bench"]["device.capture.type"]
    is_valid, error_msg = validate_meter_config(config, "Bench")
    assert not is_valid
    assert "device.capture.type" in error_msg

    config = ConfigParser()
    config.read(custom_meters_file)
    config["Bench"]["sample_rate"] = "fast"
    is_valid, error_msg = validate_meter_config(config, "Bench")
    assert not is_valid
    assert "sample_rate" in error_msg

    config = ConfigParser()
    config.read(custom_meters_file)
    config["Bench"]["device.generator.type"] = "MockCaptureSource"
    is_valid, error_msg = validate_meter_config(config, "Bench")
    assert not is_valid
    assert "Invalid device prefix" in error_msg

    assert validate_meter_config(config, "Missing")[0] is False


def test_invalid_meter_raises_on_load(custom_meters_file):
    config = ConfigParser()
    config.read(custom_meters_file)
    config["Bench"]["sample_rate"] = "1000"  # too low for 1 kHz
    with custom_meters_file.open("w") as f:
        config.write(f)

    with pytest.raises(ValueError, match="too low"):
        load_meter_config("bench")


def test_build_capture_source(custom_meters_file):
    config = load_meter_config("bench")
    source = build_capture_source(config)

    assert isinstance(source, MockCaptureSource)
    assert isinstance(source, CaptureSourceProtocol)
    assert source._sample_rate == 2e6
    assert source._excitation_frequency == pytest.approx(config.excitation_frequency)
    assert source._input_amplitude == 700.0


def test_build_capture_source_unknown_type():
    with pytest.raises(ValueError, match="Invalid device type"):
        build_capture_source(MeterConfig(capture_type="NonExistentScope"))


def test_create_default_meters_file(tmp_path):
    path = tmp_path / "meters.ini"
    create_default_meters_file(path)

    config = ConfigParser()
    config.read(path)
    assert "Mock" in config.sections()
    assert config["Mock"]["device.capture.type"] == "MockCaptureSource"
    assert validate_meter_config(config, "Mock") == (True, "")


def test_create_default_meters_file_preserves_sections(custom_meters_file):
    create_default_meters_file(custom_meters_file)

    config = ConfigParser()
    config.read(custom_meters_file)
    assert {"Mock", "Bench"} <= set(config.sections())
    assert config["Bench"]["sample_rate"] == "2e6"
    assert load_meter_config("bench").sample_rate == 2e6
