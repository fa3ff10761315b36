"""Meter configuration handling for zlockin.

Meter configurations live in INI files, one section per meter:

[Mock]
sample_rate = 500e3
clock_freq = 125e6
pwm_freq = 500
duty_cycle_percent = 50
series_resistance = 100000
reference_resistance = 9500
iterations = 1000
save_dir = ./zlockin_data/

# Capture device
device.capture.type = MockCaptureSource
device.capture.input_amplitude = 500
device.capture.noise_sigma = 5

Search order:
1. ~/.zlockin/meters.ini
2. package/system/meters/<meter_name>.ini

See Also
--------
zlockin.types.config : MeterConfig and ExcitationConfig
zlockin.device : Capture device implementations
"""

from __future__ import annotations

from configparser import ConfigParser
from pathlib import Path

from loguru import logger

from zlockin.device import Device, get_valid_device_types
from zlockin.types.config import ExcitationConfig, MeterConfig

CONFIG_VERSION = "1"

# INI key -> (MeterConfig attribute, converter)
_METER_KEYS = {
    "sample_rate": float,
    "series_resistance": float,
    "reference_resistance": float,
    "iterations": int,
    "capture_timeout_s": float,
    "poll_interval_s": float,
    "adc_bits": int,
    "max_capacity": int,
    "save_dir": str,
}
_EXCITATION_KEYS = {
    "clock_freq": float,
    "pwm_freq": float,
    "duty_cycle_percent": float,
}
_DEVICE_PREFIX = "device.capture."


def user_meters_file() -> Path:
    return Path.home() / ".zlockin" / "meters.ini"


def package_meters_dir() -> Path:
    return Path(__file__).parent / "meters"


def validate_meter_config(config: ConfigParser, section: str) -> tuple[bool, str]:
    """Validate meter configuration section.

    Parameters
    ----------
    config : ConfigParser
        ConfigParser instance containing the configuration
    section : str
        Name of the section to validate

    Returns
    -------
    tuple[bool, str]
        (is_valid, error_message)
    """
    if section not in config:
        return False, f"Missing section: {section}"
    sec = config[section]

    for key, conv in {**_METER_KEYS, **_EXCITATION_KEYS}.items():
        if key in sec:
            try:
                conv(float(sec[key])) if conv is int else conv(sec[key])
            except ValueError:
                return False, f"Invalid value for {key}: {sec[key]}"

    dev_type = sec.get(_DEVICE_PREFIX + "type")
    if dev_type is None:
        return False, "Missing required field: device.capture.type"
    if dev_type not in get_valid_device_types():
        return False, f"Invalid device type: {dev_type}"

    for key in sec:
        if key.startswith("device.") and not key.startswith(_DEVICE_PREFIX):
            return False, f"Invalid device prefix: {key.split('.')[1]}"

    return True, ""


def load_meter_config(meter_name: str) -> MeterConfig:
    """Load meter configuration from INI file.

    User configurations (~/.zlockin/meters.ini) take precedence over package
    defaults. Section names are matched case-insensitively.

    Parameters
    ----------
    meter_name : str
        Name of the meter configuration to load

    Returns
    -------
    MeterConfig
        Loaded and validated meter configuration

    Raises
    ------
    ValueError
        If the meter is not found or its configuration is invalid
    """
    user_file = user_meters_file()
    package_file = package_meters_dir() / f"{meter_name.lower()}.ini"

    for path in (user_file, package_file):
        if not path.exists():
            continue
        config = ConfigParser()
        config.read(path)
        for section in config.sections():
            if section.lower() == meter_name.lower():
                logger.debug("Loading meter '{}' from {}", section, path)
                return _create_meter_config(config, section)

    raise ValueError(
        f"Meter '{meter_name}' not found in:\n"
        f"- User config: {user_file}\n"
        f"- Package config: {package_file}"
    )


def list_available_meters() -> dict[str, str]:
    """List all available meter configurations.

    Returns
    -------
    dict[str, str]
        Meter names mapped to their source ('user' or 'package'); user
        configurations override package defaults
    """
    meters = {}
    if package_meters_dir().exists():
        for file in sorted(package_meters_dir().glob("*.ini")):
            config = ConfigParser()
            config.read(file)
            for section in config.sections():
                meters[section] = "package"

    if user_meters_file().exists():
        config = ConfigParser()
        config.read(user_meters_file())
        for section in config.sections():
            meters[section] = "user"
    return meters


def create_default_meters_file(file_path: Path) -> None:
    """Create a meters.ini with the Mock meter, preserving existing sections."""
    file_path = Path(file_path)
    logger.debug("Creating default meters file at {}", file_path)

    config = ConfigParser()
    config["DEFAULT"] = {"version": CONFIG_VERSION}
    defaults = MeterConfig()
    config["Mock"] = {
        "sample_rate": str(defaults.sample_rate),
        "clock_freq": str(defaults.excitation.clock_freq),
        "pwm_freq": str(defaults.excitation.pwm_freq),
        "duty_cycle_percent": str(defaults.excitation.duty_cycle_percent),
        "series_resistance": str(defaults.series_resistance),
        "reference_resistance": str(defaults.reference_resistance),
        "iterations": str(defaults.iterations),
        "save_dir": defaults.save_dir,
        "device.capture.type": "MockCaptureSource",
        "device.capture.input_amplitude": "500",
        "device.capture.input_phase_deg": "-30",
        "device.capture.noise_sigma": "5",
    }

    if file_path.exists():
        existing = ConfigParser()
        existing.read(file_path)
        for section in existing.sections():
            if section not in config:
                logger.debug("Preserving existing section: {}", section)
                config[section] = {}
            for key, value in existing[section].items():
                if key not in config[section] or section != "Mock":
                    config[section][key] = value

    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w") as f:
        config.write(f)


def build_capture_source(meter_config: MeterConfig) -> Device:
    """Instantiate (but do not open) the capture device of a meter.

    Parameters
    ----------
    meter_config : MeterConfig
        Meter configuration naming the device type and its parameters

    Returns
    -------
    Device
        Capture device, configured with the meter's timing where the device
        declares it in `meter_config_keys`
    """
    device_types = get_valid_device_types()
    if meter_config.capture_type not in device_types:
        raise ValueError(f"Invalid device type: {meter_config.capture_type}")
    device_class = device_types[meter_config.capture_type]

    params = dict(meter_config.capture_params)
    for key in device_class.meter_config_keys:
        params.setdefault(key, getattr(meter_config, key))
    logger.debug("Building {} with {}", device_class.__name__, params)
    return device_class(**params)


def _create_meter_config(config: ConfigParser, meter_name: str) -> MeterConfig:
    is_valid, error_msg = validate_meter_config(config, meter_name)
    if not is_valid:
        logger.error("Invalid meter configuration '{}': {}", meter_name, error_msg)
        raise ValueError(error_msg)

    section = config[meter_name]

    excitation_kwargs = {
        key: conv(section[key])
        for key, conv in _EXCITATION_KEYS.items()
        if key in section
    }
    meter_kwargs = {}
    for key, conv in _METER_KEYS.items():
        if key in section:
            # int keys may be written as floats, e.g. 4e6
            meter_kwargs[key] = (
                int(float(section[key])) if conv is int else conv(section[key])
            )

    capture_params = {}
    for key in section:
        if key.startswith(_DEVICE_PREFIX) and key != _DEVICE_PREFIX + "type":
            capture_params[key[len(_DEVICE_PREFIX) :]] = section[key]

    meter_config = MeterConfig(
        name=meter_name,
        excitation=ExcitationConfig(**excitation_kwargs),
        capture_type=section[_DEVICE_PREFIX + "type"],
        capture_params=capture_params,
        **meter_kwargs,
    )
    meter_config.validate()
    return meter_config
