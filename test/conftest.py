import pytest

from zlockin.device import MockCaptureSource
from zlockin.types import MeterConfig


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture
def meter_config():
    """1 MS/s meter at the default (PWM-quantized) 500 Hz excitation."""
    return MeterConfig(name="test", sample_rate=1e6, iterations=20)


@pytest.fixture
def make_source(meter_config):
    """Factory for opened mock sources matching `meter_config`."""
    sources = []

    def _make(**kwargs):
        kwargs.setdefault("sample_rate", meter_config.sample_rate)
        kwargs.setdefault("excitation_frequency", meter_config.excitation_frequency)
        kwargs.setdefault("adc_bits", meter_config.adc_bits)
        source = MockCaptureSource(**kwargs)
        source.open()
        sources.append(source)
        return source

    yield _make
    for source in sources:
        source.close()
