from .mock_capture import MockCaptureSource, WaveType

__all__ = ["MockCaptureSource", "WaveType"]
