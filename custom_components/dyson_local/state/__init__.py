"""State model and report helpers for Dyson devices."""

from .model import (
    AirQuality,
    CommandIntent,
    DeviceState,
    FanMode,
    HeatingMode,
    HumidityMode,
    TemperatureUnit,
)
from .report import ReportShape, StateReport

__all__ = [
    "AirQuality",
    "CommandIntent",
    "DeviceState",
    "FanMode",
    "HeatingMode",
    "HumidityMode",
    "ReportShape",
    "StateReport",
    "TemperatureUnit",
]
