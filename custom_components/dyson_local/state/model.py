"""Canonical device state mirrored from the appliance."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, IntEnum
from typing import Any


class FanMode(str, Enum):
    """Fan operating mode."""

    MANUAL = "manual"
    AUTO = "auto"


class HeatingMode(str, Enum):
    """Heater operating mode."""

    OFF = "off"
    HEAT = "heat"


class HumidityMode(str, Enum):
    """Humidifier operating mode."""

    OFF = "off"
    AUTO = "auto"
    HUMIDIFY = "humidify"


class TemperatureUnit(str, Enum):
    """Display unit for temperature readings."""

    CELSIUS = "C"
    FAHRENHEIT = "F"


class AirQuality(IntEnum):
    """Ordinal air quality grade, higher is worse."""

    UNKNOWN = 0
    EXCELLENT = 1
    GOOD = 2
    FAIR = 3
    POOR = 4
    INFERIOR = 5

    @classmethod
    def from_grade(cls, grade: int) -> AirQuality:
        """Map a numeric worst-channel grade onto the categorical scale."""

        try:
            return cls(grade)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class DeviceState:
    """Mutable mirror of everything the appliance reports.

    ``None`` means the value has not been reported during this session.
    """

    power: bool | None = None
    mode: FanMode | None = None
    active: bool | None = None
    speed: int | None = None

    swing_enabled: bool | None = None
    swing_center: int | None = None
    swing_width: int | None = None
    swing_custom: bool | None = None

    night_mode: bool | None = None
    continuous_monitoring: bool | None = None
    focus_mode: bool | None = None
    backwards_airflow: bool | None = None
    tilt: bool | None = None

    error_code: str | None = None
    warning_code: str | None = None

    filter_life: int | None = None
    filter_change_required: bool | None = None

    heating_mode: HeatingMode | None = None
    heating_setpoint: float | None = None

    humidity_mode: HumidityMode | None = None
    humidity_active_mode: HumidityMode | None = None
    humidity_setpoint: int | None = None

    temperature: float | None = None
    humidity: int | None = None
    air_quality: AirQuality = AirQuality.UNKNOWN
    pm25_density: int | None = None
    pm10_density: int | None = None
    voc_density: int | None = None
    nox_density: int | None = None
    formaldehyde_density: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return a plain dictionary copy for diagnostics and comparisons."""

        return asdict(self)


@dataclass(frozen=True)
class CommandIntent:
    """User-requested mutation; ``None`` fields are left unchanged."""

    power: bool | None = None
    mode: FanMode | None = None
    speed: int | None = None
    swing: bool | None = None
    swing_center: int | None = None
    swing_width: int | None = None
    night_mode: bool | None = None
    continuous_monitoring: bool | None = None
    focus_mode: bool | None = None
    backwards_airflow: bool | None = None
    heating_mode: HeatingMode | None = None
    heating_setpoint: float | None = None
    humidity_mode: HumidityMode | None = None
    humidity_setpoint: int | None = None

    @property
    def has_swing_geometry(self) -> bool:
        """Return True when the oscillation center or width is requested."""

        return self.swing_center is not None or self.swing_width is not None
