"""Environmental sensor decoding."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .const import (
    ADVANCED_SENSORS,
    SENSOR_FORMALDEHYDE,
    SENSOR_HUMIDITY,
    SENSOR_NOX,
    SENSOR_PARTICULATE,
    SENSOR_PM10,
    SENSOR_PM25,
    SENSOR_TEMPERATURE,
    SENSOR_VOC,
    SENSOR_VOLATILE,
    VALUE_INIT,
    VALUE_OFF,
)
from .conversions import deci_kelvin_to_unit, int_from_value
from .state.model import AirQuality, DeviceState, TemperatureUnit

_LOGGER = logging.getLogger(__name__)


def _grade(thresholds: Sequence[float], worst: int) -> Callable[[float], int]:
    """Build a grader mapping a value onto 1..``worst`` via upper bounds."""

    def _grader(value: float) -> int:
        for grade, limit in enumerate(thresholds, start=1):
            if value <= limit:
                return grade
        return worst

    return _grader


def _scaled(grader: Callable[[float], int], factor: float) -> Callable[[float], int]:
    """Wrap ``grader`` so readings are multiplied by ``factor`` first."""

    return lambda value: grader(value * factor)


_VOC_SCALE = 0.125

grade_particulate = _grade((2, 4, 7, 9), 5)
grade_volatile = _scaled(_grade((3, 6, 8), 4), _VOC_SCALE)
grade_pm25 = _grade((35, 53, 70, 150), 5)
grade_pm10 = _grade((50, 75, 100, 350), 5)
grade_nox = _grade((30, 60, 80, 90), 5)
grade_formaldehyde = _grade((99, 299, 499), 4)


@dataclass(frozen=True, slots=True)
class SensorChannel:
    """A pollutant channel, its grader and where its density is recorded."""

    code: str
    grader: Callable[[float], int]
    density_attribute: str | None = None


BASIC_CHANNELS: tuple[SensorChannel, ...] = (
    SensorChannel(SENSOR_PARTICULATE, grade_particulate),
    SensorChannel(SENSOR_VOLATILE, grade_volatile),
)

ADVANCED_CHANNELS: tuple[SensorChannel, ...] = (
    SensorChannel(SENSOR_PM25, grade_pm25, "pm25_density"),
    SensorChannel(SENSOR_PM10, grade_pm10, "pm10_density"),
    SensorChannel(SENSOR_VOC, grade_volatile, "voc_density"),
    SensorChannel(SENSOR_NOX, grade_nox, "nox_density"),
    SensorChannel(SENSOR_FORMALDEHYDE, grade_formaldehyde, "formaldehyde_density"),
)


def _density(value: Any) -> int:
    """Parse a density reading; warm-up and garbage readings count as 0."""

    if value == VALUE_INIT:
        return 0
    parsed = int_from_value(value)
    return 0 if parsed is None else parsed


class SensorDecoder:
    """Decode ``ENVIRONMENTAL-CURRENT-SENSOR-DATA`` payloads into the state."""

    def __init__(
        self, *, temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    ) -> None:
        """Initialise the decoder for the configured display unit."""

        self.temperature_unit = temperature_unit

    def apply(self, data: Mapping[str, Any], state: DeviceState) -> None:
        """Update temperature, humidity and air quality from ``data``."""

        self._apply_temperature(data, state)
        self._apply_humidity(data, state)
        if any(code in data for code in ADVANCED_SENSORS):
            self._apply_air_quality(data, state, ADVANCED_CHANNELS)
        elif SENSOR_PARTICULATE in data or SENSOR_VOLATILE in data:
            self._apply_air_quality(data, state, BASIC_CHANNELS)

    def _apply_temperature(self, data: Mapping[str, Any], state: DeviceState) -> None:
        raw = data.get(SENSOR_TEMPERATURE)
        if raw is None or raw == VALUE_OFF:
            return
        temperature = deci_kelvin_to_unit(raw, self.temperature_unit)
        if temperature is None:
            _LOGGER.debug("Ignoring non-numeric temperature %r", raw)
            return
        state.temperature = temperature

    def _apply_humidity(self, data: Mapping[str, Any], state: DeviceState) -> None:
        raw = data.get(SENSOR_HUMIDITY)
        if raw is None or raw == VALUE_OFF:
            return
        humidity = int_from_value(raw)
        if humidity is None:
            _LOGGER.debug("Ignoring non-numeric humidity %r", raw)
            return
        state.humidity = humidity

    def _apply_air_quality(
        self,
        data: Mapping[str, Any],
        state: DeviceState,
        channels: Sequence[SensorChannel],
    ) -> None:
        """Grade every channel; the poorest channel decides the overall grade.

        A channel reporting ``OFF`` means continuous monitoring is disabled,
        in which case the previous air quality is kept untouched.
        """

        present = [channel for channel in channels if channel.code in data]
        if any(data.get(channel.code) == VALUE_OFF for channel in present):
            _LOGGER.debug("Continuous monitoring disabled, keeping air quality")
            return

        densities = {channel: _density(data.get(channel.code)) for channel in present}
        worst = max(
            (channel.grader(value) for channel, value in densities.items()),
            default=0,
        )
        state.air_quality = AirQuality.from_grade(worst)
        for channel, value in densities.items():
            if channel.density_attribute is not None:
                setattr(state, channel.density_attribute, value)
