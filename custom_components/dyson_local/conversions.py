"""Numeric transforms shared by the decoders and the command encoder."""

from __future__ import annotations

import math
from typing import Any

from .const import KELVIN_OFFSET, SETPOINT_KELVIN_OFFSET
from .state.model import TemperatureUnit


def int_from_value(value: Any) -> int | None:
    """Parse a wire value as a base-10 integer, ``None`` when not integral."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip(), 10)
    except (TypeError, ValueError):
        return None


def round_half_up(value: float) -> int:
    """Round ``value`` to the nearest integer, halves away from zero."""

    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Return ``value`` limited to the inclusive range."""

    return min(max(value, minimum), maximum)


def pad4(value: int) -> str:
    """Render ``value`` as the fixed-width 4 character field encoding.

    Raises ``ValueError`` for values that do not fit in four digits.
    """

    number = int(value)
    if not 0 <= number <= 9999:
        msg = f"{value!r} does not fit a 4 digit field"
        raise ValueError(msg)
    return f"{number:04d}"


def kelvin_to_unit(kelvin: float, unit: TemperatureUnit) -> float:
    """Convert a kelvin reading to ``unit``."""

    celsius = kelvin - KELVIN_OFFSET
    if unit is TemperatureUnit.FAHRENHEIT:
        return celsius * 9 / 5 + 32
    return celsius


def deci_kelvin_to_unit(raw: Any, unit: TemperatureUnit) -> float | None:
    """Decode a tenths-of-kelvin wire value, ``None`` when not integral."""

    value = int_from_value(raw)
    if value is None:
        return None
    return kelvin_to_unit(value / 10.0, unit)


def celsius_to_deci_kelvin(celsius: float) -> int:
    """Encode a celsius setpoint as tenths of kelvin."""

    return round_half_up((celsius + SETPOINT_KELVIN_OFFSET) * 10.0)
