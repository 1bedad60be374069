"""User settings consumed when resynchronising a device."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

import voluptuous as vol

from .capabilities import CapabilitySet
from .const import (
    CODE_ANGLE,
    CODE_AUTO,
    CODE_CONTINUOUS_MONITORING,
    CODE_DIRECTION,
    CODE_FAN_MODE,
    CODE_FOCUS,
    CODE_NIGHT_MODE,
    CODE_OSCILLATION,
    CODE_OSCILLATION_LOWER,
    DEFAULT_SWING_WIDTH,
    SWING_CENTER_RANGE,
    SWING_WIDTHS,
)
from .state.model import TemperatureUnit

SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional("temperature_unit", default=TemperatureUnit.CELSIUS.value): vol.In(
            [unit.value for unit in TemperatureUnit]
        ),
        vol.Optional("auto_mode", default=False): bool,
        vol.Optional("continuous_monitoring", default=False): bool,
        vol.Optional("night_mode", default=False): bool,
        vol.Optional("focus_mode", default=False): bool,
        vol.Optional("swing_mode", default=False): bool,
        vol.Optional("backwards_airflow", default=False): bool,
        vol.Optional("swing_center", default=0): vol.All(
            int, vol.Range(min=SWING_CENTER_RANGE[0], max=SWING_CENTER_RANGE[1])
        ),
        vol.Optional("swing_degrees", default=DEFAULT_SWING_WIDTH): vol.All(
            vol.Coerce(int), vol.In(SWING_WIDTHS)
        ),
    }
)

# Settings shown only when the device exposes one of the listed codes; an
# empty tuple means the setting is always shown.
SETTING_CAPABILITIES: dict[str, tuple[str, ...]] = {
    "temperature_unit": (),
    "auto_mode": (CODE_AUTO, CODE_FAN_MODE),
    "continuous_monitoring": (CODE_CONTINUOUS_MONITORING,),
    "night_mode": (CODE_NIGHT_MODE,),
    "swing_mode": (CODE_OSCILLATION,),
    "swing_center": (CODE_OSCILLATION_LOWER,),
    "swing_degrees": (CODE_ANGLE,),
    "focus_mode": (CODE_FOCUS,),
    "backwards_airflow": (CODE_DIRECTION,),
}


class InvalidSettingsError(ValueError):
    """Raised when user settings fail validation."""


@dataclass(frozen=True, slots=True)
class DysonSettings:
    """Validated user settings for one device."""

    temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    auto_mode: bool = False
    continuous_monitoring: bool = False
    night_mode: bool = False
    focus_mode: bool = False
    swing_mode: bool = False
    backwards_airflow: bool = False
    swing_center: int = 0
    swing_degrees: int = DEFAULT_SWING_WIDTH

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DysonSettings:
        """Validate ``data`` and build settings, filling in defaults.

        Raises :class:`InvalidSettingsError` for unknown keys or bad values.
        """

        try:
            validated = SETTINGS_SCHEMA(dict(data))
        except vol.Invalid as exc:
            raise InvalidSettingsError(str(exc)) from exc
        validated["temperature_unit"] = TemperatureUnit(validated["temperature_unit"])
        return cls(**validated)

    def as_dict(self) -> dict[str, Any]:
        """Return the settings as plain values suitable for storage."""

        data = asdict(self)
        data["temperature_unit"] = self.temperature_unit.value
        return data

    def update(self, **changes: Any) -> DysonSettings:
        """Return validated settings with ``changes`` applied."""

        merged = self.as_dict()
        merged.update(changes)
        return self.from_mapping(merged)


def visible_settings(capabilities: CapabilitySet | None) -> list[str]:
    """Return the setting keys a device with ``capabilities`` supports.

    Every setting is listed while the capabilities are still unknown.
    """

    if capabilities is None:
        return list(SETTING_CAPABILITIES)
    return [
        key
        for key, codes in SETTING_CAPABILITIES.items()
        if not codes or capabilities.has_any(*codes)
    ]
