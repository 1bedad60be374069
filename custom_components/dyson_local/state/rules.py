"""Per-feature decode and encode rules for product state fields."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from ..capabilities import CapabilitySet
from ..const import (
    CODE_ANGLE,
    CODE_AUTO,
    CODE_CARBON_FILTER,
    CODE_CONTINUOUS_MONITORING,
    CODE_DIRECTION,
    CODE_ERROR,
    CODE_FAN_MODE,
    CODE_FAN_SPEED,
    CODE_FAN_STATE,
    CODE_FILTER_HOURS,
    CODE_FOCUS,
    CODE_HEATING_MODE,
    CODE_HEATING_TARGET,
    CODE_HEPA_FILTER,
    CODE_HUMIDIFY,
    CODE_HUMIDIFY_AUTO,
    CODE_HUMIDIFY_STATE,
    CODE_HUMIDITY_TARGET,
    CODE_NIGHT_MODE,
    CODE_OSCILLATION,
    CODE_OSCILLATION_LOWER,
    CODE_OSCILLATION_UPPER,
    CODE_POWER,
    CODE_TILT,
    CODE_WARNING,
    DEFAULT_FILTER_LIFE_HOURS,
    DEFAULT_SWING_WIDTH,
    FAN_SPEED_STEP,
    FILTER_CHANGE_THRESHOLD,
    SWING_CENTER_OFFSET,
    SWING_MAX_ANGLE,
    SWING_MIN_ANGLE,
    SWING_WIDTHS,
    VALUE_AUTO,
    VALUE_CUSTOM,
    VALUE_FAN,
    VALUE_HEAT,
    VALUE_HUMIDIFY,
    VALUE_INVALID,
    VALUE_OFF,
    VALUE_ON,
    VALUE_TILT,
)
from ..conversions import (
    celsius_to_deci_kelvin,
    clamp,
    deci_kelvin_to_unit,
    int_from_value,
    pad4,
    round_half_up,
)
from .model import (
    CommandIntent,
    DeviceState,
    FanMode,
    HeatingMode,
    HumidityMode,
    TemperatureUnit,
)
from .report import StateReport

_LOGGER = logging.getLogger(__name__)

CommandFields = dict[str, str]


@dataclass(frozen=True, slots=True)
class DecodeContext:
    """Per-device parameters that influence decoding."""

    temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    filter_life_divisor: int = DEFAULT_FILTER_LIFE_HOURS


def _on_off(value: bool) -> str:
    """Encode a flag as ``ON`` or ``OFF``."""

    return VALUE_ON if value else VALUE_OFF


def _is_on(value: Any) -> bool:
    """Return True for any reported value other than ``OFF``."""

    return value != VALUE_OFF


class FeatureRule:
    """Base class pairing a decode hook with its inverse command hook."""

    name = "feature"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:  # pragma: no cover - override hook
        """Apply the fields this feature owns from ``report`` to ``state``."""

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Translate ``intent`` into wire fields this feature owns."""

        return {}


class PowerRule(FeatureRule):
    """Power flag carried by ``fpwr`` or, on older models, ``fmod``."""

    name = "power"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """Derive power, letting ``fmod`` win when both are present."""

        if CODE_POWER in report:
            state.power = _is_on(report[CODE_POWER])
        if CODE_FAN_MODE in report:
            state.power = _is_on(report[CODE_FAN_MODE])

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode power on whichever power field the device exposes."""

        if intent.power is None:
            return {}
        fields: CommandFields = {}
        if capabilities.has(CODE_FAN_MODE):
            mode = intent.mode or state.mode
            fan_mode = VALUE_AUTO if mode is FanMode.AUTO else VALUE_FAN
            fields[CODE_FAN_MODE] = fan_mode if intent.power else VALUE_OFF
        if capabilities.has(CODE_POWER):
            fields[CODE_POWER] = _on_off(intent.power)
        return fields


class FanModeRule(FeatureRule):
    """Active flag and manual/auto mode."""

    name = "mode"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """Derive active and mode from ``fnst`` plus ``auto`` or ``fmod``."""

        if report.has_all(CODE_POWER, CODE_FAN_STATE, CODE_AUTO):
            state.active = _is_on(report[CODE_FAN_STATE])
            state.mode = (
                FanMode.MANUAL if report[CODE_AUTO] == VALUE_OFF else FanMode.AUTO
            )
        if report.has_all(CODE_FAN_MODE, CODE_FAN_STATE):
            state.active = _is_on(report[CODE_FAN_STATE])
            auto = report[CODE_FAN_MODE] == VALUE_AUTO
            state.mode = FanMode.AUTO if auto else FanMode.MANUAL

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode the mode as ``fmod`` or ``auto`` depending on the model.

        A power-off request owns ``fmod``, so no mode is encoded there.
        """

        if intent.mode is None:
            return {}
        auto = intent.mode is FanMode.AUTO
        if capabilities.has(CODE_FAN_MODE):
            if intent.power is False:
                return {}
            return {CODE_FAN_MODE: VALUE_AUTO if auto else VALUE_FAN}
        if capabilities.has(CODE_AUTO):
            return {CODE_AUTO: _on_off(auto)}
        return {}


class FanSpeedRule(FeatureRule):
    """Fan speed in percent, reported in tenths as ``fnsp``."""

    name = "speed"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """A numeric speed implies the fan runs in manual mode."""

        if CODE_FAN_SPEED not in report:
            return
        value = report[CODE_FAN_SPEED]
        if value in (VALUE_AUTO, VALUE_OFF):
            return
        step = int_from_value(value)
        if step is None:
            _LOGGER.debug("Ignoring non-numeric fan speed %r", value)
            return
        state.speed = step * FAN_SPEED_STEP
        state.active = True
        state.mode = FanMode.MANUAL

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode the speed as a zero padded step count."""

        if intent.speed is None:
            return {}
        speed = clamp(intent.speed, 0, 100)
        return {CODE_FAN_SPEED: pad4(round_half_up(speed / FAN_SPEED_STEP))}


class ToggleRule(FeatureRule):
    """Boolean feature stored as ``ON``/``OFF`` under a single code."""

    def __init__(self, code: str, attribute: str, *, inverted: bool = False) -> None:
        """Bind ``code`` to the ``attribute`` of the device state."""

        self.code = code
        self.name = attribute
        self._inverted = inverted

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """Store the flag, inverting it for reverse-sense codes."""

        if self.code not in report:
            return
        enabled = _is_on(report[self.code])
        setattr(state, self.name, not enabled if self._inverted else enabled)

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode the requested flag."""

        value = getattr(intent, self.name)
        if value is None:
            return {}
        return {self.code: _on_off(not value if self._inverted else value)}


class OscillationRule(ToggleRule):
    """Oscillation on/off switch."""

    def __init__(self) -> None:
        """Bind ``oson`` to the swing flag."""

        super().__init__(CODE_OSCILLATION, "swing_enabled")

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode the swing request."""

        if intent.swing is None:
            return {}
        return {self.code: _on_off(intent.swing)}


class OscillationAngleRule(FeatureRule):
    """Oscillation width and center.

    The device reports the sweep as absolute ``osal``/``osau`` bounds where
    180 degrees points straight ahead; the model keeps a signed center
    offset and a width instead.
    """

    name = "swing_geometry"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """Decode the preset width and the custom bounds."""

        if CODE_ANGLE in report:
            width = int_from_value(report[CODE_ANGLE])
            if width is not None:
                state.swing_width = width
                state.swing_custom = width not in SWING_WIDTHS

        if report.has_all(CODE_OSCILLATION_LOWER, CODE_OSCILLATION_UPPER):
            lower = int_from_value(report[CODE_OSCILLATION_LOWER])
            upper = int_from_value(report[CODE_OSCILLATION_UPPER])
            if lower is None or upper is None:
                return
            width = upper - lower
            state.swing_center = round_half_up(
                upper - width / 2.0 - SWING_CENTER_OFFSET
            )
            if width in SWING_WIDTHS:
                state.swing_width = width
                state.swing_custom = False
            else:
                state.swing_custom = True

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode width presets and the clamped absolute bounds."""

        if not intent.has_swing_geometry:
            return {}
        center = intent.swing_center
        if center is None:
            center = state.swing_center or 0
        width = intent.swing_width
        if width is None:
            width = state.swing_width or DEFAULT_SWING_WIDTH

        fields: CommandFields = {}
        if capabilities.has(CODE_ANGLE):
            fields[CODE_ANGLE] = pad4(width) if center == 0 else VALUE_CUSTOM
        # Bounds are sent for centered sweeps too, so osal/osau always agree
        # with ancp and decode back to the same center and width.
        if capabilities.has(CODE_OSCILLATION_LOWER):
            midpoint = center + SWING_CENTER_OFFSET
            first = clamp(midpoint - width / 2.0, SWING_MIN_ANGLE, SWING_MAX_ANGLE)
            second = clamp(midpoint + width / 2.0, SWING_MIN_ANGLE, SWING_MAX_ANGLE)
            fields[CODE_OSCILLATION_LOWER] = pad4(round_half_up(min(first, second)))
            fields[CODE_OSCILLATION_UPPER] = pad4(round_half_up(max(first, second)))
        return fields


class TiltRule(FeatureRule):
    """Tilt sensor, always read from the second element of the raw value."""

    name = "tilt"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """Flag the device as tilted."""

        if report.raw(CODE_TILT) is not None:
            state.tilt = report.second(CODE_TILT) == VALUE_TILT


class TextRule(FeatureRule):
    """Opaque string passed through unchanged, such as fault codes."""

    def __init__(self, code: str, attribute: str) -> None:
        """Bind ``code`` to ``attribute``."""

        self.code = code
        self.name = attribute

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """Copy the current value."""

        if self.code in report:
            setattr(state, self.name, str(report[self.code]))


class FilterLifeRule(FeatureRule):
    """Remaining filter life from per-filter percentages or hours."""

    name = "filter_life"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """The most worn filter decides the reported life."""

        if report.has_all(CODE_CARBON_FILTER, CODE_HEPA_FILTER):
            carbon = self._percentage(report[CODE_CARBON_FILTER])
            hepa = self._percentage(report[CODE_HEPA_FILTER])
            if carbon is not None and hepa is not None:
                self._store(state, min(carbon, hepa))

        if CODE_FILTER_HOURS in report:
            hours = int_from_value(report[CODE_FILTER_HOURS])
            if hours is not None:
                life = math.ceil(hours * 100 / context.filter_life_divisor)
                self._store(state, int(clamp(life, 0, 100)))

    @staticmethod
    def _percentage(value: Any) -> int | None:
        if value == VALUE_INVALID:
            return 100
        return int_from_value(value)

    @staticmethod
    def _store(state: DeviceState, life: int) -> None:
        state.filter_life = life
        state.filter_change_required = life < FILTER_CHANGE_THRESHOLD


class HeatingRule(FeatureRule):
    """Heater mode and target temperature."""

    name = "heating"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """The heater only counts as heating while the device is powered."""

        if CODE_HEATING_MODE in report:
            heating = bool(state.power) and _is_on(report[CODE_HEATING_MODE])
            state.heating_mode = HeatingMode.HEAT if heating else HeatingMode.OFF
        if CODE_HEATING_TARGET in report:
            setpoint = deci_kelvin_to_unit(
                report[CODE_HEATING_TARGET], TemperatureUnit.CELSIUS
            )
            if setpoint is not None:
                state.heating_setpoint = setpoint

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode the heater mode and the setpoint in tenths of kelvin."""

        fields: CommandFields = {}
        if intent.heating_mode is not None:
            fields[CODE_HEATING_MODE] = (
                VALUE_HEAT if intent.heating_mode is HeatingMode.HEAT else VALUE_OFF
            )
        if intent.heating_setpoint is not None:
            fields[CODE_HEATING_TARGET] = pad4(
                celsius_to_deci_kelvin(intent.heating_setpoint)
            )
        return fields


class HumidityRule(FeatureRule):
    """Humidifier mode, active mode and target humidity."""

    name = "humidity"

    def parse(
        self, report: StateReport, state: DeviceState, context: DecodeContext
    ) -> None:
        """Refine the humidifier mode with ``msta`` when it is reported."""

        if CODE_HUMIDIFY in report:
            humidify = _is_on(report[CODE_HUMIDIFY])
            mode = HumidityMode.HUMIDIFY if humidify else HumidityMode.OFF
            if humidify and CODE_HUMIDIFY_STATE in report:
                if report[CODE_HUMIDIFY_STATE] == VALUE_OFF:
                    mode = HumidityMode.AUTO
            state.humidity_mode = mode
        if CODE_HUMIDIFY_AUTO in report:
            humidifying = bool(state.power) and _is_on(report[CODE_HUMIDIFY_AUTO])
            state.humidity_active_mode = (
                HumidityMode.HUMIDIFY if humidifying else HumidityMode.AUTO
            )
        if CODE_HUMIDITY_TARGET in report:
            target = int_from_value(report[CODE_HUMIDITY_TARGET])
            if target is not None:
                state.humidity_setpoint = target

    def to_command(
        self,
        intent: CommandIntent,
        state: DeviceState,
        capabilities: CapabilitySet,
    ) -> CommandFields:
        """Encode the humidifier switch, auto flag and target."""

        fields: CommandFields = {}
        mode = intent.humidity_mode
        if mode is not None:
            if mode is HumidityMode.OFF:
                fields[CODE_HUMIDIFY] = VALUE_OFF
            else:
                fields[CODE_HUMIDIFY] = VALUE_HUMIDIFY
                fields[CODE_HUMIDIFY_AUTO] = _on_off(mode is HumidityMode.AUTO)
        if intent.humidity_setpoint is not None:
            target = int(clamp(intent.humidity_setpoint, 0, 100))
            fields[CODE_HUMIDITY_TARGET] = pad4(target)
        return fields


def default_rules() -> tuple[FeatureRule, ...]:
    """Return the rule set in application order.

    Power is decoded first so the heater and humidifier rules see the power
    flag carried by the same report.
    """

    return (
        PowerRule(),
        FanModeRule(),
        OscillationRule(),
        OscillationAngleRule(),
        FanSpeedRule(),
        ToggleRule(CODE_CONTINUOUS_MONITORING, "continuous_monitoring"),
        ToggleRule(CODE_NIGHT_MODE, "night_mode"),
        ToggleRule(CODE_FOCUS, "focus_mode"),
        ToggleRule(CODE_DIRECTION, "backwards_airflow", inverted=True),
        TiltRule(),
        TextRule(CODE_ERROR, "error_code"),
        TextRule(CODE_WARNING, "warning_code"),
        FilterLifeRule(),
        HeatingRule(),
        HumidityRule(),
    )
