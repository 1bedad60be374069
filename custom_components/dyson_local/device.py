"""Device facade tying state mirroring to user initiated commands."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .capabilities import CapabilityRegistry
from .const import DEFAULT_FILTER_LIFE_HOURS, SWING_CENTER_RANGE, SWING_WIDTHS
from .conversions import clamp
from .encoder import CommandEncoder
from .iot_client import IoTClient
from .reconciler import StateListener, StateReconciler
from .settings import DysonSettings, visible_settings
from .state.model import (
    CommandIntent,
    DeviceState,
    FanMode,
    HeatingMode,
    HumidityMode,
)
from .state.rules import CommandFields

_LOGGER = logging.getLogger(__name__)


class DysonDevice:
    """One device session: capabilities, mirrored state and user settings.

    Inbound messages only ever reach the reconciler. Commands are produced
    solely from user initiated calls, and settings changes made while an
    inbound report is being applied are stored without being published.
    """

    def __init__(
        self,
        *,
        client: IoTClient | None = None,
        settings: DysonSettings | None = None,
        filter_life_divisor: int = DEFAULT_FILTER_LIFE_HOURS,
    ) -> None:
        """Create an empty session bound to an optional IoT client."""

        self.settings = settings or DysonSettings()
        self.capabilities = CapabilityRegistry()
        self.reconciler = StateReconciler(
            capabilities=self.capabilities,
            temperature_unit=self.settings.temperature_unit,
            filter_life_divisor=filter_life_divisor,
        )
        self.encoder = CommandEncoder(self.capabilities)
        self._client = client
        self.reconciler.add_listener(self._mirror_settings)

    @property
    def state(self) -> DeviceState:
        """Return the mirrored device state."""

        return self.reconciler.state

    @property
    def client(self) -> IoTClient | None:
        """Return the bound IoT client, if any."""

        return self._client

    def attach_client(self, client: IoTClient) -> None:
        """Bind ``client`` for publishing commands."""

        self._client = client

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener, see :meth:`StateReconciler.add_listener`."""

        return self.reconciler.add_listener(listener)

    def handle_message(self, payload: Any) -> str | None:
        """Feed an inbound payload to the reconciler."""

        return self.reconciler.handle_message(payload)

    def visible_settings(self) -> list[str]:
        """Return the setting keys this device supports."""

        return visible_settings(self.capabilities.capabilities)

    def update_settings(self, **changes: Any) -> CommandFields:
        """Store validated settings and return the resync payload to publish.

        The payload is empty while an inbound report is being applied or
        before the capabilities are known.
        """

        self.settings = self.settings.update(**changes)
        self.reconciler.temperature_unit = self.settings.temperature_unit
        if self.reconciler.processing:
            _LOGGER.debug("Settings changed during state processing, not publishing")
            return {}
        if not self.capabilities.is_discovered:
            _LOGGER.debug("Settings changed before discovery, not publishing")
            return {}
        return self.encoder.encode_settings(self.settings, self.state)

    async def async_update_settings(self, **changes: Any) -> CommandFields:
        """Apply settings changes and publish the resulting resync."""

        return await self._async_send(self.update_settings(**changes))

    async def async_turn_on(self) -> CommandFields:
        """Restore the configured settings and power the device on."""

        fields = self.encoder.encode_settings(self.settings, self.state, power=True)
        return await self._async_send(fields)

    async def async_turn_off(self) -> CommandFields:
        """Power the device off."""

        fields = self.encoder.encode(CommandIntent(power=False), self.state)
        return await self._async_send(fields)

    async def async_set_fan(
        self,
        *,
        speed: int | None = None,
        mode: FanMode | None = None,
        swing: bool | None = None,
    ) -> CommandFields:
        """Change fan speed, mode or oscillation.

        A zero speed sent while the device is off is ignored; controllers
        emit it alongside their own power off.
        """

        if speed == 0 and not self.state.power:
            _LOGGER.debug("Ignoring zero fan speed while the device is off")
            return {}
        intent = CommandIntent(speed=speed, mode=mode, swing=swing)
        return await self._async_send(self.encoder.encode(intent, self.state))

    async def async_set_heating(
        self,
        *,
        mode: HeatingMode | None = None,
        setpoint: float | None = None,
    ) -> CommandFields:
        """Change the heater mode or its target temperature in Celsius."""

        intent = CommandIntent(heating_mode=mode, heating_setpoint=setpoint)
        return await self._async_send(self.encoder.encode(intent, self.state))

    async def async_set_humidity(
        self,
        *,
        mode: HumidityMode | None = None,
        setpoint: int | None = None,
    ) -> CommandFields:
        """Change the humidifier mode or its target humidity."""

        intent = CommandIntent(humidity_mode=mode, humidity_setpoint=setpoint)
        return await self._async_send(self.encoder.encode(intent, self.state))

    async def async_request_refresh(self, *, force: bool = False) -> bool:
        """Ask the device for a full state report."""

        return await self._require_client().async_request_refresh(force=force)

    def _mirror_settings(self, state: DeviceState) -> None:
        """Copy toggles and oscillation geometry the device reported.

        Runs inside the processing guard, so the change is never published.
        """

        changes: dict[str, Any] = {}
        for setting, value in (
            ("swing_mode", state.swing_enabled),
            ("continuous_monitoring", state.continuous_monitoring),
            ("night_mode", state.night_mode),
            ("focus_mode", state.focus_mode),
            ("backwards_airflow", state.backwards_airflow),
        ):
            if value is not None:
                changes[setting] = value
        if state.mode is not None:
            changes["auto_mode"] = state.mode is FanMode.AUTO
        if state.swing_center is not None:
            center = clamp(state.swing_center, *SWING_CENTER_RANGE)
            changes["swing_center"] = int(center)
        if state.swing_width in SWING_WIDTHS:
            changes["swing_degrees"] = state.swing_width

        if any(getattr(self.settings, key) != value for key, value in changes.items()):
            self.settings = self.settings.update(**changes)

    async def _async_send(self, fields: CommandFields) -> CommandFields:
        """Publish ``fields`` unless empty and return them."""

        if not fields:
            return fields
        _LOGGER.debug("Sending %s", fields)
        await self._require_client().async_publish_command(fields)
        return fields

    def _require_client(self) -> IoTClient:
        """Return the bound client, raising ``RuntimeError`` when missing."""

        if self._client is None:
            msg = "No IoT client bound to device"
            raise RuntimeError(msg)
        return self._client
