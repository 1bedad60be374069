"""Tests for the device facade."""

from __future__ import annotations

import json
from typing import Any

import pytest

from custom_components.dyson_local import async_setup_device
from custom_components.dyson_local.device import DysonDevice
from custom_components.dyson_local.iot_client import IoTClientConfig
from custom_components.dyson_local.settings import DysonSettings, InvalidSettingsError
from custom_components.dyson_local.state.model import (
    FanMode,
    HeatingMode,
    HumidityMode,
    TemperatureUnit,
)

STATE_TOPIC = "438/AB1-EU-1234/status/current"
COMMAND_TOPIC = "438/AB1-EU-1234/command"


def _snapshot_message(fields: dict[str, Any]) -> bytes:
    return json.dumps({"msg": "CURRENT-STATE", "product-state": fields}).encode()


def _sent(fake_mqtt) -> list[dict[str, Any]]:
    """Return the STATE-SET field maps published so far."""

    return [
        json.loads(raw)["data"]
        for topic, raw, _ in fake_mqtt.published
        if topic == COMMAND_TOPIC and json.loads(raw)["msg"] == "STATE-SET"
    ]


async def _setup(fake_mqtt, **kwargs: Any) -> DysonDevice:
    return await async_setup_device(
        fake_mqtt,
        IoTClientConfig(product_type="438", serial="AB1-EU-1234"),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_setup_subscribes_and_requests_state(fake_mqtt) -> None:
    """Setting up a device subscribes and asks for a full report."""

    device = await _setup(fake_mqtt)

    assert STATE_TOPIC in fake_mqtt.subscriptions
    assert len(fake_mqtt.published) == 1
    topic, raw, _ = fake_mqtt.published[0]
    assert topic == COMMAND_TOPIC
    assert json.loads(raw)["msg"] == "REQUEST-CURRENT-STATE"
    assert device.capabilities.is_discovered is False


@pytest.mark.asyncio
async def test_inbound_messages_update_state(fake_mqtt, purifier_snapshot) -> None:
    """Subscribed payloads reach the reconciler and publish nothing."""

    device = await _setup(fake_mqtt)

    fake_mqtt.deliver(STATE_TOPIC, _snapshot_message(purifier_snapshot))

    assert device.state.power is True
    assert device.state.speed == 50
    assert device.capabilities.has("fpwr")
    assert _sent(fake_mqtt) == []


@pytest.mark.asyncio
async def test_settings_change_publishes_resync(fake_mqtt, purifier_snapshot) -> None:
    """User settings changes resend the supported settings."""

    device = await _setup(fake_mqtt)
    device.handle_message(_snapshot_message(purifier_snapshot))

    fields = await device.async_update_settings(night_mode=True)

    assert fields["nmod"] == "ON"
    assert _sent(fake_mqtt) == [fields]
    assert device.settings.night_mode is True


@pytest.mark.asyncio
async def test_settings_change_before_discovery_is_stored(fake_mqtt) -> None:
    """Without capabilities the change is kept but nothing is sent."""

    device = await _setup(fake_mqtt)

    assert await device.async_update_settings(auto_mode=True) == {}
    assert device.settings.auto_mode is True
    assert _sent(fake_mqtt) == []


@pytest.mark.asyncio
async def test_listener_settings_change_is_not_published(
    fake_mqtt, purifier_snapshot
) -> None:
    """Settings written while a report is applied never produce commands."""

    device = await _setup(fake_mqtt)
    device.handle_message(_snapshot_message(purifier_snapshot))
    results: list[dict[str, str]] = []

    def _mirror_swing(state) -> None:
        results.append(device.update_settings(swing_mode=bool(state.swing_enabled)))

    device.add_listener(_mirror_swing)
    device.handle_message(
        json.dumps({"msg": "STATE-CHANGE", "product-state": {"oson": ["OFF", "ON"]}})
    )

    assert results == [{}]
    assert device.settings.swing_mode is True
    assert _sent(fake_mqtt) == []


@pytest.mark.asyncio
async def test_invalid_settings_raise(fake_mqtt) -> None:
    """Validation errors reach the caller and keep the old settings."""

    device = await _setup(fake_mqtt)

    with pytest.raises(InvalidSettingsError):
        await device.async_update_settings(swing_center=200)
    assert device.settings == DysonSettings()


@pytest.mark.asyncio
async def test_temperature_unit_setting_applies_to_readings(fake_mqtt) -> None:
    """Changing the display unit converts later sensor readings."""

    device = await _setup(fake_mqtt)
    await device.async_update_settings(temperature_unit="F")

    device.handle_message(
        {"msg": "ENVIRONMENTAL-CURRENT-SENSOR-DATA", "data": {"tact": "2950"}}
    )

    assert device.reconciler.temperature_unit is TemperatureUnit.FAHRENHEIT
    assert device.state.temperature == pytest.approx(71.33)


@pytest.mark.asyncio
async def test_turn_on_restores_settings(fake_mqtt, purifier_snapshot) -> None:
    """Power on resends the settings together with the power flag."""

    device = await _setup(fake_mqtt, settings=DysonSettings(auto_mode=True))
    device.handle_message(_snapshot_message(purifier_snapshot))

    fields = await device.async_turn_on()

    assert fields == {
        "fpwr": "ON",
        "auto": "OFF",
        "oson": "OFF",
        "rhtm": "ON",
        "nmod": "OFF",
        "fdir": "ON",
    }


@pytest.mark.asyncio
async def test_turn_on_keeps_reported_toggles(fake_mqtt) -> None:
    """Toggles reported while off are restored, not reset, on power on."""

    device = await _setup(fake_mqtt)
    device.handle_message(
        _snapshot_message({"fpwr": "OFF", "oson": "ON", "rhtm": "ON", "nmod": "ON"})
    )

    assert _sent(fake_mqtt) == []
    assert device.settings.swing_mode is True
    assert device.settings.continuous_monitoring is True
    assert device.settings.night_mode is True

    fields = await device.async_turn_on()

    assert fields == {"fpwr": "ON", "oson": "ON", "rhtm": "ON", "nmod": "ON"}


@pytest.mark.asyncio
async def test_reported_swing_geometry_updates_settings(fake_mqtt) -> None:
    """Reported bounds and presets become the stored oscillation settings."""

    device = await _setup(fake_mqtt)
    device.handle_message(
        _snapshot_message(
            {
                "fpwr": "ON",
                "fnst": "FAN",
                "auto": "ON",
                "osal": "0150",
                "osau": "0240",
            }
        )
    )

    assert device.settings.swing_center == 15
    assert device.settings.swing_degrees == 90
    assert device.settings.auto_mode is True
    assert _sent(fake_mqtt) == []


@pytest.mark.asyncio
async def test_turn_off(fake_mqtt, legacy_snapshot) -> None:
    """Legacy models switch off through the fan mode."""

    device = await _setup(fake_mqtt)
    device.handle_message(_snapshot_message(legacy_snapshot))

    assert await device.async_turn_off() == {"fmod": "OFF"}
    assert _sent(fake_mqtt) == [{"fmod": "OFF"}]


@pytest.mark.asyncio
async def test_zero_speed_ignored_while_off(fake_mqtt, purifier_snapshot) -> None:
    """A zero speed paired with power off is dropped."""

    device = await _setup(fake_mqtt)
    device.handle_message(_snapshot_message({**purifier_snapshot, "fpwr": "OFF"}))

    assert await device.async_set_fan(speed=0) == {}
    assert _sent(fake_mqtt) == []

    device.handle_message(
        json.dumps({"msg": "STATE-CHANGE", "product-state": {"fpwr": ["OFF", "ON"]}})
    )
    assert await device.async_set_fan(speed=0) == {"fnsp": "0000"}


@pytest.mark.asyncio
async def test_set_fan_mode_and_swing(fake_mqtt, purifier_snapshot) -> None:
    """Fan changes only carry the requested fields."""

    device = await _setup(fake_mqtt)
    device.handle_message(_snapshot_message(purifier_snapshot))

    fields = await device.async_set_fan(speed=70, mode=FanMode.MANUAL, swing=True)

    assert fields == {"fnsp": "0007", "auto": "OFF", "oson": "ON"}


@pytest.mark.asyncio
async def test_heating_and_humidity_are_gated(fake_mqtt, purifier_snapshot) -> None:
    """Controls the device lacks encode nothing and publish nothing."""

    device = await _setup(fake_mqtt)
    device.handle_message(_snapshot_message(purifier_snapshot))

    assert await device.async_set_heating(mode=HeatingMode.HEAT, setpoint=20) == {}
    assert await device.async_set_humidity(mode=HumidityMode.AUTO) == {}
    assert _sent(fake_mqtt) == []


@pytest.mark.asyncio
async def test_heating_and_humidity_commands(fake_mqtt) -> None:
    """Heater and humidifier models receive their own fields."""

    device = await _setup(fake_mqtt)
    device.handle_message(
        _snapshot_message(
            {"fpwr": "ON", "hmod": "OFF", "hmax": "2930", "hume": "OFF", "humt": "0040"}
        )
    )

    assert await device.async_set_heating(setpoint=21) == {"hmax": "2940"}
    assert await device.async_set_humidity(
        mode=HumidityMode.OFF, setpoint=55
    ) == {"hume": "OFF", "humt": "0055"}


@pytest.mark.asyncio
async def test_refresh_is_throttled(fake_mqtt, fake_clock) -> None:
    """The setup request counts towards the refresh interval."""

    device = await _setup(fake_mqtt)
    device.client._monotonic = fake_clock
    device.client._last_refresh = fake_clock.value

    assert await device.async_request_refresh() is False
    fake_clock.value += 60
    assert await device.async_request_refresh() is True
    assert await device.async_request_refresh(force=True) is True


@pytest.mark.asyncio
async def test_visible_settings(fake_mqtt, legacy_snapshot) -> None:
    """Visible settings follow the discovered capabilities."""

    device = await _setup(fake_mqtt)
    assert "backwards_airflow" in device.visible_settings()

    device.handle_message(_snapshot_message(legacy_snapshot))

    assert "backwards_airflow" not in device.visible_settings()
    assert "focus_mode" in device.visible_settings()


@pytest.mark.asyncio
async def test_publishing_without_client_fails(purifier_snapshot) -> None:
    """Commands need a bound IoT client."""

    device = DysonDevice()
    device.handle_message(_snapshot_message(purifier_snapshot))

    with pytest.raises(RuntimeError):
        await device.async_turn_off()
