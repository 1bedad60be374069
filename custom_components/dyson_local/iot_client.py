"""MQTT bridge between a Dyson device session and an injected MQTT helper."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from .const import COMMAND_TOPIC, DEFAULT_REFRESH_INTERVAL, STATE_TOPIC
from .messages import (
    RequestCurrentState,
    StateSetCommand,
    decode_payload,
    encode_envelope,
)


@dataclass(frozen=True, slots=True)
class IoTClientConfig:
    """Runtime configuration for the IoT client."""

    product_type: str
    serial: str
    enabled: bool = True
    qos: int = 1
    refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL
    debug: bool = False

    @property
    def state_topic(self) -> str:
        """Return the topic the device publishes its state on."""

        return self._format_topic(STATE_TOPIC)

    @property
    def command_topic(self) -> str:
        """Return the topic the device accepts commands on."""

        return self._format_topic(COMMAND_TOPIC)

    def _format_topic(self, template: str) -> str:
        return template.format(product_type=self.product_type, serial=self.serial)


class IoTClient:
    """Thin wrapper around an MQTT helper exposing publish and subscribe.

    The helper owns the connection; this client only knows the topics and
    envelopes of a single device.
    """

    def __init__(
        self,
        *,
        mqtt: Any,
        config: IoTClientConfig,
        on_device_update: Callable[[Any], Any],
        logger: Any | None = None,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        """Bind MQTT helper, configuration, and update callback."""

        self._mqtt = mqtt
        self._config = config
        self._on_device_update = on_device_update
        self._logger = logger
        self._monotonic = monotonic or time.monotonic
        self._unsubscribe: Callable[[], None] | None = None
        self._last_refresh: float | None = None

    @property
    def config(self) -> IoTClientConfig:
        """Return the active configuration."""

        return self._config

    @property
    def subscribed(self) -> bool:
        """Return True while the state topic subscription is held."""

        return self._unsubscribe is not None

    async def async_start(self) -> None:
        """Subscribe to the device state topic if the client is enabled."""

        if not self._config.enabled or self._unsubscribe is not None:
            return
        unsubscribe = await self._mqtt.async_subscribe(
            self._config.state_topic, self._state_callback, qos=self._config.qos
        )
        if callable(unsubscribe):
            self._unsubscribe = unsubscribe

    def stop(self) -> None:
        """Drop the state topic subscription."""

        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def set_update_callback(self, callback: Callable[[Any], Any]) -> None:
        """Override the update callback used for state messages."""

        self._on_device_update = callback

    async def async_publish_command(self, data: Mapping[str, str]) -> str:
        """Publish a ``STATE-SET`` envelope carrying ``data``.

        Returns the serialised envelope.
        """

        self._ensure_enabled()
        payload = encode_envelope(StateSetCommand(data=dict(data)))
        await self._publish(payload)
        return payload

    async def async_request_refresh(self, *, force: bool = False) -> bool:
        """Ask the device for a full state report.

        At most one request is sent per refresh interval unless ``force`` is
        set. Returns True when a request was published.
        """

        self._ensure_enabled()
        now = self._monotonic()
        interval = self._config.refresh_interval.total_seconds()
        if (
            not force
            and self._last_refresh is not None
            and now - self._last_refresh < interval
        ):
            if self._logger and self._config.debug:
                self._logger.debug(
                    "Skipping refresh for %s, last request %.1fs ago",
                    self._config.serial,
                    now - self._last_refresh,
                )
            return False
        self._last_refresh = now
        await self._publish(encode_envelope(RequestCurrentState()))
        return True

    def _ensure_enabled(self) -> None:
        """Raise ``RuntimeError`` when the client is disabled."""

        if not self._config.enabled:
            msg = "IoT client is disabled"
            raise RuntimeError(msg)

    async def _publish(self, payload: str) -> None:
        """Send ``payload`` to the device command topic."""

        if self._logger and self._config.debug:
            self._logger.debug(
                "Publishing to %s: %s", self._config.command_topic, payload
            )
        await self._mqtt.async_publish(
            self._config.command_topic, payload, qos=self._config.qos
        )

    def _state_callback(self, topic: str, payload: Any) -> None:
        """Route a state topic payload to the update callback."""

        self._on_device_update(self._decode_payload(payload))

    def _decode_payload(self, payload: Any) -> Any:
        """Best-effort JSON decode for MQTT payloads."""

        try:
            return decode_payload(payload)
        except ValueError:
            if self._logger and self._config.debug:
                self._logger.debug(
                    "Failed to decode IoT payload for %s: %r",
                    self._config.serial,
                    payload,
                )
        return payload
