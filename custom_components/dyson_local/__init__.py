"""Local state mirror and command encoder for Dyson climate appliances."""

from __future__ import annotations

import logging
from typing import Any

from .const import DOMAIN
from .device import DysonDevice
from .iot_client import IoTClient, IoTClientConfig
from .settings import DysonSettings

__all__ = [
    "DOMAIN",
    "DysonDevice",
    "DysonSettings",
    "IoTClient",
    "IoTClientConfig",
    "async_setup_device",
]

_LOGGER = logging.getLogger(__name__)


async def async_setup_device(
    mqtt: Any,
    config: IoTClientConfig,
    settings: DysonSettings | None = None,
    **kwargs: Any,
) -> DysonDevice:
    """Wire a device session to ``mqtt`` and request its first full state.

    Extra keyword arguments are passed on to :class:`DysonDevice`.
    """

    device = DysonDevice(settings=settings, **kwargs)
    client = IoTClient(
        mqtt=mqtt,
        config=config,
        on_device_update=device.handle_message,
        logger=_LOGGER,
    )
    device.attach_client(client)
    await client.async_start()
    if config.enabled:
        await client.async_request_refresh(force=True)
    return device
