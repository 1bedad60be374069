"""Build outbound ``STATE-SET`` field maps from mutation intents."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .capabilities import CapabilityRegistry
from .settings import DysonSettings
from .state.model import CommandIntent, DeviceState, FanMode
from .state.rules import CommandFields, FeatureRule, default_rules

_LOGGER = logging.getLogger(__name__)

__all__ = ["CommandEncoder", "CommandIntent"]


class CommandEncoder:
    """Translate intents into wire fields the device actually supports."""

    def __init__(
        self,
        registry: CapabilityRegistry,
        *,
        rules: Sequence[FeatureRule] | None = None,
    ) -> None:
        """Bind the capability registry of the device session."""

        self._registry = registry
        self._rules: tuple[FeatureRule, ...] = tuple(rules or default_rules())

    def encode(
        self, intent: CommandIntent, state: DeviceState | None = None
    ) -> CommandFields:
        """Return the field map for ``intent``.

        ``state`` supplies the current values an intent leaves unspecified,
        such as the fan mode restored on power on. Nothing is encoded until
        the capabilities are known, and fields the device does not expose are
        dropped.
        """

        capabilities = self._registry.capabilities
        if capabilities is None:
            _LOGGER.debug("Capabilities unknown, dropping %s", intent)
            return {}
        current = state if state is not None else DeviceState()
        fields: CommandFields = {}
        for rule in self._rules:
            fields.update(rule.to_command(intent, current, capabilities))

        dropped = [code for code in fields if code not in capabilities]
        if dropped:
            _LOGGER.debug("Dropping unsupported fields %s", dropped)
        return {code: value for code, value in fields.items() if code in capabilities}

    def encode_settings(
        self,
        settings: DysonSettings,
        state: DeviceState | None = None,
        *,
        power: bool | None = None,
    ) -> CommandFields:
        """Return the full resynchronisation payload for ``settings``.

        Oscillation geometry is only included while oscillation is enabled.
        ``power`` adds the power fields on top of the restored settings.
        """

        swing = settings.swing_mode
        intent = CommandIntent(
            power=power,
            mode=FanMode.AUTO if settings.auto_mode else FanMode.MANUAL,
            swing=swing,
            swing_center=settings.swing_center if swing else None,
            swing_width=settings.swing_degrees if swing else None,
            night_mode=settings.night_mode,
            continuous_monitoring=settings.continuous_monitoring,
            focus_mode=settings.focus_mode,
            backwards_airflow=settings.backwards_airflow,
        )
        return self.encode(intent, state)
