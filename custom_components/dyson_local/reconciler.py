"""Apply inbound device reports to the canonical device state."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError

from .capabilities import CapabilityRegistry
from .const import DEFAULT_FILTER_LIFE_HOURS, INBOUND_MESSAGES
from .messages import (
    CurrentStateMessage,
    EnvironmentalSensorMessage,
    StateChangeMessage,
    decode_payload,
    parse_inbound,
)
from .sensors import SensorDecoder
from .state.model import DeviceState, TemperatureUnit
from .state.report import StateReport
from .state.rules import DecodeContext, FeatureRule, default_rules

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[[DeviceState], None]


class StateReconciler:
    """Single writer of a device's :class:`DeviceState`.

    Messages must be fed in arrival order from one task or thread. While a
    report is applied, :attr:`processing` is True; higher layers use it to
    avoid turning device-reported changes back into outbound commands.
    """

    def __init__(
        self,
        *,
        capabilities: CapabilityRegistry | None = None,
        temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS,
        filter_life_divisor: int = DEFAULT_FILTER_LIFE_HOURS,
        rules: Sequence[FeatureRule] | None = None,
    ) -> None:
        """Initialise an empty state for a new device session."""

        self.capabilities = capabilities or CapabilityRegistry()
        self.state = DeviceState()
        self._rules: tuple[FeatureRule, ...] = tuple(rules or default_rules())
        self._context = DecodeContext(
            temperature_unit=temperature_unit,
            filter_life_divisor=filter_life_divisor,
        )
        self._sensors = SensorDecoder(temperature_unit=temperature_unit)
        self._listeners: list[StateListener] = []
        self._processing = False

    @property
    def processing(self) -> bool:
        """Return True while an inbound report is being applied."""

        return self._processing

    @property
    def temperature_unit(self) -> TemperatureUnit:
        """Return the display unit used for decoded temperatures."""

        return self._context.temperature_unit

    @temperature_unit.setter
    def temperature_unit(self, unit: TemperatureUnit) -> None:
        """Switch the display unit for subsequent readings."""

        self._context = DecodeContext(
            temperature_unit=unit,
            filter_life_divisor=self._context.filter_life_divisor,
        )
        self._sensors.temperature_unit = unit

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def handle_message(self, payload: Any) -> str | None:
        """Route a raw inbound payload by its ``msg`` discriminator.

        Returns the handled message type, or ``None`` when the payload was
        ignored or could not be parsed. Malformed payloads never raise and
        never touch the current state.
        """

        try:
            data = decode_payload(payload)
        except ValueError as exc:
            _LOGGER.warning("Discarding undecodable payload: %s", exc)
            return None
        if not isinstance(data, Mapping):
            _LOGGER.warning("Discarding non-object payload: %r", data)
            return None
        msg = data.get("msg")
        if msg not in INBOUND_MESSAGES:
            _LOGGER.debug("Ignoring message type %r", msg)
            return None
        try:
            message = parse_inbound(dict(data))
        except ValidationError as exc:
            _LOGGER.warning(
                "Discarding malformed %s message: %s",
                msg,
                exc.errors(include_url=False),
            )
            return None

        if isinstance(message, CurrentStateMessage):
            self.apply_snapshot(message.product_state)
        elif isinstance(message, StateChangeMessage):
            self.apply_delta(message.product_state)
        elif isinstance(message, EnvironmentalSensorMessage):
            self.apply_environment(message.data)
        return msg

    def apply_snapshot(self, fields: Mapping[str, Any]) -> DeviceState:
        """Apply a full ``CURRENT-STATE`` report.

        The first snapshot of a session also fixes the capability set.
        """

        self.capabilities.discover(fields)
        return self.apply_report(StateReport.snapshot(fields))

    def apply_delta(self, fields: Mapping[str, Any]) -> DeviceState:
        """Apply an incremental ``STATE-CHANGE`` report."""

        report = StateReport.delta(fields)
        changes = report.changes()
        if changes:
            _LOGGER.debug("State change: %s", changes)
        return self.apply_report(report)

    def apply_report(self, report: StateReport) -> DeviceState:
        """Run every feature rule against ``report``."""

        with self._guard():
            for rule in self._rules:
                rule.parse(report, self.state, self._context)
            self._notify()
        return self.state

    def apply_environment(self, data: Mapping[str, Any]) -> DeviceState:
        """Apply an environmental sensor report."""

        with self._guard():
            self._sensors.apply(data, self.state)
            self._notify()
        return self.state

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Raise the processing flag for the duration of an update."""

        self._processing = True
        try:
            yield
        finally:
            self._processing = False

    def _notify(self) -> None:
        """Hand the current state to every registered listener."""

        for listener in list(self._listeners):
            listener(self.state)
