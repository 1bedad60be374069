"""Wire envelope models for the device message stream."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .const import MSG_REQUEST_CURRENT_STATE, MSG_STATE_SET

FieldValue = Union[str, int, float]
# Snapshots may carry list values, such as the tilt pair, or nulls.
SnapshotValue = Union[FieldValue, list[FieldValue], None]


def timestamp(now: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class _Envelope(BaseModel):
    """Common envelope fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    time: str | None = None


class CurrentStateMessage(_Envelope):
    """Full product state, one scalar per field."""

    msg: Literal["CURRENT-STATE"]
    product_state: dict[str, SnapshotValue] = Field(alias="product-state")


class StateChangeMessage(_Envelope):
    """Incremental product state, a ``[previous, current]`` pair per field."""

    msg: Literal["STATE-CHANGE"]
    product_state: dict[str, tuple[FieldValue, FieldValue]] = Field(
        alias="product-state"
    )


class EnvironmentalSensorMessage(_Envelope):
    """Current environmental sensor readings."""

    msg: Literal["ENVIRONMENTAL-CURRENT-SENSOR-DATA"]
    data: dict[str, FieldValue]


InboundMessage = Annotated[
    Union[CurrentStateMessage, StateChangeMessage, EnvironmentalSensorMessage],
    Field(discriminator="msg"),
]

_INBOUND_ADAPTER: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def decode_payload(payload: Any) -> Any:
    """Decode raw MQTT payloads into Python objects.

    Raises ``ValueError`` (``json.JSONDecodeError`` or ``UnicodeDecodeError``)
    for undecodable bytes or text.
    """

    data = payload
    if isinstance(payload, bytes | bytearray):
        data = payload.decode()
    if isinstance(data, str):
        return json.loads(data)
    return data


def parse_inbound(data: dict[str, Any]) -> InboundMessage:
    """Validate ``data`` into one of the inbound envelope models.

    Raises :class:`pydantic.ValidationError` when the payload does not match
    the shape announced by its ``msg`` discriminator.
    """

    return _INBOUND_ADAPTER.validate_python(data)


class StateSetCommand(_Envelope):
    """Outbound command carrying the encoded field map."""

    msg: Literal["STATE-SET"] = MSG_STATE_SET
    time: str = Field(default_factory=timestamp)
    data: dict[str, str]


class RequestCurrentState(_Envelope):
    """Outbound request for a full ``CURRENT-STATE`` report."""

    msg: Literal["REQUEST-CURRENT-STATE"] = MSG_REQUEST_CURRENT_STATE
    time: str = Field(default_factory=timestamp)


def encode_envelope(envelope: _Envelope) -> str:
    """Serialise an outbound envelope to compact JSON."""

    return envelope.model_dump_json(by_alias=True, exclude_none=True)
