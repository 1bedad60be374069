"""Shape-agnostic access to product state reports."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from typing import Any


class ReportShape(Enum):
    """How the current value of a field is carried in a report."""

    SNAPSHOT = "snapshot"
    DELTA = "delta"

    def extract(self, raw: Any) -> Any:
        """Return the current scalar carried by ``raw`` for this shape.

        ``None`` means the report carries no usable current value.
        """

        if self is ReportShape.SNAPSHOT:
            return None if _is_sequence(raw) else raw
        return _element(raw, 1)


def _is_sequence(raw: Any) -> bool:
    """Return True for list-like values, excluding text."""

    return isinstance(raw, Sequence) and not isinstance(raw, str | bytes)


def _element(raw: Any, index: int) -> Any:
    """Return ``raw[index]`` for list-like values, ``None`` otherwise."""

    if _is_sequence(raw) and len(raw) > index:
        return raw[index]
    return None


class StateReport(Mapping[str, Any]):
    """Read-only view over a Snapshot or Delta ``product-state`` mapping.

    Indexing returns the *current* value of a field regardless of shape, so
    every decode rule is written once against this view.
    """

    __slots__ = ("_fields", "shape")

    def __init__(self, fields: Mapping[str, Any], shape: ReportShape) -> None:
        """Wrap ``fields`` reported with ``shape``."""

        self._fields = dict(fields)
        self.shape = shape

    @classmethod
    def snapshot(cls, fields: Mapping[str, Any]) -> StateReport:
        """Build a report from a full ``CURRENT-STATE`` mapping."""

        return cls(fields, ReportShape.SNAPSHOT)

    @classmethod
    def delta(cls, fields: Mapping[str, Any]) -> StateReport:
        """Build a report from a ``STATE-CHANGE`` mapping of pairs."""

        return cls(fields, ReportShape.DELTA)

    def __getitem__(self, code: str) -> Any:
        """Return the current value of ``code``.

        Fields without a usable current value, such as nulls or lists in a
        snapshot, raise ``KeyError`` and so count as absent.
        """

        value = self.shape.extract(self._fields[code])
        if value is None:
            raise KeyError(code)
        return value

    def __iter__(self) -> Iterator[str]:
        return (
            code
            for code, raw in self._fields.items()
            if self.shape.extract(raw) is not None
        )

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def has_all(self, *codes: str) -> bool:
        """Return True when every code in ``codes`` has a current value."""

        return all(code in self for code in codes)

    def raw(self, code: str) -> Any:
        """Return the field exactly as reported, ``None`` when missing."""

        return self._fields.get(code)

    def second(self, code: str) -> Any:
        """Return the second element of the raw value, delta-style.

        Scalar values have no second element and yield ``None``.
        """

        return _element(self._fields.get(code), 1)

    def changes(self) -> dict[str, Any]:
        """Return the raw fields whose value actually changed.

        Snapshots carry no previous value so every field is returned.
        """

        if self.shape is ReportShape.SNAPSHOT:
            return dict(self._fields)
        return {
            code: raw
            for code, raw in self._fields.items()
            if _element(raw, 0) != _element(raw, 1)
        }
