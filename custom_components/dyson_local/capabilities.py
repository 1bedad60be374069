"""Capability discovery for a single device session."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

_LOGGER = logging.getLogger(__name__)


class CapabilitiesUnknownError(RuntimeError):
    """Raised when capabilities are queried before discovery."""


class CapabilitySet:
    """Immutable set of feature codes a device instance exposes."""

    __slots__ = ("_codes",)

    def __init__(self, codes: Iterable[str]) -> None:
        """Freeze ``codes`` into the capability set."""

        self._codes = frozenset(codes)

    def has(self, code: str) -> bool:
        """Return True when the device exposes ``code``."""

        return code in self._codes

    def has_any(self, *codes: str) -> bool:
        """Return True when any of ``codes`` is exposed."""

        return any(code in self._codes for code in codes)

    def without(self, *codes: str) -> CapabilitySet:
        """Return a new set lacking ``codes``."""

        return CapabilitySet(self._codes.difference(codes))

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._codes))

    def __len__(self) -> int:
        return len(self._codes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CapabilitySet):
            return self._codes == other._codes
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._codes)

    def __repr__(self) -> str:
        return f"CapabilitySet({sorted(self._codes)!r})"


class CapabilityRegistry:
    """Track the Uninitialised -> Discovered transition for a session."""

    def __init__(self) -> None:
        """Start without any discovered capabilities."""

        self._capabilities: CapabilitySet | None = None

    @property
    def is_discovered(self) -> bool:
        """Return True once the first snapshot has been seen."""

        return self._capabilities is not None

    @property
    def capabilities(self) -> CapabilitySet | None:
        """Return the discovered set, ``None`` while still unknown."""

        return self._capabilities

    def discover(self, first_snapshot: Mapping[str, Any]) -> CapabilitySet:
        """Derive capabilities from the keys of ``first_snapshot``.

        Later calls are no-ops returning the already discovered set.
        """

        if self._capabilities is None:
            self._capabilities = CapabilitySet(first_snapshot.keys())
            _LOGGER.debug("Discovered capabilities: %s", list(self._capabilities))
        return self._capabilities

    def has(self, code: str) -> bool:
        """Return True when ``code`` is supported.

        Raises :class:`CapabilitiesUnknownError` before discovery so callers
        can tell "unknown" apart from "absent".
        """

        if self._capabilities is None:
            msg = f"Capabilities not discovered yet, cannot check {code!r}"
            raise CapabilitiesUnknownError(msg)
        return self._capabilities.has(code)
