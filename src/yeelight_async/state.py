"""In-memory property store for a device."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from yeelight_async.protocol.properties import Property


def _wire_name(key: Property | str) -> str:
    return key.value if isinstance(key, Property) else key


class DeviceState:
    """Last known property values of a device, keyed by wire name.

    Updates are copy-on-write: each change builds a new mapping and swaps it
    in with a single assignment, so readers running alongside the read loop
    always see a complete snapshot. Only names defined by :class:`Property`
    are stored.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._values: Mapping[str, Any] = MappingProxyType({})
        if initial:
            self.merge(initial)

    def merge(self, values: Mapping[Property | str, Any]) -> dict[str, Any]:
        """Merge property values into the store.

        Args:
            values: Property values keyed by Property or wire name

        Returns:
            The subset of values that was applied (unknown names are skipped)
        """
        applied: dict[str, Any] = {}
        for key, value in values.items():
            name = _wire_name(key)
            if Property.from_wire(name) is not None:
                applied[name] = value

        if applied:
            updated = dict(self._values)
            updated.update(applied)
            self._values = MappingProxyType(updated)
        return applied

    def get(self, key: Property | str, default: Any = None) -> Any:
        return self._values.get(_wire_name(key), default)

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of the current values."""
        return dict(self._values)

    def clear(self) -> None:
        self._values = MappingProxyType({})

    def __getitem__(self, key: Property | str) -> Any:
        return self._values[_wire_name(key)]

    def __contains__(self, key: object) -> bool:
        if isinstance(key, (Property, str)):
            return _wire_name(key) in self._values
        return False

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DeviceState({dict(self._values)!r})"
