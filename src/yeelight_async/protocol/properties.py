"""Device properties and property selections.

Properties are selected with plain sets of :class:`Property` members rather
than bit flags. :data:`ALL_PROPERTIES` and :data:`NO_PROPERTIES` are the
"everything" and "nothing" selections.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class Property(Enum):
    """Properties a device reports, valued by their wire name."""

    POWER = "power"
    BRIGHTNESS = "bright"
    COLOR_TEMPERATURE = "ct"
    RGB = "rgb"
    HUE = "hue"
    SATURATION = "sat"
    COLOR_MODE = "color_mode"
    FLOWING = "flowing"
    DELAY_OFF = "delayoff"
    FLOW_PARAMS = "flow_params"
    MUSIC_ON = "music_on"
    NAME = "name"
    BACKGROUND_POWER = "bg_power"
    BACKGROUND_FLOWING = "bg_flowing"
    BACKGROUND_FLOW_PARAMS = "bg_flow_params"
    BACKGROUND_COLOR_TEMPERATURE = "bg_ct"
    BACKGROUND_COLOR_MODE = "bg_lmode"
    BACKGROUND_BRIGHTNESS = "bg_bright"
    BACKGROUND_RGB = "bg_rgb"
    BACKGROUND_HUE = "bg_hue"
    BACKGROUND_SATURATION = "bg_sat"
    NIGHT_LIGHT_BRIGHTNESS = "nl_br"
    ACTIVE_MODE = "active_mode"

    @property
    def wire_name(self) -> str:
        """Name of the property on the wire."""
        return self.value

    @classmethod
    def from_wire(cls, name: str) -> Property | None:
        """Look up a property by its wire name, or None if unknown."""
        return _PROPERTIES_BY_WIRE_NAME.get(name)


PropertySet = frozenset[Property]

ALL_PROPERTIES: PropertySet = frozenset(Property)
NO_PROPERTIES: PropertySet = frozenset()

_PROPERTIES_BY_WIRE_NAME: dict[str, Property] = {prop.value: prop for prop in Property}


def ordered(props: Iterable[Property]) -> list[Property]:
    """Return the selected properties in declaration order."""
    selected = set(props)
    return [prop for prop in Property if prop in selected]
