"""Device model tags reported in discovery replies."""

from __future__ import annotations

from enum import Enum


class Model(Enum):
    """Yeelight device models, valued by the ``model`` header string."""

    UNKNOWN = "unknown"
    MONO_BULB = "mono"
    MONO1 = "mono1"
    COLOR = "color"
    COLOR1 = "color1"
    COLOR2 = "color2"
    COLOR4 = "color4"
    CT_BULB = "ct_bulb"
    STRIPE = "stripe"
    STRIP1 = "strip1"
    STRIP6 = "strip6"
    CEILING = "ceiling"
    CEILING1 = "ceiling1"
    CEILING2 = "ceiling2"
    CEILING3 = "ceiling3"
    CEILING4 = "ceiling4"
    CEILING10 = "ceiling10"
    CEILING13 = "ceiling13"
    CEILING15 = "ceiling15"
    CEILING20 = "ceiling20"
    BEDSIDE_LAMP = "bslamp"
    BEDSIDE_LAMP1 = "bslamp1"
    BEDSIDE_LAMP2 = "bslamp2"
    DESK_LAMP = "desklamp"
    LAMP1 = "lamp1"

    @classmethod
    def from_wire(cls, name: str) -> Model:
        """Map a ``model`` header value to a Model, defaulting to UNKNOWN."""
        return _MODELS_BY_WIRE_NAME.get(name, cls.UNKNOWN)


_MODELS_BY_WIRE_NAME: dict[str, Model] = {model.value: model for model in Model}
