"""Methods understood by Yeelight devices."""

from __future__ import annotations

from enum import Enum


class Method(Enum):
    """Device method identifiers.

    Each member's value is the method name used on the wire and in the
    ``support`` header of a discovery reply.
    """

    GET_PROP = "get_prop"
    SET_COLOR_TEMPERATURE = "set_ct_abx"
    SET_RGB_COLOR = "set_rgb"
    SET_HSV_COLOR = "set_hsv"
    SET_BRIGHTNESS = "set_bright"
    SET_POWER = "set_power"
    TOGGLE = "toggle"
    SET_DEFAULT = "set_default"
    START_COLOR_FLOW = "start_cf"
    STOP_COLOR_FLOW = "stop_cf"
    SET_SCENE = "set_scene"
    ADD_CRON = "cron_add"
    GET_CRON = "cron_get"
    DELETE_CRON = "cron_del"
    SET_ADJUST = "set_adjust"
    SET_MUSIC = "set_music"
    SET_NAME = "set_name"
    ADJUST_BRIGHTNESS = "adjust_bright"
    ADJUST_COLOR_TEMPERATURE = "adjust_ct"
    ADJUST_COLOR = "adjust_color"
    BACKGROUND_SET_RGB_COLOR = "bg_set_rgb"
    BACKGROUND_SET_HSV_COLOR = "bg_set_hsv"
    BACKGROUND_SET_COLOR_TEMPERATURE = "bg_set_ct_abx"
    BACKGROUND_START_COLOR_FLOW = "bg_start_cf"
    BACKGROUND_STOP_COLOR_FLOW = "bg_stop_cf"
    BACKGROUND_SET_SCENE = "bg_set_scene"
    BACKGROUND_SET_DEFAULT = "bg_set_default"
    BACKGROUND_SET_POWER = "bg_set_power"
    BACKGROUND_SET_BRIGHTNESS = "bg_set_bright"
    BACKGROUND_SET_ADJUST = "bg_set_adjust"
    BACKGROUND_TOGGLE = "bg_toggle"
    BACKGROUND_ADJUST_BRIGHTNESS = "bg_adjust_bright"
    BACKGROUND_ADJUST_COLOR_TEMPERATURE = "bg_adjust_ct"
    BACKGROUND_ADJUST_COLOR = "bg_adjust_color"
    DEV_TOGGLE = "dev_toggle"

    @property
    def wire_name(self) -> str:
        """Name of the method on the wire."""
        return self.value

    @classmethod
    def from_wire(cls, name: str) -> Method | None:
        """Look up a method by its wire name.

        Args:
            name: Method name as sent by the device

        Returns:
            Matching Method, or None if the name is unknown
        """
        return _METHODS_BY_WIRE_NAME.get(name)


_METHODS_BY_WIRE_NAME: dict[str, Method] = {method.value: method for method in Method}
