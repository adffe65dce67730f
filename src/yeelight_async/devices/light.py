"""Light device class for Yeelight bulbs, strips and lamps."""

from __future__ import annotations

from typing import Any

from yeelight_async.const import MINIMUM_SMOOTH_DURATION
from yeelight_async.devices.base import Device
from yeelight_async.protocol.methods import Method
from yeelight_async.protocol.properties import Property


def _transition(smooth: int | None) -> list[Any]:
    """Encode the effect/duration parameter pair."""
    if smooth is None:
        return ["sudden", 0]
    return ["smooth", max(smooth, MINIMUM_SMOOTH_DURATION)]


def _clamp_percent(percent: int) -> int:
    return max(-100, min(100, percent))


class Light(Device):
    """Light with power, brightness and color control.

    Every setter returns True when the device acknowledges with ``["ok"]``.
    ``smooth`` is a transition duration in milliseconds; None means the
    change is applied immediately.

    Example:
        ```python
        async with Light("192.168.1.50") as light:
            await light.turn_on()
            await light.set_brightness(40, smooth=500)
            await light.set_rgb_color(255, 120, 0)
        ```
    """

    async def _ok(self, method: Method, params: list[Any]) -> bool:
        result = await self.execute_command_with_response(method, params)
        return result.is_ok

    async def set_power(
        self, on: bool, smooth: int | None = None, mode: int | None = None
    ) -> bool:
        """Switch the light on or off.

        Args:
            on: True to switch on
            smooth: Transition duration in milliseconds
            mode: Optional power-on mode (0 normal, 1 CT, 2 RGB, 3 HSV, 4 flow,
                5 night light)
        """
        params: list[Any] = ["on" if on else "off", *_transition(smooth)]
        if mode is not None:
            params.append(mode)
        if await self._ok(Method.SET_POWER, params):
            self.state.merge({Property.POWER: params[0]})
            return True
        return False

    async def turn_on(self, smooth: int | None = None) -> bool:
        return await self.set_power(True, smooth)

    async def turn_off(self, smooth: int | None = None) -> bool:
        return await self.set_power(False, smooth)

    async def toggle(self) -> bool:
        return await self._ok(Method.TOGGLE, [])

    async def set_brightness(self, value: int, smooth: int | None = None) -> bool:
        """Set brightness in percent (1-100)."""
        return await self._ok(Method.SET_BRIGHTNESS, [value, *_transition(smooth)])

    async def set_rgb_color(
        self, r: int, g: int, b: int, smooth: int | None = None
    ) -> bool:
        """Set an RGB color, each channel 0-255."""
        rgb = (r << 16) | (g << 8) | b
        return await self._ok(Method.SET_RGB_COLOR, [rgb, *_transition(smooth)])

    async def set_hsv_color(
        self, hue: int, saturation: int, smooth: int | None = None
    ) -> bool:
        """Set hue (0-359) and saturation (0-100)."""
        return await self._ok(
            Method.SET_HSV_COLOR, [hue, saturation, *_transition(smooth)]
        )

    async def set_color_temperature(
        self, temperature: int, smooth: int | None = None
    ) -> bool:
        """Set the color temperature in Kelvin (1700-6500)."""
        return await self._ok(
            Method.SET_COLOR_TEMPERATURE, [temperature, *_transition(smooth)]
        )

    async def _adjust(self, method: Method, percent: int, duration: int | None) -> bool:
        return await self._ok(
            method,
            [_clamp_percent(percent), max(duration or 0, MINIMUM_SMOOTH_DURATION)],
        )

    async def adjust_brightness(self, percent: int, duration: int | None = None) -> bool:
        """Change brightness relatively, by -100 to 100 percent."""
        return await self._adjust(Method.ADJUST_BRIGHTNESS, percent, duration)

    async def adjust_color_temperature(
        self, percent: int, duration: int | None = None
    ) -> bool:
        return await self._adjust(Method.ADJUST_COLOR_TEMPERATURE, percent, duration)

    async def adjust_color(self, percent: int, duration: int | None = None) -> bool:
        return await self._adjust(Method.ADJUST_COLOR, percent, duration)

    async def set_default(self) -> bool:
        """Save the current state as the power-on default."""
        return await self._ok(Method.SET_DEFAULT, [])

    async def stop_color_flow(self) -> bool:
        return await self._ok(Method.STOP_COLOR_FLOW, [])

    async def set_name(self, name: str) -> bool:
        """Set the device name and update the local state on success."""
        if await self._ok(Method.SET_NAME, [name]):
            self.state.merge({Property.NAME: name})
            return True
        return False

    async def cron_add(self, minutes: int, cron_type: int = 0) -> bool:
        """Schedule a power-off timer.

        Args:
            minutes: Delay in minutes
            cron_type: Timer type (0 is power off, the only type devices support)
        """
        return await self._ok(Method.ADD_CRON, [cron_type, minutes])

    async def cron_get(self, cron_type: int = 0) -> dict[str, Any] | None:
        """Return the active timer, e.g. ``{"type": 0, "delay": 15, "mix": 0}``."""
        result = await self.execute_command_with_response(Method.GET_CRON, [cron_type])
        jobs = result.result
        if isinstance(jobs, list) and jobs and isinstance(jobs[0], dict):
            return jobs[0]
        return None

    async def cron_delete(self, cron_type: int = 0) -> bool:
        return await self._ok(Method.DELETE_CRON, [cron_type])

    async def set_adjust(self, action: str, prop: str) -> bool:
        """Nudge a property without knowing its current value.

        Args:
            action: "increase", "decrease" or "circle"
            prop: "bright", "ct" or "color" ("color" only accepts "circle")
        """
        return await self._ok(Method.SET_ADJUST, [action, prop])

    async def toggle_all(self) -> bool:
        """Toggle the main and background light together."""
        return await self._ok(Method.DEV_TOGGLE, [])

    # Background light (ceiling lights with an ambient ring)

    async def background_set_power(
        self, on: bool, smooth: int | None = None, mode: int | None = None
    ) -> bool:
        """Switch the background light on or off.

        Takes the same arguments as :meth:`set_power`.
        """
        params: list[Any] = ["on" if on else "off", *_transition(smooth)]
        if mode is not None:
            params.append(mode)
        if await self._ok(Method.BACKGROUND_SET_POWER, params):
            self.state.merge({Property.BACKGROUND_POWER: params[0]})
            return True
        return False

    async def background_turn_on(self, smooth: int | None = None) -> bool:
        return await self.background_set_power(True, smooth)

    async def background_turn_off(self, smooth: int | None = None) -> bool:
        return await self.background_set_power(False, smooth)

    async def background_toggle(self) -> bool:
        return await self._ok(Method.BACKGROUND_TOGGLE, [])

    async def background_set_brightness(
        self, value: int, smooth: int | None = None
    ) -> bool:
        return await self._ok(
            Method.BACKGROUND_SET_BRIGHTNESS, [value, *_transition(smooth)]
        )

    async def background_set_rgb_color(
        self, r: int, g: int, b: int, smooth: int | None = None
    ) -> bool:
        rgb = (r << 16) | (g << 8) | b
        return await self._ok(
            Method.BACKGROUND_SET_RGB_COLOR, [rgb, *_transition(smooth)]
        )

    async def background_set_hsv_color(
        self, hue: int, saturation: int, smooth: int | None = None
    ) -> bool:
        return await self._ok(
            Method.BACKGROUND_SET_HSV_COLOR, [hue, saturation, *_transition(smooth)]
        )

    async def background_set_color_temperature(
        self, temperature: int, smooth: int | None = None
    ) -> bool:
        return await self._ok(
            Method.BACKGROUND_SET_COLOR_TEMPERATURE,
            [temperature, *_transition(smooth)],
        )

    async def background_adjust_brightness(
        self, percent: int, duration: int | None = None
    ) -> bool:
        return await self._adjust(Method.BACKGROUND_ADJUST_BRIGHTNESS, percent, duration)

    async def background_adjust_color_temperature(
        self, percent: int, duration: int | None = None
    ) -> bool:
        return await self._adjust(
            Method.BACKGROUND_ADJUST_COLOR_TEMPERATURE, percent, duration
        )

    async def background_adjust_color(
        self, percent: int, duration: int | None = None
    ) -> bool:
        return await self._adjust(Method.BACKGROUND_ADJUST_COLOR, percent, duration)

    async def background_set_adjust(self, action: str, prop: str) -> bool:
        return await self._ok(Method.BACKGROUND_SET_ADJUST, [action, prop])

    async def background_set_default(self) -> bool:
        return await self._ok(Method.BACKGROUND_SET_DEFAULT, [])

    async def background_stop_color_flow(self) -> bool:
        return await self._ok(Method.BACKGROUND_STOP_COLOR_FLOW, [])
