"""Light control example.

Connects to a light by address (or the first one discovered) and walks
through power, brightness and color commands.

Usage:
    python 02_control_light.py [ip-address]
"""

import asyncio
import sys
from contextlib import aclosing

from yeelight_async import Light, YeelightError, discover


async def first_light() -> Light | None:
    async with aclosing(discover(timeout=2.0)) as lights:
        async for light in lights:
            return light
    return None


async def main() -> None:
    """Run a short sequence of commands."""
    if len(sys.argv) > 1:
        light = Light(sys.argv[1])
    else:
        light = await first_light()

    if light is None:
        print("No lights found")
        return

    try:
        async with light:
            print(f"Connected to {light} ({light.name or 'unnamed'})")

            await light.turn_on(smooth=500)
            await light.set_brightness(80, smooth=500)
            await asyncio.sleep(1)

            print("Red")
            await light.set_rgb_color(255, 0, 0, smooth=500)
            await asyncio.sleep(1.5)

            print("Teal (HSV)")
            await light.set_hsv_color(180, 90, smooth=500)
            await asyncio.sleep(1.5)

            print("Warm white")
            await light.set_color_temperature(2700, smooth=500)
            await asyncio.sleep(1.5)

            print("Dimming by 30%")
            await light.adjust_brightness(-30, duration=500)
            await asyncio.sleep(1)

            print(f"Connection metrics: {light.connection.metrics}")
    except YeelightError as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    asyncio.run(main())
