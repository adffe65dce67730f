"""Basic device discovery example.

This example demonstrates how to discover Yeelight devices on your network
and display information about each device found.
"""

import asyncio
import logging

from yeelight_async import Property, discover

# Enable logging to see what's happening
logging.basicConfig(level=logging.INFO)


async def main():
    """Discover lights and display information."""
    print("Discovering Yeelight devices...")
    print("Make sure 'LAN Control' is enabled in the Yeelight app.")
    print()

    async for light in discover(timeout=2.0):
        print("Light:")
        print(f"  Id: {light.id}")
        print(f"  Model: {light.model.value}")
        print(f"  Address: {light.hostname}:{light.port}")
        print(f"  Name: {light.name or '-'}")
        print(f"  Power: {light[Property.POWER]}")
        print(f"  Brightness: {light[Property.BRIGHTNESS]}")
        methods = ", ".join(m.wire_name for m in light.supported_methods)
        print(f"  Supports: {methods}")
        print()


if __name__ == "__main__":
    asyncio.run(main())
