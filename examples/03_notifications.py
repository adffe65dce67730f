"""Notification example.

Devices report every state change (including changes made from the app or
a wall switch) as a notification. This example prints them for a minute.

Usage:
    python 03_notifications.py <ip-address>
"""

import asyncio
import logging
import sys

from yeelight_async import Light, Notification

logging.basicConfig(level=logging.INFO)


async def main() -> None:
    if len(sys.argv) < 2:
        print(__doc__)
        return

    def on_notification(notification: Notification) -> None:
        print(f"{notification.method}: {notification.params}")

    def on_error(error: Exception) -> None:
        print(f"error: {error}")

    async with Light(sys.argv[1]) as light:
        unsubscribe = light.notifications.subscribe(on_notification)
        light.errors.subscribe(on_error)

        print(f"Listening to {light}, toggle it from the app...")
        await light.toggle()
        await asyncio.sleep(60)

        unsubscribe()
        print(f"Final state: {light.properties}")


if __name__ == "__main__":
    asyncio.run(main())
