"""Constants for the Yeelight control and discovery protocols."""

from __future__ import annotations

from typing import Final

# Control protocol (TCP)
YEELIGHT_DEFAULT_PORT: Final[int] = 55443
LINE_SEPARATOR: Final[bytes] = b"\r\n"

# Discovery protocol (UDP multicast)
MULTICAST_ADDRESS: Final[str] = "239.255.255.250"
MULTICAST_PORT: Final[int] = 1982
MULTICAST_TTL: Final[int] = 1
DISCOVERY_MESSAGE: Final[bytes] = (
    b"M-SEARCH * HTTP/1.1\r\n"
    b"HOST: 239.255.255.250:1982\r\n"
    b'MAN: "ssdp:discover"\r\n'
    b"ST: wifi_bulb"
)
DISCOVERY_LOCATION_PREFIX: Final[str] = "Location: yeelight://"

# Number of concurrent probes sent from each local address
DISCOVERY_ATTEMPTS: Final[int] = 3

# Listen window for each probe (seconds)
DEFAULT_DISCOVERY_TIMEOUT: Final[float] = 1.0

# Poll interval while waiting for discovery replies (seconds)
DISCOVERY_POLL_INTERVAL: Final[float] = 0.01

# Default timeout for a correlated command (seconds)
DEFAULT_REQUEST_TIMEOUT: Final[float] = 5.0

# Read loop poll interval (seconds)
READ_POLL_INTERVAL: Final[float] = 0.1

# Bytes requested from the stream per read
READ_CHUNK_SIZE: Final[int] = 4096

# Longest inbound line kept while waiting for its terminator (bytes)
MAX_LINE_LENGTH: Final[int] = 65536

# Reconnect attempts made by the read loop before giving up
DEFAULT_MAX_RECONNECT_ATTEMPTS: Final[int] = 8

# Base sleep between reconnect attempts (seconds), doubled per attempt
RECONNECT_SLEEP_BASE: Final[float] = 0.1

# Upper bound on a single reconnect backoff sleep (seconds)
RECONNECT_SLEEP_MAX: Final[float] = 5.0

# The device rejects get_prop requests with more names than this
MAX_PROPERTIES_PER_REQUEST: Final[int] = 20

# Shortest transition the device accepts for "smooth" effects (milliseconds)
MINIMUM_SMOOTH_DURATION: Final[int] = 30

# Interface name prefixes skipped by discovery (loopback, virtual, tunnel)
VIRTUAL_INTERFACE_PREFIXES: Final[tuple[str, ...]] = (
    "lo",
    "docker",
    "veth",
    "br-",
    "virbr",
    "vmnet",
    "vboxnet",
    "tun",
    "tap",
    "utun",
    "wg",
    "zt",
    "tailscale",
    "awdl",
    "llw",
    "gif",
    "stf",
    "anpi",
)
