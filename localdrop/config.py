"""Application-wide configuration constants."""

import platform
from pathlib import Path

# --- Identity ---
APP_NAME = "LocalDrop"
APP_ID = "localdrop-v1"
DEVICE_NAME = platform.node()

# --- Networking ---
API_HOST = "0.0.0.0"
API_PORT = 8080
FRIENDLY_HOST = "localdrop.local"

# --- Discovery ---
SERVICE_NAME = APP_NAME
SERVICE_TYPE = "_http._tcp"
SERVICE_PATH = "/"
DISCOVERY_PORT = 41234  # UDP
DISCOVERY_INTERVAL = 3  # seconds

# --- Server ---
REQUEST_READ_TIMEOUT = 30.0  # seconds allowed for reading a request body
START_TIMEOUT = 5.0  # seconds to wait for the listener to come up
STOP_TIMEOUT = 5.0

# --- Storage ---
DEFAULT_STORAGE_DIR = str(Path.home() / "Downloads" / "LocalDrop")
DEFAULT_MIME_TYPE = "application/octet-stream"

# --- Logging ---
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = "INFO"
