"""Constants used across the handy-dispatch package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "handy-dispatch"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_API_BASE_URL = "https://www.handyfeeling.com/api/handy/v2"
CONNECTION_KEY_HEADER = "X-Connection-Key"

DEFAULT_MAX_SPEED = 10.0
DEFAULT_MAX_LENGTH = 100.0
DEFAULT_RUN_SECONDS = 10.0
DEFAULT_MAX_RUN_SECONDS = 60.0

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8787

COMMAND_OPEN_TAG = "<cmd>"
COMMAND_CLOSE_TAG = "</cmd>"
