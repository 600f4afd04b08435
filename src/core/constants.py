"""
constants.py
- Project-wide constants shared across the deploy runner and helper modules.
- Includes retry timing defaults, Rancher action names and notification identity.
"""

# --- Retry Timing Defaults ---
DEFAULT_RETRY_INTERVAL = 1.0  # seconds between attempts
DEFAULT_RETRY_JITTER = 0.5    # seconds, added or subtracted per attempt

# --- Image Reference ---
IMAGE_UUID_PREFIX = "docker:"

# --- Rancher Service Lifecycle ---
UPGRADE_ACTION = "upgrade"
FINISH_UPGRADE_ACTION = "finishupgrade"
UPGRADED_STATE = "upgraded"

# --- Notifications ---
NOTIFY_USERNAME = "drone-rancher-plugin"
NOTIFY_TIMEOUT_SECONDS = 10

# --- HTTP ---
API_TIMEOUT_SECONDS = 30
RETRIABLE_STATUS_CODES = {409, 429}
