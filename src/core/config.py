"""
config.py
- Defines runtime flags and the plugin configuration derived from environment variables.
- PLUGIN_* variables follow the Drone plugin convention (settings become PLUGIN_<NAME>).
- Validation failures raise ConfigError before any network activity happens.
"""

import os
import re
import sys
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from core.constants import DEFAULT_RETRY_INTERVAL, DEFAULT_RETRY_JITTER, IMAGE_UUID_PREFIX
from core.errors import ConfigError

# --- Runtime Behavior Flags ---
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"
LOG_LEVEL = "DEBUG" if DEBUG else "INFO"

# --- Retry Timing (seconds) ---
RETRY_INTERVAL = float(os.getenv("RETRY_INTERVAL", DEFAULT_RETRY_INTERVAL))
RETRY_JITTER = float(os.getenv("RETRY_JITTER", DEFAULT_RETRY_JITTER))

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level=None):
    logger.remove()
    logger.add(
        sink=sys.stderr,
        level=level or LOG_LEVEL,
        format=LOG_FORMAT,
        colorize=True,
    )


# --- Parsing Helpers ---

# Nanoseconds per unit, so parsed durations stay exact integers.
_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_TRUE_TOKENS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_TOKENS = {"0", "f", "F", "FALSE", "false", "False"}
_INT_PATTERN = re.compile(r"[+-]?\d+")


def parse_duration_ns(value):
    """
    Parse a duration string such as "300ms", "1m30s" or "1.5h" into integer nanoseconds.

    Accepts the same syntax as Go's time.ParseDuration, which is what pipeline
    authors already write for these settings. Each number is read as a Decimal
    so "1.001s" is exactly 1001 milliseconds; sub-nanosecond fractions truncate.

    Raises:
        ValueError: If the string is empty or not a valid duration.
    """
    text = value.strip() if value else ""
    if not text:
        raise ValueError("empty duration")

    sign = 1
    body = text
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]

    if body == "0":
        return 0

    pos = 0
    total = 0
    while pos < len(body):
        match = _DURATION_PART.match(body, pos)
        if not match:
            raise ValueError(f"invalid duration {value!r}")
        total += int(Decimal(match.group(1)) * _DURATION_UNITS[match.group(2)])
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration {value!r}")
    return sign * total


def parse_duration(value):
    """Parse a duration string into float seconds (see parse_duration_ns)."""
    return parse_duration_ns(value) / 1_000_000_000


def parse_bool(value):
    if value in _TRUE_TOKENS:
        return True
    if value in _FALSE_TOKENS:
        return False
    raise ValueError(f"invalid boolean {value!r}")


def parse_int(value):
    text = value or ""
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid integer {value!r}")
    return int(text)


def normalize_image(image):
    """Prefix a bare image reference with the docker: scheme, exactly once."""
    if image.startswith(IMAGE_UUID_PREFIX):
        return image
    return f"{IMAGE_UUID_PREFIX}{image}"


def split_service_name(service, stack):
    """
    Resolve the (stack, service) pair from the service setting.

    A service written as "<stack>/<service>" is split at the first slash; in
    that form the stack must not also be given on its own.
    """
    if "/" in service:
        if stack:
            raise ConfigError("Cannot specify stack by both field and prefix")
        stack, service = service.split("/", 1)
        if not stack:
            raise ConfigError("Missing required parameter: stack")
    if not service:
        raise ConfigError("Missing required parameter: service")
    if not stack:
        raise ConfigError("Missing required parameter: stack")
    return stack, service


# --- Plugin Configuration ---

@dataclass(frozen=True)
class PluginConfig:
    endpoint: str
    access_key: str
    secret_key: str
    service: str
    stack: str
    image: str
    start_first: bool
    confirm: bool
    batch_size: int
    batch_interval_ns: int
    timeout: float  # seconds
    notify_hook: str = ""
    success_channel: str = ""
    blocked_channel: str = ""
    success_emoji: str = ""
    blocked_emoji: str = ""

    @property
    def target(self):
        return f"{self.stack}/{self.service}"

    @property
    def batch_interval(self):
        return self.batch_interval_ns / 1_000_000_000


def _parse(environ, name, field, parser):
    try:
        return parser(environ.get(name, ""))
    except ValueError as e:
        raise ConfigError(f"Invalid {field} specification: {e}") from e


def load_config(environ=None):
    """
    Build a PluginConfig from PLUGIN_* environment variables.

    Args:
        environ (Mapping[str, str] | None): Source of variables, defaults to os.environ.

    Returns:
        PluginConfig: Validated and normalized configuration.

    Raises:
        ConfigError: On the first missing or malformed required setting.
    """
    env = os.environ if environ is None else environ

    timeout = _parse(env, "PLUGIN_TIMEOUT", "timeout", parse_duration)
    batch_size = _parse(env, "PLUGIN_BATCH_SIZE", "batch size", parse_int)
    batch_interval_ns = _parse(env, "PLUGIN_BATCH_INTERVAL", "batch interval", parse_duration_ns)
    confirm = _parse(env, "PLUGIN_CONFIRM", "confirm", parse_bool)
    start_first = _parse(env, "PLUGIN_START_FIRST", "startfirst", parse_bool)

    required = {
        "endpoint": env.get("PLUGIN_URL", ""),
        "accesskey": env.get("PLUGIN_ACCESS_KEY", ""),
        "secretkey": env.get("PLUGIN_SECRET_KEY", ""),
        "service": env.get("PLUGIN_SERVICE", ""),
        "image": env.get("PLUGIN_DOCKER_IMAGE", ""),
    }
    for field, value in required.items():
        if not value:
            raise ConfigError(f"Missing required parameter: {field}")

    stack, service = split_service_name(required["service"], env.get("PLUGIN_STACK", ""))

    return PluginConfig(
        endpoint=required["endpoint"],
        access_key=required["accesskey"],
        secret_key=required["secretkey"],
        service=service,
        stack=stack,
        image=normalize_image(required["image"]),
        start_first=start_first,
        confirm=confirm,
        batch_size=batch_size,
        batch_interval_ns=batch_interval_ns,
        timeout=timeout,
        notify_hook=env.get("PLUGIN_NOTIFY_WEBHOOK", ""),
        success_channel=env.get("PLUGIN_SUCCESS_CHANNEL", ""),
        blocked_channel=env.get("PLUGIN_BLOCKED_CHANNEL", ""),
        success_emoji=env.get("PLUGIN_SUCCESS_EMOJI", ""),
        blocked_emoji=env.get("PLUGIN_BLOCKED_EMOJI", ""),
    )
