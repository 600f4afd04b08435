"""
errors.py
- Error types shared by the deploy runner, retry engine and Rancher client.
- DeployError carries a kind so the entrypoint can pick the exit path and
  decide whether a blocked notification goes out.
"""

from enum import Enum

from core.constants import RETRIABLE_STATUS_CODES


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    TIMEOUT = "timeout"
    PRECONDITION = "precondition"
    CONSISTENCY = "consistency"
    UPSTREAM = "upstream"


class DeployError(RuntimeError):
    """Fatal condition that aborts the deployment run."""

    def __init__(self, kind, message, notify_blocked=False, cause=None):
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.notify_blocked = notify_blocked
        self.cause = cause

    def __str__(self):
        return f"{self.kind.value}: {self.message}"


class ConfigError(DeployError):
    """Missing or malformed plugin setting."""

    def __init__(self, message):
        super().__init__(ErrorKind.CONFIGURATION, message)


class RancherAPIError(Exception):
    """Request to the Rancher API failed (transport error or non-2xx response)."""

    def __init__(self, message, status_code=None, retriable=None):
        super().__init__(message)
        self.status_code = status_code
        self._retriable = retriable

    @property
    def retriable(self):
        if self._retriable is not None:
            return self._retriable
        # No status means the request never got an answer (connection, timeout).
        if self.status_code is None:
            return True
        return self.status_code >= 500 or self.status_code in RETRIABLE_STATUS_CODES
