"""
retries.py
- Time-budgeted retry engine shared by every Rancher call in a deploy run.
- Operations return a tagged outcome (Success / Retriable / Fatal); the engine only
  sleeps and re-invokes on Retriable, so the retry-or-abort decision stays at the call site.
- The same primitive drives immediate retries of API actions and polling for a remote
  state (poll_until).
"""

import random
import time
from dataclasses import dataclass

from loguru import logger
from tenacity import RetryError, Retrying, retry_if_result, stop_after_delay
from tenacity.wait import wait_base

from core.constants import DEFAULT_RETRY_INTERVAL, DEFAULT_RETRY_JITTER
from core.errors import DeployError, ErrorKind


@dataclass(frozen=True)
class RetryBudget:
    total: float  # seconds allowed across all attempts
    interval: float = DEFAULT_RETRY_INTERVAL
    jitter: float = DEFAULT_RETRY_JITTER


# --- Attempt Outcomes ---

@dataclass(frozen=True)
class Success:
    value: object = None


@dataclass(frozen=True)
class Retriable:
    cause: object


@dataclass(frozen=True)
class Fatal:
    cause: object
    kind: ErrorKind = ErrorKind.UPSTREAM


class wait_jittered(wait_base):
    """Wait interval +/- uniform(0, jitter), clamped at zero."""

    def __init__(self, interval, jitter):
        self.interval = interval
        self.jitter = abs(jitter)

    def __call__(self, retry_state):
        return max(0.0, self.interval + random.uniform(-self.jitter, self.jitter))


def _log_retry(description):
    def before_sleep(retry_state):
        outcome = retry_state.outcome.result()
        logger.warning(
            f"[retries] {description}: attempt {retry_state.attempt_number} failed "
            f"({outcome.cause}), retrying in {retry_state.next_action.sleep:.2f}s"
        )
    return before_sleep


def call_with_retry(operation, budget, description="operation", sleep=time.sleep):
    """
    Invoke operation until it returns Success or the time budget runs out.

    At least one attempt is made even when the budget is zero or negative.

    Args:
        operation (Callable[[], Success | Retriable | Fatal]): Zero-argument attempt.
        budget (RetryBudget): Total duration, base interval and jitter bound.
        description (str): Used in log lines and error messages.
        sleep (Callable[[float], None]): Sleep function between attempts.

    Returns:
        object: The value carried by the Success outcome.

    Raises:
        DeployError: TIMEOUT when the budget is exhausted, or the Fatal outcome's kind.
    """
    retryer = Retrying(
        stop=stop_after_delay(budget.total),
        wait=wait_jittered(budget.interval, budget.jitter),
        retry=retry_if_result(lambda outcome: isinstance(outcome, Retriable)),
        before_sleep=_log_retry(description),
        sleep=sleep,
    )

    try:
        outcome = retryer(operation)
    except RetryError as e:
        last = e.last_attempt.result()
        raise DeployError(
            ErrorKind.TIMEOUT,
            f"Timed out after {e.last_attempt.attempt_number} attempt(s) on {description}: {last.cause}",
            cause=last.cause,
        ) from None

    if isinstance(outcome, Fatal):
        if isinstance(outcome.cause, DeployError):
            raise outcome.cause
        raise DeployError(outcome.kind, f"{description} failed: {outcome.cause}", cause=outcome.cause)

    if not isinstance(outcome, Success):
        raise TypeError(f"{description} returned {type(outcome).__name__}, expected an attempt outcome")

    return outcome.value


def poll_until(fetch, predicate, budget, description="condition", pending=None, errors=(Exception,), sleep=time.sleep):
    """
    Re-fetch a remote value until predicate(value) holds.

    Fetch errors of the given types and unmet predicates are both retriable; the
    call gives up with a TIMEOUT DeployError once the budget is spent.
    """
    def attempt():
        try:
            value = fetch()
        except errors as e:
            return Retriable(e)
        if predicate(value):
            return Success(value)
        return Retriable(pending(value) if pending else "not ready yet")

    return call_with_retry(attempt, budget, description=description, sleep=sleep)
