#!/usr/bin/env python3
"""
deploy.py
- Drives one rolling upgrade of a Rancher service:
    discover -> authorize -> upgrade -> (confirm: await upgraded -> finish upgrade)
- Every Rancher call goes through the retry engine with the run's time budget.
- Fatal conditions raise DeployError; the entrypoint owns exit codes and notifications.
"""

from dataclasses import dataclass

from loguru import logger

from core.constants import UPGRADED_STATE
from core.errors import DeployError, RancherAPIError
from lib.retries import Fatal, Retriable, Success, call_with_retry, poll_until
from lib.service_index import build_service_index, resolve_service
from lib.service_update import build_upgrade_request, ensure_upgradable


@dataclass(frozen=True)
class DeployResult:
    message: str
    confirmed: bool
    dry_run: bool = False


def api_call(func, *args):
    """Wrap a Rancher client call as a retry attempt returning a tagged outcome."""
    def attempt():
        try:
            return Success(func(*args))
        except RancherAPIError as e:
            if e.retriable:
                return Retriable(e)
            return Fatal(e)
    return attempt


def blocked(error, message):
    """Re-raise a failure after the upgrade step as a pipeline block."""
    return DeployError(error.kind, f"{message}: {error.message}", notify_blocked=True, cause=error.cause)


# --- Steps ---

def discover(client, config, budget):
    environments = call_with_retry(api_call(client.list_environments), budget, "listing stacks")
    services = call_with_retry(api_call(client.list_services), budget, "listing services")
    logger.info(f"[deploy] Found {len(environments)} stack(s) and {len(services)} service(s)")

    index = build_service_index(environments, services)
    return resolve_service(index, config.stack, config.service)


def upgrade(client, service, config, budget):
    request = build_upgrade_request(service, config)
    logger.info(
        f"[deploy] Upgrading {config.target} to {request.image} "
        f"(batch size {request.batch_size}, interval {request.interval_millis}ms, start first {request.start_first})"
    )
    try:
        call_with_retry(api_call(client.upgrade_service, service, request), budget, f"upgrade of {config.target}")
    except DeployError as e:
        raise blocked(e, f"Upgrade command failed for service {config.target}") from e
    return request


def await_upgraded(client, service, config, budget):
    logger.info(f"[deploy] Waiting for {config.target} to reach state '{UPGRADED_STATE}'...")
    try:
        return poll_until(
            lambda: client.get_service(service.id),
            lambda current: current.state == UPGRADED_STATE,
            budget,
            description=f"upgrade of {config.target} to complete",
            pending=lambda current: f"state is {current.state}",
            errors=(RancherAPIError,),
        )
    except DeployError as e:
        raise blocked(e, "Timeout while waiting for the upgrade to complete") from e


def finish(client, service, config, budget):
    try:
        call_with_retry(api_call(client.finish_upgrade, service), budget, f"finish upgrade of {config.target}")
    except DeployError as e:
        raise blocked(e, f"Finish upgrade failed for service {config.target}") from e


def run(client, config, budget, dry_run=False):
    """
    Execute the deployment protocol against Rancher.

    Args:
        client (RancherClient): API client for the target project.
        config (PluginConfig): Validated plugin settings.
        budget (RetryBudget): Time budget applied to each retried call.
        dry_run (bool): Stop after the authorize check and log the request instead.

    Returns:
        DeployResult: Outcome message for the success notification.

    Raises:
        DeployError: On any fatal condition.
    """
    service = discover(client, config, budget)
    logger.info(f"[deploy] Resolved {config.target} -> {service.id} (state: {service.state})")

    ensure_upgradable(service, config.target)

    if dry_run:
        request = build_upgrade_request(service, config)
        logger.info(f"[DRY RUN] Would upgrade {config.target}: {request.to_api()}")
        return DeployResult(f"Dry run for {config.target} completed", confirmed=False, dry_run=True)

    upgrade(client, service, config, budget)

    if not config.confirm:
        logger.info("[deploy] Upgrade issued but not confirmed")
        return DeployResult(
            f"Unfinished deployment to {config.target} initiated but unconfirmed",
            confirmed=False,
        )

    upgraded = await_upgraded(client, service, config, budget)
    finish(client, upgraded, config, budget)

    logger.info(f"[deploy] Finished {config.target} deployment")
    return DeployResult(f"Deployment to {config.target} completed", confirmed=True)
