#!/usr/bin/env python3
"""
entrypoint.py
- Drone plugin entrypoint: reads PLUGIN_* settings, runs one deployment and exits.
- Usage:
    rancher-deploy              (console script)
    python /src/main.py         (container entrypoint)

- Exit code 0 on success (confirmed, unconfirmed or dry run), 1 on any fatal condition.
"""

import os
import signal
import sys

import sentry_sdk
from loguru import logger

from core import config as settings
from core.errors import DeployError
from core.rancher_client import RancherClient
from lib.notify import notify_blocked, notify_success
from lib.retries import RetryBudget
from runner import deploy


def handle_exit(signum, frame):
    logger.warning(f"📴 Received signal {signum}. Aborting deployment.")
    sys.exit(1)


def init_sentry():
    dsn = os.getenv("SENTRY_DSN")
    if dsn:
        sentry_sdk.init(dsn=dsn, traces_sample_rate=1.0)


def main(environ=None, client_factory=RancherClient, dry_run=None):
    settings.configure_logging()

    try:
        config = settings.load_config(environ)
    except DeployError as e:
        logger.error(f"❌ {e}")
        return 1

    budget = RetryBudget(
        total=config.timeout,
        interval=settings.RETRY_INTERVAL,
        jitter=settings.RETRY_JITTER,
    )
    dry_run = settings.DRY_RUN if dry_run is None else dry_run

    try:
        with client_factory(config.endpoint, config.access_key, config.secret_key) as client:
            result = deploy.run(client, config, budget, dry_run=dry_run)
    except DeployError as e:
        if e.notify_blocked and not dry_run:
            notify_blocked(config)
        logger.error(f"❌ Deployment to {config.target} failed ({e.kind.value}): {e.message}")
        return 1

    if not result.dry_run:
        notify_success(config, result.message)
    logger.info(f"✅ {result.message}")
    return 0


def run():
    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)
    init_sentry()
    sys.exit(main())


if __name__ == "__main__":
    run()
