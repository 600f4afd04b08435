"""
service_update.py
- Builds the in-service upgrade request for a Rancher service and checks it may be upgraded.
"""

from loguru import logger

from core.constants import UPGRADE_ACTION
from core.errors import DeployError, ErrorKind
from core.models import UpgradeRequest


def ensure_upgradable(service, target):
    if not service.can(UPGRADE_ACTION):
        raise DeployError(
            ErrorKind.PRECONDITION,
            f"Upgrade not available for {target}. Current status: {service.state}",
            notify_blocked=True,
        )


def build_upgrade_request(service, config):
    """
    Derive an upgrade request from the service's current launch config.

    Only the image is overridden; batch settings come from the plugin config
    and secondary launch configs are carried forward unchanged.
    """
    launch_config = dict(service.launch_config)
    previous = launch_config.get("imageUuid")
    launch_config["imageUuid"] = config.image

    logger.debug(f"[service_update] {config.target}: {previous} -> {config.image}")

    return UpgradeRequest(
        image=config.image,
        batch_size=config.batch_size,
        batch_interval_ns=config.batch_interval_ns,
        start_first=config.start_first,
        launch_config=launch_config,
        secondary_launch_configs=list(service.secondary_launch_configs),
    )
