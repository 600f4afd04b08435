"""
notify.py
- Best-effort chat notifications (Slack-compatible incoming webhook) for deploy outcomes.
- Delivery failures are logged and dropped; they never change the result of a run.
"""

import requests
from loguru import logger

from core.constants import NOTIFY_TIMEOUT_SECONDS, NOTIFY_USERNAME


def build_payload(message, channel, emoji):
    return {
        "text": message,
        "channel": f"#{channel}",
        "username": NOTIFY_USERNAME,
        "icon_emoji": f":{emoji}:",
    }


def notify(message, channel, emoji, webhook_url):
    """
    POST a notification to the webhook. Does nothing when no webhook is configured.

    Returns:
        bool: True if the webhook accepted the message.
    """
    if not webhook_url:
        return False

    try:
        response = requests.post(
            webhook_url,
            json=build_payload(message, channel, emoji),
            timeout=NOTIFY_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        logger.info(f"[notify] Sent to #{channel}: {message}")
        return True
    except requests.RequestException as e:
        logger.warning(f"[notify] Failed to deliver notification to #{channel}: {e}")
        return False


def notify_success(config, message):
    return notify(message, config.success_channel, config.success_emoji, config.notify_hook)


def notify_blocked(config):
    return notify(
        f"CD pipeline blocked on deployment to {config.target}",
        config.blocked_channel,
        config.blocked_emoji,
        config.notify_hook,
    )
