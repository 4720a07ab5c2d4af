# ------------------------------------------------------------------------
# File: notify.py
# Location: kontrak/core/notify.py
# Description:
#     Optional chat webhook for contract lifecycle events. Delivery
#     failures are logged and never interrupt the request.
# ------------------------------------------------------------------------

import requests
from flask import current_app

from kontrak.logging_config import configure_logging

logger = configure_logging(name="kontrak.notify", logfile="kontrak.log", level=None)


def should_send_webhook() -> bool:
    """Check if webhooks should be sent (respects DISABLE_WEBHOOKS setting)."""
    return not current_app.config.get("DISABLE_WEBHOOKS", False)


def send_webhook_if_enabled(message: str) -> bool:
    """Post a chat notification. Delivery problems are logged, never raised."""
    if not should_send_webhook():
        logger.info(f"Webhook disabled - would have sent: {message}")
        return False

    webhook_url = current_app.config.get("NOTIFY_WEBHOOK_URL")
    if not webhook_url:
        return False

    try:
        response = requests.post(webhook_url, json={"text": message}, timeout=5)
        logger.info(f"Webhook sent: {response.status_code}")
        return response.ok
    except requests.RequestException as e:
        logger.error(f"Failed to send webhook: {e}")
        return False
