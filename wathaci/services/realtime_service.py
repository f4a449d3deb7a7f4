"""Realtime push: Supabase Realtime broadcast over REST.

Publishes a message on a per-user channel (`user:{user_id}`) so the
notification centre in the web app updates without polling. Disabled when
SUPABASE_URL / SUPABASE_SERVICE_KEY are not configured (local dev, tests).
"""

import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)


def _get_realtime_config():
    """Return Supabase realtime config if available, else None."""
    url = current_app.config.get("SUPABASE_URL")
    key = current_app.config.get("SUPABASE_SERVICE_KEY")

    if url and key:
        return {
            "url": url.rstrip("/"),
            "key": key,
            "timeout": current_app.config.get("REALTIME_PUSH_TIMEOUT", 5),
        }
    return None


def user_channel(user_id):
    return f"user:{user_id}"


def publish(channel, event, payload):
    """Broadcast `event` with `payload` on `channel`.

    Returns True if the broadcast was accepted, False if skipped.
    Raises requests.RequestException on transport or HTTP errors.
    """
    config = _get_realtime_config()
    if not config:
        logger.debug(f"Realtime not configured, skipping {event} on {channel}")
        return False

    resp = requests.post(
        f"{config['url']}/realtime/v1/api/broadcast",
        headers={
            "apikey": config["key"],
            "Authorization": f"Bearer {config['key']}",
            "Content-Type": "application/json",
        },
        json={
            "messages": [
                {"topic": channel, "event": event, "payload": payload},
            ]
        },
        timeout=config["timeout"],
    )
    resp.raise_for_status()
    return True
