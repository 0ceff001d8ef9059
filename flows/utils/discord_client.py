import logging
import os
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

USERNAME = "dealhunt"


def main_webhook() -> Optional[str]:
    return os.getenv("DISCORD_WEBHOOK_MAIN") or None


def error_webhook() -> Optional[str]:
    return os.getenv("DISCORD_WEBHOOK_ERRORS") or main_webhook()


def post_webhook(url: Optional[str], payload: Dict[str, Any], *, attempts: int = 3) -> bool:
    """
    POST a webhook payload with small retries.

    429 honours Retry-After; other 4xx give up immediately; 5xx and transport
    errors back off and retry. Returns True once Discord accepts the payload.
    """
    if not url:
        logger.warning("discord: no webhook URL configured; dropping payload")
        return False

    for attempt in range(attempts):
        try:
            resp = requests.post(url, json=payload, timeout=5)
        except requests.RequestException as e:
            logger.warning("discord: transport error (attempt %d): %s", attempt + 1, e)
            time.sleep(1 + attempt)
            continue

        if resp.status_code in (200, 204):
            return True

        if resp.status_code == 429:
            retry = float(resp.headers.get("Retry-After", 2 ** attempt))
            logger.info("discord: rate limited, retrying in %.1fs", retry)
            time.sleep(retry)
            continue

        if 400 <= resp.status_code < 500:
            logger.error("discord: client error %s %s", resp.status_code, resp.text[:200])
            return False

        logger.warning("discord: server error %s %s", resp.status_code, resp.text[:200])
        time.sleep(1 + attempt)

    return False


def send_embed(
    title: str,
    description: str,
    *,
    fields: Optional[Dict[str, str]] = None,
    color: int = 0x5865F2,
    webhook: Optional[str] = None,
    username: str = USERNAME,
) -> bool:
    embed: Dict[str, Any] = {"title": title[:256], "description": description[:4000], "color": color}
    if fields:
        embed["fields"] = [{"name": k, "value": v, "inline": False} for k, v in fields.items()]

    return post_webhook(webhook or main_webhook(), {"username": username, "embeds": [embed]})
