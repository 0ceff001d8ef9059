"""
Alert helper for the voucher flows.

send_discord_alert() routes by severity (critical/error go to the errors
webhook, info to the main one), appends a small context block and never
raises into the caller.
"""

import logging
from typing import Any, Dict, Optional

from . import discord_client

logger = logging.getLogger(__name__)

_PREFIX = {
    "critical": "🚨 [CRITICAL]",
    "error": "❌ [ERROR]",
    "info": "ℹ️ [INFO]",
}


def _choose_webhook(severity: str) -> Optional[str]:
    if severity.lower() in ("critical", "error"):
        return discord_client.error_webhook()
    return discord_client.main_webhook() or discord_client.error_webhook()


def _format_context(context: Optional[Dict[str, Any]]) -> str:
    if not context:
        return ""
    lines = [f"- **{k}**: `{v}`" for k, v in context.items()]
    return "**Context:**\n" + "\n".join(lines)


def send_discord_alert(
    title: str,
    body: str,
    *,
    severity: str = "error",
    context: Optional[Dict[str, Any]] = None,
    webhook: Optional[str] = None,
) -> bool:
    """
    Send a structured alert embed.

    Parameters
    ----------
    title:
        Short, high-signal title (e.g. "Voucher Engine run failed").
    body:
        What happened and what to check.
    severity:
        "critical", "error" or "info"; drives routing, prefix and colour.
    context:
        Optional key/value pairs (run_id, source, counts...).
    webhook:
        Explicit webhook URL, bypassing routing.
    """
    target = webhook or _choose_webhook(severity)
    if not target:
        logger.warning("discord alert dropped (no webhook): severity=%s title=%r", severity, title)
        return False

    prefix = _PREFIX.get(severity.lower(), f"[{severity.upper()}]")
    description = body
    context_block = _format_context(context)
    if context_block:
        description += "\n\n" + context_block

    try:
        return discord_client.send_embed(
            f"{prefix} {title}",
            description,
            color=0xFF0000 if severity.lower() in ("critical", "error") else 0x5865F2,
            webhook=target,
            username=f"{discord_client.USERNAME} alerts",
        )
    except Exception as e:
        logger.error("discord alert failed: %r title=%r severity=%s", e, title, severity)
        return False
