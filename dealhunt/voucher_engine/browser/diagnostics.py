from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)


async def dump_page(page, debug_dir: str, label: str, *, html: bool = True) -> Dict[str, str]:
    """
    Write a full-page screenshot (and optionally the HTML) for offline debugging.

    Best-effort: returns whatever paths were written.
    """
    out_dir = Path(debug_dir)
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    written: Dict[str, str] = {}

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("cannot create debug dir %s: %s", out_dir, e)
        return written

    shot = out_dir / f"{label}_{stamp}.png"
    try:
        await page.screenshot(path=str(shot), full_page=True)
        written["screenshot"] = str(shot)
    except Exception as e:
        logger.warning("screenshot failed: %s", e)

    if html:
        dump = out_dir / f"{label}_{stamp}.html"
        try:
            dump.write_text(await page.content(), encoding="utf-8")
            written["html"] = str(dump)
        except Exception as e:
            logger.warning("html dump failed: %s", e)

    if written:
        logger.info("debug artifacts written: %s", ", ".join(written.values()))
    return written
