"""
Core ingestion orchestration for the Voucher Engine.

Prefect-free; the Prefect wrapper lives in flows/voucher_engine_flow.py.

One run:
    open browser -> for each enabled platform page:
        navigate -> dismiss popup -> paginate -> extract -> parse -> reconcile

Design goals:
- Strictly sequential: one browser, one page, one DB session per run.
- Degrade, don't die: popups, pagination and missing fields never abort.
- Fatal means fatal: browser launch failure / navigation timeout propagate.
- No duplicates: the reconciliation gateway upserts by an explicit strategy.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dealhunt.db import get_session

from .browser.diagnostics import dump_page
from .browser.extractor import extract_bundles
from .browser.pagination import paginate
from .browser.popups import dismiss_popup
from .browser.session import navigate, open_page
from .config import SOURCE_URLS, SOURCES_ENABLED, EngineSettings, load_settings
from .dedupe import MatchStrategy, resolve_strategy
from .models import Platform, VoucherRecord
from .parsing import build_record
from .reconcile import reconcile
from .store import SqlVoucherStore, VoucherStore

logger = logging.getLogger(__name__)

Source = Tuple[Platform, str]


def enabled_sources() -> List[Source]:
    out: List[Source] = []
    for platform in Platform:
        if SOURCES_ENABLED.get(platform.value, False) and SOURCE_URLS.get(platform.value):
            out.append((platform, SOURCE_URLS[platform.value]))
    return out


async def crawl_source(
    page,
    platform: Platform,
    url: str,
    settings: EngineSettings,
    *,
    now: Optional[datetime] = None,
) -> Tuple[List[VoucherRecord], Dict[str, Any]]:
    """Navigate + paginate + extract + parse a single listing page."""
    now = now or datetime.now()

    await navigate(page, url, settings)
    popup = await dismiss_popup(page, grace_ms=settings.popup_grace_ms)
    pages = await paginate(page, settings)
    selector, bundles = await extract_bundles(page, platform, max_items=settings.max_items)

    stats: Dict[str, Any] = {
        "url": url,
        "popup": popup,
        "load_more_clicks": pages.clicks,
        "pagination_stop": pages.stop_reason,
        "selector": selector,
        "extracted": len(bundles),
    }

    if not bundles:
        logger.warning("[%s] no voucher cards found at %s; dumping page for inspection", platform.value, url)
        stats["debug_artifacts"] = await dump_page(page, settings.debug_dir, f"{platform.value}_no_vouchers")
    elif settings.screenshot_on_success:
        stats["debug_artifacts"] = await dump_page(page, settings.debug_dir, f"{platform.value}_crawled", html=False)

    records = [build_record(b, platform, now=now) for b in bundles]
    return records, stats


async def run_pipeline(
    page,
    store: VoucherStore,
    *,
    sources: Sequence[Source],
    settings: EngineSettings,
    strategy: MatchStrategy,
) -> Dict[str, Dict[str, Any]]:
    """
    Returns per-platform counters. Raises NavigationError on a dead page;
    everything after navigation degrades instead of raising.
    """
    out: Dict[str, Dict[str, Any]] = {}

    for platform, url in sources:
        now = datetime.now()
        records, stats = await crawl_source(page, platform, url, settings, now=now)
        result = reconcile(records, store, strategy=strategy, now=now)

        out[platform.value] = {**stats, "parsed": len(records), **result.as_counts()}
        logger.info(
            "[%s] extracted=%d inserted=%d updated=%d skipped=%d",
            platform.value,
            stats["extracted"],
            result.inserted,
            result.updated,
            result.skipped,
        )

    return out


async def run_ingest_async(
    *,
    settings: Optional[EngineSettings] = None,
    strategy: Optional[MatchStrategy] = None,
    sources: Optional[Sequence[Source]] = None,
) -> Dict[str, Dict[str, Any]]:
    settings = settings or load_settings()
    strategy = strategy or resolve_strategy(settings.match_strategy)
    sources = list(sources) if sources is not None else enabled_sources()

    if not sources:
        logger.warning("no voucher sources enabled; nothing to do")
        return {}

    with get_session() as session:
        store = SqlVoucherStore(session)
        seeded = store.seed_platforms()
        if seeded:
            logger.info("seeded %d platform rows", seeded)

        async with open_page(settings) as page:
            return await run_pipeline(page, store, sources=sources, settings=settings, strategy=strategy)


def run_ingest(**kwargs: Any) -> Dict[str, Dict[str, Any]]:
    """Synchronous entrypoint for scripts / cron. Fatal errors propagate."""
    return asyncio.run(run_ingest_async(**kwargs))


if __name__ == "__main__":
    from pprint import pprint

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    pprint(run_ingest())
