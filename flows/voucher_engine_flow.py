from __future__ import annotations

import json
from typing import Any, Dict

from dotenv import load_dotenv
from prefect import flow, get_run_logger
from prefect.runtime import flow_run  # type: ignore

from dealhunt.voucher_engine.config import _env_bool, load_settings
from dealhunt.voucher_engine.dedupe import resolve_strategy
from dealhunt.voucher_engine.ingest_flow import run_ingest_async
from flows.utils.discord_alerts import send_discord_alert


def _classify_intake(*, totals: Dict[str, int], counts_by_source: Dict[str, Dict[str, Any]]) -> str:
    """
    Mutually exclusive, ordered classification:
      1) INTAKE_BROKEN            (any source reported skipped persistence)
      2) INTAKE_SUCCESS           (something new landed)
      3) INTAKE_REFRESHED         (only updates; page unchanged since last run)
      4) INTAKE_ZERO_YIELD        (no cards found at all)
    """
    for _, c in counts_by_source.items():
        if int(c.get("skipped", 0) or 0) > 0:
            return "INTAKE_BROKEN"

    if int(totals.get("total_inserted", 0) or 0) > 0:
        return "INTAKE_SUCCESS"

    if int(totals.get("total_updated", 0) or 0) > 0:
        return "INTAKE_REFRESHED"

    return "INTAKE_ZERO_YIELD"


def _summarize(counts_by_source: Dict[str, Dict[str, Any]]) -> Dict[str, int]:
    totals = {
        "total_sources": len(counts_by_source),
        "total_extracted": 0,
        "total_inserted": 0,
        "total_updated": 0,
        "total_skipped": 0,
    }
    for counts in counts_by_source.values():
        totals["total_extracted"] += int(counts.get("extracted", 0) or 0)
        totals["total_inserted"] += int(counts.get("inserted", 0) or 0)
        totals["total_updated"] += int(counts.get("updated", 0) or 0)
        totals["total_skipped"] += int(counts.get("skipped", 0) or 0)
    return totals


@flow(name="voucher-engine", persist_result=False)
async def voucher_engine() -> Dict[str, Any]:
    """
    Prefect flow wrapper for the Voucher Engine.

    Delegates to `run_ingest_async()` and emits JSON log lines suitable for
    runbook checks, plus simple per-source yield lines for quick operator scanning.
    Fatal errors (browser launch, navigation timeout) are logged, alerted and re-raised
    so the flow run is marked Failed.
    """
    load_dotenv()
    logger = get_run_logger()
    logger.info("Voucher Engine flow started.")

    settings = load_settings()
    strategy = resolve_strategy(settings.match_strategy)
    run_id = getattr(flow_run, "id", None)

    try:
        counts_by_source = await run_ingest_async(settings=settings, strategy=strategy)
    except Exception as e:
        logger.error(
            json.dumps(
                {
                    "event": "voucher_engine_run_failed",
                    "run_id": str(run_id) if run_id else None,
                    "error": f"{type(e).__name__}: {str(e)[:500]}",
                },
                sort_keys=True,
            )
        )
        if _env_bool("VOUCHER_ENGINE_ALERTS", True):
            send_discord_alert(
                "Voucher Engine run failed",
                f"{type(e).__name__}: {str(e)[:1500]}",
                severity="error",
                context={"run_id": run_id, "strategy": strategy.value},
            )
        raise

    totals = _summarize(counts_by_source)

    for source, counts in counts_by_source.items():
        extracted = int(counts.get("extracted", 0) or 0)
        inserted = int(counts.get("inserted", 0) or 0)
        updated = int(counts.get("updated", 0) or 0)
        skipped = int(counts.get("skipped", 0) or 0)

        # logs-only quick scan line
        logger.info(f"[{source}] found={extracted} new={inserted} updated={updated} skipped={skipped}")

        payload = {
            "event": "voucher_engine_source_done",
            "source": source,
            "extracted": extracted,
            "inserted": inserted,
            "updated": updated,
            "skipped": skipped,
            "load_more_clicks": counts.get("load_more_clicks"),
            "pagination_stop": counts.get("pagination_stop"),
            "popup": counts.get("popup"),
            "selector": counts.get("selector"),
        }
        if counts.get("debug_artifacts"):
            payload["debug_artifacts"] = counts["debug_artifacts"]

        logger.info(json.dumps(payload, sort_keys=True))

        if counts.get("pagination_stop") == "max_pages":
            logger.warning(
                json.dumps(
                    {"event": "voucher_engine_pagination_bound_hit", "source": source, "max_pages": settings.max_pages},
                    sort_keys=True,
                )
            )

    classification = _classify_intake(totals=totals, counts_by_source=counts_by_source)

    run_complete_payload = {
        "event": "voucher_engine_run_complete",
        "run_id": str(run_id) if run_id else None,
        "intake_classification": classification,
        "match_strategy": strategy.value,
        **totals,
    }
    logger.info(json.dumps(run_complete_payload, sort_keys=True))

    if classification in ("INTAKE_BROKEN", "INTAKE_ZERO_YIELD") and _env_bool("VOUCHER_ENGINE_ALERTS", True):
        send_discord_alert(
            f"Voucher Engine {classification}",
            "Run finished but yield looks wrong; check debug artifacts / flow logs.",
            severity="info" if classification == "INTAKE_ZERO_YIELD" else "error",
            context={k: v for k, v in run_complete_payload.items() if k != "event"},
        )

    return {
        "run_id": str(run_id) if run_id else None,
        "intake_classification": classification,
        "totals": totals,
        "counts_by_source": counts_by_source,
    }


if __name__ == "__main__":
    import asyncio

    asyncio.run(voucher_engine())
