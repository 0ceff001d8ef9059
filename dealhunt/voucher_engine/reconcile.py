"""
Reconciliation gateway: upsert a batch of parsed vouchers into the store.

- Match under the caller's MatchStrategy; matched rows get their mutable fields
  overwritten (never id / start_date), unmatched records are inserted.
- One commit per record. A failing record is rolled back, logged and skipped.
- Nothing is ever deleted here; expiry is the store's own concern.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from .dedupe import MatchStrategy, identity_key
from .models import VoucherRecord
from .store import VoucherStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    found: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0

    def as_counts(self) -> Dict[str, int]:
        return {
            "found": self.found,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
        }


def _find_existing(store: VoucherStore, record: VoucherRecord, strategy: MatchStrategy) -> Optional[Any]:
    if strategy is MatchStrategy.IDENTITY_LINK:
        link = identity_key(record)
        if not link:
            return None
        return store.find_by_apply_link(link)
    return store.find_by_composite(record)


def reconcile(
    records: Iterable[VoucherRecord],
    store: VoucherStore,
    *,
    strategy: MatchStrategy,
    now: Optional[datetime] = None,
) -> ReconcileResult:
    now = now or datetime.now()
    result = ReconcileResult()

    for record in records:
        result.found += 1
        try:
            existing = _find_existing(store, record, strategy)
            if existing is not None:
                store.update(existing, record)
                store.commit()
                result.updated += 1
            else:
                record.start_date = now
                store.insert(record)
                store.commit()
                result.inserted += 1
        except Exception as e:
            result.skipped += 1
            try:
                store.rollback()
            except Exception:
                logger.exception("rollback failed after persistence error")
            logger.warning(
                "skipping voucher after persistence error (%s: %s) %s",
                type(e).__name__,
                str(e)[:300],
                record.log_ref(),
            )

    logger.info(
        "reconcile done strategy=%s found=%d inserted=%d updated=%d skipped=%d",
        strategy.value,
        result.found,
        result.inserted,
        result.updated,
        result.skipped,
    )
    return result
