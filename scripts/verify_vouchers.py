#!/usr/bin/env python
"""
verify_vouchers.py

Operator report over the stored vouchers: per-platform totals, how many are
still active, percent vs fixed split, and the newest few rows. Optionally posts
the report to Discord (VOUCHER_REPORT_TO_DISCORD=1).
"""

import os
from collections import Counter
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv

from dealhunt.db import get_session
from dealhunt.voucher_engine.listing import VoucherView, list_vouchers
from dealhunt.voucher_engine.models import Platform


def build_report(views: List[VoucherView], *, now: Optional[datetime] = None, newest: int = 5) -> str:
    now = now or datetime.now()
    lines = [f"**Voucher store: {now:%Y-%m-%d %H:%M}**", ""]

    if not views:
        lines.append("_No vouchers stored._")
        return "\n".join(lines)

    totals = Counter(v.platform_name for v in views)
    active = Counter(v.platform_name for v in views if v.is_active)
    percent = Counter(v.platform_name for v in views if v.is_percent_discount)

    for name in sorted(totals):
        lines.append(
            f"- `{name}` total={totals[name]} active={active[name]} "
            f"percent={percent[name]} fixed={totals[name] - percent[name]}"
        )

    no_expiry = sum(1 for v in views if v.expired_date is None)
    no_link = sum(1 for v in views if not v.apply_link)
    lines.append("")
    lines.append(f"missing expiry={no_expiry} missing apply_link={no_link}")

    lines.append("")
    lines.append("Newest:")
    for v in views[:newest]:
        kind = "%" if v.is_percent_discount else "đ"
        code = f" code={v.coupon_code}" if v.coupon_code else ""
        exp = v.expired_date.strftime("%Y-%m-%d") if v.expired_date else "none"
        lines.append(f"  #{v.id} [{v.platform_name}] {v.supplier or '?'} {v.discount_value:g}{kind}{code} exp={exp}")

    return "\n".join(lines)


def main() -> None:
    load_dotenv()

    platform = None
    raw = os.environ.get("VOUCHER_REPORT_PLATFORM")
    if raw:
        platform = Platform(raw.strip().lower())

    with get_session() as session:
        views = list_vouchers(session, platform=platform)

    report = build_report(views)
    print(report)

    if os.environ.get("VOUCHER_REPORT_TO_DISCORD", "").strip().lower() in ("1", "true", "yes"):
        from flows.utils.discord_client import send_embed

        if send_embed("Voucher store report", report):
            print("✅ Discord report sent.")
        else:
            print("❌ Discord report not sent.")


if __name__ == "__main__":
    main()
