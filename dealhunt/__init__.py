"""
dealhunt: voucher aggregation jobs.

The browser-driven extraction + reconciliation pipeline lives in
`dealhunt.voucher_engine`; Prefect wrappers live in `flows/`.
"""
