"""
Voucher Engine package.

Responsible for:
- Driving a browser page through popups and "load more" pagination.
- Extracting raw voucher bundles and parsing them into typed records.
- Reconciling those records against the `coupon` table without duplicates.
"""
