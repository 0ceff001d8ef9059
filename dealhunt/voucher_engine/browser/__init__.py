"""
Browser subsystem for the Voucher Engine.

- session.py: launches Chromium and navigates (fatal on timeout)
- popups.py: ordered fallback chain that clears the promo overlay
- pagination.py: clicks "Xem thêm Voucher" until exhausted (bounded)
- extractor.py: walks visible voucher cards into RawVoucherBundle objects
- diagnostics.py: screenshot + HTML dump when nothing could be extracted
"""
