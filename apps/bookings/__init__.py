"""Bookings app package.

This app holds the booking/payment consistency core: the booking engine,
the availability index (per-spot schedule of active windows) and the
cancellation/expiry supervisor. Overlap is prevented by checking and
reserving under a per-spot row lock inside one database transaction.
"""
