"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .application.bootstrap import build_booking_engine

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.sweep_expired_bookings")
def sweep_expired_bookings() -> dict[str, int]:
    """
    Complete confirmed bookings whose end time has passed.

    Frees their spots and refreshes the cached availability flag of every
    spot. Safe to run concurrently or more often than scheduled.

    Returns:
        dict: {"completed": ..., "skipped": ..., "flags_changed": ...}
    """
    result = build_booking_engine().sweep_expired()

    if result.completed:
        logger.info(f"Completed {len(result.completed)} expired bookings")

    return {
        "completed": len(result.completed),
        "skipped": result.skipped,
        "flags_changed": result.flags_changed,
    }
