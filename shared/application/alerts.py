"""
Reconciliation alerts

When money has moved but the operation it paid for could not be committed
and automatic compensation is impossible, the situation is logged at
critical level with full context, published on the message bus and raised
as ReconciliationRequired. It is never retried.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import NoReturn
from uuid import UUID

import structlog

from shared.domain.base import DomainEvent
from shared.domain.exceptions import ReconciliationRequired

logger = structlog.get_logger("reconciliation")


@dataclass(kw_only=True)
class PaymentReconciliationRequired(DomainEvent):
    user_id: str
    amount: Decimal
    payment_method: str
    payment_reference: str
    reason: str
    booking_id: UUID | None = None


def require_reconciliation(
    *,
    user_id: str,
    amount: Decimal,
    payment_method: str,
    payment_reference: str,
    reason: str,
    booking_id: UUID | None = None,
    cause: BaseException | None = None,
    bus=None,
) -> NoReturn:
    event = PaymentReconciliationRequired(
        aggregate_id=booking_id,
        user_id=user_id,
        amount=amount,
        payment_method=payment_method,
        payment_reference=payment_reference,
        reason=reason,
        booking_id=booking_id,
    )

    logger.critical(
        "payment_reconciliation_required",
        event_id=str(event.event_id),
        user_id=user_id,
        booking_id=str(booking_id) if booking_id else None,
        amount=str(amount),
        payment_method=payment_method,
        payment_reference=payment_reference,
        reason=reason,
        exc_info=cause,
    )

    if bus is None:
        from shared.application.message_bus import message_bus as bus
    bus.publish_events([event])

    raise ReconciliationRequired(
        booking_id=booking_id,
        payment_reference=payment_reference,
    ) from cause
