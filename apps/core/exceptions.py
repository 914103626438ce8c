"""DRF exception handler for domain errors."""

from __future__ import annotations

import logging

from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import DomainError, ReconciliationRequired

logger = logging.getLogger(__name__)


def domain_exception_handler(exc, context):  # type: ignore
    """
    Render a DomainError as {"code", "detail"[, "context", "reason"]}.

    Anything else goes to the DRF default handler.
    """
    if not isinstance(exc, DomainError):
        return exception_handler(exc, context)

    view = context.get("view")
    if isinstance(exc, ReconciliationRequired):
        # Already logged at critical level with the payment details
        body = {"code": exc.code, "detail": exc.message}
    else:
        logger.info(f"{exc.code} in {view.__class__.__name__ if view else 'view'}: {exc.message}")
        body = exc.to_dict()

    return Response(body, status=exc.http_status)
