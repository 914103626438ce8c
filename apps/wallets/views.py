"""API views for the caller's wallet and saved cards."""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema  # type: ignore
from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .ledger import LedgerStore
from .models import SavedPaymentMethod, WalletTransaction
from .serializers import (
    SavedPaymentMethodSerializer,
    TopUpSerializer,
    WalletTransactionSerializer,
)
from .services import PaymentMethodService, TopUpService

logger = logging.getLogger(__name__)


class WalletViewSet(viewsets.GenericViewSet):
    """Balance, history and top-up for the authenticated user's wallet."""

    serializer_class = WalletTransactionSerializer
    queryset = WalletTransaction.objects.all()

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(user_id=self.request.user.user_id).order_by("-created_at")

    def get_top_up_service(self) -> TopUpService:
        return TopUpService()

    def list(self, request):  # type: ignore
        ledger = LedgerStore()
        return Response({
            "balance": ledger.get_balance(request.user.user_id),
            "currency": ledger.currency,
        })

    @action(detail=False, methods=["get"])
    def transactions(self, request):  # type: ignore
        """Wallet history, newest first."""
        page = self.paginate_queryset(self.get_queryset())
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(self.get_queryset(), many=True).data)

    @extend_schema(request=TopUpSerializer)
    @action(detail=False, methods=["post"], url_path="top-up")
    def top_up(self, request):  # type: ignore
        serializer = TopUpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user_id = request.user.user_id
        payment = TopUpSerializer.build_card_payment(user_id, serializer.validated_data)
        receipt = self.get_top_up_service().top_up(user_id, serializer.validated_data["amount"], payment)

        return Response(
            {
                "transaction_id": receipt.transaction_id,
                "charge_id": receipt.charge_id,
                "amount": receipt.amount,
                "balance": receipt.balance,
            },
            status=status.HTTP_201_CREATED,
        )


class PaymentMethodViewSet(mixins.ListModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet):
    """
    Saved cards of the authenticated user.

    Cards are saved by opting in during a card payment; here they can only be
    listed and removed.
    """

    serializer_class = SavedPaymentMethodSerializer
    queryset = SavedPaymentMethod.objects.all()
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(user_id=self.request.user.user_id).order_by("-created_at")

    def destroy(self, request, *args, **kwargs):  # type: ignore
        PaymentMethodService().delete(request.user.user_id, kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)
