"""URL routing for wallets."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import PaymentMethodViewSet, WalletViewSet

router = SimpleRouter()
router.register(r"payment-methods", PaymentMethodViewSet, basename="payment-method")
router.register(r"", WalletViewSet, basename="wallet")

urlpatterns = [
    path("", include(router.urls)),
]
