"""URL routing for the spot directory."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import SpotViewSet

router = SimpleRouter()
router.register(r"", SpotViewSet, basename="spot")

urlpatterns = [
    path("", include(router.urls)),
]
