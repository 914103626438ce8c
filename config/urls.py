"""URL configuration for the SmartPark booking service.

Routes the Django admin (the spot directory) and the versioned REST API
exposed by each domain app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView  # type: ignore

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/spots/', include('apps.spots.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/wallet/', include('apps.wallets.urls')),
    path('api/v1/schema/', SpectacularAPIView.as_view(), name='schema'),
]
