"""Tests for the spot directory API."""

from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.spots.models import Spot


class SpotAPITests(APITestCase):
    def setUp(self) -> None:
        self.busy = Spot.objects.create(title="Queen St A1", latitude=-36.8485, longitude=174.7633)
        self.free = Spot.objects.create(title="Queen St A2", latitude=-36.8486, longitude=174.7634)
        now = timezone.now()
        self.booking = Booking.objects.create(
            user_id="user-2",
            spot=self.busy,
            start_time=now - timedelta(hours=1),
            end_time=now + timedelta(hours=1),
            status=Booking.Status.CONFIRMED,
            payment_method=Booking.PaymentMethod.WALLET,
        )
        self.client.credentials(HTTP_X_USER_ID="user-1")

    def test_list_reports_live_availability(self) -> None:
        # The cached flag is stale until the next sweep; the API is not
        self.assertTrue(Spot.objects.get(pk=self.busy.pk).is_available)

        response = self.client.get(reverse("spot-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        flags = {item["title"]: item["is_available"] for item in response.data}
        self.assertEqual(flags, {"Queen St A1": False, "Queen St A2": True})

    def test_filter_by_availability(self) -> None:
        response = self.client.get(reverse("spot-list"), {"available": "true"})
        self.assertEqual([item["id"] for item in response.data], [str(self.free.id)])

    def test_window_availability(self) -> None:
        url = reverse("spot-availability", args=[self.busy.id])
        end = self.booking.end_time

        response = self.client.get(url, {"start": (end - timedelta(minutes=30)).isoformat(), "end": (end + timedelta(hours=1)).isoformat()})
        self.assertFalse(response.data["available"])

        response = self.client.get(url, {"start": end.isoformat(), "end": (end + timedelta(hours=1)).isoformat()})
        self.assertTrue(response.data["available"])

    def test_window_availability_requires_ordered_times(self) -> None:
        url = reverse("spot-availability", args=[self.free.id])
        now = timezone.now()
        response = self.client.get(url, {"start": now.isoformat(), "end": now.isoformat()})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_spot(self) -> None:
        response = self.client.get(reverse("spot-detail", args=["00000000-0000-0000-0000-000000000000"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
