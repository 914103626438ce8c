"""Parking spot models."""

from __future__ import annotations

import uuid

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore


class Spot(models.Model):
    """A bookable parking spot."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    latitude = models.FloatField(validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.FloatField(validators=[MinValueValidator(-180), MaxValueValidator(180)])
    is_available = models.BooleanField(
        default=True,
        help_text="Cached: true when no active booking covers the current instant.",
    )
    availability_checked_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Parking spot"
        verbose_name_plural = "Parking spots"
        ordering = ["title"]

    def __str__(self) -> str:
        return self.title
