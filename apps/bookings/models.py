"""Durable key-value records backing the booking store."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class StoredValue(models.Model):
    """One serialized dataset stored under a well-known key."""

    key = models.CharField(max_length=128, primary_key=True)
    value = models.TextField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Stored value")
        verbose_name_plural = _("Stored values")
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key} ({len(self.value)} chars)"
