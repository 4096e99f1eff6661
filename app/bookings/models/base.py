"""
Shared abstract models for ledger aggregates.
"""

from __future__ import annotations

from django.db import models
from django.db.models import F


class VersionedModel(models.Model):
    """
    Optimistic locking support for aggregate roots.

    The version field is auto-incremented on every update so that
    bookings.locks.check_version() can detect concurrent modification.

    Fields:
        version: Incremented atomically on each save after the first
    """

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """
        Save with version auto-increment for optimistic locking.

        On update (not force_insert), atomically increments the version
        field to detect concurrent modifications.
        """
        is_update = (
            self.pk
            and not self._state.adding
            and not kwargs.get("force_insert", False)
        )
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])


class AppendOnlyModel(models.Model):
    """
    Records that are never edited after creation.

    Payments and settlements are facts; corrections are made with new
    records (amendments, refunds), never by rewriting old ones.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError(
                f"{self.__class__.__name__} records are append-only and cannot be modified"
            )
        super().save(*args, **kwargs)
