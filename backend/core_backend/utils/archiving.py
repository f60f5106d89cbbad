"""
Soft delete (archiving) infrastructure.

Inventory items, products and customers are never hard-deleted because
orders and stock history keep pointing at them. Archived rows are hidden
from the default manager; ``all_objects`` still sees them.
"""

from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):

    def active(self):
        """Return only active (non-archived) records."""
        return self.filter(is_active=True)

    def archived(self):
        """Return only archived records."""
        return self.filter(is_active=False)

    def archive(self):
        """Archive (soft delete) all records in this queryset."""
        return self.update(is_active=False, archived_at=timezone.now())

    def unarchive(self):
        return self.update(is_active=True, archived_at=None)


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Manager that filters out archived records by default."""

    def get_queryset(self):
        return super().get_queryset().active()


class AllObjectsManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    pass


class SoftDeleteMixin(models.Model):
    """
    Abstract base class that provides soft delete functionality.

    Models inheriting from this mixin get an ``is_active`` flag, an
    ``archived_at`` timestamp, ``archive()``/``unarchive()`` and a default
    manager that only returns active rows.
    """

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Designates whether this record is active. "
                  "Inactive records are considered archived/soft-deleted."
    )
    archived_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp when this record was archived."
    )

    objects = SoftDeleteManager()
    all_objects = AllObjectsManager()

    class Meta:
        abstract = True

    def archive(self):
        """Archive (soft delete) this record."""
        self.is_active = False
        self.archived_at = timezone.now()
        self.save(update_fields=["is_active", "archived_at"])

    def unarchive(self):
        self.is_active = True
        self.archived_at = None
        self.save(update_fields=["is_active", "archived_at"])

    @property
    def is_archived(self):
        return not self.is_active

    def delete(self, using=None, keep_parents=False):
        """Soft delete; rows referenced by orders and history must survive."""
        self.archive()
