"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Channel(UUIDPrimaryKeyMixin, BaseModel):
        name = models.CharField(max_length=100)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a server-generated UUID as primary key.

    Ids are opaque strings to clients and never reveal record count
    or creation order.

    Fields:
        id: UUIDField as primary key (auto-generated)

    Note:
        Model.save() on a new instance with a preset UUID may fall back to
        an UPDATE. Use QuerySet.create() (forced INSERT) where a collision
        must surface as an IntegrityError instead of overwriting a row.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
