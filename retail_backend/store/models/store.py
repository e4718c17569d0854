# store/models/store.py

import uuid

from django.db import models


class Store(models.Model):
    """
    Represents a physical store / branch.

    Guarantees:
    - Stores are stable master-data
    - code is required and unique; it is the branch number printed
      into operation codes (code "1" -> "S1")
    - timestamps are reliable (not nullable)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)

    code = models.CharField(
        max_length=16,
        unique=True,
        help_text="Short branch code used in operation and trip identifiers.",
    )

    address = models.TextField(blank=True)
    phone = models.CharField(max_length=50, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.name} (S{self.code})"

    @property
    def label(self) -> str:
        """Identifier used inside generated codes."""
        return f"S{self.code}"
