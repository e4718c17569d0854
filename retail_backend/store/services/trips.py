# store/services/trips.py

"""
======================================================
PATH: store/services/trips.py
======================================================
TRIP ID SERVICE

Issues trip identifiers from a per-store counter.

Rules:
- Counter only moves forward (never reused, never reset here)
- Advancing is serialized with SELECT ... FOR UPDATE on the counter row
- Callers ask for an id explicitly; nothing assigns one implicitly
"""

from __future__ import annotations

import logging

from django.db import transaction

from store.models import Store, TripCounter

logger = logging.getLogger(__name__)


def format_trip_id(*, store: Store, value: int) -> str:
    return f"{store.label}-TRIP-{value:05d}"


@transaction.atomic
def next_trip_id(*, store: Store) -> str:
    """
    Advance the store's trip counter and return the new identifier.
    """
    TripCounter.objects.get_or_create(store=store)

    counter = TripCounter.objects.select_for_update().get(store=store)
    counter.last_value += 1
    counter.save(update_fields=["last_value", "updated_at"])

    trip_id = format_trip_id(store=store, value=counter.last_value)

    logger.info(
        "Issued trip id",
        extra={"store": store.code, "trip_id": trip_id},
    )
    return trip_id


def peek_trip_id(*, store: Store) -> str:
    """
    The id the next call to next_trip_id() would return. Advisory only.
    """
    counter = TripCounter.objects.filter(store=store).first()
    current = counter.last_value if counter else 0
    return format_trip_id(store=store, value=current + 1)
