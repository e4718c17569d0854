# store/tests/test_trips.py

from django.test import TestCase

from store.models import Store, TripCounter
from store.services.trips import next_trip_id, peek_trip_id


class TripCounterTests(TestCase):
    """
    GUARANTEES:
    - Trip ids are per store and strictly increasing
    - Peeking never consumes an id
    """

    def setUp(self):
        self.store = Store.objects.create(name="Main Store", code="1")
        self.branch = Store.objects.create(name="Market", code="2")

    def test_ids_increase_per_store(self):
        self.assertEqual(next_trip_id(store=self.store), "S1-TRIP-00001")
        self.assertEqual(next_trip_id(store=self.store), "S1-TRIP-00002")
        self.assertEqual(next_trip_id(store=self.branch), "S2-TRIP-00001")

        self.assertEqual(TripCounter.objects.get(store=self.store).last_value, 2)

    def test_peek_does_not_consume(self):
        self.assertEqual(peek_trip_id(store=self.store), "S1-TRIP-00001")
        self.assertEqual(peek_trip_id(store=self.store), "S1-TRIP-00001")

        next_trip_id(store=self.store)
        self.assertEqual(peek_trip_id(store=self.store), "S1-TRIP-00002")
