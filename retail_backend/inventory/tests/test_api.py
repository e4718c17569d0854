# inventory/tests/test_api.py

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from inventory.models import Item, ItemStock, StockMovement
from permissions.roles import ROLE_CASHIER, ROLE_MANAGER
from stockops.tests.helpers import make_item, make_store, make_user, set_opening


class ItemApiTests(TestCase):
    """
    GUARANTEES:
    - Stock levels are visible per store but never writable through items
    - Only roles with inventory.edit can change item master data
    """

    def setUp(self):
        self.client = APIClient()
        self.cashier = make_user("cashier", role=ROLE_CASHIER)
        self.manager = make_user("manager", role=ROLE_MANAGER)

        self.store = make_store("1")
        self.item = make_item("SARD")
        set_opening(self.item, self.store, "12.5")

    def test_list_shows_stock_levels(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.get("/api/inventory/items/", {"q": "sard"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)
        levels = res.data["results"][0]["stock_levels"]
        self.assertEqual(Decimal(levels[0]["quantity"]), Decimal("12.5"))

    def test_cashier_cannot_edit_items(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.patch(
            f"/api/inventory/items/{self.item.pk}/",
            {"name": "Renamed"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_stock_levels_are_read_only(self):
        self.client.force_authenticate(self.manager)
        res = self.client.patch(
            f"/api/inventory/items/{self.item.pk}/",
            {"name": "Sardines (fresh)", "stock_levels": [{"quantity": "999"}]},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["name"], "Sardines (fresh)")
        self.assertEqual(
            ItemStock.objects.get(item=self.item, store=self.store).quantity,
            Decimal("12.500"),
        )

    def test_movements_ledger(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.get(f"/api/inventory/items/{self.item.pk}/movements/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["reason"], StockMovement.Reason.OPENING)


class SeedInventoryCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_inventory", stdout=StringIO())
        call_command("seed_inventory", stdout=StringIO())

        self.assertEqual(Item.objects.count(), 5)
        self.assertEqual(
            StockMovement.objects.filter(reason=StockMovement.Reason.OPENING).count(),
            6,
        )
        stock = ItemStock.objects.get(item__code="SARD", store__code="1")
        self.assertEqual(stock.quantity, Decimal("120.500"))
