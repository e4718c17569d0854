# inventory/management/commands/seed_inventory.py

from decimal import Decimal

from django.core.management.base import BaseCommand

from inventory.models import Item, StockMovement
from inventory.services.stock_ledger import record_opening_balance
from store.models import Store


STORES = [
    ("1", "Main Store", "Harbour Road"),
    ("2", "Market Branch", "Central Market"),
    ("3", "Cold Room", "Harbour Road, Block B"),
]

ITEMS = [
    ("TUNA-W", "Tuna (whole)", "kg", "8.50"),
    ("TUNA-F", "Tuna fillet", "kg", "14.00"),
    ("TUNA-H", "Tuna heads", "kg", "2.00"),
    ("SARD", "Sardines", "kg", "3.20"),
    ("ICE", "Ice", "bag", "1.00"),
]

# (item code, store code, opening quantity)
OPENING_BALANCES = [
    ("TUNA-W", "1", "250"),
    ("TUNA-W", "2", "40"),
    ("TUNA-F", "1", "30"),
    ("SARD", "1", "120.5"),
    ("SARD", "3", "60"),
    ("ICE", "1", "80"),
]


class Command(BaseCommand):
    help = "Seed demo stores, items and opening stock (through the stock ledger)."

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding stores, items and opening stock..."))

        # -------------------------------
        # STORES
        # -------------------------------
        stores = {}
        for code, name, address in STORES:
            store, _ = Store.objects.get_or_create(
                code=code,
                defaults={"name": name, "address": address},
            )
            stores[code] = store

        # -------------------------------
        # ITEMS
        # -------------------------------
        items = {}
        for code, name, unit, price in ITEMS:
            item, _ = Item.objects.get_or_create(
                code=code,
                defaults={"name": name, "unit": unit, "selling_price": Decimal(price)},
            )
            items[code] = item

        # -------------------------------
        # OPENING BALANCES (once per item/store)
        # -------------------------------
        loaded = 0
        for item_code, store_code, quantity in OPENING_BALANCES:
            item, store = items[item_code], stores[store_code]
            already = StockMovement.objects.filter(
                item=item,
                store=store,
                reason=StockMovement.Reason.OPENING,
            ).exists()
            if already:
                continue

            record_opening_balance(item=item, store=store, quantity=quantity)
            loaded += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeded {len(stores)} stores, {len(items)} items, {loaded} opening balances."
            )
        )
