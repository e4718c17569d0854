# stockops/tests/helpers.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from inventory.models import Item
from inventory.services.stock_ledger import record_opening_balance
from store.models import Store

User = get_user_model()


def make_store(code, name=None, **extra):
    return Store.objects.create(code=code, name=name or f"Store {code}", **extra)


def make_item(code, name=None, **extra):
    return Item.objects.create(code=code, name=name or code.title(), **extra)


def set_opening(item, store, quantity):
    record_opening_balance(item=item, store=store, quantity=quantity)


def stock(item, store) -> Decimal:
    return item.stock_for(store)


def make_user(username, role=None, **extra):
    user = User.objects.create_user(username=username, password="pass1234", **extra)
    if role:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user
