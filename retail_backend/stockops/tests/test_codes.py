# stockops/tests/test_codes.py

from datetime import datetime, timezone as dt_timezone

from django.test import SimpleTestCase, override_settings

from stockops.services.codes import (
    generate_bill_code,
    generate_operation_code,
    generate_transfer_code,
    normalize_terminal,
)
from store.models import Store


class FixedRng:
    def __init__(self, value):
        self.value = value

    def randint(self, low, high):
        return self.value


NOW = datetime(2026, 3, 5, 10, 30, tzinfo=dt_timezone.utc)


@override_settings(STOCKOPS_CODE_PREFIX="WEB", STOCKOPS_DEFAULT_TERMINAL="POS", TIME_ZONE="UTC")
class OperationCodeTests(SimpleTestCase):
    def setUp(self):
        self.store = Store(name="Main", code="1")

    def test_operation_code_shape(self):
        code = generate_operation_code(store=self.store, now=NOW, rng=FixedRng(7))
        self.assertEqual(code, "WEB-S1-260305-CLR-POS-007")

    def test_bill_code_uses_sale_category(self):
        code = generate_bill_code(store=self.store, terminal_code="t-02", now=NOW, rng=FixedRng(512))
        self.assertEqual(code, "WEB-S1-260305-SLO-T02-512")

    @override_settings(STOCKOPS_CODE_PREFIX="APP")
    def test_prefix_comes_from_settings(self):
        code = generate_operation_code(store=self.store, now=NOW, rng=FixedRng(1))
        self.assertTrue(code.startswith("APP-S1-"))

    def test_terminal_normalization(self):
        self.assertEqual(normalize_terminal(" till 3 "), "TILL3")
        self.assertEqual(normalize_terminal(""), "POS")
        self.assertEqual(normalize_terminal("---"), "POS")

    def test_transfer_code_shape(self):
        self.assertEqual(generate_transfer_code(now=NOW, rng=FixedRng(42)), "TR-20260305-0042")
