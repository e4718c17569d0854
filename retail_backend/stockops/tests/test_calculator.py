# stockops/tests/test_calculator.py

import uuid
from decimal import Decimal

from django.test import SimpleTestCase

from stockops.catalog import ClearanceType
from stockops.services.calculator import (
    aggregate_deltas,
    plan_operation,
    preview_operation,
)
from stockops.services.requests import (
    CashFloatAdjustment,
    ConversionLine,
    FullClear,
    FullClearLorry,
    FullClearSale,
    ItemConversion,
    PartialClear,
    PartialClearLorry,
    PartialClearSale,
    StockReturn,
    TransferFull,
    TransferPartial,
)

D = Decimal


class CalculatorTests(SimpleTestCase):
    """
    GUARANTEES:
    - Deduction formula per kind
    - projected = current - deduction + self_addition
    - Discrepancy only for FULL variants (negative = wastage)
    - One delta per (item, store)
    """

    def setUp(self):
        self.store = uuid.uuid4()
        self.other_store = uuid.uuid4()
        self.item = uuid.uuid4()
        self.fillet = uuid.uuid4()
        self.heads = uuid.uuid4()

    def _deltas(self, plan):
        return {d.key: d.quantity for d in plan.deltas()}

    # ----------------------------------
    # Worked examples
    # ----------------------------------

    def test_full_clear_reports_wastage_and_empties_stock(self):
        plan = plan_operation(
            FullClear(self.store, self.item, main_quantity=D("90")),
            current_stock=D("100"),
        )

        self.assertEqual(plan.deduction, D("100"))
        self.assertEqual(plan.projected_stock, D("0"))
        self.assertEqual(plan.discrepancy, D("-10"))

    def test_partial_clear_with_conversion(self):
        plan = plan_operation(
            PartialClear(
                self.store,
                self.item,
                main_quantity=D("20"),
                convert=True,
                conversions=(ConversionLine(self.fillet, D("10")),),
            ),
            current_stock=D("50"),
        )

        self.assertEqual(plan.deduction, D("30"))
        self.assertEqual(plan.projected_stock, D("20"))
        self.assertIsNone(plan.discrepancy)
        self.assertEqual(self._deltas(plan)[(self.fillet, self.store)], D("10"))

    def test_full_transfer_with_conversion_reports_surplus(self):
        plan = plan_operation(
            TransferFull(
                self.store,
                self.item,
                destination_store_id=self.other_store,
                convert=True,
                conversions=(ConversionLine(self.fillet, D("42")),),
            ),
            current_stock=D("40"),
        )

        self.assertEqual(plan.projected_stock, D("0"))
        self.assertEqual(plan.discrepancy, D("2"))
        deltas = self._deltas(plan)
        self.assertEqual(deltas[(self.item, self.store)], D("-40"))
        self.assertEqual(deltas[(self.fillet, self.other_store)], D("42"))
        self.assertNotIn((self.fillet, self.store), deltas)

    def test_direct_stock_return_adds_back(self):
        plan = plan_operation(
            StockReturn(self.store, self.item, return_quantity=D("15"), direct=True),
            current_stock=D("7"),
        )

        self.assertEqual(plan.deduction, D("-15"))
        self.assertEqual(plan.projected_stock, D("22"))

    # ----------------------------------
    # Remaining kinds
    # ----------------------------------

    def test_full_clear_sale_discrepancy_uses_sold_quantity(self):
        plan = plan_operation(
            FullClearSale(self.store, self.item, sold_quantity=D("30"), sell_price=D("2.00")),
            current_stock=D("40"),
        )

        self.assertEqual(plan.deduction, D("40"))
        self.assertEqual(plan.projected_stock, D("0"))
        self.assertEqual(plan.discrepancy, D("-10"))

    def test_partial_clear_sale_deducts_sold_plus_converted(self):
        plan = plan_operation(
            PartialClearSale(
                self.store,
                self.item,
                sold_quantity=D("5"),
                sell_price=D("3.00"),
                convert=True,
                conversions=(ConversionLine(self.heads, D("2")),),
            ),
            current_stock=D("20"),
        )

        self.assertEqual(plan.deduction, D("7"))
        self.assertEqual(plan.projected_stock, D("13"))
        self.assertIsNone(plan.discrepancy)

    def test_partial_transfer_moves_main_quantity(self):
        plan = plan_operation(
            TransferPartial(
                self.store,
                self.item,
                destination_store_id=self.other_store,
                main_quantity=D("10"),
            ),
            current_stock=D("25"),
        )

        self.assertEqual(plan.deduction, D("10"))
        self.assertEqual(plan.projected_stock, D("15"))
        self.assertEqual(plan.arrived_quantity, D("10"))
        deltas = self._deltas(plan)
        self.assertEqual(deltas[(self.item, self.store)], D("-10"))
        self.assertEqual(deltas[(self.item, self.other_store)], D("10"))

    def test_partial_transfer_with_conversion_deducts_converted_total(self):
        plan = plan_operation(
            TransferPartial(
                self.store,
                self.item,
                destination_store_id=self.other_store,
                main_quantity=D("99"),
                convert=True,
                conversions=(
                    ConversionLine(self.fillet, D("4")),
                    ConversionLine(self.heads, D("1")),
                ),
            ),
            current_stock=D("25"),
        )

        self.assertEqual(plan.deduction, D("5"))
        self.assertEqual(plan.arrivals, ())

    def test_unweighed_full_transfer_moves_everything(self):
        plan = plan_operation(
            TransferFull(self.store, self.item, destination_store_id=self.other_store),
            current_stock=D("12"),
        )

        self.assertEqual(plan.arrived_quantity, D("12"))
        self.assertEqual(plan.discrepancy, D("0"))
        self.assertEqual(plan.projected_stock, D("0"))

    def test_weighed_full_transfer_reports_difference(self):
        plan = plan_operation(
            TransferFull(
                self.store,
                self.item,
                destination_store_id=self.other_store,
                main_quantity=D("11.5"),
            ),
            current_stock=D("12"),
        )

        self.assertEqual(plan.arrived_quantity, D("11.5"))
        self.assertEqual(plan.discrepancy, D("-0.5"))

    def test_transfer_conversion_back_into_same_item_is_not_self_addition(self):
        plan = plan_operation(
            TransferFull(
                self.store,
                self.item,
                destination_store_id=self.other_store,
                convert=True,
                conversions=(ConversionLine(self.item, D("8")),),
            ),
            current_stock=D("8"),
        )

        self.assertEqual(plan.self_addition, D("0"))
        self.assertEqual(plan.projected_stock, D("0"))

    def test_lorry_clears(self):
        partial = plan_operation(
            PartialClearLorry(self.store, self.item, main_quantity=D("8")),
            current_stock=D("30"),
        )
        full = plan_operation(
            FullClearLorry(self.store, self.item, main_quantity=D("50")),
            current_stock=D("48"),
        )

        self.assertEqual(partial.deduction, D("8"))
        self.assertIsNone(partial.discrepancy)
        self.assertEqual(full.deduction, D("48"))
        self.assertEqual(full.discrepancy, D("2"))

    def test_item_conversion_full_and_partial(self):
        lines = (ConversionLine(self.fillet, D("30")),)

        full = plan_operation(
            ItemConversion(self.store, self.item, mode=ClearanceType.FULL, conversions=lines),
            current_stock=D("35"),
        )
        partial = plan_operation(
            ItemConversion(self.store, self.item, mode=ClearanceType.PARTIAL, conversions=lines),
            current_stock=D("35"),
        )

        self.assertEqual(full.deduction, D("35"))
        self.assertEqual(full.discrepancy, D("-5"))
        self.assertEqual(partial.deduction, D("30"))
        self.assertIsNone(partial.discrepancy)
        self.assertEqual(partial.projected_stock, D("5"))

    def test_cash_float_adjustment_moves_no_stock(self):
        plan = plan_operation(
            CashFloatAdjustment(self.store, self.item, amount=D("-20.00")),
            current_stock=D("9"),
        )

        self.assertEqual(plan.deduction, D("0"))
        self.assertEqual(plan.projected_stock, D("9"))
        self.assertTrue(all(d.quantity == 0 for d in plan.deltas()))

    def test_stock_return_with_conversion_only_credits_destinations(self):
        plan = plan_operation(
            StockReturn(
                self.store,
                self.item,
                return_quantity=D("6"),
                direct=True,
                convert=True,
                conversions=(ConversionLine(self.fillet, D("4")),),
            ),
            current_stock=D("10"),
        )

        self.assertEqual(plan.deduction, D("0"))
        self.assertEqual(plan.projected_stock, D("10"))
        self.assertEqual(self._deltas(plan)[(self.fillet, self.store)], D("4"))

    def test_conversions_ignored_when_conversion_disabled(self):
        plan = plan_operation(
            PartialClear(
                self.store,
                self.item,
                main_quantity=D("3"),
                convert=False,
                conversions=(ConversionLine(self.fillet, D("10")),),
            ),
            current_stock=D("10"),
        )

        self.assertEqual(plan.deduction, D("3"))
        self.assertEqual(plan.conversions, ())

    def test_conversion_into_source_item_counts_as_self_addition(self):
        plan = plan_operation(
            PartialClear(
                self.store,
                self.item,
                convert=True,
                conversions=(ConversionLine(self.item, D("3")),),
            ),
            current_stock=D("10"),
        )

        self.assertEqual(plan.self_addition, D("3"))
        self.assertEqual(plan.projected_stock, D("10"))
        self.assertEqual(self._deltas(plan), {(self.item, self.store): D("0")})

    def test_negative_starting_stock_single_formula(self):
        plan = plan_operation(
            FullClear(self.store, self.item, main_quantity=D("5")),
            current_stock=D("-4"),
        )

        self.assertEqual(plan.projected_stock, D("0"))
        self.assertEqual(plan.discrepancy, D("9"))


class AggregateDeltasTests(SimpleTestCase):
    def test_one_delta_per_item_store(self):
        item, store = uuid.uuid4(), uuid.uuid4()
        other = uuid.uuid4()

        deltas = aggregate_deltas(
            removals=[(item, store, D("10"))],
            additions=[(item, store, D("4")), (other, store, D("3")), (other, store, D("2"))],
        )

        by_key = {d.key: d.quantity for d in deltas}
        self.assertEqual(len(deltas), 2)
        self.assertEqual(by_key[(item, store)], D("-6"))
        self.assertEqual(by_key[(other, store)], D("5"))


class PreviewTests(SimpleTestCase):
    def setUp(self):
        self.store = uuid.uuid4()
        self.other_store = uuid.uuid4()
        self.item = uuid.uuid4()
        self.fillet = uuid.uuid4()

    def test_preview_projects_conversion_destinations(self):
        preview = preview_operation(
            PartialClear(
                self.store,
                self.item,
                main_quantity=D("20"),
                convert=True,
                conversions=(ConversionLine(self.fillet, D("10")),),
            ),
            current_stock=D("50"),
            stock_lookup={(self.fillet, self.store): D("2")},
        )

        self.assertEqual(preview.projected, D("20"))
        self.assertEqual(preview.diff, D("-30"))
        self.assertEqual(len(preview.conversions), 1)
        self.assertEqual(preview.conversions[0].current, D("2"))
        self.assertEqual(preview.conversions[0].projected, D("12"))
        self.assertIsNone(preview.transfer)

    def test_preview_transfer_shows_both_stores(self):
        preview = preview_operation(
            TransferPartial(
                self.store,
                self.item,
                destination_store_id=self.other_store,
                main_quantity=D("10"),
            ),
            current_stock=D("25"),
            stock_lookup={(self.item, self.other_store): D("3")},
        )

        self.assertEqual(preview.transfer.source.projected, D("15"))
        self.assertEqual(preview.transfer.destination.current, D("3"))
        self.assertEqual(preview.transfer.destination.projected, D("13"))

        payload = preview.as_dict()
        self.assertEqual(payload["transfer"]["destination"]["diff"], "10")

    def test_preview_reports_wastage_for_full_clear(self):
        preview = preview_operation(
            FullClear(self.store, self.item, main_quantity=D("90")),
            current_stock=D("100"),
        )

        self.assertEqual(preview.wastage, D("-10"))
        self.assertEqual(preview.as_dict()["wastage"], "-10")
