# stockops/tests/test_reports.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from stockops.catalog import ClearanceType, OperationKind
from stockops.serializers import ReportQuerySerializer
from stockops.services.ledger import submit_operation
from stockops.services.reports import (
    operation_summary,
    reconstruct_discrepancy,
    returnable_operations,
)
from stockops.services.requests import (
    CustomerInfo,
    FullClear,
    FullClearSale,
    PartialClear,
    TransferPartial,
)
from stockops.services.reversal import reverse_operation
from stockops.tests.helpers import make_item, make_store, make_user, set_opening

D = Decimal


class ReportTests(TestCase):
    def setUp(self):
        self.user = make_user("clerk")
        self.store = make_store("1")
        self.branch = make_store("2")
        self.tuna = make_item("TUNA-W")
        self.sardine = make_item("SARD")
        set_opening(self.tuna, self.store, "100")
        set_opening(self.sardine, self.store, "50")

    def _commit(self, request):
        return submit_operation(request, actor=self.user).operation

    def test_summary_groups_active_operations(self):
        self._commit(FullClear(self.store.pk, self.tuna.pk, main_quantity=D("95")))
        self._commit(
            FullClearSale(
                self.store.pk,
                self.sardine.pk,
                sold_quantity=D("52"),
                sell_price=D("3.00"),
                customer=CustomerInfo(name="Hotel Bahari"),
            )
        )
        reversed_op = self._commit(PartialClear(self.store.pk, self.tuna.pk, main_quantity=D("1")))
        reverse_operation(reversed_op.pk, actor=self.user)

        rows = {(r["kind"], r["clearance_type"]): r for r in operation_summary(store_id=self.store.pk)}

        clear = rows[(OperationKind.FULL_CLEAR, ClearanceType.FULL)]
        self.assertEqual(clear["count"], 1)
        self.assertEqual(D(clear["total_wastage"]), D("5"))

        sale = rows[(OperationKind.FULL_CLEAR_SALE, ClearanceType.FULL)]
        self.assertEqual(D(sale["total_surplus"]), D("2"))
        self.assertEqual(D(sale["total_sales"]), D("156.00"))

        self.assertNotIn((OperationKind.PARTIAL_CLEAR, ClearanceType.PARTIAL), rows)

    def test_summary_store_filter_includes_transfer_destination(self):
        self._commit(
            TransferPartial(
                self.store.pk,
                self.tuna.pk,
                destination_store_id=self.branch.pk,
                main_quantity=D("10"),
            )
        )

        rows = operation_summary(store_id=self.branch.pk)
        self.assertEqual([r["kind"] for r in rows], [OperationKind.TRANSFER_PARTIAL])

    def test_reconstructed_discrepancy_matches_persisted(self):
        op = self._commit(FullClear(self.store.pk, self.tuna.pk, main_quantity=D("97.5")))
        self.assertEqual(reconstruct_discrepancy(op), op.discrepancy)

        partial = self._commit(PartialClear(self.store.pk, self.sardine.pk, main_quantity=D("2")))
        self.assertIsNone(reconstruct_discrepancy(partial))

    def test_returnable_candidates(self):
        clear = self._commit(PartialClear(self.store.pk, self.tuna.pk, main_quantity=D("2")))
        self._commit(
            TransferPartial(
                self.store.pk,
                self.tuna.pk,
                destination_store_id=self.branch.pk,
                main_quantity=D("1"),
            )
        )
        gone = self._commit(PartialClear(self.store.pk, self.sardine.pk, main_quantity=D("2")))
        reverse_operation(gone.pk, actor=self.user)

        self.assertEqual(list(returnable_operations(store_id=self.store.pk)), [clear])
        self.assertEqual(list(returnable_operations(search=clear.code[-6:], item_id=self.tuna.pk)), [clear])

    def test_report_query_params(self):
        query = ReportQuerySerializer(data={"date_from": "2026-03-05", "store_id": str(self.store.pk)})
        self.assertTrue(query.is_valid())
        self.assertEqual(query.validated_data["date_from"], date(2026, 3, 5))

        self.assertFalse(ReportQuerySerializer(data={"date_from": "05/03/2026"}).is_valid())
        self.assertFalse(ReportQuerySerializer(data={"store_id": "abc"}).is_valid())
        self.assertFalse(
            ReportQuerySerializer(data={"date_from": "2026-03-06", "date_to": "2026-03-05"}).is_valid()
        )
