# stockops/tests/test_transfers.py

import uuid
from decimal import Decimal

from django.test import TestCase

from stockops.catalog import ClearanceType, OperationKind
from stockops.models import TransferRequest
from stockops.services.exceptions import (
    InvalidTransferTransitionError,
    OperationValidationError,
    TransferRequestNotFoundError,
)
from stockops.services.transfer_lifecycle import can_transition
from stockops.services.transfers import approve_transfer, decline_transfer, request_transfer
from stockops.tests.helpers import make_item, make_store, make_user, set_opening, stock

D = Decimal


class TransferLifecycleTests(TestCase):
    """
    GUARANTEES:
    - PENDING -> APPROVED | DECLINED, nothing else
    - FULL approval moves the stock as it is at approval time
    - Declining never touches stock
    """

    def setUp(self):
        self.storekeeper = make_user("keeper")
        self.manager = make_user("boss")
        self.main = make_store("1")
        self.market = make_store("2")
        self.tuna = make_item("TUNA-W")
        self.fillet = make_item("TUNA-F")
        set_opening(self.tuna, self.main, "40")

    def _request(self, **overrides):
        payload = dict(
            source_store_id=self.main.pk,
            destination_store_id=self.market.pk,
            item_id=self.tuna.pk,
            quantity="FULL",
            actor=self.storekeeper,
        )
        payload.update(overrides)
        return request_transfer(**payload)

    def test_request_is_pending_and_touches_nothing(self):
        transfer = self._request()

        self.assertEqual(transfer.status, TransferRequest.STATUS_PENDING)
        self.assertTrue(transfer.is_full_request)
        self.assertIsNone(transfer.requested_quantity)
        self.assertEqual(transfer.requested_display, "FULL")
        self.assertTrue(transfer.code.startswith("TR-"))
        self.assertEqual(stock(self.tuna, self.main), D("40"))

    def test_full_approval_uses_stock_at_approval_time(self):
        transfer = self._request()

        # more stock arrives after the request
        set_opening(self.tuna, self.main, "60")

        result = approve_transfer(transfer.pk, clearance_type=ClearanceType.FULL, actor=self.manager)

        self.assertEqual(result.operation.kind, OperationKind.TRANSFER_FULL)
        self.assertEqual(stock(self.tuna, self.main), D("0"))
        self.assertEqual(stock(self.tuna, self.market), D("100"))

        transfer.refresh_from_db()
        self.assertEqual(transfer.status, TransferRequest.STATUS_APPROVED)
        self.assertEqual(transfer.operation, result.operation)
        self.assertEqual(transfer.decided_by, self.manager)

    def test_full_approval_with_weighed_arrival(self):
        transfer = self._request()

        result = approve_transfer(
            transfer.pk,
            clearance_type=ClearanceType.FULL,
            actor=self.manager,
            arrived_quantity="38.5",
        )

        self.assertEqual(stock(self.tuna, self.market), D("38.5"))
        self.assertEqual(result.operation.discrepancy, D("-1.5"))

    def test_partial_approval_moves_requested_quantity(self):
        transfer = self._request(quantity="15")

        approve_transfer(transfer.pk, clearance_type=ClearanceType.PARTIAL, actor=self.manager)

        self.assertEqual(stock(self.tuna, self.main), D("25"))
        self.assertEqual(stock(self.tuna, self.market), D("15"))

    def test_transfer_with_conversion_lands_in_destination_store(self):
        transfer = self._request(
            quantity=None,
            convert=True,
            conversions=[{"dest_item_id": str(self.fillet.pk), "quantity": "12"}],
        )

        approve_transfer(transfer.pk, clearance_type=ClearanceType.PARTIAL, actor=self.manager)

        self.assertEqual(stock(self.tuna, self.main), D("28"))
        self.assertEqual(stock(self.fillet, self.market), D("12"))
        self.assertEqual(stock(self.fillet, self.main), D("0"))

    def test_approving_twice_is_refused(self):
        transfer = self._request(quantity="5")
        approve_transfer(transfer.pk, clearance_type=ClearanceType.PARTIAL, actor=self.manager)

        with self.assertRaises(InvalidTransferTransitionError) as ctx:
            approve_transfer(transfer.pk, clearance_type=ClearanceType.PARTIAL, actor=self.manager)

        self.assertEqual(ctx.exception.code, "INVALID_TRANSFER_STATE")
        self.assertEqual(stock(self.tuna, self.main), D("35"))

    def test_decline_requires_reason_and_keeps_stock(self):
        transfer = self._request()

        with self.assertRaises(OperationValidationError):
            decline_transfer(transfer.pk, reason="   ", actor=self.manager)

        declined = decline_transfer(transfer.pk, reason="Lorry unavailable", actor=self.manager)
        self.assertEqual(declined.status, TransferRequest.STATUS_DECLINED)
        self.assertEqual(declined.decline_reason, "Lorry unavailable")
        self.assertEqual(stock(self.tuna, self.main), D("40"))

        with self.assertRaises(InvalidTransferTransitionError):
            approve_transfer(transfer.pk, clearance_type=ClearanceType.FULL, actor=self.manager)

    def test_auto_approve(self):
        transfer = self._request(quantity="10", auto_approve=True, actor=self.manager)

        self.assertEqual(transfer.status, TransferRequest.STATUS_APPROVED)
        self.assertEqual(transfer.clearance_type, ClearanceType.PARTIAL)
        self.assertEqual(stock(self.tuna, self.market), D("10"))

    def test_failed_auto_approval_leaves_no_request(self):
        with self.assertRaises(OperationValidationError):
            self._request(
                auto_approve=True,
                clearance_type=ClearanceType.PARTIAL,
                actor=self.manager,
            )

        self.assertFalse(TransferRequest.objects.exists())
        self.assertEqual(stock(self.tuna, self.main), D("40"))

    def test_full_request_approved_as_partial_moves_arrived_quantity(self):
        transfer = self._request()

        with self.assertRaises(OperationValidationError):
            approve_transfer(transfer.pk, clearance_type=ClearanceType.PARTIAL, actor=self.manager)
        transfer.refresh_from_db()
        self.assertEqual(transfer.status, TransferRequest.STATUS_PENDING)

        approve_transfer(
            transfer.pk,
            clearance_type=ClearanceType.PARTIAL,
            actor=self.manager,
            arrived_quantity="12",
        )

        self.assertEqual(stock(self.tuna, self.main), D("28"))
        self.assertEqual(stock(self.tuna, self.market), D("12"))

    def test_request_validation(self):
        with self.assertRaises(OperationValidationError):
            self._request(destination_store_id=self.main.pk)
        with self.assertRaises(OperationValidationError):
            self._request(quantity="0")
        with self.assertRaises(OperationValidationError):
            self._request(quantity=None)

        self.assertFalse(TransferRequest.objects.exists())

    def test_missing_request(self):
        with self.assertRaises(TransferRequestNotFoundError):
            approve_transfer(uuid.uuid4(), clearance_type=ClearanceType.FULL, actor=self.manager)

    def test_transition_table(self):
        self.assertTrue(
            can_transition(
                from_status=TransferRequest.STATUS_PENDING,
                to_status=TransferRequest.STATUS_APPROVED,
            )
        )
        self.assertFalse(
            can_transition(
                from_status=TransferRequest.STATUS_DECLINED,
                to_status=TransferRequest.STATUS_APPROVED,
            )
        )
