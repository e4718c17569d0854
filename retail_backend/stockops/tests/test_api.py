# stockops/tests/test_api.py

import uuid
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from permissions.roles import ROLE_CASHIER, ROLE_MANAGER, ROLE_STOREKEEPER
from stockops.catalog import CATALOG_VERSION, ClearanceType, OperationKind
from stockops.models import StockOperation, TransferRequest
from stockops.tests.helpers import make_item, make_store, make_user, set_opening, stock

D = Decimal

OPERATIONS_URL = "/api/stock-ops/operations/"
PREVIEW_URL = "/api/stock-ops/operations/preview/"
TRANSFERS_URL = "/api/stock-ops/transfers/"


class StockOpsApiTests(TestCase):
    """
    GUARANTEES:
    - Endpoints speak the canonical {"error": {"code", "message"}} envelope
    - Capabilities gate submit / reverse / approve / reports
    - Preview never writes
    """

    def setUp(self):
        self.client = APIClient()

        self.cashier = make_user("cashier", role=ROLE_CASHIER)
        self.storekeeper = make_user("keeper", role=ROLE_STOREKEEPER)
        self.manager = make_user("manager", role=ROLE_MANAGER)

        self.store = make_store("1")
        self.branch = make_store("2")
        self.tuna = make_item("TUNA-W")
        self.fillet = make_item("TUNA-F")
        set_opening(self.tuna, self.store, "100")

    def _submit(self, payload, user=None):
        self.client.force_authenticate(user or self.cashier)
        return self.client.post(OPERATIONS_URL, payload, format="json")

    def _clear_payload(self, **overrides):
        payload = {
            "kind": int(OperationKind.PARTIAL_CLEAR),
            "store_id": str(self.store.pk),
            "item_id": str(self.tuna.pk),
            "main_quantity": "20",
        }
        payload.update(overrides)
        return payload

    # ----------------------------------
    # Auth / permissions
    # ----------------------------------

    def test_anonymous_is_rejected(self):
        res = self.client.get(OPERATIONS_URL)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_user_without_role_cannot_submit(self):
        outsider = make_user("outsider")
        res = self._submit(self._clear_payload(), user=outsider)
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_cashier_cannot_reverse(self):
        op_id = self._submit(self._clear_payload()).data["operation"]["id"]

        res = self.client.post(f"{OPERATIONS_URL}{op_id}/reverse/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    # ----------------------------------
    # Submit
    # ----------------------------------

    def test_submit_partial_clear(self):
        res = self._submit(self._clear_payload(terminal_code="T1"))

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertFalse(res.data["duplicate"])
        self.assertEqual(res.data["operation"]["kind_label"], OperationKind.PARTIAL_CLEAR.label)
        self.assertEqual(D(res.data["applied_deltas"][0]["quantity"]), D("-20"))
        self.assertEqual(stock(self.tuna, self.store), D("80"))

    def test_duplicate_local_id_returns_200(self):
        payload = self._clear_payload(local_id="tab-1-99")
        first = self._submit(payload)
        second = self._submit(payload)

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertTrue(second.data["duplicate"])
        self.assertEqual(stock(self.tuna, self.store), D("80"))

    def test_validation_failure_lists_reasons(self):
        res = self._submit(self._clear_payload(main_quantity="0"))

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_FAILED")
        self.assertTrue(res.data["error"]["details"]["reasons"])
        self.assertFalse(StockOperation.objects.exists())

    def test_stock_return_with_missing_reference(self):
        res = self._submit(
            {
                "kind": int(OperationKind.STOCK_RETURN),
                "store_id": str(self.store.pk),
                "item_id": str(self.tuna.pk),
                "return_quantity": "5",
                "reference_id": str(uuid.uuid4()),
            }
        )

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"]["code"], "REFERENCE_NOT_FOUND")

    def test_serializer_rejects_unknown_kind(self):
        res = self._submit(self._clear_payload(kind=42))
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    # ----------------------------------
    # Preview
    # ----------------------------------

    def test_preview_reads_live_stock_and_writes_nothing(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.post(
            PREVIEW_URL,
            {
                "kind": int(OperationKind.FULL_CLEAR),
                "store_id": str(self.store.pk),
                "item_id": str(self.tuna.pk),
                "main_quantity": "90",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["submittable"])
        self.assertEqual(D(res.data["preview"]["current"]), D("100"))
        self.assertEqual(D(res.data["preview"]["projected"]), D("0"))
        self.assertEqual(D(res.data["preview"]["wastage"]), D("-10"))
        self.assertFalse(StockOperation.objects.exists())

    def test_preview_uses_client_stock_and_reports_errors(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.post(
            PREVIEW_URL,
            self._clear_payload(main_quantity="0", current_stock="50"),
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["submittable"])
        self.assertTrue(res.data["errors"])
        self.assertEqual(D(res.data["preview"]["current"]), D("50"))

    # ----------------------------------
    # Reverse
    # ----------------------------------

    def test_manager_reverses_once(self):
        op_id = self._submit(self._clear_payload()).data["operation"]["id"]

        self.client.force_authenticate(self.manager)
        url = f"{OPERATIONS_URL}{op_id}/reverse/"

        first = self.client.post(url, {"reason": "wrong item"}, format="json")
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertFalse(first.data["operation"]["is_active"])
        self.assertEqual(first.data["operation"]["reversal"]["reason"], "wrong item")
        self.assertEqual(stock(self.tuna, self.store), D("100"))

        second = self.client.post(url, {}, format="json")
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(second.data["error"]["code"], "ALREADY_REVERSED")

    def test_reverse_unknown_operation(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(f"{OPERATIONS_URL}{uuid.uuid4()}/reverse/", {}, format="json")

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    # ----------------------------------
    # History / reports / catalog
    # ----------------------------------

    def test_history_filters_by_kind(self):
        self._submit(self._clear_payload())
        self._submit(
            {
                "kind": int(OperationKind.FULL_CLEAR),
                "store_id": str(self.store.pk),
                "item_id": str(self.tuna.pk),
            }
        )

        res = self.client.get(OPERATIONS_URL, {"kind": int(OperationKind.FULL_CLEAR)})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)

    def test_history_hides_reversed_operations(self):
        op_id = self._submit(self._clear_payload()).data["operation"]["id"]
        self.client.force_authenticate(self.manager)
        self.client.post(f"{OPERATIONS_URL}{op_id}/reverse/", {}, format="json")

        self.assertEqual(self.client.get(OPERATIONS_URL).data["count"], 0)

        reversed_only = self.client.get(OPERATIONS_URL, {"is_active": "false"})
        self.assertEqual(reversed_only.data["count"], 1)
        self.assertIsNotNone(reversed_only.data["results"][0]["reversal"])

        # detail still resolves reversed operations
        detail = self.client.get(f"{OPERATIONS_URL}{op_id}/")
        self.assertEqual(detail.status_code, status.HTTP_200_OK)

    def test_summary_requires_reports_capability(self):
        self.client.force_authenticate(self.storekeeper)
        self.assertEqual(
            self.client.get(f"{OPERATIONS_URL}summary/").status_code,
            status.HTTP_403_FORBIDDEN,
        )

        self.client.force_authenticate(self.manager)
        res = self.client.get(f"{OPERATIONS_URL}summary/", {"date_from": "2026-01-01"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["rows"], [])

        bad = self.client.get(f"{OPERATIONS_URL}summary/", {"date_from": "yesterday"})
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_report_ids_are_validation_errors(self):
        self.client.force_authenticate(self.manager)

        for path in ("summary/", "returnable/", "lorry-pending/"):
            res = self.client.get(f"{OPERATIONS_URL}{path}", {"store_id": "abc"})
            self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST, path)
            self.assertEqual(res.data["error"]["code"], "VALIDATION_FAILED")
            self.assertIn("store_id", res.data["error"]["details"]["fields"])

        res = self.client.get(f"{OPERATIONS_URL}returnable/", {"item_id": "nope"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_returnable_lists_clears(self):
        op_id = self._submit(self._clear_payload()).data["operation"]["id"]

        res = self.client.get(
            f"{OPERATIONS_URL}returnable/",
            {"store_id": str(self.store.pk), "item_id": "", "q": ""},
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in res.data["results"]], [op_id])

    def test_kinds_catalog(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.get("/api/stock-ops/kinds/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["version"], CATALOG_VERSION)
        self.assertEqual([k["kind"] for k in res.data["kinds"]], list(range(1, 12)))

    def test_next_trip_id(self):
        self.client.force_authenticate(self.cashier)

        peek = self.client.get("/api/stock-ops/trips/next/", {"store_id": str(self.store.pk)})
        issued = self.client.post("/api/stock-ops/trips/next/", {"store_id": str(self.store.pk)}, format="json")
        missing = self.client.post("/api/stock-ops/trips/next/", {}, format="json")

        self.assertEqual(peek.data["trip_id"], "S1-TRIP-00001")
        self.assertEqual(issued.status_code, status.HTTP_201_CREATED)
        self.assertEqual(issued.data["trip_id"], "S1-TRIP-00001")
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)

    # ----------------------------------
    # Lorry returns
    # ----------------------------------

    def test_lorry_return_flow(self):
        res = self._submit(
            {
                "kind": int(OperationKind.PARTIAL_CLEAR_LORRY),
                "store_id": str(self.store.pk),
                "item_id": str(self.tuna.pk),
                "main_quantity": "40",
                "lorry_number": "KDA 123",
                "issue_trip_id": True,
            }
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        url = f"{OPERATIONS_URL}{res.data['operation']['id']}/lorry-returns/"

        posted = self.client.post(url, {"return_quantity": "15"}, format="json")
        self.assertEqual(posted.status_code, status.HTTP_201_CREATED)
        self.assertEqual(posted.data["summary"]["status"], "PARTIAL_RETURN")

        listed = self.client.get(url)
        self.assertEqual(len(listed.data["returns"]), 1)
        self.assertEqual(D(listed.data["summary"]["net_delivered"]), D("25"))

        pending = self.client.get(f"{OPERATIONS_URL}lorry-pending/", {"store_id": str(self.store.pk)})
        self.assertEqual(pending.status_code, status.HTTP_200_OK)
        self.assertEqual(len(pending.data["results"]), 1)
        self.assertEqual(pending.data["results"][0]["status"], "PARTIAL_RETURN")


class TransferApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.storekeeper = make_user("keeper", role=ROLE_STOREKEEPER)
        self.manager = make_user("manager", role=ROLE_MANAGER)

        self.main = make_store("1")
        self.market = make_store("2")
        self.tuna = make_item("TUNA-W")
        set_opening(self.tuna, self.main, "40")

    def _request_full(self):
        self.client.force_authenticate(self.storekeeper)
        res = self.client.post(
            TRANSFERS_URL,
            {
                "source_store_id": str(self.main.pk),
                "destination_store_id": str(self.market.pk),
                "item_id": str(self.tuna.pk),
                "quantity": "full",
            },
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        return res.data

    def test_request_then_approve(self):
        transfer = self._request_full()
        self.assertEqual(transfer["requested"], "FULL")
        self.assertEqual(transfer["status"], TransferRequest.STATUS_PENDING)

        # storekeepers cannot approve
        url = f"{TRANSFERS_URL}{transfer['id']}/approve/"
        denied = self.client.post(url, {"clearance_type": ClearanceType.FULL}, format="json")
        self.assertEqual(denied.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.manager)
        res = self.client.post(url, {"clearance_type": ClearanceType.FULL}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["transfer"]["status"], TransferRequest.STATUS_APPROVED)
        self.assertEqual(stock(self.tuna, self.market), D("40"))

        again = self.client.post(url, {"clearance_type": ClearanceType.FULL}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(again.data["error"]["code"], "INVALID_TRANSFER_STATE")

    def test_decline_needs_reason(self):
        transfer = self._request_full()
        url = f"{TRANSFERS_URL}{transfer['id']}/decline/"

        self.client.force_authenticate(self.manager)
        self.assertEqual(
            self.client.post(url, {}, format="json").status_code,
            status.HTTP_400_BAD_REQUEST,
        )

        res = self.client.post(url, {"reason": "No lorry"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], TransferRequest.STATUS_DECLINED)
        self.assertEqual(stock(self.tuna, self.main), D("40"))

    def test_rejected_auto_approval_keeps_nothing(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            TRANSFERS_URL,
            {
                "source_store_id": str(self.main.pk),
                "destination_store_id": str(self.market.pk),
                "item_id": str(self.tuna.pk),
                "quantity": "FULL",
                "auto_approve": True,
                "clearance_type": ClearanceType.PARTIAL,
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_FAILED")
        self.assertFalse(TransferRequest.objects.exists())

    def test_bad_quantity_text(self):
        self.client.force_authenticate(self.storekeeper)
        res = self.client.post(
            TRANSFERS_URL,
            {
                "source_store_id": str(self.main.pk),
                "destination_store_id": str(self.market.pk),
                "item_id": str(self.tuna.pk),
                "quantity": "plenty",
            },
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
