"""HTTP-level tests for the /api/v1 routes."""
from __future__ import annotations

import io
import uuid
from decimal import Decimal

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from backend.app.api.deps import read_upload
from backend.app.core.exceptions import StorageUnavailable
from backend.app.models.branch import Branch
from backend.app.models.dealer import Dealer
from backend.app.services.file_service import DocumentStore
from backend.tests.helpers import stored_files

PDF = ("bill.pdf", b"%PDF-1.4 api", "application/pdf")


def _bill_form(dealer: Dealer, branch: Branch, **overrides) -> dict:
    form = {
        "dealer_id": str(dealer.id),
        "branch_id": str(branch.id),
        "bill_number": "INV-API-1",
        "amount": "1000",
    }
    form.update(overrides)
    return form


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}

    def test_request_id_is_echoed(self, client: TestClient) -> None:
        r = client.get("/health", headers={"X-Request-ID": "till-42"})
        assert r.headers["X-Request-ID"] == "till-42"

    def test_request_id_is_generated(self, client: TestClient) -> None:
        assert client.get("/health").headers["X-Request-ID"]


# ─── Reference data ──────────────────────────────────────────────────────────


class TestReferenceData:
    def test_branches(self, client: TestClient) -> None:
        r = client.post("/api/v1/branches", json={"name": "T. Nagar"})
        assert r.status_code == 201
        assert client.post("/api/v1/branches", json={"name": "T. Nagar"}).status_code == 409
        assert client.post("/api/v1/branches", json={"name": " "}).status_code == 400
        assert [b["name"] for b in client.get("/api/v1/branches").json()] == ["T. Nagar"]

    def test_dealers(self, client: TestClient) -> None:
        r = client.post("/api/v1/dealers", json={"dealer_name": "Arun Stores", "phone": "044-2434"})
        assert r.status_code == 201
        assert r.json()["phone"] == "044-2434"
        assert client.post("/api/v1/dealers", json={"dealer_name": "Arun Stores"}).status_code == 409
        assert len(client.get("/api/v1/dealers").json()) == 1


# ─── Uploads ─────────────────────────────────────────────────────────────────


def _upload(data: bytes) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename="bill.pdf",
        headers=Headers({"content-type": "application/pdf"}),
    )


class TestReadUpload:
    def test_reads_whole_file_within_limit(self) -> None:
        doc = read_upload(_upload(b"0123456789"), max_bytes=10)
        assert doc.data == b"0123456789"
        assert doc.content_type == "application/pdf"

    def test_stops_one_byte_past_limit(self) -> None:
        doc = read_upload(_upload(b"x" * 1000), max_bytes=10)
        assert len(doc.data) == 11

    def test_no_limit_reads_everything(self) -> None:
        assert len(read_upload(_upload(b"x" * 1000)).data) == 1000

    def test_missing_file(self) -> None:
        assert read_upload(None) is None


# ─── Bills ───────────────────────────────────────────────────────────────────


class TestBillRoutes:
    def test_create_with_document(
        self, client: TestClient, dealer: Dealer, branch: Branch, store: DocumentStore
    ) -> None:
        r = client.post("/api/v1/bills", data=_bill_form(dealer, branch), files={"document": PDF})
        assert r.status_code == 201
        body = r.json()
        assert body["status"] == "Pending"
        assert Decimal(body["pending"]) == Decimal("1000")
        assert stored_files(store) == [body["document_path"]]

        download = client.get(body["document_url"])
        assert download.status_code == 200
        assert download.content == b"%PDF-1.4 api"

        listed = client.get("/api/v1/bills").json()
        assert client.get(listed[0]["document_url"]).content == b"%PDF-1.4 api"

    def test_create_without_document(self, client: TestClient, dealer: Dealer, branch: Branch) -> None:
        r = client.post("/api/v1/bills", data=_bill_form(dealer, branch))
        assert r.status_code == 201
        assert r.json()["document_path"] is None
        assert client.get(f"/api/v1/bills/{r.json()['id']}/document").status_code == 404

    def test_missing_fields(self, client: TestClient, dealer: Dealer, branch: Branch) -> None:
        r = client.post("/api/v1/bills", data={"bill_number": "X"})
        assert r.status_code == 400
        assert "dealer_id" in r.json()["detail"]
        assert "amount" in r.json()["detail"]

    @pytest.mark.parametrize("amount", ["-5", "abc", "NaN"])
    def test_bad_amount(self, client: TestClient, dealer: Dealer, branch: Branch, amount: str) -> None:
        r = client.post("/api/v1/bills", data=_bill_form(dealer, branch, amount=amount))
        assert r.status_code == 400

    def test_duplicate_number(self, client: TestClient, dealer: Dealer, branch: Branch) -> None:
        assert client.post("/api/v1/bills", data=_bill_form(dealer, branch)).status_code == 201
        assert client.post("/api/v1/bills", data=_bill_form(dealer, branch)).status_code == 409

    def test_bad_document_type(
        self, client: TestClient, dealer: Dealer, branch: Branch, store: DocumentStore
    ) -> None:
        r = client.post(
            "/api/v1/bills",
            data=_bill_form(dealer, branch),
            files={"document": ("notes.txt", b"hello", "text/plain")},
        )
        assert r.status_code == 400
        assert stored_files(store) == []

    def test_oversized_document(
        self,
        client: TestClient,
        dealer: Dealer,
        branch: Branch,
        store: DocumentStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(store, "_max_bytes", 4)
        r = client.post("/api/v1/bills", data=_bill_form(dealer, branch), files={"document": PDF})
        assert r.status_code == 413
        assert stored_files(store) == []

    def test_storage_failure_is_503(
        self,
        client: TestClient,
        dealer: Dealer,
        branch: Branch,
        store: DocumentStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def broken_save(document):
            raise StorageUnavailable("Document storage is not accessible")

        monkeypatch.setattr(store, "save", broken_save)
        r = client.post(
            "/api/v1/bills",
            data=_bill_form(dealer, branch),
            files={"document": PDF},
            headers={"X-Request-ID": "rid-503"},
        )
        assert r.status_code == 503
        assert r.json()["request_id"] == "rid-503"
        assert client.get("/api/v1/bills").json() == []

    def test_put_form_update_and_replace_document(
        self, client: TestClient, dealer: Dealer, branch: Branch, store: DocumentStore
    ) -> None:
        created = client.post(
            "/api/v1/bills", data=_bill_form(dealer, branch), files={"document": PDF}
        ).json()

        r = client.put(
            f"/api/v1/bills/{created['id']}",
            data={"paid": "1000"},
            files={"document": ("scan.png", b"\x89PNG", "image/png")},
        )
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "Completed"
        assert body["bill_number"] == "INV-API-1"
        assert body["document_path"].endswith(".png")
        assert stored_files(store) == [body["document_path"]]

        removed = client.put(f"/api/v1/bills/{created['id']}", data={"remove_document": "true"})
        assert removed.json()["document_path"] is None
        assert stored_files(store) == []

    def test_put_paid_out_of_range(self, client: TestClient, dealer: Dealer, branch: Branch) -> None:
        created = client.post("/api/v1/bills", data=_bill_form(dealer, branch)).json()
        r = client.put(f"/api/v1/bills/{created['id']}", data={"paid": "1500"})
        assert r.status_code == 400
        assert Decimal(client.get(f"/api/v1/bills/{created['id']}").json()["paid"]) == 0

    def test_patch_json(self, client: TestClient, dealer: Dealer, branch: Branch) -> None:
        created = client.post("/api/v1/bills", data=_bill_form(dealer, branch)).json()
        url = f"/api/v1/bills/{created['id']}"

        r = client.patch(url, json={"paid": "1000"})
        assert r.json()["status"] == "Completed"

        r = client.patch(url, json={"paid": "400"})
        assert r.json()["status"] == "Pending"
        assert Decimal(r.json()["pending"]) == Decimal("600")

        assert client.patch(url, json={"amount": None}).status_code == 400
        assert client.patch(url, json={"amount": "100"}).status_code == 400

    def test_unknown_bill(self, client: TestClient) -> None:
        missing = uuid.uuid4()
        assert client.get(f"/api/v1/bills/{missing}").status_code == 404
        assert client.patch(f"/api/v1/bills/{missing}", json={"paid": "1"}).status_code == 404

    def test_list_filters(
        self, client: TestClient, dealer: Dealer, branch: Branch, other_branch: Branch
    ) -> None:
        client.post("/api/v1/bills", data=_bill_form(dealer, branch, bill_number="A-1"))
        client.post(
            "/api/v1/bills",
            data=_bill_form(dealer, other_branch, bill_number="B-1", amount="0"),
        )

        assert len(client.get("/api/v1/bills").json()) == 2
        by_branch = client.get("/api/v1/bills", params={"branch_id": str(other_branch.id)}).json()
        assert [b["bill_number"] for b in by_branch] == ["B-1"]
        searched = client.get("/api/v1/bills", params={"search": "a-1"}).json()
        assert [b["bill_number"] for b in searched] == ["A-1"]
        pending = client.get("/api/v1/bills", params={"status": "Pending"}).json()
        assert [b["bill_number"] for b in pending] == ["A-1"]
        completed = client.get("/api/v1/bills", params={"status": "Completed"}).json()
        assert [b["bill_number"] for b in completed] == ["B-1"]
        assert client.get("/api/v1/bills", params={"status": "Overdue"}).status_code == 400


# ─── Closing entries ─────────────────────────────────────────────────────────


class TestClosingEntryRoutes:
    @staticmethod
    def _payload(branch: Branch, **overrides) -> dict:
        payload = {
            "branch_id": str(branch.id),
            "date": "2026-10-18",
            "system_sales": "500",
            "manual_sales": "200",
            "online_sales": "0",
            "expenses": "0",
            "credit_card_payment": "300",
            "upi_payment": "100",
            "denom_2000": 1,
            "denom_500": 2,
            "denom_200": 0,
            "denom_100": 3,
            "denom_50": 0,
            "denom_20": 0,
            "denom_10": 0,
        }
        payload.update(overrides)
        return payload

    def test_submit_and_fetch(self, client: TestClient, branch: Branch) -> None:
        r = client.post("/api/v1/closing-entries", json=self._payload(branch))
        assert r.status_code == 201
        body = r.json()
        assert Decimal(body["cash_payment"]) == Decimal("3300")
        assert Decimal(body["discrepancy"]) == Decimal("3000")
        assert body["is_balanced"] is False
        assert len(body["denominations"]) == 7

        fetched = client.get(f"/api/v1/closing-entries/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["total_payments"] == body["total_payments"]

        listed = client.get("/api/v1/closing-entries", params={"branch_id": str(branch.id)})
        assert [e["id"] for e in listed.json()] == [body["id"]]

    def test_missing_field(self, client: TestClient, branch: Branch) -> None:
        payload = self._payload(branch)
        del payload["upi_payment"]
        r = client.post("/api/v1/closing-entries", json=payload)
        assert r.status_code == 400
        assert "upi_payment" in r.json()["detail"]

    def test_unknown_branch(self, client: TestClient, branch: Branch) -> None:
        r = client.post(
            "/api/v1/closing-entries", json=self._payload(branch, branch_id=str(uuid.uuid4()))
        )
        assert r.status_code == 404

    def test_unknown_entry(self, client: TestClient) -> None:
        assert client.get(f"/api/v1/closing-entries/{uuid.uuid4()}").status_code == 404
