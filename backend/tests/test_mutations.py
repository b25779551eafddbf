"""Tests for create, update, soft delete and batch create."""

from datetime import datetime, timedelta

import pytest

from finance_api import clock
from finance_api.errors import Conflict, InvalidTransition, NotFound, ValidationError
from finance_api.models.incoming_fund import IncomingFund
from finance_api.models.outgoing_fund import OutgoingFund
from finance_api.services import fund_service

from conftest import USER

URL = "/api/finance-mutate"


def _create(client, token, kind, data):
    return client.post(URL, json={"sessionToken": token, "action": "create", "type": kind, "data": data})


class TestCreate:

    def test_create_incoming(self, client, token, incoming_data):
        """Created records are attributed to the session user and get an id."""
        resp = _create(client, token, "incoming", incoming_data)
        assert resp.status_code == 201
        body = resp.json()
        record = body["record"]
        assert body["success"] is True
        assert body["id"] == record["id"]
        assert record["created_by"] == USER
        assert record["updated_by"] == USER
        assert record["amount"] == 100.0
        assert record["net_income"] == 100.0
        assert record["is_deleted"] is False

    def test_gofundme_net_income_derived(self, client, token, incoming_data):
        """GoFundMe donations are stored net of the 3.31% fee."""
        incoming_data["source"] = "GoFundMe"
        record = _create(client, token, "incoming", incoming_data).json()["record"]
        assert record["net_income"] == 96.69

    def test_client_cannot_set_server_fields(self, client, token, incoming_data):
        """Attribution, flags and net income are never taken from the payload."""
        incoming_data.update(created_by="Mallory", is_deleted=True, net_income=1)
        record = _create(client, token, "incoming", incoming_data).json()["record"]
        assert record["created_by"] == USER
        assert record["is_deleted"] is False
        assert record["net_income"] == 100.0

    def test_create_outgoing(self, client, token, outgoing_data):
        resp = _create(client, token, "outgoing", outgoing_data)
        assert resp.status_code == 201
        assert resp.json()["record"]["recipient"] == "Hardware Store"

    def test_validation_errors_listed(self, client, token, db):
        """All violations come back together and nothing is stored."""
        resp = _create(client, token, "outgoing", {"amount": -1})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert "date is required" in body["errors"]
        assert "amount must be a non-negative number" in body["errors"]
        assert "recipient is required" in body["errors"]
        assert {e["field"] for e in body["fieldErrors"]} >= {"date", "amount", "recipient", "purpose"}
        assert db.query(OutgoingFund).count() == 0

    def test_oversized_amount_is_a_validation_error(self, client, token, incoming_data, db):
        """An amount the money column cannot hold is a 400, never a 500."""
        resp = _create(client, token, "incoming", dict(incoming_data, amount=1e30))
        assert resp.status_code == 400
        assert resp.json()["errors"] == ["amount is too large"]
        assert db.query(IncomingFund).count() == 0

    def test_amount_rounded_half_up_to_cents(self, client, token, incoming_data):
        record = _create(client, token, "incoming", dict(incoming_data, amount="10.005")).json()["record"]
        assert record["amount"] == 10.01
        assert record["net_income"] == 10.01

    def test_post_defaults_to_create(self, client, token, incoming_data):
        resp = client.post(URL, json={"sessionToken": token, "type": "incoming", "data": incoming_data})
        assert resp.status_code == 201

    def test_bearer_header_accepted(self, client, token, incoming_data):
        resp = client.post(
            URL,
            json={"type": "incoming", "data": incoming_data},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 201


class TestSessionGate:

    def test_missing_token(self, client, db, incoming_data):
        """No session, no write."""
        resp = client.post(URL, json={"action": "create", "type": "incoming", "data": incoming_data})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Session token is required"
        assert db.query(IncomingFund).count() == 0

    def test_expired_token(self, client, token, incoming_data, monkeypatch):
        later = clock.utcnow() + timedelta(hours=9)
        monkeypatch.setattr(clock, "utcnow", lambda: later)
        resp = _create(client, token, "incoming", incoming_data)
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or expired session"

    def test_gate_runs_before_action_decoding(self, client):
        """A bad session is reported before anything about the body."""
        resp = client.post(URL, json={"sessionToken": "bogus", "action": "explode"})
        assert resp.status_code == 401


class TestUpdate:

    def test_conflict_leaves_record_unmodified(self, client, token, incoming_data):
        """A stale expectedUpdatedAt is a 409 carrying the current record."""
        created = _create(client, token, "incoming", incoming_data).json()["record"]
        stale = (datetime.fromisoformat(created["updated_at"]) - timedelta(seconds=5)).isoformat()

        changed = dict(incoming_data, amount=999)
        resp = client.put(URL, json={
            "sessionToken": token,
            "type": "incoming",
            "id": created["id"],
            "data": changed,
            "expectedUpdatedAt": stale,
        })
        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "CONFLICT"
        assert body["currentData"]["amount"] == 100.0
        assert body["currentData"]["updated_at"] == created["updated_at"]

    def test_matching_expectation_succeeds(self, client, token, incoming_data, monkeypatch):
        """The expected timestamp matches, the write lands and updated_at advances."""
        created = _create(client, token, "incoming", incoming_data).json()["record"]
        later = datetime.fromisoformat(created["updated_at"]) + timedelta(minutes=1)
        monkeypatch.setattr(clock, "utcnow", lambda: later)

        resp = client.put(URL, json={
            "sessionToken": token,
            "type": "incoming",
            "id": created["id"],
            "data": dict(incoming_data, amount=250, source="GoFundMe"),
            "expectedUpdatedAt": created["updated_at"],
        })
        assert resp.status_code == 200
        record = resp.json()["record"]
        assert record["amount"] == 250.0
        assert record["net_income"] == 241.73
        assert record["updated_at"] == later.isoformat()
        assert record["created_by"] == USER

    def test_timezone_aware_expectation(self, client, token, incoming_data):
        """An expectation sent with a Z suffix is compared in UTC."""
        created = _create(client, token, "incoming", incoming_data).json()["record"]
        resp = client.put(URL, json={
            "sessionToken": token,
            "type": "incoming",
            "id": created["id"],
            "data": incoming_data,
            "expectedUpdatedAt": created["updated_at"] + "Z",
        })
        assert resp.status_code == 200

    def test_update_without_expectation(self, client, token, outgoing_data):
        created = _create(client, token, "outgoing", outgoing_data).json()["record"]
        resp = client.post(URL, json={
            "sessionToken": token,
            "action": "update",
            "type": "outgoing",
            "id": created["id"],
            "data": dict(outgoing_data, purpose="Multimeters"),
        })
        assert resp.status_code == 200
        assert resp.json()["record"]["purpose"] == "Multimeters"

    def test_update_validates(self, client, token, incoming_data):
        created = _create(client, token, "incoming", incoming_data).json()["record"]
        resp = client.put(URL, json={
            "sessionToken": token,
            "type": "incoming",
            "id": created["id"],
            "data": dict(incoming_data, source="Barter"),
        })
        assert resp.status_code == 400

    def test_update_missing_record(self, client, token, incoming_data):
        resp = client.put(URL, json={
            "sessionToken": token, "type": "incoming", "id": "missing", "data": incoming_data,
        })
        assert resp.status_code == 404

    def test_update_of_soft_deleted_record_refused(self, db, incoming_data):
        """Deleted records must be restored before they can be edited."""
        record = fund_service.create_record(db, "incoming", incoming_data, USER)
        fund_service.soft_delete_record(db, "incoming", record.id, USER)
        with pytest.raises(InvalidTransition):
            fund_service.update_record(db, "incoming", record.id, incoming_data, USER)

    def test_service_conflict_carries_current(self, db, incoming_data):
        record = fund_service.create_record(db, "incoming", incoming_data, USER)
        with pytest.raises(Conflict) as exc:
            fund_service.update_record(
                db, "incoming", record.id, incoming_data, USER,
                expected_updated_at=record.updated_at - timedelta(seconds=1),
            )
        assert exc.value.current["id"] == record.id


class TestSoftDelete:

    def test_soft_delete_flags_record(self, client, token, incoming_data, db):
        """The row stays, flagged and attributed."""
        created = _create(client, token, "incoming", incoming_data).json()["record"]
        resp = client.request("DELETE", URL, json={"sessionToken": token, "type": "incoming", "id": created["id"]})
        assert resp.status_code == 200
        record = resp.json()["record"]
        assert record["is_deleted"] is True
        assert record["deleted_by"] == USER
        assert record["deleted_at"] is not None
        assert db.query(IncomingFund).count() == 1

    def test_soft_delete_missing(self, client, token):
        resp = client.post(URL, json={"sessionToken": token, "action": "delete", "type": "outgoing", "id": "nope"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Record not found"

    def test_soft_delete_twice(self, db, incoming_data):
        record = fund_service.create_record(db, "incoming", incoming_data, USER)
        fund_service.soft_delete_record(db, "incoming", record.id, USER)
        with pytest.raises(InvalidTransition):
            fund_service.soft_delete_record(db, "incoming", record.id, USER)

    def test_service_not_found(self, db):
        with pytest.raises(NotFound):
            fund_service.soft_delete_record(db, "incoming", "ghost", USER)


class TestBatch:

    def test_partial_success(self, client, token, incoming_data, db):
        """One bad item is reported by index; the other four are stored."""
        operations = [dict(incoming_data, amount=i + 1) for i in range(5)]
        operations[3]["source"] = "Barter"

        resp = client.post(URL, json={
            "sessionToken": token, "action": "batch", "type": "incoming", "operations": operations,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["processed"] == 4
        assert len(body["errors"]) == 1
        assert body["errors"][0]["index"] == 3
        amounts = sorted(float(r.amount) for r in db.query(IncomingFund).all())
        assert amounts == [1.0, 2.0, 3.0, 5.0]

    def test_oversized_amount_does_not_abort_batch(self, db, incoming_data):
        """Items either side of an unstorable amount are still persisted."""
        items = [
            dict(incoming_data, amount=1),
            dict(incoming_data, amount="1e30"),
            dict(incoming_data, amount=3),
        ]
        result = fund_service.batch_create(db, "incoming", items, USER)
        assert result.processed == 2
        assert result.errors == [{"index": 1, "errors": ["amount is too large"]}]
        amounts = sorted(float(r.amount) for r in db.query(IncomingFund).all())
        assert amounts == [1.0, 3.0]

    def test_service_batch_result(self, db, outgoing_data):
        result = fund_service.batch_create(db, "outgoing", [outgoing_data, {}, "junk"], USER)
        assert result.processed == 1
        assert [e["index"] for e in result.errors] == [1, 2]

    def test_service_create_rejects_invalid(self, db):
        with pytest.raises(ValidationError) as exc:
            fund_service.create_record(db, "incoming", {}, USER)
        assert len(exc.value.errors) == 4


class TestMutateEndpoint:

    def test_preflight(self, client):
        assert client.options(URL).status_code == 204

    def test_get_not_allowed(self, client):
        resp = client.get(URL)
        assert resp.status_code == 405
        assert resp.json()["success"] is False

    def test_malformed_json(self, client):
        resp = client.post(URL, content=b"{{", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid JSON body"

    def test_unknown_action(self, client, token):
        resp = client.post(URL, json={"sessionToken": token, "action": "merge"})
        assert resp.status_code == 400
        assert "create, update, delete, batch" in resp.json()["error"]

    def test_unknown_type(self, client, token, incoming_data):
        """Only incoming and outgoing tables exist."""
        resp = _create(client, token, "donations", incoming_data)
        assert resp.status_code == 400

    def test_missing_data(self, client, token):
        resp = client.post(URL, json={"sessionToken": token, "action": "create", "type": "incoming"})
        assert resp.status_code == 400
        assert "data" in resp.json()["error"]
