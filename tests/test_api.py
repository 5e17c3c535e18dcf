# tests/test_api.py

"""
API Endpoint Tests - full evaluation workflow over HTTP
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi import status


def headers(user_id):
    return {"X-User-Id": str(user_id)}


@pytest.fixture
def sample_json(client, event_id, category_id, applicant_id):
    response = client.post("/api/v1/samples", json={
        "event_id": str(event_id),
        "applicant_id": str(applicant_id),
        "category_id": str(category_id),
        "name": "Smoked ham",
    })
    assert response.status_code == status.HTTP_201_CREATED
    sample = response.json()
    assert client.post(f"/api/v1/samples/{sample['id']}/submit").status_code == status.HTTP_200_OK
    return sample


@pytest.fixture
def session_json(client, sample_json, commission, roster_users):
    response = client.post(
        "/api/v1/sessions",
        json={
            "event_id": sample_json["event_id"],
            "product_sample_id": sample_json["id"],
            "commission_id": str(commission.id),
        },
        headers=headers(roster_users["president"]),
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def evaluate(client, session_id, member_id, score):
    response = client.post("/api/v1/evaluations", json={
        "session_id": session_id,
        "commission_member_id": str(member_id),
        "final_score": str(score),
    })
    assert response.status_code == status.HTTP_201_CREATED
    evaluation = response.json()
    submitted = client.post(f"/api/v1/evaluations/{evaluation['id']}/submit")
    assert submitted.status_code == status.HTTP_200_OK
    return submitted.json()


# =============================================================================
# ROOT & HEALTH
# =============================================================================


class TestRootAndHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "running"

    def test_health_with_local_backends(self, client):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert set(data["dependencies"]) == {"storage", "locks"}


# =============================================================================
# COMMISSIONS
# =============================================================================


class TestCommissionEndpoints:

    def test_create_and_get(self, client):
        response = client.post("/api/v1/commissions", json={
            "name": "Bakery Commission",
            "members": [
                {"user_id": str(uuid4()), "role": "main_member"},
                {"user_id": str(uuid4()), "role": "member"},
            ],
        })
        assert response.status_code == status.HTTP_201_CREATED
        commission_id = response.json()["id"]

        fetched = client.get(f"/api/v1/commissions/{commission_id}")
        assert fetched.status_code == status.HTTP_200_OK
        assert len(fetched.json()["members"]) == 2

    def test_roster_without_main_member(self, client):
        response = client.post("/api/v1/commissions", json={
            "name": "Bakery Commission",
            "members": [{"user_id": str(uuid4()), "role": "president"}],
        })
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "INVALID_ROSTER"

    def test_exclude_member(self, client, commission, member_ids):
        response = client.post(
            f"/api/v1/commissions/{commission.id}/members/{member_ids['member_2']}/exclude",
            json={"reason": "Conflict of interest"},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_excluded"] is True


# =============================================================================
# SAMPLES & SESSIONS
# =============================================================================


class TestSampleEndpoints:

    def test_registered_sample_is_numbered(self, client, sample_json):
        assert sample_json["sequential_number"] == 1
        assert sample_json["status"] == "draft"
        fetched = client.get(f"/api/v1/samples/{sample_json['id']}").json()
        assert fetched["status"] == "submitted"

    def test_unknown_sample(self, client):
        response = client.get(f"/api/v1/samples/{uuid4()}")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_exclusion_requires_reason(self, client, sample_json):
        response = client.post(f"/api/v1/samples/{sample_json['id']}/exclude", json={"reason": " "})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "EXCLUSION_REASON_REQUIRED"

    def test_invalid_transition(self, client, sample_json):
        response = client.post(f"/api/v1/samples/{sample_json['id']}/complete")
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error_code"] == "INVALID_TRANSITION"
        assert response.json()["retryable"] is False


class TestSessionEndpoints:

    def test_second_activation_is_retryable_conflict(self, client, session_json, roster_users):
        response = client.post(
            "/api/v1/sessions",
            json={
                "event_id": session_json["event_id"],
                "product_sample_id": session_json["product_sample_id"],
                "commission_id": session_json["commission_id"],
            },
            headers=headers(roster_users["president"]),
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        body = response.json()
        assert body["error_code"] == "SESSION_ALREADY_ACTIVE"
        assert body["retryable"] is True

    def test_activation_requires_user_header(self, client, sample_json, commission):
        response = client.post("/api/v1/sessions", json={
            "event_id": sample_json["event_id"],
            "product_sample_id": sample_json["id"],
            "commission_id": str(commission.id),
        })
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_ordinary_member_cannot_activate(self, client, sample_json, commission, roster_users):
        response = client.post(
            "/api/v1/sessions",
            json={
                "event_id": sample_json["event_id"],
                "product_sample_id": sample_json["id"],
                "commission_id": str(commission.id),
            },
            headers=headers(roster_users["member_1"]),
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "NOT_AUTHORIZED_TO_ACTIVATE"


# =============================================================================
# EVALUATIONS, SCORING, DOCUMENTS
# =============================================================================


class TestScoringWorkflow:

    def test_end_to_end(self, client, sample_json, session_json, member_ids, roster_users):
        seats = ["main", "president", "member_1", "member_2", "member_3"]
        for seat, score in zip(seats, [2, 5, 6, 7, 9]):
            evaluate(client, session_json["id"], member_ids[seat], score)

        evaluations = client.get(f"/api/v1/sessions/{session_json['id']}/evaluations").json()
        assert len(evaluations) == 5

        assert client.post(f"/api/v1/sessions/{session_json['id']}/complete").status_code == status.HTTP_200_OK

        scored = client.post(f"/api/v1/samples/{sample_json['id']}/aggregate")
        assert scored.status_code == status.HTTP_200_OK
        data = scored.json()
        assert Decimal(data["final_score"]) == Decimal("6.00")
        assert data["trimmed"] is True
        assert data["evaluation_count"] == 3

        board = client.post(f"/api/v1/events/{sample_json['event_id']}/scores").json()
        assert [Decimal(line["final_score"]) for line in board["samples"]] == [Decimal("6.00")]

        document = client.post(
            "/api/v1/documents",
            json={"product_sample_id": sample_json["id"], "kind": "protocol"},
            headers=headers(roster_users["main"]),
        )
        assert document.status_code == status.HTTP_201_CREATED
        doc = document.json()
        assert doc["version"] == 1
        assert Decimal(doc["final_score"]) == Decimal("6.00")

        for target in ("generated", "sent"):
            moved = client.post(f"/api/v1/documents/{doc['id']}/transition", json={"status": target})
            assert moved.status_code == status.HTTP_200_OK

        v2 = client.post(
            f"/api/v1/documents/{doc['id']}/versions",
            json={"final_score": "6.10"},
            headers=headers(roster_users["main"]),
        ).json()
        assert v2["version"] == 2
        assert v2["previous_version_id"] == doc["id"]

        stale = client.post(f"/api/v1/documents/{doc['id']}/transition", json={"status": "acknowledged"})
        assert stale.status_code == status.HTTP_409_CONFLICT
        assert stale.json()["error_code"] == "INVALID_DOCUMENT_TRANSITION"

        chain = client.get(f"/api/v1/documents/{v2['id']}/chain").json()
        assert [d["version"] for d in chain] == [2, 1]

        latest = client.get("/api/v1/documents/latest", params={
            "event_id": sample_json["event_id"], "kind": "protocol", "document_number": 1,
        })
        assert latest.json()["id"] == v2["id"]

        assert client.post(f"/api/v1/samples/{sample_json['id']}/complete").status_code == status.HTTP_200_OK
        locked = client.post(f"/api/v1/samples/{sample_json['id']}/aggregate")
        assert locked.status_code == status.HTTP_423_LOCKED
        assert locked.json()["error_code"] == "SAMPLE_LOCKED"

    def test_aggregate_without_completed_session(self, client, sample_json, session_json):
        response = client.post(f"/api/v1/samples/{sample_json['id']}/aggregate")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "INSUFFICIENT_EVALUATIONS"

    def test_duplicate_evaluation(self, client, session_json, member_ids):
        payload = {"session_id": session_json["id"], "commission_member_id": str(member_ids["main"])}
        assert client.post("/api/v1/evaluations", json=payload).status_code == status.HTTP_201_CREATED
        response = client.post("/api/v1/evaluations", json=payload)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["retryable"] is True

    def test_negative_final_score_rejected(self, client, session_json, member_ids):
        response = client.post("/api/v1/evaluations", json={
            "session_id": session_json["id"],
            "commission_member_id": str(member_ids["main"]),
            "final_score": "-1",
        })
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"] == "Final score must not be negative"


class TestEventEndpoints:

    def test_policy_round_trip(self, client, event_id):
        assert client.get(f"/api/v1/events/{event_id}/policy").status_code == status.HTTP_404_NOT_FOUND

        response = client.put(f"/api/v1/events/{event_id}/policy", json={
            "trim_high_low_from_count": 6, "trim_count_high": 1, "trim_count_low": 2, "rounding_decimals": 1,
        })
        assert response.status_code == status.HTTP_200_OK
        assert client.get(f"/api/v1/events/{event_id}/policy").json()["trim_count_low"] == 2

    def test_criteria(self, client, event_id):
        response = client.post(f"/api/v1/events/{event_id}/criteria", json={
            "name": "Texture", "min_score": 1, "max_score": 10, "is_required": True,
        })
        assert response.status_code == status.HTTP_201_CREATED

        listed = client.get(f"/api/v1/events/{event_id}/criteria").json()
        assert [c["name"] for c in listed] == ["Texture"]

    def test_criterion_bounds_validated(self, client, event_id):
        response = client.post(f"/api/v1/events/{event_id}/criteria", json={
            "name": "Texture", "min_score": 5, "max_score": 1,
        })
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
