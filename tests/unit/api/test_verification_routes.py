"""Tests for candidate verification endpoints."""

from collections.abc import Callable
from typing import Any
from uuid import UUID, uuid4

import httpx
import pytest

from carecheck.candidates import InMemoryCandidateProfileStore
from carecheck.extraction.mock import MockDocumentExtractor
from carecheck.verification.enums import (
    IdentityStatus,
    VerificationLevel,
    WwccStatus,
)
from carecheck.verification.stores import InMemoryVerificationStore
from tests.factories import RecordFactory, passport_result

IDENTITY_BODY: dict[str, Any] = {
    "surname": "Wright",
    "given_names": "Bailey Jordan",
    "date_of_birth": "1994-07-21",
    "passport_country": "AUS",
    "passport_upload_ref": "uploads/passport.jpg",
    "selfie_upload_ref": "uploads/selfie.jpg",
}


@pytest.fixture
def candidate_id() -> UUID:
    return uuid4()


@pytest.fixture
def headers(candidate_id: UUID, make_token: Callable[..., str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(candidate_id)}"}


class TestAuthentication:
    """Tests for bearer token handling."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/verification/status")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: httpx.AsyncClient) -> None:
        response = await client.get(
            "/verification/status", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_subject_must_be_candidate_id(
        self, client: httpx.AsyncClient, make_token: Callable[..., str]
    ) -> None:
        response = await client.get(
            "/verification/status",
            headers={"Authorization": f"Bearer {make_token('someone')}"},
        )

        assert response.status_code == 401
        assert "candidate id" in response.json()["error"]["message"]


class TestSubmitIdentity:
    """Tests for POST /verification/identity."""

    @pytest.mark.asyncio
    async def test_submit(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        candidate_id: UUID,
        profiles: InMemoryCandidateProfileStore,
    ) -> None:
        response = await client.post(
            "/verification/identity", json=IDENTITY_BODY, headers=headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["candidate_id"] == str(candidate_id)
        assert data["identity_status"] == "pending"
        assert data["verification_status"] == 10
        assert data["label"] == "Pending ID (Auto)"
        assert data["identity_generation"] == 1
        level = await profiles.get_verification_level(candidate_id)
        assert level == VerificationLevel.REGISTERED

    @pytest.mark.asyncio
    async def test_missing_fields(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/verification/identity", json={"surname": "Wright"}, headers=headers
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        fields = {detail["field"] for detail in error["details"]}
        assert "selfie_upload_ref" in fields
        assert "surname" not in fields

    @pytest.mark.asyncio
    async def test_malformed_body(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> None:
        body = {**IDENTITY_BODY, "date_of_birth": "someday"}

        response = await client.post("/verification/identity", json=body, headers=headers)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["message"] == "Request validation failed"
        assert error["details"][0]["field"] == "body.date_of_birth"

    @pytest.mark.asyncio
    async def test_manual_review(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/verification/identity/manual-review", json=IDENTITY_BODY, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["identity_status"] == "review"
        assert response.json()["verification_status"] == 11

    @pytest.mark.asyncio
    async def test_barred_candidate_cannot_restart(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        candidate_id: UUID,
        store: InMemoryVerificationStore,
    ) -> None:
        await store.save(
            RecordFactory.create(
                candidate_id=candidate_id,
                identity_status=IdentityStatus.VERIFIED,
                wwcc_status=WwccStatus.BARRED,
            )
        )

        response = await client.post(
            "/verification/identity", json=IDENTITY_BODY, headers=headers
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"


class TestSubmitWwcc:
    """Tests for POST /verification/wwcc."""

    @pytest.mark.asyncio
    async def test_requires_identity_first(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> None:
        body = {
            "method": "manual_entry",
            "wwcc_number": "WWC1234567A",
            "expiry_date": "2029-01-31",
        }

        response = await client.post("/verification/wwcc", json=body, headers=headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_submit_manual_entry(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        candidate_id: UUID,
        store: InMemoryVerificationStore,
    ) -> None:
        await store.save(
            RecordFactory.create(candidate_id=candidate_id, identity_status=IdentityStatus.VERIFIED)
        )
        body = {
            "method": "manual_entry",
            "wwcc_number": "wwc 1234567 a",
            "expiry_date": "2029-01-31",
        }

        response = await client.post("/verification/wwcc", json=body, headers=headers)

        assert response.status_code == 200
        assert response.json()["wwcc_status"] == "pending"
        record = await store.get_by_candidate(candidate_id)
        assert record.wwcc_number == "WWC1234567A"

    @pytest.mark.asyncio
    async def test_method_evidence_required(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        candidate_id: UUID,
        store: InMemoryVerificationStore,
    ) -> None:
        await store.save(
            RecordFactory.create(candidate_id=candidate_id, identity_status=IdentityStatus.VERIFIED)
        )

        response = await client.post(
            "/verification/wwcc", json={"method": "grant_email"}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"] == [
            {"field": "grant_email_ref", "message": "Required"}
        ]


class TestRunPhase:
    """Tests for POST /verification/run."""

    @pytest.mark.asyncio
    async def test_runs_identity_phase(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        candidate_id: UUID,
        store: InMemoryVerificationStore,
    ) -> None:
        await client.post("/verification/identity", json=IDENTITY_BODY, headers=headers)

        response = await client.post(
            "/verification/run", json={"phase": "identity"}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        record = await store.get_by_candidate(candidate_id)
        assert record.identity_status == IdentityStatus.VERIFIED

    @pytest.mark.asyncio
    async def test_extractor_failure_still_returns_200(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        candidate_id: UUID,
        store: InMemoryVerificationStore,
        identity_extractor: MockDocumentExtractor,
    ) -> None:
        identity_extractor.queue(passport_result(passed=False))
        await client.post("/verification/identity", json=IDENTITY_BODY, headers=headers)

        response = await client.post(
            "/verification/run", json={"phase": "identity"}, headers=headers
        )

        assert response.status_code == 200
        record = await store.get_by_candidate(candidate_id)
        assert record.identity_status == IdentityStatus.FAILED

    @pytest.mark.asyncio
    async def test_unknown_phase(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> None:
        response = await client.post("/verification/run", json={"phase": "ocg"}, headers=headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_no_record(self, client: httpx.AsyncClient, headers: dict[str, str]) -> None:
        response = await client.post(
            "/verification/run", json={"phase": "identity"}, headers=headers
        )

        assert response.status_code == 404


class TestStatus:
    """Tests for GET /verification/status."""

    @pytest.mark.asyncio
    async def test_reports_status(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        candidate_id: UUID,
        store: InMemoryVerificationStore,
    ) -> None:
        await store.save(
            RecordFactory.create(
                candidate_id=candidate_id,
                identity_status=IdentityStatus.VERIFIED,
                wwcc_status=WwccStatus.REVIEW,
            )
        )

        response = await client.get("/verification/status", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["verification_status"] == 21
        assert data["label"] == "Pending WWCC (Review)"
        assert data["is_provisionally_verified"] is False
        assert data["escalated"] == []

    @pytest.mark.asyncio
    async def test_no_record(self, client: httpx.AsyncClient, headers: dict[str, str]) -> None:
        response = await client.get("/verification/status", headers=headers)

        assert response.status_code == 404
