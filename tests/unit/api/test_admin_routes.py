"""Tests for admin override endpoints."""

from collections.abc import Callable
from uuid import uuid4

import httpx
import pytest

from carecheck.verification.enums import (
    CrossCheckStatus,
    IdentityStatus,
    WwccMethod,
    WwccStatus,
)
from carecheck.verification.stores import InMemoryVerificationStore
from tests.factories import RecordFactory


@pytest.fixture
def admin_headers(make_token: Callable[..., str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token('admin-1', roles=['admin'])}"}


class TestAdminAuthorization:
    """Tests for admin role checks."""

    @pytest.mark.asyncio
    async def test_candidate_forbidden(
        self,
        client: httpx.AsyncClient,
        make_token: Callable[..., str],
        store: InMemoryVerificationStore,
    ) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.REVIEW)
        await store.save(record)
        token = make_token(record.candidate_id)

        response = await client.post(
            f"/admin/verifications/{record.id}/identity/verify",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "NOT_AUTHORIZED"
        assert (await store.get(record.id)).identity_status == IdentityStatus.REVIEW

    @pytest.mark.asyncio
    async def test_super_admin_allowed(
        self,
        client: httpx.AsyncClient,
        make_token: Callable[..., str],
        store: InMemoryVerificationStore,
    ) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.REVIEW)
        await store.save(record)
        token = make_token("root", roles=["super_admin"])

        response = await client.post(
            f"/admin/verifications/{record.id}/identity/verify",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200


class TestIdentityOverrides:
    """Tests for identity verify and reject."""

    @pytest.mark.asyncio
    async def test_verify(
        self,
        client: httpx.AsyncClient,
        admin_headers: dict[str, str],
        store: InMemoryVerificationStore,
    ) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.REVIEW)
        await store.save(record)

        response = await client.post(
            f"/admin/verifications/{record.id}/identity/verify", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["identity_status"] == "verified"
        assert response.json()["verification_status"] == 20

    @pytest.mark.asyncio
    async def test_reject_requires_reason(
        self,
        client: httpx.AsyncClient,
        admin_headers: dict[str, str],
        store: InMemoryVerificationStore,
    ) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.REVIEW)
        await store.save(record)

        response = await client.post(
            f"/admin/verifications/{record.id}/identity/reject",
            json={"reason": "  "},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"] == [{"field": "reason", "message": "Required"}]

    @pytest.mark.asyncio
    async def test_reject(
        self,
        client: httpx.AsyncClient,
        admin_headers: dict[str, str],
        store: InMemoryVerificationStore,
    ) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.REVIEW)
        await store.save(record)

        response = await client.post(
            f"/admin/verifications/{record.id}/identity/reject",
            json={"reason": "Passport photo page is cut off"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["verification_status"] == 12
        updated = await store.get(record.id)
        assert updated.identity_rejection_reason == "Passport photo page is cut off"

    @pytest.mark.asyncio
    async def test_unknown_record(
        self, client: httpx.AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            f"/admin/verifications/{uuid4()}/identity/verify", headers=admin_headers
        )

        assert response.status_code == 404


class TestWwccOverrides:
    """Tests for WWCC confirm and reject."""

    @pytest.mark.asyncio
    async def test_confirm_runs_cross_check(
        self,
        client: httpx.AsyncClient,
        admin_headers: dict[str, str],
        store: InMemoryVerificationStore,
        scheduler,
    ) -> None:
        record = RecordFactory.ready_for_cross_check(wwcc_status=WwccStatus.REVIEW)
        await store.save(record)

        response = await client.post(
            f"/admin/verifications/{record.id}/wwcc/confirm", headers=admin_headers
        )

        assert response.status_code == 200
        updated = await store.get(record.id)
        assert updated.wwcc_status == WwccStatus.DOC_VERIFIED
        assert updated.cross_check_status == CrossCheckStatus.PASSED
        assert updated.verification_status == 30

    @pytest.mark.asyncio
    async def test_confirm_barred_conflicts(
        self,
        client: httpx.AsyncClient,
        admin_headers: dict[str, str],
        store: InMemoryVerificationStore,
    ) -> None:
        record = RecordFactory.create(
            identity_status=IdentityStatus.VERIFIED,
            wwcc_status=WwccStatus.BARRED,
            wwcc_method=WwccMethod.MANUAL_ENTRY,
        )
        await store.save(record)

        response = await client.post(
            f"/admin/verifications/{record.id}/wwcc/confirm", headers=admin_headers
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_reject(
        self,
        client: httpx.AsyncClient,
        admin_headers: dict[str, str],
        store: InMemoryVerificationStore,
    ) -> None:
        record = RecordFactory.ready_for_cross_check(wwcc_status=WwccStatus.REVIEW)
        await store.save(record)

        response = await client.post(
            f"/admin/verifications/{record.id}/wwcc/reject",
            json={"reason": "Number belongs to someone else"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["wwcc_status"] == "rejected"
        assert response.json()["verification_status"] == 22
