"""Tests for InMemoryVerificationStore."""

from uuid import uuid4

import pytest

from carecheck.verification.enums import IdentityStatus, OverallStatus, Section, WwccStatus
from carecheck.verification.stores import InMemoryVerificationStore
from tests.factories import RecordFactory


class TestConditionalUpdate:
    """Tests for the compare-and-set write."""

    @pytest.mark.asyncio
    async def test_applies_when_expected_values_hold(
        self, store: InMemoryVerificationStore, clock
    ) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.PENDING)
        await store.save(record)
        clock.advance(seconds=5)

        updated = await store.conditional_update(
            record.id,
            {"identity_status": IdentityStatus.PENDING, "identity_generation": 1},
            {"identity_status": IdentityStatus.PROCESSING},
        )

        assert updated is not None
        assert updated.identity_status == IdentityStatus.PROCESSING
        assert updated.identity_status_at == clock.now
        assert updated.updated_at == clock.now

    @pytest.mark.asyncio
    async def test_rejects_stale_generation(self, store: InMemoryVerificationStore) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.PENDING, identity_generation=2)
        await store.save(record)

        updated = await store.conditional_update(
            record.id,
            {"identity_generation": 1},
            {"identity_status": IdentityStatus.PROCESSING},
        )

        assert updated is None
        assert (await store.get(record.id)).identity_status == IdentityStatus.PENDING

    @pytest.mark.asyncio
    async def test_missing_record(self, store: InMemoryVerificationStore) -> None:
        assert await store.conditional_update(uuid4(), {}, {"identity_generation": 2}) is None

    @pytest.mark.asyncio
    async def test_derived_code_follows_write(self, store: InMemoryVerificationStore) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.PENDING)
        await store.save(record)

        updated = await store.update(record.id, {"identity_status": IdentityStatus.VERIFIED})

        assert updated.verification_status == OverallStatus.PENDING_WWCC_AUTO

    @pytest.mark.asyncio
    async def test_rejects_direct_status_code_write(
        self, store: InMemoryVerificationStore
    ) -> None:
        record = RecordFactory.create()
        await store.save(record)

        with pytest.raises(ValueError, match="derived"):
            await store.update(record.id, {"verification_status": OverallStatus.FULLY_VERIFIED})


class TestQueries:
    """Tests for lookups."""

    @pytest.mark.asyncio
    async def test_upsert_creates_then_updates(self, store: InMemoryVerificationStore) -> None:
        candidate_id = uuid4()

        created = await store.upsert(candidate_id, {"surname": "Wright"})
        updated = await store.upsert(candidate_id, {"surname": "Wrighte"})

        assert created.id == updated.id
        assert (await store.get_by_candidate(candidate_id)).surname == "Wrighte"

    @pytest.mark.asyncio
    async def test_find_by_wwcc_number_matches_extracted(
        self, store: InMemoryVerificationStore
    ) -> None:
        record = RecordFactory.ready_for_cross_check(wwcc_number=None)
        await store.save(record)

        matches = await store.find_by_wwcc_number(" wwc1234567a ")

        assert [m.id for m in matches] == [record.id]

    @pytest.mark.asyncio
    async def test_list_by_section_status(self, store: InMemoryVerificationStore) -> None:
        review = RecordFactory.create(wwcc_status=WwccStatus.REVIEW)
        pending = RecordFactory.create(wwcc_status=WwccStatus.PENDING)
        await store.save(review)
        await store.save(pending)

        found = await store.list_by_section_status(Section.WWCC, WwccStatus.REVIEW)

        assert [r.id for r in found] == [review.id]
