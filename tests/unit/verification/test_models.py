"""Tests for VerificationRecord and related models."""

from datetime import timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError

from carecheck.verification.enums import (
    CrossCheckStatus,
    IdentityStatus,
    OverallStatus,
    Section,
    WwccStatus,
)
from carecheck.verification.models import Actor, VerificationRecord
from tests.factories import T0, RecordFactory


class TestVerificationRecordApply:
    """Tests for VerificationRecord.apply."""

    def test_recomputes_overall_status(self) -> None:
        record = VerificationRecord(candidate_id=uuid4())

        updated = record.apply({"identity_status": IdentityStatus.PENDING}, T0)

        assert updated.verification_status == OverallStatus.PENDING_ID_AUTO
        assert updated.updated_at == T0

    def test_refuses_explicit_overall_status(self) -> None:
        record = VerificationRecord(candidate_id=uuid4())

        with pytest.raises(ValueError, match="derived"):
            record.apply({"verification_status": OverallStatus.FULLY_VERIFIED}, T0)

    def test_refuses_unknown_fields(self) -> None:
        record = VerificationRecord(candidate_id=uuid4())

        with pytest.raises(ValueError, match="Unknown"):
            record.apply({"colour": "blue"}, T0)

    def test_status_timestamp_moves_only_on_change(self) -> None:
        record = RecordFactory.create(identity_status=IdentityStatus.REVIEW)
        later = T0 + timedelta(minutes=5)

        same = record.apply(
            {"identity_status": IdentityStatus.REVIEW, "identity_issues": ["x"]}, later
        )
        changed = record.apply({"identity_status": IdentityStatus.VERIFIED}, later)

        assert same.identity_status_at == T0
        assert same.updated_at == later
        assert changed.identity_status_at == later

    def test_cross_check_timestamp(self) -> None:
        record = RecordFactory.ready_for_cross_check()
        later = T0 + timedelta(seconds=30)

        updated = record.apply({"cross_check_status": CrossCheckStatus.PASSED}, later)

        assert updated.cross_check_at == later
        assert updated.wwcc_status_at == T0
        assert updated.verification_status == OverallStatus.PROVISIONALLY_VERIFIED

    def test_original_is_unchanged(self) -> None:
        record = VerificationRecord(candidate_id=uuid4())

        record.apply({"identity_status": IdentityStatus.PENDING}, T0)

        assert record.identity_status == IdentityStatus.NOT_STARTED

    def test_record_is_frozen(self) -> None:
        record = VerificationRecord(candidate_id=uuid4())

        with pytest.raises(ValidationError):
            record.identity_status = IdentityStatus.VERIFIED  # type: ignore[misc]

    def test_section_accessors(self) -> None:
        record = RecordFactory.create(wwcc_status=WwccStatus.FAILED)

        assert record.section_status(Section.WWCC) == WwccStatus.FAILED
        assert record.section_status_at(Section.WWCC) == T0
        assert record.section_status_at(Section.IDENTITY) is None


class TestActor:
    """Tests for Actor."""

    def test_has_any_role(self) -> None:
        actor = Actor(subject="ops-1", roles=frozenset({"super_admin"}))

        assert actor.has_any_role("admin", "super_admin")
        assert not actor.has_any_role("admin")

    def test_no_roles(self) -> None:
        assert not Actor(subject="c").has_any_role("admin")
