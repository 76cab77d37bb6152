"""Tests for delayed failure notifications."""

from datetime import timedelta

import pytest

from carecheck.candidates import InMemoryCandidateProfileStore
from carecheck.config.models.notifications import NotificationsConfig
from carecheck.notifications import (
    EmailStatus,
    FailureNotifier,
    InMemoryEmailLogStore,
    InMemoryEmailSender,
    NotificationType,
)
from carecheck.verification.enums import IdentityStatus, Section, WwccStatus
from carecheck.verification.stores import InMemoryVerificationStore
from tests.factories import T0, RecordFactory


@pytest.fixture
def email_logs() -> InMemoryEmailLogStore:
    return InMemoryEmailLogStore()


@pytest.fixture
def sender() -> InMemoryEmailSender:
    return InMemoryEmailSender()


@pytest.fixture
def notifier(
    store: InMemoryVerificationStore,
    profiles: InMemoryCandidateProfileStore,
    email_logs: InMemoryEmailLogStore,
    sender: InMemoryEmailSender,
    clock,
) -> FailureNotifier:
    return FailureNotifier(store, profiles, email_logs, sender, NotificationsConfig(), clock=clock)


async def failed_wwcc(store, profiles, **fields):
    record = RecordFactory.create(
        identity_status=IdentityStatus.VERIFIED, wwcc_status=WwccStatus.FAILED, **fields
    )
    await store.save(record)
    profiles.set_email(record.candidate_id, "bailey@example.com")
    return record


class TestFailureNotifier:
    """Tests for FailureNotifier.run."""

    @pytest.mark.asyncio
    async def test_sends_after_delay(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
        sender: InMemoryEmailSender,
        clock,
    ) -> None:
        record = await failed_wwcc(store, profiles)
        clock.advance(minutes=11)

        result = await notifier.run()

        assert result.sent == 1
        message = sender.sent[0]
        assert message.to == "bailey@example.com"
        assert message.subject == "Action needed: Your WWCC verification"
        assert "Hi Bailey," in message.html
        assert "VER-003" in message.html
        assert message.tags == {
            "notification_type": "wwcc_check_failed",
            "verification_id": str(record.id),
        }

    @pytest.mark.asyncio
    async def test_not_sent_inside_grace_period(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
        sender: InMemoryEmailSender,
        clock,
    ) -> None:
        await failed_wwcc(store, profiles)
        clock.advance(minutes=5)

        result = await notifier.run()

        assert (result.sent, result.skipped) == (0, 0)
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_immediate_rerun_sends_nothing(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
        sender: InMemoryEmailSender,
        clock,
    ) -> None:
        await failed_wwcc(store, profiles)
        clock.advance(minutes=11)

        await notifier.run()
        second = await notifier.run()

        assert second.sent == 0
        assert second.skipped == 1
        assert len(sender.sent) == 1

    @pytest.mark.asyncio
    async def test_each_failure_episode_sends_once(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
        sender: InMemoryEmailSender,
        clock,
    ) -> None:
        record = await failed_wwcc(store, profiles)
        clock.advance(minutes=11)
        await notifier.run()

        # Candidate resubmits and fails again
        clock.advance(minutes=1)
        await store.update(record.id, {"wwcc_status": WwccStatus.PENDING})
        clock.advance(minutes=1)
        await store.update(record.id, {"wwcc_status": WwccStatus.FAILED})
        clock.advance(minutes=11)
        await notifier.run()
        await notifier.run()

        assert len(sender.sent) == 2

    @pytest.mark.asyncio
    async def test_touched_record_is_skipped(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
        sender: InMemoryEmailSender,
        clock,
    ) -> None:
        record = await failed_wwcc(store, profiles)
        clock.advance(minutes=3)
        await store.update(record.id, {"wwcc_issues": ["Candidate viewed guidance"]})
        clock.advance(minutes=10)

        result = await notifier.run()

        assert result.skipped == 1
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_identity_and_wwcc_are_independent(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
        sender: InMemoryEmailSender,
        clock,
    ) -> None:
        record = RecordFactory.create(
            identity_status=IdentityStatus.FAILED, wwcc_status=WwccStatus.FAILED
        )
        await store.save(record)
        profiles.set_email(record.candidate_id, "bailey@example.com")
        clock.advance(minutes=15)

        result = await notifier.run()

        assert result.sent == 2
        tags = sorted(m.tags["notification_type"] for m in sender.sent)
        assert tags == ["identity_check_failed", "wwcc_check_failed"]

    @pytest.mark.asyncio
    async def test_missing_recipient_is_skipped(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        email_logs: InMemoryEmailLogStore,
        clock,
    ) -> None:
        record = RecordFactory.create(wwcc_status=WwccStatus.FAILED)
        await store.save(record)
        clock.advance(minutes=11)

        result = await notifier.run()

        assert result.skipped == 1
        assert await email_logs.list_for_candidate(record.candidate_id) == []

    @pytest.mark.asyncio
    async def test_send_failure_is_logged_and_retried(
        self,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
        email_logs: InMemoryEmailLogStore,
        clock,
    ) -> None:
        sender = InMemoryEmailSender(error=ConnectionError("smtp down"))
        notifier = FailureNotifier(store, profiles, email_logs, sender, clock=clock)
        record = await failed_wwcc(store, profiles)
        clock.advance(minutes=11)

        first = await notifier.run()
        sender.error = None
        second = await notifier.run()

        logs = await email_logs.list_for_candidate(record.candidate_id)
        assert first.failed == 1
        assert second.sent == 1
        assert [log.status for log in logs] == [EmailStatus.FAILED, EmailStatus.SENT]
        assert logs[0].error == "smtp down"

    @pytest.mark.asyncio
    async def test_explicit_now(
        self,
        notifier: FailureNotifier,
        store: InMemoryVerificationStore,
        profiles: InMemoryCandidateProfileStore,
    ) -> None:
        await failed_wwcc(store, profiles)

        result = await notifier.run(now=T0 + timedelta(hours=1))

        assert result.sent == 1


class TestShouldNotify:
    """Tests for the dedup guards."""

    @pytest.mark.asyncio
    async def test_within_tolerance(self, notifier: FailureNotifier) -> None:
        record = RecordFactory.create(wwcc_status=WwccStatus.FAILED)
        record = record.model_copy(update={"updated_at": T0 + timedelta(seconds=1)})

        assert await notifier.should_notify(
            record, Section.WWCC, NotificationType.WWCC_CHECK_FAILED
        )

    @pytest.mark.asyncio
    async def test_without_status_timestamp(self, notifier: FailureNotifier) -> None:
        record = RecordFactory.create(wwcc_status=WwccStatus.FAILED, wwcc_status_at=None)

        assert not await notifier.should_notify(
            record, Section.WWCC, NotificationType.WWCC_CHECK_FAILED
        )


class TestNotificationType:
    """Tests for NotificationType."""

    def test_for_section(self) -> None:
        identity_type = NotificationType.for_section(Section.IDENTITY)
        assert identity_type is NotificationType.IDENTITY_CHECK_FAILED
        assert NotificationType.WWCC_CHECK_FAILED.template_code == "VER-003"
