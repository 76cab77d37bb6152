"""Delayed "your check failed" emails.

A candidate whose automated check failed gets a grace period to notice the
on-screen guidance and resubmit. Only if the section is still failed and
untouched after the delay is an email sent, and only once per failure
episode:

(a) ``updated_at`` is within the dedup tolerance of the section's status
    timestamp, so nothing has been written to the record since it failed;
(b) no email of the same type has been sent since the section's status
    last changed.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from carecheck.candidates.store import CandidateProfileStore
from carecheck.config.models.notifications import NotificationsConfig
from carecheck.notifications.models import (
    EmailLog,
    EmailMessage,
    EmailStatus,
    NotificationType,
)
from carecheck.notifications.sender import EmailSender
from carecheck.notifications.store import EmailLogStore
from carecheck.observability.logging import get_logger
from carecheck.observability.metrics import NOTIFICATIONS
from carecheck.templating import TemplateLoader
from carecheck.verification.enums import IdentityStatus, Section, WwccStatus
from carecheck.verification.models import VerificationRecord, utc_now
from carecheck.verification.store import VerificationStore

logger = get_logger(__name__)

_templates = TemplateLoader(Path(__file__).parent / "templates")

_FAILED: dict[Section, IdentityStatus | WwccStatus] = {
    Section.IDENTITY: IdentityStatus.FAILED,
    Section.WWCC: WwccStatus.FAILED,
}

_SUBJECTS: dict[NotificationType, str] = {
    NotificationType.IDENTITY_CHECK_FAILED: "Action needed: Your identity verification",
    NotificationType.WWCC_CHECK_FAILED: "Action needed: Your WWCC verification",
}


@dataclass
class NotificationRunResult:
    """Counts from one sweep."""

    sent: int = 0
    skipped: int = 0
    failed: int = 0


class FailureNotifier:
    """Sweeps failed sections and emails candidates who haven't acted."""

    def __init__(
        self,
        store: VerificationStore,
        profiles: CandidateProfileStore,
        email_logs: EmailLogStore,
        sender: EmailSender,
        config: NotificationsConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._email_logs = email_logs
        self._sender = sender
        self._config = config or NotificationsConfig()
        self._clock = clock

    async def run(self, now: datetime | None = None) -> NotificationRunResult:
        """Send every notification that is due at ``now``."""
        now = now or self._clock()
        cutoff = now - timedelta(minutes=self._config.failure_delay_minutes)
        result = NotificationRunResult()

        for section in Section:
            notification_type = NotificationType.for_section(section)
            for record in await self._store.list_by_section_status(section, _FAILED[section]):
                status_at = record.section_status_at(section)
                if status_at is None or status_at >= cutoff:
                    continue
                if not await self.should_notify(record, section, notification_type):
                    result.skipped += 1
                    continue

                status = await self._send(record, notification_type, now)
                match status:
                    case EmailStatus.SENT:
                        result.sent += 1
                    case EmailStatus.FAILED:
                        result.failed += 1
                    case None:
                        result.skipped += 1

        logger.info(
            "failure_notifications_run",
            sent=result.sent,
            skipped=result.skipped,
            failed=result.failed,
        )
        return result

    async def should_notify(
        self,
        record: VerificationRecord,
        section: Section,
        notification_type: NotificationType,
    ) -> bool:
        """Both dedup guards for one failed section."""
        status_at = record.section_status_at(section)
        if status_at is None:
            return False

        gap = abs((record.updated_at - status_at).total_seconds())
        if gap > self._config.dedup_tolerance_seconds:
            logger.debug(
                "notification_skipped_record_touched",
                verification_id=str(record.id),
                section=section.value,
                gap_seconds=gap,
            )
            return False

        if await self._email_logs.has_sent_since(
            record.candidate_id, notification_type, status_at
        ):
            logger.debug(
                "notification_skipped_already_sent",
                verification_id=str(record.id),
                notification_type=notification_type.value,
            )
            return False
        return True

    async def _send(
        self,
        record: VerificationRecord,
        notification_type: NotificationType,
        now: datetime,
    ) -> EmailStatus | None:
        recipient = await self._profiles.get_email(record.candidate_id)
        if not recipient:
            logger.warning(
                "notification_no_recipient",
                candidate_id=str(record.candidate_id),
                notification_type=notification_type.value,
            )
            return None

        given = (record.given_names or "").split()
        message = EmailMessage(
            to=recipient,
            subject=_SUBJECTS[notification_type],
            html=_templates.render(
                f"{notification_type.value}.html.jinja2",
                first_name=given[0] if given else None,
                support_url=self._config.support_url,
                template_code=notification_type.template_code,
            ),
            from_address=self._config.from_address,
            tags={
                "notification_type": notification_type.value,
                "verification_id": str(record.id),
            },
        )

        log = EmailLog(
            candidate_id=record.candidate_id,
            verification_id=record.id,
            notification_type=notification_type,
            status=EmailStatus.SENT,
            created_at=now,
        )
        try:
            log.message_id = await self._sender.send(message)
        except Exception as e:
            log.status = EmailStatus.FAILED
            log.error = str(e)
            logger.error(
                "notification_send_failed",
                verification_id=str(record.id),
                notification_type=notification_type.value,
                error=str(e),
            )
        else:
            logger.info(
                "notification_sent",
                verification_id=str(record.id),
                notification_type=notification_type.value,
                message_id=log.message_id,
            )

        await self._email_logs.add(log)
        NOTIFICATIONS.labels(
            notification_type=notification_type.value, status=log.status.value
        ).inc()
        return log.status
