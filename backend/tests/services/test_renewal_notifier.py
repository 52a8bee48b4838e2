"""Renewal Notifier — due selection, delivery and per-member failure isolation."""

from datetime import datetime, timedelta, timezone

from app.core.domain_types import MembershipId, MembershipStatus, UserId
from app.core.membership import MembershipRecord
from app.services.renewal_notifier import Recipient, RenewalNotifier

NOW = datetime(2025, 6, 1, 12, tzinfo=timezone.utc)


class FakeRepository:
    def __init__(self, records):
        self.records = records

    async def list_all(self):
        return list(self.records)


class RecordingMailer:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send(self, to, subject, body):
        if to in self.fail_for:
            raise ConnectionError("SMTP down")
        self.sent.append((to, subject))


def _record(uid, status=MembershipStatus.ACTIVE, days=10):
    return MembershipRecord(
        id=MembershipId(f"m-{uid}"), user_id=UserId(uid), status=status,
        amount=60.0, renewal_date=NOW + timedelta(days=days), joined_at=NOW,
        created_at=NOW, updated_at=NOW,
    )


async def _lookup(user_id):
    if user_id == "ghost":
        return None
    return Recipient(email=f"{user_id}@ladtc.test", name=user_id.title())


def _notifier(records, mailer):
    return RenewalNotifier(FakeRepository(records), mailer, _lookup)


async def test_due_is_a_pure_query():
    mailer = RecordingMailer()
    records = [_record("a"), _record("b", days=90), _record("c", MembershipStatus.PENDING)]
    due = await _notifier(records, mailer).due(NOW, 30)
    assert [m.user_id for m in due] == ["a"]
    assert mailer.sent == []


async def test_notify_sends_one_message():
    mailer = RecordingMailer()
    notifier = _notifier([], mailer)
    await notifier.notify(_record("a"), Recipient("a@ladtc.test", "A"), NOW)
    await notifier.notify(_record("a"), Recipient("a@ladtc.test", "A"), NOW)
    assert mailer.sent == [
        ("a@ladtc.test", "Rappel de renouvellement LADTC"),
        ("a@ladtc.test", "Rappel de renouvellement LADTC"),
    ]


async def test_notify_due_continues_after_a_failure():
    mailer = RecordingMailer(fail_for={"b@ladtc.test"})
    records = [_record("a"), _record("b"), _record("ghost"), _record("c")]

    reminded = await _notifier(records, mailer).notify_due(NOW, 30)

    assert [m.user_id for m in reminded] == ["a", "c"]
    assert [to for to, _ in mailer.sent] == ["a@ladtc.test", "c@ladtc.test"]
