import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session

from webhook_relay.db.session import Database
from webhook_relay.infrastructure.persistence.sqlalchemy.repositories.device_repository_sql import SqlDeviceRepository
from webhook_relay.infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from webhook_relay.infrastructure.persistence.sqlalchemy.repositories.telemetry_repository_sql import SqlTelemetryRepository
from webhook_relay.infrastructure.persistence.sqlalchemy.repositories.webhook_repository_sql import SqlWebhookRepository


@pytest.fixture
def session():
    database = Database("sqlite://")
    asyncio.run(database.connect())
    with Session(database.engine) as session:
        yield session
    database.dispose()


def test_otp_latest_unverified_and_supersede(session):
    repo = SqlOtpRepository(session)
    expires = datetime.now(timezone.utc) + timedelta(minutes=10)
    repo.create("+919876543210", "111111", "login", expires)
    assert repo.delete_unverified("+919876543210") == 1
    second = repo.create("+919876543210", "222222", "login", expires)
    repo.create("+910000000000", "333333", "login", expires)

    latest = repo.latest_unverified("+919876543210")
    assert latest.id == second.id
    assert latest.code == "222222"


def test_otp_attempts_increment_atomically(session):
    repo = SqlOtpRepository(session)
    record = repo.create("+919876543210", "111111", "login", datetime.now(timezone.utc) + timedelta(minutes=10))
    assert repo.increment_attempts(record.id) == 1
    assert repo.increment_attempts(record.id) == 2
    assert repo.latest_unverified("+919876543210").attempts == 2


def test_otp_mark_verified_hides_record(session):
    repo = SqlOtpRepository(session)
    record = repo.create("+919876543210", "111111", "login", datetime.now(timezone.utc) + timedelta(minutes=10))
    repo.mark_verified(record.id)
    assert repo.latest_unverified("+919876543210") is None


def test_otp_purge_expired(session):
    repo = SqlOtpRepository(session)
    now = datetime.now(timezone.utc)
    repo.create("+911111111111", "111111", "login", now - timedelta(minutes=1))
    live = repo.create("+912222222222", "222222", "login", now + timedelta(minutes=5))
    assert repo.purge_expired(now) == 1
    assert repo.latest_unverified("+912222222222").id == live.id


def test_device_upsert_reactivates_and_updates(session):
    repo = SqlDeviceRepository(session)
    first = repo.upsert("tok-1", {"vehicle_id": "EV-1", "platform": "android", "device_info": {"os": "14"}})
    assert repo.deactivate("tok-1") is True
    assert repo.list_active() == []

    again = repo.upsert("tok-1", {"phone_number": "+919876543210"})
    assert again.id == first.id
    assert again.active is True
    assert again.vehicle_id == "EV-1"
    assert again.phone_number == "+919876543210"
    assert again.device_info == {"os": "14"}


def test_device_filters_and_bulk_deactivate(session):
    repo = SqlDeviceRepository(session)
    repo.upsert("a", {"vehicle_id": "EV-1"})
    repo.upsert("b", {"vehicle_id": "EV-1"})
    repo.upsert("c", {"vehicle_id": "EV-2"})

    assert [d.token for d in repo.list_active(vehicle_id="EV-1")] == ["a", "b"]
    assert repo.deactivate_many(["a", "c"]) == 2
    assert repo.deactivate_many([]) == 0
    assert repo.count_active() == 1
    assert {d.token for d in repo.list(active=False)} == {"a", "c"}
    assert repo.deactivate("missing") is False


def test_telemetry_outcome_and_recent(session):
    repo = SqlTelemetryRepository(session)
    log = repo.create("EV-1", "BATTERY_LOW", None, {"deviceId": "EV-1", "event": "BATTERY_LOW", "soc": 12})
    repo.create("EV-2", "IGNITION_ON", None, None)
    updated = repo.record_outcome(log.id, True, 3, None)

    assert updated.notification_sent is True
    assert updated.devices_notified == 3
    assert updated.processed_at is not None
    recent = repo.list_recent(device_id="EV-1")
    assert [r.id for r in recent] == [log.id]
    assert recent[0].raw_payload["soc"] == 12


def test_webhook_store_list_and_delete(session):
    repo = SqlWebhookRepository(session)
    first = repo.create({"event": "a"}, {"content-type": "application/json"}, "POST", "10.0.0.1", "http://x/webhook")
    second = repo.create([1, 2, 3], {}, "POST", None, None)
    repo.record_outcome(second.id, True, None)

    assert repo.get(first.id).payload == {"event": "a"}
    assert repo.get("missing") is None
    assert repo.count() == 2
    assert repo.count_notified() == 1
    assert repo.latest_timestamp() is not None
    assert len(repo.list_recent(limit=1)) == 1
    assert repo.delete_all() == 2
    assert repo.count() == 0
    assert repo.latest_timestamp() is None


def test_otp_timestamps_round_trip_as_aware_utc(session):
    repo = SqlOtpRepository(session)
    expires = datetime.now(timezone.utc) + timedelta(minutes=10)
    repo.create("+919876543210", "111111", "login", expires)

    stored = repo.latest_unverified("+919876543210")
    assert stored.expires_at.tzinfo is not None
    assert stored.created_at.tzinfo is not None
    assert stored.expires_at == expires
    assert stored.created_at < stored.expires_at


def test_otp_service_verifies_and_expires_against_sqlite(session):
    from webhook_relay.application.ports.directory import DirectoryLookup
    from webhook_relay.application.services.otp_service import OtpService
    from webhook_relay.exceptions import OtpExpired

    class Directory:
        def check_user_exists(self, phone_number):
            return DirectoryLookup(exists=True)

    class Sms:
        def __init__(self):
            self.codes = []

        def send_code(self, phone, code, expiry_minutes):
            self.codes.append(code)
            return "SM1"

    now = [datetime.now(timezone.utc)]
    sms = Sms()
    svc = OtpService(otp_repo=SqlOtpRepository(session), directory=Directory(), sms_sender=sms,
                     clock=lambda: now[0])

    svc.issue("+919876543210")
    assert svc.verify("+919876543210", sms.codes[-1]).token

    svc.issue("+919876543210")
    now[0] += timedelta(minutes=11)
    with pytest.raises(OtpExpired):
        svc.verify("+919876543210", sms.codes[-1])


def test_telemetry_naive_timestamp_is_stored_as_utc(session):
    repo = SqlTelemetryRepository(session)
    log = repo.create("EV-1", "IGNITION_ON", datetime(2024, 5, 1, 8, 30), None)
    assert log.timestamp == datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
    assert log.received_at.tzinfo is not None
    outcome = repo.record_outcome(log.id, False, 0, None)
    assert outcome.processed_at.tzinfo is not None
