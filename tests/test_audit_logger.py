import json
import logging

from webhook_relay.infrastructure.audit.std_logger import StdAuditLogger, phone_hash


def _entries(caplog):
    return [json.loads(r.getMessage()[len("AUDIT: "):]) for r in caplog.records if r.name == "webhook_relay.audit"]


def test_audit_line_hashes_phone(caplog):
    caplog.set_level(logging.INFO, logger="webhook_relay.audit")
    StdAuditLogger().log("send_otp", "+919876543210", user_id="u-1", request_id="r-1", ip_address="10.0.0.1")

    entry = _entries(caplog)[0]
    assert entry["action"] == "send_otp"
    assert entry["phone_hash"] == phone_hash("+919876543210")
    assert "+919876543210" not in caplog.text
    assert entry["request_id"] == "r-1"


def test_failures_are_logged_as_warnings(caplog):
    caplog.set_level(logging.INFO, logger="webhook_relay.audit")
    StdAuditLogger().log("verify_otp", "+919876543210", success=False, details={"error": "INVALID_OTP"})

    record = [r for r in caplog.records if r.name == "webhook_relay.audit"][0]
    assert record.levelno == logging.WARNING
    assert _entries(caplog)[0]["details"] == {"error": "INVALID_OTP"}
