import hashlib
import json
import logging
from typing import Optional, Dict, Any

from ...application.ports.audit_logger import AuditLogger
from ...utils import mask_phone, utcnow


def phone_hash(phone: str) -> str:
    return hashlib.sha256((phone or "").encode()).hexdigest()


class StdAuditLogger(AuditLogger):
    """One JSON line per OTP action; the raw number never reaches the log."""

    def __init__(self, logger_name: str = "webhook_relay.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    def log(self, action: str, phone: str, user_id: Optional[str] = None, request_id: Optional[str] = None, ip_address: Optional[str] = None, success: bool = True, details: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            "timestamp": utcnow().isoformat(),
            "action": action,
            "phone_hash": phone_hash(phone),
            "phone_hint": mask_phone(phone),
            "user_id": user_id,
            "request_id": request_id,
            "ip_address": ip_address,
            "success": success,
            "details": details or {},
        }
        level = logging.INFO if success else logging.WARNING
        self._logger.log(level, f"AUDIT: {json.dumps(entry, default=str)}")
