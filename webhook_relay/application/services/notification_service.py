import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..ports.device_repo import DeviceRepository
from ..ports.push_gateway import PushGateway, PushMessage

logger = logging.getLogger(__name__)

NO_DEVICES_REASON = "No devices registered"


@dataclass
class DeviceQuery:
    """Active devices to notify: every one, or only those linked to a vehicle."""
    vehicle_id: Optional[str] = None


@dataclass
class DispatchResult:
    success: bool
    success_count: int = 0
    failure_count: int = 0
    total_devices: int = 0
    reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def failure_message(self) -> Optional[str]:
        if self.success:
            return None
        return self.error or self.reason or "All deliveries failed"

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": self.success,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "totalDevices": self.total_devices,
        }
        if self.reason:
            body["reason"] = self.reason
        if self.error:
            body["error"] = self.error
        return body


@dataclass
class NotificationService:
    device_repo: DeviceRepository
    push_gateway: PushGateway

    def send_push(self, target: DeviceQuery, message: PushMessage) -> DispatchResult:
        devices = self.device_repo.list_active(vehicle_id=target.vehicle_id)
        tokens = [d.token for d in devices]
        if not tokens:
            logger.info(f"No active devices for push (vehicle={target.vehicle_id or 'all'})")
            return DispatchResult(success=False, reason=NO_DEVICES_REASON)

        try:
            result = self.push_gateway.send_multicast(tokens, message)
        except Exception as e:
            logger.error(f"Push gateway error for {len(tokens)} device(s): {e}")
            return DispatchResult(success=False, total_devices=len(tokens), error=str(e))

        failed = result.failed_tokens
        if failed:
            deactivated = self.device_repo.deactivate_many(failed)
            logger.warning(f"Deactivated {deactivated} device token(s) after failed delivery")

        logger.info(
            f"Push '{message.title}' delivered to {result.success_count}/{len(tokens)} device(s)"
        )
        return DispatchResult(
            success=result.success_count > 0,
            success_count=result.success_count,
            failure_count=result.failure_count,
            total_devices=len(tokens),
        )
