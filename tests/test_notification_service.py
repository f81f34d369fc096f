from datetime import datetime, timezone
from typing import List

from webhook_relay.application.ports.device_repo import DeviceDto, DeviceRepository
from webhook_relay.application.ports.push_gateway import (
    MulticastResult,
    PushGateway,
    PushGatewayError,
    PushMessage,
    SendResponse,
)
from webhook_relay.application.services.notification_service import (
    NO_DEVICES_REASON,
    DeviceQuery,
    NotificationService,
)


def make_device(token, vehicle_id=None, active=True):
    now = datetime.now(timezone.utc)
    return DeviceDto(
        id=abs(hash(token)) % 1000, token=token, phone_number=None, user_id=None,
        vehicle_id=vehicle_id, registration_number=None, chassis_number=None,
        platform="android", device_info=None, active=active, last_used=now, created_at=now,
    )


class FakeDeviceRepo(DeviceRepository):
    def __init__(self, devices: List[DeviceDto]):
        self.devices = {d.token: d for d in devices}
        self.deactivated = []

    def list_active(self, vehicle_id=None):
        return [d for d in self.devices.values()
                if d.active and (vehicle_id is None or d.vehicle_id == vehicle_id)]

    def deactivate_many(self, tokens):
        tokens = list(tokens)
        self.deactivated.extend(tokens)
        for token in tokens:
            self.devices[token].active = False
        return len(tokens)


class FakeGateway(PushGateway):
    def __init__(self, failing=(), raise_error=False):
        self.failing = set(failing)
        self.raise_error = raise_error
        self.calls = []

    def send_multicast(self, tokens, message):
        self.calls.append((list(tokens), message))
        if self.raise_error:
            raise PushGatewayError("gateway down")
        return MulticastResult(responses=[
            SendResponse(token=t, success=t not in self.failing, error="NotRegistered" if t in self.failing else None)
            for t in tokens
        ])


MESSAGE = PushMessage(title="Hello", body="World")


def test_no_devices_skips_gateway():
    gateway = FakeGateway()
    svc = NotificationService(device_repo=FakeDeviceRepo([]), push_gateway=gateway)
    result = svc.send_push(DeviceQuery(), MESSAGE)
    assert result.success is False
    assert result.reason == NO_DEVICES_REASON
    assert result.to_dict()["reason"] == "No devices registered"
    assert gateway.calls == []


def test_failed_tokens_are_deactivated():
    repo = FakeDeviceRepo([make_device("a"), make_device("b"), make_device("c")])
    gateway = FakeGateway(failing={"a", "c"})
    svc = NotificationService(device_repo=repo, push_gateway=gateway)
    result = svc.send_push(DeviceQuery(), MESSAGE)
    assert result.success is True
    assert (result.success_count, result.failure_count, result.total_devices) == (1, 2, 3)
    assert sorted(repo.deactivated) == ["a", "c"]
    assert repo.devices["b"].active


def test_vehicle_query_only_targets_linked_devices():
    repo = FakeDeviceRepo([make_device("a", "EV-1"), make_device("b", "EV-2")])
    gateway = FakeGateway()
    svc = NotificationService(device_repo=repo, push_gateway=gateway)
    svc.send_push(DeviceQuery(vehicle_id="EV-2"), MESSAGE)
    assert gateway.calls[0][0] == ["b"]


def test_all_failures_report_unsuccessful():
    repo = FakeDeviceRepo([make_device("a")])
    svc = NotificationService(device_repo=repo, push_gateway=FakeGateway(failing={"a"}))
    result = svc.send_push(DeviceQuery(), MESSAGE)
    assert result.success is False
    assert result.failure_message == "All deliveries failed"


def test_gateway_exception_is_converted_to_result():
    repo = FakeDeviceRepo([make_device("a")])
    svc = NotificationService(device_repo=repo, push_gateway=FakeGateway(raise_error=True))
    result = svc.send_push(DeviceQuery(), MESSAGE)
    assert result.success is False
    assert result.error == "gateway down"
    assert repo.deactivated == []


def test_transient_failures_keep_devices_active():
    repo = FakeDeviceRepo([make_device("a"), make_device("b")])

    class FlakyGateway(PushGateway):
        def send_multicast(self, tokens, message):
            return MulticastResult(responses=[
                SendResponse(token="a", success=True, message_id="m1"),
                SendResponse(token="b", success=False, error="unavailable", transient=True),
            ])

    svc = NotificationService(device_repo=repo, push_gateway=FlakyGateway())
    result = svc.send_push(DeviceQuery(), MESSAGE)
    assert (result.success_count, result.failure_count) == (1, 1)
    assert repo.deactivated == []
    assert repo.devices["b"].active
