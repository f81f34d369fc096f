from types import SimpleNamespace

import pytest
from firebase_admin import exceptions as fb_exceptions

from webhook_relay.application.ports.push_gateway import PushGatewayError, PushMessage
from webhook_relay.infrastructure.push.fcm_gateway import MAX_MULTICAST_TOKENS, FcmPushGateway

APP = object()


def ok(message_id):
    return SimpleNamespace(success=True, message_id=message_id, exception=None)


def failed(reason):
    return SimpleNamespace(success=False, message_id=None, exception=Exception(reason))


class FakeSender:
    """Stands in for messaging.send_each_for_multicast."""

    def __init__(self, reply=None, fail_batches=()):
        self.reply = reply or (lambda tokens: [ok(f"m-{t}") for t in tokens])
        self.fail_batches = set(fail_batches)
        self.calls = []

    def __call__(self, message, app=None):
        self.calls.append((message, app))
        if len(self.calls) - 1 in self.fail_batches:
            raise fb_exceptions.UnavailableError("FCM unavailable")
        return SimpleNamespace(responses=self.reply(message.tokens))


def test_message_carries_android_and_apns_options():
    sender = FakeSender()
    gateway = FcmPushGateway(app=APP, sender=sender)
    message = PushMessage(title="Alert", body="Door open", data={"count": 3},
                          android_channel_id="vehicle_alerts", badge=2)
    gateway.send_multicast(["t1"], message)

    sent, app = sender.calls[0]
    assert app is APP
    assert sent.tokens == ["t1"]
    assert (sent.notification.title, sent.notification.body) == ("Alert", "Door open")
    assert sent.data == {"count": "3"}
    assert sent.android.priority == "high"
    assert sent.android.notification.channel_id == "vehicle_alerts"
    assert sent.android.notification.sound == "default"
    assert sent.apns.payload.aps.sound == "default"
    assert sent.apns.payload.aps.badge == 2


def test_normal_priority_is_passed_through():
    sender = FakeSender()
    FcmPushGateway(app=APP, sender=sender).send_multicast(["t1"], PushMessage(title="a", body="b", priority="normal"))
    assert sender.calls[0][0].android.priority == "normal"


def test_per_token_success_is_mapped_in_order():
    sender = FakeSender(reply=lambda tokens: [ok("m1"), failed("Requested entity was not found.")])
    result = FcmPushGateway(app=APP, sender=sender).send_multicast(["t1", "t2"], PushMessage(title="a", body="b"))

    assert (result.success_count, result.failure_count) == (1, 1)
    assert result.responses[0].message_id == "m1"
    assert result.responses[1].error == "Requested entity was not found."
    assert result.failed_tokens == ["t2"]


def test_large_token_lists_are_sent_in_batches():
    tokens = [f"t{i}" for i in range(1200)]
    sender = FakeSender()
    result = FcmPushGateway(app=APP, sender=sender).send_multicast(tokens, PushMessage(title="a", body="b"))

    assert [len(message.tokens) for message, _ in sender.calls] == [MAX_MULTICAST_TOKENS, MAX_MULTICAST_TOKENS, 200]
    assert [r.token for r in result.responses] == tokens
    assert result.success_count == 1200


def test_failed_batch_is_transient_and_others_still_count():
    tokens = [f"t{i}" for i in range(MAX_MULTICAST_TOKENS + 3)]
    sender = FakeSender(fail_batches={1})
    result = FcmPushGateway(app=APP, sender=sender).send_multicast(tokens, PushMessage(title="a", body="b"))

    assert result.success_count == MAX_MULTICAST_TOKENS
    assert result.failure_count == 3
    assert all(r.transient for r in result.responses[MAX_MULTICAST_TOKENS:])
    assert result.failed_tokens == []


def test_every_batch_failing_raises():
    gateway = FcmPushGateway(app=APP, sender=FakeSender(fail_batches={0}))
    with pytest.raises(PushGatewayError):
        gateway.send_multicast(["t1"], PushMessage(title="a", body="b"))


def test_mismatched_response_count_raises():
    gateway = FcmPushGateway(app=APP, sender=FakeSender(reply=lambda tokens: [ok("m")]))
    with pytest.raises(PushGatewayError):
        gateway.send_multicast(["t1", "t2"], PushMessage(title="a", body="b"))


def test_missing_credentials_raise_without_sending():
    sender = FakeSender()
    gateway = FcmPushGateway(project_id="relay", client_email="", private_key="", sender=sender)
    with pytest.raises(PushGatewayError):
        gateway.send_multicast(["t1"], PushMessage(title="a", body="b"))
    assert sender.calls == []
