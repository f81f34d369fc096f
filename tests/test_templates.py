from webhook_relay.application.templates import (
    TELEMETRY_TEMPLATES,
    WEBHOOK_TEMPLATE,
    TelemetryEventType,
    template_for,
)


def test_every_event_type_has_a_template():
    assert set(TELEMETRY_TEMPLATES) == set(TelemetryEventType)


def test_known_event_differs_from_default():
    battery = template_for("BATTERY_CRITICAL_LOW").render(vehicle="EV-1", event="BATTERY_CRITICAL_LOW")
    unknown = template_for("SOMETHING_NEW").render(vehicle="EV-1", event="SOMETHING_NEW")
    assert battery.title != unknown.title
    assert battery.priority == "high"
    assert unknown.title == "Vehicle update"
    assert "SOMETHING_NEW" in unknown.body


def test_event_parsing_is_case_insensitive():
    assert TelemetryEventType.parse(" battery_low ") is TelemetryEventType.BATTERY_LOW
    assert TelemetryEventType.parse(None) is TelemetryEventType.DEFAULT


def test_render_carries_vehicle_and_extra_data_as_strings():
    message = WEBHOOK_TEMPLATE.render(event="Order shipped", channel_id="alerts",
                                      extra_data={"webhookId": "w-1", "count": 3}, kind="webhook")
    assert message.body == "Order shipped"
    assert message.android_channel_id == "alerts"
    assert message.data == {"type": "webhook", "event": "Order shipped", "webhookId": "w-1", "count": "3"}
