import httpx
import pytest

from webhook_relay.exceptions import LookupFailure
from webhook_relay.infrastructure.directory.http_directory import HttpDirectoryClient

URL = "https://directory.example.com/api/vehicles"

VEHICLES = {
    "success": True,
    "vehicles": [
        {"_id": "u-1", "ownerName": "Ravi", "phoneNumber": "+91 98765 43210", "deviceId": "EV-1",
         "registrationNumber": "KA01AB1234", "chassisNumber": "CH-1", "model": "Swift"},
        {"_id": "u-2", "ownerName": "Duplicate", "phoneNumber": "9876543210", "deviceId": "EV-2"},
    ],
}


def make_client(handler, **kwargs):
    return HttpDirectoryClient(URL, client=httpx.Client(transport=httpx.MockTransport(handler)), **kwargs)


def test_match_on_last_ten_digits_first_wins():
    client = make_client(lambda request: httpx.Response(200, json=VEHICLES))
    lookup = client.check_user_exists("09876543210")
    assert lookup.exists
    assert lookup.user.user_id == "u-1"
    assert lookup.user.phone_number == "+919876543210"
    assert lookup.user.vehicle_id == "EV-1"
    assert lookup.to_dict()["user"]["registrationNumber"] == "KA01AB1234"


def test_no_match_returns_not_exists():
    client = make_client(lambda request: httpx.Response(200, json=VEHICLES))
    lookup = client.check_user_exists("+911234567890")
    assert lookup.exists is False
    assert lookup.user is None


def test_api_key_sent_as_header():
    seen = {}

    def handler(request):
        seen["key"] = request.headers.get("x-api-key")
        return httpx.Response(200, json={"success": True, "vehicles": []})

    make_client(handler, api_key="secret").check_user_exists("9876543210")
    assert seen["key"] == "secret"


def test_custom_phone_field():
    body = {"success": True, "vehicles": [{"_id": "u-3", "mobile": "9876543210"}]}
    client = make_client(lambda request: httpx.Response(200, json=body), phone_field="mobile")
    assert client.check_user_exists("9876543210").user.user_id == "u-3"


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"vehicles": []}),
    httpx.Response(200, json={"success": False, "vehicles": []}),
    httpx.Response(200, json={"success": True}),
    httpx.Response(200, json={"success": True, "vehicles": "nope"}),
    httpx.Response(200, text="<html>"),
    httpx.Response(500, json={"success": True, "vehicles": []}),
])
def test_malformed_or_failed_response_raises_lookup_failure(response):
    client = make_client(lambda request: response)
    with pytest.raises(LookupFailure):
        client.check_user_exists("9876543210")


def test_transport_error_raises_lookup_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LookupFailure):
        make_client(handler).check_user_exists("9876543210")


def test_missing_url_raises_lookup_failure():
    client = HttpDirectoryClient("", client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
    with pytest.raises(LookupFailure):
        client.check_user_exists("9876543210")
