import logging
from typing import Any, Dict, List, Optional

import httpx

from ...application.ports.directory import DirectoryClient, DirectoryLookup, DirectoryUser
from ...exceptions import LookupFailure
from ...utils import DEFAULT_COUNTRY_CODE, last_ten_digits, mask_phone, normalize_phone

logger = logging.getLogger(__name__)


class HttpDirectoryClient(DirectoryClient):
    """Looks users up in the external vehicle/owner directory.

    The directory answers ``GET <url>`` with ``{"success": true, "vehicles": [...]}``;
    there is no server-side filtering, so matching happens here on the last ten digits
    of the phone number.
    """

    def __init__(self, url: str, api_key: Optional[str] = None, phone_field: str = "phoneNumber",
                 timeout: float = 10.0, country_code: str = DEFAULT_COUNTRY_CODE,
                 client: Optional[httpx.Client] = None):
        self.url = url
        self.api_key = api_key
        self.phone_field = phone_field
        self.country_code = country_code
        self.client = client or httpx.Client(timeout=timeout)

    def fetch_records(self) -> List[Dict[str, Any]]:
        if not self.url:
            raise LookupFailure("Directory service URL not configured")
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        try:
            response = self.client.get(self.url, headers=headers)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Directory request failed: {e}")
            raise LookupFailure(f"Directory request failed: {e}")
        except ValueError:
            raise LookupFailure("Directory returned a non-JSON response")

        if not isinstance(body, dict) or body.get("success") is not True:
            raise LookupFailure("Directory response missing success flag")
        vehicles = body.get("vehicles")
        if not isinstance(vehicles, list):
            raise LookupFailure("Directory response missing vehicles list")
        return vehicles

    def check_user_exists(self, phone_number: str) -> DirectoryLookup:
        wanted = last_ten_digits(phone_number)
        if not wanted:
            return DirectoryLookup(exists=False)
        for record in self.fetch_records():
            if not isinstance(record, dict):
                continue
            candidate = record.get(self.phone_field)
            if candidate and last_ten_digits(str(candidate)) == wanted:
                return DirectoryLookup(exists=True, user=self._to_user(record, str(candidate)))
        logger.info(f"No directory entry for {mask_phone(phone_number)}")
        return DirectoryLookup(exists=False)

    def _to_user(self, record: Dict[str, Any], phone: str) -> DirectoryUser:
        def text(key: str) -> Optional[str]:
            value = record.get(key)
            return str(value) if value not in (None, "") else None

        return DirectoryUser(
            user_id=text("_id") or text("userId"),
            name=text("ownerName") or text("name"),
            phone_number=normalize_phone(phone, self.country_code),
            vehicle_id=text("deviceId") or text("vehicleId"),
            registration_number=text("registrationNumber"),
            chassis_number=text("chassisNumber"),
            model=text("model"),
        )

    def close(self) -> None:
        self.client.close()
