from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol


class PushGatewayError(Exception):
    """Raised when the push gateway call itself fails (transport, auth, bad response)."""


@dataclass
class PushMessage:
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    priority: str = "high"
    sound: str = "default"
    android_channel_id: Optional[str] = None
    badge: Optional[int] = None


@dataclass
class SendResponse:
    token: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    # the whole request failed, the token itself was never judged
    transient: bool = False


@dataclass
class MulticastResult:
    responses: List[SendResponse]

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.responses if not r.success)

    @property
    def failed_tokens(self) -> List[str]:
        """Tokens the gateway rejected individually; these are dead and get deactivated."""
        return [r.token for r in self.responses if not r.success and not r.transient]


class PushGateway(Protocol):
    def send_multicast(self, tokens: List[str], message: PushMessage) -> MulticastResult:
        ...
