import logging
from typing import Any, Callable, List, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from ...application.ports.push_gateway import MulticastResult, PushGateway, PushGatewayError, PushMessage, SendResponse

logger = logging.getLogger(__name__)

# FCM refuses multicast messages addressed to more tokens than this
MAX_MULTICAST_TOKENS = 500


class FcmPushGateway(PushGateway):
    """Firebase Cloud Messaging through the Admin SDK.

    Tokens are sent in batches of at most ``MAX_MULTICAST_TOKENS`` with
    ``messaging.send_each_for_multicast``; the per-token responses of every batch
    are merged, in order, into one ``MulticastResult``. A batch the SDK fails to
    send as a whole is reported as transient failures for its tokens, so they are
    not mistaken for dead registrations.

    The Firebase app is created lazily from the service-account fields on the
    first send. ``app`` and ``sender`` may be injected.
    """

    def __init__(self, project_id: str = "", client_email: str = "", private_key: str = "",
                 app_name: str = "webhook-relay", app: Optional[Any] = None,
                 sender: Optional[Callable[..., Any]] = None, batch_size: int = MAX_MULTICAST_TOKENS):
        self.project_id = project_id
        self.client_email = client_email
        self.private_key = private_key
        self.app_name = app_name
        self.batch_size = max(1, min(batch_size, MAX_MULTICAST_TOKENS))
        self._app = app
        self._sender = sender or messaging.send_each_for_multicast

    def _get_app(self):
        if self._app is not None:
            return self._app
        if not self.client_email or not self.private_key or not self.project_id:
            raise PushGatewayError("Firebase credentials not configured")
        try:
            self._app = firebase_admin.get_app(self.app_name)
            return self._app
        except ValueError:
            pass
        try:
            cred = credentials.Certificate({
                "type": "service_account",
                "project_id": self.project_id,
                "private_key": self.private_key,
                "client_email": self.client_email,
                "token_uri": "https://oauth2.googleapis.com/token",
            })
            self._app = firebase_admin.initialize_app(cred, {"projectId": self.project_id}, name=self.app_name)
        except ValueError as e:
            raise PushGatewayError(f"Failed to initialize Firebase app: {e}") from e
        logger.info("Firebase app initialized")
        return self._app

    def build_message(self, tokens: List[str], message: PushMessage) -> messaging.MulticastMessage:
        high = message.priority == "high"
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=message.title, body=message.body),
            data={str(k): str(v) for k, v in message.data.items()},
            android=messaging.AndroidConfig(
                priority="high" if high else "normal",
                notification=messaging.AndroidNotification(
                    channel_id=message.android_channel_id,
                    sound=message.sound,
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        sound=message.sound,
                        badge=message.badge,
                        # iOS wakes the app for high priority alerts
                        content_available=True if high else None,
                    ),
                ),
            ),
        )

    def send_multicast(self, tokens: List[str], message: PushMessage) -> MulticastResult:
        app = self._get_app()
        batches = [tokens[i:i + self.batch_size] for i in range(0, len(tokens), self.batch_size)]
        responses: List[SendResponse] = []
        failed_batches = 0
        for batch in batches:
            try:
                batch_response = self._sender(self.build_message(batch, message), app=app)
            except (FirebaseError, ValueError) as e:
                failed_batches += 1
                logger.error(f"FCM batch of {len(batch)} token(s) failed: {e}")
                responses.extend(SendResponse(token=t, success=False, error=str(e), transient=True) for t in batch)
                continue
            responses.extend(self._to_responses(batch, batch_response))

        if batches and failed_batches == len(batches):
            raise PushGatewayError(f"FCM send failed: {responses[0].error}")
        return MulticastResult(responses=responses)

    def _to_responses(self, batch: List[str], batch_response: Any) -> List[SendResponse]:
        results = list(batch_response.responses)
        if len(results) != len(batch):
            raise PushGatewayError("FCM response does not match the requested tokens")
        out = []
        for token, result in zip(batch, results):
            if result.success:
                out.append(SendResponse(token=token, success=True, message_id=result.message_id))
            else:
                logger.info(f"FCM delivery failed: {result.exception}")
                out.append(SendResponse(token=token, success=False, error=str(result.exception)))
        return out
