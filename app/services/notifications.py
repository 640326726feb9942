"""
Push notifications through the notification gateway.

The gateway accepts ``POST {gateway_url}/notifications`` with a JSON body
``{"uuid", "title", "body", "topic"}`` and a bearer token. Anything other
than a 2xx answer counts as a failed delivery.
"""
import enum
import logging
from typing import Protocol

import httpx

from app.core.exceptions import InvalidTopicError, NotificationDeliveryError

logger = logging.getLogger(__name__)


class NotificationTopic(str, enum.Enum):
    TASK_ASSIGNMENT = "task-assignment"
    MESSAGE_RECEIVED = "message-received"
    DEADLINE_REMINDER = "deadline-reminder"


VALID_TOPICS = frozenset(t.value for t in NotificationTopic)


class NotificationChannel(Protocol):
    def send(self, user_id: int, title: str, body: str, topic: str) -> None: ...


class PushNotificationService:
    def __init__(
        self,
        gateway_url: str,
        gateway_token: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.gateway_url = gateway_url.rstrip("/")
        self.gateway_token = gateway_token
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def send(self, user_id: int, title: str, body: str, topic: str) -> None:
        """
        Deliver one notification.

        Raises InvalidTopicError for an unknown topic (before any I/O) and
        NotificationDeliveryError when the gateway fails or is unreachable.
        """
        topic = topic.value if isinstance(topic, NotificationTopic) else topic
        if topic not in VALID_TOPICS:
            raise InvalidTopicError(
                f"Unknown notification topic {topic!r}; expected one of {sorted(VALID_TOPICS)}"
            )

        url = f"{self.gateway_url}/notifications"
        payload = {"uuid": str(user_id), "title": title, "body": body, "topic": topic}
        headers = {"Authorization": f"Bearer {self.gateway_token}"}

        try:
            response = self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise NotificationDeliveryError(
                f"Could not reach notification gateway for user {user_id}: {exc}"
            ) from exc

        if not response.is_success:
            raise NotificationDeliveryError(
                f"Notification gateway answered {response.status_code} for user {user_id}"
            )
        logger.debug("Sent %s notification to user %s", topic, user_id)

    def notify_task_assignment(self, user_id: int, title: str, body: str) -> None:
        self.send(user_id, title, body, NotificationTopic.TASK_ASSIGNMENT.value)

    def notify_message_received(self, user_id: int, title: str, body: str) -> None:
        self.send(user_id, title, body, NotificationTopic.MESSAGE_RECEIVED.value)

    def notify_deadline_reminder(self, user_id: int, title: str, body: str) -> None:
        self.send(user_id, title, body, NotificationTopic.DEADLINE_REMINDER.value)

    def close(self) -> None:
        self._client.close()
