"""Topic publisher that tells moderators and authors about publication changes.

Every message carries the event name as its subject and the publication id as
its correlation id, so subscriptions can filter on either without parsing the
JSON body.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from azure.servicebus import ServiceBusMessage
from azure.servicebus.aio import ServiceBusClient, ServiceBusSender

from komuness.events.contracts import EventEnvelope

if TYPE_CHECKING:
    from komuness.config import ServiceBusConfig

logger = logging.getLogger(__name__)


def build_message(event_type: str, data: dict[str, Any] | str) -> ServiceBusMessage:
    """Wrap an event in its envelope, keyed by the publication it concerns."""
    publication_id = data.get("publication_id") if isinstance(data, dict) else None
    return ServiceBusMessage(
        body=EventEnvelope(event=event_type, data=data).model_dump_json(),
        content_type="application/json",
        subject=str(event_type),
        correlation_id=publication_id,
        application_properties={"event_type": str(event_type)},
    )


class ServiceBusPublisher:
    """Send publication events to the configured topic.

    Without a connection string the publisher stays silent: moderation keeps
    working and only the notifications are lost.
    """

    def __init__(self, config: ServiceBusConfig) -> None:
        self._config = config
        self._client: ServiceBusClient | None = None
        self._sender: ServiceBusSender | None = None
        if not self.enabled:
            logger.warning(
                "AZURE_SERVICEBUS_CONNECTION_STRING is not set; "
                "publication notifications are disabled"
            )

    @property
    def enabled(self) -> bool:
        return bool(self._config.connection_string)

    def _topic_sender(self) -> ServiceBusSender:
        if self._sender is None:
            self._client = ServiceBusClient.from_connection_string(
                self._config.connection_string
            )
            self._sender = self._client.get_topic_sender(topic_name=self._config.topic_name)
        return self._sender

    async def publish(self, event_type: str, data: dict[str, Any] | str) -> None:
        """Notify subscribers; a failed send is logged and never reaches the caller."""
        if not self.enabled:
            return

        message = build_message(event_type, data)
        try:
            await self._topic_sender().send_messages(message)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Notification %s for publication=%s was not delivered",
                event_type,
                message.correlation_id,
                exc_info=True,
            )
            return
        logger.debug("Notified %s — publication=%s", event_type, message.correlation_id)

    async def close(self) -> None:
        sender, client = self._sender, self._client
        self._sender = self._client = None
        if sender is not None:
            await sender.close()
        if client is not None:
            await client.close()
