import asyncio
import json
import logging
from collections import deque
from typing import Any, Deque, Dict, Optional, Set

import pusher
from pydantic import BaseModel

from boxes_api.aws_clients import create_aws_client
from boxes_api.config.settings import Settings, get_settings
from boxes_api.errors import NotificationError
from boxes_api.schemas import BoxEventType

logger = logging.getLogger(__name__)


class BoxEvent(BaseModel):
    """A change to a box, fanned out to every connected client."""
    type: BoxEventType
    box_number: int
    file_name: Optional[str] = None
    file_size: Optional[int] = None

    def payload(self) -> Dict[str, Any]:
        # Browsers parse boxNumber back into an int.
        return {
            "boxNumber": str(self.box_number),
            "fileName": self.file_name,
            "fileSize": self.file_size,
        }


class BaseNotifier:
    """
    Base class for pub/sub notifiers (to be extended by specific implementations).

    Besides the external service, every published event is handed to the
    in-process subscribers, which is what feeds the `/api/events` stream.
    """
    name = "base"

    def __init__(self, channel: str, subscriber_queue_size: int = 100):
        self.channel = channel
        self.subscriber_queue_size = subscriber_queue_size
        self._subscribers: Set["asyncio.Queue[BoxEvent]"] = set()

    async def publish(self, event: BoxEvent) -> None:
        raise NotImplementedError

    def subscribe(self) -> "asyncio.Queue[BoxEvent]":
        """Register an in-process listener; events arrive on the returned queue."""
        queue: "asyncio.Queue[BoxEvent]" = asyncio.Queue(maxsize=self.subscriber_queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: "asyncio.Queue[BoxEvent]") -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _fan_out(self, event: BoxEvent) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # Slow listeners drop events.
                logger.warning(f"Dropping {event.type.value} for box {event.box_number}: subscriber queue full")


class LocalNotifier(BaseNotifier):
    """Keeps events in-process. Used in local development and tests."""
    name = "local"

    def __init__(self, channel: str, history_size: int = 50):
        super().__init__(channel)
        # Only the most recent events are kept.
        self.published: Deque[BoxEvent] = deque(maxlen=history_size)

    async def publish(self, event: BoxEvent) -> None:
        logger.info(f"[{self.channel}] {event.type.value}: {event.payload()}")
        self.published.append(event)
        self._fan_out(event)


class PusherNotifier(BaseNotifier):
    """Publishes through Pusher Channels; browsers subscribe to the same channel."""
    name = "pusher"

    def __init__(self, settings: Settings, client: Optional[pusher.Pusher] = None):
        super().__init__(settings.notification_channel)
        self.client = client or pusher.Pusher(
            app_id=settings.pusher_app_id,
            key=settings.pusher_key,
            secret=settings.pusher_secret,
            cluster=settings.pusher_cluster,
            ssl=True,
        )
        logger.info(f"PusherNotifier initialized (cluster={settings.pusher_cluster}, channel={self.channel})")

    async def publish(self, event: BoxEvent) -> None:
        try:
            # The Pusher client is blocking.
            await asyncio.to_thread(
                self.client.trigger, self.channel, event.type.value, event.payload()
            )
        except Exception as e:
            logger.error(f"Pusher trigger failed for {event.type.value} on box {event.box_number}: {str(e)}")
            raise NotificationError(f"Failed to publish {event.type.value}: {str(e)}") from e
        logger.info(f"Published {event.type.value} for box {event.box_number} via Pusher")
        self._fan_out(event)


class SNSNotifier(BaseNotifier):
    """Publishes to an SNS topic; subscribers filter on the event_type attribute."""
    name = "sns"

    def __init__(self, settings: Settings, sns_client: Any = None):
        super().__init__(settings.notification_channel)
        self.topic_arn = settings.sns_topic_arn
        self.sns = sns_client or create_aws_client("sns", settings)
        logger.info(f"SNSNotifier initialized")
        logger.info(f"  Topic ARN: {self.topic_arn}")

    async def publish(self, event: BoxEvent) -> None:
        try:
            response = await asyncio.to_thread(
                self.sns.publish,
                TopicArn=self.topic_arn,
                Message=json.dumps(event.payload()),
                MessageAttributes={
                    "event_type": {"DataType": "String", "StringValue": event.type.value},
                    "channel": {"DataType": "String", "StringValue": self.channel},
                },
            )
        except Exception as e:
            logger.error(f"SNS publish failed for {event.type.value} on box {event.box_number}: {str(e)}")
            raise NotificationError(f"Failed to publish {event.type.value}: {str(e)}") from e
        logger.info(f"Published {event.type.value} for box {event.box_number} to SNS: {response.get('MessageId')}")
        self._fan_out(event)


class NotifierFactory:
    """Factory for creating the notifier matching the configured backend"""

    @staticmethod
    def get_notifier(settings: Optional[Settings] = None) -> BaseNotifier:
        settings = settings or get_settings()
        backend = settings.notifier_backend
        logger.info(f"Creating notifier for backend: {backend}")

        if backend == "pusher":
            return PusherNotifier(settings)
        if backend == "sns":
            return SNSNotifier(settings)
        return LocalNotifier(settings.notification_channel, history_size=settings.local_event_history)
