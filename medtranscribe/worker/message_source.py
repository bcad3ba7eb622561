from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from medtranscribe.logging.logger import Log


@dataclass(frozen=True)
class QueueMessage:
    """One received event notification."""

    message_id: str
    receipt_handle: str
    body: str
    receive_count: int = 1


class BaseMessageSource(ABC):
    """Contract for at-least-once event sources."""

    @abstractmethod
    def receive(self) -> list[QueueMessage]:
        """Wait for and return the next batch of messages (possibly empty)."""

    @abstractmethod
    def ack(self, message: QueueMessage) -> None:
        """Remove a handled message so it is not redelivered."""


class SqsMessageSource(BaseMessageSource):
    """Long-polls an SQS queue that receives S3 event notifications."""

    def __init__(
        self,
        *,
        queue_url: str,
        region_name: str,
        wait_seconds: int = 20,
        max_messages: int = 10,
        client: Any | None = None,
    ) -> None:
        if not queue_url:
            raise ValueError("queue_url is required for the SQS message source")
        self._queue_url = queue_url
        self._wait_seconds = wait_seconds
        self._max_messages = max_messages
        self._client = client or boto3.client("sqs", region_name=region_name)

    def receive(self) -> list[QueueMessage]:
        response = self._client.receive_message(
            QueueUrl=self._queue_url,
            MaxNumberOfMessages=self._max_messages,
            WaitTimeSeconds=self._wait_seconds,
            AttributeNames=["ApproximateReceiveCount"],
        )
        return [
            QueueMessage(
                message_id=raw["MessageId"],
                receipt_handle=raw["ReceiptHandle"],
                body=raw["Body"],
                receive_count=int(
                    raw.get("Attributes", {}).get("ApproximateReceiveCount", 1)
                ),
            )
            for raw in response.get("Messages", [])
        ]

    def ack(self, message: QueueMessage) -> None:
        try:
            self._client.delete_message(
                QueueUrl=self._queue_url,
                ReceiptHandle=message.receipt_handle,
            )
        except (ClientError, BotoCoreError) as exc:
            # The message becomes visible again and is handled idempotently.
            Log.warning(f"Could not delete message {message.message_id}: {exc}")
