"""
S3 and SQS collaborators backed by aioboto3.

Each call opens a short-lived client from a shared session. An endpoint URL can
be configured to run against LocalStack.
"""

import json
from typing import Any, Dict, List, Optional, Union

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import (
    DeleteError, FetchError, NotifyError, ObjectNotFoundError, ReceiveError, UploadError
)
from ..models import QueueMessage
from ..utils.logger import get_logger
from .base import MessageQueue, ObjectStore, StoredObject

logger = get_logger(__name__)

NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class _AwsClientFactory:
    def __init__(
        self,
        session: Optional[aioboto3.Session] = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        self.session = session or aioboto3.Session()
        self.region_name = region_name
        self.endpoint_url = endpoint_url

    def client(self, service_name: str):
        return self.session.client(
            service_name,
            region_name=self.region_name,
            endpoint_url=self.endpoint_url,
        )


class S3ObjectStore(_AwsClientFactory, ObjectStore):
    """Object store on S3 (or an S3-compatible endpoint)."""

    async def get_object(self, bucket: str, key: str) -> StoredObject:
        try:
            async with self.client("s3") as s3_client:
                response = await s3_client.get_object(Bucket=bucket, Key=key)
                async with response["Body"] as stream:
                    body = await stream.read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in NOT_FOUND_CODES:
                raise ObjectNotFoundError(bucket, key) from e
            raise FetchError(f"Failed to get '{key}' from bucket '{bucket}': {e}") from e
        except BotoCoreError as e:
            raise FetchError(f"Failed to get '{key}' from bucket '{bucket}': {e}") from e

        content_type = response.get("ContentType", "")
        logger.debug(f"Fetched s3://{bucket}/{key} ({len(body)} bytes, {content_type})")
        return StoredObject(body=body, content_type=content_type)

    async def put_object(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        try:
            async with self.client("s3") as s3_client:
                await s3_client.put_object(
                    Bucket=bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Failed to put '{key}' in bucket '{bucket}': {e}") from e

        logger.debug(f"Stored s3://{bucket}/{key} ({len(body)} bytes, {content_type})")


class SqsMessageQueue(_AwsClientFactory, MessageQueue):
    """Message queue on SQS."""

    def __init__(self, *args, wait_time_seconds: int = 0, **kwargs):
        super().__init__(*args, **kwargs)
        self.wait_time_seconds = wait_time_seconds

    async def receive(self, queue_url: str, max_messages: int) -> List[QueueMessage]:
        try:
            async with self.client("sqs") as sqs_client:
                response = await sqs_client.receive_message(
                    QueueUrl=queue_url,
                    MaxNumberOfMessages=max_messages,
                    WaitTimeSeconds=self.wait_time_seconds,
                )
        except (ClientError, BotoCoreError) as e:
            raise ReceiveError(f"Failed to receive messages from {queue_url}: {e}") from e

        messages = [
            QueueMessage(
                message_id=raw.get("MessageId", ""),
                body=raw.get("Body", ""),
                receipt_handle=raw["ReceiptHandle"],
            )
            for raw in response.get("Messages", [])
        ]
        if messages:
            logger.info(f"Received {len(messages)} message(s) from {queue_url}")
        return messages

    async def send(self, queue_url: str, body: Union[str, Dict[str, Any]]) -> None:
        message_body = body if isinstance(body, str) else json.dumps(body)
        try:
            async with self.client("sqs") as sqs_client:
                response = await sqs_client.send_message(QueueUrl=queue_url, MessageBody=message_body)
        except (ClientError, BotoCoreError) as e:
            raise NotifyError(f"Failed to send message to {queue_url}: {e}") from e

        logger.debug(f"Sent message {response.get('MessageId')} to {queue_url}")

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        try:
            async with self.client("sqs") as sqs_client:
                await sqs_client.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except (ClientError, BotoCoreError) as e:
            raise DeleteError(f"Failed to delete message from {queue_url}: {e}") from e
