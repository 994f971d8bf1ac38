"""
Abstract collaborators used by the pipeline.

The pipeline only talks to these interfaces, so AWS clients and in-memory
fakes are interchangeable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from ..models import QueueMessage


@dataclass(frozen=True)
class StoredObject:
    """Object body and the content type recorded by the store."""
    body: bytes
    content_type: str


class ObjectStore(ABC):
    """Byte blob storage addressed by bucket and key."""

    @abstractmethod
    async def get_object(self, bucket: str, key: str) -> StoredObject:
        """
        Fetch an object.

        Raises:
            ObjectNotFoundError: if the key does not exist
            FetchError: for any other storage failure
        """

    @abstractmethod
    async def put_object(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        """
        Store an object, replacing any existing one with the same key.

        Raises:
            UploadError: if the write fails
        """


class MessageQueue(ABC):
    """At-least-once message queue."""

    @abstractmethod
    async def receive(self, queue_url: str, max_messages: int) -> List[QueueMessage]:
        """
        Receive up to ``max_messages`` messages; may return an empty list.

        Raises:
            ReceiveError: if the queue cannot be read
        """

    @abstractmethod
    async def send(self, queue_url: str, body: Union[str, Dict[str, Any]]) -> None:
        """
        Send a message; dictionaries are JSON encoded.

        Raises:
            NotifyError: if the send fails
        """

    @abstractmethod
    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        """
        Acknowledge a received message.

        Raises:
            DeleteError: if the delete fails
        """
