"""
Queue-driven application summary pipeline.

Each inbound message moves through a fixed sequence of states:

    RECEIVED -> FETCHED -> RENDERED -> UPLOADED -> NOTIFIED
             -> (SPLIT_RENDERED -> SPLIT_UPLOADED -> SPLIT_NOTIFIED)
             -> ACKED

The message is deleted from the source queue only once every upload and
notification for it has succeeded. Any failure leaves the message on the
queue so it is redelivered and the whole sequence runs again; keys are
deterministic, so a rerun overwrites the same objects.
"""

import asyncio
import time
import traceback
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import PipelineSettings
from ..exceptions import DeleteError, UnsupportedContentTypeError
from ..generators import SummaryPdfGenerator, get_style
from ..models import Document, QueueMessage, RenderedDocument, parse_document
from ..services.base import MessageQueue, ObjectStore
from ..utils.logger import get_logger
from .messages import (
    SummaryRequest, build_notification, generate_pdf_location, parse_message_body
)
from .split_application import derive_split_key, needs_split, split_for_funeral

logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"
PDF_CONTENT_TYPE = "application/pdf"


class MessageState(Enum):
    """Progress of a single inbound message."""
    RECEIVED = "received"
    FETCHED = "fetched"
    RENDERED = "rendered"
    UPLOADED = "uploaded"
    NOTIFIED = "notified"
    SPLIT_RENDERED = "split_rendered"
    SPLIT_UPLOADED = "split_uploaded"
    SPLIT_NOTIFIED = "split_notified"
    ACKED = "acked"
    FAILED = "failed"


class NotificationStatus(Enum):
    SENT = "sent"
    SKIPPED = "skipped"


@dataclass
class MessageResult:
    """Outcome of processing one inbound message."""
    message_id: str
    state: MessageState = MessageState.RECEIVED
    states: List[MessageState] = field(default_factory=lambda: [MessageState.RECEIVED])
    json_key: Optional[str] = None
    pdf_key: Optional[str] = None
    split_json_key: Optional[str] = None
    split_pdf_key: Optional[str] = None
    notifications: List[NotificationStatus] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    processing_time: float = 0.0

    @property
    def acked(self) -> bool:
        return self.state == MessageState.ACKED

    @property
    def failed(self) -> bool:
        return self.state == MessageState.FAILED

    def advance(self, state: MessageState) -> None:
        self.state = state
        self.states.append(state)


def is_json_content_type(content_type: Optional[str]) -> bool:
    """True for ``application/json``, with or without parameters."""
    if not content_type:
        return False
    return content_type.split(";")[0].strip().lower() == JSON_CONTENT_TYPE


class ApplicationPipeline:
    """
    Orchestrates fetch, render, upload, notify and acknowledge for queue messages.

    Collaborators are passed in, so tests can substitute in-memory fakes for
    the object store and the queue.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        message_queue: MessageQueue,
        renderer: Optional[SummaryPdfGenerator] = None,
        settings: Optional[PipelineSettings] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            object_store: Source and destination of documents
            message_queue: Inbound and notification queues
            renderer: Summary renderer (defaults to the configured style)
            settings: Queue, bucket and polling settings (defaults to the environment)
        """
        self.object_store = object_store
        self.message_queue = message_queue
        self.settings = settings or PipelineSettings.from_env()
        self.renderer = renderer or SummaryPdfGenerator(get_style(self.settings.summary_style))

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Poll the source queue on a fixed interval until ``stop_event`` is set.

        Each poll receives one bounded batch; the loop then sleeps for the
        poll interval whether or not messages arrived.
        """
        stop_event = stop_event or asyncio.Event()
        logger.info(
            f"Polling {self.settings.source_queue} every {self.settings.poll_interval}s "
            f"(batch size {self.settings.max_messages})"
        )

        while not stop_event.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Polling {self.settings.source_queue} failed: {e}")
                logger.error(f"Traceback:\n{traceback.format_exc()}")

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.settings.poll_interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Polling stopped")

    async def poll_once(self) -> List[MessageResult]:
        """Receive one batch from the source queue and process it."""
        messages = await self.message_queue.receive(
            self.settings.source_queue, self.settings.max_messages
        )
        if not messages:
            logger.debug(f"No messages on {self.settings.source_queue}")
            return []
        return await self.process_batch(messages)

    async def process_batch(self, messages: List[QueueMessage]) -> List[MessageResult]:
        """
        Process a batch concurrently.

        A failure in one message never affects its siblings.
        """
        outcomes = await asyncio.gather(
            *(self._process_with_timeout(message) for message in messages),
            return_exceptions=True,
        )

        results: List[MessageResult] = []
        for message, outcome in zip(messages, outcomes):
            if isinstance(outcome, BaseException):
                result = MessageResult(message_id=message.message_id)
                result.errors.append(f"{type(outcome).__name__}: {outcome}")
                result.advance(MessageState.FAILED)
                logger.error(f"Message {message.message_id} aborted: {outcome}")
                outcome = result
            results.append(outcome)

        summary = self._summarize(results)
        logger.info(
            f"Batch complete: {summary['acked']} acked, {summary['failed']} failed, "
            f"{summary['unacked']} processed but not acked"
        )
        return results

    async def _process_with_timeout(self, message: QueueMessage) -> MessageResult:
        try:
            return await asyncio.wait_for(
                self.process_message(message), timeout=self.settings.message_timeout
            )
        except asyncio.TimeoutError:
            result = MessageResult(message_id=message.message_id)
            result.errors.append(f"Timed out after {self.settings.message_timeout}s")
            result.advance(MessageState.FAILED)
            logger.error(
                f"Message {message.message_id} timed out after {self.settings.message_timeout}s; "
                f"left on the queue for redelivery"
            )
            return result

    async def process_message(self, message: QueueMessage) -> MessageResult:
        """
        Run one message through the pipeline and acknowledge it on success.

        Returns:
            MessageResult describing the furthest state reached
        """
        start_time = time.time()
        result = MessageResult(message_id=message.message_id)
        logger.info(f"Processing message {message.message_id}")

        try:
            await self._run_pipeline(message, result)
        except Exception as e:
            failed_in = result.state
            result.errors.append(f"{type(e).__name__}: {e}")
            result.advance(MessageState.FAILED)
            result.processing_time = time.time() - start_time
            logger.error(
                f"Message {message.message_id} failed after state '{failed_in.value}': {e}; "
                f"left on the queue for redelivery"
            )
            logger.error(f"Traceback:\n{traceback.format_exc()}")
            return result

        try:
            await self.message_queue.delete(self.settings.source_queue, message.receipt_handle)
            self._transition(result, MessageState.ACKED)
        except DeleteError as e:
            # Uploads and notifications stay in place; redelivery will repeat them
            result.errors.append(f"{type(e).__name__}: {e}")
            logger.error(f"Message {message.message_id} completed but could not be deleted: {e}")

        result.processing_time = time.time() - start_time
        return result

    async def _run_pipeline(self, message: QueueMessage, result: MessageResult) -> None:
        request = parse_message_body(message.body)
        result.json_key = request.json_key

        document = await self.fetch_document(request.json_key)
        self._transition(result, MessageState.FETCHED)

        case_reference = document.meta.case_reference
        result.pdf_key = generate_pdf_location(case_reference)

        rendered = await self._render(document)
        self._transition(result, MessageState.RENDERED)

        await self.upload_pdf(result.pdf_key, rendered)
        self._transition(result, MessageState.UPLOADED)

        status = await self.send_notification(
            request, build_notification(result.pdf_key, request.json_key, case_reference)
        )
        result.notifications.append(status)
        self._transition(result, MessageState.NOTIFIED)

        if not needs_split(document):
            return

        split_document = split_for_funeral(document)
        result.split_json_key = derive_split_key(request.json_key)
        result.split_pdf_key = generate_pdf_location(split_document.meta.case_reference)

        split_rendered = await self._render(split_document)
        self._transition(result, MessageState.SPLIT_RENDERED)

        await self.upload_pdf(result.split_pdf_key, split_rendered)
        await self.object_store.put_object(
            self.settings.document_bucket,
            result.split_json_key,
            split_document.to_json(),
            JSON_CONTENT_TYPE,
        )
        self._transition(result, MessageState.SPLIT_UPLOADED)

        status = await self.send_notification(
            request,
            build_notification(
                result.split_pdf_key, result.split_json_key, split_document.meta.case_reference
            ),
        )
        result.notifications.append(status)
        self._transition(result, MessageState.SPLIT_NOTIFIED)

    async def fetch_document(self, json_key: str) -> Document:
        """
        Fetch and parse a source document.

        Raises:
            UnsupportedContentTypeError: if the object is not stored as JSON
            DeserializationError: if the content is not a valid document
        """
        stored = await self.object_store.get_object(self.settings.document_bucket, json_key)
        if not is_json_content_type(stored.content_type):
            raise UnsupportedContentTypeError(json_key, stored.content_type, JSON_CONTENT_TYPE)
        return parse_document(stored.body)

    async def _render(self, document: Document) -> RenderedDocument:
        # Layout is CPU bound; run it off the event loop
        return await asyncio.to_thread(self.renderer.render, document)

    async def upload_pdf(self, key: str, rendered: RenderedDocument) -> None:
        """Stage a rendered PDF in the working directory and upload it."""
        staged = self._stage(rendered)
        try:
            await self.object_store.put_object(
                self.settings.document_bucket, key, staged.read_bytes(), PDF_CONTENT_TYPE
            )
        finally:
            staged.unlink(missing_ok=True)
        logger.info(f"Uploaded {key} ({rendered.page_count} page(s))")

    def _stage(self, rendered: RenderedDocument) -> Path:
        work_dir = Path(self.settings.work_dir)
        work_dir.mkdir(parents=True, exist_ok=True)
        staged = work_dir / f"summary-{uuid.uuid4().hex}.pdf"
        staged.write_bytes(rendered.content)
        return staged

    async def send_notification(self, request: SummaryRequest, payload: Dict[str, Any]) -> NotificationStatus:
        """
        Notify the downstream queue about a stored summary.

        Requests that only regenerate the PDF are not notified.
        """
        if request.regenerate_pdf:
            logger.info(
                f"Regenerate-only request for {request.json_key}; "
                f"notification for {payload.get('applicationPDFDocumentSummaryKey')} skipped"
            )
            return NotificationStatus.SKIPPED

        await self.message_queue.send(self.settings.notify_queue, payload)
        logger.info(f"Notified {self.settings.notify_queue} about {payload.get('applicationPDFDocumentSummaryKey')}")
        return NotificationStatus.SENT

    def _transition(self, result: MessageResult, state: MessageState) -> None:
        result.advance(state)
        logger.debug(f"Message {result.message_id} -> {state.value}")

    def _summarize(self, results: List[MessageResult]) -> Dict[str, int]:
        acked = sum(1 for r in results if r.acked)
        failed = sum(1 for r in results if r.failed)
        return {
            "total": len(results),
            "acked": acked,
            "failed": failed,
            "unacked": len(results) - acked - failed,
        }
