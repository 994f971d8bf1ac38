"""
Pytest configuration for the application summary pipeline tests.
"""

import copy
import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest
from faker import Faker

# Add the src directory to the Python path so tests can import the package
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from application_summary.config import PipelineSettings  # noqa: E402
from application_summary.exceptions import (  # noqa: E402
    DeleteError, NotifyError, ObjectNotFoundError, UploadError
)
from application_summary.models import QueueMessage, parse_document  # noqa: E402
from application_summary.services.base import MessageQueue, ObjectStore, StoredObject  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"

SOURCE_QUEUE = "source-queue"
NOTIFY_QUEUE = "notify-queue"
BUCKET = "test-bucket"

DECLARATION = {
    "id": "q-applicant-declaration",
    "type": "simple",
    "label": "<p>I declare that the information I have given is true.</p>",
    "value": "i-agree",
    "valueLabel": "I have read and understood the declaration",
}


class InMemoryObjectStore(ObjectStore):
    """Object store fake keyed by (bucket, key)."""

    def __init__(self):
        self.objects: Dict[tuple, StoredObject] = {}
        self.puts: List[str] = []
        self.fail_put_keys = set()

    def add(self, bucket: str, key: str, body: Union[bytes, str, dict], content_type: str = "application/json"):
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.objects[(bucket, key)] = StoredObject(body=body, content_type=content_type)

    async def get_object(self, bucket: str, key: str) -> StoredObject:
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(bucket, key)
        return self.objects[(bucket, key)]

    async def put_object(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        if key in self.fail_put_keys:
            raise UploadError(f"Simulated upload failure for {key}")
        self.objects[(bucket, key)] = StoredObject(body=body, content_type=content_type)
        self.puts.append(key)


class InMemoryMessageQueue(MessageQueue):
    """
    Queue fake. Received messages stay queued until deleted, like an SQS
    message whose visibility timeout has expired.
    """

    def __init__(self):
        self.queues: Dict[str, List[QueueMessage]] = defaultdict(list)
        self.sent: List[tuple] = []
        self.deleted: List[tuple] = []
        self.receive_calls = 0
        self.fail_send = False
        self.fail_delete = False
        self._counter = 0

    def enqueue(self, queue_url: str, body: Union[str, Dict[str, Any]]) -> QueueMessage:
        self._counter += 1
        message = QueueMessage(
            message_id=f"msg-{self._counter}",
            body=body if isinstance(body, str) else json.dumps(body),
            receipt_handle=f"receipt-{self._counter}",
        )
        self.queues[queue_url].append(message)
        return message

    async def receive(self, queue_url: str, max_messages: int) -> List[QueueMessage]:
        self.receive_calls += 1
        return list(self.queues[queue_url][:max_messages])

    async def send(self, queue_url: str, body: Union[str, Dict[str, Any]]) -> None:
        if self.fail_send:
            raise NotifyError("Simulated send failure")
        self.sent.append((queue_url, body))

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        if self.fail_delete:
            raise DeleteError("Simulated delete failure")
        self.deleted.append((queue_url, receipt_handle))
        self.queues[queue_url] = [
            m for m in self.queues[queue_url] if m.receipt_handle != receipt_handle
        ]


def build_payload(
    fatal_claim: Optional[bool] = None,
    claim_type: Optional[bool] = None,
    crime_duration: Optional[str] = None,
    split_funeral: bool = False,
    funeral_reference: Optional[str] = None,
    case_reference: str = "23\\700001",
) -> Dict[str, Any]:
    """Minimal application document with the classification questions requested."""
    about = []
    if fatal_claim is not None:
        about.append({
            "id": "q-applicant-fatal-claim", "type": "simple",
            "label": "Are you applying because someone died?", "value": fatal_claim,
        })
    if claim_type is not None:
        about.append({
            "id": "q-applicant-claim-type", "type": "simple",
            "label": "Are you claiming funeral costs only?", "value": claim_type,
        })

    crime = []
    if crime_duration is not None:
        crime.append({
            "id": "q-applicant-did-the-crime-happen-once-or-over-time", "type": "simple",
            "label": "Did the crime happen once or over a period of time?", "value": crime_duration,
        })

    return {
        "meta": {
            "caseReference": case_reference,
            "funeralReference": funeral_reference,
            "splitFuneral": split_funeral,
            "submittedDate": "2023-05-17T18:11:21.789Z",
        },
        "themes": [
            {"id": "about-application", "title": "About your application", "values": about},
            {"id": "crime", "title": "About the crime", "values": crime},
        ],
        "declaration": copy.deepcopy(DECLARATION),
    }


def build_long_payload(theme_count: int = 30, seed: int = 1234) -> Dict[str, Any]:
    """Deterministic multi-page document generated with Faker."""
    fake = Faker("en_GB")
    Faker.seed(seed)

    themes = []
    for t in range(theme_count):
        values = []
        for q in range(1 + t % 4):
            values.append({
                "id": f"q-generated-{t}-{q}",
                "type": "simple",
                "label": fake.sentence(nb_words=6),
                "value": fake.sentence(nb_words=10),
            })
        if t % 5 == 0:
            values.append({
                "id": f"q-generated-address-{t}",
                "type": "composite",
                "label": "Address",
                "values": [
                    {"id": f"q-generated-street-{t}", "type": "simple",
                     "label": "Building and street", "value": fake.street_address()},
                    {"id": f"q-generated-city-{t}", "type": "simple",
                     "label": "Town or city", "value": fake.city()},
                ],
            })
        themes.append({"id": f"theme-{t}", "title": f"Section {t + 1}", "values": values})

    payload = build_payload(case_reference="24\\123456")
    payload["themes"] = themes
    return payload


@pytest.fixture
def sample_payload() -> Dict[str, Any]:
    """The check-your-answers fixture as a dictionary."""
    with open(FIXTURES_DIR / "check_your_answers.json", "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def sample_document(sample_payload):
    return parse_document(sample_payload)


@pytest.fixture
def long_payload() -> Dict[str, Any]:
    return build_long_payload()


@pytest.fixture
def settings(tmp_path) -> PipelineSettings:
    return PipelineSettings(
        source_queue=SOURCE_QUEUE,
        notify_queue=NOTIFY_QUEUE,
        document_bucket=BUCKET,
        poll_interval=0.01,
        max_messages=10,
        message_timeout=30,
        work_dir=tmp_path / "work",
    )


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def message_queue() -> InMemoryMessageQueue:
    return InMemoryMessageQueue()
