"""
Tests for the aioboto3 collaborators, using a stand-in session.
"""

import asyncio
import json

import pytest
from botocore.exceptions import ClientError

from application_summary.exceptions import (
    DeleteError, FetchError, NotifyError, ObjectNotFoundError, ReceiveError, UploadError
)
from application_summary.services.aws import S3ObjectStore, SqsMessageQueue


class FakeBody:

    def __init__(self, data):
        self.data = data

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def read(self):
        return self.data


class FakeClient:

    def __init__(self, responses, calls):
        self.responses = responses
        self.calls = calls

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def __getattr__(self, operation):
        async def call(**kwargs):
            self.calls.append((operation, kwargs))
            response = self.responses.get(operation, {})
            if isinstance(response, Exception):
                raise response
            return response
        return call


class FakeSession:

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []
        self.clients = []

    def client(self, service_name, region_name=None, endpoint_url=None):
        self.clients.append((service_name, region_name, endpoint_url))
        return FakeClient(self.responses, self.calls)


def client_error(code, operation):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestS3ObjectStore:

    def test_get_object(self):
        session = FakeSession({
            "get_object": {"Body": FakeBody(b'{"a": 1}'), "ContentType": "application/json"},
        })
        store = S3ObjectStore(session=session, region_name="eu-west-2", endpoint_url="http://localhost:4566")

        stored = asyncio.run(store.get_object("bucket", "a/b.json"))

        assert stored.body == b'{"a": 1}'
        assert stored.content_type == "application/json"
        assert session.clients == [("s3", "eu-west-2", "http://localhost:4566")]
        assert session.calls == [("get_object", {"Bucket": "bucket", "Key": "a/b.json"})]

    @pytest.mark.parametrize("code", ["NoSuchKey", "404"])
    def test_get_missing_object(self, code):
        store = S3ObjectStore(session=FakeSession({"get_object": client_error(code, "GetObject")}))
        with pytest.raises(ObjectNotFoundError, match="a/b.json"):
            asyncio.run(store.get_object("bucket", "a/b.json"))

    def test_get_object_failure(self):
        store = S3ObjectStore(session=FakeSession({"get_object": client_error("AccessDenied", "GetObject")}))
        with pytest.raises(FetchError):
            asyncio.run(store.get_object("bucket", "a/b.json"))

    def test_put_object(self):
        session = FakeSession()
        store = S3ObjectStore(session=session)

        asyncio.run(store.put_object("bucket", "x/summary.pdf", b"%PDF", "application/pdf"))

        assert session.calls == [("put_object", {
            "Bucket": "bucket", "Key": "x/summary.pdf", "Body": b"%PDF", "ContentType": "application/pdf",
        })]

    def test_put_object_failure(self):
        store = S3ObjectStore(session=FakeSession({"put_object": client_error("AccessDenied", "PutObject")}))
        with pytest.raises(UploadError):
            asyncio.run(store.put_object("bucket", "x.pdf", b"", "application/pdf"))


class TestSqsMessageQueue:

    def test_receive(self):
        session = FakeSession({"receive_message": {"Messages": [
            {"MessageId": "m1", "Body": "{}", "ReceiptHandle": "r1"},
        ]}})
        queue = SqsMessageQueue(session=session, wait_time_seconds=5)

        messages = asyncio.run(queue.receive("source", 10))

        assert [(m.message_id, m.receipt_handle) for m in messages] == [("m1", "r1")]
        assert session.calls[0] == ("receive_message", {
            "QueueUrl": "source", "MaxNumberOfMessages": 10, "WaitTimeSeconds": 5,
        })

    def test_receive_failure(self):
        queue = SqsMessageQueue(session=FakeSession({"receive_message": client_error("AccessDenied", "ReceiveMessage")}))
        with pytest.raises(ReceiveError, match="source"):
            asyncio.run(queue.receive("source", 10))

    def test_receive_nothing(self):
        assert asyncio.run(SqsMessageQueue(session=FakeSession()).receive("source", 10)) == []

    def test_send_encodes_dicts(self):
        session = FakeSession({"send_message": {"MessageId": "m2"}})
        queue = SqsMessageQueue(session=session)

        asyncio.run(queue.send("notify", {"applicationCRN": "23\\700001"}))

        operation, kwargs = session.calls[0]
        assert operation == "send_message"
        assert json.loads(kwargs["MessageBody"]) == {"applicationCRN": "23\\700001"}

    def test_send_failure(self):
        queue = SqsMessageQueue(session=FakeSession({"send_message": client_error("Throttled", "SendMessage")}))
        with pytest.raises(NotifyError):
            asyncio.run(queue.send("notify", "{}"))

    def test_delete_failure(self):
        queue = SqsMessageQueue(session=FakeSession({"delete_message": client_error("ReceiptHandleIsInvalid", "DeleteMessage")}))
        with pytest.raises(DeleteError):
            asyncio.run(queue.delete("source", "r1"))
