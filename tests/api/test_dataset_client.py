"""
Tests for DatasetClient.

HTTP traffic is mocked with respx.
"""

import json

import httpx
import pytest

from dataset_tool.api import DatasetClient
from dataset_tool.exceptions import DatasetNotFoundError, DatasetToolError
from dataset_tool.models.dataset import UploadStatus

BASE_URL = "https://datasets.example.com/api"
COLLECTION = f"{BASE_URL}/projects/proj/datasets"


def dataset_json(**overrides):
    data = {
        "dataset_id": "ds-1",
        "name": "sample",
        "project_id": "proj",
        "bucket": "bucket-a",
        "dataset_root": "datasets/ds-1",
        "upload_status": "pending",
        "upload_expire": 0,
    }
    data.update(overrides)
    return data


@pytest.fixture
def client():
    """DatasetClient against the mocked API."""
    with DatasetClient(BASE_URL + "/", "proj") as dataset_client:
        yield dataset_client


class TestDatasetClient:
    """Test DatasetClient operations."""

    def test_create_dataset(self, client, httpx_mock):
        """Test create_dataset() posts the name and parses the dataset."""
        route = httpx_mock.post(COLLECTION).mock(return_value=httpx.Response(201, json=dataset_json()))

        dataset = client.create_dataset("sample")

        assert dataset.dataset_id == "ds-1"
        assert dataset.upload_status == UploadStatus.PENDING
        assert dataset.key_prefix == "datasets/ds-1/"
        assert json.loads(route.calls.last.request.content) == {"name": "sample"}

    def test_describe_dataset(self, client, httpx_mock):
        """Test describe_dataset() returns status and expiry."""
        httpx_mock.get(f"{COLLECTION}/ds-1").mock(
            return_value=httpx.Response(200, json=dataset_json(upload_status="uploading", upload_expire=1700000000.5))
        )

        dataset = client.describe_dataset("ds-1")

        assert dataset.upload_status == UploadStatus.UPLOADING
        assert dataset.upload_expire == 1700000000.5
        assert not dataset.is_uploaded

    def test_describe_ignores_unknown_fields(self, client, httpx_mock):
        """Test extra fields in API responses are tolerated."""
        httpx_mock.get(f"{COLLECTION}/ds-1").mock(
            return_value=httpx.Response(200, json=dataset_json(created_by="someone"))
        )
        assert client.describe_dataset("ds-1").name == "sample"

    def test_describe_not_found(self, client, httpx_mock):
        """Test a 404 is reported as DatasetNotFoundError."""
        httpx_mock.get(f"{COLLECTION}/missing").mock(return_value=httpx.Response(404))

        with pytest.raises(DatasetNotFoundError) as exc_info:
            client.describe_dataset("missing")
        assert exc_info.value.dataset_id == "missing"

    def test_server_error(self, client, httpx_mock):
        """Test other error statuses raise HTTPStatusError."""
        httpx_mock.get(f"{COLLECTION}/ds-1").mock(return_value=httpx.Response(503, text="unavailable"))
        with pytest.raises(httpx.HTTPStatusError):
            client.describe_dataset("ds-1")

    def test_invalid_response(self, client, httpx_mock):
        """Test malformed bodies are reported as DatasetToolError."""
        httpx_mock.get(f"{COLLECTION}/ds-1").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(DatasetToolError, match="Invalid dataset response"):
            client.describe_dataset("ds-1")

    def test_start_upload(self, client, httpx_mock):
        """Test start_upload() sends the status and expiry."""
        route = httpx_mock.patch(f"{COLLECTION}/ds-1").mock(
            return_value=httpx.Response(200, json=dataset_json(upload_status="uploading", upload_expire=123.0))
        )

        dataset = client.start_upload("ds-1", 123.0)

        assert dataset.upload_status == UploadStatus.UPLOADING
        assert json.loads(route.calls.last.request.content) == {"upload_status": "uploading", "upload_expire": 123.0}

    def test_finish_upload(self, client, httpx_mock):
        """Test finish_upload() marks the dataset successful."""
        route = httpx_mock.patch(f"{COLLECTION}/ds-1").mock(
            return_value=httpx.Response(200, json=dataset_json(upload_status="success"))
        )

        assert client.finish_upload("ds-1").is_uploaded
        assert json.loads(route.calls.last.request.content) == {"upload_status": "success"}


class TestSessionOwnership:
    """Test session lifecycle."""

    def test_close_owned_session(self):
        """Test close() closes a session the client created."""
        client = DatasetClient(BASE_URL, "proj")
        client.close()
        assert client.session.is_closed

    def test_close_external_session(self):
        """Test close() leaves a caller supplied session open."""
        session = httpx.Client()
        try:
            DatasetClient(BASE_URL, "proj", session=session).close()
            assert not session.is_closed
        finally:
            session.close()
