"""
Dataset API client.

DatasetClient talks to the dataset API that owns dataset identities and
their upload status. The uploading side creates datasets and moves their
status forward; downloaders only describe them.

REST layout (relative to ``base_url``):
    POST  /projects/{project}/datasets            create a pending dataset
    GET   /projects/{project}/datasets/{id}       describe a dataset
    PATCH /projects/{project}/datasets/{id}       update upload status/expiry
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..exceptions import DatasetNotFoundError, DatasetToolError
from ..models.dataset import DatasetSummary, UploadStatus
from ..utils.constants import DEFAULT_TIMEOUT, HTTP_STATUS_NOT_FOUND
from ..utils.session import create_session_with_retry


class DatasetClient:
    """Client for the dataset API."""

    def __init__(
        self,
        base_url: str,
        project_id: str,
        auth: Optional[httpx.Auth] = None,
        session: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize the dataset client.

        Args:
            base_url: Base URL of the dataset API
            project_id: Project that owns the datasets
            auth: Optional httpx.Auth (usually ProviderAuth)
            session: Optional preconfigured httpx.Client
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or create_session_with_retry(auth=auth, timeout=timeout)

    def _url(self, dataset_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/projects/{self.project_id}/datasets"
        return f"{url}/{dataset_id}" if dataset_id else url

    @staticmethod
    def _parse(response: httpx.Response, operation: str) -> DatasetSummary:
        try:
            return DatasetSummary(**response.json())
        except (ValueError, ValidationError) as e:
            raise DatasetToolError(f"Invalid dataset response during {operation}: {e}") from e

    def _check_response(self, response: httpx.Response, operation: str, dataset_id: Optional[str] = None) -> None:
        if dataset_id and response.status_code == HTTP_STATUS_NOT_FOUND:
            raise DatasetNotFoundError(dataset_id)
        if response.is_error:
            logging.error("Failed to %s: %s - %s", operation, response.status_code, response.text[:500])
        response.raise_for_status()

    def create_dataset(self, name: str) -> DatasetSummary:
        """
        Create a new dataset in the pending state.

        Args:
            name: Dataset name

        Returns:
            DatasetSummary of the new dataset
        """
        logging.debug("Creating dataset %s in project %s", name, self.project_id)
        response = self.session.post(self._url(), json={"name": name}, timeout=self.timeout)
        self._check_response(response, "create dataset")
        dataset = self._parse(response, "create dataset")
        logging.info("Created dataset %s (%s)", dataset.name or name, dataset.dataset_id)
        return dataset

    def describe_dataset(self, dataset_id: str) -> DatasetSummary:
        """
        Describe a dataset.

        Raises:
            DatasetNotFoundError: If the dataset does not exist
        """
        response = self.session.get(self._url(dataset_id), timeout=self.timeout)
        self._check_response(response, "describe dataset", dataset_id)
        return self._parse(response, "describe dataset")

    def _update(self, dataset_id: str, payload: Dict[str, Any], operation: str) -> DatasetSummary:
        response = self.session.patch(self._url(dataset_id), json=payload, timeout=self.timeout)
        self._check_response(response, operation, dataset_id)
        return self._parse(response, operation)

    def start_upload(self, dataset_id: str, expire: float) -> DatasetSummary:
        """
        Mark a dataset as uploading until the absolute unix time ``expire``.
        """
        logging.debug("Marking dataset %s as uploading until %s", dataset_id, expire)
        return self._update(
            dataset_id,
            {"upload_status": UploadStatus.UPLOADING.value, "upload_expire": expire},
            "start upload",
        )

    def finish_upload(self, dataset_id: str) -> DatasetSummary:
        """Mark a dataset upload as successful."""
        logging.debug("Marking dataset %s as uploaded", dataset_id)
        return self._update(dataset_id, {"upload_status": UploadStatus.SUCCESS.value}, "finish upload")

    def close(self) -> None:
        """Close the session and release all connections."""
        if self._owns_session:
            self.session.close()
            logging.debug("DatasetClient session closed")

    def __enter__(self) -> "DatasetClient":
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[BaseException], exc_tb: Optional[Any]) -> None:
        self.close()


__all__ = ["DatasetClient"]
