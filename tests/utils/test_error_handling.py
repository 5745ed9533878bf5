"""Tests for error handling utilities."""

import httpx
import pytest

from dataset_tool.exceptions import (
    ArchiveError,
    CredentialChainError,
    CredentialError,
    DatasetNotFoundError,
    DestinationNotEmptyError,
    InvalidSpecificationError,
    OperationCancelledError,
    StorageError,
    UploadTimedOutError,
)
from dataset_tool.utils.error_handling import (
    handle_generic_error,
    handle_http_error,
    handle_transfer_error,
    report_error,
    with_error_handling,
)


def status_error(code):
    request = httpx.Request("GET", "https://datasets.example.com/x")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"{code} error", request=request, response=response)


class TestHandleHttpError:
    """Tests for handle_http_error function."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            (403, "Authorization failed"),
            (401, "credentials were rejected"),
            (404, "Resource not found"),
            (502, "Server error"),
            (400, "HTTP error"),
        ],
    )
    def test_status_codes(self, caplog, code, expected):
        """Test each status family gets its own message."""
        handle_http_error(status_error(code), "test operation", log_traceback=False)
        assert expected in caplog.text
        assert "test operation" in caplog.text

    def test_transport_error(self, caplog):
        """Test errors without a response are logged generically."""
        handle_http_error(httpx.ConnectError("refused"), "test operation", log_traceback=False)
        assert "HTTP error during test operation: refused" in caplog.text

    def test_request_in_message(self, caplog):
        """Test the failing request is named."""
        handle_http_error(status_error(404), "download", log_traceback=False)
        assert "(GET https://datasets.example.com/x)" in caplog.text


class TestHandleTransferError:
    """Tests for handle_transfer_error function."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (UploadTimedOutError("ds-1", 0), "upload of dataset ds-1 was abandoned"),
            (OperationCancelledError("user abort"), "was cancelled: user abort"),
            (DatasetNotFoundError("ds-2"), "dataset ds-2 does not exist"),
            (DestinationNotEmptyError("/tmp/out"), "destination /tmp/out must be empty"),
            (StorageError("object not found", "k"), "download failed in the storage backend: object not found: k"),
            (ArchiveError("failed to extract file", "/tmp/out/a"), "failed on the local filesystem: failed to extract file"),
            (InvalidSpecificationError("empty path"), "Invalid input for download: empty path"),
            (RuntimeError("boom"), "Unexpected error during download: boom"),
        ],
    )
    def test_messages(self, caplog, error, expected):
        """Test well-known errors get user facing messages."""
        handle_transfer_error(error, "download")
        assert expected in caplog.text

    def test_credential_chain_causes(self, caplog):
        """Test each provider failure is listed."""
        error = CredentialChainError([CredentialError("no static token"), CredentialError("variable not set")])
        handle_transfer_error(error, "push")
        assert "no credential provider succeeded" in caplog.text
        assert "no static token" in caplog.text
        assert "variable not set" in caplog.text


class TestHandleGenericError:
    """Tests for handle_generic_error function."""

    def test_handle_generic_error(self, caplog):
        """Test handling generic exception."""
        handle_generic_error(ValueError("Test error"), "test operation", log_traceback=False)
        assert "Unexpected error" in caplog.text
        assert "test operation" in caplog.text


class TestReportError:
    """Tests for report_error function."""

    def test_dispatch(self, caplog):
        """Test HTTP and dataset-tool errors reach their handlers."""
        report_error(status_error(401), "push")
        report_error(DatasetNotFoundError("ds-9"), "push")
        assert "Authentication failed during push" in caplog.text
        assert "dataset ds-9 does not exist" in caplog.text


class TestWithErrorHandling:
    """Tests for with_error_handling decorator."""

    def test_success(self):
        """Test the wrapped return value is passed through."""

        @with_error_handling("op")
        def ok():
            return 42

        assert ok() == 42

    def test_reraise(self, caplog):
        """Test errors are logged and re-raised by default."""

        @with_error_handling("op")
        def fail():
            raise DatasetNotFoundError("ds-1")

        with pytest.raises(DatasetNotFoundError):
            fail()
        assert "dataset ds-1 does not exist" in caplog.text

    def test_exit_on_error(self):
        """Test exit_on_error turns errors into SystemExit."""

        @with_error_handling("op", exit_on_error=True, exit_code=3)
        def fail():
            raise status_error(500)

        with pytest.raises(SystemExit) as exc_info:
            fail()
        assert exc_info.value.code == 3

    def test_swallow(self):
        """Test reraise=False returns None after logging."""

        @with_error_handling("op", reraise=False)
        def fail():
            raise ValueError("bad")

        assert fail() is None

    def test_keyboard_interrupt_not_caught(self):
        """Test Ctrl+C reaches the entry point untouched."""

        @with_error_handling("op", exit_on_error=True)
        def interrupted():
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            interrupted()
