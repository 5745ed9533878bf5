"""
Tests for progress reporting and transfer summaries.
"""

import logging
import threading

import pytest

from dataset_tool.models.results import DownloadResult, PushResult
from dataset_tool.transfer import (
    ProgressChannel,
    ProgressCounter,
    discard_reporter,
    format_count_with_unit,
    format_file_size,
    log_download_summary,
    log_push_summary,
)


class TestProgressChannel:
    """Test ProgressChannel."""

    def test_send_and_iterate(self):
        """Test sent values are yielded in order until close."""
        channel = ProgressChannel()
        channel.send(1)
        channel(5)
        channel.close()

        assert list(channel) == [1, 5]
        assert channel.closed

    def test_close_twice(self):
        """Test a second close is an error."""
        channel = ProgressChannel()
        channel.close()
        with pytest.raises(RuntimeError, match="closed twice"):
            channel.close()

    def test_send_after_close(self):
        """Test sending on a closed channel is an error."""
        channel = ProgressChannel()
        channel.close()
        with pytest.raises(RuntimeError):
            channel.send(1)

    def test_consumer_thread(self):
        """Test a consumer thread drains the channel and stops on close."""
        channel = ProgressChannel()
        received = []
        consumer = threading.Thread(target=lambda: received.extend(channel))
        consumer.start()

        for value in range(100):
            channel.send(value)
        channel.close()
        consumer.join(timeout=5)

        assert not consumer.is_alive()
        assert received == list(range(100))


class TestProgressCounter:
    """Test ProgressCounter."""

    def test_cumulative(self):
        """Test deltas are forwarded as running totals."""
        seen = []
        counter = ProgressCounter(seen.append)
        counter.add(3)
        counter(4)
        assert seen == [3, 7]
        assert counter.total == 7

    def test_without_reporter(self):
        """Test a counter works with no reporter."""
        counter = ProgressCounter()
        counter(10)
        assert counter.total == 10

    def test_concurrent_adds(self):
        """Test totals stay exact and monotonic with several threads."""
        seen = []
        counter = ProgressCounter(seen.append)

        def work():
            for _ in range(1000):
                counter.add(1)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert counter.total == 8000
        assert seen == list(range(1, 8001))

    def test_discard_reporter(self):
        """Test the discarding reporter accepts values."""
        assert discard_reporter(42) is None


class TestFormatting:
    """Test formatting helpers."""

    @pytest.mark.parametrize(
        "size,expected",
        [(0, "0 B"), (512, "512.0 B"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5.0 MB")],
    )
    def test_format_file_size(self, size, expected):
        """Test byte counts are scaled to the largest fitting unit."""
        assert format_file_size(size) == expected

    def test_format_count_with_unit(self):
        """Test simple pluralization."""
        assert format_count_with_unit(1, "object") == "1 object"
        assert format_count_with_unit(0, "object") == "0 objects"
        assert format_count_with_unit(2, "entries", singular="entry") == "2 entries"
        assert format_count_with_unit(1, "entries", singular="entry") == "1 entry"


class TestSummaries:
    """Test summary logging."""

    def test_push_summary(self, caplog):
        """Test the push summary is logged at WARNING."""
        result = PushResult(dataset_id="ds-1", name="data", keys=["a", "b"], bytes_transferred=2048, duration=1.0)
        with caplog.at_level(logging.DEBUG):
            log_push_summary(result)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "ds-1" in warnings[0].getMessage()
        assert "2 objects" in warnings[0].getMessage()
        assert "2.0 KB" in warnings[0].getMessage()

    def test_download_summary_polls(self, caplog):
        """Test the status check count is only logged after waiting."""
        result = DownloadResult(dataset_id="ds-1", local_dir="/tmp/out", keys=["a"], polls=3)
        with caplog.at_level(logging.INFO):
            log_download_summary(result)

        messages = [r.getMessage() for r in caplog.records]
        assert any("1 object," in m for m in messages)
        assert any("3 status checks" in m for m in messages)
