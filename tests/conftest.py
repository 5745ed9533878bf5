"""
Test fixtures and fakes for dataset-tool tests.

This module provides common fixtures for building source trees, an in-memory
storage backend, a scripted dataset API and the respx HTTP mock.
"""

import io
import os
import stat
import threading
import time
from collections import Counter
from typing import Dict, List, Union

import pytest
import respx

from dataset_tool.exceptions import DatasetNotFoundError, StorageError
from dataset_tool.models.dataset import DatasetSummary, UploadStatus
from dataset_tool.services import TransferService
from dataset_tool.utils.config_manager import ConfigManager

TreeSpec = Dict[str, Union[bytes, None, tuple]]


class MemoryStorage:
    """Thread-safe in-memory storage backend recording every call."""

    def __init__(self, bucket: str = "test-bucket", chunk_size: int = 4) -> None:
        self.bucket = bucket
        self.objects: Dict[str, bytes] = {}
        self.gets: Counter = Counter()
        self.puts: List[str] = []
        self.closed = 0
        self.chunk_size = chunk_size
        self._lock = threading.Lock()

    def put(self, key, reader, on_chunk=None, cancel=None):
        data = bytearray()
        while True:
            if cancel is not None:
                cancel.raise_if_cancelled()
            chunk = reader.read(self.chunk_size * 1024)
            if not chunk:
                break
            data.extend(chunk)
            if on_chunk is not None:
                on_chunk(len(chunk))
        with self._lock:
            self.objects[key] = bytes(data)
            self.puts.append(key)
        return len(data)

    def get(self, key, writer, on_chunk=None, cancel=None):
        with self._lock:
            self.gets[key] += 1
            if key not in self.objects:
                raise StorageError("object not found", key)
            data = self.objects[key]
        if cancel is not None:
            cancel.raise_if_cancelled()
        writer.write(data)
        if on_chunk is not None:
            on_chunk(len(data))
        return len(data)

    def exists(self, key):
        with self._lock:
            return key in self.objects

    def close(self):
        self.closed += 1


class FakeDatasetAPI:
    """
    In-memory dataset API.

    ``script`` maps a dataset ID to a list of summaries returned by successive
    describe_dataset() calls; the last one repeats.
    """

    def __init__(self, bucket: str = "test-bucket") -> None:
        self.bucket = bucket
        self.datasets: Dict[str, DatasetSummary] = {}
        self.script: Dict[str, List[DatasetSummary]] = {}
        self.describe_times: List[float] = []
        self.calls: List[tuple] = []
        self.closed = False
        self._counter = 0

    def add(self, dataset_id: str, status: UploadStatus, expire: float = 0, name: str = "") -> DatasetSummary:
        summary = DatasetSummary(
            dataset_id=dataset_id,
            name=name or dataset_id,
            bucket=self.bucket,
            dataset_root=f"datasets/{dataset_id}",
            upload_status=status,
            upload_expire=expire,
        )
        self.datasets[dataset_id] = summary
        return summary

    def create_dataset(self, name):
        self._counter += 1
        dataset_id = f"ds-{self._counter}"
        self.calls.append(("create", name))
        return self.add(dataset_id, UploadStatus.PENDING, name=name)

    def describe_dataset(self, dataset_id):
        self.describe_times.append(time.time())
        self.calls.append(("describe", dataset_id))
        scripted = self.script.get(dataset_id)
        if scripted:
            return scripted.pop(0) if len(scripted) > 1 else scripted[0]
        if dataset_id not in self.datasets:
            raise DatasetNotFoundError(dataset_id)
        return self.datasets[dataset_id]

    def start_upload(self, dataset_id, expire):
        self.calls.append(("start_upload", dataset_id))
        current = self.datasets[dataset_id]
        updated = current.model_copy(update={"upload_status": UploadStatus.UPLOADING, "upload_expire": expire})
        self.datasets[dataset_id] = updated
        return updated

    def finish_upload(self, dataset_id):
        self.calls.append(("finish_upload", dataset_id))
        updated = self.datasets[dataset_id].model_copy(update={"upload_status": UploadStatus.SUCCESS})
        self.datasets[dataset_id] = updated
        return updated

    def close(self):
        self.closed = True


def build_tree(root: str, spec: TreeSpec) -> str:
    """
    Create a tree below ``root``.

    Values: bytes for a file, None for a directory, (bytes, mode) for a file
    with an explicit mode.
    """
    os.makedirs(root, exist_ok=True)
    for rel, value in sorted(spec.items()):
        path = os.path.join(root, *rel.split("/"))
        if value is None:
            os.makedirs(path, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(path), exist_ok=True)
        content, mode = (value, None) if isinstance(value, bytes) else value
        with open(path, "wb") as f:
            f.write(content)
        if mode is not None:
            os.chmod(path, mode)
    return root


def snapshot_tree(root: str) -> Dict[str, tuple]:
    """Map every relative path below ``root`` to (kind, mode, content or link target)."""
    result: Dict[str, tuple] = {}
    for current, dirs, files in os.walk(root):
        for name in dirs + files:
            path = os.path.join(current, name)
            rel = os.path.relpath(path, root).replace(os.sep, "/")
            st = os.lstat(path)
            if stat.S_ISLNK(st.st_mode):
                result[rel] = ("symlink", None, os.readlink(path))
            elif stat.S_ISDIR(st.st_mode):
                result[rel] = ("dir", None, None)
            else:
                with open(path, "rb") as f:
                    result[rel] = ("file", stat.S_IMODE(st.st_mode), f.read())
    return result


@pytest.fixture
def httpx_mock():
    """Provide respx mock for HTTP mocking."""
    with respx.mock:
        yield respx


@pytest.fixture
def make_tree(tmp_path):
    """Factory building a source tree below tmp_path."""

    def _make(spec: TreeSpec, name: str = "src") -> str:
        return build_tree(str(tmp_path / name), spec)

    return _make


@pytest.fixture
def tree_snapshot():
    """Function snapshotting a tree for comparisons."""
    return snapshot_tree


@pytest.fixture
def sample_tree(make_tree):
    """A tree with nested files, modes and empty directories."""
    return make_tree(
        {
            "README.md": b"# sample dataset\n",
            "data/train.csv": (b"a,b\n1,2\n" * 100, 0o640),
            "data/test.csv": b"a,b\n3,4\n",
            "data/nested/deep/blob.bin": bytes(range(256)) * 64,
            "scripts/run.sh": (b"#!/bin/sh\necho hi\n", 0o755),
            "empty": None,
            "data/empty-inner": None,
        }
    )


@pytest.fixture
def memory_storage():
    """In-memory storage backend."""
    return MemoryStorage()


@pytest.fixture
def dataset_api():
    """In-memory dataset API."""
    return FakeDatasetAPI()


@pytest.fixture
def temp_config_file(tmp_path):
    """Write a complete configuration file and return its path."""
    path = tmp_path / "config.toml"
    path.write_text(
        "[api]\n"
        'base_url = "https://datasets.example.com/"\n'
        'project_id = "proj"\n'
        "\n[auth]\n"
        'token = "static-token"\n'
        "\n[storage]\n"
        'backend = "local"\n'
        f'root_dir = "{tmp_path / "store"}"\n'
        "\n[archiver]\n"
        'type = "sharded-tar"\n'
        "shards = 3\n"
        "\n[transfer]\n"
        "concurrency = 2\n"
        "upload_ttl = 120\n"
    )
    return str(path)


@pytest.fixture
def transfer_service(temp_config_file, dataset_api):
    """TransferService over the temporary configuration and the in-memory API."""
    settings = ConfigManager(temp_config_file).settings()
    with TransferService(settings, dataset_client=dataset_api) as service:
        yield service


def tar_bytes(members: List[tuple]) -> bytes:
    """Build a tar archive from (name, content or None for a directory) pairs."""
    import tarfile

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for name, content in members:
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


@pytest.fixture
def make_tar():
    """Function building raw tar bytes for malformed-archive tests."""
    return tar_bytes
